"""
Shared test doubles for the routing suite
"""

import asyncio
import json
import sys
from pathlib import Path

import pytest

# Add project root to path so the top-level packages import without install
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tools.llm.client import CompletionService


class FakeClock:
    """Manually advanced monotonic clock (seconds)"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


UTTERANCE_MARKER = 'User message to analyze: "'


def extract_utterance(prompt: str) -> str:
    start = prompt.rindex(UTTERANCE_MARKER) + len(UTTERANCE_MARKER)
    end = prompt.index('"\n', start)
    return prompt[start:end]


def analysis_json(intent, handler, action, confidence=0.9, entities=None, reasoning="test"):
    return json.dumps({
        "intent": intent,
        "confidence": confidence,
        "entities": entities or {},
        "handler": handler,
        "action": action,
        "reasoning": reasoning,
    })


class ScriptedCompletionService(CompletionService):
    """
    Answers like a well-behaved classifier for a handful of phrases.

    Follow-ups such as "pause it" resolve to the timer when the prompt's
    conversation history mentions a timer, otherwise to music.
    """

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.prompts = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def complete(self, prompt: str, *, temperature: float, max_tokens: int) -> str:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)

        utterance = extract_utterance(prompt).lower()
        history = prompt[:prompt.rindex(UTTERANCE_MARKER)]
        history = history[history.find("Conversation history"):] if "Conversation history" in history else ""

        if "task" in utterance or "todo" in utterance:
            return analysis_json("CREATE_TASK", "PlanningHandler", "planning", 0.93,
                                 {"task_title": "buy milk"})
        if "timer" in utterance:
            return analysis_json("START_TIMER", "PomodoroHandler", "pomodoro", 0.91,
                                 {"duration": "25", "unit": "minutes"})
        if utterance.startswith("pause"):
            if "timer" in history.lower():
                return analysis_json("PAUSE_TIMER", "PomodoroHandler", "pomodoro", 0.88)
            return analysis_json("PAUSE_MUSIC", "MusicHandler", "music", 0.8)
        if utterance.startswith("start one") and "timer" in history.lower():
            return analysis_json("START_TIMER", "PomodoroHandler", "pomodoro", 0.87)
        if "play" in utterance or "music" in utterance:
            return analysis_json("PLAY_MUSIC", "MusicHandler", "music", 0.9)
        return analysis_json("GENERAL_CHAT", "ChatHandler", "chat", 0.7)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scripted_service():
    return ScriptedCompletionService()
