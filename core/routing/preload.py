"""
Preloaded Routing Patterns

Very common utterances seeded into the decision cache at startup so they
are answered without any completion call.
"""

from typing import List

from tools.schemas import PreloadPattern, RoutingDecision


def _pattern(text: str, **decision) -> PreloadPattern:
    return PreloadPattern(
        text=text,
        decision=RoutingDecision(
            should_route=decision["handler"] != "ChatHandler",
            processing_time_ms=0,
            **decision,
        ),
    )


COMMON_ROUTING_PATTERNS: List[PreloadPattern] = [
    _pattern(
        "create a task",
        intent="CREATE_TASK",
        confidence=0.95,
        handler="PlanningHandler",
        action="planning",
        entities={},
        reasoning="Common task creation request",
    ),
    _pattern(
        "play music",
        intent="PLAY_MUSIC",
        confidence=0.92,
        handler="MusicHandler",
        action="music",
        entities={},
        reasoning="Common music playback request",
    ),
    _pattern(
        "start timer",
        intent="START_TIMER",
        confidence=0.9,
        handler="PomodoroHandler",
        action="pomodoro",
        entities={"duration": "25", "unit": "minutes"},
        reasoning="Common timer start request",
    ),
    _pattern(
        "how are you",
        intent="GENERAL_CHAT",
        confidence=0.85,
        handler="ChatHandler",
        action="chat",
        entities={},
        reasoning="Common greeting",
    ),
    _pattern(
        "list my tasks",
        intent="LIST_TASKS",
        confidence=0.94,
        handler="PlanningHandler",
        action="planning",
        entities={},
        reasoning="Task list request",
    ),
]
