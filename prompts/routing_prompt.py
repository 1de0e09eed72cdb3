from typing import Optional

from app.config import PROMPT_HISTORY_LIMIT
from tools.schemas import RoutingContext


ROUTING_SYSTEM_PROMPT = """
You are an intelligent routing system for a voice-first AI assistant. Your job is to analyze user messages and determine the best handler and action to take.

═══════════════════════════════════════════════════════════════════════════════
AVAILABLE HANDLERS
═══════════════════════════════════════════════════════════════════════════════

- PlanningHandler: Task management, project planning, todo lists, deadlines
- MusicHandler: Music playback, Spotify integration, playlists, audio control
- PomodoroHandler: Focus timers, productivity sessions, break management
- ChatHandler: General conversation, questions, explanations, casual chat

═══════════════════════════════════════════════════════════════════════════════
REQUIRED JSON SCHEMA
═══════════════════════════════════════════════════════════════════════════════

Return ONLY a JSON object with this exact structure:
{
  "intent": "CREATE_TASK|DELETE_TASK|LIST_TASKS|UPDATE_TASK|COMPLETE_TASK|PLAY_MUSIC|PAUSE_MUSIC|STOP_MUSIC|SKIP_MUSIC|PREVIOUS_MUSIC|START_TIMER|STOP_TIMER|PAUSE_TIMER|RESET_TIMER|GENERAL_CHAT|EXPLAIN|HELP",
  "confidence": 0.95,
  "entities": {"key": "value"},
  "handler": "PlanningHandler|MusicHandler|PomodoroHandler|ChatHandler",
  "action": "planning|music|pomodoro|chat",
  "reasoning": "Brief explanation of why this routing decision was made"
}

═══════════════════════════════════════════════════════════════════════════════
ENTITY EXTRACTION
═══════════════════════════════════════════════════════════════════════════════

- For tasks: extract "taskName", "dueDate", "priority", "category", "description"
- For music: extract "artist", "song", "album", "genre", "playlist"
- For timers: extract "duration", "unit", "type" (focus/break), "label"
- For general: extract "topic", "mood", "urgency"

═══════════════════════════════════════════════════════════════════════════════
RULES
═══════════════════════════════════════════════════════════════════════════════

1. Only use the exact intent values listed above
2. Confidence must be between 0 and 1
3. Extract ALL relevant entities from the message
4. Default to ChatHandler for unclear requests
5. Consider context from conversation history if provided
6. Be decisive - avoid low confidence scores for clear requests

Examples:
- "create a task called 'finish report' for tomorrow" → {"taskName": "finish report", "dueDate": "tomorrow"}
- "play some jazz music by Miles Davis" → {"genre": "jazz", "artist": "Miles Davis"}
- "start a 25 minute focus timer" → {"duration": "25", "unit": "minutes", "type": "focus"}
- "how are you feeling today?" → {"topic": "wellbeing", "mood": "casual"}
"""


def build_analysis_prompt(
    utterance: str,
    context: Optional[RoutingContext] = None,
    system_prompt: str = ROUTING_SYSTEM_PROMPT,
) -> str:
    """
    Assemble the classification prompt.

    Layout: instruction block, recent history (last PROMPT_HISTORY_LIMIT
    turns), current handler, active features, then the utterance itself.
    """
    prompt = system_prompt

    if context is not None:
        if context.conversation_history:
            recent = context.conversation_history[-PROMPT_HISTORY_LIMIT:]
            prompt += f"\n\nConversation history (last {len(recent)} messages):\n"
            for turn in recent:
                prompt += f"{turn.role}: {turn.content}\n"

        if context.current_handler:
            prompt += f"\nCurrent handler: {context.current_handler}\n"

        if context.active_features:
            prompt += f"\nActive features: {', '.join(context.active_features)}\n"

    prompt += f'\nUser message to analyze: "{utterance}"\n\nProvide your routing analysis as JSON:'

    return prompt
