"""
Keyword Fallback Classifier

Classifies an utterance without the completion service. Used whenever the
LLM path times out, fails, or returns something unusable.
Never raises; always returns a valid IntentAnalysis.
"""

import re
from typing import List, Optional, Tuple

from app.config import DEFAULT_ACTION, DEFAULT_HANDLER, DEFAULT_INTENT, FALLBACK_CONFIDENCE
from core.failure_classifier import FailureType
from tools.schemas import IntentAnalysis


# ═══════════════════════════════════════════════════════════════════════════
# KEYWORD RULES
# ═══════════════════════════════════════════════════════════════════════════

# Ordered by priority; first match wins.
# (keywords, intent, handler, action, label)
KEYWORD_RULES: List[Tuple[Tuple[str, ...], str, str, str, str]] = [
    (("task", "todo", "remind"), "CREATE_TASK", "PlanningHandler", "planning", "task-related request"),
    (("music", "play", "song"), "PLAY_MUSIC", "MusicHandler", "music", "music request"),
    (("timer", "pomodoro", "focus"), "START_TIMER", "PomodoroHandler", "pomodoro", "timer request"),
]


def _compile(keywords: Tuple[str, ...]) -> re.Pattern:
    # Word-prefix match: "reminder" and "playlist" match, "display" does not
    alternatives = "|".join(re.escape(k) for k in keywords)
    return re.compile(rf"\b(?:{alternatives})", re.IGNORECASE)


_COMPILED_RULES = [(_compile(keywords), rest) for keywords, *rest in KEYWORD_RULES]


# ═══════════════════════════════════════════════════════════════════════════
# PUBLIC API
# ═══════════════════════════════════════════════════════════════════════════

def match_keywords(utterance: str) -> Optional[Tuple[str, str, str, str]]:
    """
    Return (intent, handler, action, label) of the first matching rule.

    Args:
        utterance: Raw user text

    Returns:
        Rule tuple or None if nothing matched
    """
    if not utterance:
        return None

    for pattern, (intent, handler, action, label) in _COMPILED_RULES:
        if pattern.search(utterance):
            return intent, handler, action, label

    return None


def fallback_analysis(utterance: str, failure: FailureType) -> IntentAnalysis:
    """
    Best-effort classification after a failed LLM call.

    Keyword matches get a moderate confidence. Without a match the
    decision is GENERAL_CHAT with a confidence that depends on the failure:
    malformed responses (PARSE, VALIDATION) score lower than an
    unreachable service (TIMEOUT, PROVIDER).
    """
    matched = match_keywords(utterance)

    if matched:
        intent, handler, action, label = matched
        return IntentAnalysis(
            intent=intent,
            confidence=FALLBACK_CONFIDENCE["keyword"],
            entities={},
            handler=handler,
            action=action,
            reasoning=f"Fallback keyword detection for {label} ({failure.value})",
        )

    if failure.is_malformed_response:
        confidence = FALLBACK_CONFIDENCE["malformed"]
        reason = "malformed classifier response"
    else:
        confidence = FALLBACK_CONFIDENCE["unreachable"]
        reason = "classifier unavailable"

    return IntentAnalysis(
        intent=DEFAULT_INTENT,
        confidence=confidence,
        entities={},
        handler=DEFAULT_HANDLER,
        action=DEFAULT_ACTION,
        reasoning=f"Fallback to general chat: {reason} ({failure.value})",
    )
