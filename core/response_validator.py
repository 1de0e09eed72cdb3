import json
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple, Union

from app.config import (
    COERCED_CONFIDENCE_CAP,
    DEFAULT_ACTION,
    DEFAULT_CONFIDENCE,
    DEFAULT_HANDLER,
    DEFAULT_INTENT,
    DEFAULT_REASONING,
    VALID_ACTIONS,
    VALID_HANDLERS,
    VALID_INTENTS,
)
from core.failure_classifier import FailureType, ResponseParseError, ResponseValidationError
from tools.schemas import IntentAnalysis


# =========================
# Result Types
# =========================

@dataclass(frozen=True)
class ValidResponse:
    analysis: IntentAnalysis
    corrections: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class InvalidResponse:
    failure: FailureType
    error: str

    def to_exception(self) -> Exception:
        if self.failure is FailureType.PARSE:
            return ResponseParseError(self.error)
        return ResponseValidationError(self.error)


ValidationResult = Union[ValidResponse, InvalidResponse]


# =========================
# Public Entry
# =========================

def validate_response(raw: str) -> ValidationResult:
    """Turn raw completion text into a typed analysis or an explicit failure."""
    try:
        parsed = parse_json_object(raw)
    except ResponseParseError as e:
        return InvalidResponse(FailureType.PARSE, str(e))
    except ResponseValidationError as e:
        return InvalidResponse(FailureType.VALIDATION, str(e))

    corrections: List[str] = []
    intent, handler, action = _validate_routing(parsed, corrections)
    confidence = _validate_confidence(parsed, corrections)

    if "intent" in corrections:
        confidence = min(confidence, COERCED_CONFIDENCE_CAP)

    try:
        analysis = IntentAnalysis(
            intent=intent,
            confidence=confidence,
            entities=_validate_entities(parsed, corrections),
            handler=handler,
            action=action,
            reasoning=_validate_reasoning(parsed, corrections),
        )
    except ValueError as e:
        return InvalidResponse(FailureType.VALIDATION, str(e)[:200])

    return ValidResponse(analysis=analysis, corrections=tuple(corrections))


# =========================
# Parsing
# =========================

_FENCE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)


def clean_response(raw: str) -> str:
    """Strip code fences and any text around the outermost JSON object."""
    text = _FENCE.sub("", raw or "")
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        return text.strip()
    return text[start:end + 1]


def parse_json_object(raw: str) -> Dict[str, Any]:
    if not raw or not raw.strip():
        raise ResponseParseError("Empty completion response")

    cleaned = clean_response(raw)

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ResponseParseError(f"Invalid JSON: {e.msg} (response={raw[:80]!r})")

    if not isinstance(parsed, dict):
        raise ResponseValidationError(f"Expected JSON object, got {type(parsed).__name__}")

    return parsed


# =========================
# Field Validation
# =========================

def _validate_routing(parsed: Dict[str, Any], corrections: List[str]) -> Tuple[str, str, str]:
    intent = parsed.get("intent")
    handler = parsed.get("handler")
    action = parsed.get("action")

    if intent not in VALID_INTENTS:
        corrections.append("intent")
        return DEFAULT_INTENT, DEFAULT_HANDLER, DEFAULT_ACTION

    if handler not in VALID_HANDLERS:
        corrections.append("handler")
        handler, action = DEFAULT_HANDLER, DEFAULT_ACTION

    if action not in VALID_ACTIONS:
        corrections.append("action")
        action = DEFAULT_ACTION

    return intent, handler, action


def _validate_confidence(parsed: Dict[str, Any], corrections: List[str]) -> float:
    value = parsed.get("confidence")

    # bool is an int subclass; treat it as missing
    invalid = isinstance(value, bool) or not isinstance(value, (int, float))
    if invalid or (isinstance(value, float) and math.isnan(value)):
        if value is not None:
            corrections.append("confidence")
        return DEFAULT_CONFIDENCE

    # Compare before converting: ints beyond float range must not overflow.
    # 0 is a legitimate score and stays 0
    if value > 1:
        clamped = 1.0
    elif value < 0:
        clamped = 0.0
    else:
        clamped = float(value)
    if clamped != value:
        corrections.append("confidence")
    return clamped


def _validate_entities(parsed: Dict[str, Any], corrections: List[str]) -> Dict[str, Any]:
    entities = parsed.get("entities")
    if entities is None:
        return {}
    if not isinstance(entities, dict):
        corrections.append("entities")
        return {}
    return {str(k): v for k, v in entities.items()}


def _validate_reasoning(parsed: Dict[str, Any], corrections: List[str]) -> str:
    reasoning = parsed.get("reasoning")
    if isinstance(reasoning, str) and reasoning.strip():
        return reasoning.strip()
    if reasoning is not None:
        corrections.append("reasoning")
    return DEFAULT_REASONING
