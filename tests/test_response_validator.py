"""
Test suite for completion response parsing and validation
"""

import pytest

from core.failure_classifier import FailureType, ResponseParseError, ResponseValidationError
from core.response_validator import (
    InvalidResponse,
    ValidResponse,
    clean_response,
    parse_json_object,
    validate_response,
)


VALID = (
    '{"intent": "PLAY_MUSIC", "confidence": 0.9, "entities": {"genre": "jazz"}, '
    '"handler": "MusicHandler", "action": "music", "reasoning": "music request"}'
)


def test_valid_response():
    result = validate_response(VALID)

    assert isinstance(result, ValidResponse)
    assert result.corrections == ()
    assert result.analysis.intent == "PLAY_MUSIC"
    assert result.analysis.entities == {"genre": "jazz"}


def test_code_fences_and_surrounding_text_stripped():
    raw = f"Here you go:\n```json\n{VALID}\n```\nHope that helps!"

    assert clean_response(raw) == VALID
    assert isinstance(validate_response(raw), ValidResponse)


def test_unknown_intent_coerced_to_chat_with_capped_confidence():
    raw = (
        '{"intent": "ORDER_PIZZA", "confidence": 0.95, "handler": "FoodHandler", '
        '"action": "food", "reasoning": "hungry"}'
    )

    result = validate_response(raw)

    assert isinstance(result, ValidResponse)
    assert result.analysis.intent == "GENERAL_CHAT"
    assert result.analysis.handler == "ChatHandler"
    assert result.analysis.action == "chat"
    assert result.analysis.confidence <= 0.6
    assert "intent" in result.corrections


def test_unknown_handler_and_action_coerced():
    bad_handler = validate_response(
        '{"intent": "PLAY_MUSIC", "confidence": 0.8, "handler": "Spotify", "action": "music"}'
    )
    assert bad_handler.analysis.handler == "ChatHandler"
    assert bad_handler.analysis.action == "chat"

    bad_action = validate_response(
        '{"intent": "PLAY_MUSIC", "confidence": 0.8, "handler": "MusicHandler", "action": "dance"}'
    )
    assert bad_action.analysis.handler == "MusicHandler"
    assert bad_action.analysis.action == "chat"


@pytest.mark.parametrize("value, expected", [
    (1.7, 1.0),
    (-0.3, 0.0),
    (0, 0.0),
    ('"high"', 0.5),
    ("true", 0.5),
    ("null", 0.5),
])
def test_confidence_normalization(value, expected):
    raw = (
        f'{{"intent": "HELP", "confidence": {value}, "handler": "ChatHandler", '
        f'"action": "chat", "reasoning": "r"}}'
    )

    result = validate_response(raw)

    assert result.analysis.confidence == expected


@pytest.mark.parametrize("value, expected", [
    ("1" + "0" * 400, 1.0),
    ("-1" + "0" * 400, 0.0),
    ("1e400", 1.0),
])
def test_out_of_range_confidence_clamped(value, expected):
    print("Testing out-of-range confidence...")
    raw = (
        f'{{"intent": "PLAY_MUSIC", "confidence": {value}, "handler": "MusicHandler", '
        f'"action": "music", "reasoning": "r"}}'
    )

    result = validate_response(raw)

    assert isinstance(result, ValidResponse)
    assert result.analysis.confidence == expected
    assert "confidence" in result.corrections
    print("✓ out-of-range confidence tests passed")


def test_missing_optional_fields_defaulted():
    result = validate_response('{"intent": "LIST_TASKS", "handler": "PlanningHandler", "action": "planning"}')

    assert result.analysis.confidence == 0.5
    assert result.analysis.entities == {}
    assert result.analysis.reasoning == "Automated routing decision"


def test_non_dict_entities_dropped():
    result = validate_response(
        '{"intent": "HELP", "confidence": 0.7, "entities": ["a"], "handler": "ChatHandler", "action": "chat"}'
    )
    assert result.analysis.entities == {}
    assert "entities" in result.corrections


def test_parse_failures():
    for raw in ("", "   ", "not json at all", "{broken", '{"intent": }'):
        result = validate_response(raw)
        assert isinstance(result, InvalidResponse)
        assert result.failure is FailureType.PARSE
        assert isinstance(result.to_exception(), ResponseParseError)


def test_non_object_json_is_validation_failure():
    with pytest.raises(ResponseValidationError):
        parse_json_object("[1, 2, 3]")

    result = validate_response('"just a string"')
    assert isinstance(result, InvalidResponse)
    assert result.failure is FailureType.VALIDATION
