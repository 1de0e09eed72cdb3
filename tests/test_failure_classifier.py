"""
Test suite for routing failure classification
"""

import asyncio
import json

from core.failure_classifier import (
    CompletionTimeoutError,
    FailureType,
    ProviderError,
    ResponseParseError,
    ResponseValidationError,
    classify_failure,
)


class APITimeoutError(Exception):
    pass


class APIConnectionError(Exception):
    pass


def test_routing_exceptions_map_directly():
    print("Testing failure classification...")
    assert classify_failure(CompletionTimeoutError("250ms")) is FailureType.TIMEOUT
    assert classify_failure(ProviderError("boom")) is FailureType.PROVIDER
    assert classify_failure(ResponseParseError("bad json")) is FailureType.PARSE
    assert classify_failure(ResponseValidationError("timeout in text")) is FailureType.VALIDATION
    print("✓ failure classification tests passed")


def test_timeouts_detected():
    assert classify_failure(asyncio.TimeoutError()) is FailureType.TIMEOUT
    assert classify_failure(TimeoutError()) is FailureType.TIMEOUT
    assert classify_failure(APITimeoutError("Request timed out.")) is FailureType.TIMEOUT
    assert classify_failure(RuntimeError("read timed out")) is FailureType.TIMEOUT


def test_parse_and_validation_detected_from_message():
    try:
        json.loads("{oops")
    except ValueError as e:
        assert classify_failure(e) is FailureType.PARSE

    assert classify_failure(ValueError("1 validation error for IntentAnalysis")) is FailureType.VALIDATION


def test_unknown_errors_default_to_provider():
    assert classify_failure(APIConnectionError("Connection refused")) is FailureType.PROVIDER
    assert classify_failure(RuntimeError("rate limited")) is FailureType.PROVIDER
    assert classify_failure(None) is FailureType.PROVIDER


def test_malformed_response_flag():
    assert FailureType.PARSE.is_malformed_response
    assert FailureType.VALIDATION.is_malformed_response
    assert not FailureType.TIMEOUT.is_malformed_response
    assert not FailureType.PROVIDER.is_malformed_response
