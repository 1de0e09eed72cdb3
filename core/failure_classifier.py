"""
Routing Failure Classification

Provides:
1. Exception types raised inside the classification pipeline
2. FailureType - Classifies any exception so the fallback can pick a confidence
"""

import asyncio
from enum import Enum
from typing import Optional

from infra.logger import logger_classifier


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTIONS
# ═══════════════════════════════════════════════════════════════════════════════

class RoutingError(Exception):
    """Base class for failures of the LLM classification path"""
    pass


class CompletionTimeoutError(RoutingError):
    """Completion call exceeded the classification budget"""
    pass


class ProviderError(RoutingError):
    """Network or service failure reported by the completion service"""
    pass


class ResponseParseError(RoutingError):
    """Completion text is not a JSON object after cleanup"""
    pass


class ResponseValidationError(RoutingError):
    """JSON is well formed but cannot be turned into an analysis"""
    pass


# ═══════════════════════════════════════════════════════════════════════════════
# FAILURE CLASSIFICATION
# ═══════════════════════════════════════════════════════════════════════════════

class FailureType(Enum):
    """
    Kinds of classification failure.

    TIMEOUT:    Completion call lost the race against the budget
    PROVIDER:   Completion service unreachable or erroring
    PARSE:      Response was not JSON
    VALIDATION: Response JSON had the wrong shape
    """
    TIMEOUT = "timeout"
    PROVIDER = "provider"
    PARSE = "parse"
    VALIDATION = "validation"

    @property
    def is_malformed_response(self) -> bool:
        return self in (FailureType.PARSE, FailureType.VALIDATION)


_EXCEPTION_TYPES = {
    CompletionTimeoutError: FailureType.TIMEOUT,
    ProviderError: FailureType.PROVIDER,
    ResponseParseError: FailureType.PARSE,
    ResponseValidationError: FailureType.VALIDATION,
}


def classify_failure(error: Optional[BaseException]) -> FailureType:
    """
    Classify a classification-path exception.

    Known routing exceptions map directly. Anything else (SDK errors,
    transport errors) is inspected by type name and message.

    Args:
        error: Exception raised while classifying

    Returns:
        FailureType used to choose the fallback confidence

    Examples:
        >>> classify_failure(CompletionTimeoutError("250ms"))
        <FailureType.TIMEOUT: 'timeout'>

        >>> classify_failure(ValueError("Expecting value: line 1 column 1"))
        <FailureType.PARSE: 'parse'>
    """
    if error is None:
        logger_classifier.warning("CLASSIFY_FAILURE | empty error, defaulting to PROVIDER")
        return FailureType.PROVIDER

    for exc_type, failure in _EXCEPTION_TYPES.items():
        if isinstance(error, exc_type):
            return failure

    if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
        return FailureType.TIMEOUT

    name = type(error).__name__.lower()
    message = str(error).lower()

    # TIMEOUT: SDK-level timeouts (e.g. openai.APITimeoutError)
    if "timeout" in name or "timed out" in message or "timeout" in message:
        logger_classifier.debug(f"CLASSIFY_FAILURE | TIMEOUT | error={str(error)[:50]}")
        return FailureType.TIMEOUT

    # PARSE: stray json / decode errors
    parse_indicators = ("expecting value", "json", "decode", "unterminated string")
    if any(indicator in name or indicator in message for indicator in parse_indicators):
        logger_classifier.debug(f"CLASSIFY_FAILURE | PARSE | error={str(error)[:50]}")
        return FailureType.PARSE

    # VALIDATION: schema-level problems
    validation_indicators = ("validation error", "field required", "input should be")
    if any(indicator in message for indicator in validation_indicators):
        logger_classifier.debug(f"CLASSIFY_FAILURE | VALIDATION | error={str(error)[:50]}")
        return FailureType.VALIDATION

    # Default: PROVIDER (connection errors, rate limits, unknown SDK errors)
    logger_classifier.debug(
        f"CLASSIFY_FAILURE | UNKNOWN → PROVIDER | error={str(error)[:50]}"
    )
    return FailureType.PROVIDER
