"""
Intent Classification Module

Classifies utterances into routing analyses using the completion service.
Answers from the decision cache when possible and falls back to keyword
heuristics whenever the completion path fails.
"""

import asyncio
import time
from typing import Any, Dict, Optional, Union

from app.config import (
    CLASSIFICATION_MAX_TOKENS,
    CLASSIFICATION_TEMPERATURE,
    CLASSIFICATION_TIMEOUT_SECONDS,
    LOG_LLM_CALLS,
)
from core.failure_classifier import (
    CompletionTimeoutError,
    FailureType,
    ProviderError,
    RoutingError,
    classify_failure,
)
from core.memory import RoutingCache
from core.response_validator import InvalidResponse, validate_response
from core.routing.fallback import fallback_analysis
from core.usage_tracker import RoutingUsageTracker
from infra.logger import LogContext, log_fallback, logger_classifier
from prompts.routing_prompt import build_analysis_prompt
from tools.llm.client import CompletionService
from tools.schemas import IntentAnalysis, RoutingContext


ContextLike = Union[RoutingContext, Dict[str, Any], None]


class IntentClassifier:
    """
    Classification pipeline.

    Flow:
        1. Decision cache lookup
        2. Prompt construction (instructions + recent context + utterance)
        3. Completion call raced against the timeout
        4. Parse and validate the response
        5. Keyword fallback on any failure of 3-4

    Only successful completion results are written back to the cache.
    """

    def __init__(
        self,
        completion_service: CompletionService,
        cache: RoutingCache,
        timeout: float = CLASSIFICATION_TIMEOUT_SECONDS,
        temperature: float = CLASSIFICATION_TEMPERATURE,
        max_tokens: int = CLASSIFICATION_MAX_TOKENS,
        usage: Optional[RoutingUsageTracker] = None,
    ):
        self.completion_service = completion_service
        self.cache = cache
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.usage = usage or RoutingUsageTracker()


    async def classify(self, utterance: str, context: ContextLike = None) -> IntentAnalysis:
        """
        Classify an utterance.

        Args:
            utterance: Raw user text
            context: Optional conversation context (model or plain dict)

        Returns:
            Validated IntentAnalysis; never raises for classification failures.
            Cancellation of the caller propagates and leaves the cache untouched.
        """
        analysis, _ = await self.classify_with_source(utterance, context)
        return analysis


    async def classify_with_source(self, utterance: str, context: ContextLike = None):
        """
        Same as classify() but also reports whether the cache answered.

        Returns:
            Tuple of (IntentAnalysis, cache_hit)
        """
        cached = self.cache.get(utterance)
        if cached is not None:
            logger_classifier.debug(
                f"CLASSIFY_CACHED | utterance={LogContext.format_text(utterance)} | intent={cached.intent}"
            )
            return cached.to_analysis(), True

        routing_context = _coerce_context(context)
        start_time = time.perf_counter()

        try:
            analysis = await self._classify_with_llm(utterance, routing_context)
        except Exception as e:
            return self._fallback(utterance, classify_failure(e), e), False

        duration_ms = (time.perf_counter() - start_time) * 1000
        self.cache.set(utterance, analysis.to_decision(int(duration_ms)))

        log_data = {
            "intent": analysis.intent,
            "handler": analysis.handler,
            "confidence": f"{analysis.confidence:.2f}",
            "duration_ms": f"{duration_ms:.2f}"
        }
        logger_classifier.info(f"CLASSIFY_COMPLETE | {LogContext.format_dict(log_data)}")
        return analysis, False


    # ═══════════════════════════════════════════════════════════════════════════
    # LLM PATH
    # ═══════════════════════════════════════════════════════════════════════════

    async def _classify_with_llm(self, utterance: str, context: Optional[RoutingContext]) -> IntentAnalysis:
        prompt = build_analysis_prompt(utterance, context)

        if LOG_LLM_CALLS:
            logger_classifier.debug(f"LLM_REQUEST | prompt_length={len(prompt)}")

        raw = await self._complete_within_budget(prompt)

        if LOG_LLM_CALLS:
            logger_classifier.debug(f"LLM_RESPONSE | length={len(raw)}")

        result = validate_response(raw)
        if isinstance(result, InvalidResponse):
            raise result.to_exception()

        if result.corrections:
            logger_classifier.info(
                f"RESPONSE_CORRECTED | fields={','.join(result.corrections)} | intent={result.analysis.intent}"
            )

        return result.analysis


    async def _complete_within_budget(self, prompt: str) -> str:
        """
        Race the completion call against the timeout.

        wait_for cancels the completion call when the timer wins, so a late
        response is never observed.
        """
        self.usage.record_completion_call()

        try:
            return await asyncio.wait_for(
                self.completion_service.complete(
                    prompt,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            raise CompletionTimeoutError(f"Routing timeout after {self.timeout * 1000:.0f}ms")
        except RoutingError:
            raise
        except Exception as e:
            failure = classify_failure(e)
            if failure is FailureType.TIMEOUT:
                raise CompletionTimeoutError(str(e)[:200]) from e
            raise ProviderError(f"{type(e).__name__}: {str(e)[:200]}") from e


    def _fallback(self, utterance: str, failure: FailureType, error: Exception) -> IntentAnalysis:
        analysis = fallback_analysis(utterance, failure)
        self.usage.record_fallback(failure)
        log_fallback(failure.value, analysis.intent, analysis.confidence, str(error))
        return analysis


def _coerce_context(context: ContextLike) -> Optional[RoutingContext]:
    if context is None:
        return None
    if isinstance(context, RoutingContext):
        return context
    return RoutingContext(**context)
