"""
Router Module - Routing Facade

Coordinates the routing core:
1. Classification (cache → completion service → fallback)
2. Decision stamping (should_route, processing time)
3. Session context bookkeeping

The router owns its cache, session store and metrics. Background sweeps run
between start() and stop(); the router can also be used as an async
context manager.
"""

import time
from typing import Any, Dict, Optional, Sequence, Union

from app.config import RouterSettings, load_settings
from core.classifier import IntentClassifier
from core.memory import RoutingCache
from core.routing.preload import COMMON_ROUTING_PATTERNS
from core.state import SessionContextStore
from core.usage_tracker import RoutingUsageTracker
from infra.logger import log_route_complete, log_route_start, log_slow_route, logger_api
from tools.llm.client import CompletionService, create_completion_service
from tools.schemas import CacheStats, ConversationTurn, PreloadPattern, RoutingContext, RoutingDecision


ContextLike = Union[RoutingContext, Dict[str, Any], None]


class IntelligentRouter:
    """
    Intent router for the assistant's capability handlers.

    Example:
        >>> router = create_router(completion_service=service)
        >>> async with router:
        ...     decision = await router.route_with_session("play some jazz", "session-1")
        >>> decision.handler
        'MusicHandler'
    """

    def __init__(
        self,
        completion_service: CompletionService,
        settings: Optional[RouterSettings] = None,
        cache: Optional[RoutingCache] = None,
        sessions: Optional[SessionContextStore] = None,
        usage: Optional[RoutingUsageTracker] = None,
        preload_patterns: Optional[Sequence[PreloadPattern]] = None,
    ):
        self.settings = settings or RouterSettings()

        self.cache = cache or RoutingCache(
            max_size=self.settings.cache_max_size,
            ttl=self.settings.cache_ttl,
            cleanup_interval=self.settings.cache_cleanup_interval,
        )
        self.sessions = sessions or SessionContextStore(
            timeout=self.settings.session_timeout,
            cleanup_interval=self.settings.session_cleanup_interval,
        )
        self.usage = usage or RoutingUsageTracker()

        self.classifier = IntentClassifier(
            completion_service=completion_service,
            cache=self.cache,
            timeout=self.settings.classification_timeout,
            temperature=self.settings.temperature,
            max_tokens=self.settings.max_tokens,
            usage=self.usage,
        )

        if self.settings.preload_patterns:
            patterns = COMMON_ROUTING_PATTERNS if preload_patterns is None else preload_patterns
            self.cache.preload(patterns)


    # ═══════════════════════════════════════════════════════════════════════════
    # LIFECYCLE
    # ═══════════════════════════════════════════════════════════════════════════

    async def start(self):
        """Start cache and session sweeps (requires a running event loop)"""
        self.cache.start()
        self.sessions.start()
        logger_api.info("ROUTER_STARTED")

    async def stop(self):
        """Stop background sweeps; cached state is kept"""
        await self.cache.stop()
        await self.sessions.stop()
        logger_api.info("ROUTER_STOPPED")

    async def __aenter__(self) -> "IntelligentRouter":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()


    # ═══════════════════════════════════════════════════════════════════════════
    # ROUTING
    # ═══════════════════════════════════════════════════════════════════════════

    async def route(self, utterance: str, context: ContextLike = None) -> RoutingDecision:
        """
        Route an utterance without touching session state.

        Args:
            utterance: Raw user text
            context: Optional routing context

        Returns:
            RoutingDecision with should_route and processing_time_ms stamped
        """
        log_route_start(utterance)
        start_time = time.perf_counter()

        analysis, cache_hit = await self.classifier.classify_with_source(utterance, context)

        duration_ms = (time.perf_counter() - start_time) * 1000
        decision = analysis.to_decision(int(duration_ms))

        slow = duration_ms > self.settings.slow_route_threshold_ms
        self.usage.record_route(duration_ms, slow=slow)
        if slow:
            log_slow_route(utterance, duration_ms, self.settings.slow_route_threshold_ms, cache_hit)

        log_route_complete(decision.intent, decision.handler, decision.confidence, duration_ms, cache_hit)
        return decision


    async def route_with_session(
        self,
        utterance: str,
        session_id: str,
        extra_context: ContextLike = None,
    ) -> RoutingDecision:
        """
        Route using, then update, the session's conversation context.

        The stored session (or an empty context) is merged with extra_context
        before classification. Afterwards the session records the routed
        handler and the utterance as a new user turn.
        """
        session_context = self.sessions.get(session_id) or RoutingContext()
        merged = session_context.merged(extra_context)

        decision = await self.route(utterance, merged)

        updates = {"current_handler": decision.handler}
        # Without a supplied history the turn is appended to the history
        # stored at update time
        if _sets_history(extra_context):
            updates["conversation_history"] = merged.conversation_history

        self.sessions.update(
            session_id,
            updates,
            turn=ConversationTurn(role="user", content=utterance),
        )

        return decision


    # ═══════════════════════════════════════════════════════════════════════════
    # STATS & MAINTENANCE
    # ═══════════════════════════════════════════════════════════════════════════

    def get_session_context(self, session_id: str) -> Optional[RoutingContext]:
        return self.sessions.get(session_id)

    def get_cache_stats(self) -> CacheStats:
        return self.cache.get_stats()

    def clear_cache(self):
        self.cache.clear()

    def get_performance_metrics(self) -> dict:
        """
        Routing performance summary.

        Keys: cache_hit_rate, total_requests, average_response_time_ms,
        cache_size, completion_calls, fallbacks, slow_routes, routes
        """
        return self.usage.snapshot(cache_stats=self.cache.get_stats().model_dump())


def create_router(
    settings: Optional[RouterSettings] = None,
    completion_service: Optional[CompletionService] = None,
    preload_patterns: Optional[Sequence[PreloadPattern]] = None,
) -> IntelligentRouter:
    """
    Build a router.

    Settings default to load_settings() (environment overrides applied); the
    completion service defaults to the OpenAI-backed one for those settings.
    """
    settings = settings or load_settings()
    if completion_service is None:
        completion_service = create_completion_service(
            model=settings.model_name,
            base_url=settings.base_url,
        )
    return IntelligentRouter(
        completion_service=completion_service,
        settings=settings,
        preload_patterns=preload_patterns,
    )


def _sets_history(context: ContextLike) -> bool:
    if context is None:
        return False
    if isinstance(context, RoutingContext):
        return "conversation_history" in context.model_fields_set
    return "conversation_history" in context
