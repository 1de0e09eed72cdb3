"""
Routing Schemas and Type Definitions

Defines Pydantic schemas for routing decisions, conversation context and
cache statistics, plus the registry entry type for capability handlers.
"""

from typing import Any, Callable, Dict, List, Optional, TypedDict, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ═══════════════════════════════════════════════════════════════════════════════
# HANDLER REGISTRY TYPE
# ═══════════════════════════════════════════════════════════════════════════════

class HandlerEntry(TypedDict):
    """
    Registry entry for a capability handler.

    Attributes:
        handler: Callable receiving the command payload (sync or async)
        action: Action tag of the handler's domain
        description: Human-readable summary shown in the CLI
    """
    handler: Callable
    action: str
    description: str


# ═══════════════════════════════════════════════════════════════════════════════
# CONVERSATION CONTEXT
# ═══════════════════════════════════════════════════════════════════════════════

class ConversationTurn(BaseModel):
    """One message of recent conversation"""
    model_config = ConfigDict(frozen=True)

    role: str = Field(..., min_length=1)
    content: str


class RoutingContext(BaseModel):
    """
    Context that can sharpen a routing decision.

    Attributes:
        conversation_history: Recent turns, oldest first
        current_handler: Handler that served the previous turn
        active_features: Features currently running (e.g. "pomodoro")
        user_preferences: Free-form preference hints
    """
    conversation_history: List[ConversationTurn] = Field(default_factory=list)
    current_handler: Optional[str] = None
    active_features: List[str] = Field(default_factory=list)
    user_preferences: Dict[str, Any] = Field(default_factory=dict)

    def merged(self, other: Union["RoutingContext", Dict[str, Any], None]) -> "RoutingContext":
        """Return a copy with the fields explicitly set on `other` applied"""
        if other is None:
            return self.model_copy(deep=True)
        if isinstance(other, dict):
            other = RoutingContext(**other)
        updates = {
            name: getattr(other, name)
            for name in other.model_fields_set
        }
        return self.model_copy(update=updates, deep=True)


# ═══════════════════════════════════════════════════════════════════════════════
# CLASSIFICATION RESULTS
# ═══════════════════════════════════════════════════════════════════════════════

class IntentAnalysis(BaseModel):
    """
    Validated output of the classification pipeline.

    Every field has already been checked against the configured
    vocabularies; confidence is clamped into [0, 1].
    """
    model_config = ConfigDict(frozen=True)

    intent: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    entities: Dict[str, Any] = Field(default_factory=dict)
    handler: str
    action: str
    reasoning: str

    def to_decision(self, processing_time_ms: int = 0) -> "RoutingDecision":
        """Stamp routing fields onto the analysis"""
        return RoutingDecision(
            **self.model_dump(),
            should_route=self.handler != "ChatHandler",
            processing_time_ms=max(0, int(processing_time_ms)),
        )


class RoutingDecision(BaseModel):
    """
    Final routing decision consumed by dispatch.

    should_route is True iff the handler is not ChatHandler.
    """
    model_config = ConfigDict(frozen=True)

    intent: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    handler: str
    action: str
    entities: Dict[str, Any] = Field(default_factory=dict)
    reasoning: str
    should_route: bool
    processing_time_ms: int = Field(0, ge=0)

    @model_validator(mode="after")
    def _check_should_route(self) -> "RoutingDecision":
        if self.should_route != (self.handler != "ChatHandler"):
            raise ValueError("should_route must be true iff handler is not ChatHandler")
        return self

    def to_analysis(self) -> IntentAnalysis:
        return IntentAnalysis(
            intent=self.intent,
            confidence=self.confidence,
            entities=dict(self.entities),
            handler=self.handler,
            action=self.action,
            reasoning=self.reasoning,
        )


class PreloadPattern(BaseModel):
    """Utterance seeded into the cache before any classification"""
    model_config = ConfigDict(frozen=True)

    text: str
    decision: RoutingDecision


# ═══════════════════════════════════════════════════════════════════════════════
# STATISTICS
# ═══════════════════════════════════════════════════════════════════════════════

class CacheStats(BaseModel):
    """Snapshot of decision cache counters"""
    hits: int = Field(0, ge=0)
    misses: int = Field(0, ge=0)
    hit_rate: float = Field(0.0, ge=0.0, le=1.0)
    size: int = Field(0, ge=0)
    evictions: int = Field(0, ge=0)
