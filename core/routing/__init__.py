"""
Routing Layer

Deterministic pieces of routing that never call the completion service:
key normalization, keyword fallback and preloaded patterns.
"""

from .normalizer import normalize_key
from .fallback import fallback_analysis, match_keywords
from .preload import COMMON_ROUTING_PATTERNS

__all__ = ["normalize_key", "fallback_analysis", "match_keywords", "COMMON_ROUTING_PATTERNS"]
