"""
Console Display Helpers

Formatting for routing decisions, cache entries and metrics in the CLI.
"""

import time
from typing import List

from tools.schemas import RoutingDecision


# ═══════════════════════════════════════════════════════════════════════════════
# TYPING EFFECTS
# ═══════════════════════════════════════════════════════════════════════════════

def type_out(text: str, delay: float = 0.0):
    """Print text, optionally one character at a time"""
    if delay <= 0:
        print(text)
        return
    for char in text:
        print(char, end="", flush=True)
        time.sleep(delay)
    print()


def type_list(items: List[str]):
    for i, item in enumerate(items, start=1):
        print(f"  {i}. {item}")


# ═══════════════════════════════════════════════════════════════════════════════
# FORMATTERS
# ═══════════════════════════════════════════════════════════════════════════════

def format_decision(decision: RoutingDecision, cache_hit: bool = False) -> str:
    """
    Multi-line summary of a routing decision.

    Args:
        decision: Decision returned by the router
        cache_hit: Whether the processing time indicates a cache answer
    """
    lines = [
        f"  Intent:     {decision.intent}",
        f"  Handler:    {decision.handler} ({decision.action})"
        + ("" if decision.should_route else "  [chat]"),
        f"  Confidence: {decision.confidence:.2f}",
    ]
    if decision.entities:
        entities = ", ".join(f"{k}={v}" for k, v in decision.entities.items())
        lines.append(f"  Entities:   {entities}")
    lines.append(f"  Reasoning:  {decision.reasoning}")
    lines.append(
        f"  ⏱️  {decision.processing_time_ms}ms" + ("  ✓ cached" if cache_hit else "")
    )
    return "\n".join(lines)


def format_metrics(metrics: dict) -> str:
    """Summary of IntelligentRouter.get_performance_metrics()"""
    fallbacks = metrics.get("fallbacks", {})
    fallback_text = ", ".join(f"{k}={v}" for k, v in fallbacks.items() if v) or "none"

    return "\n".join([
        "📊 Routing Statistics:",
        f"  Total requests:    {metrics['total_requests']}",
        f"  Cache hit rate:    {metrics['cache_hit_rate'] * 100:.1f}%",
        f"  Cache size:        {metrics['cache_size']}",
        f"  Avg response time: {metrics['average_response_time_ms']:.1f}ms",
        f"  Completion calls:  {metrics['completion_calls']}",
        f"  Fallbacks:         {fallback_text}",
        f"  Slow routes:       {metrics['slow_routes']}",
    ])


def format_cache_entries(entries: List[dict], limit: int = 10) -> str:
    """Most accessed cache entries, one per line"""
    if not entries:
        return "  Cache is empty."
    return "\n".join(
        f"  {entry['access_count']:>4}x  {entry['key'][:40]:<40}  → {entry['intent']}"
        for entry in entries[:limit]
    )
