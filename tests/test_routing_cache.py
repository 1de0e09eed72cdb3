"""
Test suite for the routing decision cache
"""

import asyncio

import pytest

from core.memory import RoutingCache
from core.routing.preload import COMMON_ROUTING_PATTERNS
from tools.schemas import RoutingDecision


def make_decision(intent="CREATE_TASK", handler="PlanningHandler", action="planning", confidence=0.9):
    return RoutingDecision(
        intent=intent,
        confidence=confidence,
        handler=handler,
        action=action,
        entities={},
        reasoning="test",
        should_route=handler != "ChatHandler",
        processing_time_ms=12,
    )


def test_get_returns_stored_decision_for_equivalent_text(clock):
    print("Testing cache key equivalence...")
    cache = RoutingCache(max_size=10, ttl=300, clock=clock)
    decision = make_decision()

    cache.set("Create a task!", decision)

    assert cache.get("create a task") == decision
    assert cache.get("  CREATE   A TASK? ") == decision
    assert cache.get("play music") is None
    print("✓ cache key equivalence tests passed")


def test_ttl_expiry_is_lazy_and_counts_as_miss(clock):
    """An entry older than the TTL is deleted on read."""
    cache = RoutingCache(max_size=10, ttl=300, clock=clock)
    cache.set("create a task", make_decision())

    clock.advance(299)
    assert cache.get("create a task") is not None

    clock.advance(2)
    assert cache.get("create a task") is None
    assert cache.size() == 0

    stats = cache.get_stats()
    assert stats.hits == 1
    assert stats.misses == 1


def test_hits_do_not_extend_lifetime(clock):
    cache = RoutingCache(max_size=10, ttl=100, clock=clock)
    cache.set("play music", make_decision("PLAY_MUSIC", "MusicHandler", "music"))

    for _ in range(5):
        clock.advance(30)
        cache.get("play music")

    assert cache.get("play music") is None


def test_eviction_removes_least_recently_accessed(clock):
    cache = RoutingCache(max_size=3, ttl=300, clock=clock)

    cache.set("one", make_decision())
    clock.advance(1)
    cache.set("two", make_decision())
    clock.advance(1)
    cache.set("three", make_decision())
    clock.advance(1)

    # "one" becomes the most recently used
    assert cache.get("one") is not None
    clock.advance(1)

    cache.set("four", make_decision())

    assert cache.size() == 3
    assert cache.get("two") is None
    assert cache.get("one") is not None
    assert cache.get("three") is not None
    assert cache.get("four") is not None
    assert cache.get_stats().evictions == 1


def test_overwriting_existing_key_does_not_evict(clock):
    cache = RoutingCache(max_size=2, ttl=300, clock=clock)
    cache.set("one", make_decision())
    cache.set("two", make_decision())

    cache.set("ONE!", make_decision("LIST_TASKS"))

    assert cache.size() == 2
    assert cache.get_stats().evictions == 0
    assert cache.get("one").intent == "LIST_TASKS"


def test_size_never_exceeds_max(clock):
    cache = RoutingCache(max_size=5, ttl=300, clock=clock)

    for i in range(20):
        clock.advance(1)
        cache.set(f"utterance {i}", make_decision())
        assert cache.size() <= 5

    assert cache.get_stats().evictions == 15


def test_stats_invariant(clock):
    """hits + misses equals the number of lookups; hit_rate follows."""
    cache = RoutingCache(max_size=10, ttl=300, clock=clock)
    assert cache.get_stats().hit_rate == 0.0

    cache.set("a", make_decision())
    lookups = ["a", "b", "a", "c", "a"]
    for text in lookups:
        cache.get(text)

    stats = cache.get_stats()
    assert stats.hits + stats.misses == len(lookups)
    assert stats.hits == 3
    assert stats.hit_rate == pytest.approx(3 / 5)
    assert stats.size == 1


def test_clear_resets_everything(clock):
    cache = RoutingCache(max_size=1, ttl=300, clock=clock)
    cache.set("a", make_decision())
    cache.set("b", make_decision())
    cache.get("b")
    cache.get("zzz")

    cache.clear()

    stats = cache.get_stats()
    assert (stats.hits, stats.misses, stats.size, stats.evictions) == (0, 0, 0, 0)
    assert stats.hit_rate == 0.0


def test_preload_leaves_counters_untouched(clock):
    cache = RoutingCache(max_size=100, ttl=300, clock=clock)

    cache.preload(COMMON_ROUTING_PATTERNS)

    stats = cache.get_stats()
    assert stats.size == len(COMMON_ROUTING_PATTERNS)
    assert stats.hits == 0 and stats.misses == 0

    decision = cache.get("Start timer!")
    assert decision.intent == "START_TIMER"
    assert decision.entities == {"duration": "25", "unit": "minutes"}


def test_sweep_removes_only_expired(clock):
    cache = RoutingCache(max_size=10, ttl=100, clock=clock)
    cache.set("old", make_decision())
    clock.advance(60)
    cache.set("new", make_decision())
    clock.advance(50)

    removed = cache.sweep_expired()

    assert removed == 1
    assert cache.size() == 1
    assert cache.get("new") is not None


def test_debug_entries_sorted_by_access_count(clock):
    cache = RoutingCache(max_size=10, ttl=300, clock=clock)
    cache.set("rare", make_decision())
    cache.set("popular", make_decision("PLAY_MUSIC", "MusicHandler", "music"))
    for _ in range(3):
        cache.get("popular")
    cache.get("rare")

    entries = cache.debug_entries()

    assert [e["key"] for e in entries] == ["popular", "rare"]
    assert entries[0]["access_count"] == 3
    assert entries[0]["intent"] == "PLAY_MUSIC"


def test_rejects_non_positive_max_size():
    with pytest.raises(ValueError):
        RoutingCache(max_size=0)


def test_background_sweep_start_stop(clock):
    cache = RoutingCache(max_size=10, ttl=1, cleanup_interval=0.01, clock=clock)
    cache.set("a", make_decision())
    clock.advance(5)

    async def scenario():
        cache.start()
        await asyncio.sleep(0.05)
        await cache.stop()

    asyncio.run(scenario())

    assert cache.size() == 0
