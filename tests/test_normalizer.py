"""
Test suite for cache key normalization
"""

from core.routing.normalizer import normalize_key


def test_equivalent_utterances_share_a_key():
    """Case, whitespace and punctuation differences collapse to one key."""

    print("Testing normalize_key equivalence...")

    assert normalize_key("Create a task!") == "create a task"
    assert normalize_key("  create   a TASK ") == "create a task"
    assert normalize_key("create a task?!") == normalize_key("CREATE A TASK")
    assert normalize_key("Play\tmusic\n") == "play music"

    print("✓ equivalence tests passed")


def test_punctuation_and_underscores_removed():
    assert normalize_key("what's up?") == "whats up"
    assert normalize_key("snake_case_words") == "snakecasewords"
    assert normalize_key("stop , now") == "stop now"


def test_empty_input():
    assert normalize_key("") == ""
    assert normalize_key(None) == ""
    assert normalize_key("   ") == ""
    assert normalize_key("?!.,") == ""


def test_truncation():
    long_text = "word " * 100

    key = normalize_key(long_text)

    assert len(key) <= 200
    assert not key.endswith(" ")
    assert normalize_key("abcdef", max_length=3) == "abc"


def test_idempotent():
    """Normalizing twice never changes the key."""
    samples = [
        "Create a task!",
        "  Hello ,  World ",
        "a , b",
        "x" * 250,
        "Ünïcödé Wörds: ok?",
        "start_timer now",
    ]
    for sample in samples:
        once = normalize_key(sample)
        assert normalize_key(once) == once
