"""
Cache Key Normalizer

Maps raw utterances to canonical cache keys so that messages differing only
in case, surrounding/repeated whitespace or punctuation share one entry.
"""

import re
from typing import Optional

from app.config import MAX_KEY_LENGTH


_NON_WORD = re.compile(r"[^\w\s]|_")
_WHITESPACE = re.compile(r"\s+")


def normalize_key(text: Optional[str], max_length: int = MAX_KEY_LENGTH) -> str:
    """
    Build the canonical cache key for an utterance.

    Steps:
        1. Lower-case
        2. Drop everything that is not a letter, digit or whitespace
        3. Collapse whitespace runs to one space and trim
        4. Truncate to max_length

    Punctuation is removed before whitespace is collapsed so that
    normalize_key(normalize_key(x)) == normalize_key(x).

    Examples:
        >>> normalize_key("  Play   Music! ")
        'play music'
        >>> normalize_key("")
        ''
    """
    if not text:
        return ""

    key = text.lower()
    key = _NON_WORD.sub("", key)
    key = _WHITESPACE.sub(" ", key).strip()

    return key[:max_length].rstrip()
