"""String helpers shared by the pattern miner and the search engine."""

import re
from typing import Optional

from rapidfuzz.distance import Levenshtein

# Whitespace plus the shell punctuation that separates words in a command.
_TOKEN_SPLIT_RE = re.compile(r"[\s/\-_.=|;:&\"'`<>(){}\[\]]+")


def levenshtein(a: str, b: str, max_distance: Optional[int] = None) -> int:
    """Return the edit distance between two strings.

    With `max_distance`, any distance above it is reported as
    ``max_distance + 1``, which lets the comparison stop early.
    """
    return Levenshtein.distance(a, b, score_cutoff=max_distance)


def tokenize(text: str) -> list[str]:
    """Split text into lowercase words, dropping shell punctuation.

    ``docker-compose up -d`` becomes ``["docker", "compose", "up", "d"]``.
    """
    return [token for token in _TOKEN_SPLIT_RE.split(text.lower()) if token]


def truncate(text: str, max_len: int) -> str:
    """Truncate text with an ellipsis if it exceeds max_len."""
    return text if len(text) <= max_len else text[: max_len - 1] + "…"
