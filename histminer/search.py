"""Search functionality for histminer.

Ranks past commands against a free-text query using five local signals:
exact token overlap, fuzzy token overlap, substring/prefix match, usage
frequency and recency. Signals are combined with numpy; no embedding
model or external service required.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import numpy as np

from histminer.config import ConfigError
from histminer.models import HistoryEntry, SearchResult
from histminer.strings import levenshtein, tokenize

logger = logging.getLogger(__name__)

# Maximum edit distance for two tokens to count as a fuzzy match.
FUZZY_THRESHOLD = 2

# Signal weights, in the column order of the score matrix. They sum to 1.
WEIGHT_EXACT = 0.50
WEIGHT_FUZZY = 0.20
WEIGHT_SUBSTRING = 0.20
WEIGHT_FREQUENCY = 0.05
WEIGHT_RECENCY = 0.05
WEIGHTS = np.array(
    [WEIGHT_EXACT, WEIGHT_FUZZY, WEIGHT_SUBSTRING, WEIGHT_FREQUENCY, WEIGHT_RECENCY],
    dtype=np.float64,
)

# Results scoring below this are dropped.
MIN_SCORE = 0.05

# Recency decays linearly to zero over this window.
RECENCY_WINDOW = timedelta(days=30)


@dataclass
class _CommandStats:
    frequency: int
    line_number: int
    last_used: Optional[datetime]


def exact_overlap(query_tokens: list[str], command_tokens: list[str]) -> float:
    """Fraction of query tokens present verbatim among the command tokens."""
    if not query_tokens:
        return 0.0
    command_set = set(command_tokens)
    matches = sum(1 for token in query_tokens if token in command_set)
    return matches / len(query_tokens)


def fuzzy_overlap(query_tokens: list[str], command_tokens: list[str]) -> float:
    """Fraction of query tokens that only match a command token approximately.

    Only tokens without an exact match are tried. Returns 1.0 when every
    query token already matched exactly.
    """
    if not query_tokens:
        return 0.0
    command_set = set(command_tokens)
    unmatched = [token for token in query_tokens if token not in command_set]
    if not unmatched:
        return 1.0

    fuzzy_matches = 0
    for query_token in unmatched:
        for command_token in command_tokens:
            if abs(len(query_token) - len(command_token)) > FUZZY_THRESHOLD:
                continue
            if levenshtein(query_token, command_token, FUZZY_THRESHOLD) <= FUZZY_THRESHOLD:
                fuzzy_matches += 1
                break
    return fuzzy_matches / len(query_tokens)


def substring_score(
    query: str, command: str, query_tokens: list[str], command_tokens: list[str]
) -> float:
    """1.0 if the whole query appears in the command, else the prefix hit ratio.

    A prefix hit is a query token that prefixes some command token or is
    prefixed by one.
    """
    if query.lower() in command.lower():
        return 1.0
    if not query_tokens:
        return 0.0

    prefix_hits = 0
    for query_token in query_tokens:
        for command_token in command_tokens:
            if command_token.startswith(query_token) or query_token.startswith(command_token):
                prefix_hits += 1
                break
    return prefix_hits / len(query_tokens)


def frequency_score(frequency: int, max_frequency: int) -> float:
    """Log-scaled usage count relative to the most used command."""
    if max_frequency <= 1:
        return 0.0
    return math.log1p(frequency) / math.log1p(max_frequency)


def recency_score(timestamp: Optional[datetime], newest: Optional[datetime]) -> float:
    """1.0 for the newest command, decaying to 0.0 after RECENCY_WINDOW."""
    if timestamp is None or newest is None:
        return 0.0
    age = newest - timestamp
    if age <= timedelta(0):
        return 1.0
    return max(0.0, 1.0 - age / RECENCY_WINDOW)


def round_scores(scores: np.ndarray) -> np.ndarray:
    """Round to 3 decimal places, halves rounding up (0.0625 -> 0.063)."""
    return np.floor(np.asarray(scores, dtype=np.float64) * 1000 + 0.5) / 1000


def _aggregate(entries: list[HistoryEntry]) -> dict[str, _CommandStats]:
    """Group entries by exact command string."""
    stats: dict[str, _CommandStats] = {}
    for entry in entries:
        existing = stats.get(entry.command)
        if existing is None:
            stats[entry.command] = _CommandStats(1, entry.line_number, entry.timestamp)
            continue
        existing.frequency += 1
        existing.line_number = max(existing.line_number, entry.line_number)
        if entry.timestamp is not None and (
            existing.last_used is None or entry.timestamp > existing.last_used
        ):
            existing.last_used = entry.timestamp
    return stats


def search_history(
    entries: list[HistoryEntry], query: str, max_results: int = 10
) -> list[SearchResult]:
    """Rank unique history commands by relevance to a free-text query.

    Args:
        entries: Parsed history entries.
        query: Search query string.
        max_results: Maximum number of results to return.

    Returns:
        List of SearchResult sorted by score (highest first), ties broken
        by frequency. Empty for a blank or punctuation-only query.

    Raises:
        ConfigError: If max_results is less than 1.
    """
    if max_results < 1:
        raise ConfigError("max_results must be at least 1")

    query_tokens = tokenize(query)
    if not entries or not query_tokens:
        return []

    stats = _aggregate(entries)
    commands = list(stats)
    max_frequency = max(s.frequency for s in stats.values())
    timestamps = [s.last_used for s in stats.values() if s.last_used is not None]
    newest = max(timestamps) if timestamps else None

    # Build matrix: (N, 5) sub-scores, one row per unique command
    signals = np.zeros((len(commands), len(WEIGHTS)), dtype=np.float64)
    for row, command in enumerate(commands):
        command_tokens = tokenize(command)
        meta = stats[command]
        signals[row] = (
            exact_overlap(query_tokens, command_tokens),
            fuzzy_overlap(query_tokens, command_tokens),
            substring_score(query, command, query_tokens, command_tokens),
            frequency_score(meta.frequency, max_frequency),
            recency_score(meta.last_used, newest),
        )

    scores = round_scores(signals @ WEIGHTS)
    frequencies = np.array([stats[c].frequency for c in commands])

    # lexsort sorts by the last key first: score desc, then frequency desc
    order = np.lexsort((-frequencies, -scores))
    keep = [i for i in order if scores[i] >= MIN_SCORE][:max_results]

    logger.debug(
        "scored %d unique commands for %r: %d results", len(commands), query, len(keep)
    )
    return [
        SearchResult(
            command=commands[i],
            score=float(scores[i]),
            frequency=stats[commands[i]].frequency,
            line_number=stats[commands[i]].line_number,
            last_used=stats[commands[i]].last_used,
        )
        for i in keep
    ]
