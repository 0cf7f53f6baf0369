"""Pattern mining over parsed shell history.

Counts exact commands, detects repeated command sequences with a sliding
window, merges near-duplicate commands by edit distance, then filters
and ranks the result. Pure and in-memory: no I/O happens here.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

import numpy as np
from rapidfuzz import process
from rapidfuzz.distance import Levenshtein

from histminer.config import Config, ConfigError
from histminer.models import CommandPattern, HistoryEntry

logger = logging.getLogger(__name__)

SEQUENCE_SEPARATOR = " && "


@dataclass
class PatternOptions:
    """Tuning knobs for analyze_patterns()."""

    min_frequency: int = 5
    top: int = 20
    similarity_threshold: int = 3
    min_sequence_length: int = 2
    max_sequence_length: int = 5

    @classmethod
    def from_config(cls, config: Config, **overrides) -> "PatternOptions":
        """Build options from the user config, with non-None overrides applied."""
        options = cls(
            min_frequency=config.min_frequency,
            top=config.top,
            similarity_threshold=config.similarity_threshold,
            min_sequence_length=config.min_sequence_length,
            max_sequence_length=config.max_sequence_length,
        )
        for key, value in overrides.items():
            if value is not None:
                setattr(options, key, value)
        return options

    def validate(self) -> None:
        """Reject option combinations the miner cannot honour.

        Raises:
            ConfigError: On the first invalid setting found.
        """
        if self.min_frequency < 1:
            raise ConfigError("min_frequency must be at least 1")
        if self.top < 1:
            raise ConfigError("top must be at least 1")
        if self.similarity_threshold < 0:
            raise ConfigError("similarity_threshold must not be negative")
        if self.min_sequence_length < 2:
            raise ConfigError("min_sequence_length must be at least 2")
        if self.max_sequence_length < self.min_sequence_length:
            raise ConfigError(
                "max_sequence_length must be greater than or equal to min_sequence_length"
            )


@dataclass
class _Count:
    count: int
    last_used: Optional[datetime]

    def add(self, timestamp: Optional[datetime]) -> None:
        self.count += 1
        self.last_used = _latest(self.last_used, timestamp)


def _latest(a: Optional[datetime], b: Optional[datetime]) -> Optional[datetime]:
    if a is None:
        return b
    if b is None:
        return a
    return max(a, b)


def _tally(counts: dict[str, _Count], key: str, timestamp: Optional[datetime]) -> None:
    existing = counts.get(key)
    if existing is None:
        counts[key] = _Count(1, timestamp)
    else:
        existing.add(timestamp)


def count_commands(entries: Iterable[HistoryEntry]) -> dict[str, _Count]:
    """Count exact command occurrences, tracking the most recent use."""
    counts: dict[str, _Count] = {}
    for entry in entries:
        _tally(counts, entry.command, entry.timestamp)
    return counts


def detect_sequences(
    entries: list[HistoryEntry], min_length: int, max_length: int
) -> dict[str, _Count]:
    """Count every run of `min_length`..`max_length` consecutive commands.

    Each window's commands are joined with SEQUENCE_SEPARATOR; the
    window's last entry supplies the timestamp. Window sizes larger than
    the input are skipped.
    """
    sequences: dict[str, _Count] = {}
    for size in range(min_length, max_length + 1):
        if len(entries) < size:
            continue
        for start in range(len(entries) - size + 1):
            window = entries[start : start + size]
            key = SEQUENCE_SEPARATOR.join(entry.command for entry in window)
            _tally(sequences, key, window[-1].timestamp)
    return sequences


def similar_pairs(keys: list[str], threshold: int) -> list[set[int]]:
    """Return, for each key, the indices of other keys within `threshold` edits.

    Keys are bucketed by length so only pairs whose lengths differ by at
    most `threshold` are compared. Each bucket is compared against the
    buckets up to `threshold` characters longer in one native batch.
    """
    neighbours: list[set[int]] = [set() for _ in keys]
    if threshold <= 0:
        return neighbours

    by_length: dict[int, list[int]] = defaultdict(list)
    for index, key in enumerate(keys):
        by_length[len(key)].append(index)

    for length, group in by_length.items():
        window = [
            index
            for other_length in range(length, length + threshold + 1)
            for index in by_length.get(other_length, ())
        ]
        distances = process.cdist(
            [keys[i] for i in group],
            [keys[j] for j in window],
            scorer=Levenshtein.distance,
            score_cutoff=threshold,
            workers=-1,
        )
        for row, col in zip(*np.nonzero(distances <= threshold)):
            a, b = group[row], window[col]
            if a != b:
                neighbours[a].add(b)
                neighbours[b].add(a)

    return neighbours


def cluster_similar(counts: dict[str, _Count], threshold: int) -> list[CommandPattern]:
    """Merge keys within `threshold` edit distance into one pattern.

    Keys are visited most-frequent first, so the most frequent spelling of
    a cluster becomes its representative and the rest its variations.
    Ties keep insertion order.
    """
    ordered = sorted(counts.items(), key=lambda item: item[1].count, reverse=True)
    neighbours = similar_pairs([key for key, _ in ordered], threshold)
    consumed = [False] * len(ordered)
    patterns: list[CommandPattern] = []

    for index, (key, info) in enumerate(ordered):
        if consumed[index]:
            continue
        consumed[index] = True

        pattern = CommandPattern(pattern=key, frequency=info.count, last_used=info.last_used)
        for other in sorted(neighbours[index]):
            if consumed[other]:
                continue
            consumed[other] = True
            other_key, other_info = ordered[other]
            pattern.variations.append(other_key)
            pattern.frequency += other_info.count
            pattern.last_used = _latest(pattern.last_used, other_info.last_used)
        patterns.append(pattern)

    return patterns


def _epoch(value: Optional[datetime]) -> float:
    return value.timestamp() if value is not None else float("-inf")


def rank_patterns(patterns: list[CommandPattern]) -> list[CommandPattern]:
    """Order by frequency, then most recent use; untimed patterns sort last."""
    return sorted(patterns, key=lambda p: (p.frequency, _epoch(p.last_used)), reverse=True)


def analyze_patterns(
    entries: list[HistoryEntry], options: Optional[PatternOptions] = None
) -> list[CommandPattern]:
    """Return the most frequent commands and command sequences in history.

    A physical command is counted once as an exact match and again inside
    every sequence window that covers it, so a sequence pattern's
    frequency may exceed the number of lines it spans.

    Args:
        entries: Parsed history, oldest first.
        options: Mining options; defaults are used when omitted.

    Returns:
        At most `options.top` patterns with frequency >= `options.min_frequency`,
        highest frequency first.

    Raises:
        ConfigError: If the options are invalid.
    """
    options = options or PatternOptions()
    options.validate()

    if not entries:
        return []

    counts = count_commands(entries)
    exact_keys = len(counts)
    sequences = detect_sequences(
        entries, options.min_sequence_length, options.max_sequence_length
    )
    for key, info in sequences.items():
        if key not in counts:
            counts[key] = info

    clustered = cluster_similar(counts, options.similarity_threshold)
    frequent = [p for p in clustered if p.frequency >= options.min_frequency]
    ranked = rank_patterns(frequent)[: options.top]

    logger.debug(
        "analyzed %d entries: %d commands, %d sequences, %d clusters, %d patterns kept",
        len(entries),
        exact_keys,
        len(sequences),
        len(clustered),
        len(ranked),
    )
    return ranked
