"""Data types shared by the pattern miner, the search engine and the CLI.

All records are plain dataclasses so formatters can serialise them
without reaching into engine internals.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class HistoryEntry:
    """One parsed command occurrence from a history file."""

    command: str
    line_number: int
    timestamp: Optional[datetime] = None


@dataclass
class CommandPattern:
    """A repeated command or command sequence worth automating."""

    pattern: str
    frequency: int
    last_used: Optional[datetime] = None
    variations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "pattern": self.pattern,
            "frequency": self.frequency,
            "last_used": _iso(self.last_used),
            "variations": list(self.variations),
        }


@dataclass
class SearchResult:
    """A single search result with command metadata and relevance score."""

    command: str
    score: float
    frequency: int
    line_number: int
    last_used: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "command": self.command,
            "score": self.score,
            "frequency": self.frequency,
            "line_number": self.line_number,
            "last_used": _iso(self.last_used),
        }


@dataclass
class SafetyAlert:
    """A risky command found in history, with a safer alternative."""

    pattern: str
    frequency: int
    risk: str
    safer_alternative: str

    def to_dict(self) -> dict:
        return {
            "pattern": self.pattern,
            "frequency": self.frequency,
            "risk": self.risk,
            "safer_alternative": self.safer_alternative,
        }
