"""Output formatting for analysis and search results.

Three renderings per result kind: a styled terminal table, JSON and
Markdown. Formatters only read the result dataclasses.
"""

import json
from datetime import datetime, timezone
from typing import Optional

import click

from histminer.models import CommandPattern, SafetyAlert, SearchResult
from histminer.strings import truncate

FORMATS = ("table", "json", "markdown")

_COMMAND_WIDTH = 60


def relative_time(then: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Convert a timestamp to a human-readable relative time."""
    if then is None:
        return "unknown"
    if then.tzinfo is None:
        then = then.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)

    seconds = int((now - then).total_seconds())
    if seconds < 60:
        return "just now"
    elif seconds < 3600:
        minutes = seconds // 60
        return f"{minutes} minute{'s' if minutes != 1 else ''} ago"
    elif seconds < 86400:
        hours = seconds // 3600
        return f"{hours} hour{'s' if hours != 1 else ''} ago"
    elif seconds < 604800:
        days = seconds // 86400
        return f"{days} day{'s' if days != 1 else ''} ago"
    elif seconds < 2592000:
        weeks = seconds // 604800
        return f"{weeks} week{'s' if weeks != 1 else ''} ago"
    else:
        months = seconds // 2592000
        return f"{months} month{'s' if months != 1 else ''} ago"


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count != 1 else ''}"


def _md_code(text: str) -> str:
    # Inline code spans cannot contain a bare backtick run of the same length
    return f"`` {text} ``" if "`" in text else f"`{text}`"


def _md_cell(text: str) -> str:
    return text.replace("|", "\\|")


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------


def format_patterns_table(
    patterns: list[CommandPattern], alerts: Optional[list[SafetyAlert]] = None
) -> str:
    """Render patterns (and optional safety alerts) for the terminal."""
    alerts = alerts or []
    lines = []

    if not patterns:
        lines.append("No repeated patterns found.")
        lines.append("Tip: lower --min-frequency to see less common commands.")
    else:
        lines.append(f"{_plural(len(patterns), 'pattern')}:\n")
        for i, p in enumerate(patterns, 1):
            lines.append(
                f"  {i}. {click.style(truncate(p.pattern, _COMMAND_WIDTH), fg='green', bold=True)}"
            )
            lines.append(f"     {p.frequency}x  ·  last used {relative_time(p.last_used)}")
            if p.variations:
                lines.append(f"     also: {', '.join(p.variations)}")
            lines.append("")

    if alerts:
        lines.append(click.style(f"{_plural(len(alerts), 'safety alert')}:\n", fg="yellow", bold=True))
        for alert in alerts:
            lines.append(f"  {click.style(alert.pattern, fg='red')}  ({alert.frequency}x)")
            lines.append(f"     risk   {alert.risk}")
            lines.append(f"     try    {alert.safer_alternative}")
            lines.append("")

    return "\n".join(lines).rstrip() + "\n"


def format_patterns_json(
    patterns: list[CommandPattern], alerts: Optional[list[SafetyAlert]] = None
) -> str:
    data = {
        "patterns": [p.to_dict() for p in patterns],
        "safety_alerts": [a.to_dict() for a in alerts or []],
    }
    return json.dumps(data, indent=2)


def format_patterns_markdown(
    patterns: list[CommandPattern], alerts: Optional[list[SafetyAlert]] = None
) -> str:
    lines = ["# Command History Analysis", "", "## Repeated Patterns", ""]
    if patterns:
        lines.append("| # | Pattern | Frequency | Last used | Variations |")
        lines.append("|---|---------|-----------|-----------|------------|")
        for i, p in enumerate(patterns, 1):
            variations = _md_cell(", ".join(_md_code(v) for v in p.variations) or "-")
            pattern = _md_cell(_md_code(p.pattern))
            lines.append(
                f"| {i} | {pattern} | {p.frequency} | {relative_time(p.last_used)} | {variations} |"
            )
    else:
        lines.append("_No repeated patterns found._")

    if alerts:
        lines += ["", "## Safety Alerts", ""]
        for alert in alerts:
            lines.append(f"- {_md_code(alert.pattern)} ({alert.frequency}x): {alert.risk}")
            lines.append(f"  - Safer: {alert.safer_alternative}")

    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


def format_search_table(results: list[SearchResult], query: str) -> str:
    """Render search results for the terminal."""
    if not results:
        return f"No matching commands found for: {query}\n"

    lines = [f"{_plural(len(results), 'result')} for: {query}\n"]
    for i, r in enumerate(results, 1):
        match_pct = f"{r.score * 100:.0f}%"
        lines.append(f"  {i}. {click.style(r.command, fg='green', bold=True)}")
        lines.append(f"     line {r.line_number}  ·  used {r.frequency}x")
        lines.append(f"     at  {relative_time(r.last_used)}  ·  {match_pct} match")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"


def format_search_json(results: list[SearchResult], query: str) -> str:
    data = {
        "query": query,
        "count": len(results),
        "results": [r.to_dict() for r in results],
    }
    return json.dumps(data, indent=2)


def format_search_markdown(results: list[SearchResult], query: str) -> str:
    lines = [f"# Search: {query}", ""]
    if not results:
        lines.append("_No matching commands found._")
        return "\n".join(lines) + "\n"

    lines.append("| # | Command | Score | Frequency | Line |")
    lines.append("|---|---------|-------|-----------|------|")
    for i, r in enumerate(results, 1):
        command = _md_cell(_md_code(r.command))
        lines.append(f"| {i} | {command} | {r.score:.3f} | {r.frequency} | {r.line_number} |")
    return "\n".join(lines) + "\n"


_PATTERN_FORMATTERS = {
    "table": format_patterns_table,
    "json": format_patterns_json,
    "markdown": format_patterns_markdown,
}

_SEARCH_FORMATTERS = {
    "table": format_search_table,
    "json": format_search_json,
    "markdown": format_search_markdown,
}


def format_patterns(
    fmt: str, patterns: list[CommandPattern], alerts: Optional[list[SafetyAlert]] = None
) -> str:
    """Render analysis output in the named format."""
    formatter = _PATTERN_FORMATTERS.get(fmt)
    if formatter is None:
        raise ValueError(f"Unknown format '{fmt}'. Available: {', '.join(FORMATS)}")
    return formatter(patterns, alerts)


def format_search(fmt: str, results: list[SearchResult], query: str) -> str:
    """Render search output in the named format."""
    formatter = _SEARCH_FORMATTERS.get(fmt)
    if formatter is None:
        raise ValueError(f"Unknown format '{fmt}'. Available: {', '.join(FORMATS)}")
    return formatter(results, query)
