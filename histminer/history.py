"""Shell history loading for histminer.

Reads bash, zsh and PowerShell history files into HistoryEntry lists,
already cleaned for the analysis engines: tail-windowed, noise-filtered
and with consecutive repeats collapsed.

Supported formats:
    bash (plain)          command
    bash (HISTTIMEFORMAT) #1700000000 then the command on the next line
    zsh (extended)        : 1700000000:0;command
    PowerShell            PSReadLine's ConsoleHost_history.txt, one command per line

All formats may continue a command onto the next line with a trailing
backslash.
"""

import logging
import os
import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from histminer.models import HistoryEntry

logger = logging.getLogger(__name__)

DEFAULT_MAX_LINES = 5000
MIN_LINE_LIMIT = 100

SUPPORTED_SHELLS = ("bash", "zsh", "powershell")

# Bare commands too trivial to analyse.
NOISE_COMMANDS = {"ls", "cd", "clear", "exit", "pwd", "history"}

_LINE_SPLIT_RE = re.compile(r"\r?\n")
_ZSH_EXTENDED_RE = re.compile(r"^:\s*(\d{9,11}):(\d+);(.*)$")
_BASH_TIMESTAMP_RE = re.compile(r"^#(\d{9,11})$")

# Lines inspected when sniffing for zsh extended format.
_DETECT_WINDOW = 20

_PSREADLINE_HISTORY = Path("PSReadLine", "ConsoleHost_history.txt")


def detect_shell(override: Optional[str] = None) -> str:
    """Return the shell to read history for.

    Order: the override, then a shell name found anywhere in $SHELL, then
    PowerShell when $PSModulePath is set or on Windows, then bash.
    """
    if override:
        shell = override.lower()
        if shell not in SUPPORTED_SHELLS:
            raise ValueError(
                f"Unsupported shell '{override}'. Available: {', '.join(SUPPORTED_SHELLS)}"
            )
        return shell

    shell_env = os.environ.get("SHELL", "").lower()
    if "zsh" in shell_env:
        return "zsh"
    if "bash" in shell_env:
        return "bash"
    if "pwsh" in shell_env or "powershell" in shell_env:
        return "powershell"

    # PSModulePath is set inside any PowerShell session
    if os.environ.get("PSModulePath") or sys.platform == "win32":
        return "powershell"
    return "bash"


def _psreadline_path() -> Path:
    if sys.platform == "win32":
        app_data = os.environ.get("APPDATA")
        base = Path(app_data) if app_data else Path.home() / "AppData" / "Roaming"
        return base / "Microsoft" / "Windows" / "PowerShell" / _PSREADLINE_HISTORY
    return Path.home() / ".local" / "share" / "powershell" / _PSREADLINE_HISTORY


def get_history_path(shell: str, override: Optional[str] = None) -> tuple[Path, str]:
    """Resolve the history file for a shell.

    Returns:
        The path, plus where it came from: "override", "env" ($HISTFILE)
        or "default". PowerShell ignores $HISTFILE.
    """
    if override:
        return Path(override).expanduser().resolve(), "override"

    if shell == "powershell":
        return _psreadline_path(), "default"

    env_path = os.environ.get("HISTFILE")
    if env_path:
        return Path(env_path).expanduser().resolve(), "env"

    name = ".zsh_history" if shell == "zsh" else ".bash_history"
    return Path.home() / name, "default"


def is_noise_command(command: str) -> bool:
    """True for empty, single-character and bare trivial commands."""
    trimmed = command.strip()
    return len(trimmed) <= 1 or trimmed.lower() in NOISE_COMMANDS


def limit_lines(lines: list[str], max_lines: int) -> list[str]:
    """Keep the last `max_lines` lines (never fewer than MIN_LINE_LIMIT)."""
    limit = max(max_lines, MIN_LINE_LIMIT)
    return lines[-limit:] if len(lines) > limit else lines


def dedupe_consecutive(entries: list[HistoryEntry]) -> list[HistoryEntry]:
    """Collapse runs of the same command, keeping the first of each run."""
    result: list[HistoryEntry] = []
    for entry in entries:
        if not result or result[-1].command != entry.command:
            result.append(entry)
    return result


def _from_epoch(value: str) -> datetime:
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def _looks_like_zsh(lines: list[str]) -> bool:
    checked = 0
    for line in lines:
        if not line.strip():
            continue
        if _ZSH_EXTENDED_RE.match(line):
            return True
        checked += 1
        if checked >= _DETECT_WINDOW:
            break
    return False


def _parse_bash_lines(lines: list[str]) -> list[HistoryEntry]:
    entries = []
    pending_timestamp = None
    buffer = ""
    start_line = 0

    for number, raw in enumerate(lines, 1):
        marker = _BASH_TIMESTAMP_RE.match(raw.strip())
        if marker:
            pending_timestamp = _from_epoch(marker.group(1))
            continue

        text = raw.rstrip()
        if text.endswith("\\"):
            if not buffer:
                start_line = number
            buffer += text[:-1] + "\n"
            continue

        if buffer:
            command = (buffer + text).strip()
            line_number = start_line
            buffer = ""
        else:
            command = text.strip()
            line_number = number

        if command:
            entries.append(HistoryEntry(command, line_number, pending_timestamp))
            pending_timestamp = None

    return entries


def _parse_zsh_lines(lines: list[str]) -> list[HistoryEntry]:
    entries = []
    buffer = ""
    buffer_timestamp = None
    start_line = 0

    for number, raw in enumerate(lines, 1):
        match = _ZSH_EXTENDED_RE.match(raw)
        if match:
            timestamp = _from_epoch(match.group(1))
            body = match.group(3).rstrip()
            if body.endswith("\\"):
                buffer = body[:-1] + "\n"
                buffer_timestamp = timestamp
                start_line = number
                continue
            if body.strip():
                entries.append(HistoryEntry(body.strip(), number, timestamp))
            continue

        if buffer:
            text = raw.rstrip()
            if text.endswith("\\"):
                buffer += text[:-1] + "\n"
                continue
            command = (buffer + text).strip()
            buffer = ""
            if command:
                entries.append(HistoryEntry(command, start_line, buffer_timestamp))
            buffer_timestamp = None
            continue

        # Plain line: zsh without extended_history, or a mixed file
        command = raw.strip()
        if command:
            entries.append(HistoryEntry(command, number))

    return entries


def parse_history(
    text: str, shell: Optional[str] = None, max_lines: int = DEFAULT_MAX_LINES
) -> list[HistoryEntry]:
    """Parse history file contents into cleaned entries, oldest first.

    Args:
        text: Raw history file contents.
        shell: "zsh" forces the zsh parser and "powershell" the plain-line
            parser; otherwise the format is sniffed.
        max_lines: Number of trailing raw lines to keep.

    Returns:
        Entries with noise dropped and consecutive repeats collapsed.
        Line numbers are 1-based within the kept tail.
    """
    lines = _LINE_SPLIT_RE.split(text)
    if lines and not lines[-1]:
        lines.pop()
    lines = limit_lines(lines, max_lines)

    if shell == "zsh" or (shell != "powershell" and _looks_like_zsh(lines)):
        parsed = _parse_zsh_lines(lines)
    else:
        parsed = _parse_bash_lines(lines)

    entries = dedupe_consecutive([e for e in parsed if not is_noise_command(e.command)])
    logger.debug("parsed %d lines into %d entries", len(lines), len(entries))
    return entries


def load_history(
    path: Path, shell: Optional[str] = None, max_lines: int = DEFAULT_MAX_LINES
) -> list[HistoryEntry]:
    """Read and parse a history file.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    # zsh metafies non-ASCII bytes, so undecodable input is replaced, not fatal
    text = Path(path).read_bytes().decode("utf-8", errors="replace")
    return parse_history(text, shell=shell, max_lines=max_lines)
