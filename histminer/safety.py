"""Dangerous command detection.

Scans parsed history for high-risk invocations and reports each one with
a safer alternative.
"""

import re
from dataclasses import dataclass
from typing import Callable, Optional

from histminer.models import HistoryEntry, SafetyAlert

_RM_RE = re.compile(r"\brm\b")
_RM_RECURSIVE_FORCE_RE = re.compile(r"\brm\s+.*-\S*r\S*f|\brm\s+.*-\S*f\S*r")
_RM_INTERACTIVE_RE = re.compile(r"\brm\s+.*-\S*i|\brm\b.*\s-i\b")
_VARIABLE_RE = re.compile(r"\$[A-Za-z_]\w*")


@dataclass(frozen=True)
class DangerRule:
    """A detection rule; `check` returns a risk description or None."""

    name: str
    check: Callable[[str], Optional[str]]
    safer_alternative: str


def _rm_rf_without_interactive(cmd: str) -> Optional[str]:
    if not _RM_RE.search(cmd) or not _RM_RECURSIVE_FORCE_RE.search(cmd):
        return None
    if _RM_INTERACTIVE_RE.search(cmd):
        return None
    return "rm -rf without -i flag: no confirmation prompt before deletion"


def _sudo_rm(cmd: str) -> Optional[str]:
    if not re.search(r"\bsudo\s+rm\b", cmd):
        return None
    return "sudo rm: destructive delete with elevated privileges and no confirmation"


def _unquoted_variable(cmd: str) -> Optional[str]:
    if not re.search(r"\b(rm|mv|cp)\b", cmd):
        return None
    # Checked per word so `rm "$SAFE" $UNSAFE` is still caught
    for word in cmd.split():
        if _VARIABLE_RE.search(word) and '"' not in word and "'" not in word:
            return "Unquoted variable expansion: risk of word splitting and glob expansion"
    return None


def _remove_item_without_whatif(cmd: str) -> Optional[str]:
    if not re.search(r"Remove-Item", cmd, re.IGNORECASE):
        return None
    if not (re.search(r"-Recurse", cmd, re.IGNORECASE) and re.search(r"-Force", cmd, re.IGNORECASE)):
        return None
    if re.search(r"-WhatIf|-Confirm", cmd, re.IGNORECASE):
        return None
    return "Remove-Item -Recurse -Force without -WhatIf or -Confirm: silent recursive deletion"


def _dd_without_status(cmd: str) -> Optional[str]:
    if not re.search(r"\bdd\b", cmd) or not re.search(r"\b(if|of)=", cmd):
        return None
    if "status=progress" in cmd:
        return None
    return "dd without status=progress: silent data operation with no progress indicator"


def _chmod_777(cmd: str) -> Optional[str]:
    if not re.search(r"\bchmod\b", cmd) or not re.search(r"\b777\b", cmd):
        return None
    return "chmod 777: world-readable, writable and executable permissions"


DANGER_RULES: list[DangerRule] = [
    DangerRule(
        "rm-rf-no-interactive",
        _rm_rf_without_interactive,
        "Use `rm -rfi` for interactive confirmation, or preview with `ls -la <path>` first.",
    ),
    DangerRule(
        "sudo-rm",
        _sudo_rm,
        "Use `sudo rm -i` for interactive prompts, or double-check the path before execution.",
    ),
    DangerRule(
        "unquoted-variable",
        _unquoted_variable,
        'Quote variable expansions: use `"$VAR"` instead of `$VAR`.',
    ),
    DangerRule(
        "ps-remove-item-no-whatif",
        _remove_item_without_whatif,
        "Add `-WhatIf` to preview changes first, or `-Confirm` for interactive prompts.",
    ),
    DangerRule(
        "dd-no-status",
        _dd_without_status,
        "Add `status=progress` to see progress: `dd if=... of=... status=progress`",
    ),
    DangerRule(
        "chmod-777",
        _chmod_777,
        "Use minimum necessary permissions: `chmod 755` for directories, `chmod 644` for files.",
    ),
]


def detect_dangerous_patterns(entries: list[HistoryEntry]) -> list[SafetyAlert]:
    """Return one alert per (rule, command) pair, most frequent first.

    A command can trigger several rules and then yields several alerts.
    """
    alerts: dict[tuple[str, str], SafetyAlert] = {}

    for entry in entries:
        cmd = entry.command.strip()
        if not cmd:
            continue
        for rule in DANGER_RULES:
            risk = rule.check(cmd)
            if risk is None:
                continue
            key = (rule.name, cmd)
            if key in alerts:
                alerts[key].frequency += 1
            else:
                alerts[key] = SafetyAlert(
                    pattern=cmd,
                    frequency=1,
                    risk=risk,
                    safer_alternative=rule.safer_alternative,
                )

    return sorted(alerts.values(), key=lambda a: a.frequency, reverse=True)
