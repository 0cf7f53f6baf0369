"""Shared fixtures for histminer tests."""

from datetime import datetime, timedelta, timezone

import pytest

from histminer.models import HistoryEntry

BASE_TIME = datetime(2026, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def home(tmp_path, monkeypatch):
    """Point HOME at a temp dir so config never touches the real one."""
    fake_home = tmp_path / "home"
    fake_home.mkdir()
    monkeypatch.setenv("HOME", str(fake_home))
    monkeypatch.delenv("HISTFILE", raising=False)
    monkeypatch.delenv("PSModulePath", raising=False)
    return fake_home


@pytest.fixture
def make_entries():
    """Build HistoryEntry lists from command strings.

    With `timed=True` each entry is one minute newer than the previous.
    """

    def _make(commands, timed=False):
        return [
            HistoryEntry(
                command=cmd,
                line_number=i,
                timestamp=BASE_TIME + timedelta(minutes=i) if timed else None,
            )
            for i, cmd in enumerate(commands, 1)
        ]

    return _make


@pytest.fixture
def history_file(tmp_path):
    """Write a plain bash history file and return its path."""

    def _write(text, name="bash_history"):
        path = tmp_path / name
        path.write_text(text)
        return path

    return _write
