"""Interactive TUI for histminer.

Full-screen terminal UI built with Textual. Launches via `histminer tui`.

Keybindings:
    Any text      — type to search (input is auto-focused on launch)
    ↑ / ↓         — navigate results
    j / k         — navigate results (vim-style)
    Enter         — copy selected command to clipboard and exit
    Tab           — toggle focus between search and results
    Esc / q       — quit without selecting
"""

from __future__ import annotations

import asyncio
import sys
from typing import Optional

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Input, ListItem, ListView, Static

from histminer.config import load_config
from histminer.formatters import relative_time
from histminer.models import HistoryEntry, SearchResult
from histminer.search import search_history
from histminer.strings import truncate

# Number of commands listed before the user types anything.
_BROWSE_LIMIT = 20


def _score_bar(score: float, width: int = 8) -> str:
    """Render a compact ASCII bar for a relevance score (0-1)."""
    filled = round(score * width)
    return "█" * filled + "░" * (width - filled)


def _copy_to_clipboard(text: str) -> bool:
    """Copy text to clipboard. Returns True on success."""
    import pyperclip

    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException:
        return False
    return True


def recent_commands(entries: list[HistoryEntry], limit: int = _BROWSE_LIMIT) -> list[SearchResult]:
    """Return the most recently used unique commands, newest first."""
    frequency: dict[str, int] = {}
    for entry in entries:
        frequency[entry.command] = frequency.get(entry.command, 0) + 1

    seen: set[str] = set()
    recent = []
    for entry in reversed(entries):
        if entry.command in seen:
            continue
        seen.add(entry.command)
        recent.append(
            SearchResult(
                command=entry.command,
                score=1.0,
                frequency=frequency[entry.command],
                line_number=entry.line_number,
                last_used=entry.timestamp,
            )
        )
        if len(recent) >= limit:
            break
    return recent


class ResultItem(ListItem):
    """A single result row: the command, then usage details and score."""

    DEFAULT_CSS = """
    ResultItem {
        height: 2;
        padding: 0 1;
    }
    ResultItem .command {
        text-style: bold;
        color: #ffffff;
    }
    ResultItem .meta {
        color: #666666;
    }
    ResultItem .score {
        color: #555555;
        text-align: right;
        width: 1fr;
    }
    ResultItem Horizontal {
        height: 1;
    }
    """

    def __init__(self, result: SearchResult) -> None:
        super().__init__()
        self.result = result

    def compose(self) -> ComposeResult:
        r = self.result
        pct = f"{r.score * 100:.0f}%"
        meta = f"line {r.line_number}  ·  {r.frequency}x  ·  {relative_time(r.last_used)}"

        yield Static(truncate(r.command, 120), classes="command")
        yield Horizontal(
            Static(meta, classes="meta"),
            Static(f"{_score_bar(r.score)} {pct}", classes="score"),
        )


class HistminerApp(App):
    """histminer TUI — monochrome, keyword history search."""

    TITLE = "histminer"
    SUB_TITLE = "History Search"

    CSS = """
    Screen {
        background: #111111;
    }
    #header {
        height: 1;
        padding: 0 2;
        color: #ffffff;
        text-style: bold;
    }
    #header-right {
        color: #666666;
        text-align: right;
        width: 1fr;
    }
    #search-bar {
        height: auto;
        padding: 1 2;
        border-bottom: solid #333333;
    }
    #search-input {
        background: #1e1e1e;
        border: solid #444444;
    }
    #results-list {
        background: #111111;
        height: 1fr;
    }
    #empty-state {
        height: 100%;
        color: #444444;
        content-align: center middle;
    }
    #footer {
        height: 1;
        padding: 0 2;
        color: #666666;
    }
    """

    BINDINGS = [
        Binding("escape", "quit", "Quit", show=False),
        Binding("q", "quit", "Quit", show=False),
        Binding("up,k", "move_up", "Up", show=False),
        Binding("down,j", "move_down", "Down", show=False),
        Binding("tab", "toggle_focus", "Toggle Focus", show=False),
    ]

    def __init__(self, entries: list[HistoryEntry]) -> None:
        super().__init__()
        self.entries = entries
        self.max_results = load_config().tui_max_results
        self._query = ""
        self._results: list[SearchResult] = []
        self._debounce_task: Optional[asyncio.Task] = None

    def compose(self) -> ComposeResult:
        unique = len({e.command for e in self.entries})
        yield Horizontal(
            Static("histminer", id="header"),
            Static(f"{unique} unique commands", id="header-right"),
        )
        with Vertical(id="search-bar"):
            yield Input(placeholder="Type to search your command history…", id="search-input")
        with Vertical(id="results-container"):
            yield ListView(id="results-list")
            yield Static("", id="empty-state")
        yield Static(
            "[#aaaaaa]↑↓[/] nav   [#aaaaaa]⏎[/] select & copy   "
            "[#aaaaaa]Tab[/] switch focus   [#aaaaaa]Esc / q[/] quit",
            id="footer",
            markup=True,
        )

    def on_mount(self) -> None:
        self.query_one("#search-input", Input).focus()
        self._run_search("")

    @on(Input.Changed, "#search-input")
    def on_search_input_changed(self, event: Input.Changed) -> None:
        """Debounce search queries to 300 ms."""
        self._query = event.value

        if self._debounce_task and not self._debounce_task.done():
            self._debounce_task.cancel()

        self._debounce_task = asyncio.create_task(self._debounced_search(event.value))

    async def _debounced_search(self, query: str) -> None:
        await asyncio.sleep(0.3)
        self._run_search(query)

    @work(thread=True, exclusive=True)
    def _run_search(self, query: str) -> None:
        """Score history in a background thread."""
        limit = self.max_results
        if query.strip():
            results = search_history(self.entries, query, limit)
        else:
            results = recent_commands(self.entries, limit)

        self.call_from_thread(self._update_results, results)

    def _update_results(self, results: list[SearchResult]) -> None:
        """Rebuild the results list widget on the main thread."""
        self._results = results
        list_view = self.query_one("#results-list", ListView)
        empty_state = self.query_one("#empty-state", Static)

        list_view.clear()

        if not results:
            empty_state.update(
                "No results. Try a different query."
                if self._query.strip()
                else "No commands in history yet."
            )
            empty_state.display = True
            list_view.display = False
            return

        empty_state.display = False
        list_view.display = True
        for result in results:
            list_view.append(ResultItem(result))

    def action_move_up(self) -> None:
        list_view = self.query_one("#results-list", ListView)
        if not list_view.has_focus:
            list_view.focus()
        if list_view.index is None:
            list_view.index = 0
        elif list_view.index > 0:
            list_view.index -= 1

    def action_move_down(self) -> None:
        list_view = self.query_one("#results-list", ListView)
        if not list_view.has_focus:
            list_view.focus()
        if list_view.index is None:
            list_view.index = 0
        elif list_view.index < len(self._results) - 1:
            list_view.index += 1

    def action_toggle_focus(self) -> None:
        search = self.query_one("#search-input", Input)
        list_view = self.query_one("#results-list", ListView)
        if search.has_focus:
            list_view.focus()
        else:
            search.focus()

    @on(Input.Submitted, "#search-input")
    def on_search_input_submitted(self, event: Input.Submitted) -> None:
        self.action_select()

    @on(ListView.Selected)
    def on_list_view_selected(self, event: ListView.Selected) -> None:
        self.action_select()

    def action_select(self) -> None:
        """Copy the highlighted command to clipboard and exit."""
        idx = self.query_one("#results-list", ListView).index
        if not self._results:
            return
        if idx is None or idx >= len(self._results):
            idx = 0

        command = self._results[idx].command
        if _copy_to_clipboard(command):
            self.notify(f"Copied: {command}", timeout=1.5)
        self.exit(command)

    def action_quit(self) -> None:
        self.exit()


def launch(entries: list[HistoryEntry]) -> Optional[str]:
    """Run the TUI; print and return the selected command, if any."""
    command = HistminerApp(entries).run()
    if command:
        # Printed so shell wrapper scripts can capture the selection
        print(command, file=sys.stdout)
    return command
