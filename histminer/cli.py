"""CLI entry point for histminer.

Provides commands: analyze, search, tui, config.
"""

import logging

import click

from histminer.config import (
    INT_SETTINGS,
    STR_SETTINGS,
    Config,
    ConfigError,
    get_config_path,
    load_config,
    parse_setting,
    save_config,
)
from histminer.formatters import FORMATS, format_patterns, format_search
from histminer.history import SUPPORTED_SHELLS, detect_shell, get_history_path, load_history
from histminer.models import HistoryEntry
from histminer.patterns import PatternOptions, analyze_patterns
from histminer.safety import detect_dangerous_patterns
from histminer.search import search_history


def _load_entries(shell, history_file, max_lines) -> list[HistoryEntry]:
    """Resolve, read and parse the history file, exiting on failure."""
    config = load_config()
    try:
        shell = detect_shell(shell or config.shell)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--shell") from None

    path, source = get_history_path(shell, history_file or config.history_file)
    try:
        entries = load_history(path, shell=shell, max_lines=max_lines or config.max_lines)
    except FileNotFoundError:
        click.echo(click.style(f"  error    history file not found: {path}", fg="red"), err=True)
        if source == "default":
            click.echo("  tip      use --history-file <path> to point at your history", err=True)
        raise SystemExit(1)
    except OSError as e:
        click.echo(click.style(f"  error    could not read {path}: {e}", fg="red"), err=True)
        raise SystemExit(1)

    if not entries:
        click.echo(f"  warning  no commands found in {path}", err=True)
    return entries


_shell_option = click.option(
    "--shell",
    type=click.Choice(SUPPORTED_SHELLS),
    default=None,
    help="Shell whose history to read.",
)
_history_file_option = click.option(
    "--history-file", default=None, help="Path to history file (auto-detected if omitted)."
)
_max_lines_option = click.option(
    "--max-lines", type=int, default=None, help="Only read this many trailing history lines."
)
_format_option = click.option(
    "--format", "fmt", type=click.Choice(FORMATS), default="table", show_default=True
)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr.")
def cli(verbose: bool):
    """histminer — find repeated commands and search your shell history."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")


@cli.command()
@_shell_option
@_history_file_option
@_max_lines_option
@click.option("--min-frequency", type=int, default=None, help="Minimum occurrences to report.")
@click.option("--top", type=int, default=None, help="Maximum number of patterns.")
@click.option("--similarity-threshold", type=int, default=None, help="Edit distance for merging.")
@click.option("--min-sequence-length", type=int, default=None, help="Shortest command sequence.")
@click.option("--max-sequence-length", type=int, default=None, help="Longest command sequence.")
@_format_option
def analyze(
    shell,
    history_file,
    max_lines,
    min_frequency,
    top,
    similarity_threshold,
    min_sequence_length,
    max_sequence_length,
    fmt,
):
    """Find repeated commands and sequences worth automating."""
    options = PatternOptions.from_config(
        load_config(),
        min_frequency=min_frequency,
        top=top,
        similarity_threshold=similarity_threshold,
        min_sequence_length=min_sequence_length,
        max_sequence_length=max_sequence_length,
    )
    try:
        options.validate()
    except ConfigError as e:
        raise click.UsageError(str(e)) from None

    entries = _load_entries(shell, history_file, max_lines)
    patterns = analyze_patterns(entries, options)
    alerts = detect_dangerous_patterns(entries)

    click.echo(format_patterns(fmt, patterns, alerts), nl=False)


@cli.command()
@click.argument("query")
@_shell_option
@_history_file_option
@_max_lines_option
@click.option("--max-results", type=int, default=None, help="Maximum number of results.")
@_format_option
def search(query: str, shell, history_file, max_lines, max_results, fmt):
    """Search your command history by keywords."""
    config = load_config()
    max_results = max_results if max_results is not None else config.max_results
    if max_results < 1:
        raise click.UsageError("max_results must be at least 1")

    entries = _load_entries(shell, history_file, max_lines)
    results = search_history(entries, query, max_results)

    click.echo(format_search(fmt, results, query), nl=False)


@cli.command()
@_shell_option
@_history_file_option
@_max_lines_option
def tui(shell, history_file, max_lines):
    """Launch the interactive TUI for history search."""
    from histminer.tui import launch

    entries = _load_entries(shell, history_file, max_lines)
    launch(entries)


@cli.command()
@click.argument("key", required=False)
@click.argument("value", required=False)
@click.option("--reset", is_flag=True, help="Reset all settings to defaults")
def config(key, value, reset):
    """View or update configuration settings.

    Show current config:
        histminer config

    Update a setting:
        histminer config min_frequency 3

    Reset to defaults:
        histminer config --reset
    """
    config_path = get_config_path()

    if reset:
        save_config(Config())
        click.echo("  config   reset to defaults")
        return

    cfg = load_config()

    # Show current config
    if key is None:
        click.echo(f"Configuration file: {config_path}")
        click.echo()
        for name in list(INT_SETTINGS) + list(STR_SETTINGS):
            click.echo(f"  {name:<21}= {getattr(cfg, name)}")
        return

    if key not in INT_SETTINGS and key not in STR_SETTINGS:
        click.echo(f"Error: Unknown setting '{key}'", err=True)
        click.echo(f"Valid settings: {', '.join(list(INT_SETTINGS) + list(STR_SETTINGS))}", err=True)
        raise SystemExit(1)

    if value is None:
        click.echo(f"  {key} = {getattr(cfg, key)}")
        return

    try:
        typed = parse_setting(key, value)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    setattr(cfg, key, typed)
    save_config(cfg)
    click.echo(f"  config   {key} = {typed}")
