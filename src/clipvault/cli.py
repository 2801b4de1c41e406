"""
CLI entry point for clipvault.

This module provides the Typer-based command-line interface to the
clipboard history. It is a thin shell over ClipboardHistory so the same
store can be driven from scripts, hotkeys or a terminal.

Commands:
    add         Capture text (arguments or stdin) into the history
    list        List history entries, newest first
    search      Search entries by substring with highlighted matches
    favorite    Flag an entry as favorite
    show        Show a single entry in full
    clear       Delete every entry
    evict       Run the retention pass now
    stats       Show history size and limits
    doctor      Check environment and storage location
"""

import json
import sqlite3
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from clipvault import __version__
from clipvault.errors import ClipVaultError
from clipvault.history import ClipboardHistory
from clipvault.paths import data_dir, default_config_path
from clipvault.schema import HistoryConfig, Record, load_config

# Initialize Typer app with metadata
app = typer.Typer(
    name="clipvault",
    help="Persistent, searchable clipboard history.",
    add_completion=False,
    no_args_is_help=True,
)

# Rich console for formatted output
console = Console()

PREVIEW_WIDTH = 60


@dataclass
class CliState:
    """Options shared by every command."""

    db_path: Path | None = None
    config_path: Path | None = None


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]clipvault[/bold] version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Route loguru output to stderr at the requested verbosity."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


@app.callback()
def main(
    ctx: typer.Context,
    db: Annotated[
        Optional[Path],
        typer.Option(
            "--db",
            help="Path to the history database. Overrides the config file.",
            resolve_path=True,
        ),
    ] = None,
    config: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Path to a YAML config file.",
            exists=True,
            readable=True,
            resolve_path=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            help="Enable debug logging.",
        ),
    ] = False,
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    clipvault - Persistent, searchable clipboard history.

    Captured text is deduplicated, kept newest first and trimmed once it
    grows past the configured capacity.
    """
    configure_logging(verbose)
    ctx.obj = CliState(db_path=db, config_path=config)


def _load_config(state: CliState) -> HistoryConfig:
    """Resolve the effective configuration for a command."""
    config_path = state.config_path
    if config_path is None and default_config_path().is_file():
        config_path = default_config_path()

    config = load_config(config_path) if config_path else HistoryConfig()
    if state.db_path is not None:
        config = config.model_copy(update={"db_path": state.db_path})
    return config


def _open_history(ctx: typer.Context) -> ClipboardHistory:
    """Open the history or exit with an error message."""
    state: CliState = ctx.obj or CliState()
    try:
        return ClipboardHistory(_load_config(state))
    except ClipVaultError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1)


def _preview(content: str, width: int = PREVIEW_WIDTH) -> str:
    """Single-line, truncated view of an entry."""
    flat = " ".join(content.split())
    if len(flat) > width:
        return flat[: width - 3] + "..."
    return flat


def _format_time(record: Record) -> str:
    return record.created_datetime.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _highlighted_text(record: Record, open_marker: str, close_marker: str) -> Text:
    """
    Render a search hit from its content_highlight.

    The configured markers are replaced by styling; an unmatched open
    marker is shown as-is.
    """
    if not (open_marker and close_marker and record.content_highlight):
        return Text(_preview(record.content))

    flat = " ".join(record.content_highlight.split())
    text = Text()
    pos = 0
    while True:
        start = flat.find(open_marker, pos)
        if start == -1:
            text.append(flat[pos:])
            break
        end = flat.find(close_marker, start + len(open_marker))
        if end == -1:
            text.append(flat[pos:])
            break
        text.append(flat[pos:start])
        text.append(flat[start + len(open_marker) : end], style="bold yellow")
        pos = end + len(close_marker)
    text.truncate(PREVIEW_WIDTH, overflow="ellipsis")
    return text


def _record_table(
    records: list[Record], markers: tuple[str, str] | None = None
) -> Table:
    """Build a table of records, styling search matches when markers are given."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Seen")
    table.add_column("★", width=1)
    table.add_column("Content")

    for record in records:
        if markers:
            content = _highlighted_text(record, *markers)
        else:
            content = Text(_preview(record.content))
        table.add_row(
            str(record.id),
            _format_time(record),
            "[yellow]★[/yellow]" if record.is_favorite else "",
            content,
        )
    return table


def _print_records_json(records: list[Record]) -> None:
    print(json.dumps([r.model_dump() for r in records], indent=2, ensure_ascii=False))


def _fail(error: ClipVaultError) -> NoReturn:
    console.print(f"[red]{escape(str(error))}[/red]")
    raise typer.Exit(code=1)


@app.command()
def add(
    ctx: typer.Context,
    text: Annotated[
        Optional[list[str]],
        typer.Argument(help="Text to capture. Reads stdin when omitted."),
    ] = None,
) -> None:
    """
    Capture text into the history.

    Text already present is moved to the top instead of being duplicated.

    Example:
        $ clipvault add "some snippet"
        $ pbpaste | clipvault add
    """
    content = " ".join(text) if text else sys.stdin.read()

    with _open_history(ctx) as history:
        try:
            record_id = history.capture(content)
        except ClipVaultError as e:
            _fail(e)

        if record_id is None:
            console.print("[yellow]Nothing to capture (empty text).[/yellow]")
            raise typer.Exit(code=0)

        console.print(f"Stored record [cyan]{record_id}[/cyan]")


@app.command("list")
def list_records(
    ctx: typer.Context,
    limit: Annotated[
        Optional[int],
        typer.Option(
            "--limit",
            "-n",
            help="Maximum number of entries to show.",
            min=0,
        ),
    ] = None,
    favorites: Annotated[
        bool,
        typer.Option(
            "--favorites",
            "-f",
            help="Only show favorite entries.",
        ),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output results in JSON format.",
        ),
    ] = False,
) -> None:
    """
    List history entries, newest first.

    Example:
        $ clipvault list -n 20
    """
    with _open_history(ctx) as history:
        try:
            records = history.favorites() if favorites else history.recent()
        except ClipVaultError as e:
            _fail(e)

    if limit is not None:
        records = records[:limit]

    if json_output:
        _print_records_json(records)
        return

    if not records:
        console.print("[dim]No entries found.[/dim]")
        return

    console.print(_record_table(records))


@app.command()
def search(
    ctx: typer.Context,
    query: Annotated[
        str,
        typer.Argument(help="Substring to search for (case-sensitive)."),
    ],
    limit: Annotated[
        Optional[int],
        typer.Option(
            "--limit",
            "-n",
            help="Maximum number of results. Defaults to search_limit from config.",
            min=0,
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output results (with content_highlight) in JSON format.",
        ),
    ] = False,
) -> None:
    """
    Search history entries containing QUERY.

    Example:
        $ clipvault search "http://"
    """
    with _open_history(ctx) as history:
        try:
            records = history.search(query, limit)
        except ClipVaultError as e:
            _fail(e)

    if json_output:
        _print_records_json(records)
        return

    if not records:
        console.print(f"[dim]No entries match {escape(repr(query))}.[/dim]")
        return

    markers = (history.config.highlight_open, history.config.highlight_close)
    console.print(_record_table(records, markers=markers))


@app.command()
def favorite(
    ctx: typer.Context,
    record_id: Annotated[
        int,
        typer.Argument(help="ID of the entry to flag."),
    ],
) -> None:
    """
    Flag an entry as favorite.

    Favorites are permanent; there is no command to remove the flag.

    Example:
        $ clipvault favorite 42
    """
    with _open_history(ctx) as history:
        try:
            found = history.favorite(record_id)
        except ClipVaultError as e:
            _fail(e)

    if not found:
        console.print(f"[yellow]No entry with id {record_id}[/yellow]")
        raise typer.Exit(code=1)

    console.print(f"Marked [cyan]{record_id}[/cyan] as favorite")


@app.command()
def show(
    ctx: typer.Context,
    record_id: Annotated[
        int,
        typer.Argument(help="ID of the entry to show."),
    ],
) -> None:
    """
    Show a single entry in full.

    Example:
        $ clipvault show 42
    """
    with _open_history(ctx) as history:
        try:
            record = history.get(record_id)
        except ClipVaultError as e:
            _fail(e)

    if record is None:
        console.print(f"[red]No entry with id {record_id}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[bold]Entry {record.id}[/bold]")
    console.print(f"  Seen: {_format_time(record)}")
    console.print(f"  Favorite: {'yes' if record.is_favorite else 'no'}")
    console.print(f"  Fingerprint: [dim]{record.fingerprint}[/dim]")
    console.print()
    console.print(Text(record.content))


@app.command()
def clear(
    ctx: typer.Context,
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Do not ask for confirmation.",
        ),
    ] = False,
) -> None:
    """
    Delete every entry, favorites included. This cannot be undone.

    Example:
        $ clipvault clear --yes
    """
    if not yes:
        typer.confirm("Delete the entire clipboard history?", abort=True)

    with _open_history(ctx) as history:
        try:
            removed = history.clear()
        except ClipVaultError as e:
            _fail(e)

    console.print(f"Removed {removed} entries")


@app.command()
def evict(
    ctx: typer.Context,
    capacity: Annotated[
        Optional[int],
        typer.Option(
            "--capacity",
            help="Entries to keep. Defaults to capacity from config.",
            min=0,
        ),
    ] = None,
    margin: Annotated[
        Optional[int],
        typer.Option(
            "--margin",
            help="Overflow tolerated before trimming. Defaults to eviction_margin from config.",
            min=0,
        ),
    ] = None,
) -> None:
    """
    Run the retention pass now.

    Nothing is deleted unless the history exceeds capacity by more than
    the margin.

    Example:
        $ clipvault evict --capacity 100 --margin 0
    """
    with _open_history(ctx) as history:
        try:
            result = history.store.evict_overflow(
                history.config.capacity if capacity is None else capacity,
                history.config.eviction_margin if margin is None else margin,
            )
        except ClipVaultError as e:
            _fail(e)

    if result.triggered:
        console.print(
            f"Evicted {result.deleted} entries "
            f"({result.count_before} -> {result.count_after})"
        )
    else:
        console.print(f"[dim]Nothing to evict ({result.count_before} entries).[/dim]")


@app.command()
def stats(
    ctx: typer.Context,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output results in JSON format.",
        ),
    ] = False,
) -> None:
    """
    Show history size and limits.

    Example:
        $ clipvault stats
    """
    with _open_history(ctx) as history:
        try:
            summary = history.stats()
        except ClipVaultError as e:
            _fail(e)

    if json_output:
        print(json.dumps({
            "db_path": summary.db_path,
            "total": summary.total,
            "favorites": summary.favorites,
            "capacity": summary.capacity,
            "eviction_margin": summary.eviction_margin,
            "overflow": summary.overflow,
        }, indent=2))
        return

    console.print(f"[bold]History[/bold] [dim]{escape(summary.db_path)}[/dim]")
    console.print(f"  Entries: {summary.total}")
    console.print(f"  Favorites: {summary.favorites}")
    console.print(f"  Capacity: {summary.capacity} (+{summary.eviction_margin} margin)")
    if summary.overflow:
        console.print(f"  [yellow]Over capacity by {summary.overflow}[/yellow]")


@app.command()
def doctor(
    ctx: typer.Context,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output results in JSON format.",
        ),
    ] = False,
) -> None:
    """
    Check system environment and storage location.

    Verifies:
    - Python version (3.11+)
    - SQLite library version
    - Configuration file validity
    - Database location writability

    Example:
        $ clipvault doctor
    """
    state: CliState = ctx.obj or CliState()
    checks = []
    all_ok = True

    # Check 1: Python version
    py_version = sys.version_info
    py_version_str = f"{py_version.major}.{py_version.minor}.{py_version.micro}"
    py_ok = py_version >= (3, 11)
    checks.append({
        "name": "Python version",
        "ok": py_ok,
        "value": py_version_str,
        "message": "OK" if py_ok else "Requires Python 3.11+",
    })
    all_ok = all_ok and py_ok

    # Check 2: SQLite
    checks.append({
        "name": "SQLite",
        "ok": True,
        "value": sqlite3.sqlite_version,
        "message": "OK",
    })

    # Check 3: Config
    config: HistoryConfig | None = None
    config_ok = True
    try:
        config = _load_config(state)
        config_message = f"capacity {config.capacity}, margin {config.eviction_margin}"
    except ClipVaultError as e:
        config_ok = False
        config_message = e.message
    checks.append({
        "name": "Config",
        "ok": config_ok,
        "value": str(state.config_path or default_config_path()),
        "message": config_message,
    })
    all_ok = all_ok and config_ok

    # Check 4: Database location
    db_path = config.resolved_db_path() if config else data_dir()
    db_ok = True
    try:
        if db_path.exists():
            db_message = f"Exists ({db_path.stat().st_size} bytes)"
        else:
            parent = next((p for p in db_path.parents if p.exists()), None)
            if parent is not None and parent.is_dir():
                db_message = "Not found (will be created on first capture)"
            else:
                db_ok = False
                db_message = f"No usable parent directory for {db_path}"
    except OSError as e:
        db_ok = False
        db_message = f"Error: {e}"
    checks.append({
        "name": "Database",
        "ok": db_ok,
        "value": str(db_path),
        "message": db_message,
    })
    all_ok = all_ok and db_ok

    if json_output:
        print(json.dumps({"ok": all_ok, "version": __version__, "checks": checks}, indent=2))
    else:
        console.print(f"[bold]clipvault doctor[/bold] v{__version__}")
        console.print()
        for check in checks:
            icon = "[green]✓[/green]" if check["ok"] else "[red]✗[/red]"
            if check["ok"]:
                console.print(f"{icon} {check['name']}: [dim]{escape(check['value'])}[/dim] - {escape(check['message'])}")
            else:
                console.print(f"{icon} {check['name']}: [dim]{escape(check['value'])}[/dim]")
                console.print(f"    [red]{escape(check['message'])}[/red]")
        console.print()
        if all_ok:
            console.print("[green]All checks passed![/green]")
        else:
            console.print("[yellow]Some checks failed. See above for details.[/yellow]")

    raise typer.Exit(code=0 if all_ok else 1)


if __name__ == "__main__":
    app()
