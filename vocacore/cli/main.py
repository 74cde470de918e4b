"""
CLI entry point for vocacore.
"""

# Standard library imports
import logging
import shutil
from pathlib import Path
from typing import List, Optional

# Third-party imports
import typer
from rich.console import Console
from rich.table import Table

# Local application imports
from vocacore.cli._review_logic import open_catalog, review_logic
from vocacore.clock import system_clock
from vocacore.config import get_settings
from vocacore.constants import DAY_MS
from vocacore.db.database import KeyValueDatabase
from vocacore.db.db_utils import backup_database, find_latest_backup
from vocacore.exceptions import CatalogError, DatabaseError
from vocacore.models import CardMemoryState, CatalogEntry
from vocacore.scheduler import count_due, schedule
from vocacore.store import CardStateStore


console = Console()

app = typer.Typer(
    name="vocacore",
    help="Vocacore: multiple-choice vocabulary review with spaced repetition.",
    add_completion=False,
    rich_markup_mode="markdown",
)


# ---------------------------------------------------------------------------
# Common options and helpers
# ---------------------------------------------------------------------------

_db_option = typer.Option(  # noqa: B008
    None,
    "--db",
    help="Path to the DuckDB progress database. "
    "Falls back to VOCACORE_DB, then VOCACORE_DB_PATH.",
    envvar="VOCACORE_DB",
)

_catalog_option = typer.Option(  # noqa: B008
    None,
    "--catalog",
    help="JSON or YAML vocabulary catalog. Defaults to the bundled catalog.",
    envvar="VOCACORE_CATALOG",
)


@app.callback()
def configure(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug logging."
    ),
):
    """Configure logging for every command."""
    level = "DEBUG" if verbose else get_settings().log_level.upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _resolve_db_path(db: Optional[Path]) -> Path:
    if db is not None:
        return db
    return get_settings().db_path


def _resolve_catalog_path(catalog: Optional[Path]) -> Optional[Path]:
    if catalog is not None:
        return catalog
    return get_settings().catalog_path


def _load_catalog_or_exit(catalog: Optional[Path]) -> List[CatalogEntry]:
    try:
        return open_catalog(_resolve_catalog_path(catalog))
    except CatalogError as e:
        console.print(f"[bold red]Catalog Error:[/bold red] {e}")
        raise typer.Exit(code=1) from e


def _load_states(db_path: Path, catalog_size: int) -> List[CardMemoryState]:
    """Read stored progress aligned to a catalog of `catalog_size` entries."""
    with KeyValueDatabase(db_path=db_path) as db:
        db.initialize_schema()
        store = CardStateStore(
            db, catalog_size=catalog_size, storage_key=get_settings().storage_key
        )
        try:
            return store.load()
        finally:
            store.close()


# ---------------------------------------------------------------------------
# Review command
# ---------------------------------------------------------------------------


@app.command()
def review(
    db: Optional[Path] = _db_option,
    catalog: Optional[Path] = _catalog_option,
):
    """Start an interactive review session. Enter q to stop."""
    db_path = _resolve_db_path(db)
    try:
        review_logic(
            db_path=db_path,
            catalog_path=_resolve_catalog_path(catalog),
            storage_key=get_settings().storage_key,
        )
    except CatalogError as e:
        console.print(f"[bold red]Catalog Error:[/bold red] {e}")
        raise typer.Exit(code=1) from e
    except DatabaseError as e:
        console.print(f"[bold]A database error occurred: {e}[/bold]")
        raise typer.Exit(code=1) from e


# ---------------------------------------------------------------------------
# Stats & queue commands
# ---------------------------------------------------------------------------


def _summarize(states: List[CardMemoryState], now: int) -> dict:
    reviewed = [s for s in states if s.last_reviewed is not None]
    return {
        "total_cards": len(states),
        "due_now": count_due(states, now),
        "never_reviewed": len(states) - len(reviewed),
        "average_easiness": (
            sum(s.easiness for s in reviewed) / len(reviewed) if reviewed else None
        ),
    }


@app.command()
def stats(
    db: Optional[Path] = _db_option,
    catalog: Optional[Path] = _catalog_option,
):
    """Display progress statistics for the catalog."""
    entries = _load_catalog_or_exit(catalog)
    try:
        states = _load_states(_resolve_db_path(db), len(entries))
    except DatabaseError as e:
        console.print(f"[bold]A database error occurred: {e}[/bold]")
        raise typer.Exit(code=1) from e

    summary = _summarize(states, system_clock())
    table = Table(title="Progress", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="magenta")
    table.add_row("Total Cards", str(summary["total_cards"]))
    table.add_row("Due Now", str(summary["due_now"]))
    table.add_row("Never Reviewed", str(summary["never_reviewed"]))
    average = summary["average_easiness"]
    table.add_row(
        "Average Easiness", f"{average:.2f}" if average is not None else "N/A"
    )
    console.print(table)


def _due_label(state: CardMemoryState, now: int) -> str:
    if state.last_reviewed is None:
        return "new"
    if state.is_due(now):
        return "due"
    days = -(-(state.due_at() - now) // DAY_MS)
    return f"in {days}d"


@app.command()
def queue(
    db: Optional[Path] = _db_option,
    catalog: Optional[Path] = _catalog_option,
    limit: int = typer.Option(
        10, "--limit", "-l", min=1, help="Number of upcoming cards to show."
    ),
):
    """Show the order in which the next review pass will ask the words."""
    entries = _load_catalog_or_exit(catalog)
    try:
        states = _load_states(_resolve_db_path(db), len(entries))
    except DatabaseError as e:
        console.print(f"[bold]A database error occurred: {e}[/bold]")
        raise typer.Exit(code=1) from e

    now = system_clock()
    order = schedule(states, now)
    if not order:
        console.print("[yellow]The catalog has no words to review.[/yellow]")
        return

    table = Table(title=f"Next {min(limit, len(order))} of {len(order)} cards")
    table.add_column("#", style="dim")
    table.add_column("Word", style="cyan")
    table.add_column("Status", style="yellow")
    table.add_column("EF", style="magenta")
    table.add_column("Interval", style="magenta")
    for position, index in enumerate(order[:limit], start=1):
        state = states[index]
        table.add_row(
            str(position),
            entries[index].word,
            _due_label(state, now),
            f"{state.easiness:.2f}",
            f"{state.interval}d",
        )
    console.print(table)


# ---------------------------------------------------------------------------
# Reset & restore commands
# ---------------------------------------------------------------------------


@app.command()
def reset(
    db: Optional[Path] = _db_option,
    yes: bool = typer.Option(
        False, "--yes", "-y", help="Bypass confirmation prompt."
    ),
):
    """Delete all stored learning progress. A backup is taken first."""
    db_path = _resolve_db_path(db)
    if not yes:
        confirmed = typer.confirm(
            "All memorization progress will be deleted. "
            "Are you sure you want to reset?"
        )
        if not confirmed:
            console.print("Reset cancelled.")
            raise typer.Exit()

    try:
        backup_path = backup_database(db_path)
        if backup_path != db_path:
            console.print(f"Database backed up to: [dim]{backup_path}[/dim]")
        with KeyValueDatabase(db_path=db_path) as db_inst:
            db_inst.initialize_schema()
            store = CardStateStore(
                db_inst, catalog_size=0, storage_key=get_settings().storage_key
            )
            try:
                succeeded = store.reset()
            finally:
                store.close()
    except DatabaseError as e:
        console.print(f"[bold]A database error occurred: {e}[/bold]")
        raise typer.Exit(code=1) from e

    if not succeeded:
        console.print("[bold red]An error occurred while resetting progress.[/bold red]")
        raise typer.Exit(code=1)
    console.print("[bold green]All learning progress has been reset.[/bold green]")


@app.command()
def restore(
    db: Optional[Path] = _db_option,
    yes: bool = typer.Option(
        False, "--yes", "-y", help="Bypass confirmation prompt."
    ),
):
    """Restores the database from the most recent backup."""
    db_path = _resolve_db_path(db)
    console.print(
        "[bold yellow]Attempting to restore database "
        "from backup...[/bold yellow]"
    )

    latest_backup = find_latest_backup(db_path)

    if not latest_backup:
        console.print("[bold red]Error: No backup files found.[/bold red]")
        raise typer.Exit(code=1)

    console.print(f"Found latest backup: [cyan]{latest_backup.name}[/cyan]")

    if not yes:
        confirmed = typer.confirm(
            "Are you sure you want to overwrite the current "
            "database with this backup?"
        )
        if not confirmed:
            console.print("Restore operation cancelled.")
            raise typer.Exit()

    try:
        shutil.copy2(latest_backup, db_path)
    except OSError as e:
        console.print(
            f"[bold red]An error occurred during restore: {e}[/bold red]"
        )
        raise typer.Exit(code=1) from e
    console.print(
        "[bold green]Database successfully restored "
        f"from {latest_backup.name}[/bold green]"
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main():
    """Run the CLI application, exiting with status 1 on unexpected errors."""
    try:
        app()
    except Exception as e:
        console.print(f"[bold red]UNEXPECTED ERROR: {e}[/bold red]")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
