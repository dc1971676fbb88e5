"""Command-line interface for TimeLedger maintenance and reports."""

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .database import async_session, close_db, init_db
from .engine.migrator import ConsistencyMigrator
from .engine.rename_mapping import configured_rename_mapping, load_rename_mapping
from .models.user import REPORT_ROLES
from .services.reports import ReportService

app = typer.Typer(
    name="timeledger",
    help="TimeLedger - task log maintenance and hour reports",
    add_completion=False,
)
console = Console()


async def _create_tables():
    try:
        await init_db()
    finally:
        await close_db()


async def _with_session(work):
    await init_db()
    try:
        async with async_session() as session:
            return await work(session)
    finally:
        await close_db()


@app.command("init-db")
def init_database() -> None:
    """Create the database tables."""
    try:
        asyncio.run(_create_tables())
        console.print("[bold green]✓[/bold green] Database ready")
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def reconcile(
    mapping: Optional[Path] = typer.Option(None, "--mapping", "-m", help="Rename mapping JSON file"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Report changes without saving them"),
) -> None:
    """Repair project references on every stored task entry."""
    try:
        rename_mapping = load_rename_mapping(mapping) if mapping else configured_rename_mapping()
        console.print(f"[bold green]Reconciling task entries[/bold green] ({len(rename_mapping)} rename rules)")
        if dry_run:
            console.print("[bold yellow]Dry run:[/bold yellow] nothing will be saved")

        result = asyncio.run(_with_session(
            lambda session: ConsistencyMigrator(session).reconcile(rename_mapping, dry_run=dry_run)
        ))

        console.print(f"\n[bold green]✓[/bold green] Updated {result.updated_entry_count} entries "
                      f"in {result.updated_log_count} logs")
        if result.failed_log_count:
            console.print(f"[bold red]✗[/bold red] {result.failed_log_count} logs failed to save")
        if result.unmatched_names:
            console.print("\n[bold]Unmatched names:[/bold]")
            for name in sorted(result.unmatched_names):
                console.print(f"  • {escape(name)}")

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def propagate(
    project_id: str = typer.Argument(..., help="Project ID whose name should be pushed to entries"),
) -> None:
    """Write a project's current name onto every entry that references it."""
    try:
        updated = asyncio.run(_with_session(
            lambda session: ConsistencyMigrator(session).propagate_rename(project_id)
        ))
        console.print(f"[bold green]✓[/bold green] Updated {updated} entries")
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def audit(
    as_json: bool = typer.Option(False, "--json", help="Print the audit as JSON"),
) -> None:
    """Count task entries per consistency state without changing them."""
    try:
        rename_mapping = configured_rename_mapping()
        result = asyncio.run(_with_session(
            lambda session: ConsistencyMigrator(session).audit(rename_mapping)
        ))

        if as_json:
            console.print_json(json.dumps(result.to_dict()))
            return

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("State")
        table.add_column("Entries", justify="right")
        for state in ("resolved", "stale_name", "missing_name", "name_only", "orphaned"):
            table.add_row(state, str(getattr(result, state)))
        console.print(table)

        if result.unmatched_names:
            console.print("\n[bold]Unmatched names:[/bold]")
            for name in sorted(result.unmatched_names):
                console.print(f"  • {escape(name)}")

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def report(
    start_date: Optional[str] = typer.Option(None, "--start", "-s", help="First day (YYYY-MM-DD)"),
    end_date: Optional[str] = typer.Option(None, "--end", "-e", help="Last day (YYYY-MM-DD)"),
) -> None:
    """Print the grand project x role report."""
    try:
        grand = asyncio.run(_with_session(
            lambda session: ReportService(session).generate_grand_report(start_date, end_date)
        ))

        console.print(f"[bold green]Hours from[/bold green] {grand.date_range.start_date} "
                      f"[bold green]to[/bold green] {grand.date_range.end_date}\n")

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Project", style="cyan")
        for role in REPORT_ROLES:
            table.add_column(role.value, justify="right")
        table.add_column("Total", justify="right", style="bold")

        for row in grand.projects:
            table.add_row(
                escape(row.project),
                *[f"{getattr(row, role.value):.2f}" for role in REPORT_ROLES],
                f"{row.total_hours:.2f}",
            )
        table.add_row(
            "[bold]All projects[/bold]",
            *[f"{getattr(grand.totals, role.value):.2f}" for role in REPORT_ROLES],
            f"{grand.totals.total_hours:.2f}",
        )
        console.print(table)

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
