"""pnlplan CLI.

Commands:
- init: Initialize database schema
- fill-forecast: Fill forecast months from a saved version
- save-version: Snapshot the draft statement
- lock-version: Lock or unlock a saved version
- list-versions: Show saved versions of a statement
- web serve: Run the HTTP API
"""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from pnlplan.config import get_config
from pnlplan.db.connection import close_db, get_session, init_db
from pnlplan.db.statements import StatementStore
from pnlplan.exceptions import PnlError
from pnlplan.models import FillForecastRequest, StatementScope
from pnlplan.statements.reconciler import ForecastReconciler
from pnlplan.versions.service import VersionService

app = typer.Typer(
    name="pnlplan",
    help="pnlplan - P&L planning: versions, imports and forecast fill",
    no_args_is_help=True,
)

web_cli = typer.Typer(help="Web API")
app.add_typer(web_cli, name="web")

console = Console()


def _run(coro):
    """Run a coroutine, reporting user-facing errors and disposing the engine."""

    async def _wrapped():
        try:
            return await coro
        finally:
            await close_db()

    try:
        return asyncio.run(_wrapped())
    except PnlError as e:
        console.print(f"[bold red]✗[/bold red] {e.message}")
        raise typer.Exit(code=1) from None


def _store(session) -> StatementStore:
    return StatementStore(session, get_config().reconcile)


@app.command()
def init(
    drop: bool = typer.Option(False, "--drop", help="Drop existing tables"),
):
    """Initialize database schema."""
    config = get_config()
    console.print(f"[bold]Initializing database:[/bold] {config.db.url}")
    if drop:
        console.print("[yellow]Dropping existing tables...[/yellow]")
    _run(init_db(drop=drop))
    console.print("[bold green]✓[/bold green] Database initialized")


@app.command(name="fill-forecast")
def fill_forecast_cmd(
    branch_id: int = typer.Option(..., "--branch", help="Branch ID"),
    department: str = typer.Option(..., "--department", "-d", help="Department"),
    year: int = typer.Option(..., "--year", help="Statement year"),
    source_version_id: int = typer.Option(..., "--source", help="Source version ID"),
    target_version_id: int | None = typer.Option(
        None, "--target", help="Target version ID (default: draft)"
    ),
):
    """Fill forecast months of the draft (or a version) from a saved version."""
    request = FillForecastRequest(
        branch_id=branch_id,
        department=department,
        year=year,
        source_version_id=source_version_id,
        target_version_id=target_version_id,
    )
    target = f"version {target_version_id}" if target_version_id else "draft"
    console.print(
        f"[bold]Filling forecast:[/bold] {department} {year} "
        f"(branch {branch_id}) from version {source_version_id} into {target}"
    )

    async def _fill():
        async with get_session() as session:
            return await ForecastReconciler(_store(session)).fill_forecast(request)

    result = _run(_fill())
    if result.message:
        console.print(f"[yellow]{result.message}[/yellow]")
        return

    table = Table(title="Forecast Fill")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")
    table.add_row("Forecast months", ", ".join(result.forecast_months))
    table.add_row("Rows updated", str(result.updated_count))
    table.add_row("Rows inserted", str(result.inserted_count))
    console.print(table)


@app.command(name="save-version")
def save_version_cmd(
    name: str = typer.Argument(..., help="Version name"),
    branch_id: int = typer.Option(..., "--branch", help="Branch ID"),
    department: str = typer.Option(..., "--department", "-d", help="Department"),
    year: int = typer.Option(..., "--year", help="Statement year"),
    actual_months: int = typer.Option(0, "--actual-months", min=0, max=12),
):
    """Snapshot the draft statement as a named version."""
    scope = StatementScope(branch_id=branch_id, department=department, year=year)

    async def _save():
        async with get_session() as session:
            return await VersionService(_store(session)).save_version(scope, name, actual_months)

    version = _run(_save())
    console.print(
        f"[bold green]✓[/bold green] Saved version {version.version_name!r} (id {version.id})"
    )


@app.command(name="lock-version")
def lock_version_cmd(
    version_id: int = typer.Argument(..., help="Version ID"),
    unlock: bool = typer.Option(False, "--unlock", help="Unlock instead of lock"),
):
    """Lock (or unlock) a saved version."""

    async def _lock():
        async with get_session() as session:
            return await VersionService(_store(session)).set_version_lock(version_id, not unlock)

    version = _run(_lock())
    state = "locked" if version.is_locked else "unlocked"
    console.print(f"[bold green]✓[/bold green] Version {version.version_name!r} {state}")


@app.command(name="list-versions")
def list_versions_cmd(
    branch_id: int = typer.Option(..., "--branch", help="Branch ID"),
    department: str = typer.Option(..., "--department", "-d", help="Department"),
    year: int = typer.Option(..., "--year", help="Statement year"),
):
    """Show saved versions of a statement."""
    scope = StatementScope(branch_id=branch_id, department=department, year=year)

    async def _list():
        async with get_session() as session:
            return await VersionService(_store(session)).list_versions(scope)

    versions = _run(_list())
    if not versions:
        console.print("[yellow]No saved versions[/yellow]")
        return

    table = Table(title=f"Versions: {department} {year}")
    table.add_column("ID", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Actual months", justify="right")
    table.add_column("Locked", style="yellow")
    table.add_column("Notes", style="dim")
    for v in versions:
        table.add_row(
            str(v.id),
            v.version_name,
            str(v.actual_months),
            "yes" if v.is_locked else "",
            v.notes or "",
        )
    console.print(table)


@web_cli.command("serve")
def web_serve(
    host: str = typer.Option("0.0.0.0", help="Host to bind"),
    port: int = typer.Option(8001, help="Port to bind"),
    reload: bool = typer.Option(False, help="Enable autoreload (dev only)"),
):
    """Run the FastAPI app."""
    import uvicorn

    typer.echo(f"Starting pnlplan API on http://{host}:{port}")
    uvicorn.run("pnlplan.web.app:app", host=host, port=port, reload=reload, workers=1)


if __name__ == "__main__":
    app()
