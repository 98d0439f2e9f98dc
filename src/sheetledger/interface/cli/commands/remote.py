"""
Remote commands - inspect the GitHub repository holding the workbook.
"""

import logging

import typer

from sheetledger.application.container import Container
from sheetledger.domain.errors import SheetLedgerError
from sheetledger.interface.cli.formatters import console, error, files_table, success

logger = logging.getLogger(__name__)


def _require_client(container: Container):
    client = container.client
    if client is None:
        error("GitHub repository is not configured (set github.owner and github.repository)")
        raise typer.Exit(1)
    return client


def files(ctx: typer.Context):
    """
    List workbook files in the repository data path.
    """
    container: Container = ctx.obj
    try:
        client = _require_client(container)
        remote_files = client.list_files()
    except (SheetLedgerError, ValueError) as e:
        logger.error("Listing files failed: %s", e)
        error(e)
        raise typer.Exit(1)

    if not remote_files:
        console.print("[yellow]No workbook files found[/yellow]")
        return
    console.print(files_table(remote_files))


def check(ctx: typer.Context):
    """
    Show the configured repository and test the connection.
    """
    container: Container = ctx.obj
    try:
        settings = container.settings
    except ValueError as e:
        error(e)
        raise typer.Exit(1)

    gh = settings.github
    console.print("[blue]📊 Configuration[/blue]")
    console.print(f"  Repository: {gh.owner or '?'}/{gh.repository or '?'} ({gh.branch})")
    console.print(f"  Data path:  {gh.data_path or '/'}")
    console.print(f"  Workbook:   {settings.workbook_filename}")
    console.print(f"  Token:      {'[green]set[/green]' if gh.token else '[yellow]not set (read-only)[/yellow]'}")

    client = _require_client(container)
    if not client.test_connection():
        error("Could not reach the repository")
        raise typer.Exit(1)
    success("Repository reachable")
