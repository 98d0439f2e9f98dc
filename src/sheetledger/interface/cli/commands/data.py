"""
Data commands - load, save, export and inspect the workbook.
"""

import logging
from pathlib import Path
from typing import Optional

import typer

from sheetledger.application.container import Container
from sheetledger.application.seed import build_default_dataset
from sheetledger.domain.errors import SheetLedgerError
from sheetledger.domain.validation import validate_dataset
from sheetledger.infrastructure.excel.template import TEMPLATE_FILENAME, write_template
from sheetledger.interface.cli.formatters import (
    collection_table,
    console,
    error,
    success,
    validation_report,
    warning,
)

logger = logging.getLogger(__name__)


def summary(ctx: typer.Context):
    """
    Load the workbook and show record counts per collection.
    """
    container: Container = ctx.obj
    try:
        result = container.session.load()
    except (SheetLedgerError, ValueError) as e:
        logger.error("Summary failed: %s", e)
        error(e)
        raise typer.Exit(1)

    if result.used_defaults:
        warning(f"Remote workbook unavailable, showing default data ({result.reason})")
    info = container.session.summary()
    console.print(collection_table(info["collections"], f"{container.settings.workbook_filename} ({result.source})"))


def pull(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Destination file."),
):
    """
    Download the remote workbook, reconcile it and save a local copy.

    Fails instead of falling back to default data.
    """
    container: Container = ctx.obj
    try:
        result = container.session.load()
        if result.used_defaults:
            raise SheetLedgerError(f"Could not load remote workbook: {result.reason}")
        path = container.session.export_to_file(output or Path(container.settings.workbook_filename))
    except (SheetLedgerError, ValueError, OSError) as e:
        logger.error("Pull failed: %s", e)
        error(e)
        raise typer.Exit(1)
    success(f"Pulled workbook to {path}")


def push(
    ctx: typer.Context,
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="Local workbook to upload."),
    message: Optional[str] = typer.Option(None, "--message", "-m", help="Commit message."),
):
    """
    Reconcile a local workbook and commit it as the remote workbook.
    """
    container: Container = ctx.obj
    try:
        session = container.session
        session.load_from_file(source)
        result = session.save(message)
    except (SheetLedgerError, ValueError, OSError) as e:
        logger.error("Push failed: %s", e)
        error(e)
        raise typer.Exit(1)

    if not result.success:
        error(result.error)
        raise typer.Exit(1)
    success(f"Pushed {source.name} as {container.settings.workbook_filename} ({result.revision[:7]})")


def export(
    ctx: typer.Context,
    output: Path = typer.Argument(..., dir_okay=False, help="Destination file."),
    defaults: bool = typer.Option(False, "--defaults", help="Export the default dataset without contacting GitHub."),
):
    """
    Write the current data (remote, or defaults on fallback) to a local workbook.
    """
    container: Container = ctx.obj
    try:
        session = container.session
        if defaults:
            session.client = None
        result = session.load()
        path = session.export_to_file(output)
    except (SheetLedgerError, ValueError, OSError) as e:
        logger.error("Export failed: %s", e)
        error(e)
        raise typer.Exit(1)

    if result.used_defaults and not defaults:
        warning(f"Remote workbook unavailable, exported default data ({result.reason})")
    success(f"Exported workbook to {path}")


def template(
    output: Path = typer.Option(Path(TEMPLATE_FILENAME), "--output", "-o", help="Destination file."),
    samples: bool = typer.Option(True, "--samples/--no-samples", help="Include sample records."),
):
    """
    Generate a template workbook with every sheet and its headers.
    """
    try:
        path = write_template(build_default_dataset(include_samples=samples), output)
    except OSError as e:
        logger.error("Template generation failed: %s", e)
        error(e)
        raise typer.Exit(1)
    success(f"Template written to {path}")


def validate(
    ctx: typer.Context,
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="Local workbook to check."),
):
    """
    Run record validation (journal balance, required fields, ...) over a local workbook.
    """
    container: Container = ctx.obj
    try:
        container.session.load_from_file(source)
    except (SheetLedgerError, OSError) as e:
        logger.error("Validation failed: %s", e)
        error(e)
        raise typer.Exit(1)

    store = container.store
    problems = validate_dataset({name: store.list(name) for name in store.collection_names()})
    validation_report(problems)
    if problems:
        raise typer.Exit(1)
