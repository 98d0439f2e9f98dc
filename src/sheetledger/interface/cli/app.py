"""
CLI Orchestrator - Main Entry Point

Wires the global options (config directory, verbosity, log file) and
registers the data and remote command groups on one typer app.
"""

import logging
from pathlib import Path
from typing import Optional

import typer

from sheetledger.application.container import Container
from sheetledger.infrastructure.logging_config import setup_logging
from sheetledger.interface.cli.commands import data, remote

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="sheetledger",
    help="Finance data kept in an Excel workbook on GitHub.",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    config_dir: Optional[Path] = typer.Option(
        None,
        "--config-dir",
        "-c",
        help="Directory containing sheetledger.json (default: ./config).",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also write logs to this file."),
):
    """
    📒 SheetLedger - workbook-backed finance data

    Loads the canonical workbook from GitHub into memory, and writes it
    back on push. Falls back to the built-in reference data when the
    workbook cannot be fetched.
    """
    setup_logging(logging.DEBUG if verbose else logging.INFO, str(log_file) if log_file else None)
    ctx.obj = Container(config_dir)


# Data commands
app.command("summary")(data.summary)
app.command("pull")(data.pull)
app.command("push")(data.push)
app.command("export")(data.export)
app.command("template")(data.template)
app.command("validate")(data.validate)

# Remote commands
app.command("files")(remote.files)
app.command("check")(remote.check)


def main() -> int:
    """
    Main entry point for the SheetLedger CLI.

    Returns:
        int: Exit code (0 for success, non-zero for failure)
    """
    try:
        app()
        return 0
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 1
