"""
Command line interface for SheetLedger.
"""

from sheetledger.interface.cli.app import app, main

__all__ = ["app", "main"]
