"""
SheetLedger - an Excel workbook on GitHub used as the finance database.

The workbook is loaded into an in-memory collection store on startup;
every mutation is audited and the whole store is written back on save.
"""

__version__ = "0.1.0"
