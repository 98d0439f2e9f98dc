"""
SheetLedger - workbook-backed finance data store

Loads the finance workbook from GitHub into memory, keeps an audit trail
of every change, and commits the workbook back on push.
"""

import sys
from sheetledger.interface.cli import main


if __name__ == "__main__":
    sys.exit(main())
