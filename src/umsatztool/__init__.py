"""
Umsatztool - A streaming parser for Multicash bank statement exports.

This package provides tools to parse Multicash (UMSATZ.TXT) files, group
transactions into hierarchies with running sums, and render them as trees,
pivot tables or Ledger journals.
"""

from .grouping import GroupedSum, GroupNode, TransactionList, build_tree
from .line_buffer import LineBuffer
from .models import Account, Amount, MulticashDate, Transaction, amount_of
from .multicash_parser import LineParsingError, TransactionParser, parse_line
from .output_formatter import (
    LedgerFormatter,
    PivotFormatter,
    SummaryFormatter,
    TreeFormatter,
)
from .parser import ParsingResult, UmsatzParser

__version__ = "0.1.0"
__all__ = [
    "Account",
    "Amount",
    "GroupNode",
    "GroupedSum",
    "LedgerFormatter",
    "LineBuffer",
    "LineParsingError",
    "MulticashDate",
    "ParsingResult",
    "PivotFormatter",
    "SummaryFormatter",
    "Transaction",
    "TransactionList",
    "TransactionParser",
    "TreeFormatter",
    "UmsatzParser",
    "amount_of",
    "build_tree",
    "parse_line",
]
