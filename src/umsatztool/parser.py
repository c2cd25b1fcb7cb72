"""
Main parser class that orchestrates the parsing process.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from .grouping import GroupedSum, GroupNode, build_tree, sum_amounts
from .groupings import date_bucket, get_groupings, get_head
from .models import Transaction
from .multicash_parser import DEFAULT_CHUNK_SIZE, LineParsingError, TransactionParser
from .output_formatter import (
    LedgerFormatter,
    PivotFormatter,
    SummaryFormatter,
    TreeFormatter,
)

logger = logging.getLogger(__name__)


@dataclass
class ParsingResult:
    """Result of parsing one statement file."""

    file_path: str
    transactions: list[Transaction]
    errors: list[LineParsingError] = field(default_factory=list)
    line_count: int = 0
    total_income: Decimal = Decimal(0)
    total_expenses: Decimal = Decimal(0)


class UmsatzParser:
    """Main parser class for Multicash statements."""

    def __init__(
        self,
        encoding: str = "latin-1",
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        descending: bool = True,
    ):
        self.encoding = encoding
        self.chunk_size = chunk_size
        self.tree_formatter = TreeFormatter(descending)
        self.pivot_formatter = PivotFormatter(descending)
        self.ledger_formatter = LedgerFormatter()
        self.summary_formatter = SummaryFormatter()

    def parse_file(
        self,
        file_path: str,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> ParsingResult:
        """
        Parse a Multicash statement file.

        Args:
            file_path: Path to the UMSATZ.TXT file
            start_date: Optional start date filter
            end_date: Optional end date filter

        Returns:
            ParsingResult object
        """
        logger.debug(f"Reading {file_path} in chunks of {self.chunk_size} bytes")
        with open(file_path, "rb") as f:
            return self.parse_stream(f, str(file_path), start_date, end_date)

    def parse_stream(
        self,
        source,
        name: str = "<stream>",
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> ParsingResult:
        """Parse an iterable of byte chunks or a binary file object."""
        # TransactionParser is single-pass, one per stream
        transaction_parser = TransactionParser(source, self.encoding, self.chunk_size)
        transactions = list(transaction_parser)

        logger.info(
            f"Parsed {len(transactions)} transactions from {name}, "
            f"skipped {len(transaction_parser.errors)} lines",
        )

        if start_date is not None or end_date is not None:
            transactions = self.filter_by_date_range(transactions, start_date, end_date)

        total_income, total_expenses = self._calculate_income_expenses(transactions)

        return ParsingResult(
            file_path=name,
            transactions=transactions,
            errors=transaction_parser.errors,
            line_count=transaction_parser.line_count,
            total_income=total_income,
            total_expenses=total_expenses,
        )

    def filter_by_date_range(
        self,
        transactions: list[Transaction],
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[Transaction]:
        """
        Filter transactions by date range.

        Args:
            transactions: List of transactions to filter
            start_date: Start date (inclusive), None for no lower bound
            end_date: End date (inclusive), None for no upper bound

        Returns:
            Filtered list of transactions
        """
        return [
            t
            for t in transactions
            if (start_date is None or start_date <= t.date)
            and (end_date is None or t.date <= end_date)
        ]

    def group(
        self,
        transactions: Iterable[Transaction],
        groupings: list[str],
        date_group: str | None = None,
    ) -> GroupNode:
        """Group transactions by the named groupings, optionally bucketed by date."""
        if date_group:
            return build_tree(
                transactions,
                get_groupings(groupings),
                GroupedSum.reduce,
                date_bucket(date_group),
            )
        return build_tree(transactions, get_groupings(groupings), sum_amounts)

    def format_tree(self, result: ParsingResult, groupings: list[str]) -> str:
        """Format result as a console tree."""
        root = self.group(result.transactions, groupings)
        return self.tree_formatter.format_tree(root)

    def format_pivot(
        self,
        result: ParsingResult,
        groupings: list[str],
        date_group: str,
        excel: bool = False,
    ) -> str:
        """Format result as a pivot table with one column per date bucket."""
        root = self.group(result.transactions, groupings, date_group)
        head = get_head((t.date for t in result.transactions), date_group)
        if excel:
            return self.pivot_formatter.format_for_excel(root, groupings, head)
        return self.pivot_formatter.format_pivot(root, groupings, head)

    def format_ledger(self, result: ParsingResult) -> str:
        """Format result as Ledger journal entries."""
        return self.ledger_formatter.format_journal(result.transactions)

    def format_summary(self, result: ParsingResult) -> str:
        """Format summary information."""
        return self.summary_formatter.format_summary(result)

    def _calculate_income_expenses(
        self,
        transactions: list[Transaction],
    ) -> tuple[Decimal, Decimal]:
        """Calculate total income and expenses."""
        total_income = Decimal(0)
        total_expenses = Decimal(0)

        for transaction in transactions:
            amount = transaction.amount.value
            if amount >= 0:
                total_income += amount
            else:
                total_expenses += amount

        return total_income, total_expenses
