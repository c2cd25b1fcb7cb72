"""
Output formatting for grouped transactions.
"""

import logging
import math
from collections.abc import Iterable
from decimal import Decimal

import pandas as pd

from .grouping import GroupNode, TransactionList
from .models import Transaction

logger = logging.getLogger(__name__)

BRANCH = "├── "
LAST_BRANCH = "└── "
PIPE = "│   "
SPACE = "    "


class TreeFormatter:
    """Formats a grouping tree as a console tree."""

    def __init__(self, descending: bool = True):
        self.descending = descending

    def format_tree(self, root: GroupNode | TransactionList, label: str = "Total") -> str:
        """
        Format a grouping tree.

        Siblings are sorted by their sums. Leaves list their transactions
        as ``serial: amount``.

        Args:
            root: Root of the grouping tree
            label: Label of the root line

        Returns:
            Formatted tree
        """
        lines = [f"{label}: {self._format_amount(root.total)}"]
        lines.extend(self._format_children(root, ""))
        return "\n".join(lines)

    def _format_children(self, node: GroupNode | TransactionList, padding: str) -> list[str]:
        if node.is_leaf:
            entries = [(self._format_transaction(t), None) for t in node]
        else:
            entries = [
                (f"{key}: {self._format_amount(child.total)}", child)
                for key, child in node.children(reverse=self.descending)
            ]

        lines = []
        for idx, (text, child) in enumerate(entries):
            is_last = idx == len(entries) - 1
            lines.append(padding + (LAST_BRANCH if is_last else BRANCH) + text)
            if child is not None:
                lines.extend(
                    self._format_children(child, padding + (SPACE if is_last else PIPE)),
                )

        return lines

    def _format_transaction(self, transaction: Transaction) -> str:
        label = transaction.serial or transaction.code
        return f"{label}: {self._format_amount(transaction.amount.value)}"

    def _format_amount(self, amount: Decimal) -> str:
        return f"{amount:.2f}"


class PivotFormatter:
    """Formats a bucketed grouping tree as a pivot table."""

    TOTAL_COLUMN = "Total"

    def __init__(self, descending: bool = True):
        self.descending = descending

    def to_frame(
        self,
        root: GroupNode,
        group_names: list[str],
        head: list[str],
    ) -> pd.DataFrame:
        """
        Build the pivot table.

        One row per node, depth first. A node's key sits in the column of its
        grouping level and the other label columns stay blank; the root row
        carries its total in the ``Total`` column. Bucket columns hold the
        node's partial sums.

        Args:
            root: Root built with a bucketed reduction
            group_names: Names of the grouping levels, outermost first
            head: Bucket labels, in column order

        Returns:
            DataFrame with the label columns followed by the bucket columns
        """
        label_columns = [self.TOTAL_COLUMN, *group_names]
        rows = []

        for path, node in root.walk(reverse=self.descending):
            if len(path) >= len(label_columns):
                raise ValueError(
                    f"Tree is deeper than the {len(group_names)} group names given",
                )

            row: dict[str, object] = dict.fromkeys(group_names, "")
            row[self.TOTAL_COLUMN] = math.nan
            if path:
                row[label_columns[len(path)]] = path[-1]
            else:
                row[self.TOTAL_COLUMN] = float(node.total)

            for bucket in head:
                amount = node.amount_for(bucket)
                row[bucket] = float(amount) if amount != 0 else math.nan

            rows.append(row)

        logger.debug(f"Built pivot table with {len(rows)} rows")
        return pd.DataFrame(rows, columns=[*label_columns, *head])

    def format_pivot(self, root: GroupNode, group_names: list[str], head: list[str]) -> str:
        df = self.to_frame(root, group_names, head)
        return df.to_string(index=False, na_rep="", float_format="{:.2f}".format)

    def format_for_excel(self, root: GroupNode, group_names: list[str], head: list[str]) -> str:
        """Format for German Excel (semicolon separated, comma as decimal separator)."""
        df = self.to_frame(root, group_names, head)
        return df.to_csv(sep=";", index=False, decimal=",", float_format="%.2f")


class LedgerFormatter:
    """Formats transactions as Ledger journal entries."""

    def __init__(self, currency: str = "$", payee_fallback: str = "Unknown"):
        self.currency = currency
        self.payee_fallback = payee_fallback

    def format_transaction(self, transaction: Transaction) -> str:
        amount = f"{self.currency}{abs(transaction.amount)}"
        header = f"{transaction.date} {transaction.text or ''}".rstrip()
        payee = transaction.serial or self.payee_fallback
        account = transaction.account.ledger_name

        if transaction.amount.is_debit:
            postings = [f"    {payee}  {amount}", f"    {account}"]
        else:
            postings = [f"    {payee}", f"    {account}  {amount}"]

        return "\n".join([header, *postings])

    def format_journal(self, transactions: Iterable[Transaction]) -> str:
        return "\n\n".join(self.format_transaction(t) for t in transactions)


class SummaryFormatter:
    """Formats summary information."""

    @staticmethod
    def format_summary(result) -> str:
        """Format a summary of a parsed statement file, including skipped lines.

        Args:
            result: ParsingResult object
        """
        lines = []
        lines.append(f"=== Multicash Parsing Summary: {result.file_path} ===")
        lines.append(f"Lines read: {result.line_count}")
        lines.append(f"Parsed transactions: {len(result.transactions)}")
        lines.append(f"Skipped lines: {len(result.errors)}")
        lines.append(f"Total income: {result.total_income:.2f}")
        lines.append(f"Total expenses: {abs(result.total_expenses):.2f}")
        lines.append(
            f"Net balance: {result.total_income + result.total_expenses:.2f}",
        )

        if result.errors:
            lines.append("")
            lines.append("Parsing errors:")
            for error in result.errors:
                lines.append(f"  • {error}")

        return "\n".join(lines)
