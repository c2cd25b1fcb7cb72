"""Unit tests for output_formatter.py."""

from decimal import Decimal

import pandas as pd
import pytest

from umsatztool.grouping import GroupedSum, build_tree
from umsatztool.groupings import date_bucket, get_groupings
from umsatztool.models import Account, Amount, MulticashDate, Transaction
from umsatztool.multicash_parser import LineParsingError
from umsatztool.output_formatter import (
    LedgerFormatter,
    PivotFormatter,
    SummaryFormatter,
    TreeFormatter,
)
from umsatztool.parser import ParsingResult


def make_transaction(amount, serial=None, account=200, day="02.02.20", text=None, code=7):
    return Transaction(
        account=Account(account),
        date=MulticashDate.parse(day),
        amount=Amount.parse(amount),
        code=code,
        serial=serial,
        text=text,
    )


class TestTreeFormatter:
    """Tests for TreeFormatter class."""

    def test_format_tree_two_levels(self):
        """Test connectors, continuation bars and sum ordering."""
        transactions = [
            make_transaction("10.00", serial="A", account=200),
            make_transaction("-5.00", serial="B", account=200),
            make_transaction("20.00", serial="A", account=300),
        ]
        root = build_tree(transactions, get_groupings(["account", "serial"]))

        output = TreeFormatter().format_tree(root)

        assert output.split("\n") == [
            "Total: 25.00",
            "├── #300: 20.00",
            "│   └── A: 20.00",
            "│       └── A: 20.00",
            "└── #200: 5.00",
            "    ├── A: 10.00",
            "    │   └── A: 10.00",
            "    └── B: -5.00",
            "        └── B: -5.00",
        ]

    def test_format_tree_ascending(self):
        """Test ascending sibling order."""
        transactions = [
            make_transaction("10.00", serial="A"),
            make_transaction("-5.00", serial="B"),
        ]
        root = build_tree(transactions, get_groupings(["serial"]))

        output = TreeFormatter(descending=False).format_tree(root, label="All")

        lines = output.split("\n")
        assert lines[0] == "All: 5.00"
        assert lines[1] == "├── B: -5.00"
        assert lines[3] == "└── A: 10.00"

    def test_leaf_without_serial_shows_code(self):
        """Test that transactions without a serial are labelled by their code."""
        root = build_tree([make_transaction("3", code=51)], get_groupings(["account"]))

        output = TreeFormatter().format_tree(root)

        assert output.split("\n")[-1] == "    └── 51: 3.00"

    def test_format_empty_tree(self):
        """Test formatting a tree without transactions."""
        root = build_tree([], get_groupings(["serial"]))
        assert TreeFormatter().format_tree(root) == "Total: 0.00"


class TestPivotFormatter:
    """Tests for PivotFormatter class."""

    def _root(self):
        transactions = [
            make_transaction("10.00", serial="A", day="02.02.20"),
            make_transaction("5.00", serial="A", day="03.03.20"),
            make_transaction("-5.00", serial="B", day="04.02.20"),
        ]
        return build_tree(
            transactions,
            get_groupings(["serial"]),
            GroupedSum.reduce,
            date_bucket("month"),
        )

    def test_to_frame_columns(self):
        """Test label columns followed by bucket columns."""
        df = PivotFormatter().to_frame(self._root(), ["serial"], ["02.2020", "03.2020"])
        assert list(df.columns) == ["Total", "serial", "02.2020", "03.2020"]
        assert len(df) == 3

    def test_to_frame_rows(self):
        """Test the root total, skipped label slots and bucket sums."""
        df = PivotFormatter().to_frame(self._root(), ["serial"], ["02.2020", "03.2020"])

        assert df["serial"].tolist() == ["", "A", "B"]
        assert df.loc[0, "Total"] == 10.0
        assert pd.isna(df.loc[1, "Total"])
        assert df.loc[0, "02.2020"] == 5.0
        assert df.loc[0, "03.2020"] == 5.0
        assert df.loc[1, "02.2020"] == 10.0
        assert df.loc[2, "02.2020"] == -5.0
        assert pd.isna(df.loc[2, "03.2020"])

    def test_to_frame_nested(self):
        """Test that each level's key sits in its own column."""
        transactions = [
            make_transaction("1.00", serial="A", account=200),
            make_transaction("2.00", serial="A", account=300),
        ]
        root = build_tree(
            transactions,
            get_groupings(["account", "serial"]),
            GroupedSum.reduce,
            date_bucket("month"),
        )

        df = PivotFormatter().to_frame(root, ["account", "serial"], ["02.2020"])

        assert df["account"].tolist() == ["", "#300", "", "#200", ""]
        assert df["serial"].tolist() == ["", "", "A", "", "A"]

    def test_to_frame_too_few_group_names(self):
        """Test that the group names must cover every tree level."""
        with pytest.raises(ValueError, match="deeper"):
            PivotFormatter().to_frame(self._root(), [], ["02.2020"])

    def test_format_pivot(self):
        """Test the text rendering."""
        output = PivotFormatter().format_pivot(self._root(), ["serial"], ["02.2020", "03.2020"])

        assert "02.2020" in output
        assert "10.00" in output
        assert "-5.00" in output
        assert "nan" not in output.lower()

    def test_format_for_excel(self):
        """Test semicolon separated output with decimal commas."""
        output = PivotFormatter().format_for_excel(
            self._root(),
            ["serial"],
            ["02.2020", "03.2020"],
        )

        lines = output.splitlines()
        assert lines[0] == "Total;serial;02.2020;03.2020"
        assert lines[1] == "10,00;;5,00;5,00"
        assert lines[2] == ";A;10,00;5,00"
        assert lines[3] == ";B;-5,00;"


class TestLedgerFormatter:
    """Tests for LedgerFormatter class."""

    def test_debit(self):
        """Test that a debit posts the amount to the serial."""
        transaction = make_transaction("-40.50", serial="1001", text="Rent")

        output = LedgerFormatter().format_transaction(transaction)

        assert output.split("\n") == [
            "2020-02-02 Rent",
            "    1001  $40.50",
            "    BANK ACCOUNT #200",
        ]

    def test_credit(self):
        """Test that a credit posts the amount to the account."""
        transaction = make_transaction("100", serial="1002")

        output = LedgerFormatter().format_transaction(transaction)

        assert output.split("\n") == [
            "2020-02-02",
            "    1002",
            "    BANK ACCOUNT #200  $100.00",
        ]

    def test_missing_serial(self):
        """Test the payee fallback."""
        output = LedgerFormatter(payee_fallback="Bank").format_transaction(
            make_transaction("1"),
        )
        assert "    Bank" in output.split("\n")

    def test_format_journal(self):
        """Test that entries are separated by blank lines."""
        transactions = [make_transaction("1", serial="a"), make_transaction("2", serial="b")]
        output = LedgerFormatter().format_journal(transactions)
        assert output.count("\n\n") == 1


class TestSummaryFormatter:
    """Tests for SummaryFormatter class."""

    def test_format_summary(self):
        """Test the summary including parsing errors."""
        result = ParsingResult(
            file_path="UMSATZ.TXT",
            transactions=[make_transaction("100"), make_transaction("-40.50")],
            errors=[LineParsingError("bad;line", "Couldn't parse date from \"\"")],
            line_count=3,
            total_income=Decimal("100"),
            total_expenses=Decimal("-40.50"),
        )

        output = SummaryFormatter.format_summary(result)

        assert "=== Multicash Parsing Summary: UMSATZ.TXT ===" in output
        assert "Lines read: 3" in output
        assert "Parsed transactions: 2" in output
        assert "Skipped lines: 1" in output
        assert "Total income: 100.00" in output
        assert "Total expenses: 40.50" in output
        assert "Net balance: 59.50" in output
        assert 'Parsing error occurred while reading line "bad;line"' in output

    def test_format_summary_without_errors(self):
        """Test that no error section is printed for clean files."""
        result = ParsingResult(file_path="UMSATZ.TXT", transactions=[])
        output = SummaryFormatter.format_summary(result)
        assert "Parsing errors" not in output
