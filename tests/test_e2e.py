"""End-to-end tests for the complete Multicash parsing workflow."""

import json
import subprocess
import sys
import tempfile
from decimal import Decimal
from pathlib import Path

from umsatztool.parser import UmsatzParser


def make_line(account, day, serial, amount, code, text=""):
    """Build a line the way a bank export writes it (34+ columns)."""
    cols = ["EUR"] * 40
    cols[0] = "062000"
    cols[1] = account
    cols[2] = "12345678"
    cols[3] = day
    cols[6] = text
    cols[9] = serial
    cols[10] = amount
    cols[33] = code
    return ";".join(cols)


STATEMENT = "\r\n".join(
    [
        make_line("200", "02.01.24", "000001", "2000.00", "51", "Gehalt"),
        make_line("200", "05.01.24", "000002", "-50.25", "5"),
        make_line("200", "15.01.24", "000002", "-49.75", "5"),
        "AUSZUG;END",
        make_line("200", "01.02.24", "000003", "-800.00", "5", "Miete"),
        make_line("300", "10.02.24", "", "120.00", "51"),
        make_line("300", "31.02.24", "000004", "1.00", "51"),
    ],
) + "\r\n"


class TestEndToEnd:
    """End-to-end tests using real files and CLI."""

    def test_e2e_complete_workflow(self):
        """Test complete workflow: parsing, grouping and output generation."""
        with tempfile.TemporaryDirectory() as tmpdir:
            statement_file = Path(tmpdir) / "UMSATZ.TXT"
            with open(statement_file, "wb") as f:
                f.write(STATEMENT.encode("latin-1"))

            parser = UmsatzParser(chunk_size=13)
            result = parser.parse_file(str(statement_file))

            # Two malformed lines: the trailer and the impossible date
            assert len(result.transactions) == 5
            assert len(result.errors) == 2
            assert result.errors[0].line == "AUSZUG;END"
            assert "31.02.24" in result.errors[1].reason

            assert result.total_income == Decimal("2120.00")
            assert result.total_expenses == Decimal("-900.00")

            root = parser.group(result.transactions, ["account", "serial", "month"])
            assert root.total == Decimal("1220.00")
            assert root["#200"]["000002"]["01.2024"].total == Decimal("-100.00")
            assert list(root["#300"]) == ["(none)"]

            tree_output = parser.format_tree(result, ["account", "serial"])
            assert tree_output.startswith("Total: 1220.00\n├── #200: 1100.00")

            pivot_output = parser.format_pivot(result, ["account"], "month")
            assert "01.2024" in pivot_output
            assert "02.2024" in pivot_output

            summary_output = parser.format_summary(result)
            assert "Parsed transactions: 5" in summary_output
            assert "Skipped lines: 2" in summary_output

    def test_e2e_cli_subprocess(self):
        """Test running the CLI as a module."""
        with tempfile.TemporaryDirectory() as tmpdir:
            statement_file = Path(tmpdir) / "UMSATZ.TXT"
            config_file = Path(tmpdir) / "cli_config.json"

            with open(statement_file, "wb") as f:
                f.write(STATEMENT.encode("latin-1"))

            with open(config_file, "w", encoding="utf-8") as f:
                json.dump(
                    {"group_by": ["account", "serial"], "output_format": "tree"},
                    f,
                    indent=2,
                )

            result = subprocess.run(
                [
                    sys.executable,
                    "-m",
                    "umsatztool.cli",
                    "--config",
                    str(config_file),
                    str(statement_file),
                ],
                capture_output=True,
                text=True,
                cwd=Path(__file__).parent.parent,
            )

            # CLI should succeed
            assert result.returncode == 0

            output = result.stdout + result.stderr
            assert "Total: 1220.00" in output
            assert "AUSZUG;END" in output
