"""
Command-line interface for Multicash statement parsing.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from .grouping import GroupingError
from .groupings import (
    DATE_GROUPS,
    GROUPING_NAMES,
    RepeatedGroupingError,
    UnknownGroupingError,
    check_groupings,
)
from .models import DateParsingError, MulticashDate
from .multicash_parser import DEFAULT_CHUNK_SIZE
from .parser import UmsatzParser

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ["tree", "pivot", "excel", "ledger", "summary", "all"]

DEFAULTS = {
    "group_by": ["serial"],
    "date_group": "month",
    "output_format": "tree",
    "encoding": "latin-1",
    "chunk_size": DEFAULT_CHUNK_SIZE,
    "descending": True,
}


class FileSavingError(Exception):
    """Exception raised when a file cannot be saved."""


def load_config(config_file: str | None) -> dict:
    """Load CLI configuration from JSON file."""
    if not config_file:
        return {}

    config_path = Path(config_file)
    if not config_path.exists():
        logger.debug(f"CLI config file {config_file} does not exist")
        return {}

    try:
        with open(config_path, encoding="utf-8") as f:
            config = json.load(f)
        logger.debug(f"Loaded CLI config from {config_file}")
        return config
    except json.JSONDecodeError as e:
        logger.warning(f"Invalid JSON in CLI config file {config_file}: {e}")
        return {}
    except OSError as e:
        logger.warning(f"Failed to load CLI config from {config_file}: {e}")
        return {}


def save_config(config_file: str, config: dict) -> None:
    """Save CLI configuration to JSON file."""
    try:
        config_path = Path(config_file)
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2, ensure_ascii=False)
        logger.info(f"CLI configuration saved to {config_file}")
    except OSError as e:
        logger.error(f"Failed to save CLI config to {config_file}: {e}")
        raise FileSavingError(
            f"Failed to save CLI config to {config_file}: {e}",
        ) from e


class SettingsError(Exception):
    """Exception raised when a configured setting has an invalid value."""


def resolve_settings(args: argparse.Namespace, config: dict) -> dict:
    """Merge defaults, config file values and command-line flags (highest priority)."""
    settings = {**DEFAULTS, **config}
    for key in DEFAULTS:
        value = getattr(args, key, None)
        if value is not None:
            settings[key] = value

    if isinstance(settings["group_by"], str):
        settings["group_by"] = [settings["group_by"]]
    return settings


def validate_settings(settings: dict) -> None:
    """
    Check merged settings against the values the flags accept.

    Raises:
        SettingsError: If output_format, date_group or group_by is invalid
        UnknownGroupingError: If group_by names an unknown grouping
        RepeatedGroupingError: If group_by repeats a grouping
    """
    if settings["output_format"] not in OUTPUT_FORMATS:
        raise SettingsError(
            f"Invalid output_format '{settings['output_format']}'. Available: {OUTPUT_FORMATS}",
        )
    if settings["date_group"] not in list(DATE_GROUPS):
        raise SettingsError(
            f"Invalid date_group '{settings['date_group']}'. Available: {list(DATE_GROUPS)}",
        )
    if not isinstance(settings["group_by"], list):
        raise SettingsError(f"Invalid group_by {settings['group_by']!r}, expected a list")
    check_groupings(settings["group_by"])


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Parse Multicash statement exports (UMSATZ.TXT) and group transactions",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging (DEBUG level)",
    )

    parser.add_argument(
        "--config",
        help="Path to CLI configuration file (contains defaults for group_by, date_group, output_format, encoding)",
    )

    parser.add_argument(
        "files",
        nargs="*",
        help="Paths to Multicash statement files",
    )

    parser.add_argument(
        "--group-by",
        dest="group_by",
        action="append",
        choices=GROUPING_NAMES,
        help="Grouping level, outermost first; repeat for nested groupings",
    )

    parser.add_argument(
        "--date-group",
        dest="date_group",
        choices=list(DATE_GROUPS),
        help="Pivot column buckets",
    )

    parser.add_argument(
        "--format",
        dest="output_format",
        choices=OUTPUT_FORMATS,
        help="Output format",
    )

    parser.add_argument(
        "--encoding",
        help="Character encoding of the statement files",
    )

    parser.add_argument(
        "--chunk-size",
        dest="chunk_size",
        type=int,
        help="Number of bytes read per chunk",
    )

    order = parser.add_mutually_exclusive_group()
    order.add_argument(
        "--descending",
        dest="descending",
        action="store_const",
        const=True,
        help="Sort groups by descending sum",
    )
    order.add_argument(
        "--ascending",
        dest="descending",
        action="store_const",
        const=False,
        help="Sort groups by ascending sum",
    )

    parser.add_argument(
        "--start-date",
        help="Start date filter (DD.MM.YY format)",
    )

    parser.add_argument(
        "--end-date",
        help="End date filter (DD.MM.YY format)",
    )

    parser.add_argument(
        "--save-config",
        action="store_true",
        help="Write the effective settings back to the --config file",
    )

    return parser


def format_result(umsatz_parser: UmsatzParser, result, settings: dict) -> list[str]:
    """Render a parsing result in the configured output format(s)."""
    output_format = settings["output_format"]
    group_by = settings["group_by"]
    outputs = []

    if output_format in ["tree", "all"]:
        outputs.append(umsatz_parser.format_tree(result, group_by))

    if output_format in ["pivot", "all"]:
        outputs.append(
            umsatz_parser.format_pivot(result, group_by, settings["date_group"]),
        )

    if output_format == "excel":
        outputs.append(
            umsatz_parser.format_pivot(
                result,
                group_by,
                settings["date_group"],
                excel=True,
            ),
        )

    if output_format in ["ledger", "all"]:
        outputs.append(umsatz_parser.format_ledger(result))

    if output_format in ["summary", "all"]:
        outputs.append(umsatz_parser.format_summary(result))

    return outputs


def main():
    """Main CLI entry point."""
    parser = build_argument_parser()
    args = parser.parse_args()

    # Configure logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s: %(message)s",
    )

    config = load_config(args.config)
    settings = resolve_settings(args, config)

    try:
        validate_settings(settings)
    except (SettingsError, UnknownGroupingError, RepeatedGroupingError) as e:
        logger.error(f"Error: {e}")
        sys.exit(1)

    if args.save_config:
        if not args.config:
            logger.error("Error: --save-config requires --config")
            sys.exit(1)
        save_config(args.config, settings)
        if not args.files:
            return

    if not args.files:
        parser.error("at least one statement file is required")

    # Parse dates if provided
    start_date = None
    end_date = None

    try:
        if args.start_date:
            start_date = MulticashDate.parse(args.start_date)
        if args.end_date:
            end_date = MulticashDate.parse(args.end_date)
    except DateParsingError as e:
        logger.error(f"Error: {e}")
        sys.exit(1)

    umsatz_parser = UmsatzParser(
        encoding=settings["encoding"],
        chunk_size=settings["chunk_size"],
        descending=settings["descending"],
    )

    for file_path in args.files:
        try:
            result = umsatz_parser.parse_file(file_path, start_date, end_date)
        except OSError as e:
            logger.error(f"Error reading file: {e}")
            sys.exit(1)

        try:
            outputs = format_result(umsatz_parser, result, settings)
        except (GroupingError, UnknownGroupingError) as e:
            logger.error(f"Error grouping transactions: {e}")
            sys.exit(1)

        # Output to stdout for user to copy/paste
        logger.info(("\n" + "=" * 50 + "\n").join(outputs))

        for error in result.errors:
            logger.warning(str(error))


if __name__ == "__main__":
    main()
