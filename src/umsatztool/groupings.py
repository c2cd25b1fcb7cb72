"""
Named grouping criteria for transactions.
"""

from collections.abc import Callable, Iterable
from datetime import date

from .models import Month, Transaction, Week

NO_VALUE = "(none)"


class UnknownGroupingError(KeyError):
    """Exception raised when a grouping or date group name is not known."""


class RepeatedGroupingError(ValueError):
    """Exception raised when a grouping is used on more than one level."""


DATE_GROUPS: dict[str, Callable[[date], str]] = {
    "day": lambda d: d.isoformat(),
    "week": lambda d: str(Week(d)),
    "month": lambda d: str(Month(d)),
}

TRANSACTION_GROUPINGS: dict[str, Callable[[Transaction], str]] = {
    "account": lambda t: str(t.account),
    "month": lambda t: str(Month(t.date)),
    "week": lambda t: str(Week(t.date)),
    "day": lambda t: t.date.isoformat(),
    "serial": lambda t: t.serial or NO_VALUE,
    "text": lambda t: t.text or NO_VALUE,
    "code": lambda t: str(t.code),
}

GROUPING_NAMES = list(TRANSACTION_GROUPINGS)


def get_date_grouping(day: date, date_group: str) -> str:
    """Label of the day/week/month bucket containing ``day``."""
    try:
        return DATE_GROUPS[date_group](day)
    except KeyError as e:
        raise UnknownGroupingError(
            f"Unknown date group '{date_group}'. Available: {list(DATE_GROUPS)}",
        ) from e


def date_bucket(date_group: str) -> Callable[[Transaction], str]:
    """Bucket key function for pivot columns."""
    if date_group not in DATE_GROUPS:
        raise UnknownGroupingError(
            f"Unknown date group '{date_group}'. Available: {list(DATE_GROUPS)}",
        )
    return lambda t: get_date_grouping(t.date, date_group)


def check_groupings(names: list[str]) -> None:
    """
    Check that every level picks a grouping still on offer.

    Raises:
        UnknownGroupingError: If a name is not a known grouping
        RepeatedGroupingError: If a grouping is picked more than once
    """
    options = remaining_groupings(names)
    for level, name in enumerate(names):
        if name not in TRANSACTION_GROUPINGS:
            raise UnknownGroupingError(
                f"Unknown grouping '{name}'. Available: {GROUPING_NAMES}",
            )
        if level >= len(options) or name not in options[level]:
            raise RepeatedGroupingError(f"Grouping '{name}' is selected more than once")


def get_groupings(names: Iterable[str]) -> list[Callable[[Transaction], str]]:
    """Resolve grouping names to key functions, preserving order."""
    names = list(names)
    check_groupings(names)
    return [TRANSACTION_GROUPINGS[name] for name in names]


def remaining_groupings(
    selected: list[str],
    available: list[str] | None = None,
) -> list[list[str]]:
    """
    Options offered at each grouping level.

    The first entry lists every grouping; each selected grouping removes
    itself from the options of the following levels.
    """
    remainder = list(GROUPING_NAMES if available is None else available)
    options = [remainder]
    for grouping in selected:
        remainder = [g for g in remainder if g != grouping]
        if not remainder:
            break
        options.append(remainder)
    return options


def get_head(dates: Iterable[date], date_group: str) -> list[str]:
    """Pivot column labels: bucket labels of the sorted dates, without repeats."""
    head: list[str] = []
    for day in sorted(dates):
        group = get_date_grouping(day, date_group)
        if not head or head[-1] != group:
            head.append(group)
    return head
