"""
Data models for Multicash statement parsing.
"""

import re
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

DEFAULT_CENTURY = 2000

_DATE_FORMAT = re.compile(r"(?P<day>[0-9]{2})\.(?P<month>[0-9]{2})\.(?P<year>[0-9]{2})")
_ACCOUNT_FORMAT = re.compile(r"[0-9]+")
_AMOUNT_FORMAT = re.compile(r"-?[0-9]+(\.[0-9]+)?")


class FieldParsingError(ValueError):
    """Exception raised when a single statement field cannot be parsed."""


class AccountParsingError(FieldParsingError):
    """Exception raised when an account number is malformed."""


class AmountParsingError(FieldParsingError):
    """Exception raised when a transaction amount is malformed."""


class DateParsingError(FieldParsingError):
    """Exception raised when a statement date is malformed."""


class CodeParsingError(FieldParsingError):
    """Exception raised when a business transaction code is malformed."""


@dataclass(frozen=True)
class Account:
    """A bank account, identified by its (BSB) number."""

    number: int

    @classmethod
    def parse(cls, value: str) -> "Account":
        """Create Account from a column value (ASCII digits only)."""
        if _ACCOUNT_FORMAT.fullmatch(value.strip()) is None:
            raise AccountParsingError(f'"{value}" is not a valid account number')

        return cls(int(value.strip()))

    @property
    def ledger_name(self) -> str:
        return f"BANK ACCOUNT #{self.number}"

    def __str__(self) -> str:
        return f"#{self.number}"


@dataclass(frozen=True, order=True)
class Amount:
    """A signed monetary amount."""

    value: Decimal

    @classmethod
    def parse(cls, value: str) -> "Amount":
        """Create Amount from a column value such as ``-40.50``."""
        if _AMOUNT_FORMAT.fullmatch(value.strip()) is None:
            raise AmountParsingError(f'"{value}" is not a valid amount')

        return cls(Decimal(value.strip()))

    @property
    def is_debit(self) -> bool:
        return self.value < 0

    def __add__(self, other):
        if isinstance(other, Amount):
            return Amount(self.value + other.value)
        if isinstance(other, (Decimal, int)):
            return Amount(self.value + other)
        return NotImplemented

    __radd__ = __add__

    def __abs__(self) -> "Amount":
        return Amount(abs(self.value))

    def __float__(self) -> float:
        return float(self.value)

    def __str__(self) -> str:
        return f"{self.value:.2f}"


class Week:
    """The Sunday-started week containing a date."""

    def __init__(self, day: date):
        offset = (day.weekday() + 1) % 7
        start = day - timedelta(days=offset)
        self.week_start = date(start.year, start.month, start.day)
        self.week_end = self.week_start + timedelta(days=7)

    def __eq__(self, other):
        if not isinstance(other, Week):
            return NotImplemented
        return self.week_start == other.week_start

    def __hash__(self):
        return hash(self.week_start)

    def __str__(self) -> str:
        return f"{self.week_start.isoformat()}:{self.week_end.isoformat()}"


class Month:
    """Month and year of a date, labelled ``MM.YYYY``."""

    def __init__(self, day: date):
        self.month = day.month
        self.year = day.year

    def __eq__(self, other):
        if not isinstance(other, Month):
            return NotImplemented
        return (self.year, self.month) == (other.year, other.month)

    def __hash__(self):
        return hash((self.year, self.month))

    def __str__(self) -> str:
        return f"{self.month:02d}.{self.year}"


class MulticashDate(date):
    """A statement date; ``str()`` gives the short ISO-8601 form."""

    @classmethod
    def parse(cls, value: str, century: int = DEFAULT_CENTURY) -> "MulticashDate":
        """
        Parse a ``DD.MM.YY`` statement date.

        Args:
            value: Column value, e.g. ``02.02.20``
            century: Offset added to the two-digit year

        Returns:
            MulticashDate instance

        Raises:
            DateParsingError: If the value does not match or is not a real date
        """
        match = _DATE_FORMAT.fullmatch(value.strip())
        if match is None:
            raise DateParsingError(f'Couldn\'t parse date from "{value}"')

        try:
            return cls(
                century + int(match["year"]),
                int(match["month"]),
                int(match["day"]),
            )
        except ValueError as e:
            raise DateParsingError(f'Couldn\'t parse date from "{value}": {e}') from e

    @property
    def week(self) -> Week:
        return Week(self)

    @property
    def month_label(self) -> Month:
        return Month(self)

    def __str__(self) -> str:
        return self.isoformat()


@dataclass(frozen=True)
class Transaction:
    """A single parsed statement line."""

    account: Account
    date: MulticashDate
    amount: Amount
    code: int
    serial: str | None = None
    text: str | None = None

    @property
    def value(self) -> Decimal:
        return self.amount.value

    def __float__(self) -> float:
        return float(self.amount)


def amount_of(transaction: Transaction) -> Decimal:
    """Numeric value of a transaction, as used by the grouping reductions."""
    return transaction.amount.value
