"""
Streaming parser for Multicash (UMSATZ.TXT) statement exports.
"""

import logging
import re
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator
from enum import IntEnum
from functools import partial
from typing import BinaryIO

from .line_buffer import LineBuffer
from .models import Account, Amount, CodeParsingError, MulticashDate, Transaction

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 8192

_CODE_FORMAT = re.compile(r"-?[0-9]+")


class MulticashColumn(IntEnum):
    """0-indexed column positions of a Multicash statement line."""

    # `#1` Bank Key, the BSB of the current account
    ACCOUNT = 1
    # `#4` Statement Date, DD.MM.YY
    DATE = 3
    # `#7` Bank Posting Text, usually blank
    TEXT = 6
    # `#10` Serial Number, transaction serial code or cheque number
    SERIAL = 9
    # `#11` Transaction Amount, signed with 2 decimal places
    AMOUNT = 10
    # `#34` Business Transaction Code
    CODE = 33


class LineParsingError(Exception):
    """Exception raised when a statement line cannot be parsed."""

    def __init__(self, line: str, reason: str):
        super().__init__(
            f'Parsing error occurred while reading line "{line}": {reason}',
        )
        self.line = line
        self.reason = reason


class ParserConsumedError(RuntimeError):
    """Exception raised when a parser is iterated more than once."""


def _column(cols: list[str], column: MulticashColumn) -> str:
    if column < len(cols):
        return cols[column]
    return ""


def _optional(value: str) -> str | None:
    value = value.strip()
    return value or None


def parse_line(line: str) -> Transaction:
    """
    Parse a single statement line.

    Args:
        line: Line without its terminator

    Returns:
        Transaction object

    Raises:
        LineParsingError: If any mandatory field is malformed
    """
    try:
        cols = line.split(";")
        account = Account.parse(_column(cols, MulticashColumn.ACCOUNT))
        date = MulticashDate.parse(_column(cols, MulticashColumn.DATE))
        amount = Amount.parse(_column(cols, MulticashColumn.AMOUNT))

        code_str = _column(cols, MulticashColumn.CODE)
        if _CODE_FORMAT.fullmatch(code_str.strip()) is None:
            raise CodeParsingError(f'Couldn\'t parse transaction code from "{code_str}"')
        code = int(code_str.strip())

        return Transaction(
            account=account,
            date=date,
            amount=amount,
            code=code,
            serial=_optional(_column(cols, MulticashColumn.SERIAL)),
            text=_optional(_column(cols, MulticashColumn.TEXT)),
        )
    except ValueError as e:
        raise LineParsingError(line, str(e)) from e


def iter_file_chunks(
    file: BinaryIO,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Iterator[bytes]:
    """Read a binary file object chunk by chunk."""
    yield from iter(partial(file.read, chunk_size), b"")


class TransactionParser:
    """
    Lazily turns a stream of byte chunks into transactions.

    Lines that fail to parse are collected in ``errors`` and never stop the
    iteration. A parser handles exactly one stream and can be iterated once.
    """

    def __init__(
        self,
        source: Iterable[bytes] | AsyncIterable[bytes] | BinaryIO,
        encoding: str = "latin-1",
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        if hasattr(source, "read"):
            source = iter_file_chunks(source, chunk_size)

        self.source = source
        self.buffer = LineBuffer(encoding)
        self.errors: list[LineParsingError] = []
        self.line_count = 0
        self._started = False

    def __iter__(self) -> Iterator[Transaction]:
        self._start()
        return self._iterate()

    def __aiter__(self) -> AsyncIterator[Transaction]:
        self._start()
        return self._aiterate()

    def _start(self) -> None:
        if self._started:
            raise ParserConsumedError("Parser has already been consumed")
        self._started = True

    def _iterate(self) -> Iterator[Transaction]:
        for chunk in self.source:
            logger.debug(f"Received chunk of {len(chunk)} bytes")
            for line in self.buffer.feed_chunk(chunk):
                yield from self._parse(line)

        yield from self._parse(self.buffer.flush())

    async def _aiterate(self) -> AsyncIterator[Transaction]:
        async for chunk in self.source:
            logger.debug(f"Received chunk of {len(chunk)} bytes")
            for line in self.buffer.feed_chunk(chunk):
                for transaction in self._parse(line):
                    yield transaction

        for transaction in self._parse(self.buffer.flush()):
            yield transaction

    def _parse(self, line: str | None) -> list[Transaction]:
        if not line:
            return []

        self.line_count += 1
        try:
            return [parse_line(line)]
        except LineParsingError as e:
            logger.debug(f"Could not parse statement line: {e.reason}")
            self.errors.append(e)
            return []
