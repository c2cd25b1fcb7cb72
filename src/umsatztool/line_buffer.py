"""
Byte-to-line accumulation for streamed statement files.
"""

from collections.abc import Iterator

EOL = 10
CARRIAGE_RETURN = 13


class LineBuffer:
    """
    Accumulates bytes until a line feed and hands out completed lines.

    Supports one stream at a time; call ``reset()`` (or ``flush()``) before
    feeding bytes from a different stream.
    """

    def __init__(self, encoding: str = "latin-1"):
        self.encoding = encoding
        self.line = bytearray()

    @property
    def pending(self) -> int:
        """Number of buffered bytes of the current partial line."""
        return len(self.line)

    def feed(self, byte: int) -> str | None:
        """
        Feed a single byte.

        Args:
            byte: Byte value (0-255)

        Returns:
            The completed line on a line feed, otherwise None
        """
        if byte == EOL:
            return self._take()

        if byte != CARRIAGE_RETURN:
            self.line.append(byte)

        return None

    def feed_chunk(self, chunk: bytes) -> Iterator[str]:
        """Feed a chunk byte by byte, yielding every line it completes."""
        for byte in chunk:
            line = self.feed(byte)
            if line is not None:
                yield line

    def flush(self) -> str | None:
        """Return the unterminated trailing line, if any, and reset."""
        if not self.line:
            return None
        return self._take()

    def reset(self) -> None:
        self.line = bytearray()

    def _take(self) -> str:
        text = self.line.decode(self.encoding, errors="replace")
        self.line = bytearray()
        return text
