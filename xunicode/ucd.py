"""Parser for Unicode Character Database files.

Lines hold fields separated by ``;``; ``#`` starts a comment and ``@``
starts a part header. Unless ranges are kept, a line whose first field is a
code point range is visited once for every code point in it, including the
legacy ``<..., First>``/``<..., Last>`` pairs of UnicodeData.txt.
"""

from __future__ import annotations

import io
import re
from collections.abc import Callable, Iterable, Iterator
from typing import Union

# UnicodeData.txt fields.
CODE_POINT = 0
NAME = 1
GENERAL_CATEGORY = 2
CANONICAL_COMBINING_CLASS = 3
BIDI_CLASS = 4
DECOMP_MAPPING = 5
DECIMAL_VALUE = 6
DIGIT_VALUE = 7
NUMERIC_VALUE = 8
BIDI_MIRRORED = 9
UNICODE1_NAME = 10
ISO_COMMENT = 11
SIMPLE_UPPERCASE_MAPPING = 12
SIMPLE_LOWERCASE_MAPPING = 13
SIMPLE_TITLECASE_MAPPING = 14

_BOOLS = {
    "": False,
    "N": False,
    "No": False,
    "F": False,
    "False": False,
    "Y": True,
    "Yes": True,
    "T": True,
    "True": True,
}

_RANGE_LINE = re.compile(r"([0-9A-F]*);<([^,]*), ([^>]*)>(.*)")
_HEX = re.compile(r"[0-9A-Fa-f]+")
_INT = re.compile(r"[+-]?[0-9]+")
_UINT = re.compile(r"[0-9]+")

Source = Union[str, Iterable[str], Iterable[bytes]]


class UCDError(ValueError):
    """Raised when a UCD file or one of its fields cannot be parsed."""


def _parse_rune(s: str) -> int:
    if len(s) > 2 and s.startswith("U+"):
        s = s[2:]
    if not _HEX.fullmatch(s) or int(s, 16) > 0xFFFFFFFF:
        raise ValueError(f'invalid rune "{s}"')
    return int(s, 16)


def _lines(r: Source) -> Iterator[str]:
    if isinstance(r, str):
        r = io.StringIO(r)
    for line in r:
        if isinstance(line, bytes):
            line = line.decode("utf-8")
        if line.endswith("\n"):
            line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
        yield line


class Parser:
    """Parses UCD files line by line.

    ``r`` is a string or an iterable of lines, such as an open file. With
    ``keep_ranges`` ranges in the first field are not expanded and can be
    read with ``range(0)``. ``part_handler`` is called with the parser for
    every ``@`` line, the text after ``@`` being field 0. ``comment_handler``
    receives every comment that stands on a line by itself.
    """

    def __init__(
        self,
        r: Source,
        keep_ranges: bool = False,
        part_handler: Callable[[Parser], None] | None = None,
        comment_handler: Callable[[str], None] | None = None,
    ) -> None:
        self._lines = _lines(r)
        self._keep_ranges = keep_ranges
        self._part_handler = part_handler
        self._comment_handler = comment_handler
        self._text = ""
        self._line = 0
        self._comment = ""
        self._fields: list[str] = []
        self._parsed_range = False
        self._range_start = 0
        self._range_end = 0

    def _error(self, err: object, msg: str = "") -> UCDError:
        if msg:
            return UCDError(f"ucd:line:{self._line}:{msg}: {err}")
        return UCDError(f"ucd:line:{self._line}: {err}")

    def _field(self, i: int) -> str:
        return self._fields[i] if i < len(self._fields) else ""

    def _rune(self, s: str) -> int:
        try:
            return _parse_rune(s)
        except ValueError as exc:
            raise self._error(exc, "failed to parse rune") from None

    def next(self) -> bool:
        """Advance to the next entry; return False at the end of the input."""
        if not self._keep_ranges and self._range_start < self._range_end:
            self._range_start += 1
            return True
        self._comment = ""
        self._fields = []
        self._parsed_range = False

        for s in self._lines:
            self._line += 1
            self._text = s
            if not s:
                continue
            if s[0] == "#":
                if self._comment_handler is not None:
                    self._comment_handler(s[1:].strip())
                continue

            i = s.find("#")
            if i != -1:
                self._comment = s[i + 1:].strip()
                s = s[:i]
            if s[0] == "@":
                if self._part_handler is not None:
                    self._fields = [s[1:].strip()]
                    self._part_handler(self)
                    self._fields = []
                self._comment = ""
                continue

            self._fields = [part.strip() for part in s.split(";")]
            if not self._keep_ranges:
                self._range_start, self._range_end = self._get_range(0)
            return True
        return False

    def __iter__(self) -> Iterator[Parser]:
        """Yield the parser positioned at each successive entry."""
        while self.next():
            yield self

    def rune(self, i: int) -> int:
        """Return field ``i`` as a code point."""
        if i > 0 or self._keep_ranges:
            return self._rune(self._field(i))
        return self._range_start

    def runes(self, i: int) -> list[int]:
        """Return field ``i`` as a space-separated sequence of code points."""
        return [self._rune(part.strip()) for part in self._field(i).split(" ") if part.strip()]

    def range(self, i: int) -> tuple[int, int]:
        """Return field ``i`` as an inclusive code point range ``(first, last)``."""
        if not self._keep_ranges:
            return self._range_start, self._range_start
        return self._get_range(i)

    def _get_range(self, i: int) -> tuple[int, int]:
        b = self._field(i)
        k = b.find("..")
        if k != -1:
            return self._rune(b[:k]), self._rune(b[k + 2:])
        try:
            x = _parse_rune(b)
        except ValueError:
            # The first field is not a rune: stop expanding ranges so that a
            # later rune() call on it reports the error.
            x = 0
            self._keep_ranges = True

        if i == 0 and len(self._fields) > 1 and self._fields[1].endswith("First>"):
            if self._parsed_range:
                return self._range_start, self._range_end
            first = _RANGE_LINE.fullmatch(self._text)
            self._line += 1
            following = next(self._lines, None) if first is not None else None
            if first is None or following is None:
                raise self._error("unmatched <* First>")
            self._text = following
            last = _RANGE_LINE.fullmatch(following)
            if (
                last is None
                or first[2] != last[2]
                or last[3] != "Last"
                or first[4] != last[4]
            ):
                raise self._error("unmatched <* First>")
            self._range_start = x
            self._range_end = self._rune(following[: len(last[1])])
            self._parsed_range = True
            return self._range_start, self._range_end
        return x, x

    def bool(self, i: int) -> bool:
        """Return field ``i`` as a boolean."""
        value = _BOOLS.get(self._field(i))
        if value is None:
            raise self._error(f'invalid syntax "{self._field(i)}"', "error parsing bool")
        return value

    def int(self, i: int) -> int:
        """Return field ``i`` as a signed decimal integer."""
        s = self._field(i)
        if not _INT.fullmatch(s) or not -(1 << 63) <= int(s) < (1 << 63):
            raise self._error(f'invalid syntax "{s}"', "error parsing int")
        return int(s)

    def uint(self, i: int) -> int:
        """Return field ``i`` as an unsigned decimal integer."""
        s = self._field(i)
        if not _UINT.fullmatch(s) or int(s) >= (1 << 64):
            raise self._error(f'invalid syntax "{s}"', "error parsing uint")
        return int(s)

    def float(self, i: int) -> float:
        """Return field ``i`` as a decimal number."""
        s = self._field(i)
        try:
            if "_" in s:
                raise ValueError(s)
            return float(s)
        except ValueError:
            raise self._error(f'invalid syntax "{s}"', "error parsing float") from None

    def string(self, i: int) -> str:
        """Return field ``i`` as a string."""
        return self._field(i)

    def strings(self, i: int) -> list[str]:
        """Return field ``i`` split on spaces, each part stripped."""
        return [part.strip() for part in self._field(i).split(" ")]

    def comment(self) -> str:
        """Return the comment of the current line."""
        return self._comment

    def enum(self, i: int, *args: str) -> str:
        """Return field ``i``, which must be one of ``args``."""
        s = self._field(i)
        if s in args:
            return s
        raise self._error("ucd: undefined enum value", "error parsing enum")


def parse(r: Source, f: Callable[[Parser], None]) -> None:
    """Call ``f`` for every entry of ``r`` and close ``r`` afterwards if it can be closed."""
    try:
        for p in Parser(r):
            f(p)
    finally:
        close = getattr(r, "close", None)
        if close is not None:
            close()