"""Table-driven state machine for Unicode text segmentation.

A segmenter type is described by a :class:`RuleBreakData`. It holds a
property lookup function and a break state table: a flat N×N matrix indexed
by ``left * property_count + right``. Each cell holds one action: break,
keep, no-match (rewind to the last marker) or a combined state.

Combined states come in two kinds:

* Index states (0–119) enter a combined state. The rewind marker only
  advances when the previous state index is at most
  ``last_codepoint_property``.
* Intermediate states (120–252) always advance the rewind marker. They are
  encoded as the property index plus 120.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass

BREAK = 253
NO_MATCH = 254
KEEP = 255

INTERMEDIATE_OFFSET = 120

PropertyLookup = Callable[[memoryview], "tuple[int, int]"]
OverrideLookup = Callable[[int, str], int]


def index_state(prop: int) -> int:
    """Return the encoding of an Index combined state for ``prop``."""
    return prop


def intermediate_state(prop: int) -> int:
    """Return the encoding of an Intermediate combined state for ``prop``."""
    return prop + INTERMEDIATE_OFFSET


def is_index(s: int) -> bool:
    """Report whether ``s`` is an Index combined state."""
    return s < INTERMEDIATE_OFFSET


def is_intermediate(s: int) -> bool:
    """Report whether ``s`` is an Intermediate combined state."""
    return INTERMEDIATE_OFFSET <= s < BREAK


def index_value(s: int) -> int:
    """Return the property index held by a combined state."""
    return s - INTERMEDIATE_OFFSET if s >= INTERMEDIATE_OFFSET else s


@dataclass(frozen=True)
class RuleBreakData:
    """Tables describing one segmenter type.

    ``property_lookup`` receives a bytes-like buffer starting at the current
    position and returns the break property of the first code point and its
    length in bytes.
    """

    property_lookup: PropertyLookup
    break_state_table: Sequence[int]
    property_count: int
    last_codepoint_property: int
    sot_property: int
    eot_property: int
    # Property of South-East Asian code points; reserved for dictionary-based
    # segmentation and not consulted by the state machine.
    complex_prop: int = 0


def _decode_rune(buf: memoryview, pos: int, size: int) -> str:
    """Decode the code point of ``size`` UTF-8 bytes at ``pos``."""
    if size == 1:
        cp = buf[pos]
    elif size == 2:
        cp = (buf[pos] & 0x1F) << 6 | (buf[pos + 1] & 0x3F)
    elif size == 3:
        cp = (buf[pos] & 0x0F) << 12 | (buf[pos + 1] & 0x3F) << 6 | (buf[pos + 2] & 0x3F)
    elif size == 4:
        cp = (
            (buf[pos] & 0x07) << 18
            | (buf[pos + 1] & 0x3F) << 12
            | (buf[pos + 2] & 0x3F) << 6
            | (buf[pos + 3] & 0x3F)
        )
    else:
        return "\ufffd"
    return chr(cp)


class Segmenter:
    """Iterates over the segments of a UTF-8 input.

    ``start`` and ``end`` are the byte offsets of the current segment and may
    be assigned directly to reposition the segmenter.
    """

    def __init__(self, data: RuleBreakData, input: bytes | bytearray | str) -> None:
        if isinstance(input, str):
            input = input.encode("utf-8")
        self.data = data
        self.input = bytes(input)
        self._view = memoryview(self.input)
        self.start = 0
        self.end = 0
        self._boundary_prop = 0
        self._override: OverrideLookup | None = None

    def set_override_lookup(self, fn: OverrideLookup | None) -> None:
        """Install a function mapping (base property, character) to the effective property."""
        self._override = fn

    def _lookup(self, pos: int) -> tuple[int, int]:
        prop, size = self.data.property_lookup(self._view[pos:])
        if self._override is not None:
            prop = self._override(prop, _decode_rune(self._view, pos, size))
        return prop, size

    def _state(self, left: int, right: int) -> int:
        return self.data.break_state_table[left * self.data.property_count + right]

    def next(self) -> bool:
        """Advance to the next segment; return False when the input is exhausted."""
        data = self.data
        length = len(self.input)
        if self.end >= length:
            return False

        self.start = self.end

        if self.end == 0:
            left = data.sot_property
            right, size = self._lookup(self.end)
            state = self._state(left, right)
            self.end += size
            if state == BREAK:
                self._boundary_prop = left
                return True
            left = index_value(state) if state < BREAK else right
        else:
            left, size = self._lookup(self.end)
            self.end += size

        marker = self.end
        marker_left = left

        while self.end < length:
            right, size = self._lookup(self.end)
            state = self._state(left, right)

            if state == BREAK:
                if self.end == self.start:
                    self.end += size
                self._boundary_prop = left
                return True

            if state == KEEP:
                left = right
                self.end += size
                marker = self.end
                marker_left = right
                continue

            if state == NO_MATCH:
                self.end = marker
                self._boundary_prop = marker_left
                if self.end == self.start:
                    _, sz = self._lookup(self.end)
                    self.end += sz
                return True

            idx = index_value(state)
            if is_intermediate(state):
                marker = self.end + size
                if left <= data.last_codepoint_property:
                    marker_left = idx
            elif left <= data.last_codepoint_property:
                marker = self.end
                marker_left = idx
            left = idx
            self.end += size

        if self._state(left, data.eot_property) == NO_MATCH:
            self._boundary_prop = marker_left
            self.end = marker
            if self.end == self.start:
                self.end = length
        else:
            self._boundary_prop = left
        return True

    def __iter__(self) -> Iterator[bytes]:
        """Yield the remaining segments as bytes."""
        while self.next():
            yield self.bytes()

    def bytes(self) -> bytes:
        """Return the current segment as bytes."""
        return self.input[self.start:self.end]

    def text(self) -> str:
        """Return the current segment as a string."""
        return self.input[self.start:self.end].decode("utf-8", errors="replace")

    def position(self) -> tuple[int, int]:
        """Return the byte offsets ``(start, end)`` of the current segment."""
        return self.start, self.end

    def boundary_property(self) -> int:
        """Return the property index on the left side of the last break."""
        return self._boundary_prop

    def fast_forward(self, end: int, prop: int) -> None:
        """Set the current segment to end at ``end`` without running the state machine."""
        self.start = self.end
        self.end = end
        self._boundary_prop = prop