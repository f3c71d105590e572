"""Rules and a builder that produce break state tables."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import IntEnum

from xunicode.segmenter import BREAK, KEEP, index_state, intermediate_state


class TableBuilder:
    """Accumulates table cells with first-write-wins semantics.

    ``set`` only writes cells not yet written, so rules applied first take
    precedence. ``force_set`` always writes.
    """

    def __init__(self, stride: int) -> None:
        self.stride = stride
        self.table = [0] * (stride * stride)
        self.written = [False] * (stride * stride)

    def set(self, left: int, right: int, value: int) -> None:
        """Write ``value`` at (left, right) unless that cell was already written."""
        i = left * self.stride + right
        if self.written[i]:
            return
        self.table[i] = value
        self.written[i] = True

    def force_set(self, left: int, right: int, value: int) -> None:
        """Write ``value`` at (left, right) unconditionally."""
        i = left * self.stride + right
        self.table[i] = value
        self.written[i] = True

    def get(self, left: int, right: int) -> int:
        """Return the current value at (left, right)."""
        return self.table[left * self.stride + right]

    def all_props(self) -> list[int]:
        """Return every property index of the table."""
        return list(range(self.stride))


class Rule(ABC):
    """A rule contributing cells to a break state table."""

    @abstractmethod
    def apply(self, builder: TableBuilder) -> None:
        """Emit this rule's cells into ``builder``."""


@dataclass(frozen=True)
class SimpleRule(Rule):
    """Break or keep for every (left, right) pair; ``None`` matches any property."""

    left: Sequence[int] | None
    right: Sequence[int] | None
    breaks: bool

    def apply(self, builder: TableBuilder) -> None:
        lefts = builder.all_props() if self.left is None else self.left
        rights = builder.all_props() if self.right is None else self.right
        state = BREAK if self.breaks else KEEP
        for left in lefts:
            for right in rights:
                builder.set(left, right, state)


@dataclass(frozen=True)
class IgnoreRule(Rule):
    """Combined states for absorption patterns such as ``X (Extend | Format)*``."""

    props: Sequence[int]
    ignored: Sequence[int]
    target: Callable[[int, int], int]
    interm: bool = False

    def apply(self, builder: TableBuilder) -> None:
        encode = intermediate_state if self.interm else index_state
        for base in self.props:
            for ign in self.ignored:
                builder.force_set(base, ign, encode(self.target(base, ign)))


class IntermOverride(IntEnum):
    """Per-step control of intermediate encoding in a chain."""

    DEFAULT = 0
    TRUE = 1
    FALSE = 2


@dataclass(frozen=True)
class ChainStep:
    """One transition of a chain: on any of ``props`` enter ``state``."""

    props: Sequence[int]
    state: int
    interm: IntermOverride = IntermOverride.DEFAULT


@dataclass(frozen=True)
class ChainRule(Rule):
    """A multi-step lookahead pattern."""

    entry: Sequence[int]
    steps: Sequence[ChainStep]
    self_loop: Sequence[int] = field(default_factory=tuple)
    interm: bool = False

    def apply(self, builder: TableBuilder) -> None:
        lefts: Sequence[int] = self.entry
        for step in self.steps:
            interm = self.interm
            if step.interm is IntermOverride.TRUE:
                interm = True
            elif step.interm is IntermOverride.FALSE:
                interm = False
            encoded = intermediate_state(step.state) if interm else index_state(step.state)

            for left in lefts:
                for right in step.props:
                    builder.force_set(left, right, encoded)
            for loop in self.self_loop:
                builder.force_set(step.state, loop, encoded)

            lefts = (step.state,)


@dataclass(frozen=True)
class OverrideRule(Rule):
    """Wipe whole rows of combined states, then write specific cells."""

    states: Sequence[int]
    overrides: Mapping[int, int]
    wipe_value: int

    def apply(self, builder: TableBuilder) -> None:
        for s in self.states:
            for right in builder.all_props():
                builder.force_set(s, right, self.wipe_value)
            for right, value in self.overrides.items():
                builder.force_set(s, right, value)


@dataclass(frozen=True)
class BreakTable:
    """A finished break state table and its metadata."""

    table: list[int]
    stride: int
    last_cp: int
    sot: int
    eot: int


def build(rules: Sequence[Rule], stride: int, sot: int, eot: int, last_cp: int) -> BreakTable:
    """Apply ``rules`` in order and fill every unwritten cell with BREAK."""
    builder = TableBuilder(stride)
    for rule in rules:
        rule.apply(builder)
    table = [value if written else BREAK for value, written in zip(builder.table, builder.written)]
    return BreakTable(table=table, stride=stride, last_cp=last_cp, sot=sot, eot=eot)