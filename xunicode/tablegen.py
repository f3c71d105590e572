"""Write break state tables as generated code."""

from __future__ import annotations

from xunicode.breaktable import BreakTable
from xunicode.codewriter import CodeWriter


def write_break_table(w: CodeWriter, bt: BreakTable) -> None:
    """Write ``bt`` as the ``breakTable`` array, one row of the table per line."""
    n = bt.stride
    w.write_comment(
        "breakTable is the break state table.\n"
        "\tbreakTable[left*stride + right] encodes the action for (left, right).\n"
        "\tSee xunicode.segmenter for the action encoding."
    )
    w.write("var breakTable = [...]uint8{")
    for i, v in enumerate(bt.table):
        if i % n == 0:
            w.write("\n\t")
        w.write(f"{v}, ")
    w.write("\n}\n\n")