from __future__ import annotations

import io
from dataclasses import dataclass, field, replace

import pytest

from xunicode.bitfield import BitfieldError, Config, gen, pack


def _bf(tag, kind=None, type_name=None, default=0):
    metadata = {"bitfield": tag}
    if kind is not None:
        metadata["kind"] = kind
    if type_name is not None:
        metadata["type_name"] = type_name
    return field(default=default, metadata=metadata)


@dataclass
class Test1:  # 28 bits
    foo: int = _bf(",fob", kind="uint16")
    Bar: int = _bf("5,baz", kind="int8")
    Foo: int = field(default=0, metadata={"kind": "uint64"})
    bar: int = _bf("3", kind="uint8", type_name="myUint8")
    Bool: bool = _bf("", default=False)
    Baz: int = _bf("3", kind="int8")


@dataclass
class TooManyBits:
    u1: int = _bf("12", kind="uint16")
    u2: int = _bf("12", kind="uint16")
    u3: int = _bf("12", kind="uint16")
    u4: int = _bf("12", kind="uint16")
    u5: int = _bf("12", kind="uint16")
    u6: int = _bf("12", kind="uint16")


@dataclass
class Just64:
    foo: int = _bf("", kind="uint64")


@dataclass
class ToUint8:
    foo: bool = _bf("", default=False)


@dataclass
class ToUint16:
    foo: int = _bf("9")


@dataclass
class FaultySize:
    foo: int = _bf("a", kind="uint64")


@dataclass
class FaultyType:
    foo: object = _bf("5", default=None)


MAXED = Test1(foo=0xFFFF, Bar=0x1F, Foo=0xFFFF, bar=0x7, Bool=True, Baz=0x7)
ALTERNATE1 = Test1(foo=0xFFFF, bar=0x7, Baz=0x7)
ALTERNATE2 = Test1(Bar=0x1F, Bool=True)
OVERFLOW = Test1(Bar=0x3F)
NEGATIVE = Test1(Bar=-1)


@pytest.mark.parametrize(
    "x, n_bits, out",
    [
        (MAXED, 0, 0xFFFFFFF0),
        (MAXED, 28, 0x0FFFFFFF),
        (ALTERNATE1, 0, 0xFFFF0770),
        (ALTERNATE2, 0, 0x0000F880),
        (Just64(0x0F0F0F0F), 0, 0xF0F0F0F),
        (Just64(0x0F0F0F0F), 64, 0xF0F0F0F),
        (Just64(0xFFFFFFFF), 64, 0xFFFFFFFF),
        (ToUint8(True), 0, 0x80),
        (ToUint16(1), 0, 0x0080),
    ],
)
def test_pack(x, n_bits, out):
    assert pack(x, Config(num_bits=n_bits)) == out


@pytest.mark.parametrize(
    "x, n_bits",
    [
        (OVERFLOW, 0),
        (TooManyBits(), 0),
        (FaultySize(), 0),
        (FaultyType(), 0),
        (NEGATIVE, 0),
        (MAXED, 27),
    ],
)
def test_pack_errors(x, n_bits):
    with pytest.raises(BitfieldError):
        pack(x, Config(num_bits=n_bits))


def test_pack_rejects_non_dataclass():
    with pytest.raises(BitfieldError):
        pack(42)


@pytest.mark.parametrize("x", [MAXED, ALTERNATE1, ALTERNATE2])
def test_roundtrip(x):
    v = pack(x, None)
    got = Test1(
        foo=(v >> 16) & 0xFFFF,
        Bar=(v >> 11) & 0x1F,
        bar=(v >> 8) & 0x7,
        Bool=bool((v >> 7) & 1),
        Baz=(v >> 4) & 0x7,
    )
    assert got == replace(x, Foo=0)


TEST1_GEN = """type Test1 uint32

func (T Test1) fob() uint16 {
\treturn uint16((T >> 16) & 0xffff)
}

func (T Test1) baz() int8 {
\treturn int8((T >> 11) & 0x1f)
}

func (T Test1) bar() myUint8 {
\treturn myUint8((T >> 8) & 0x7)
}

func (T Test1) Bool() bool {
\tconst bit = 1 << 7
\treturn T&bit == bit
}

func (T Test1) Baz() int8 {
\treturn int8((T >> 4) & 0x7)
}
"""

GEN1 = """// Code generated by xunicode bitfield. DO NOT EDIT.

package bitfield

type myInt uint32

func (m myInt) fob() uint16 {
\treturn uint16((m >> 16) & 0xffff)
}

func (m myInt) baz() int8 {
\treturn int8((m >> 11) & 0x1f)
}

func (m myInt) bar() myUint8 {
\treturn myUint8((m >> 8) & 0x7)
}

func (m myInt) Bool() bool {
\tconst bit = 1 << 7
\treturn m&bit == bit
}

func (m myInt) Baz() int8 {
\treturn int8((m >> 4) & 0x7)
}
"""

GEN2 = """// Code generated by xunicode bitfield. DO NOT EDIT.

package bitfield

type myInt2 uint32

func (m myInt2) fob() uint16 {
\treturn uint16((m >> 12) & 0xffff)
}

func (m myInt2) baz() int8 {
\treturn int8((m >> 7) & 0x1f)
}

func (m myInt2) bar() myUint8 {
\treturn myUint8((m >> 4) & 0x7)
}

func (m myInt2) Bool() bool {
\tconst bit = 1 << 3
\treturn m&bit == bit
}

func (m myInt2) Baz() int8 {
\treturn int8((m >> 0) & 0x7)
}
"""


@pytest.mark.parametrize(
    "config, out",
    [
        (None, TEST1_GEN),
        (Config(package="bitfield", type_name="myInt"), GEN1),
        (Config(num_bits=28, package="bitfield", type_name="myInt2"), GEN2),
    ],
)
def test_gen(config, out):
    w = io.StringIO()
    gen(w, Test1(), config)
    assert w.getvalue() == out


def test_gen_failure_writes_nothing():
    w = io.StringIO()
    with pytest.raises(BitfieldError):
        gen(w, Test1(), Config(num_bits=27))
    assert w.getvalue() == ""