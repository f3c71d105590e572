"""Pack annotated dataclass fields into a single unsigned integer.

A dataclass field takes part in packing when its metadata holds a
``"bitfield"`` tag of the form ``"[<bits>][,<name>]"``. ``bits`` is the
number of bits used for the field; when empty or zero, the full width of the
field's kind is used (one bit for booleans). ``name`` is the name of the
accessor in generated code and defaults to the field name.

The kind of a field is taken from the ``"kind"`` metadata entry (``bool``,
``int``, ``int8`` … ``int64``, ``uint``, ``uint8`` … ``uint64``). Without it,
fields annotated ``bool`` or ``int`` get the kinds ``bool`` and ``int``. The
``"type_name"`` entry names the accessor's return type in generated code and
defaults to the kind.
"""

from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass
from typing import Any, TextIO

_KIND_BITS = {
    "bool": 1,
    "int": 64,
    "int8": 8,
    "int16": 16,
    "int32": 32,
    "int64": 64,
    "uint": 64,
    "uint8": 8,
    "uint16": 16,
    "uint32": 32,
    "uint64": 64,
}

_HEADER = "// Code generated by xunicode bitfield. DO NOT EDIT.\n\n"


class BitfieldError(ValueError):
    """Raised when a value cannot be packed or code cannot be generated."""


@dataclass
class Config:
    """Settings shared by packing and code generation.

    ``num_bits`` fixes the number of bits of the packed integer; zero picks
    the smallest of 8, 16, 32 or 64 that holds all fields. ``package`` adds a
    package clause to generated code. ``type_name`` names the generated type
    and defaults to the class name of the packed value.
    """

    num_bits: int = 0
    package: str = ""
    type_name: str = ""


@dataclass(frozen=True)
class _FieldSpec:
    attr: str
    name: str
    n_bits: int
    kind: str
    type_name: str


def _field_kind(f: dataclasses.Field) -> str | None:
    kind = f.metadata.get("kind")
    if kind is not None:
        return kind
    if f.type in (bool, "bool"):
        return "bool"
    if f.type in (int, "int"):
        return "int"
    return None


def _parse_field(f: dataclasses.Field) -> _FieldSpec | None:
    tag = f.metadata.get("bitfield")
    if tag is None:
        return None
    kind = _field_kind(f)
    if kind not in _KIND_BITS:
        raise BitfieldError(f'bitfield: field "{f.name}" is not an integer or bool type')
    bits, _, name = tag.partition(",")
    n_bits = 0
    if bits:
        if not re.fullmatch(r"[0-9]+", bits) or int(bits) > 0xFF:
            raise BitfieldError(
                f'bitfield: invalid bit size for field "{f.name}": invalid syntax "{bits}"'
            )
        n_bits = int(bits)
    if n_bits == 0:
        n_bits = _KIND_BITS[kind]
    return _FieldSpec(
        attr=f.name,
        name=name or f.name,
        n_bits=n_bits,
        kind=kind,
        type_name=f.metadata.get("type_name", kind),
    )


def _specs(x: Any) -> list[_FieldSpec]:
    if not dataclasses.is_dataclass(x) or isinstance(x, type):
        raise BitfieldError("bitfield: value must be a dataclass instance")
    return [spec for spec in map(_parse_field, dataclasses.fields(x)) if spec is not None]


def _pos_to_bits(pos: int) -> int:
    for bits in (8, 16, 32, 64):
        if pos <= bits:
            return bits
    raise BitfieldError(f"bitfield: {pos} bits exceed 64")


def _pack(x: Any, config: Config) -> tuple[int, int]:
    n_bits = config.num_bits
    if not 0 <= n_bits <= 64:
        raise BitfieldError(f"bitfield: invalid number of bits {n_bits}")
    pos = 0 if n_bits == 0 else 64 - n_bits
    packed = 0
    for spec in _specs(x):
        raw = getattr(x, spec.attr)
        value = (1 if raw else 0) if spec.kind == "bool" else int(raw)
        if value < 0:
            raise BitfieldError(f'bitfield: negative value for field "{spec.attr}" not allowed')
        if value > (1 << spec.n_bits) - 1:
            raise BitfieldError(
                f'bitfield: value {value:#x} of field "{spec.attr}" '
                f"does not fit in {spec.n_bits} bits"
            )
        if pos + spec.n_bits > 64:
            raise BitfieldError(f'bitfield: no more bits left for field "{spec.attr}"')
        shift = 64 - pos - spec.n_bits
        pos += spec.n_bits
        packed |= value << shift
    if n_bits == 0:
        n_bits = _pos_to_bits(pos)
        packed >>= 64 - n_bits
    return packed, n_bits


def pack(x: Any, config: Config | None = None) -> int:
    """Pack the tagged fields of dataclass instance ``x`` into an integer."""
    packed, _ = _pack(x, config or Config())
    return packed


def gen(w: TextIO, x: Any, config: Config | None = None) -> None:
    """Write code defining a type with accessors that unpack values made by :func:`pack`."""
    config = config or Config()
    _, n_bits = _pack(x, config)
    type_name = config.type_name or type(x).__name__
    recv = type_name[0]

    body = []
    pos = 0
    for spec in _specs(x):
        shift = n_bits - pos - spec.n_bits
        pos += spec.n_bits
        body.append(f"\nfunc ({recv} {type_name}) {spec.name}() {spec.type_name} {{\n")
        if spec.kind == "bool":
            body.append(f"\tconst bit = 1 << {shift}\n")
            body.append(f"\treturn {recv}&bit == bit\n")
        else:
            mask = (1 << spec.n_bits) - 1
            body.append(f"\treturn {spec.type_name}(({recv} >> {shift}) & {mask:#x})\n")
        body.append("}\n")

    out = []
    if config.package:
        out.append(_HEADER)
        out.append(f"package {config.package}\n\n")
    out.append(f"type {type_name} uint{_pos_to_bits(pos)}\n")
    out.extend(body)
    w.write("".join(out))