"""A writer for generated source files holding tables.

The writer keeps track of the size of the tables written and a checksum of
their content, and keeps blank lines between written blocks. Python values
map to table types as follows: ``str`` is a string, ``bool`` a bool, ``int``
an int, ``float`` a float64, a list a slice, a tuple an array, an
``array.array`` a slice of the integer type of its type code, and a
dataclass instance a struct.
"""

from __future__ import annotations

import array
import dataclasses
import io
import re
from typing import Any, TextIO

from xunicode import gen

_FNV_OFFSET = 0x811C9DC5
_FNV_PRIME = 0x01000193
_MASK32 = 0xFFFFFFFF

_MAX_INLINE = 40
_MAX_WIDTH = 80 - 4 - len('"') - len('" +')
_PAREN_THRESHOLD = 128 * 1024

_QUOTE_ESCAPES = {
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
    "\\": "\\\\",
    '"': '\\"',
}

_SCALAR_TYPES = {"str": "string", "int": "int", "bool": "bool", "float": "float64", "bytes": "[]byte"}

# (elements per line, elements per block, element format) by integer kind.
_INT_FORMATS = {
    "uint8": (8, 64, "0x{:02x},"),
    "uint16": (8, 64, "0x{:04x},"),
    "uint32": (4, 32, "0x{:08x},"),
    "uint64": (4, 32, "0x{:016x},"),
    "uint": (4, 32, "0x{:016x},"),
    "int8": (16, 64, "{:d},"),
}
_INT_KINDS = {"int", "int8", "int16", "int32", "int64", "uint", "uint8", "uint16", "uint32", "uint64"}


def _quote(s: str) -> str:
    out = ['"']
    for ch in s:
        if ch in _QUOTE_ESCAPES:
            out.append(_QUOTE_ESCAPES[ch])
        elif ch.isprintable():
            out.append(ch)
        else:
            cp = ord(ch)
            if cp < 0x20 or cp == 0x7F:
                out.append(f"\\x{cp:02x}")
            elif cp < 0x10000:
                out.append(f"\\u{cp:04x}")
            else:
                out.append(f"\\U{cp:08x}")
    out.append('"')
    return "".join(out)


def _array_kind(a: array.array) -> tuple[str, int]:
    code = a.typecode
    if code in "bhilq":
        return f"int{a.itemsize * 8}", a.itemsize
    if code in "BHILQ":
        return f"uint{a.itemsize * 8}", a.itemsize
    if code == "f":
        return "float32", 4
    if code == "d":
        return "float64", 8
    raise TypeError(f"unsupported array type code {code!r}")


def _is_struct(x: Any) -> bool:
    return dataclasses.is_dataclass(x) and not isinstance(x, type)


def _kind(x: Any) -> str:
    if isinstance(x, bool):
        return "bool"
    if isinstance(x, int):
        return "int"
    if isinstance(x, float):
        return "float64"
    if isinstance(x, str):
        return "string"
    if isinstance(x, tuple):
        return "array"
    if isinstance(x, (list, array.array)):
        return "slice"
    if _is_struct(x):
        return "struct"
    raise TypeError(f"unsupported value type {type(x).__name__}")


def _elem_info(seq: Any) -> tuple[str, int, str]:
    """Return the type name, size and kind of the elements of ``seq``."""
    if isinstance(seq, array.array):
        kind, size = _array_kind(seq)
        return kind, size, kind
    if len(seq) == 0:
        raise ValueError("cannot infer the element type of an empty sequence")
    name, size = _type_info(seq[0])
    return name, size, _kind(seq[0])


def _type_info(x: Any) -> tuple[str, int]:
    """Return the type name and in-memory size of ``x``."""
    kind = _kind(x)
    if kind == "bool":
        return "bool", 1
    if kind in ("int", "float64"):
        return kind, 8
    if kind == "string":
        return "string", 16
    if kind == "slice":
        name, _, _ = _elem_info(x)
        return f"[]{name}", 24
    if kind == "array":
        name, size, _ = _elem_info(x)
        return f"[{len(x)}]{name}", len(x) * size
    return type(x).__name__, sum(_type_info(getattr(x, f.name))[1] for f in dataclasses.fields(x))


def _go_syntax(x: Any) -> str:
    kind = _kind(x)
    if kind == "bool":
        return "true" if x else "false"
    if kind in ("int", "float64"):
        return repr(x)
    if kind == "string":
        return _quote(x)
    if kind == "struct":
        fields = ", ".join(f"{f.name}:{_go_syntax(getattr(x, f.name))}" for f in dataclasses.fields(x))
        return f"{type(x).__name__}{{{fields}}}"
    name, _ = _type_info(x)
    return f"{name}{{{', '.join(_go_syntax(v) for v in x)}}}"


def _is_zero(x: Any) -> bool:
    kind = _kind(x)
    if kind == "struct":
        return all(_is_zero(getattr(x, f.name)) for f in dataclasses.fields(x))
    if kind == "array":
        return all(_is_zero(v) for v in x)
    if kind == "slice":
        return len(x) == 0
    if kind == "string":
        return x == ""
    return x == 0


def _field_type(f: dataclasses.Field) -> str:
    explicit = f.metadata.get("go_type")
    if explicit:
        return explicit
    t = f.type if isinstance(f.type, str) else getattr(f.type, "__name__", str(f.type))
    return _SCALAR_TYPES.get(t, t)


class CodeWriter:
    """Writes structured code, tracking table size and a content checksum."""

    def __init__(self) -> None:
        self._buf = io.StringIO()
        self.size = 0
        self._hash = _FNV_OFFSET
        # A comment followed by a block does not need the usual separator.
        self._skip_sep = False

    @property
    def checksum(self) -> int:
        """Return the 32-bit FNV-1 checksum of the content written so far."""
        return self._hash

    def _hash_bytes(self, data: bytes) -> None:
        h = self._hash
        for byte in data:
            h = ((h * _FNV_PRIME) & _MASK32) ^ byte
        self._hash = h

    def _hash_obj(self, x: Any) -> None:
        self._hash_bytes(repr(x).encode("utf-8", "surrogatepass"))

    def _printf(self, s: str) -> None:
        self._buf.write(s)

    def write(self, p: str | bytes) -> int:
        """Append ``p`` to the buffer and return its length."""
        if isinstance(p, bytes):
            p = p.decode("utf-8")
        return self._buf.write(p)

    def _finish(self) -> str:
        sz = self.size
        if sz > 0:
            self.write_comment(
                "Total table size %d bytes (%dKiB); checksum: %X\n", sz, sz // 1024, self._hash
            )
        content = self._buf.getvalue()
        self._buf = io.StringIO()
        return content

    def write_go_file(self, filename: str, pkg: str) -> None:
        """Write the buffer as a generated file of package ``pkg`` to ``filename``."""
        gen.write_go_file(filename, pkg, self._finish())

    def write_versioned_go_file(self, filename: str, pkg: str) -> None:
        """Write the buffer to a file named after the Unicode version, with its build tags."""
        gen.write_versioned_go_file(filename, pkg, self._finish())

    def write_go(self, out: TextIO, pkg: str, tags: str) -> int:
        """Write the buffer with header, tags and package clause to ``out``; reset the buffer."""
        return gen.write_go(out, pkg, tags, self._finish())

    def _insert_sep(self) -> None:
        if self._skip_sep:
            self._skip_sep = False
            return
        self._printf("\n\n")

    def write_comment(self, comment: str, *args: Any) -> None:
        """Write a comment block; ``args`` are %-formatted into ``comment``.

        Leading and trailing empty lines are dropped and the indentation of the
        first line is removed from the following lines.
        """
        s = (comment % args if args else comment).strip("\n")
        self._printf("\n\n// ")
        self._skip_sep = True

        indent = len(s) - len(s.lstrip(" \t"))
        sep = "\n" + s[:indent]
        s = s[indent:]
        self._printf(re.sub(re.escape(sep) + "|\n", "\n// ", s))
        self._printf("\n")

    def _write_size_info(self, size: int) -> None:
        self._printf(f"// Size: {size} bytes\n")

    def write_const(self, name: str, x: Any) -> None:
        """Write a constant named ``name`` with value ``x``."""
        self._insert_sep()
        if isinstance(x, str):
            self._printf(f"const {name} string = ")
            self.write_string(x)
            self._printf("\n")
        else:
            self._printf(f"const {name} = {_go_syntax(x)}\n")

    def write_var(self, name: str, x: Any) -> None:
        """Write a variable named ``name`` with value ``x``, counting its size."""
        self._insert_sep()
        old_size = self.size
        type_name, sz = _type_info(x)
        self.size += sz

        kind = _kind(x)
        if kind == "string":
            self._printf(f"var {name} string = ")
            self.write_string(x)
        elif kind in ("struct", "slice", "array"):
            if kind == "struct":
                self._hash_obj(x)
            self._printf(f"var {name} = ")
            self._write_value(x)
            self._write_size_info(self.size - old_size)
        else:
            self._printf(f"var {name} {type_name} = ")
            self._hash_obj(x)
            self._write_value(x)
            self._write_size_info(self.size - old_size)
        self._printf("\n")

    def _write_value(self, x: Any) -> None:
        kind = _kind(x)
        if kind == "string":
            self.write_string(x)
        elif kind == "array":
            # Callers already counted the array; the slice writer counts it again.
            self.size -= _type_info(x)[1]
            self._write_slice(x, True)
        elif kind == "slice":
            self._write_slice(x, False)
        elif kind == "struct":
            self._printf(f"{type(x).__name__}{{\n")
            for f in dataclasses.fields(x):
                self._printf(f"{f.name}: ")
                self._write_value(getattr(x, f.name))
                self._printf(",\n")
            self._printf("}")
        else:
            self._printf(_go_syntax(x))

    def write_string(self, s: str) -> None:
        """Write a string literal, split over several lines when long."""
        data = s.encode("utf-8", "surrogatepass")
        self._hash_bytes(data)
        self.size += len(data)

        if len(data) <= _MAX_INLINE:
            self._printf(_quote(s))
            return

        # A literal starting on its own line gets its continuation lines
        # indented one more level.
        n, limit = _MAX_WIDTH, _MAX_WIDTH - 4

        # Very long concatenations are grouped in parentheses to keep the
        # number of operands per expression small.
        explicit_parens = len(data) > _PAREN_THRESHOLD
        extra = ""
        if explicit_parens:
            self._printf("(")
            extra = "; the redundant, explicit parens keep concatenations short"

        head = self._buf.getvalue().rstrip(" \t")
        if head and head[-1] != "\n":
            self._printf(f'"" + // Size: {len(data)} bytes{extra}\n')
            n, limit = _MAX_WIDTH, _MAX_WIDTH

        self._printf('"')
        n_lines = 0
        for ch in s:
            enc = ch.encode("utf-8", "surrogatepass")
            if not ch.isprintable() or ch in ('\ufffd', '"'):
                if len(enc) == 1:
                    out = f"\\x{enc[0]:02x}"
                elif len(enc) in (2, 3):
                    out = f"\\u{ord(ch):04x}"
                else:
                    out = f"\\U{ord(ch):08x}"
                chars = len(out)
            elif ch == "\\":
                out, chars = "\\\\", 2
            else:
                out, chars = ch, 1
            n -= chars
            if n < 0:
                n_lines += 1
                if explicit_parens and n_lines & 63 == 63:
                    self._printf('") + ("')
                self._printf('" +\n"')
                n = limit - len(out.encode("utf-8", "surrogatepass"))
            self._printf(out)
        self._printf('"')
        if explicit_parens:
            self._printf(")")

    def write_slice(self, x: Any) -> None:
        """Write a slice value."""
        self._write_slice(x, False)

    def write_array(self, x: Any) -> None:
        """Write an array value."""
        self._write_slice(x, True)

    def _write_slice(self, x: Any, is_array: bool) -> None:
        elem_name, elem_size, kind = _elem_info(x)
        self._hash_obj(len(x))
        self.size += len(x) * elem_size
        if is_array:
            self._printf(f"[{len(x)}]{elem_name}{{\n")
        else:
            self._printf(f"[]{elem_name}{{ // {len(x)} elements\n")

        if kind == "string":
            for s in x:
                self.write_string(s)
                self._printf(",\n")
        elif kind in _INT_KINDS:
            n_line, n_block, fmt = _INT_FORMATS.get(kind, (8, 64, "{:d},"))
            count = n_line
            for i, v in enumerate(x):
                if i % n_block == 0 and len(x) > n_block:
                    self._printf(f"// Entry {i:X} - {i + n_block - 1:X}\n")
                self._hash_obj(v)
                self._printf(fmt.format(v))
                count -= 1
                if count == 0:
                    count = n_line
                    self._printf("\n")
            self._printf("\n")
        elif kind == "struct":
            for i, v in enumerate(x):
                self._hash_obj(v)
                if not _is_zero(v):
                    line = _go_syntax(v) + ",\n"
                    self._printf(f"{i}: {line[line.index('{'):]}")
        elif kind == "array":
            for i, v in enumerate(x):
                self._printf(f"{i}: {_go_syntax(v)},\n")
        else:
            raise TypeError("gen: slice elem type not supported")
        self._printf("}")

    def write_type(self, x: Any) -> str:
        """Write the struct definition of dataclass ``x`` and return its name."""
        if not dataclasses.is_dataclass(x):
            raise TypeError("write_type needs a dataclass or dataclass instance")
        name = x.__name__ if isinstance(x, type) else type(x).__name__
        self._printf(f"type {name} struct {{\n")
        for f in dataclasses.fields(x):
            self._printf(f"\t{f.name} {_field_type(f)}\n")
        self._printf("}\n")
        return name