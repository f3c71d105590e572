# xunicode

A data-driven engine for Unicode text segmentation (the kind of rules found in
UAX #29 and UAX #14), together with tooling for producing its tables: a
break-table builder, a Unicode Character Database parser, a bit-field packer
and helpers for writing generated source files.

The package uses only the standard library and supports Python 3.10 and later.

## Modules

| Module | Purpose |
| --- | --- |
| `xunicode.segmenter` | The segmentation state machine: `Segmenter`, `RuleBreakData` and the break-state encoding helpers. |
| `xunicode.breaktable` | Rule types (`SimpleRule`, `IgnoreRule`, `ChainRule`, `OverrideRule`), `TableBuilder` and `build()`, which turn a rule list into a `BreakTable`. |
| `xunicode.ucd` | `Parser` and `parse()` for Unicode Character Database files such as `UnicodeData.txt` and `Scripts.txt`. |
| `xunicode.bitfield` | `pack()` and `gen()` for packing annotated dataclass fields into one integer and emitting accessors for it. |
| `xunicode.gen` | Shared helpers for table generators: Unicode/CLDR versions, a local data mirror with download fallback, writing generated files. |
| `xunicode.codewriter` | `CodeWriter`, which writes constants, variables, strings, slices and arrays with size and checksum accounting. |
| `xunicode.tablegen` | `write_break_table()`, which emits a `BreakTable` through a `CodeWriter`. |

## Break-state encoding

Each cell of a break table says what happens between a character with
property *left* and one with property *right*:

* `0`–`119`: enter an *index* combined state (`index_state(prop)`);
* `120`–`252`: enter an *intermediate* combined state, which always moves the
  rewind marker (`intermediate_state(prop)`);
* `253` (`BREAK`): break; `254` (`NO_MATCH`): rewind to the last marker;
  `255` (`KEEP`): keep together.

`is_index()`, `is_intermediate()` and `index_value()` decode a cell.

## Building a break table

Rules are applied in order. `SimpleRule` cells are first-write-wins, so put
higher-priority rules first; `IgnoreRule`, `ChainRule` and `OverrideRule`
overwrite cells directly. Every cell no rule writes becomes `BREAK`.

```python
from xunicode.breaktable import SimpleRule, build

# Properties: 0 = letter, 1 = space, 2 = start of text, 3 = end of text
rules = [
    SimpleRule(left=[2], right=None, breaks=False),  # no break at start of text
    SimpleRule(left=[0], right=[0], breaks=False),   # keep letters together
]
table = build(rules, stride=4, sot=2, eot=3, last_cp=1)
```

`None` for `left` or `right` of a `SimpleRule` matches every property.

## Segmenting text

A `Segmenter` walks UTF-8 input (bytes or a string) using a property lookup
function and a break table. The lookup receives a buffer starting at the
current position and returns the property of the first code point and its
length in bytes. Iterating over the segmenter yields the segments as bytes;
`next()` advances one segment, and `position()`, `bytes()`, `text()` and
`boundary_property()` describe the current one.

```python
from xunicode.segmenter import RuleBreakData, Segmenter

def lookup(data) -> tuple[int, int]:
    return (1 if data[0] == 0x20 else 0), 1

rules_data = RuleBreakData(
    property_lookup=lookup,
    break_state_table=table.table,
    property_count=4,
    last_codepoint_property=1,
    sot_property=2,
    eot_property=3,
)
print(list(Segmenter(rules_data, b"ab cd")))  # [b'ab', b' ', b'cd']
```

`set_override_lookup()` installs a function that maps the looked-up property
and the decoded character to the property actually used, and `fast_forward()`
sets the next segment directly without running the state machine.

## Parsing UCD files

`Parser` takes a string or any iterable of lines (text or bytes), such as an
open file.

```python
from xunicode.ucd import Parser

scripts = "0000..001F ; Common # Cc\n0020 ; Common # Zs\n"
parser = Parser(scripts, keep_ranges=True)
for _ in parser:
    first, last = parser.range(0)
    print(f"{first:04X}..{last:04X}", parser.string(1), parser.comment())
```

Without `keep_ranges`, ranges in the first field, including the
`<..., First>`/`<..., Last>` line pairs of `UnicodeData.txt`, are expanded and
the parser visits every code point in them. Fields are read with `rune()`,
`runes()`, `range()`, `bool()`, `int()`, `uint()`, `float()`, `string()`,
`strings()` and `enum()`; malformed fields raise `UCDError`. `part_handler`
is called for `@` lines and `comment_handler` for comment lines.
`parse(r, f)` calls `f` for every entry and closes `r` afterwards.

## Packing bit fields

Fields of a dataclass take part when their metadata holds a `"bitfield"` tag
of the form `"[<bits>][,<name>]"`; the `"kind"` entry gives the integer kind
(`uint8`, `int16`, …) where the annotation is not `bool` or `int`.

```python
import io
from dataclasses import dataclass, field
from xunicode.bitfield import Config, gen, pack

@dataclass
class Flags:
    small: int = field(default=0, metadata={"bitfield": "3", "kind": "uint8"})
    on: bool = field(default=False, metadata={"bitfield": ""})

print(hex(pack(Flags(small=5, on=True))))  # 0xb0

out = io.StringIO()
gen(out, Flags(), Config(type_name="flags"))
```

Values that do not fit, negative values and too many bits raise
`BitfieldError`.

## Writing generated files

`CodeWriter` buffers code blocks (`write_comment()`, `write_const()`,
`write_var()`, `write_string()`, `write_slice()`, `write_array()`,
`write_type()`) and counts the size of the tables written and an FNV-1
checksum. `write_go()`, `write_go_file()` and `write_versioned_go_file()`
add a header, optional build tags and a package clause, then flush the buffer.
`xunicode.tablegen.write_break_table()` writes a `BreakTable` as a
`breakTable` array, one table row per line.

`xunicode.gen` holds the settings shared by generators. `init(argv)` parses
the options `-url`, `-iana`, `-unicode`, `-cldr` and `-local`; the Unicode
and CLDR versions default to the `UNICODE_VERSION` and `CLDR_VERSION`
environment variables and the mirror directory to `UNICODE_DIR`.
`open_ucd_file()`, `open_unicode_file()`, `open_cldr_core_zip()`,
`open_iana_file()` and `open_file()` read from the local mirror and download
missing files into it. Failures raise `GenError`.

## What the package does not do

* It ships no ready-made segmentation tables: there are no grapheme, word,
  sentence or line segmenters to use out of the box. You supply the property
  lookup and build the break table yourself.
* It has no trie generator; `xunicode.triegen` is an empty namespace.
* It installs no command-line programs; the generation helpers are meant to be
  called from your own scripts.