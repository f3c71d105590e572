"""Shared settings and helpers for the table generation commands.

The settings select the Unicode and CLDR versions and where data files come
from. Data files are looked up in a local mirror directory first and fetched
from the Unicode (or IANA) site otherwise; fetched files are kept in the
mirror. The mirror follows the layout of the public Unicode repository; IANA
files live in its ``iana`` subdirectory.

The mirror directory is taken from the ``-local`` option, then from the
``UNICODE_DIR`` environment variable, and defaults to ``DATA`` next to the
package.
"""

from __future__ import annotations

import argparse
import io
import os
import posixpath
import re
import threading
import unicodedata
import urllib.error
import urllib.request
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, TextIO

HEADER = '// Code generated by running "go generate". DO NOT EDIT.\n\n'

_DEFAULT_URL = "https://www.unicode.org/Public"
_DEFAULT_IANA = "http://www.iana.org"
_DEFAULT_CLDR_VERSION = "32"

# Build tags for each supported Unicode version.
_TAGS: tuple[tuple[str, str], ...] = (
    ("15.0.0", "!go1.27"),
    ("17.0.0", "go1.27"),
)

_README = """Generated by the xunicode table generators. DO NOT EDIT.

This directory contains downloaded files used to generate the various tables
of this package.

Note that the language subtag repo (iana/assignments/language-subtag-registry)
and all other files in the iana subdirectory are not versioned and will need
to be periodically manually updated. The easiest way to do this is to remove
the entire iana directory.
"""

_BUILD_LINE = re.compile(r"//go:build.*\n")
_EXTRA_NEWLINES = re.compile(r"\n{3,}")


class GenError(RuntimeError):
    """Raised when a generation step cannot be completed."""


def _env(name: str, default: str) -> str:
    return os.environ.get(name) or default


def _default_data_dir() -> Path:
    return Path(__file__).resolve().parent.parent / "DATA"


@dataclass
class _Settings:
    url: str
    iana: str
    unicode_version: str
    cldr_version: str
    data_dir: Path


def _defaults() -> _Settings:
    local = os.environ.get("UNICODE_DIR")
    return _Settings(
        url=_DEFAULT_URL,
        iana=_DEFAULT_IANA,
        unicode_version=_env("UNICODE_VERSION", unicodedata.unidata_version),
        cldr_version=_env("CLDR_VERSION", _DEFAULT_CLDR_VERSION),
        data_dir=Path(local) if local else _default_data_dir(),
    )


_settings = _defaults()
_dir_lock = threading.Lock()


def init(argv: Sequence[str] | None = None) -> None:
    """Parse the common command-line options and apply them."""
    global _settings
    defaults = _defaults()
    parser = argparse.ArgumentParser(description="Generate Unicode tables.")
    parser.add_argument("-url", "--url", default=defaults.url,
                        help="URL of Unicode database directory")
    parser.add_argument("-iana", "--iana", default=defaults.iana,
                        help="URL of the IANA repository")
    parser.add_argument("-unicode", "--unicode", default=defaults.unicode_version,
                        help="unicode version to use")
    parser.add_argument("-cldr", "--cldr", default=defaults.cldr_version,
                        help="cldr version to use")
    parser.add_argument("-local", "--local", default=str(defaults.data_dir),
                        help="directory of the local data mirror")
    args = parser.parse_args(argv)
    _settings = _Settings(
        url=args.url,
        iana=args.iana,
        unicode_version=args.unicode,
        cldr_version=args.cldr,
        data_dir=Path(args.local),
    )


def unicode_version() -> str:
    """Return the requested Unicode version."""
    return _settings.unicode_version


def cldr_version() -> str:
    """Return the requested CLDR version."""
    return _settings.cldr_version


def build_tags() -> str:
    """Return the build tags for the requested Unicode version."""
    version = unicode_version()
    for known, tags in _TAGS:
        if known == version:
            return tags
    raise GenError(f'Unknown build tags for Unicode version "{version}".')


def _readme_file() -> Path:
    return _settings.data_dir / "README"


def is_local() -> bool:
    """Report whether a local data mirror is available."""
    return _readme_file().exists()


def _local_dir() -> Path:
    with _dir_lock:
        readme = _readme_file()
        directory = readme.parent
        if not readme.exists():
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise GenError(f"Could not create directory: {exc}") from exc
            readme.write_text(_README, encoding="utf-8")
        return directory


def _get(root: str, path: str) -> bytes:
    url = f"{root}/{path}"
    print(f"Fetching {url}...", end="", flush=True)
    try:
        with urllib.request.urlopen(url) as resp:
            code = resp.getcode()
            if code is not None and code != 200:
                raise GenError(f'Bad GET status for "{url}": "{code}"')
            data = resp.read()
    except urllib.error.URLError as exc:
        raise GenError(f"HTTP GET: {exc}") from exc
    except OSError as exc:
        raise GenError(f"Could not download file: {exc}") from exc
    print(" done.")
    return data


def _open(file: Path, url_root: str, path: str) -> BinaryIO:
    try:
        return open(file, "rb")
    except OSError:
        pass
    data = _get(url_root, path)
    try:
        file.parent.mkdir(parents=True, exist_ok=True)
        file.write_bytes(data)
    except OSError as exc:
        raise GenError(f"Could not create file: {exc}") from exc
    return io.BytesIO(data)


def _open_unicode(path: str) -> BinaryIO:
    file = _local_dir().joinpath(*path.split("/"))
    return _open(file, _settings.url, path)


def open_file(url_root: str, subdir: str, path: str) -> BinaryIO:
    """Open ``subdir/path`` in the local mirror, fetching ``url_root/path`` if it is missing."""
    file = _local_dir().joinpath(subdir, *path.split("/"))
    return _open(file, url_root, path)


def open_ucd_file(file: str) -> BinaryIO:
    """Open a UCD file of the requested Unicode version."""
    return _open_unicode(posixpath.join(_settings.unicode_version, "ucd", file))


def open_cldr_core_zip() -> BinaryIO:
    """Open the CLDR core archive of the requested CLDR version."""
    return open_unicode_file("cldr", _settings.cldr_version, "core.zip")


def open_unicode_file(category: str, version: str, file: str) -> BinaryIO:
    """Open ``file`` of ``category`` and ``version``; an empty version means the Unicode version."""
    if not version:
        version = unicode_version()
    return _open_unicode(posixpath.join(category, version, file))


def open_iana_file(path: str) -> BinaryIO:
    """Open a file relative to the IANA root."""
    return open_file(_settings.iana, "iana", path)


def write_unicode_version(w: TextIO) -> None:
    """Write a constant holding the Unicode version of the tables."""
    w.write(
        "// UnicodeVersion is the Unicode version from which the tables "
        "in this package are derived.\n"
    )
    w.write(f'const UnicodeVersion = "{unicode_version()}"\n\n')


def write_cldr_version(w: TextIO) -> None:
    """Write a constant holding the CLDR version of the tables."""
    w.write(
        "// CLDRVersion is the CLDR version from which the tables "
        "in this package are derived.\n"
    )
    w.write(f'const CLDRVersion = "{cldr_version()}"\n\n')


def file_to_pattern(filename: str) -> str:
    """Return ``filename`` with a ``%s`` placeholder before its suffix."""
    suffix = "_test.go" if filename.endswith("_test.go") else ".go"
    prefix = filename[: len(filename) - len(suffix)]
    return f"{prefix}%s{suffix}"


def tag_lines(tags: str) -> str:
    """Return the build constraint line for comma-separated ``tags``."""
    return "//go:build " + tags.replace(",", " && ") + "\n"


def _format(src: str) -> str:
    lines = [line.rstrip(" \t") for line in src.split("\n")]
    text = _EXTRA_NEWLINES.sub("\n\n", "\n".join(lines))
    return text.rstrip("\n") + "\n"


def write_go(w: TextIO, pkg: str, tags: str, b: str | bytes) -> int:
    """Write the standard header, build tags, package clause and ``b`` to ``w``.

    Runs of blank lines are collapsed. Returns the number of characters written.
    """
    if isinstance(b, bytes):
        b = b.decode("utf-8")
    parts = [HEADER]
    if tags:
        parts.append(tag_lines(tags))
        parts.append("\n")
    parts.append(f"package {pkg}\n\n")
    parts.append(b)
    return w.write(_format("".join(parts)))


def _write_file(filename: str, pkg: str, tags: str, b: str | bytes) -> None:
    try:
        with open(filename, "w", encoding="utf-8", newline="") as w:
            write_go(w, pkg, tags, b)
    except OSError as exc:
        raise GenError(f"Could not create file {filename}: {exc}") from exc


def write_go_file(filename: str, pkg: str, b: str | bytes) -> None:
    """Write ``b`` as a generated file of package ``pkg`` to ``filename``."""
    _write_file(filename, pkg, "", b)


def _update_build_tags(pattern: str) -> None:
    for version, tags in _TAGS:
        old_file = Path(pattern % version)
        try:
            content = old_file.read_text(encoding="utf-8")
        except OSError:
            continue
        content = _BUILD_LINE.sub(lambda _: tag_lines(tags), content)
        try:
            old_file.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise GenError(str(exc)) from exc


def write_versioned_go_file(filename: str, pkg: str, b: str | bytes) -> None:
    """Write ``b`` to a file named after the Unicode version, with its build tags.

    The build tags of files generated for the other known versions are
    refreshed as well.
    """
    tags = build_tags()
    pattern = file_to_pattern(filename)
    _update_build_tags(pattern)
    _write_file(pattern % unicode_version(), pkg, tags, b)


def repackage(in_file: str, out_file: str, pkg: str) -> None:
    """Rewrite a file of package main as a generated file of package ``pkg``."""
    try:
        src = Path(in_file).read_text(encoding="utf-8")
    except OSError as exc:
        raise GenError(f"reading {in_file}: {exc}") from exc
    marker = "package main\n\n"
    i = src.find(marker)
    if i < 0:
        raise GenError(f'Could not find "package main\\n\\n" in {in_file}.')
    write_go_file(out_file, pkg, src[i + len(marker):])