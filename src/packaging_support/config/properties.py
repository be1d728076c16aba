"""Java-style ``.properties`` files.

Every packaging wrapper is driven by a single property file written by the
build that invokes it. The format is the one ``java.util.Properties`` reads:

- ``#`` and ``!`` start comment lines
- keys end at the first unescaped ``=``, ``:`` or whitespace
- a line ending in an odd number of backslashes continues on the next line
- ``\\t``, ``\\n``, ``\\r``, ``\\f`` and ``\\uXXXX`` escapes; any other escaped
  character stands for itself

Files are decoded as ISO-8859-1; non-Latin-1 text must use ``\\uXXXX``.
"""

from __future__ import annotations

import os
import string
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from packaging_support.errors import MissingPropertyError, PackagingError

PROPERTIES_ENCODING = "iso-8859-1"

_WHITESPACE = " \t\f"
_SEPARATORS = "=:"
_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def _logical_lines(text: str) -> Iterator[str]:
    pending: str | None = None
    for raw_line in text.splitlines():
        line = raw_line.lstrip(_WHITESPACE)
        if pending is None and (not line or line[0] in "#!"):
            continue

        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending = (pending or "") + line[:-1]
            continue

        yield (pending or "") + line
        pending = None

    if pending is not None:
        yield pending


def _unescape(text: str) -> str:
    out: list[str] = []
    index = 0
    length = len(text)
    while index < length:
        char = text[index]
        if char != "\\":
            out.append(char)
            index += 1
            continue

        index += 1
        if index >= length:
            break

        escaped = text[index]
        if escaped == "u":
            digits = text[index + 1 : index + 5]
            if len(digits) != 4 or any(d not in string.hexdigits for d in digits):
                raise PackagingError(f"Malformed \\uxxxx escape in property text: {text!r}")
            out.append(chr(int(digits, 16)))
            index += 5
            continue

        out.append(_ESCAPES.get(escaped, escaped))
        index += 1
    return "".join(out)


def _split_key_value(line: str) -> tuple[str, str]:
    index = 0
    length = len(line)
    while index < length:
        char = line[index]
        if char == "\\":
            index += 2
            continue
        if char in _SEPARATORS or char in _WHITESPACE:
            break
        index += 1

    key = line[:index]
    rest = line[index:].lstrip(_WHITESPACE)
    if rest[:1] in ("=", ":"):
        rest = rest[1:].lstrip(_WHITESPACE)
    return _unescape(key), _unescape(rest)


def parse_properties(text: str) -> dict[str, str]:
    values: dict[str, str] = {}
    for line in _logical_lines(text):
        key, value = _split_key_value(line)
        values[key] = value
    return values


@dataclass(frozen=True, slots=True)
class PackagingProperties:
    values: dict[str, str] = field(default_factory=dict)
    source: Path | None = None

    def __contains__(self, key: object) -> bool:
        return key in self.values

    def get(self, key: str, default: str | None = None) -> str | None:
        return self.values.get(key, default)

    def require(self, key: str) -> str:
        value = self.values.get(key)
        if value is None:
            raise MissingPropertyError(key)
        return value

    def path(self, key: str) -> Path:
        return Path(os.path.normpath(self.require(key)))

    def absolute_path(self, key: str) -> Path:
        return Path(os.path.normpath(Path(self.require(key)).absolute()))

    def timestamp(self, key: str, default: datetime) -> datetime:
        raw = self.values.get(key)
        if raw is None or not raw.strip():
            return default
        try:
            parsed = datetime.fromisoformat(raw.strip())
        except ValueError as exc:
            raise PackagingError(f"Property {key} is not an ISO-8601 timestamp: {raw!r}") from exc
        if parsed.tzinfo is None:
            raise PackagingError(f"Property {key} must carry a UTC offset: {raw!r}")
        return parsed


def load_properties(path: str | Path) -> PackagingProperties:
    p = Path(path)
    text = p.read_text(encoding=PROPERTIES_ENCODING)
    return PackagingProperties(values=parse_properties(text), source=p)
