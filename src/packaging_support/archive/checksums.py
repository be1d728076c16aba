from __future__ import annotations

import hashlib
from pathlib import Path
from typing import BinaryIO

CHUNK_SIZE = 1024 * 1024


def sha256_stream(stream: BinaryIO) -> str:
    digest = hashlib.sha256()
    for chunk in iter(lambda: stream.read(CHUNK_SIZE), b""):
        digest.update(chunk)
    return digest.hexdigest()


def sha256_file(path: str | Path) -> str:
    with Path(path).open("rb") as f:
        return sha256_stream(f)


def write_sha256_sidecar(file_path: str | Path, out: str | Path) -> Path:
    """Write ``<sha256>  <file name>`` for ``file_path``, as sha256sum prints it."""

    src = Path(file_path)
    sidecar = Path(out)
    sidecar.write_text(f"{sha256_file(src)}  {src.name}\n", encoding="utf-8", newline="\n")
    return sidecar


def read_sha256_sidecar(path: str | Path) -> tuple[str, str]:
    """Return ``(digest, file name)`` from a single-line sha256 sidecar."""

    lines = [ln for ln in Path(path).read_text(encoding="utf-8").splitlines() if ln.strip()]
    if len(lines) != 1:
        raise ValueError(f"Expected exactly one line in sha256 sidecar: {path}")
    parts = lines[0].split(maxsplit=1)
    if len(parts) != 2 or len(parts[0]) != 64:
        raise ValueError(f"Invalid sha256 sidecar line: {lines[0]!r}")
    return parts[0].lower(), parts[1].lstrip("*")
