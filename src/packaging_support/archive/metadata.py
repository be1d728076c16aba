from __future__ import annotations

import json
import tarfile
from dataclasses import dataclass
from datetime import UTC, datetime
from importlib import resources
from pathlib import Path
from typing import Any

from packaging_support.archive.checksums import sha256_file, sha256_stream

METADATA_SCHEMA_VERSION = "1.0.0"
METADATA_SCHEMA_RESOURCE = "archive_metadata.schema.json"


@dataclass(frozen=True, slots=True)
class MemberRecord:
    name: str
    kind: str
    size: int
    mode: int
    uid: int
    gid: int
    mtime: int
    atime: int | None
    ctime: int | None
    sha256: str | None


def _kind(member: tarfile.TarInfo) -> str:
    if member.isdir():
        return "directory"
    if member.isreg():
        return "file"
    return "other"


def _pax_time(member: tarfile.TarInfo, key: str) -> int | None:
    raw = member.pax_headers.get(key)
    if raw is None:
        return None
    return int(float(raw))


def inspect_archive(path: str | Path) -> list[MemberRecord]:
    """Read a ``.tgz`` back into records, in archive order."""

    records: list[MemberRecord] = []
    with tarfile.open(Path(path), mode="r:gz") as tf:
        for member in tf:
            digest: str | None = None
            if member.isreg():
                extracted = tf.extractfile(member)
                if extracted is not None:
                    digest = sha256_stream(extracted)
            records.append(
                MemberRecord(
                    name=member.name,
                    kind=_kind(member),
                    size=member.size,
                    mode=member.mode,
                    uid=member.uid,
                    gid=member.gid,
                    mtime=int(member.mtime),
                    atime=_pax_time(member, "atime"),
                    ctime=_pax_time(member, "ctime"),
                    sha256=digest,
                )
            )
    return records


def entry_metadata(record: MemberRecord) -> dict[str, Any]:
    return {
        "name": record.name,
        "kind": record.kind,
        "size": record.size,
        "mode": f"{record.mode:04o}",
        "sha256": record.sha256,
    }


def describe_archive(path: str | Path, *, timestamp: datetime) -> dict[str, Any]:
    archive = Path(path)
    return {
        "schema_version": METADATA_SCHEMA_VERSION,
        "archive": archive.name,
        "archive_sha256": sha256_file(archive),
        "timestamp": timestamp.astimezone(UTC).isoformat(),
        "entries": [entry_metadata(r) for r in inspect_archive(archive)],
    }


def write_metadata(path: str | Path, data: dict[str, Any]) -> Path:
    """Write metadata JSON deterministically (sorted keys, LF, trailing newline)."""

    p = Path(path)
    p.write_text(
        json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False) + "\n",
        encoding="utf-8",
        newline="\n",
    )
    return p


def read_metadata(path: str | Path) -> dict[str, Any]:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("expected JSON object")
    return data


def load_metadata_schema() -> dict[str, Any]:
    text = (
        resources.files("packaging_support.archive")
        .joinpath(METADATA_SCHEMA_RESOURCE)
        .read_text(encoding="utf-8")
    )
    return json.loads(text)
