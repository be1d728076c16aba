from __future__ import annotations

import argparse
import os
import tarfile
import zlib
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import jsonschema

from packaging_support.archive import FILE_TIME
from packaging_support.archive.checksums import read_sha256_sidecar, sha256_file
from packaging_support.archive.deterministic_tar import DIRECTORY_MODE, EXECUTABLE_MODE, REGULAR_MODE
from packaging_support.archive.metadata import (
    MemberRecord,
    entry_metadata,
    inspect_archive,
    load_metadata_schema,
    read_metadata,
)

ALLOWED_FILE_MODES = {EXECUTABLE_MODE, REGULAR_MODE}


@dataclass(frozen=True, slots=True)
class ValidationResult:
    ok: bool
    errors: list[str]
    warnings: list[str]


def _check_member(record: MemberRecord, epoch: int, errors: list[str], warnings: list[str]) -> None:
    if record.kind == "other":
        errors.append(f"Unsupported entry type: {record.name}")
        return

    if record.kind == "directory" and record.mode != DIRECTORY_MODE:
        errors.append(f"Directory mode must be 0755: {record.name} has {record.mode:04o}")
    if record.kind == "file" and record.mode not in ALLOWED_FILE_MODES:
        errors.append(f"File mode must be 0755 or 0644: {record.name} has {record.mode:04o}")

    if record.uid != 0 or record.gid != 0:
        errors.append(f"Owner must be 0:0: {record.name} has {record.uid}:{record.gid}")

    if record.mtime != epoch:
        errors.append(f"mtime mismatch for {record.name}: expected={epoch} actual={record.mtime}")

    for label, value in (("atime", record.atime), ("ctime", record.ctime)):
        if value is None:
            warnings.append(f"Missing {label} record: {record.name}")
        elif value != epoch:
            errors.append(f"{label} mismatch for {record.name}: expected={epoch} actual={value}")


def _check_order(records: list[MemberRecord], errors: list[str]) -> None:
    seen_file = False
    for record in records:
        if record.kind == "file":
            seen_file = True
        elif record.kind == "directory" and seen_file:
            errors.append(f"Directory listed after files: {record.name}")

    for kind in ("directory", "file"):
        names = [r.name for r in records if r.kind == kind]
        if names != sorted(names, key=os.fsencode):
            errors.append(f"Entries of kind {kind} are not sorted")


def _check_metadata(
    archive_path: Path,
    records: list[MemberRecord],
    timestamp: datetime,
    metadata_file: Path,
    errors: list[str],
) -> None:
    try:
        metadata = read_metadata(metadata_file)
    except (OSError, ValueError) as exc:
        errors.append(f"Failed to read metadata: {exc.__class__.__name__}: {exc}")
        return

    try:
        jsonschema.validate(instance=metadata, schema=load_metadata_schema())
    except jsonschema.ValidationError as exc:
        errors.append(f"Metadata does not match schema: {exc.message}")
        return

    if metadata["archive_sha256"] != sha256_file(archive_path):
        errors.append("Metadata archive_sha256 does not match the archive")

    if datetime.fromisoformat(metadata["timestamp"]) != timestamp:
        errors.append(f"Metadata timestamp {metadata['timestamp']} does not match the expected instant")

    expected = [entry_metadata(r) for r in records]
    if metadata["entries"] != expected:
        listed = {e["name"] for e in metadata["entries"]}
        actual = {e["name"] for e in expected}
        for name in sorted(actual - listed):
            errors.append(f"Entry missing from metadata: {name}")
        for name in sorted(listed - actual):
            errors.append(f"Metadata lists entry not in archive: {name}")
        if listed == actual:
            errors.append("Metadata entries differ from the archive (order, size, mode or digest)")


def validate_archive(
    archive: str | Path,
    *,
    timestamp: datetime = FILE_TIME,
    sha256_sidecar: str | Path | None = None,
    metadata_file: str | Path | None = None,
) -> ValidationResult:
    archive_path = Path(archive)
    errors: list[str] = []
    warnings: list[str] = []

    if not archive_path.exists():
        return ValidationResult(False, [f"Archive does not exist: {archive_path}"], [])
    if not archive_path.is_file():
        return ValidationResult(False, [f"Archive is not a file: {archive_path}"], [])

    try:
        records = inspect_archive(archive_path)
    except (tarfile.TarError, OSError, EOFError, zlib.error) as exc:
        return ValidationResult(
            False, [f"Failed to read archive: {exc.__class__.__name__}: {exc}"], []
        )

    if not records:
        return ValidationResult(False, ["Archive contains no entries"], [])

    epoch = int(timestamp.timestamp())
    for record in records:
        _check_member(record, epoch, errors, warnings)
    _check_order(records, errors)

    if sha256_sidecar is not None:
        try:
            expected_digest, listed_name = read_sha256_sidecar(sha256_sidecar)
        except (OSError, ValueError) as exc:
            errors.append(f"Failed to parse sha256 sidecar: {exc}")
        else:
            actual_digest = sha256_file(archive_path)
            if actual_digest != expected_digest:
                errors.append(
                    f"SHA256 mismatch for {archive_path.name}: "
                    f"expected={expected_digest} actual={actual_digest}"
                )
            if listed_name != archive_path.name:
                warnings.append(f"sha256 sidecar names {listed_name}, not {archive_path.name}")

    if metadata_file is not None:
        _check_metadata(archive_path, records, timestamp, Path(metadata_file), errors)

    return ValidationResult(ok=not errors, errors=errors, warnings=warnings)


def _parse_timestamp(raw: str) -> datetime:
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        raise argparse.ArgumentTypeError(f"timestamp must carry a UTC offset: {raw!r}")
    return parsed


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python scripts/validate_archive.py",
        description=(
            "Validate a reproducible .tgz archive (fixed metadata, ordering, and optional "
            "sha256 sidecar / metadata JSON)."
        ),
    )
    parser.add_argument("archive", type=str, help="Path to the .tgz archive")
    parser.add_argument("--timestamp", type=_parse_timestamp, default=FILE_TIME)
    parser.add_argument("--sha256", dest="sha256_sidecar", default=None, help="sha256 sidecar file")
    parser.add_argument("--metadata", dest="metadata_file", default=None, help="metadata JSON file")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    result = validate_archive(
        args.archive,
        timestamp=args.timestamp,
        sha256_sidecar=args.sha256_sidecar,
        metadata_file=args.metadata_file,
    )

    if result.warnings:
        for w in result.warnings:
            print(f"WARN: {w}")

    if result.ok:
        print("PASS: archive is reproducible")
        return 0

    print("FAIL: archive is invalid")
    for e in result.errors:
        print(f"- {e}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
