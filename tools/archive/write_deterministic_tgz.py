#!/usr/bin/env python3
"""Create a reproducible .tgz archive of a folder.

- Entries are named relative to the folder's parent (the folder name is the
  top-level directory inside the archive)
- Directories first, then files, each sorted byte-wise
- Fixed timestamps, ownership and permissions (0755/0644)

Optionally writes a sha256 sidecar and a metadata JSON describing every entry,
which scripts/validate_archive.py can check later.
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

from packaging_support.archive import FILE_TIME, archive_entries, build
from packaging_support.archive.checksums import write_sha256_sidecar
from packaging_support.archive.metadata import describe_archive, write_metadata
from packaging_support.errors import ArchiveError
from packaging_support.log_setup import configure_logging

LOG = logging.getLogger("packaging_support.tools.write_deterministic_tgz")


def _parse_timestamp(raw: str) -> datetime:
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        raise argparse.ArgumentTypeError(f"timestamp must carry a UTC offset: {raw!r}")
    return parsed


def write_tgz(
    *,
    root: Path,
    out: Path,
    timestamp: datetime = FILE_TIME,
    sha256_out: Path | None = None,
    metadata_out: Path | None = None,
) -> Path:
    root = root.resolve()
    out = out.resolve()

    # Never include the archive being written inside itself.
    if out.is_relative_to(root):
        raise ValueError("--out must not be inside --root")

    out.parent.mkdir(parents=True, exist_ok=True)
    try:
        build(root, out, timestamp=timestamp)
    except BaseException:
        out.unlink(missing_ok=True)
        raise

    if sha256_out is not None:
        sha256_out.parent.mkdir(parents=True, exist_ok=True)
        write_sha256_sidecar(out, sha256_out)

    if metadata_out is not None:
        metadata_out.parent.mkdir(parents=True, exist_ok=True)
        write_metadata(metadata_out, describe_archive(out, timestamp=timestamp))

    return out


def print_plan(root: Path) -> None:
    for entry in archive_entries(root):
        suffix = "/" if entry.is_directory else ""
        print(f"{entry.mode:04o} {entry.size:>12} {entry.name}{suffix}")


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Create a reproducible .tgz archive of a folder")
    ap.add_argument("--root", type=Path, required=True)
    ap.add_argument("--out", type=Path, help="Path to write .tgz")
    ap.add_argument(
        "--timestamp",
        type=_parse_timestamp,
        default=FILE_TIME,
        help="Fixed ISO-8601 instant for every entry (default: 2020-01-01T00:00:00+00:00)",
    )
    ap.add_argument("--sha256-out", type=Path, default=None, help="Optional sha256 sidecar path")
    ap.add_argument("--metadata-out", type=Path, default=None, help="Optional metadata JSON path")
    ap.add_argument("--list", action="store_true", help="Print the entries and write nothing")
    ap.add_argument("--log-level", default="WARNING")
    args = ap.parse_args(argv)

    configure_logging(args.log_level)

    if args.list:
        try:
            print_plan(args.root)
        except OSError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1
        return 0

    if args.out is None:
        ap.error("--out is required unless --list is given")

    try:
        write_tgz(
            root=args.root,
            out=args.out,
            timestamp=args.timestamp,
            sha256_out=args.sha256_out,
            metadata_out=args.metadata_out,
        )
    except ValueError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2
    except (ArchiveError, OSError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    print(f"wrote {args.out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
