"""Reproducible ``.tgz`` archives of a directory tree.

The bytes written depend only on the relative paths, the file contents and
the executable bit of each file:

- directories are written first, then regular files, each group sorted
  byte-wise by path
- entry names are relative to the parent of the root, so the root's own name
  is the first path component
- mode is 0755 for directories and executable files, 0644 otherwise
- mtime, atime and ctime are pinned to one instant; uid/gid are 0 and the
  owner/group names are empty
- the gzip header carries the same instant, level 9 and OS byte 255
"""

from __future__ import annotations

import gzip
import logging
import os
import stat
import tarfile
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from types import TracebackType
from typing import Any

from packaging_support.errors import ArchiveError

LOG = logging.getLogger(__name__)

FILE_TIME = datetime(2020, 1, 1, 0, 0, 0, tzinfo=UTC)

DIRECTORY_MODE = 0o755
EXECUTABLE_MODE = 0o755
REGULAR_MODE = 0o644

COMPRESSION_LEVEL = 9


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    source: Path
    name: str
    is_directory: bool
    size: int
    mode: int


def _raise_walk_error(exc: OSError) -> None:
    raise exc


def _walk(root: Path) -> list[tuple[Path, os.stat_result]]:
    # The root itself may be reached through a symlink; descendants may not.
    found: list[tuple[Path, os.stat_result]] = [(root, root.stat())]
    for cur_root, dir_names, file_names in os.walk(root, onerror=_raise_walk_error):
        base = Path(cur_root)
        for name in dir_names + file_names:
            child = base / name
            found.append((child, child.lstat()))
    return found


def _sort_key(root: Path, path: Path) -> bytes:
    return os.fsencode(entry_name(root, path))


def entry_name(root: Path, path: Path) -> str:
    """Name of ``path`` inside the archive: relative to the parent of ``root``."""

    return path.relative_to(root.parent).as_posix()


def collect_directories(root: Path) -> list[Path]:
    directories = [p for p, st in _walk(root) if stat.S_ISDIR(st.st_mode)]
    directories.sort(key=lambda p: _sort_key(root, p))
    return directories


def collect_files(root: Path) -> list[Path]:
    files: list[Path] = []
    for p, st in _walk(root):
        if stat.S_ISREG(st.st_mode):
            files.append(p)
        elif not stat.S_ISDIR(st.st_mode):
            # Symlinks, sockets, FIFOs and devices have no place in the archive.
            LOG.warning("Skipping unsupported file type: %s", p)
    files.sort(key=lambda p: _sort_key(root, p))
    return files


def mode_of_file(path: Path) -> int:
    if os.access(path, os.X_OK):
        return EXECUTABLE_MODE
    return REGULAR_MODE


def archive_entries(root: str | Path) -> list[ArchiveEntry]:
    """Return the entries ``build`` would write, in the order it writes them."""

    root_path = _checked_root(root)
    entries = [
        ArchiveEntry(
            source=d,
            name=entry_name(root_path, d),
            is_directory=True,
            size=0,
            mode=DIRECTORY_MODE,
        )
        for d in collect_directories(root_path)
    ]
    for f in collect_files(root_path):
        entries.append(
            ArchiveEntry(
                source=f,
                name=entry_name(root_path, f),
                is_directory=False,
                size=f.stat().st_size,
                mode=mode_of_file(f),
            )
        )
    return entries


def _checked_root(root: str | Path) -> Path:
    root_path = Path(os.path.normpath(Path(root).absolute()))
    if not root_path.exists():
        raise FileNotFoundError(f"archive root not found: {root_path}")
    if not root_path.is_dir():
        raise NotADirectoryError(f"archive root is not a directory: {root_path}")
    return root_path


def _epoch_seconds(timestamp: datetime) -> int:
    if timestamp.tzinfo is None:
        raise ValueError("archive timestamp must be timezone-aware")
    return int(timestamp.timestamp())


def _tar_info(name: str, *, is_directory: bool, size: int, mode: int, epoch: int) -> tarfile.TarInfo:
    info = tarfile.TarInfo(name)
    info.type = tarfile.DIRTYPE if is_directory else tarfile.REGTYPE
    info.size = size
    info.mode = mode
    info.mtime = epoch
    info.uid = 0
    info.gid = 0
    info.uname = ""
    info.gname = ""
    # ustar has no atime/ctime fields; PAX records carry them.
    info.pax_headers = {"atime": str(epoch), "ctime": str(epoch)}
    return info


class _ClosingChain:
    """Close a stack of layered streams, outermost first.

    Every layer is closed even if closing an earlier one failed. The first
    failure is reported: tar and gzip layers as :class:`ArchiveError`, the
    underlying file as the ``OSError`` it raised.
    """

    def __init__(self) -> None:
        self._layers: list[tuple[str, Any, bool]] = []

    def add(self, label: str, resource: Any, *, framing: bool) -> Any:
        self._layers.append((label, resource, framing))
        return resource

    def __enter__(self) -> _ClosingChain:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        first: tuple[str, Exception, bool] | None = None
        while self._layers:
            label, resource, framing = self._layers.pop()
            try:
                resource.close()
            except Exception as close_exc:
                if first is None:
                    first = (label, close_exc, framing)
                else:
                    LOG.debug("Further failure closing %s: %s", label, close_exc)

        if first is None or exc is not None:
            return False

        label, close_exc, framing = first
        if framing:
            raise ArchiveError(f"Failed to finish {label}: {close_exc}") from close_exc
        raise close_exc


def build(
    root: str | Path,
    destination: str | Path,
    *,
    timestamp: datetime = FILE_TIME,
) -> Path:
    """Write a reproducible gzip-compressed tar of ``root`` to ``destination``.

    ``destination`` is created or truncated; its parent must exist. On failure
    its contents are undefined and callers should discard it.
    """

    root_path = _checked_root(root)
    out = Path(destination)
    epoch = _epoch_seconds(timestamp)

    directories = collect_directories(root_path)
    files = collect_files(root_path)

    with _ClosingChain() as chain:
        sink = chain.add("destination", open(out, "wb"), framing=False)
        gzip_stream = chain.add(
            "gzip stream",
            gzip.GzipFile(
                filename="",
                mode="wb",
                fileobj=sink,
                compresslevel=COMPRESSION_LEVEL,
                mtime=epoch,
            ),
            framing=True,
        )
        tar_out = chain.add(
            "tar stream",
            tarfile.open(
                fileobj=gzip_stream,
                mode="w|",
                format=tarfile.PAX_FORMAT,
                encoding="utf-8",
            ),
            framing=True,
        )

        for directory in directories:
            name = entry_name(root_path, directory)
            LOG.info("Tar: %s", name)
            tar_out.addfile(
                _tar_info(name, is_directory=True, size=0, mode=DIRECTORY_MODE, epoch=epoch)
            )

        for file in files:
            name = entry_name(root_path, file)
            info = _tar_info(
                name,
                is_directory=False,
                size=file.stat().st_size,
                mode=mode_of_file(file),
                epoch=epoch,
            )
            LOG.info("Tar: %s", name)
            with file.open("rb") as f:
                tar_out.addfile(info, fileobj=f)

    return out
