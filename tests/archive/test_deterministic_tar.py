from __future__ import annotations

import gzip
import logging
import os
import struct
import tarfile
from datetime import UTC, datetime
from pathlib import Path

import pytest

from packaging_support.archive import FILE_TIME, archive_entries, build, mode_of_file
from packaging_support.archive import deterministic_tar
from packaging_support.errors import ArchiveError
from tests.fixtures import EXAMPLE_FILES, make_tree

EPOCH = int(FILE_TIME.timestamp())


def _members(archive: Path) -> list[tarfile.TarInfo]:
    with tarfile.open(archive, mode="r:gz") as tf:
        return tf.getmembers()


def _contents(archive: Path) -> dict[str, bytes]:
    out: dict[str, bytes] = {}
    with tarfile.open(archive, mode="r:gz") as tf:
        for member in tf:
            if member.isreg():
                extracted = tf.extractfile(member)
                assert extracted is not None
                out[member.name] = extracted.read()
    return out


def test_example_tree_yields_expected_entries(tmp_path: Path) -> None:
    root = make_tree(tmp_path / "src")
    archive = build(root, tmp_path / "out.tgz")

    members = _members(archive)
    assert [(m.name, m.isdir()) for m in members] == [
        ("app", True),
        ("app/bin", True),
        ("app/README.txt", False),
        ("app/bin/app", False),
    ]

    by_name = {m.name: m for m in members}
    assert by_name["app/bin"].size == 0
    assert by_name["app/bin"].mode == 0o755
    assert by_name["app/README.txt"].mode == 0o644
    assert by_name["app/README.txt"].size == 5
    assert by_name["app/bin/app"].mode == 0o755
    assert by_name["app/bin/app"].size == 10


def test_every_entry_has_pinned_times_and_owner(tmp_path: Path) -> None:
    root = make_tree(tmp_path / "src", mtime=1_700_000_000)
    archive = build(root, tmp_path / "out.tgz")

    for member in _members(archive):
        assert member.mtime == EPOCH
        assert member.pax_headers["atime"] == str(EPOCH)
        assert member.pax_headers["ctime"] == str(EPOCH)
        assert member.uid == 0
        assert member.gid == 0
        assert member.uname == ""
        assert member.gname == ""
        assert member.mode in (0o755, 0o644)


def test_output_ignores_timestamps_and_enumeration_order(tmp_path: Path, monkeypatch) -> None:
    files = {
        "README.txt": b"hello",
        "bin/app": b"0123456789",
        "lib/z.jar": b"zzz",
        "lib/a.jar": b"aaa",
        "lib/nested/deep/config.properties": b"k=v\n",
        "empty/.keep": b"",
    }
    first = make_tree(tmp_path / "one", files, mtime=1_000_000_000)
    second = make_tree(tmp_path / "two", files, reverse=True, mtime=1_600_000_000)

    out1 = build(first, tmp_path / "one.tgz")

    real_walk = os.walk

    def _reversed_walk(top, *args, **kwargs):  # noqa: ANN001
        for cur_root, dir_names, file_names in real_walk(top, *args, **kwargs):
            dir_names.reverse()
            yield cur_root, dir_names, list(reversed(file_names))

    monkeypatch.setattr(deterministic_tar.os, "walk", _reversed_walk)
    out2 = build(second, tmp_path / "two.tgz")

    assert out1.read_bytes() == out2.read_bytes()


def test_rebuild_is_idempotent_and_truncates(tmp_path: Path) -> None:
    root = make_tree(tmp_path / "src")
    destination = tmp_path / "out.tgz"
    destination.write_bytes(b"x" * 100_000)

    first = build(root, destination).read_bytes()
    second = build(root, destination).read_bytes()

    assert first == second
    assert len(first) < 100_000


def test_roundtrip_reproduces_paths_and_contents(tmp_path: Path) -> None:
    files = {
        "README.txt": b"hello",
        "bin/app": b"0123456789",
        "lib/app/app.jar": bytes(range(256)) * 64,
    }
    root = make_tree(tmp_path / "src", files)
    (root / "lib" / "empty").mkdir()
    archive = build(root, tmp_path / "out.tgz")

    expected_files = {f"app/{rel}": data for rel, data in files.items()}
    assert _contents(archive) == expected_files

    dirs = {m.name for m in _members(archive) if m.isdir()}
    assert dirs == {"app", "app/bin", "app/lib", "app/lib/app", "app/lib/empty"}


def test_directories_precede_files_in_bytewise_order(tmp_path: Path) -> None:
    files = {
        "a-c": b"1",
        "a/b": b"2",
        "B.txt": b"3",
        "a.txt": b"4",
    }
    root = make_tree(tmp_path / "src", files, executables=frozenset())
    archive = build(root, tmp_path / "out.tgz")

    names = [m.name for m in _members(archive)]
    assert names == ["app", "app/a", "app/B.txt", "app/a-c", "app/a.txt", "app/a/b"]


def test_gzip_header_is_fixed(tmp_path: Path) -> None:
    root = make_tree(tmp_path / "src")
    data = build(root, tmp_path / "out.tgz").read_bytes()

    assert data[:3] == b"\x1f\x8b\x08"
    flags = data[3]
    assert flags == 0, "no file name or other optional header fields"
    (mtime,) = struct.unpack("<I", data[4:8])
    assert mtime == EPOCH
    assert data[8] == 2, "maximum compression"
    assert data[9] == 255, "unknown operating system"


def test_custom_timestamp_is_applied(tmp_path: Path) -> None:
    instant = datetime(2024, 6, 1, 12, 0, 0, tzinfo=UTC)
    root = make_tree(tmp_path / "src")
    archive = build(root, tmp_path / "out.tgz", timestamp=instant)

    for member in _members(archive):
        assert member.mtime == int(instant.timestamp())

    with gzip.open(archive, "rb") as f:
        f.read(1)
        assert f.mtime == int(instant.timestamp())


def test_naive_timestamp_is_rejected(tmp_path: Path) -> None:
    root = make_tree(tmp_path / "src")
    with pytest.raises(ValueError):
        build(root, tmp_path / "out.tgz", timestamp=datetime(2020, 1, 1))


def test_long_names_are_preserved(tmp_path: Path) -> None:
    rel = "/".join(["segment-" + "x" * 20] * 8) + "/file.txt"
    assert len(rel) > 100
    root = make_tree(tmp_path / "src", {rel: b"long"}, executables=frozenset())
    archive = build(root, tmp_path / "out.tgz")

    assert _contents(archive) == {f"app/{rel}": b"long"}


def test_symlinks_are_skipped_with_warning(tmp_path: Path, caplog) -> None:
    plain = make_tree(tmp_path / "plain")
    linked = make_tree(tmp_path / "linked")
    os.symlink(linked / "README.txt", linked / "readme-link")
    os.symlink(linked / "bin", linked / "bin-link")

    caplog.set_level(logging.WARNING, logger="packaging_support.archive.deterministic_tar")
    out_plain = build(plain, tmp_path / "plain.tgz")
    out_linked = build(linked, tmp_path / "linked.tgz")

    assert out_plain.read_bytes() == out_linked.read_bytes()
    assert any("readme-link" in r.getMessage() for r in caplog.records)


def test_symlinked_root_keeps_its_directory_entry(tmp_path: Path, caplog) -> None:
    real = make_tree(tmp_path / "real")
    (tmp_path / "linked").mkdir()
    linked_root = tmp_path / "linked" / "app"
    os.symlink(real, linked_root)

    caplog.set_level(logging.WARNING, logger="packaging_support.archive.deterministic_tar")
    via_link = build(linked_root, tmp_path / "via-link.tgz")
    direct = build(real, tmp_path / "direct.tgz")

    assert [(m.name, m.isdir()) for m in _members(via_link)] == [
        ("app", True),
        ("app/bin", True),
        ("app/README.txt", False),
        ("app/bin/app", False),
    ]
    assert via_link.read_bytes() == direct.read_bytes()
    assert not any("Skipping unsupported file type" in r.getMessage() for r in caplog.records)


def test_archive_entries_match_written_order(tmp_path: Path) -> None:
    root = make_tree(tmp_path / "src")
    planned = archive_entries(root)
    archive = build(root, tmp_path / "out.tgz")

    assert [e.name for e in planned] == [m.name for m in _members(archive)]
    assert [e.mode for e in planned] == [0o755, 0o755, 0o644, 0o755]
    assert sum(e.size for e in planned) == sum(len(v) for v in EXAMPLE_FILES.values())


def test_mode_of_file_follows_executable_bit(tmp_path: Path) -> None:
    script = tmp_path / "script.sh"
    script.write_text("#!/bin/sh\n", encoding="utf-8")
    script.chmod(0o700)
    data = tmp_path / "data.bin"
    data.write_bytes(b"\x00")
    data.chmod(0o600)

    assert mode_of_file(script) == 0o755
    assert mode_of_file(data) == 0o644


def test_missing_root_raises_oserror(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        build(tmp_path / "missing", tmp_path / "out.tgz")


def test_root_must_be_a_directory(tmp_path: Path) -> None:
    file_root = tmp_path / "file"
    file_root.write_bytes(b"x")
    with pytest.raises(NotADirectoryError):
        build(file_root, tmp_path / "out.tgz")


def test_missing_destination_parent_raises_oserror(tmp_path: Path) -> None:
    root = make_tree(tmp_path / "src")
    with pytest.raises(FileNotFoundError):
        build(root, tmp_path / "no" / "such" / "dir" / "out.tgz")


def test_build_never_writes_inside_root(tmp_path: Path) -> None:
    root = make_tree(tmp_path / "src")
    before = sorted(p.relative_to(root) for p in root.rglob("*"))
    build(root, tmp_path / "out.tgz")
    assert sorted(p.relative_to(root) for p in root.rglob("*")) == before


def test_gzip_finish_failure_is_reported_as_archive_error(tmp_path: Path, monkeypatch) -> None:
    class _FullDiskGzip(gzip.GzipFile):
        def close(self) -> None:
            super().close()
            raise OSError(28, "No space left on device")

    monkeypatch.setattr(deterministic_tar.gzip, "GzipFile", _FullDiskGzip)

    root = make_tree(tmp_path / "src")
    with pytest.raises(ArchiveError) as excinfo:
        build(root, tmp_path / "out.tgz")

    assert isinstance(excinfo.value.__cause__, OSError)
    assert "gzip stream" in str(excinfo.value)
