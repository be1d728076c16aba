from __future__ import annotations

SNAPSHOT_SUFFIX = "-SNAPSHOT"


def windows_version(version: str) -> str:
    """Windows executables and installers only accept purely numeric versions."""

    return version.replace(SNAPSHOT_SUFFIX, "")
