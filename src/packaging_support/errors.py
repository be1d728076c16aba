from __future__ import annotations


class PackagingError(RuntimeError):
    """A packaging wrapper cannot proceed with the configuration it was given."""


class MissingPropertyError(PackagingError):
    def __init__(self, key: str) -> None:
        super().__init__(f"Missing required property: {key}")
        self.key = key


class ArchiveError(Exception):
    """The tar or gzip framing of an archive could not be completed."""
