from packaging_support.archive.deterministic_tar import (
    FILE_TIME,
    ArchiveEntry,
    archive_entries,
    build,
    collect_directories,
    collect_files,
    mode_of_file,
)

__all__ = [
    "FILE_TIME",
    "ArchiveEntry",
    "archive_entries",
    "build",
    "collect_directories",
    "collect_files",
    "mode_of_file",
]
