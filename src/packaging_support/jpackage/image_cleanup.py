from __future__ import annotations

import logging
import shutil
from pathlib import Path

from packaging_support.process import IS_WINDOWS

LOG = logging.getLogger(__name__)


def paths_to_prune(output_directory: Path, app_name: str, *, is_windows: bool = IS_WINDOWS) -> list[Path]:
    """Files jpackage leaves in a Linux/macOS image that the app never needs.

    Windows images are left alone; pruning them has proven unreliable.
    """

    if is_windows:
        return []

    output_app = output_directory / app_name
    runtime = output_app / "lib" / "runtime"
    return [
        runtime / "lib" / "server" / "classes.jsa",
        runtime / "lib" / "server" / "classes_nocoops.jsa",
        runtime / "bin",
        runtime / "legal",
        runtime / "conf" / "sdp",
        output_app / "lib" / "app" / ".jpackage.xml",
    ]


def clean_up_image(output_directory: Path, app_name: str, *, is_windows: bool = IS_WINDOWS) -> None:
    for path in paths_to_prune(output_directory, app_name, is_windows=is_windows):
        if path.is_dir() and not path.is_symlink():
            LOG.info("Remove %s", path)
            shutil.rmtree(path)
        elif path.exists() or path.is_symlink():
            LOG.info("Remove %s", path)
            path.unlink()
        else:
            LOG.info("Remove %s (already absent)", path)
