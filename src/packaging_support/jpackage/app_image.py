"""Run ``jpackage`` to produce an app image, then archive it reproducibly.

Steps:
1. run ``jpackage --type app-image`` into the output directory
2. prune runtime files the app never uses
3. add ``meta/`` with the bill of materials, license and README
4. write ``<app>_<version>_<os>-<arch>.tgz`` with fixed metadata
"""

from __future__ import annotations

import logging
from pathlib import Path

from packaging_support.archive import build
from packaging_support.cli import run_wrapper
from packaging_support.config import PackagingProperties
from packaging_support.extras import ExtrasSettings, write_extras
from packaging_support.jpackage.arguments import app_image_arguments
from packaging_support.jpackage.image_cleanup import clean_up_image
from packaging_support.jpackage.settings import JPackageSettings
from packaging_support.process import IS_WINDOWS, execute_program_and_log, log_arguments

LOG = logging.getLogger(__name__)


def create_archive(settings: JPackageSettings) -> Path:
    archive = settings.archive_path
    try:
        return build(settings.output_image, archive, timestamp=settings.archive_timestamp)
    except BaseException:
        LOG.error("Archive creation failed; removing %s", archive)
        archive.unlink(missing_ok=True)
        raise


def package_app_image(properties: PackagingProperties, *, is_windows: bool = IS_WINDOWS) -> Path:
    settings = JPackageSettings.from_properties(properties)
    extras = ExtrasSettings.from_properties(properties)

    settings.resource_directory.mkdir(parents=True, exist_ok=True)

    arguments = app_image_arguments(settings, is_windows=is_windows)
    LOG.info("Executing jpackage...")
    log_arguments("jpackage", arguments)
    execute_program_and_log(arguments, tool="jpackage")

    clean_up_image(settings.output_directory, settings.app_name, is_windows=is_windows)
    write_extras(settings.output_image / "meta", settings=extras, create_parents=False)

    archive = create_archive(settings)
    LOG.info("Wrote %s", archive)
    return archive


def main(argv: list[str] | None = None) -> int:
    return run_wrapper(
        argv,
        prog="jpackage-app-image",
        description="Run jpackage to produce a reproducible app image archive.",
        action=package_app_image,
    )


if __name__ == "__main__":
    raise SystemExit(main())
