"""Run ``jpackage`` to produce a Debian package."""

from __future__ import annotations

import logging

from packaging_support.cli import run_wrapper
from packaging_support.config import PackagingProperties
from packaging_support.extras import ExtrasSettings, write_extras
from packaging_support.jpackage.arguments import deb_arguments
from packaging_support.jpackage.settings import JPackageSettings
from packaging_support.process import execute_program_and_log, log_arguments

LOG = logging.getLogger(__name__)

DEFAULT_MAINTAINER = "code@io7m.com"


def package_deb(properties: PackagingProperties) -> None:
    settings = JPackageSettings.from_properties(properties)
    extras = ExtrasSettings.from_properties(properties)
    maintainer = properties.get("packaging.debMaintainer") or DEFAULT_MAINTAINER

    settings.resource_directory.mkdir(parents=True, exist_ok=True)

    arguments = deb_arguments(settings, maintainer=maintainer)
    LOG.info("Executing jpackage...")
    log_arguments("jpackage", arguments)

    # jpackage copies the extras directory into the package via --input.
    write_extras(settings.extras_directory, settings=extras, create_parents=True)
    execute_program_and_log(arguments, tool="jpackage")


def main(argv: list[str] | None = None) -> int:
    return run_wrapper(
        argv,
        prog="jpackage-deb",
        description="Run jpackage to produce a Debian package.",
        action=package_deb,
    )


if __name__ == "__main__":
    raise SystemExit(main())
