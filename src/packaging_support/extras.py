from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from packaging_support.config import PackagingProperties

LOG = logging.getLogger(__name__)

README_TEMPLATE = """\
{app_name} {app_version}

This is an application image produced using platform-specific packaging
scripts to repackage the original platform-independent binaries.

The original platform-independent binaries were produced from the
sources at:

  {source_url}

Whilst the packaging scripts themselves are available at:

  {scripts_url}
"""


@dataclass(frozen=True, slots=True)
class ExtrasSettings:
    app_name: str
    app_version: str
    distribution: Path
    license_file: Path
    source_url: str
    scripts_url: str

    @classmethod
    def from_properties(cls, properties: PackagingProperties) -> ExtrasSettings:
        return cls(
            app_name=properties.require("packaging.appName"),
            app_version=properties.require("packaging.appVersion"),
            distribution=properties.path("packaging.distribution"),
            license_file=properties.path("packaging.licenseFile"),
            source_url=properties.require("packaging.sourceURL"),
            scripts_url=properties.require("packaging.scriptsURL"),
        )

    @property
    def bom_file(self) -> Path:
        return self.distribution / self.app_name / "bom.xml"


def render_readme(settings: ExtrasSettings) -> str:
    return README_TEMPLATE.format(
        app_name=settings.app_name,
        app_version=settings.app_version,
        source_url=settings.source_url,
        scripts_url=settings.scripts_url,
    )


def _copy_new(src: Path, dst: Path) -> None:
    if dst.exists():
        raise FileExistsError(f"refusing to overwrite existing file: {dst}")
    LOG.info("Copy %s -> %s", src, dst)
    shutil.copyfile(src, dst)


def write_extras(directory: Path, *, settings: ExtrasSettings, create_parents: bool) -> Path:
    """Write the bill of materials, license and README next to a packaged app.

    With ``create_parents`` the directory may already exist; otherwise it is
    created and must not exist yet.
    """

    if create_parents:
        directory.mkdir(parents=True, exist_ok=True)
    else:
        directory.mkdir()

    _copy_new(settings.bom_file, directory / "bom.xml")
    _copy_new(settings.license_file, directory / "LICENSE.txt")

    readme = directory / "README.txt"
    if readme.exists():
        raise FileExistsError(f"refusing to overwrite existing file: {readme}")
    readme.write_text(render_readme(settings), encoding="utf-8", newline="\n")
    return directory
