"""Generate a WiX v4 source file for an MSI installer and optionally build it.

The installer embeds every regular file of ``<distribution>/<appName>`` under
``Program Files/<manufacturer>/<appLongName>``. Components are emitted in
sorted path order so that the generated source is stable across runs.
"""

from __future__ import annotations

import logging
import os
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path

from packaging_support.cli import run_wrapper
from packaging_support.config import PackagingProperties, windows_version
from packaging_support.process import execute_program_and_log, log_arguments

LOG = logging.getLogger(__name__)

WIX_NAMESPACE = "http://wixtoolset.org/schemas/v4/wxs"

ET.register_namespace("", WIX_NAMESPACE)


def _tag(name: str) -> str:
    return f"{{{WIX_NAMESPACE}}}{name}"


@dataclass(frozen=True, slots=True)
class WixSettings:
    output_wix_file: Path
    app_name: str
    app_long_name: str
    app_version: str
    upgrade_code: str
    manufacturer: str
    icon: Path
    input_distribution: Path
    wix_executable: str | None
    output_msi_file: Path | None

    @classmethod
    def from_properties(cls, properties: PackagingProperties) -> WixSettings:
        app_name = properties.require("packaging.appName")
        wix_executable = properties.get("packaging.wix")
        return cls(
            output_wix_file=properties.path("packaging.outputWixFile"),
            app_name=app_name,
            app_long_name=properties.require("packaging.appLongName"),
            app_version=windows_version(properties.require("packaging.appVersion")),
            upgrade_code=properties.require("packaging.upgradeCode"),
            manufacturer=properties.require("packaging.manufacturer"),
            icon=properties.absolute_path("packaging.icon64"),
            input_distribution=properties.path("packaging.distribution") / app_name,
            wix_executable=wix_executable,
            output_msi_file=properties.path("packaging.outputMsiFile") if wix_executable else None,
        )


def _sub(parent: ET.Element, name: str, **attributes: str) -> ET.Element:
    return ET.SubElement(parent, _tag(name), attributes)


def _package_element(root: ET.Element, settings: WixSettings) -> None:
    package = _sub(
        root,
        "Package",
        Language="1033",
        Manufacturer=settings.manufacturer,
        Name=settings.app_long_name,
        Version=settings.app_version,
        UpgradeCode=settings.upgrade_code,
    )

    # Disallow downgrades.
    _sub(
        package,
        "MajorUpgrade",
        DowngradeErrorMessage="A newer version of [ProductName] is already installed.",
    )
    _sub(package, "Icon", Id="Icon.ico", SourceFile=str(settings.icon))
    _sub(package, "Property", Id="ARPPRODUCTICON", Value="Icon.ico")
    _sub(package, "MediaTemplate", EmbedCab="yes")

    program_files = _sub(package, "StandardDirectory", Id="ProgramFilesFolder")
    company = _sub(program_files, "Directory", Id="CompanyFolder", Name=settings.manufacturer)
    _sub(company, "Directory", Id="INSTALLLOCATION", Name=settings.app_long_name)

    feature = _sub(
        package,
        "Feature",
        Id="Application",
        Title="Application",
        Level="1",
        ConfigurableDirectory="INSTALLLOCATION",
    )
    _sub(feature, "ComponentGroupRef", Id="Files")


def distribution_files(input_distribution: Path) -> list[Path]:
    files = [p for p in input_distribution.rglob("*") if p.is_file()]
    files.sort(key=lambda p: os.fsencode(p.relative_to(input_distribution).as_posix()))
    return files


def _files_fragment(root: ET.Element, settings: WixSettings) -> None:
    fragment = _sub(root, "Fragment")
    group = _sub(fragment, "ComponentGroup", Id="Files")

    for file in distribution_files(settings.input_distribution):
        component = _sub(group, "Component", Directory="INSTALLLOCATION")
        relative = file.relative_to(settings.input_distribution)
        if len(relative.parts) > 1:
            component.set("Subdirectory", str(relative.parent))
        _sub(component, "File", Source=str(file), KeyPath="yes")


def wix_document(settings: WixSettings) -> ET.ElementTree:
    root = ET.Element(_tag("Wix"))
    _package_element(root, settings)
    _files_fragment(root, settings)
    tree = ET.ElementTree(root)
    ET.indent(tree)
    return tree


def write_wix_file(settings: WixSettings) -> Path:
    out = settings.output_wix_file
    out.parent.mkdir(parents=True, exist_ok=True)
    wix_document(settings).write(out, encoding="UTF-8", xml_declaration=True)
    LOG.info("Wrote %s", out)
    return out


def wix_build_arguments(settings: WixSettings) -> list[str]:
    if settings.wix_executable is None or settings.output_msi_file is None:
        raise ValueError("wix executable is not configured")
    return [
        settings.wix_executable,
        "build",
        "-o",
        str(settings.output_msi_file),
        str(settings.output_wix_file),
    ]


def package_wix(properties: PackagingProperties) -> Path:
    settings = WixSettings.from_properties(properties)
    wxs = write_wix_file(settings)

    if settings.wix_executable is None:
        return wxs

    arguments = wix_build_arguments(settings)
    LOG.info("Executing wix...")
    log_arguments("wix", arguments)
    execute_program_and_log(arguments, tool="wix")
    return wxs


def main(argv: list[str] | None = None) -> int:
    return run_wrapper(
        argv,
        prog="wix-package",
        description="Generate a WiX source file (and optionally an MSI) for an application.",
        action=package_wix,
    )


if __name__ == "__main__":
    raise SystemExit(main())
