"""Render an InnoSetup script from a template and compile it with ``iscc``."""

from __future__ import annotations

import logging
import re
import shutil
from dataclasses import dataclass
from pathlib import Path

from packaging_support.cli import run_wrapper
from packaging_support.config import PackagingProperties, windows_version
from packaging_support.errors import PackagingError
from packaging_support.process import execute_program_and_log, log_arguments

LOG = logging.getLogger(__name__)

DEFAULT_COMPILER = "iscc"

KNOWN_COMPILER_LOCATIONS = (
    Path(r"C:\Program Files (x86)\Inno Setup 6\ISCC.exe"),
    Path(r"C:\Program Files\Inno Setup 6\ISCC.exe"),
)

_TOKEN_RE = re.compile(r"{{\s*([A-Za-z0-9_]+)\s*}}")


@dataclass(frozen=True, slots=True)
class InnoSetupSettings:
    app_name: str
    app_long_name: str
    app_version: str
    app_id: str
    manufacturer: str
    icon: Path
    source_directory: Path
    output_directory: Path
    script_template: Path
    compiler: str

    @classmethod
    def from_properties(cls, properties: PackagingProperties) -> InnoSetupSettings:
        app_name = properties.require("packaging.appName")
        return cls(
            app_name=app_name,
            app_long_name=properties.require("packaging.appLongName"),
            app_version=windows_version(properties.require("packaging.appVersion")),
            app_id=properties.require("packaging.upgradeCode"),
            manufacturer=properties.require("packaging.manufacturer"),
            icon=properties.absolute_path("packaging.icon64"),
            source_directory=properties.absolute_path("packaging.distribution") / app_name,
            output_directory=properties.absolute_path("packaging.outputDirectory"),
            script_template=properties.path("packaging.innoScript"),
            compiler=properties.get("packaging.innoCompiler") or DEFAULT_COMPILER,
        )

    @property
    def output_base(self) -> str:
        return f"{self.app_name}-{self.app_version}"

    @property
    def script_path(self) -> Path:
        return self.output_directory / f"{self.app_name}.iss"


def script_tokens(settings: InnoSetupSettings) -> dict[str, str]:
    core = settings.app_id.strip().strip("{}").upper()
    return {
        "AppName": settings.app_name,
        "AppLongName": settings.app_long_name,
        "AppVersion": settings.app_version,
        # InnoSetup reads "{{" as a literal brace in AppId.
        "AppId": f"{{{{{core}}}",
        "Manufacturer": settings.manufacturer,
        "SourceDir": str(settings.source_directory),
        "OutputDir": str(settings.output_directory),
        "OutputBase": settings.output_base,
        "SetupIconFile": str(settings.icon),
    }


def render_script(template: str, tokens: dict[str, str]) -> str:
    def _replace(match: re.Match[str]) -> str:
        key = match.group(1)
        return tokens.get(key, match.group(0))

    text = _TOKEN_RE.sub(_replace, template)
    leftover = sorted(set(_TOKEN_RE.findall(text)))
    if leftover:
        raise PackagingError(f"Unreplaced tokens remain in InnoSetup template: {', '.join(leftover)}")
    return text


def write_script(settings: InnoSetupSettings) -> Path:
    template = settings.script_template.read_text(encoding="utf-8")
    text = render_script(template, script_tokens(settings))
    out = settings.script_path
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(text, encoding="utf-8")
    LOG.info("Wrote %s", out)
    return out


def locate_compiler(preferred: str) -> str:
    found = shutil.which(preferred)
    if found:
        return found

    explicit = Path(preferred)
    if explicit.is_file():
        return str(explicit)

    for location in KNOWN_COMPILER_LOCATIONS:
        if location.is_file():
            return str(location)

    raise PackagingError(
        f"InnoSetup compiler not found: {preferred}. Install InnoSetup 6 or set "
        "packaging.innoCompiler to the ISCC.exe path."
    )


def package_innosetup(properties: PackagingProperties) -> Path:
    settings = InnoSetupSettings.from_properties(properties)
    script = write_script(settings)

    arguments = [locate_compiler(settings.compiler), str(script)]
    LOG.info("Executing InnoSetup...")
    log_arguments("iscc", arguments)
    execute_program_and_log(arguments, tool="iscc")
    return script


def main(argv: list[str] | None = None) -> int:
    return run_wrapper(
        argv,
        prog="innosetup-package",
        description="Render an InnoSetup script and compile it into an installer.",
        action=package_innosetup,
    )


if __name__ == "__main__":
    raise SystemExit(main())
