from __future__ import annotations

from packaging_support.config import windows_version
from packaging_support.errors import PackagingError
from packaging_support.jpackage.settings import JPackageSettings
from packaging_support.process import IS_WINDOWS

APP_TYPE_COMMAND_LINE = "CommandLine"


def common_arguments(settings: JPackageSettings, *, package_type: str, app_version: str) -> list[str]:
    return [
        str(settings.jpackage_path),
        "--verbose",
        "--type",
        package_type,
        "--runtime-image",
        str(settings.jre),
        "--icon",
        str(settings.icon),
        "--name",
        settings.app_name,
        "--module",
        settings.main_module,
        "--module-path",
        str(settings.jars),
        "--app-version",
        app_version,
        "--resource-dir",
        str(settings.resource_directory),
        "--dest",
        str(settings.output_directory),
    ]


def app_image_arguments(settings: JPackageSettings, *, is_windows: bool = IS_WINDOWS) -> list[str]:
    app_version = windows_version(settings.app_version) if is_windows else settings.app_version
    arguments = common_arguments(settings, package_type="app-image", app_version=app_version)

    if settings.app_type == APP_TYPE_COMMAND_LINE:
        if is_windows:
            arguments.append("--win-console")
    else:
        raise PackagingError(f"Unrecognized app type: {settings.app_type}")
    return arguments


def deb_arguments(settings: JPackageSettings, *, maintainer: str) -> list[str]:
    arguments = common_arguments(settings, package_type="deb", app_version=settings.app_version)
    arguments += [
        "--linux-deb-maintainer",
        maintainer,
        "--linux-package-name",
        settings.app_name,
        "--input",
        str(settings.extras_directory),
    ]
    return arguments
