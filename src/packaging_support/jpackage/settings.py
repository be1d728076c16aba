from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from packaging_support.archive import FILE_TIME
from packaging_support.config import PackagingProperties


@dataclass(frozen=True, slots=True)
class JPackageSettings:
    os_name: str
    arch_name: str
    icon: Path
    app_name: str
    app_version: str
    main_module: str
    app_type: str
    jdk: Path
    jre: Path
    jars: Path
    extras_directory: Path
    resource_directory: Path
    output_directory: Path
    archive_timestamp: datetime

    @classmethod
    def from_properties(cls, properties: PackagingProperties) -> JPackageSettings:
        return cls(
            os_name=properties.require("packaging.platform.os"),
            arch_name=properties.require("packaging.platform.arch"),
            icon=properties.path("packaging.icon64"),
            app_name=properties.require("packaging.appName"),
            app_version=properties.require("packaging.appVersion"),
            main_module=properties.require("packaging.mainModule"),
            app_type=properties.require("packaging.appType"),
            jdk=properties.path("packaging.jdk"),
            jre=properties.path("packaging.jre"),
            jars=properties.path("packaging.jars"),
            extras_directory=properties.path("packaging.extrasDirectory"),
            resource_directory=properties.path("packaging.resourceDirectory"),
            output_directory=properties.path("packaging.outputDirectory"),
            archive_timestamp=properties.timestamp("packaging.archiveTimestamp", FILE_TIME),
        )

    @property
    def jpackage_path(self) -> Path:
        return self.jdk / "bin" / "jpackage"

    @property
    def output_image(self) -> Path:
        return self.output_directory / self.app_name

    @property
    def archive_path(self) -> Path:
        name = f"{self.app_name}_{self.app_version}_{self.os_name}-{self.arch_name}.tgz"
        return self.output_directory / name
