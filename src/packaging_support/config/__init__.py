from packaging_support.config.properties import (
    PackagingProperties,
    load_properties,
    parse_properties,
)
from packaging_support.config.versions import windows_version

__all__ = ["PackagingProperties", "load_properties", "parse_properties", "windows_version"]
