from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path

import pytest

from packaging_support import wix
from packaging_support.config import PackagingProperties
from packaging_support.errors import MissingPropertyError
from tests.fixtures import packaging_values

NS = {"w": wix.WIX_NAMESPACE}


def _values(tmp_path: Path) -> dict[str, str]:
    values = packaging_values(tmp_path)
    app = tmp_path / "distribution" / "example"
    (app / "lib").mkdir()
    (app / "lib" / "a.jar").write_bytes(b"jar")
    (app / "bin").mkdir()
    (app / "bin" / "example").write_text("#!/bin/sh\n", encoding="utf-8")
    return values


def test_wix_file_lists_every_distribution_file(tmp_path: Path) -> None:
    out = wix.package_wix(PackagingProperties(values=_values(tmp_path)))

    assert out == tmp_path / "out" / "example.wxs"
    assert out.read_bytes().startswith(b"<?xml")

    root = ET.parse(out).getroot()
    assert root.tag == f"{{{wix.WIX_NAMESPACE}}}Wix"

    package = root.find("w:Package", NS)
    assert package is not None
    assert package.get("Version") == "1.2.0"
    assert package.get("Manufacturer") == "Example Org"
    assert package.get("Name") == "Example Application"
    assert package.get("UpgradeCode") == "8c7f4a3e-0d5c-4bb1-9b43-3e3c1f2a9d10"

    install = package.find(".//w:Directory[@Id='INSTALLLOCATION']", NS)
    assert install is not None
    assert install.get("Name") == "Example Application"

    components = root.findall("w:Fragment/w:ComponentGroup/w:Component", NS)
    app = tmp_path / "distribution" / "example"
    sources = [c.find("w:File", NS).get("Source") for c in components]
    assert sources == [str(app / "bin" / "example"), str(app / "bom.xml"), str(app / "lib" / "a.jar")]
    assert [c.get("Subdirectory") for c in components] == ["bin", None, "lib"]
    assert all(c.get("Directory") == "INSTALLLOCATION" for c in components)


def test_wix_output_is_stable(tmp_path: Path) -> None:
    properties = PackagingProperties(values=_values(tmp_path))
    first = wix.package_wix(properties).read_bytes()
    second = wix.package_wix(properties).read_bytes()
    assert first == second


def test_wix_build_runs_when_configured(tmp_path: Path, monkeypatch) -> None:
    calls: list[tuple[list[str], str]] = []
    monkeypatch.setattr(wix, "execute_program_and_log", lambda args, *, tool: calls.append((args, tool)))

    values = _values(tmp_path)
    values["packaging.wix"] = "wix"
    values["packaging.outputMsiFile"] = str(tmp_path / "out" / "example.msi")
    wix.package_wix(PackagingProperties(values=values))

    assert calls == [
        (
            ["wix", "build", "-o", str(tmp_path / "out" / "example.msi"), str(tmp_path / "out" / "example.wxs")],
            "wix",
        )
    ]


def test_wix_executable_needs_msi_path(tmp_path: Path) -> None:
    values = _values(tmp_path)
    values["packaging.wix"] = "wix"
    with pytest.raises(MissingPropertyError, match="packaging.outputMsiFile"):
        wix.package_wix(PackagingProperties(values=values))
