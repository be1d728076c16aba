from __future__ import annotations

import os
from pathlib import Path

# The example tree: bin/app is executable (10 bytes), README.txt is not (5 bytes).
EXAMPLE_FILES: dict[str, bytes] = {
    "README.txt": b"hello",
    "bin/app": b"0123456789",
}
EXAMPLE_EXECUTABLES = frozenset({"bin/app"})


def make_tree(
    base: Path,
    files: dict[str, bytes] = EXAMPLE_FILES,
    *,
    executables: frozenset[str] = EXAMPLE_EXECUTABLES,
    name: str = "app",
    reverse: bool = False,
    mtime: int | None = None,
) -> Path:
    """Create ``base/name`` holding ``files``.

    ``reverse`` creates the files in reverse order so that directory
    enumeration order differs between otherwise identical trees.
    """

    root = base / name
    root.mkdir(parents=True)

    rels = sorted(files, reverse=reverse)
    for rel in rels:
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(files[rel])
        path.chmod(0o755 if rel in executables else 0o644)

    if mtime is not None:
        for p in [root, *root.rglob("*")]:
            os.utime(p, (mtime, mtime))

    return root


def write_properties(path: Path, values: dict[str, str]) -> Path:
    lines = ["# generated by tests"]
    for key, value in values.items():
        lines.append(f"{key}={value.replace(chr(92), chr(92) * 2)}")
    path.write_text("\n".join(lines) + "\n", encoding="iso-8859-1")
    return path


def packaging_values(tmp_path: Path) -> dict[str, str]:
    """A complete property set pointing into ``tmp_path``."""

    distribution = tmp_path / "distribution"
    (distribution / "example").mkdir(parents=True)
    (distribution / "example" / "bom.xml").write_text("<bom/>\n", encoding="utf-8")

    license_file = tmp_path / "LICENSE"
    license_file.write_text("ISC\n", encoding="utf-8")

    icon = tmp_path / "icon64.png"
    icon.write_bytes(b"\x89PNG")

    return {
        "packaging.platform.os": "linux",
        "packaging.platform.arch": "x86_64",
        "packaging.icon32": str(tmp_path / "icon32.png"),
        "packaging.icon64": str(icon),
        "packaging.icon128": str(tmp_path / "icon128.png"),
        "packaging.appName": "example",
        "packaging.appLongName": "Example Application",
        "packaging.appVersion": "1.2.0-SNAPSHOT",
        "packaging.mainModule": "com.example.main/com.example.main.Main",
        "packaging.appType": "CommandLine",
        "packaging.jdk": str(tmp_path / "jdk"),
        "packaging.jre": str(tmp_path / "jre"),
        "packaging.jars": str(tmp_path / "jars"),
        "packaging.extrasDirectory": str(tmp_path / "extras"),
        "packaging.resourceDirectory": str(tmp_path / "resources"),
        "packaging.outputDirectory": str(tmp_path / "out"),
        "packaging.distribution": str(distribution),
        "packaging.licenseFile": str(license_file),
        "packaging.sourceURL": "https://example.com/src",
        "packaging.scriptsURL": "https://example.com/scripts",
        "packaging.debMaintainer": "maintainer@example.com",
        "packaging.manufacturer": "Example Org",
        "packaging.upgradeCode": "8c7f4a3e-0d5c-4bb1-9b43-3e3c1f2a9d10",
        "packaging.outputWixFile": str(tmp_path / "out" / "example.wxs"),
    }
