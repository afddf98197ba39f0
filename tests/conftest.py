import json
import sys
from pathlib import Path

import pytest

# Ensure src package is importable without installation
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if SRC.exists():
    sys.path.insert(0, str(SRC))


class StubOracle:
    """Small fixed SPDX table so classifier tests do not depend on the license index."""

    canonical = {
        "mit": "MIT",
        "isc": "ISC",
        "gpl-3.0-only": "GPL-3.0-only",
        "cc0-1.0": "CC0-1.0",
        "cc-by-4.0": "CC-BY-4.0",
        "wtfpl": "WTFPL",
    }
    osi = {"MIT", "ISC", "GPL-3.0-only"}

    def __init__(self):
        self.calls = []

    def correct_to_canonical_id(self, text):
        self.calls.append(text)
        return self.canonical.get(text.lower())

    def is_osi_approved(self, spdx_id):
        return spdx_id in self.osi


@pytest.fixture
def stub_oracle():
    return StubOracle()


@pytest.fixture
def make_project(tmp_path: Path):
    """Write package.json, package-lock.json and node_modules/ under tmp_path.

    ``installed`` maps package names to a manifest dict, a raw string (written
    verbatim) or ``None`` (directory without a package.json).
    """

    def _make(dependencies=None, dev_dependencies=None, lock_packages=None, installed=None):
        manifest = {"name": "demo", "version": "1.0.0"}
        if dependencies is not None:
            manifest["dependencies"] = {name: "*" for name in dependencies}
        if dev_dependencies is not None:
            manifest["devDependencies"] = {name: "*" for name in dev_dependencies}
        (tmp_path / "package.json").write_text(json.dumps(manifest, indent=2))
        (tmp_path / "package-lock.json").write_text(
            json.dumps({"lockfileVersion": 3, "packages": lock_packages or {}}, indent=2)
        )

        node_modules = tmp_path / "node_modules"
        node_modules.mkdir()
        for name, content in (installed or {}).items():
            package_dir = node_modules / name
            package_dir.mkdir(parents=True)
            if content is None:
                continue
            text = content if isinstance(content, str) else json.dumps(content, indent=2)
            (package_dir / "package.json").write_text(text)
        return tmp_path

    return _make
