"""Tests for the package discovery settings in pyproject.toml."""
from __future__ import annotations

import fnmatch
import tomllib
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[2]
SRC = ROOT / "src"


def _find_settings() -> dict[str, Any]:
    config = tomllib.loads((ROOT / "pyproject.toml").read_text(encoding="utf-8"))
    return config["tool"]["setuptools"]["packages"]["find"]


def _source_packages() -> set[str]:
    return {
        ".".join(path.parent.relative_to(SRC).parts)
        for path in (SRC / "brigade_controller").rglob("*.py")
    }


def test_packages_without_init_are_discovered() -> None:
    settings = _find_settings()
    assert settings["namespaces"] is True
    assert settings["where"] == ["src"]

    without_init = {
        pkg
        for pkg in _source_packages()
        if not (SRC.joinpath(*pkg.split(".")) / "__init__.py").exists()
    }
    assert "brigade_controller.core" in without_init


def test_include_pattern_covers_every_package() -> None:
    patterns = _find_settings()["include"]
    for pkg in _source_packages():
        assert any(fnmatch.fnmatchcase(pkg, p) for p in patterns), pkg
