"""Unit coverage for the project version helper."""

from __future__ import annotations

import tomllib
from importlib import metadata
from pathlib import Path

from templetax.backend.version import get_project_version


def read_pyproject_version() -> str:
    pyproject_path = Path(__file__).resolve().parents[2] / "pyproject.toml"
    with pyproject_path.open("rb") as handle:
        return tomllib.load(handle)["project"]["version"]


def test_get_project_version_prefers_installed_metadata(monkeypatch) -> None:
    get_project_version.cache_clear()  # type: ignore[attr-defined]
    monkeypatch.setattr(metadata, "version", lambda package: "9.9.9")

    assert get_project_version() == "9.9.9"
    get_project_version.cache_clear()  # type: ignore[attr-defined]


def test_get_project_version_falls_back_to_pyproject(monkeypatch) -> None:
    get_project_version.cache_clear()  # type: ignore[attr-defined]
    expected = read_pyproject_version()

    def raise_package_not_found(_: str) -> str:
        raise metadata.PackageNotFoundError

    monkeypatch.setattr(metadata, "version", raise_package_not_found)

    assert get_project_version() == expected
    get_project_version.cache_clear()  # type: ignore[attr-defined]
