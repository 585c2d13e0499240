"""Keep every declared dependency pinned to an exact release."""

from __future__ import annotations

from pathlib import Path

import tomllib

PYPROJECT = Path(__file__).resolve().parent.parent / "pyproject.toml"


def test_all_dependencies_are_pinned() -> None:
    project = tomllib.loads(PYPROJECT.read_text(encoding="utf-8"))["project"]

    for requirement in project["dependencies"]:
        assert "==" in requirement, f"Runtime dependency not pinned: {requirement}"

    for extra, requirements in project.get("optional-dependencies", {}).items():
        for requirement in requirements:
            assert "==" in requirement, f"Dependency in extra '{extra}' not pinned: {requirement}"
