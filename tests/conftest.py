"""Shared test fixtures for infracheck tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Callable, Dict, Optional

import pytest

from infracheck_cli.core.analyze.pattern_classifier import PatternClassifier

RESOURCES = Path("src") / "main" / "resources"
JAVA_ROOT = Path("src") / "main" / "java"


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")
    return path


@pytest.fixture
def write_file() -> Callable[[Path, str], Path]:
    """Write dedented text to a path, creating parent directories."""
    return _write


@pytest.fixture
def make_project(tmp_path: Path) -> Callable[..., Path]:
    """Create a Spring-style project tree under tmp_path.

    ``config`` maps a resources filename to its contents; ``sources`` maps a
    path relative to ``src/main/java`` to Java source text.
    """

    def _make(config: Optional[Dict[str, str]] = None,
              sources: Optional[Dict[str, str]] = None,
              name: str = "demo-service") -> Path:
        project = tmp_path / name
        project.mkdir(parents=True, exist_ok=True)
        for filename, content in (config or {}).items():
            _write(project / RESOURCES / filename, content)
        for relative, content in (sources or {}).items():
            _write(project / JAVA_ROOT / relative, content)
        return project

    return _make


@pytest.fixture
def classifier() -> PatternClassifier:
    return PatternClassifier()
