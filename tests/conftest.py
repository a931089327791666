"""Shared fixtures: a throwaway project root with action files."""

from pathlib import Path
from textwrap import dedent

import pytest

from ingest.config import IngestConfig


class Project:
    """Writes action modules under a temporary root."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.config = IngestConfig(cwd=root, build_dir=".build")

    def action(self, name: str, source: str) -> str:
        """Write ``routes/<name>.py`` and return its relative entry reference."""
        path = self.root / "routes" / f"{name}.py"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dedent(source), encoding="utf-8")
        return f"routes/{name}.py"


@pytest.fixture
def project(tmp_path: Path) -> Project:
    return Project(tmp_path)
