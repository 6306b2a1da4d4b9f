from __future__ import annotations

from pathlib import Path

import pytest
from hypothesis import settings
from hypothesis.database import DirectoryBasedExampleDatabase

_ALLOWED_MARKERS = {"unit", "integration", "slow"}

_ROOT = Path(__file__).resolve().parents[3]
_HYPOTHESIS_DB = _ROOT / "artifacts/bynamectl/.hypothesis/examples"
_HYPOTHESIS_DB.parent.mkdir(parents=True, exist_ok=True)
settings.register_profile("bynamectl", database=DirectoryBasedExampleDatabase(_HYPOTHESIS_DB))
settings.load_profile("bynamectl")


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        names = {mark.name for mark in item.iter_markers()}
        if not names.intersection(_ALLOWED_MARKERS):
            item.add_marker("unit")


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    root = tmp_path / "repo"
    (root / "pkgs/by-name").mkdir(parents=True)
    (root / "pkgs/top-level").mkdir(parents=True)
    return root
