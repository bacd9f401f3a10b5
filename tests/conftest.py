from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.build_tree import BuildTreeBuilder


@pytest.fixture
def build_tree(tmp_path: Path) -> BuildTreeBuilder:
    """Provide a reusable build tree rooted at the pytest tmp_path."""
    return BuildTreeBuilder(tmp_path)
