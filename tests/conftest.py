from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.module_tree import ModuleTreeBuilder


@pytest.fixture
def module_tree(tmp_path: Path) -> ModuleTreeBuilder:
    """Provide a reusable module tree builder rooted at the pytest tmp_path."""
    return ModuleTreeBuilder(tmp_path)
