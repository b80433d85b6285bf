"""Tests for modpack.paths."""

from __future__ import annotations

import os
from pathlib import Path

from modpack.paths import archive_key, normalize


def test_normalize_returns_relative_posix_path(tmp_path: Path) -> None:
    assert normalize(tmp_path, tmp_path / "a" / "b.txt") == "a/b.txt"


def test_normalize_accepts_strings(tmp_path: Path) -> None:
    base = str(tmp_path)
    target = os.path.join(base, "a", "b", "c.js")
    assert normalize(base, target) == "a/b/c.js"


def test_normalize_replaces_backslashes(tmp_path: Path) -> None:
    # Host-specific separators inside the relative part are folded to "/".
    target = f"{tmp_path}{os.sep}a\\b.txt"
    assert normalize(tmp_path, target) == "a/b.txt"


def test_archive_key_prefixes_module_name(tmp_path: Path) -> None:
    module_dir = tmp_path / "catalog"
    key = archive_key("shop.catalog", module_dir, module_dir / "Class" / "Item.js")
    assert key == "shop.catalog/Class/Item.js"
