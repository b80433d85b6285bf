"""Tests for modpack.scanner."""

from __future__ import annotations

from pathlib import Path

from modpack.scanner import FileScanner, build_ignore_rule


def _write(path: Path, content: str = "x\n") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def test_find_returns_sorted_regular_files(tmp_path: Path) -> None:
    _write(tmp_path / "b" / "_Config.js")
    _write(tmp_path / "a" / "_Config.js")
    (tmp_path / "c" / "_Config.js").mkdir(parents=True)

    matches = FileScanner().find(tmp_path, "*/_Config.js")

    assert matches == [tmp_path / "a" / "_Config.js", tmp_path / "b" / "_Config.js"]


def test_find_supports_recursive_patterns(tmp_path: Path) -> None:
    _write(tmp_path / "Class" / "Cart.js")
    _write(tmp_path / "Class" / "model" / "Line.js")
    _write(tmp_path / "Class" / "notes.txt")

    matches = FileScanner().find(tmp_path, "Class/**/*.js")

    assert [path.relative_to(tmp_path).as_posix() for path in matches] == [
        "Class/Cart.js",
        "Class/model/Line.js",
    ]


def test_find_skips_tooling_directories_and_os_files(tmp_path: Path) -> None:
    _write(tmp_path / "Public" / "logo.txt")
    _write(tmp_path / "Public" / ".DS_Store")
    _write(tmp_path / "Public" / "node_modules" / "dep.js")
    _write(tmp_path / "Public" / ".git" / "HEAD")

    matches = FileScanner().find(tmp_path, "Public/**/*")

    assert matches == [tmp_path / "Public" / "logo.txt"]


def test_find_honours_exclude_paths(tmp_path: Path) -> None:
    _write(tmp_path / "Public" / "logo.txt")
    _write(tmp_path / "Public" / "logo.txt.swp")
    _write(tmp_path / "Public" / "tmp" / "scratch.txt")

    scanner = FileScanner(["*.swp", "tmp/"])

    assert scanner.find(tmp_path, "Public/**/*") == [tmp_path / "Public" / "logo.txt"]


def test_find_on_missing_base_yields_nothing(tmp_path: Path) -> None:
    assert FileScanner().find(tmp_path / "missing", "*/_Config.js") == []


def test_directory_rule_does_not_match_file_names() -> None:
    rule = build_ignore_rule("tmp/")
    assert rule is not None
    assert rule.matches("tmp/scratch.txt", False)
    assert not rule.matches("Public/tmp", False)
    assert rule.matches("Public/tmp", True)


def test_anchored_rule_matches_from_base_only() -> None:
    rule = build_ignore_rule("/Public/*.txt")
    assert rule is not None
    assert rule.matches("Public/logo.txt", False)
    assert not rule.matches("shop/Public/logo.txt", False)


def test_blank_and_comment_patterns_are_ignored() -> None:
    assert build_ignore_rule("   ") is None
    assert build_ignore_rule("# comment") is None
