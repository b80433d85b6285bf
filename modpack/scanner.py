"""Glob-based file discovery beneath module and root directories."""

from __future__ import annotations

from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, List, Sequence

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    "__pycache__",
}

_EXCLUDED_FILES = {
    ".DS_Store",
    "Thumbs.db",
}


@dataclass
class IgnoreRule:
    """Represents a gitignore-style exclusion from .modpack.yml."""

    pattern: str
    directory_only: bool
    anchored: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return not self.directory_only or is_dir
            return self.directory_only and rel_path.startswith(f"{self.pattern}/")

        parts = rel_path.split("/")
        if self.directory_only:
            # Only the parent directories of a file can satisfy a "dir/" rule.
            candidates = parts if is_dir else parts[:-1]
        else:
            candidates = parts
        return any(fnmatchcase(part, self.pattern) for part in candidates)


def build_ignore_rule(pattern: str) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern or pattern.startswith("#"):
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        has_slash="/" in pattern,
    )


def build_ignore_rules(patterns: Iterable[str]) -> List[IgnoreRule]:
    rules: List[IgnoreRule] = []
    for pattern in patterns:
        rule = build_ignore_rule(pattern)
        if rule is not None:
            rules.append(rule)
    return rules


class FileScanner:
    """Yields the regular files matching a glob pattern beneath a directory."""

    def __init__(self, exclude_paths: Sequence[str] = ()) -> None:
        self._rules = build_ignore_rules(exclude_paths)

    def find(self, base: Path, pattern: str) -> List[Path]:
        """Return matching files under ``base`` in sorted order.

        A missing ``base`` yields no matches; callers that require the
        directory to exist check it themselves.
        """
        base = Path(base)
        if not base.is_dir():
            return []
        matches: List[Path] = []
        for path in base.glob(pattern):
            if not path.is_file():
                continue
            rel_path = path.relative_to(base).as_posix()
            if self._is_excluded(rel_path):
                continue
            matches.append(path)
        return sorted(matches)

    def _is_excluded(self, rel_path: str) -> bool:
        parts = rel_path.split("/")
        if parts[-1] in _EXCLUDED_FILES:
            return True
        if any(part in _EXCLUDED_DIRS for part in parts[:-1]):
            return True
        return any(rule.matches(rel_path, False) for rule in self._rules)


__all__ = ["FileScanner", "IgnoreRule", "build_ignore_rule", "build_ignore_rules"]
