"""In-memory namespaces for discovered modules and configuration bundles."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterator, KeysView, List, Tuple


class PackError(RuntimeError):
    """Base class for structural errors that abort a pack run."""


class DuplicateModuleError(PackError):
    """Raised when two module directories derive the same module name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Duplicate module in archive: {name}")
        self.name = name


class DuplicateBundleError(PackError):
    """Raised when two bundle files normalize to the same archive path."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Duplicate configuration in archive: {path}")
        self.path = path


class _Namespace(ABC):
    """Insert-once mapping whose writes are serialized by a lock."""

    def __init__(self) -> None:
        self._entries: Dict[str, Path] = {}
        self._lock = threading.Lock()

    def _insert(self, key: str, value: Path) -> None:
        with self._lock:
            if key in self._entries:
                raise self._duplicate(key)
            self._entries[key] = value

    @abstractmethod
    def _duplicate(self, key: str) -> PackError:
        """Return the error raised when ``key`` is inserted twice."""

    def get(self, key: str) -> Path:
        return self._entries[key]

    def keys(self) -> KeysView[str]:
        return self._entries.keys()

    def items(self) -> List[Tuple[str, Path]]:
        with self._lock:
            return list(self._entries.items())

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)


class ModuleRegistry(_Namespace):
    """Maps module names (dotted for submodules) to their source directories."""

    def register(self, name: str, directory: Path) -> None:
        self._insert(name, Path(directory))

    def names(self) -> List[str]:
        return sorted(self._entries)

    def _duplicate(self, key: str) -> PackError:
        return DuplicateModuleError(key)


class BundleRegistry(_Namespace):
    """Maps bundle archive paths to their source files."""

    def register(self, relative: str, path: Path) -> None:
        self._insert(relative, Path(path))

    def _duplicate(self, key: str) -> PackError:
        return DuplicateBundleError(key)


__all__ = [
    "BundleRegistry",
    "DuplicateBundleError",
    "DuplicateModuleError",
    "ModuleRegistry",
    "PackError",
]
