"""Archive path normalization."""

from __future__ import annotations

import os
import re
from typing import Union

PathLike = Union[str, "os.PathLike[str]"]

_SEPARATORS = re.compile(r"[\\/]+")


def normalize(base: PathLike, file_path: PathLike) -> str:
    """Return ``file_path`` relative to ``base`` using ``/`` separators."""
    relative = os.path.relpath(os.fspath(file_path), os.fspath(base))
    return _SEPARATORS.sub("/", relative)


def archive_key(prefix: str, base: PathLike, file_path: PathLike) -> str:
    """Return the archive entry name for ``file_path`` under a module prefix."""
    return f"{prefix}/{normalize(base, file_path)}"


__all__ = ["archive_key", "normalize"]
