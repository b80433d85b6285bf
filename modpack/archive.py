"""Append-only ZIP archive writer shared by the concurrent collectors."""

from __future__ import annotations

import asyncio
import os
import shutil
import time
import zipfile
from pathlib import Path
from typing import BinaryIO, List, Optional, Tuple, Union

from .logging import get_logger

_CHUNK_SIZE = 1024 * 1024
_FILE_MODE = 0o100644

_COMPRESSION = {
    "deflated": zipfile.ZIP_DEFLATED,
    "stored": zipfile.ZIP_STORED,
}

Output = Union[str, "os.PathLike[str]", BinaryIO]


def source_date_epoch() -> int:
    value = os.environ.get("SOURCE_DATE_EPOCH", "").strip()
    if not value:
        return 0
    try:
        return int(value)
    except ValueError:
        return 0


def zip_datetime(epoch: int) -> Tuple[int, int, int, int, int, int]:
    # ZIP cannot represent dates before 1980.
    if epoch <= 0:
        return (1980, 1, 1, 0, 0, 0)
    t = time.gmtime(epoch)
    year = max(1980, t.tm_year)
    return (year, t.tm_mon, t.tm_mday, t.tm_hour, t.tm_min, t.tm_sec)


class ArchiveWriter:
    """Streams files into a ZIP archive under a single-writer discipline.

    The writer is bound to ``output`` for its whole life: either a filesystem
    path, which it fills through a sibling temporary file and moves into
    place only on ``end()``, or a writable binary file object owned by the
    caller, which is only flushed. ``finished`` is set once the
    central directory is written and the sink has been flushed, which is the
    earliest moment the output can be reopened as an archive.
    """

    def __init__(
        self,
        output: Output,
        *,
        compression: str = "deflated",
        timestamp: Optional[int] = None,
    ) -> None:
        if compression not in _COMPRESSION:
            raise ValueError(f"Unsupported compression: {compression}")
        self.logger = get_logger("archive")
        self._path: Optional[Path] = None
        self._temp_path: Optional[Path] = None
        if isinstance(output, (str, os.PathLike)):
            self._path = Path(output)
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._temp_path = self._path.with_name(f"{self._path.name}.tmp")
            self._sink: BinaryIO = self._temp_path.open("wb")
        else:
            self._sink = output
        self._compression = _COMPRESSION[compression]
        self._zip = zipfile.ZipFile(self._sink, "w", compression=self._compression)
        epoch = source_date_epoch() if timestamp is None else timestamp
        self._date_time = zip_datetime(epoch)
        self._lock = asyncio.Lock()
        self._entries: List[str] = []
        self.closed = False
        self.finished = asyncio.Event()

    @property
    def path(self) -> Optional[Path]:
        return self._path

    @property
    def entries(self) -> List[str]:
        """Archive paths written so far, in write order."""
        return list(self._entries)

    async def write(self, relative: str, source: Path) -> None:
        """Copy ``source`` into the archive at ``relative``."""
        info = zipfile.ZipInfo(relative, date_time=self._date_time)
        info.compress_type = self._compression
        info.external_attr = _FILE_MODE << 16
        async with self._lock:
            if self.closed:
                raise RuntimeError(f"Archive is closed; cannot add {relative}")
            await asyncio.to_thread(self._copy, info, Path(source))
            self._entries.append(relative)
        self.logger.debug("Archived %s", relative)

    def _copy(self, info: zipfile.ZipInfo, source: Path) -> None:
        with source.open("rb") as src, self._zip.open(info, "w") as dest:
            shutil.copyfileobj(src, dest, _CHUNK_SIZE)

    async def end(self) -> None:
        """Write the archive trailer, flush the sink and signal ``finished``."""
        async with self._lock:
            if self.closed:
                return
            self.closed = True
            await asyncio.to_thread(self._finalize)
        self.logger.debug("Archive finalized with %d entries", len(self._entries))
        self.finished.set()

    def _finalize(self) -> None:
        self._zip.close()
        self._sink.flush()
        if self._path is not None and self._temp_path is not None:
            os.fsync(self._sink.fileno())
            self._sink.close()
            os.replace(self._temp_path, self._path)

    async def wait_finished(self) -> None:
        await self.finished.wait()

    def abort(self) -> None:
        """Stop accepting entries and drop the unfinished output.

        A path output is left as it was before the run. A caller-owned sink
        keeps whatever was streamed so far, without the archive trailer.
        """
        if self.closed:
            return
        self.closed = True
        # Detached so that garbage collection never appends a trailer.
        self._zip.fp = None
        if self._temp_path is not None:
            self._sink.close()
            self._temp_path.unlink(missing_ok=True)
        self.logger.debug("Archive aborted after %d entries", len(self._entries))


__all__ = ["ArchiveWriter", "source_date_epoch", "zip_datetime"]
