"""Pipeline orchestration for pack runs."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from .aio import gather_or_cancel
from .archive import ArchiveWriter, Output
from .collectors import PackContext, collect_bundles, collect_modules
from .config import PackConfig
from .logging import get_logger
from .models import DiagnosticCollector, ErrorSink, PackResult, RunState
from .scanner import FileScanner
from .verifier import AssetVerifier

RootLike = Union[str, Path]


class Packager:
    """Coordinates bundle and module collection into one archive per run."""

    def __init__(
        self,
        config: PackConfig | None = None,
        scanner: FileScanner | None = None,
        verifier: AssetVerifier | None = None,
    ) -> None:
        self.config = config or PackConfig()
        self.scanner = scanner or FileScanner(self.config.exclude_paths)
        self.verifier = verifier or AssetVerifier(self.config.verifier)
        self.logger = get_logger("pipeline")
        self.state = RunState.IDLE

    async def run(
        self,
        roots: Iterable[RootLike],
        output: Output,
        error_sink: Optional[ErrorSink] = None,
    ) -> List[str]:
        """Pack every module found under ``roots`` into ``output``.

        Returns the sorted module names once the archive has been finalized
        and the output flushed. Structural errors propagate after the archive
        is abandoned without its trailer; the output must then be discarded.
        """
        root_paths = self._resolve_roots(roots)
        self.logger.info("Packing %d root(s) into %s", len(root_paths), _describe(output))
        archive = ArchiveWriter(
            output,
            compression=self.config.archive.compression,
            timestamp=self.config.archive.timestamp,
        )
        context = PackContext(
            config=self.config,
            archive=archive,
            scanner=self.scanner,
            verifier=self.verifier,
            error_sink=error_sink,
        )

        self._transition(RunState.COLLECTING)
        try:
            _, modules = await gather_or_cancel(
                collect_bundles(context, root_paths),
                collect_modules(context, root_paths),
            )
            self._transition(RunState.FINALIZING)
            await archive.end()
            await archive.wait_finished()
        except BaseException:
            self._transition(RunState.FAILED)
            archive.abort()
            raise
        self._transition(RunState.CLOSED)

        self.logger.info(
            "Archived %d module(s), %d bundle(s), %d file(s)",
            len(modules),
            len(context.bundles),
            len(archive.entries),
        )
        self._transition(RunState.DONE)
        return modules

    async def run_with_report(self, roots: Iterable[RootLike], output: Output) -> PackResult:
        """Run with an internal diagnostic collector and return both channels."""
        collector = DiagnosticCollector()
        sink = collector if self.config.verifier.enabled else None
        modules = await self.run(roots, output, sink)
        return PackResult(
            modules=modules,
            diagnostics=list(collector.diagnostics),
            output=_describe(output),
        )

    def _resolve_roots(self, roots: Iterable[RootLike]) -> List[Path]:
        resolved: List[Path] = []
        for root in roots:
            path = Path(root).expanduser()
            if not path.exists():
                raise FileNotFoundError(f"Module root not found: {root}")
            if not path.is_dir():
                raise NotADirectoryError(f"Module root is not a directory: {root}")
            resolved.append(path)
        return resolved

    def _transition(self, state: RunState) -> None:
        self.logger.debug("Run state %s -> %s", self.state.value, state.value)
        self.state = state


def pack(
    roots: Sequence[RootLike],
    output: Output,
    error_sink: Optional[ErrorSink] = None,
    config: PackConfig | None = None,
) -> List[str]:
    """Synchronous wrapper around :meth:`Packager.run`."""
    return asyncio.run(Packager(config).run(roots, output, error_sink))


def _describe(output: Output) -> str:
    if isinstance(output, (str, os.PathLike)):
        return os.fspath(output)
    return str(getattr(output, "name", None) or type(output).__name__)


__all__ = ["Packager", "pack"]
