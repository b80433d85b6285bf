"""Module, submodule and bundle discovery feeding the shared archive."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Set

from .aio import gather_or_cancel
from .archive import ArchiveWriter
from .config import PackConfig
from .logging import get_logger
from .models import ErrorSink
from .paths import archive_key, normalize
from .registry import BundleRegistry, ModuleRegistry, PackError
from .scanner import FileScanner
from .verifier import AssetVerifier

logger = get_logger("collectors")


class ModuleCycleError(PackError):
    """Raised when a submodule directory resolves to one of its enclosing modules."""

    def __init__(self, name: str, directory: Path, existing: str) -> None:
        super().__init__(
            f"Module {name} at {directory} resolves to the directory of enclosing module {existing}"
        )
        self.name = name
        self.directory = directory
        self.existing = existing


@dataclass
class PackContext:
    """State of one pack run, handed explicitly to every collector."""

    config: PackConfig
    archive: ArchiveWriter
    scanner: FileScanner
    verifier: AssetVerifier
    error_sink: Optional[ErrorSink] = None
    modules: ModuleRegistry = field(default_factory=ModuleRegistry)
    bundles: BundleRegistry = field(default_factory=BundleRegistry)

    async def find(self, base: Path, pattern: str) -> List[Path]:
        return await asyncio.to_thread(self.scanner.find, base, pattern)

    def register_module(self, name: str, directory: Path) -> None:
        self.modules.register(name, directory)


async def each_file(
    context: PackContext,
    bases: Iterable[Path],
    pattern: str,
    callback: Callable[[Path], Awaitable[None]],
) -> List[Path]:
    """Apply ``pattern`` under every base and run ``callback`` on each match concurrently."""
    found = await gather_or_cancel(*(context.find(base, pattern) for base in bases))
    matches = [path for paths in found for path in paths]
    await gather_or_cancel(*(callback(path) for path in matches))
    return matches


async def collect_bundles(context: PackContext, roots: Sequence[Path]) -> None:
    """Archive and verify the standalone configuration bundles of all roots."""

    async def _collect(path: Path) -> None:
        relative = normalize(path.parent.parent, path)
        context.bundles.register(relative, path)
        logger.debug("Found bundle %s", relative)
        await context.archive.write(relative, path)

    matches = await each_file(context, roots, context.config.markers.bundle_scripts, _collect)
    await context.verifier.verify_many(context.error_sink, matches)


async def collect_top_modules(context: PackContext, roots: Sequence[Path]) -> ModuleRegistry:
    """Register every module directory found directly by the top config pattern."""

    async def _collect(marker: Path) -> None:
        directory = marker.parent
        context.register_module(directory.name, directory)
        logger.debug("Found module %s in %s", directory.name, directory)
        await context.archive.write(normalize(directory.parent, marker), marker)

    await each_file(context, roots, context.config.markers.top_config, _collect)
    return context.modules


async def collect_submodules(
    context: PackContext, name: str, ancestors: Optional[Dict[Path, str]] = None
) -> None:
    """Register nested submodules of ``name`` depth-first, one marker at a time.

    ``ancestors`` maps the resolved directories of ``name`` and the modules
    enclosing it to their names. A submodule resolving to one of them would
    recurse forever and raises ``ModuleCycleError`` instead.
    """
    directory = context.modules.get(name)
    chain = dict(ancestors or {})
    chain.setdefault(directory.resolve(), name)
    for marker in await context.find(directory, context.config.markers.sub_config):
        sub_dir = marker.parent
        sub_name = f"{name}.{sub_dir.name}"
        existing = chain.get(sub_dir.resolve())
        if existing is not None:
            raise ModuleCycleError(sub_name, sub_dir, existing)
        context.register_module(sub_name, sub_dir)
        logger.debug("Found submodule %s in %s", sub_name, sub_dir)
        await context.archive.write(archive_key(sub_name, sub_dir, marker), marker)
        await collect_submodules(context, sub_name, chain)


async def archive_module_assets(context: PackContext, name: str) -> None:
    """Verify and archive the asset classes of one registered module."""
    directory = context.modules.get(name)
    assets = context.config.assets
    sink = context.error_sink
    verifier = context.verifier

    boot, config_script, config_scripts, class_scripts, public_assets = await gather_or_cancel(
        context.find(directory, assets.boot_script),
        context.find(directory, assets.config_script),
        context.find(directory, assets.config_scripts),
        context.find(directory, assets.class_scripts),
        context.find(directory, assets.public_assets),
    )
    if not boot:
        logger.warning("Module %s has no boot script (%s)", name, assets.boot_script)

    # The config script is the module marker and was archived during discovery.
    claimed: Set[Path] = set(config_script)
    boot_files = _claim(boot, claimed)
    config_files = _claim(config_scripts, claimed)
    class_files = _claim(class_scripts, claimed)
    public_files = _claim(public_assets, claimed)

    async def _archive(paths: List[Path]) -> None:
        await gather_or_cancel(
            *(context.archive.write(archive_key(name, directory, path), path) for path in paths)
        )

    await gather_or_cancel(
        verifier.verify_many(sink, boot),
        _archive(boot_files),
        verifier.verify_many(sink, config_script),
        verifier.verify_many(sink, config_scripts),
        _archive(config_files),
        verifier.verify_many(sink, class_scripts),
        _archive(class_files),
        _archive(public_files),
    )


def _claim(paths: List[Path], claimed: Set[Path]) -> List[Path]:
    fresh = [path for path in paths if path not in claimed]
    claimed.update(fresh)
    return fresh


async def archive_assets(context: PackContext) -> None:
    """Archive the assets of every registered module, nested ones included."""
    await gather_or_cancel(*(archive_module_assets(context, name) for name in context.modules))


async def collect_modules(context: PackContext, roots: Sequence[Path]) -> List[str]:
    """Discover all modules and submodules, then archive their assets."""
    await collect_top_modules(context, roots)
    top_level = list(context.modules)
    await gather_or_cancel(*(collect_submodules(context, name) for name in top_level))
    # Every marker is archived at this point; continue with the other assets.
    await archive_assets(context)
    return context.modules.names()


__all__ = [
    "ModuleCycleError",
    "PackContext",
    "archive_assets",
    "archive_module_assets",
    "collect_bundles",
    "collect_modules",
    "collect_submodules",
    "collect_top_modules",
    "each_file",
]
