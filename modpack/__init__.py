"""Module discovery, verification and archive packing."""

from .archive import ArchiveWriter
from .collectors import ModuleCycleError
from .config import ConfigError, PackConfig, load_config
from .models import Diagnostic, DiagnosticCollector, PackResult, RunState
from .paths import normalize
from .pipeline import Packager, pack
from .registry import (
    BundleRegistry,
    DuplicateBundleError,
    DuplicateModuleError,
    ModuleRegistry,
    PackError,
)
from .verifier import AssetVerifier

__version__ = "0.1.0"

__all__ = [
    "ArchiveWriter",
    "AssetVerifier",
    "BundleRegistry",
    "ConfigError",
    "Diagnostic",
    "DiagnosticCollector",
    "DuplicateBundleError",
    "DuplicateModuleError",
    "ModuleCycleError",
    "ModuleRegistry",
    "PackConfig",
    "PackError",
    "PackResult",
    "Packager",
    "RunState",
    "load_config",
    "normalize",
    "pack",
]
