"""Dependency engine: import extraction, path resolution and closure building."""

from .builder import build_closure, build_dependency_closure
from .config import EngineConfig, load_config
from .extractors import extract_imports
from .loader import load_file, load_files
from .resolver import resolve_import

__all__ = [
    "build_closure",
    "build_dependency_closure",
    "EngineConfig",
    "load_config",
    "extract_imports",
    "load_file",
    "load_files",
    "resolve_import",
]
