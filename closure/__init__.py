"""Data model for dependency closures."""

from .model import (
    UNBOUNDED,
    DependencyClosure,
    ImportKind,
    ImportReference,
    ImportSpecifier,
    ResolvedDependency,
    SourceFile,
    TraversalContext,
)

__all__ = [
    "UNBOUNDED",
    "DependencyClosure",
    "ImportKind",
    "ImportReference",
    "ImportSpecifier",
    "ResolvedDependency",
    "SourceFile",
    "TraversalContext",
]
