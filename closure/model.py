"""Data model for import references and dependency closures."""

import math
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Deque, Dict, Iterable, Iterator, List, Optional, Set, Tuple, Union


# Depth sentinel that disables the depth check entirely
UNBOUNDED = math.inf

Depth = Union[int, float, None]

LANGUAGE_BY_EXTENSION = {
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "jsx",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".py": "python",
    ".pyi": "python",
}


@dataclass(frozen=True)
class SourceFile:
    """A file on disk together with the language its extension implies."""

    path: Path
    language: str

    @classmethod
    def from_path(cls, path: Path) -> "SourceFile":
        language = LANGUAGE_BY_EXTENSION.get(path.suffix.lower(), "unknown")
        return cls(path=path, language=language)


class ImportKind(Enum):
    STATIC_IMPORT = "import"
    DYNAMIC_REQUIRE = "require"
    FROM_IMPORT = "import_from"


@dataclass(frozen=True)
class ImportSpecifier:
    """A name bound by an import statement (``imported as local``)."""

    imported: str
    local: str


@dataclass(frozen=True)
class ImportReference:
    """A raw, unresolved mention of another module found in source text."""

    raw_specifier: str
    kind: ImportKind
    origin_file: Path
    specifiers: Tuple[ImportSpecifier, ...] = ()


@dataclass(frozen=True)
class ResolvedDependency:
    """
    A file reached during traversal.

    ``depth`` is the level at which the file was first discovered and
    ``parent`` the file whose import discovered it.
    """

    path: Path
    depth: int
    parent: Optional[Path] = None


def normalize_depth(max_depth: Depth) -> float:
    """Map ``None`` to ``UNBOUNDED`` and reject negative depths."""
    if max_depth is None:
        return UNBOUNDED
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")
    return max_depth


class DependencyClosure:
    """
    An insertion-ordered set of resolved dependencies keyed by canonical path.

    The first recorded depth of a path is final: re-adding a known path is a
    no-op. Roots are kept separately and are never part of the closure unless
    explicitly added as a dependency.
    """

    def __init__(self, roots: Iterable[Path] = (), max_depth: Depth = UNBOUNDED):
        self._roots: List[Path] = []
        for root in roots:
            if root not in self._roots:
                self._roots.append(root)
        self.max_depth = normalize_depth(max_depth)
        self._entries: Dict[Path, ResolvedDependency] = {}
        self._edges: Dict[Path, List[Path]] = {}

    @property
    def roots(self) -> List[Path]:
        """Return the root files the traversal started from."""
        return list(self._roots)

    def add(self, path: Path, depth: int, parent: Optional[Path] = None) -> bool:
        """
        Record a dependency.

        Returns:
            True if the path was new, False if it was already recorded.
        """
        if path in self._entries:
            return False
        self._entries[path] = ResolvedDependency(path=path, depth=depth, parent=parent)
        return True

    def add_edge(self, source: Path, target: Path) -> None:
        """Record that ``source`` imports ``target``."""
        targets = self._edges.setdefault(source, [])
        if target not in targets:
            targets.append(target)

    def depth_of(self, path: Path) -> Optional[int]:
        entry = self._entries.get(path)
        return entry.depth if entry is not None else None

    def get(self, path: Path) -> Optional[ResolvedDependency]:
        return self._entries.get(path)

    def get_targets(self, source: Path) -> List[Path]:
        """Get every resolved file that ``source`` imports."""
        return list(self._edges.get(source, ()))

    def children_of(self, parent: Path) -> List[Path]:
        """Get the dependencies first discovered through ``parent``."""
        return [entry.path for entry in self._entries.values() if entry.parent == parent]

    def iter_edges(self) -> Iterator[Tuple[Path, Path]]:
        """Iterate over all import edges as (source, target) tuples."""
        for source, targets in self._edges.items():
            for target in targets:
                yield source, target

    def paths(self) -> List[Path]:
        """Return dependency paths in discovery order."""
        return list(self._entries)

    def entries(self) -> List[ResolvedDependency]:
        return list(self._entries.values())

    def __iter__(self) -> Iterator[Path]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: Path) -> bool:
        return path in self._entries

    def __repr__(self) -> str:
        edge_count = sum(len(t) for t in self._edges.values())
        return f"DependencyClosure(roots={len(self._roots)}, dependencies={len(self._entries)}, edges={edge_count})"


@dataclass
class TraversalContext:
    """
    Mutable state for a single traversal.

    Holds the visited set, the FIFO worklist and the output closure. A new
    context is created for every call so nothing is shared between calls.
    """

    closure: DependencyClosure
    visited: Set[Path] = field(default_factory=set)
    queue: Deque[Tuple[Path, int]] = field(default_factory=deque)

    @classmethod
    def start(cls, roots: Iterable[Path], max_depth: Depth = UNBOUNDED) -> "TraversalContext":
        """Create a context with every root queued at depth 0."""
        roots = list(roots)
        context = cls(closure=DependencyClosure(roots, max_depth))
        for root in context.closure.roots:
            context.visited.add(root)
            context.queue.append((root, 0))
        return context

    @property
    def max_depth(self) -> float:
        return self.closure.max_depth

    def should_expand(self, depth: int) -> bool:
        """Whether a node dequeued at ``depth`` may have its imports followed."""
        return depth < self.max_depth

    def discover(self, path: Path, depth: int, parent: Path) -> bool:
        """
        Mark ``path`` as found through ``parent``.

        New paths are appended to the closure and enqueued at ``depth``.
        Returns True if the path had not been visited before.
        """
        self.closure.add_edge(parent, path)
        if path in self.visited:
            return False
        self.visited.add(path)
        self.closure.add(path, depth, parent)
        self.queue.append((path, depth))
        return True

    def pop_level(self) -> List[Tuple[Path, int]]:
        """Remove and return every queued node sharing the front node's depth."""
        if not self.queue:
            return []
        level = self.queue[0][1]
        batch = []
        while self.queue and self.queue[0][1] == level:
            batch.append(self.queue.popleft())
        return batch
