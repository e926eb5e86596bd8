"""Breadth-first dependency closure builder."""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from closure.model import UNBOUNDED, Depth, DependencyClosure, TraversalContext
from .commands import CommandRunner, SubprocessRunner
from .config import EngineConfig
from .errors import ReadFailure
from .extractors import extract_imports
from .loader import load_file
from .resolver import resolve_import

logger = logging.getLogger(__name__)


def canonicalize(path: Path, base: Path) -> Path:
    """Resolve symlinks and relative segments, anchoring relative paths at ``base``."""
    path = Path(path)
    if not path.is_absolute():
        path = base / path
    try:
        return path.resolve()
    except (OSError, RuntimeError):
        return Path(os.path.abspath(path))


def read_source(file_path: Path, config: EngineConfig) -> str:
    """
    Read a file for extraction.

    Raises:
        ReadFailure: If the loader skipped the file.
    """
    loaded = load_file(file_path, config.max_file_size)
    if loaded.skipped or loaded.content is None:
        raise ReadFailure(loaded.reason or "no content", file_path)
    return loaded.content


def direct_dependencies(
    file_path: Path,
    project_root: Path,
    config: Optional[EngineConfig] = None,
    runner: Optional[CommandRunner] = None,
) -> List[Path]:
    """
    Resolve the files ``file_path`` imports directly.

    Unreadable files have no dependencies. Duplicates are removed, order is
    the order of the imports in the file.
    """
    if config is None:
        config = EngineConfig()

    try:
        content = read_source(file_path, config)
    except ReadFailure as e:
        logger.debug("No imports read: %s", e)
        return []

    resolved: List[Path] = []
    for reference in extract_imports(content, file_path, runner, config):
        target = resolve_import(reference.raw_specifier, file_path, project_root, config)
        if target is not None and target not in resolved:
            resolved.append(target)
    return resolved


def build_dependency_closure(
    roots: Iterable[Path],
    max_depth: Depth = UNBOUNDED,
    project_root: Optional[Path] = None,
    config: Optional[EngineConfig] = None,
    runner: Optional[CommandRunner] = None,
    workers: Optional[int] = None,
) -> DependencyClosure:
    """
    Walk the import graph breadth-first from a set of root files.

    Each root starts at depth 0. A file dequeued at a depth below
    ``max_depth`` has its imports resolved; every file not seen before is
    recorded at the next depth and queued. Files found exactly at
    ``max_depth`` are recorded but not expanded.

    Args:
        roots: Files the traversal starts from (typically changed files).
        max_depth: Import hops to follow; UNBOUNDED or None for no limit.
        project_root: Project directory; defaults to the working directory.
        config: Engine configuration.
        runner: Command runner shared by the extractors.
        workers: Threads used to expand each level; defaults to
            ``config.workers``.

    Returns:
        DependencyClosure holding every discovered file with its depth.
    """
    if config is None:
        config = EngineConfig()
    if runner is None:
        runner = SubprocessRunner()
    if workers is None:
        workers = config.workers

    base = Path.cwd()
    project_root = canonicalize(project_root, base) if project_root is not None else base.resolve()
    canonical_roots = [canonicalize(root, project_root) for root in roots]

    context = TraversalContext.start(canonical_roots, max_depth)

    def expand(node: Tuple[Path, int]) -> List[Path]:
        file_path, _ = node
        return direct_dependencies(file_path, project_root, config, runner)

    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            _traverse(context, expand, executor.map)
    else:
        _traverse(context, expand, map)

    logger.debug(
        "Dependency closure of %d root(s): %d file(s)",
        len(context.closure.roots),
        len(context.closure),
    )
    return context.closure


def _traverse(context: TraversalContext, expand, mapper) -> None:
    """
    Drain the context's worklist one breadth-first level at a time.

    ``mapper`` computes the expansions of a level (possibly in parallel);
    merging into the context happens here, in queue order.
    """
    while context.queue:
        level = [node for node in context.pop_level() if context.should_expand(node[1])]
        if not level:
            continue
        for (file_path, depth), targets in zip(level, mapper(expand, level)):
            for target in targets:
                if context.discover(target, depth + 1, file_path):
                    logger.debug("Found %s at depth %d via %s", target, depth + 1, file_path)


def build_closure(
    roots: Iterable[Path],
    max_depth: Depth = UNBOUNDED,
    project_root: Optional[Path] = None,
    config: Optional[EngineConfig] = None,
    runner: Optional[CommandRunner] = None,
    workers: Optional[int] = None,
) -> List[Path]:
    """
    Compute the files transitively imported by ``roots``.

    Returns:
        Canonical paths in breadth-first discovery order, without duplicates
        and without the roots themselves.
    """
    closure = build_dependency_closure(
        roots,
        max_depth=max_depth,
        project_root=project_root,
        config=config,
        runner=runner,
        workers=workers,
    )
    return closure.paths()
