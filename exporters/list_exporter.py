"""Plain list exporter: one dependency path per line."""

from pathlib import Path
from typing import Optional

from closure.model import DependencyClosure


def to_list(
    closure: DependencyClosure,
    root: Path,
    base: Optional[Path] = None,
    include_roots: bool = False,
) -> str:
    """
    List the closure's files in discovery order.

    Args:
        closure: The dependency closure to export.
        root: Project root for relative paths.
        base: Optional base path for relative path display.
        include_roots: If True, list the root files first.

    Returns:
        Newline-separated paths.
    """
    if base is None:
        base = root

    paths = closure.roots if include_roots else []
    paths = paths + [p for p in closure.paths() if p not in paths]
    return "\n".join(_get_path_str(path, base, root) for path in paths)


def _get_path_str(path: Path, base: Path, root: Path) -> str:
    """Get the string representation of a path."""
    for anchor in (base, root):
        try:
            return str(path.relative_to(anchor)).replace("\\", "/")
        except ValueError:
            continue
    return str(path).replace("\\", "/")
