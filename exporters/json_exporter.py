"""JSON exporter for dependency closures (machine-friendly format)."""

import json
from pathlib import Path
from typing import Optional, Dict, List, Any, Union

from closure.model import DependencyClosure


def to_json(
    closure: DependencyClosure,
    root: Path,
    base: Optional[Path] = None,
    indent: int = 2,
    include_edges: bool = True,
) -> str:
    """
    Convert a dependency closure to JSON format.

    Args:
        closure: The dependency closure to export.
        root: Project root for relative paths.
        base: Optional base path for relative path display.
        indent: JSON indentation level.
        include_edges: If True, include every resolved import edge.

    Returns:
        JSON string representation of the closure.
    """
    if base is None:
        base = root

    dependencies: List[Dict[str, Any]] = []
    for entry in closure.entries():
        dependencies.append({
            "path": _get_path_str(entry.path, base, root),
            "depth": entry.depth,
            "via": _get_path_str(entry.parent, base, root) if entry.parent is not None else None,
        })

    max_depth: Union[int, float, str] = closure.max_depth
    if max_depth == float("inf"):
        max_depth = "unbounded"

    data: Dict[str, Any] = {
        "roots": [_get_path_str(r, base, root) for r in closure.roots],
        "max_depth": max_depth,
        "dependencies": dependencies,
    }

    if include_edges:
        data["edges"] = [
            {"source": _get_path_str(source, base, root), "target": _get_path_str(target, base, root)}
            for source, target in closure.iter_edges()
        ]

    return json.dumps(data, indent=indent)


def _get_path_str(path: Path, base: Path, root: Path) -> str:
    """Get the string representation of a path."""
    try:
        rel_path = path.relative_to(base)
        return str(rel_path).replace("\\", "/")
    except ValueError:
        try:
            rel_path = path.relative_to(root)
            return str(rel_path).replace("\\", "/")
        except ValueError:
            return str(path).replace("\\", "/")
