"""Mermaid flowchart exporter for dependency closures."""

import re
from pathlib import Path
from typing import Optional, Dict, List, Set

from closure.model import DependencyClosure


def to_mermaid(
    closure: DependencyClosure,
    root: Path,
    orientation: str = "LR",
    base: Optional[Path] = None,
    group_by_directory: bool = False,
) -> str:
    """
    Convert a dependency closure to Mermaid flowchart syntax.

    Args:
        closure: The dependency closure to export.
        root: Project root for relative paths.
        orientation: Flowchart orientation (LR, TD, TB, RL, BT).
        base: Optional base path for relative path display.
        group_by_directory: If True, group nodes by top-level directory.

    Returns:
        Mermaid flowchart string.
    """
    if base is None:
        base = root

    lines = [f"flowchart {orientation}"]

    nodes: List[Path] = closure.roots + [p for p in closure.paths() if p not in closure.roots]

    # Build node ID mapping
    node_ids: Dict[Path, str] = {}
    for node in nodes:
        node_ids[node] = _sanitize_id(node, root)

    if group_by_directory:
        lines.extend(_generate_grouped_nodes(nodes, root, node_ids))
    else:
        for node in nodes:
            lines.append(f'    {node_ids[node]}["{_get_label(node, root)}"]')

    # Changed files stand out
    if closure.roots:
        lines.append("")
        lines.append("    %% Root files")
        for root_node in closure.roots:
            lines.append(f"    style {node_ids[root_node]} stroke:#ff9900,stroke-width:2px")

    # Add edges
    lines.append("")
    for source, target in closure.iter_edges():
        if source in node_ids and target in node_ids:
            lines.append(f"    {node_ids[source]} --> {node_ids[target]}")

    return "\n".join(lines)


def _generate_grouped_nodes(
    nodes: List[Path],
    root: Path,
    node_ids: Dict[Path, str],
) -> list:
    """Generate node definitions inside subgraphs grouped by top-level directory."""
    lines = []

    # Group nodes by top-level directory
    groups: Dict[str, Set[Path]] = {}
    for node in nodes:
        try:
            rel_path = node.relative_to(root)
            top_dir = rel_path.parts[0] if len(rel_path.parts) > 1 else "root"
        except ValueError:
            top_dir = "external"

        if top_dir not in groups:
            groups[top_dir] = set()
        groups[top_dir].add(node)

    # Generate subgraphs
    for group_name in sorted(groups.keys()):
        group_nodes = groups[group_name]
        subgraph_id = _sanitize_id_simple(f"dir_{group_name}")
        lines.append(f"    subgraph {subgraph_id}[{group_name}]")

        for node in sorted(group_nodes):
            lines.append(f'        {node_ids[node]}["{_get_label(node, root)}"]')

        lines.append("    end")
        lines.append("")

    return lines


def _sanitize_id(path: Path, root: Path) -> str:
    """
    Convert a file path to a valid Mermaid node ID.

    Mermaid IDs can only contain letters, digits, and underscores.
    """
    try:
        rel_path = path.relative_to(root)
    except ValueError:
        rel_path = path

    return _sanitize_id_simple(str(rel_path))


def _sanitize_id_simple(value: str) -> str:
    """Sanitize a string to be a valid Mermaid ID."""
    # Replace path separators and dots with underscores
    sanitized = re.sub(r"[/\\.\-]", "_", value)
    # Remove any remaining invalid characters
    sanitized = re.sub(r"[^a-zA-Z0-9_]", "", sanitized)
    # Ensure it starts with a letter
    if sanitized and not sanitized[0].isalpha():
        sanitized = "n_" + sanitized
    return sanitized or "unknown"


def _get_label(path: Path, root: Path) -> str:
    """Get the display label for a node."""
    try:
        rel_path = path.relative_to(root)
        return str(rel_path).replace("\\", "/")
    except ValueError:
        return str(path).replace("\\", "/")
