"""ASCII tree-style exporter for dependency closures."""

from pathlib import Path
from typing import Optional, List, Tuple

from closure.model import DependencyClosure


# Unicode tree characters
UNICODE_BRANCH = "├── "
UNICODE_LAST = "└── "
UNICODE_VERTICAL = "│   "
UNICODE_SPACE = "    "

# ASCII fallback characters
ASCII_BRANCH = "|-- "
ASCII_LAST = "\\-- "
ASCII_VERTICAL = "|   "
ASCII_SPACE = "    "


def to_ascii(
    closure: DependencyClosure,
    root: Path,
    base: Optional[Path] = None,
    style: str = "tree",
    show_depth: bool = True,
) -> str:
    """
    Convert a dependency closure to an ASCII tree.

    Each root is printed with the files it imports below it. A file is
    expanded under the import that first discovered it; later imports of
    the same file (and imports of root files) are marked with [*].

    Args:
        closure: The dependency closure to export.
        root: Project root for relative paths.
        base: Optional base path for relative path display.
        style: Output style - "tree" (Unicode) or "ascii" (pure ASCII).
        show_depth: If True, append each file's discovery depth.

    Returns:
        ASCII tree string.
    """
    if base is None:
        base = root

    # Select character set based on style
    if style == "ascii":
        chars = (ASCII_BRANCH, ASCII_LAST, ASCII_VERTICAL, ASCII_SPACE)
    else:
        chars = (UNICODE_BRANCH, UNICODE_LAST, UNICODE_VERTICAL, UNICODE_SPACE)

    lines: List[str] = []
    root_nodes = closure.roots

    for i, root_node in enumerate(root_nodes):
        lines.append(_get_display_path(root_node, base, root))
        _render_children(
            closure=closure,
            node=root_node,
            base=base,
            root=root,
            prefix="",
            chars=chars,
            lines=lines,
            show_depth=show_depth,
        )

        # Add blank line between root trees (except after last)
        if i < len(root_nodes) - 1:
            lines.append("")

    return "\n".join(lines)


def _render_children(
    closure: DependencyClosure,
    node: Path,
    base: Path,
    root: Path,
    prefix: str,
    chars: Tuple[str, str, str, str],
    lines: List[str],
    show_depth: bool,
) -> None:
    """Render the imports of ``node`` below it (modifies ``lines`` in place)."""
    branch, last, vertical, space = chars

    targets = closure.get_targets(node)
    for index, target in enumerate(targets):
        is_last = index == len(targets) - 1
        connector = last if is_last else branch

        entry = closure.get(target)
        first_seen_here = entry is not None and entry.parent == node
        label = _get_display_path(target, base, root)
        if first_seen_here and show_depth:
            label += f" (depth {entry.depth})"
        elif not first_seen_here:
            label += " [*]"
        lines.append(f"{prefix}{connector}{label}")

        if first_seen_here:
            _render_children(
                closure=closure,
                node=target,
                base=base,
                root=root,
                prefix=prefix + (space if is_last else vertical),
                chars=chars,
                lines=lines,
                show_depth=show_depth,
            )


def _get_display_path(node: Path, base: Path, root: Path) -> str:
    """Get the display path for a node."""
    try:
        # Try relative to base first
        rel_path = node.relative_to(base)
        return str(rel_path).replace("\\", "/")
    except ValueError:
        try:
            # Fall back to relative to root
            rel_path = node.relative_to(root)
            return str(rel_path).replace("\\", "/")
        except ValueError:
            return str(node).replace("\\", "/")
