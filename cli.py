#!/usr/bin/env python3
"""
depclosure CLI

Finds the project files that a set of changed files imports, directly or
transitively, up to a configurable depth.
"""

import argparse
import logging
import sys
from pathlib import Path

from deps.builder import build_dependency_closure
from deps.config import EngineConfig, find_config, load_config, parse_depth
from deps.errors import ConfigError
from exporters import to_list, to_mermaid, to_ascii, to_json


def parse_args(args=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="depclosure",
        description="List the project files imported by a set of changed files.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  depclosure src/app.js                    # Direct and transitive imports (config depth)
  depclosure src/app.js --depth 1          # Direct imports only
  depclosure src/a.ts src/b.py --depth unbounded
  depclosure src/app.js -f ascii           # Tree of imports under each file
  depclosure src/app.js -f json -o deps.json
        """,
    )

    # Positional arguments
    parser.add_argument(
        "files",
        nargs="+",
        help="Changed files to start from",
    )

    parser.add_argument(
        "--project-root",
        type=str,
        default=".",
        help="Project root directory (default: current directory)",
    )

    parser.add_argument(
        "--depth",
        type=str,
        default=None,
        help="Import hops to follow, 1-5 or 'unbounded' (default: from config, else 2)",
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML config file (default: .depclosure.yml in the project root)",
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Threads used to scan files (default: from config, else 1)",
    )

    # Output options
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        help="Output file (default: stdout)",
    )

    parser.add_argument(
        "-f", "--format",
        choices=["list", "ascii", "mermaid", "json"],
        default="list",
        help="Output format (default: list)",
    )

    parser.add_argument(
        "--with-roots",
        action="store_true",
        help="Also list the changed files themselves in list output",
    )

    # Mermaid-specific options
    parser.add_argument(
        "--orientation",
        choices=["LR", "TD", "TB", "RL", "BT"],
        default="LR",
        help="Mermaid flowchart orientation (default: LR)",
    )

    parser.add_argument(
        "--group-by-dir",
        action="store_true",
        help="Group nodes by top-level directory in Mermaid output",
    )

    # ASCII-specific options
    parser.add_argument(
        "--ascii-style",
        choices=["tree", "ascii"],
        default="tree",
        help="ASCII output style: 'tree' (Unicode) or 'ascii' (pure ASCII)",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log fallbacks, skipped files and resolution misses to stderr",
    )

    return parser.parse_args(args)


def load_engine_config(project_root: Path, config_path=None) -> EngineConfig:
    """Load the explicit config file, else the project's, else defaults."""
    if config_path:
        return load_config(Path(config_path))
    found = find_config(project_root)
    if found is not None:
        return load_config(found)
    return EngineConfig()


def main(args=None):
    """Main entry point."""
    parsed = parse_args(args)

    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    # Resolve paths
    project_root = Path(parsed.project_root).resolve()
    if not project_root.is_dir():
        print(f"Error: '{parsed.project_root}' is not a directory", file=sys.stderr)
        return 1

    try:
        config = load_engine_config(project_root, parsed.config)
        config = config.with_overrides(workers=parsed.workers)
        max_depth = parse_depth(parsed.depth) if parsed.depth is not None else config.dependency_depth
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    roots = []
    for name in parsed.files:
        path = Path(name)
        if not path.is_absolute():
            path = Path.cwd() / path
        if not path.is_file():
            print(f"Warning: '{name}' is not a file, skipping", file=sys.stderr)
            continue
        roots.append(path)

    closure = build_dependency_closure(
        roots,
        max_depth=max_depth,
        project_root=project_root,
        config=config,
    )

    # Generate output
    if parsed.format == "mermaid":
        output = to_mermaid(
            closure=closure,
            root=project_root,
            orientation=parsed.orientation,
            group_by_directory=parsed.group_by_dir,
        )
    elif parsed.format == "json":
        output = to_json(closure=closure, root=project_root)
    elif parsed.format == "ascii":
        output = to_ascii(
            closure=closure,
            root=project_root,
            style=parsed.ascii_style,
        )
    else:  # list (default)
        output = to_list(closure=closure, root=project_root, include_roots=parsed.with_roots)

    # Write output
    if parsed.output:
        try:
            output_path = Path(parsed.output)
            output_path.write_text(output + "\n", encoding="utf-8")
            print(f"Output written to: {output_path}", file=sys.stderr)
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return 1
    elif output:
        print(output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
