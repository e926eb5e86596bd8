"""Path resolution utilities for mapping import specifiers to files."""

import logging
import os
from pathlib import Path
from typing import Optional, Tuple

from closure.model import SourceFile
from .config import EngineConfig
from .errors import ResolutionFailure

logger = logging.getLogger(__name__)


def resolve_import(
    raw_specifier: str,
    origin_file: Path,
    project_root: Path,
    config: Optional[EngineConfig] = None,
) -> Optional[Path]:
    """
    Resolve an import specifier to a project file.

    Resolution order:
    1. Bare specifiers naming an installed package under one of the
       external-dependency directories are external: None.
    2. The specifier is joined to the origin file's directory (absolute
       specifiers are used as-is). Python module paths are converted to
       file paths first.
       Relative Python imports are looked up in their package: a name that
       is not a submodule falls back to the package's ``__init__``.
    3. The candidate is probed as-is, then with each configured extension,
       then with each directory-index form.
    4. Bare specifiers that found nothing are retried from the project root.

    Args:
        raw_specifier: The specifier as written in the import.
        origin_file: The file containing the import.
        project_root: Root of the project.
        config: Engine configuration (suffixes, external directories).

    Returns:
        Canonical path of the first existing regular file, or None.
    """
    if config is None:
        config = EngineConfig()

    try:
        relative = _specifier_path(raw_specifier, origin_file)
    except ResolutionFailure as e:
        logger.debug("Dropping import: %s", e)
        return None

    bare = is_bare_specifier(raw_specifier)
    if bare and is_external_package(raw_specifier, project_root, config, relative):
        return None

    if relative.is_absolute():
        resolved = probe_file(relative, config)
    elif not bare and _is_python_origin(origin_file):
        resolved = _resolve_relative_module(raw_specifier, origin_file, relative, config)
    else:
        resolved = probe_file(_origin_dir(raw_specifier, origin_file) / relative, config)

    if resolved is None and bare:
        resolved = probe_file(project_root / relative, config)

    if resolved is None:
        logger.debug("Unresolved import %r in %s", raw_specifier, origin_file)
    return resolved


def is_bare_specifier(raw_specifier: str) -> bool:
    """A specifier that is neither relative nor absolute, e.g. ``react``."""
    return not raw_specifier.startswith(".") and not os.path.isabs(raw_specifier)


def is_external_package(
    raw_specifier: str,
    project_root: Path,
    config: EngineConfig,
    relative: Optional[Path] = None,
) -> bool:
    """
    Check whether a bare specifier names an installed external package.

    The specifier itself and its package name (``lodash`` for
    ``lodash/fp``, ``@scope/pkg`` for ``@scope/pkg/sub``) are looked up
    under each external-dependency directory of the project root.
    """
    names = {raw_specifier, package_name(raw_specifier)}
    if relative is not None:
        names.add(relative.parts[0] if relative.parts else raw_specifier)
    for external_dir in config.external_dirs:
        for name in names:
            try:
                if (project_root / external_dir / name).is_dir():
                    return True
            except (OSError, ValueError):
                continue
    return False


def package_name(raw_specifier: str) -> str:
    parts = raw_specifier.split("/")
    if raw_specifier.startswith("@") and len(parts) > 1:
        return "/".join(parts[:2])
    return parts[0]


def probe_file(candidate: Path, config: EngineConfig) -> Optional[Path]:
    """
    Return the first existing regular file among the candidate's suffixed forms.

    Filesystem errors count as "does not exist".
    """
    return _first_file(candidate, ("",) + tuple(config.extensions) + tuple(config.index_files))


def probe_index(directory: Path, config: EngineConfig) -> Optional[Path]:
    """Return the directory's first existing index file, never a suffixed sibling."""
    return _first_file(directory, tuple(config.index_files))


def _first_file(candidate: Path, suffixes: Tuple[str, ...]) -> Optional[Path]:
    base = str(candidate)
    for suffix in suffixes:
        path = Path(base + suffix)
        try:
            if path.is_file():
                return path.resolve()
        except (OSError, ValueError):
            continue
    return None


def _resolve_relative_module(
    raw_specifier: str,
    origin_file: Path,
    relative: Path,
    config: EngineConfig,
) -> Optional[Path]:
    """
    Resolve a dotted relative Python import inside its package.

    ``.`` and ``..`` name the package itself. ``.name`` is first looked up as
    a submodule; when none exists the name is taken to be defined in the
    package's ``__init__``.
    """
    package_dir = _origin_dir(raw_specifier, origin_file)
    if not relative.parts:
        return probe_index(package_dir, config)

    resolved = probe_file(package_dir / relative, config)
    if resolved is None and len(relative.parts) == 1:
        resolved = probe_index(package_dir, config)
    return resolved


def _is_python_origin(origin_file: Path) -> bool:
    return SourceFile.from_path(origin_file).language == "python"


def _specifier_path(raw_specifier: str, origin_file: Path) -> Path:
    """
    Convert a specifier into a path to join onto its base directory.

    Raises:
        ResolutionFailure: If the specifier cannot name a file.
    """
    if not raw_specifier or "\x00" in raw_specifier:
        raise ResolutionFailure(f"invalid specifier {raw_specifier!r}", origin_file)

    if not _is_python_origin(origin_file):
        return Path(raw_specifier)

    # Python module path: leading dots pick the package, the rest are packages
    module = raw_specifier.lstrip(".")
    parts = [part for part in module.split(".") if part]
    if module and len(parts) != len(module.split(".")):
        raise ResolutionFailure(f"invalid module path {raw_specifier!r}", origin_file)
    return Path(*parts)


def _origin_dir(raw_specifier: str, origin_file: Path) -> Path:
    directory = origin_file.parent
    if _is_python_origin(origin_file):
        level = len(raw_specifier) - len(raw_specifier.lstrip("."))
        for _ in range(max(level - 1, 0)):
            directory = directory.parent
    return directory
