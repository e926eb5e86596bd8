"""Engine configuration and YAML config file loading."""

import logging
import sys
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

from closure.model import UNBOUNDED
from .errors import ConfigError

logger = logging.getLogger(__name__)


CONFIG_FILENAMES = (".depclosure.yml", ".depclosure.yaml")

DEFAULT_EXTENSIONS = (".js", ".jsx", ".ts", ".tsx", ".py")
DEFAULT_INDEX_FILES = ("/index.js", "/index.ts", "/__init__.py")
DEFAULT_EXTERNAL_DIRS = ("node_modules",)
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
DEFAULT_PYTHON_EXECUTABLE = sys.executable or "python3"

MIN_DEPTH = 1
MAX_DEPTH = 5
UNBOUNDED_NAMES = {"unbounded", "all", "inf", "infinite"}


@dataclass(frozen=True)
class EngineConfig:
    """
    Settings consumed by the extractor, resolver and builder.

    Attributes:
        dependency_depth: Import hops to follow from each root (1-5), or
            UNBOUNDED.
        extensions: Suffixes probed after the exact specifier.
        index_files: Directory-index forms probed last.
        external_dirs: Directories under the project root that hold
            installed packages; bare specifiers naming one are external.
        python_executable: Interpreter used to run the ``ast`` based parser.
        python_timeout: Seconds before the parser process is abandoned.
        workers: Threads used to expand a breadth-first level.
        max_file_size: Files larger than this are not read.
    """

    dependency_depth: Union[int, float] = 2
    extensions: Tuple[str, ...] = DEFAULT_EXTENSIONS
    index_files: Tuple[str, ...] = DEFAULT_INDEX_FILES
    external_dirs: Tuple[str, ...] = DEFAULT_EXTERNAL_DIRS
    python_executable: str = DEFAULT_PYTHON_EXECUTABLE
    python_timeout: float = 5.0
    workers: int = 1
    max_file_size: int = DEFAULT_MAX_FILE_SIZE

    def with_overrides(self, **overrides: Any) -> "EngineConfig":
        """Return a copy with every non-None override applied and validated."""
        values = {k: v for k, v in overrides.items() if v is not None}
        if not values:
            return self
        return config_from_dict(values, base=self)


def parse_depth(value: Any) -> Union[int, float]:
    """
    Validate a depth value from a config file or the command line.

    Accepts an integer from 1 to 5 (or its string form) or one of the
    unbounded names.
    """
    if isinstance(value, str):
        text = value.strip().lower()
        if text in UNBOUNDED_NAMES:
            return UNBOUNDED
        try:
            value = int(text)
        except ValueError:
            raise ConfigError(f"dependency_depth must be an integer or 'unbounded', got {value!r}")
    if value == UNBOUNDED:
        return UNBOUNDED
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"dependency_depth must be an integer or 'unbounded', got {value!r}")
    if not MIN_DEPTH <= value <= MAX_DEPTH:
        raise ConfigError(f"dependency_depth must be between {MIN_DEPTH} and {MAX_DEPTH}, got {value}")
    return value


def _as_suffixes(key: str, value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{key} must be a list of strings")
    return tuple(value)


def _normalize_extension(ext: str) -> str:
    return ext if ext.startswith(".") else "." + ext


def config_from_dict(data: Dict[str, Any], base: Optional[EngineConfig] = None) -> EngineConfig:
    """Build a validated EngineConfig from a mapping of overrides."""
    if base is None:
        base = EngineConfig()

    known = {f.name for f in fields(EngineConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

    values: Dict[str, Any] = {}
    for key, value in data.items():
        if key == "dependency_depth":
            values[key] = parse_depth(value)
        elif key == "extensions":
            values[key] = tuple(_normalize_extension(e) for e in _as_suffixes(key, value))
        elif key == "index_files":
            values[key] = tuple(
                e if e.startswith("/") else "/" + e for e in _as_suffixes(key, value)
            )
        elif key == "external_dirs":
            values[key] = _as_suffixes(key, value)
        elif key == "python_executable":
            if not isinstance(value, str) or not value:
                raise ConfigError("python_executable must be a non-empty string")
            values[key] = value
        elif key == "python_timeout":
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise ConfigError("python_timeout must be a positive number")
            values[key] = float(value)
        elif key in ("workers", "max_file_size"):
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ConfigError(f"{key} must be a positive integer")
            values[key] = value

    return replace(base, **values)


def load_config(path: Path) -> EngineConfig:
    """
    Load an EngineConfig from a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        EngineConfig with the file's values over the defaults.

    Raises:
        ConfigError: If the file cannot be read or holds invalid values.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    logger.debug("Loaded configuration from %s", path)
    return config_from_dict(data)


def find_config(project_root: Path) -> Optional[Path]:
    """Return the first config file present at the project root, if any."""
    for name in CONFIG_FILENAMES:
        candidate = project_root / name
        if candidate.is_file():
            return candidate
    return None
