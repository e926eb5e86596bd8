"""Error taxonomy for the dependency engine.

Every subclass of DependencyError is recoverable and contained at the
granularity of a single file. ConfigError is raised to callers.
"""

from pathlib import Path
from typing import Optional


class DependencyError(Exception):
    """Base class for per-file failures during closure computation."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        message = super().__str__()
        if self.path is not None:
            return f"{self.path}: {message}"
        return message


class ParseFailure(DependencyError):
    """The syntax-tree parse of a file failed."""


class ExternalToolFailure(DependencyError):
    """An external parser process failed, timed out or returned bad output."""


class ResolutionFailure(DependencyError):
    """An import specifier could not be mapped to a file on disk."""


class ReadFailure(DependencyError):
    """A file could not be read for extraction."""


class ConfigError(ValueError):
    """Invalid engine configuration."""
