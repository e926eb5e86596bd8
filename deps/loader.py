"""File loading with size and binary-content checks."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from .config import DEFAULT_MAX_FILE_SIZE

logger = logging.getLogger(__name__)


BINARY_EXTENSIONS = {
    ".png", ".jpg", ".jpeg", ".gif", ".svg", ".ico",
    ".pdf", ".zip", ".tar", ".gz",
    ".exe", ".dll", ".so", ".dylib",
    ".woff", ".woff2", ".ttf", ".eot",
    ".mp4", ".mp3", ".avi", ".mov", ".webm",
    ".bin",
}

BINARY_SNIFF_BYTES = 512


@dataclass(frozen=True)
class LoadedFile:
    path: Path
    content: Optional[str]
    skipped: bool = False
    reason: Optional[str] = None
    size: int = 0


@dataclass
class LoadResult:
    files: List[LoadedFile] = field(default_factory=list)
    skipped: List[LoadedFile] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.files) + len(self.skipped)

    @property
    def loaded_count(self) -> int:
        return len(self.files)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


def is_binary_by_extension(file_path: Path) -> bool:
    return file_path.suffix.lower() in BINARY_EXTENSIONS


def is_binary_by_content(file_path: Path) -> bool:
    """Check for NUL bytes in the first few hundred bytes of the file."""
    try:
        with file_path.open("rb") as f:
            head = f.read(BINARY_SNIFF_BYTES)
    except OSError:
        return False
    return b"\x00" in head


def should_skip_file(file_path: Path, max_size: int = DEFAULT_MAX_FILE_SIZE) -> Tuple[bool, Optional[str]]:
    """
    Decide whether a file should be left out of loading.

    Returns:
        (skip, reason) tuple; reason is None when the file is kept.
    """
    try:
        size = file_path.stat().st_size
    except OSError as e:
        return True, f"Cannot access file: {e}"

    if size > max_size:
        return True, f"File exceeds {max_size / 1024 / 1024:g}MB limit"

    if is_binary_by_extension(file_path):
        return True, "Binary file (by extension)"

    if is_binary_by_content(file_path):
        return True, "Binary file (by content)"

    return False, None


def load_file(file_path: Path, max_size: int = DEFAULT_MAX_FILE_SIZE) -> LoadedFile:
    """
    Load a text file, applying the size and binary checks first.

    Never raises; problems are reported through ``skipped`` and ``reason``.
    """
    skip, reason = should_skip_file(file_path, max_size)
    if skip:
        logger.debug("Skipping %s: %s", file_path, reason)
        return LoadedFile(path=file_path, content=None, skipped=True, reason=reason)

    try:
        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("Cannot read %s: %s", file_path, e)
        return LoadedFile(
            path=file_path,
            content=None,
            skipped=True,
            reason=f"Error reading file: {e}",
        )

    return LoadedFile(path=file_path, content=content, size=len(content))


def load_files(file_paths: Iterable[Path], max_size: int = DEFAULT_MAX_FILE_SIZE) -> LoadResult:
    """Load several files, splitting them into loaded and skipped."""
    result = LoadResult()
    for file_path in file_paths:
        loaded = load_file(file_path, max_size)
        if loaded.skipped:
            result.skipped.append(loaded)
        else:
            result.files.append(loaded)
    return result
