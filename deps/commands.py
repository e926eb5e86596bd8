"""Command execution port used by extractors that shell out to a parser."""

import logging
import subprocess
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from .errors import ExternalToolFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    returncode: int
    stdout: str
    stderr: str = ""


class CommandRunner(Protocol):
    """Anything that can run a command with stdin and a timeout."""

    def run(
        self,
        argv: Sequence[str],
        input_text: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        ...


class SubprocessRunner:
    """CommandRunner backed by ``subprocess.run``."""

    def run(
        self,
        argv: Sequence[str],
        input_text: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        """
        Run a command to completion.

        Raises:
            ExternalToolFailure: If the command cannot be started or does
                not finish within ``timeout`` seconds.
        """
        try:
            completed = subprocess.run(
                list(argv),
                input=input_text,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise ExternalToolFailure(f"{argv[0]} timed out after {timeout}s") from e
        except OSError as e:
            raise ExternalToolFailure(f"Cannot run {argv[0]}: {e}") from e

        return CommandResult(
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
