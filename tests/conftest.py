"""Shared fixtures for building throwaway project trees."""

import json
from pathlib import Path
from typing import Dict, List, Optional, Union

import pytest

from deps.commands import CommandResult
from deps.errors import ExternalToolFailure


class FakeRunner:
    """CommandRunner double that records calls and replays a canned outcome."""

    def __init__(
        self,
        stdout: str = "[]",
        returncode: int = 0,
        stderr: str = "",
        error: Optional[Exception] = None,
    ):
        self.stdout = stdout
        self.returncode = returncode
        self.stderr = stderr
        self.error = error
        self.calls: List[dict] = []

    def run(self, argv, input_text=None, timeout=None):
        self.calls.append({"argv": list(argv), "input_text": input_text, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return CommandResult(self.returncode, self.stdout, self.stderr)


class MappingRunner:
    """CommandRunner double answering with the imports listed per source text."""

    def __init__(self, answers: Dict[str, List[dict]]):
        self.answers = answers

    def run(self, argv, input_text=None, timeout=None):
        if input_text not in self.answers:
            raise ExternalToolFailure("no canned answer")
        return CommandResult(0, json.dumps(self.answers[input_text]))


@pytest.fixture
def write_files(tmp_path):
    """Create files under tmp_path from a {relative path: content} mapping."""

    def _write(files: Dict[str, Union[str, bytes]]) -> Path:
        for name, content in files.items():
            path = tmp_path / name
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
        return tmp_path.resolve()

    return _write


@pytest.fixture
def fake_runner():
    return FakeRunner


@pytest.fixture
def mapping_runner():
    return MappingRunner
