"""Tests for import extraction."""

import json
import sys
from pathlib import Path

import pytest

from closure.model import ImportKind, ImportSpecifier
from deps.commands import SubprocessRunner
from deps.config import EngineConfig
from deps.errors import ExternalToolFailure
from deps.extractors import (
    JavaScriptExtractor,
    JavaScriptRegexExtractor,
    NullExtractor,
    PythonExtractor,
    PythonRegexExtractor,
    extract_imports,
    get_extractor,
)


def _sources(references):
    return [ref.raw_specifier for ref in references]


class TestJavaScriptExtraction:
    """Tests for syntax-tree extraction of JS-family files."""

    def test_static_imports(self):
        """Test that import statements are found in source order."""
        content = (
            "import React from 'react';\n"
            "import { a, b as c } from './utils';\n"
            "import * as ns from \"../lib/ns\";\n"
            "import './side-effect';\n"
        )
        refs = extract_imports(content, Path("/repo/src/app.js"))

        assert _sources(refs) == ["react", "./utils", "../lib/ns", "./side-effect"]
        assert all(ref.kind is ImportKind.STATIC_IMPORT for ref in refs)
        assert all(ref.origin_file == Path("/repo/src/app.js") for ref in refs)

    def test_import_specifiers(self):
        """Test that default, named, aliased and namespace names are captured."""
        content = "import Main, { a, b as c } from './m';\nimport * as ns from './n';\n"
        refs = extract_imports(content, Path("app.js"))

        assert refs[0].specifiers == (
            ImportSpecifier("default", "Main"),
            ImportSpecifier("a", "a"),
            ImportSpecifier("b", "c"),
        )
        assert refs[1].specifiers == (ImportSpecifier("*", "ns"),)

    def test_require_calls(self):
        """Test that require() with a single string literal is found."""
        content = (
            "const fs = require('fs');\n"
            "const helper = require('./helper');\n"
            "function load() { return require('../deep/thing'); }\n"
        )
        refs = extract_imports(content, Path("index.js"))

        assert _sources(refs) == ["fs", "./helper", "../deep/thing"]
        assert all(ref.kind is ImportKind.DYNAMIC_REQUIRE for ref in refs)

    def test_require_with_non_literal_is_ignored(self):
        """Test that require() with a variable or extra arguments is skipped."""
        content = (
            "const name = './x';\n"
            "const a = require(name);\n"
            "const b = require('./y', 'extra');\n"
            "const c = obj.require('./z');\n"
        )
        refs = extract_imports(content, Path("index.js"))

        assert refs == []

    def test_imports_in_comments_are_ignored(self):
        """Test that commented-out imports are not reported."""
        content = (
            "// import a from './commented';\n"
            "/* const b = require('./block'); */\n"
            "import real from './real';\n"
        )
        refs = extract_imports(content, Path("index.js"))

        assert _sources(refs) == ["./real"]

    def test_reexports(self):
        """Test that export ... from statements count as imports."""
        content = "export { a } from './a';\nexport * from './b';\nexport const c = 1;\n"
        refs = extract_imports(content, Path("index.ts"))

        assert _sources(refs) == ["./a", "./b"]

    def test_typescript_syntax(self):
        """Test that type annotations and type-only imports parse."""
        content = (
            "import type { User } from './types';\n"
            "import { api } from './api';\n"
            "export function get(id: number): Promise<User> {\n"
            "  return api.get<User>(`/users/${id}`);\n"
            "}\n"
        )
        refs = extract_imports(content, Path("service.ts"))

        assert _sources(refs) == ["./types", "./api"]

    def test_typescript_import_require(self):
        """Test the TypeScript import-equals-require form."""
        refs = extract_imports("import fs = require('./fs-shim');\n", Path("a.ts"))

        assert _sources(refs) == ["./fs-shim"]
        assert refs[0].kind is ImportKind.DYNAMIC_REQUIRE

    def test_jsx_file(self):
        """Test that JSX parses for .jsx and .tsx files."""
        content = (
            "import Button from './Button';\n"
            "export default function App() { return <Button label=\"hi\" />; }\n"
        )
        assert _sources(extract_imports(content, Path("App.jsx"))) == ["./Button"]
        assert _sources(extract_imports(content, Path("App.tsx"))) == ["./Button"]

    def test_syntax_error_falls_back_to_regex(self):
        """Test that a file that fails to parse is scanned with regexes."""
        content = "import a from './a';\nconst x = ;;; {{\nconst b = require('./b');\n"
        refs = extract_imports(content, Path("broken.js"))

        assert _sources(refs) == ["./a", "./b"]
        assert refs[0].kind is ImportKind.STATIC_IMPORT
        assert refs[1].kind is ImportKind.DYNAMIC_REQUIRE

    def test_unparseable_without_imports_yields_empty(self):
        """Test that garbage input gives an empty list, not an error."""
        assert extract_imports("import { from ;;; %%% ))) {", Path("bad.js")) == []

    def test_binary_looking_text(self):
        """Test that binary-looking text does not raise."""
        content = "\x00\x01\x02�\x7f" * 50
        assert extract_imports(content, Path("blob.js")) == []


class TestJavaScriptRegexExtractor:
    """Tests for the regex-only JS fallback."""

    def test_import_forms(self):
        """Test the import forms the fallback recognizes."""
        content = (
            "import a from './a'\n"
            "import { b, c } from './bc'\n"
            "import * as d from './d'\n"
            "import e, { f } from './ef'\n"
            "import './g'\n"
        )
        refs = JavaScriptRegexExtractor().extract(content, Path("x.js"))

        assert _sources(refs) == ["./a", "./bc", "./d", "./ef", "./g"]

    def test_require_forms(self):
        """Test require() with spacing and either quote style."""
        content = "require( './a' )\nrequire(\"./b\")\n"
        refs = JavaScriptRegexExtractor().extract(content, Path("x.js"))

        assert _sources(refs) == ["./a", "./b"]

    def test_type_only_imports(self):
        """Test TypeScript type-only imports."""
        content = "import type { X } from './t'\nimport type Y from './y'\n"
        refs = JavaScriptRegexExtractor().extract(content, Path("x.ts"))

        assert _sources(refs) == ["./t", "./y"]


class TestPythonExtraction:
    """Tests for Python extraction through the command port."""

    def test_parses_runner_output(self, fake_runner):
        """Test that the runner's JSON output becomes references."""
        runner = fake_runner(stdout=json.dumps([
            {"kind": "import", "source": "os"},
            {"kind": "import_from", "source": ".helpers"},
        ]))
        refs = PythonExtractor(runner).extract("ignored", Path("/repo/mod.py"))

        assert _sources(refs) == ["os", ".helpers"]
        assert refs[0].kind is ImportKind.STATIC_IMPORT
        assert refs[1].kind is ImportKind.FROM_IMPORT

    def test_content_goes_through_stdin_with_timeout(self, fake_runner):
        """Test that content is passed on stdin and a timeout is set."""
        runner = fake_runner()
        PythonExtractor(runner, executable="py", timeout=2.5).extract("import os\n", Path("m.py"))

        call = runner.calls[0]
        assert call["argv"][0] == "py"
        assert call["input_text"] == "import os\n"
        assert call["timeout"] == 2.5

    def test_nonzero_exit_falls_back(self, fake_runner):
        """Test that a failing parser process falls back to regexes."""
        runner = fake_runner(returncode=1, stderr="SyntaxError: invalid syntax")
        content = "import os\nfrom pkg.sub import thing\ndef broken(:\n"
        refs = PythonExtractor(runner).extract(content, Path("m.py"))

        assert _sources(refs) == ["os", "pkg.sub"]

    def test_timeout_falls_back(self, fake_runner):
        """Test that a timed-out parser process falls back to regexes."""
        runner = fake_runner(error=ExternalToolFailure("python3 timed out after 5s"))
        refs = PythonExtractor(runner).extract("import json\n", Path("m.py"))

        assert _sources(refs) == ["json"]

    @pytest.mark.parametrize("stdout", ["not json", "{}", "[1, 2]", '[{"kind": "weird", "source": "x"}]'])
    def test_malformed_output_falls_back(self, fake_runner, stdout):
        """Test that unexpected output is treated as a parser failure."""
        runner = fake_runner(stdout=stdout)
        refs = PythonExtractor(runner).extract("from . import sibling\n", Path("m.py"))

        assert _sources(refs) == [".sibling"]

    def test_real_interpreter(self):
        """Test the ast-based parser against the running interpreter."""
        content = (
            "import os, sys\n"
            "from collections import OrderedDict\n"
            "from .local import thing\n"
            "from .. import parent\n"
            "from . import a, b as c\n"
            "def f():\n"
            "    import json\n"
        )
        extractor = PythonExtractor(SubprocessRunner(), executable=sys.executable)
        refs = extractor.extract(content, Path("pkg/mod.py"))

        assert _sources(refs) == ["os", "sys", "collections", ".local", "..parent", ".a", ".b", "json"]


class TestPythonRegexExtractor:
    """Tests for the regex-only Python fallback."""

    def test_line_anchored(self):
        """Test that only imports at the start of a line are matched."""
        content = (
            "import a.b.c\n"
            "from x.y import z\n"
            "    import indented\n"
            "text = 'import not_this'\n"
            "from ..rel import q\n"
        )
        refs = PythonRegexExtractor().extract(content, Path("m.py"))

        assert _sources(refs) == ["a.b.c", "x.y", "..rel"]

    def test_package_relative_names(self):
        """Test that each name imported from a bare package becomes a module reference."""
        content = (
            "from . import a, b as c\n"
            "from .. import (\n"
            "    d,  # first\n"
            "    e,\n"
            ")\n"
            "from . import *\n"
            "from .pkg import f, g\n"
        )
        refs = PythonRegexExtractor().extract(content, Path("m.py"))

        assert _sources(refs) == [".a", ".b", "..d", "..e", ".pkg"]


class TestDispatch:
    """Tests for extractor selection by extension."""

    def test_selection(self):
        """Test that each extension maps to the right extractor."""
        assert isinstance(get_extractor(Path("a.js")), JavaScriptExtractor)
        assert isinstance(get_extractor(Path("a.TSX")), JavaScriptExtractor)
        assert isinstance(get_extractor(Path("a.mjs")), JavaScriptExtractor)
        assert isinstance(get_extractor(Path("a.py")), PythonExtractor)
        assert isinstance(get_extractor(Path("a.rb")), NullExtractor)

    def test_python_settings_from_config(self, fake_runner):
        """Test that the interpreter and timeout come from the config."""
        config = EngineConfig(python_executable="/opt/py", python_timeout=1.5)
        extractor = get_extractor(Path("a.py"), fake_runner(), config)

        assert extractor.executable == "/opt/py"
        assert extractor.timeout == 1.5

    def test_default_interpreter_matches_config(self, fake_runner):
        """Test that the extractor and the config default to the same interpreter."""
        assert PythonExtractor(fake_runner()).executable == EngineConfig().python_executable

    def test_unknown_extension(self):
        """Test that unknown extensions yield no references."""
        assert extract_imports("import x from './y'", Path("notes.md")) == []
