"""Import extraction for JavaScript/TypeScript and Python source files."""

import json
import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from closure.model import ImportKind, ImportReference, ImportSpecifier
from .commands import CommandRunner, SubprocessRunner
from .config import DEFAULT_PYTHON_EXECUTABLE, EngineConfig
from .errors import ExternalToolFailure, ParseFailure

logger = logging.getLogger(__name__)


JS_EXTENSIONS = {".js", ".mjs", ".cjs", ".ts", ".mts", ".cts"}
JSX_EXTENSIONS = {".jsx", ".tsx"}
PYTHON_EXTENSIONS = {".py", ".pyi"}

# TypeScript is a superset of JavaScript; TSX additionally enables JSX
TYPESCRIPT_LANGUAGE = Language(tree_sitter_typescript.language_typescript())
TSX_LANGUAGE = Language(tree_sitter_typescript.language_tsx())

# Node types never descended into
SKIPPED_NODE_TYPES = {"comment", "html_comment"}

DEFAULT_IMPORT_NAME = "default"
NAMESPACE_IMPORT_NAME = "*"

# import ... from 'module' and bare import 'module'
ES6_IMPORT_RE = re.compile(
    r"import\s+(?:type\s+)?(?:(?:\{[^}]*\}|\*\s+as\s+\w+|\w+)"
    r"(?:\s*,\s*(?:\{[^}]*\}|\*\s+as\s+\w+|\w+))*\s+from\s+)?['\"]([^'\"]+)['\"]"
)
REQUIRE_RE = re.compile(r"require\s*\(\s*['\"]([^'\"]+)['\"]\s*\)")

PY_IMPORT_RE = re.compile(r"^import\s+([a-zA-Z0-9_.]+)", re.MULTILINE)
PY_FROM_IMPORT_RE = re.compile(
    r"^from\s+(\.*[a-zA-Z0-9_.]*)\s+import\s+(\([^)]*\)|[^\n#;]*)", re.MULTILINE
)

PYTHON_AST_SCRIPT = """
import ast, json, sys
tree = ast.parse(sys.stdin.read())
found = []
for node in ast.walk(tree):
    if isinstance(node, ast.Import):
        for alias in node.names:
            found.append((node.lineno, node.col_offset, len(found), "import", alias.name))
    elif isinstance(node, ast.ImportFrom):
        dots = "." * (node.level or 0)
        if node.module:
            found.append((node.lineno, node.col_offset, len(found), "import_from", dots + node.module))
        elif dots:
            for alias in node.names:
                if alias.name != "*":
                    found.append((node.lineno, node.col_offset, len(found), "import_from", dots + alias.name))
found.sort()
print(json.dumps([{"kind": kind, "source": source} for _, _, _, kind, source in found]))
"""

PYTHON_KINDS = {
    "import": ImportKind.STATIC_IMPORT,
    "import_from": ImportKind.FROM_IMPORT,
}


class Extractor:
    """Base class: turns file content into import references."""

    def extract(self, content: str, path: Path) -> List[ImportReference]:
        raise NotImplementedError


class NullExtractor(Extractor):
    """Used for extensions no extractor understands."""

    def extract(self, content: str, path: Path) -> List[ImportReference]:
        return []


class JavaScriptRegexExtractor(Extractor):
    """Regex scan for ES module imports and require() calls."""

    def extract(self, content: str, path: Path) -> List[ImportReference]:
        imports = [
            ImportReference(match.group(1), ImportKind.STATIC_IMPORT, path)
            for match in ES6_IMPORT_RE.finditer(content)
        ]
        imports.extend(
            ImportReference(match.group(1), ImportKind.DYNAMIC_REQUIRE, path)
            for match in REQUIRE_RE.finditer(content)
        )
        return imports


class JavaScriptExtractor(Extractor):
    """
    Syntax-tree extraction for the JS family using tree-sitter.

    Falls back to JavaScriptRegexExtractor when the tree contains errors.
    """

    def __init__(self):
        self.fallback = JavaScriptRegexExtractor()

    def extract(self, content: str, path: Path) -> List[ImportReference]:
        try:
            return self.parse(content, path)
        except ParseFailure as e:
            logger.debug("Falling back to regex import scan: %s", e)
            return self.fallback.extract(content, path)

    def parse(self, content: str, path: Path) -> List[ImportReference]:
        """
        Parse ``content`` and collect its imports.

        Raises:
            ParseFailure: If the source does not parse cleanly.
        """
        if path.suffix.lower() in JSX_EXTENSIONS:
            language = TSX_LANGUAGE
        else:
            language = TYPESCRIPT_LANGUAGE

        parser = Parser(language)
        try:
            tree = parser.parse(content.encode("utf-8", errors="surrogateescape"))
        except (ValueError, UnicodeError) as e:
            raise ParseFailure(str(e), path) from e

        if tree.root_node.has_error:
            raise ParseFailure("syntax error", path)

        imports: List[ImportReference] = []
        stack = [tree.root_node]
        while stack:
            node = stack.pop()
            reference = self._reference_for(node, path)
            if reference is not None:
                imports.append(reference)
            # Reversed so nodes come off the stack in source order
            stack.extend(
                child for child in reversed(node.children)
                if child.type not in SKIPPED_NODE_TYPES
            )
        return imports

    def _reference_for(self, node: Node, path: Path) -> Optional[ImportReference]:
        if node.type == "import_statement":
            source = node.child_by_field_name("source")
            if source is not None:
                return ImportReference(
                    _string_value(source),
                    ImportKind.STATIC_IMPORT,
                    path,
                    _import_specifiers(node),
                )
            # TypeScript: import x = require('module')
            for child in node.named_children:
                if child.type == "import_require_clause":
                    source = child.child_by_field_name("source")
                    if source is not None:
                        return ImportReference(_string_value(source), ImportKind.DYNAMIC_REQUIRE, path)
            return None

        if node.type == "export_statement":
            source = node.child_by_field_name("source")
            if source is not None:
                return ImportReference(_string_value(source), ImportKind.STATIC_IMPORT, path)
            return None

        if node.type == "call_expression":
            function = node.child_by_field_name("function")
            if function is None or function.type != "identifier" or _text(function) != "require":
                return None
            arguments = node.child_by_field_name("arguments")
            if arguments is None:
                return None
            args = [a for a in arguments.named_children if a.type not in SKIPPED_NODE_TYPES]
            if len(args) == 1 and args[0].type == "string":
                return ImportReference(_string_value(args[0]), ImportKind.DYNAMIC_REQUIRE, path)

        return None


class PythonRegexExtractor(Extractor):
    """Line-anchored regex scan for ``import x`` and ``from x import y``."""

    def extract(self, content: str, path: Path) -> List[ImportReference]:
        imports = [
            ImportReference(match.group(1), ImportKind.STATIC_IMPORT, path)
            for match in PY_IMPORT_RE.finditer(content)
        ]
        for match in PY_FROM_IMPORT_RE.finditer(content):
            source = match.group(1)
            if source.strip("."):
                imports.append(ImportReference(source, ImportKind.FROM_IMPORT, path))
            elif source:
                # from . import a, b: each name is a module of the package
                imports.extend(
                    ImportReference(source + name, ImportKind.FROM_IMPORT, path)
                    for name in _imported_names(match.group(2))
                )
        return imports


class PythonExtractor(Extractor):
    """
    Extraction through Python's own ``ast`` module, run as an external command.

    The command goes through a CommandRunner so tests can substitute it.
    Any failure of the command falls back to PythonRegexExtractor.
    """

    def __init__(
        self,
        runner: Optional[CommandRunner] = None,
        executable: str = DEFAULT_PYTHON_EXECUTABLE,
        timeout: float = 5.0,
    ):
        self.runner = runner if runner is not None else SubprocessRunner()
        self.executable = executable
        self.timeout = timeout
        self.fallback = PythonRegexExtractor()

    def extract(self, content: str, path: Path) -> List[ImportReference]:
        try:
            return self.parse(content, path)
        except ExternalToolFailure as e:
            logger.debug("Falling back to regex import scan: %s", e)
            return self.fallback.extract(content, path)

    def parse(self, content: str, path: Path) -> List[ImportReference]:
        """
        Run the ast-based parser over ``content``.

        Raises:
            ExternalToolFailure: On launch failure, timeout, non-zero exit
                or output that is not the expected JSON list.
        """
        argv = [self.executable, "-X", "utf8", "-c", PYTHON_AST_SCRIPT]
        try:
            result = self.runner.run(argv, input_text=content, timeout=self.timeout)
        except ExternalToolFailure as e:
            raise ExternalToolFailure(str(e), path) from e

        if result.returncode != 0:
            detail = result.stderr.strip().splitlines()[-1:] or ["no output"]
            raise ExternalToolFailure(f"parser exited with {result.returncode}: {detail[0]}", path)

        try:
            entries = json.loads(result.stdout)
        except ValueError as e:
            raise ExternalToolFailure(f"malformed parser output: {e}", path) from e

        if not isinstance(entries, list):
            raise ExternalToolFailure("parser output is not a list", path)

        imports = []
        for entry in entries:
            if not isinstance(entry, dict):
                raise ExternalToolFailure(f"unexpected parser entry {entry!r}", path)
            kind = PYTHON_KINDS.get(entry.get("kind"))
            source = entry.get("source")
            if kind is None or not isinstance(source, str) or not source:
                raise ExternalToolFailure(f"unexpected parser entry {entry!r}", path)
            imports.append(ImportReference(source, kind, path))
        return imports


def _text(node: Node) -> str:
    return node.text.decode("utf-8", errors="replace") if node.text is not None else ""


def _string_value(node: Node) -> str:
    """Return the contents of a string literal node without its quotes."""
    fragments = [c for c in node.named_children if c.type in ("string_fragment", "escape_sequence")]
    if fragments:
        return "".join(_text(c) for c in fragments)
    return _text(node)[1:-1]


def _import_specifiers(node: Node) -> Tuple[ImportSpecifier, ...]:
    """Collect the names bound by an ``import_statement`` node."""
    specifiers: List[ImportSpecifier] = []
    clause = next((c for c in node.named_children if c.type == "import_clause"), None)
    if clause is None:
        return ()

    for child in clause.named_children:
        if child.type == "identifier":
            specifiers.append(ImportSpecifier(DEFAULT_IMPORT_NAME, _text(child)))
        elif child.type == "namespace_import":
            local = next((c for c in child.named_children if c.type == "identifier"), None)
            if local is not None:
                specifiers.append(ImportSpecifier(NAMESPACE_IMPORT_NAME, _text(local)))
        elif child.type == "named_imports":
            for spec in child.named_children:
                if spec.type != "import_specifier":
                    continue
                name = spec.child_by_field_name("name")
                alias = spec.child_by_field_name("alias")
                if name is None:
                    continue
                imported = _text(name)
                local = _text(alias) if alias is not None else imported
                specifiers.append(ImportSpecifier(imported, local))
    return tuple(specifiers)


def _imported_names(clause: str) -> List[str]:
    """Names bound by the ``import`` clause of a from-import, aliases dropped."""
    names = []
    clause = re.sub(r"#[^\n]*", "", clause)
    for item in clause.strip().strip("()").split(","):
        words = item.split()
        if words and words[0] != "*" and words[0].isidentifier():
            names.append(words[0])
    return names


def get_extractor(
    path: Path,
    runner: Optional[CommandRunner] = None,
    config: Optional[EngineConfig] = None,
) -> Extractor:
    """Select the extractor for a file by its extension."""
    if config is None:
        config = EngineConfig()
    suffix = path.suffix.lower()
    if suffix in JS_EXTENSIONS or suffix in JSX_EXTENSIONS:
        return JavaScriptExtractor()
    if suffix in PYTHON_EXTENSIONS:
        return PythonExtractor(runner, config.python_executable, config.python_timeout)
    return NullExtractor()


def extract_imports(
    content: str,
    path: Path,
    runner: Optional[CommandRunner] = None,
    config: Optional[EngineConfig] = None,
) -> List[ImportReference]:
    """
    Extract the import references found in a file's content.

    Never raises: any failure yields a best-effort, possibly empty, list.

    Args:
        content: Text of the file.
        path: Path of the file; its extension selects the extractor.
        runner: Command runner for extractors that use an external parser.
        config: Engine configuration.

    Returns:
        ImportReference list in source order.
    """
    extractor = get_extractor(path, runner, config)
    try:
        return extractor.extract(content, path)
    except Exception as e:
        logger.debug("Import extraction failed for %s: %s", path, e)
        return []

