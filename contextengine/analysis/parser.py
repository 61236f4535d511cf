"""
contextengine.analysis.parser — tree-sitter parsing for JavaScript/TypeScript.

Grammars are loaded lazily and cached per process.  A grammar is picked
from the file extension; anything unrecognised is parsed as TSX, the
broadest grammar (ES modules, JSX, type annotations, decorators).

tree-sitter recovers from syntax errors instead of failing, so a tree
whose root reports an error is treated as a parse failure here.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Dict, Iterator, Optional

import tree_sitter as ts

log = logging.getLogger(__name__)

JAVASCRIPT = "javascript"
TYPESCRIPT = "typescript"
TSX = "tsx"

LANGUAGE_BY_EXTENSION: Dict[str, str] = {
    ".js": JAVASCRIPT,
    ".jsx": JAVASCRIPT,
    ".mjs": JAVASCRIPT,
    ".cjs": JAVASCRIPT,
    ".ts": TYPESCRIPT,
    ".mts": TYPESCRIPT,
    ".cts": TYPESCRIPT,
    ".tsx": TSX,
}

_LANGUAGES: Dict[str, ts.Language] = {}


class ParseError(Exception):
    """Source could not be parsed into a clean syntax tree."""


def language_for_path(path: str) -> str:
    """Grammar name for a file path, defaulting to TSX."""
    _, ext = os.path.splitext(path)
    return LANGUAGE_BY_EXTENSION.get(ext.lower(), TSX)


def get_language(name: str) -> ts.Language:
    """Lazily load and cache a tree-sitter Language."""
    if name in _LANGUAGES:
        return _LANGUAGES[name]

    if name == JAVASCRIPT:
        import tree_sitter_javascript as tsj

        language = ts.Language(tsj.language())
    elif name in (TYPESCRIPT, TSX):
        import tree_sitter_typescript as tst

        raw = tst.language_tsx() if name == TSX else tst.language_typescript()
        language = ts.Language(raw)
    else:
        raise ValueError(f"Unsupported language: {name!r}")

    _LANGUAGES[name] = language
    return language


@dataclass
class ParsedSource:
    """A parsed file: the tree plus the bytes its offsets point into."""

    path: str
    language: str
    source: bytes
    tree: ts.Tree

    @property
    def root(self) -> ts.Node:
        return self.tree.root_node

    def text(self, node: Optional[ts.Node]) -> str:
        if node is None:
            return ""
        return self.source[node.start_byte : node.end_byte].decode(
            "utf-8", errors="replace"
        )

    @property
    def line_count(self) -> int:
        if not self.source:
            return 0
        return self.source.count(b"\n") + (0 if self.source.endswith(b"\n") else 1)


def parse_source(code: str | bytes, language: str, path: str = "<string>") -> ParsedSource:
    """Parse *code* with the named grammar.

    Raises
    ------
    ParseError
        If the resulting tree contains error or missing nodes.
    """
    source = code.encode("utf-8") if isinstance(code, str) else code
    parser = ts.Parser(get_language(language))
    tree = parser.parse(source)
    if tree.root_node.has_error:
        raise ParseError(f"Syntax error in {path} ({language})")
    return ParsedSource(path=path, language=language, source=source, tree=tree)


def parse_file(path: str) -> ParsedSource:
    """Read and parse a source file.

    Bytes that are not valid UTF-8 are replaced, not rejected.  Raises
    ``OSError`` if the file cannot be read, ``ParseError`` if it does
    not parse.
    """
    with open(path, "r", encoding="utf-8", errors="replace") as fh:
        code = fh.read()
    return parse_source(code, language_for_path(path), path=path)


def iter_nodes(node: ts.Node) -> Iterator[ts.Node]:
    """Pre-order, document-order traversal without recursion."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def point(node: ts.Node, end: bool = False) -> Dict[str, int]:
    """``{line, column}`` for a node edge: 1-based line, 0-based column."""
    row, column = node.end_point if end else node.start_point
    return {"line": row + 1, "column": column}


def location(node: ts.Node) -> Dict[str, Dict[str, int]]:
    return {"start": point(node), "end": point(node, end=True)}


def has_token(node: ts.Node, token: str) -> bool:
    """True if *node* has a direct anonymous child with the given type."""
    return any(not c.is_named and c.type == token for c in node.children)


def count_params(node: ts.Node) -> int:
    """Parameter count of a function-like node."""
    if node.child_by_field_name("parameter") is not None:
        return 1  # arrow function with a bare identifier: x => x
    params = node.child_by_field_name("parameters")
    if params is None:
        return 0
    return sum(1 for c in params.named_children if c.type != "comment")


_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}


def _unescape(sequence: str) -> str:
    body = sequence[1:]
    if body[:1] in ("\n", "\r", "\u2028", "\u2029"):
        return ""  # line continuation
    try:
        if body.startswith("u{"):
            return chr(int(body[2:-1], 16))
        if body[:1] in ("u", "x") and len(body) > 1:
            return chr(int(body[1:], 16))
    except ValueError:
        return body
    return _SIMPLE_ESCAPES.get(body, body)


def string_value(parsed: ParsedSource, node: ts.Node) -> str:
    """The value of a ``string`` literal node, escapes decoded."""
    parts = []
    for child in node.named_children:
        if child.type == "string_fragment":
            parts.append(parsed.text(child))
        elif child.type == "escape_sequence":
            parts.append(_unescape(parsed.text(child)))
    return "".join(parts)
