"""
contextengine.analysis.dependencies — Directory-scoped import graph.

Builds a file-level dependency graph for a JavaScript/TypeScript tree:

  1. walk the directory for source files (``walker.walk_files``)
  2. seed one node per file, before anything is parsed, so imports of
     files that come later in walk order still resolve
  3. parse each file and pull out its static ``import`` specifiers
  4. resolve relative specifiers against the discovered file set;
     every resolved import statement becomes an edge

Only relative specifiers (``./x``, ``../x``) can resolve.  Package
imports are ignored, and ``./dir`` does not expand to ``./dir/index.*``.

Failure tiers: an unreadable root yields a ``DependencyError``; an
unreadable or unparseable file keeps its node and contributes no edges.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from contextengine.analysis.parser import (
    ParseError,
    ParsedSource,
    iter_nodes,
    parse_file,
    string_value,
)
from contextengine.analysis.walker import (
    PARSE_FAILED,
    READ_FAILED,
    FileEntry,
    SkippedEntry,
    walk_files,
)

log = logging.getLogger(__name__)

DEFAULT_EXTENSIONS: Tuple[str, ...] = (".js", ".jsx", ".ts", ".tsx")
EDGE_TYPE = "import"

# Syntax node kinds that declare a static import.  ``export ... from``
# and ``import x = require()`` are not import declarations.
IMPORT_DECLARATION_KINDS = frozenset({"import_statement"})


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ImportSpecifier:
    """The literal module string of one import statement."""

    specifier: str
    importer: str  # absolute path of the file containing the import

    @property
    def is_relative(self) -> bool:
        return self.specifier.startswith(".")


@dataclass(frozen=True)
class GraphNode:
    id: str  # path relative to the scan root
    path: str  # absolute path

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "path": self.path}


@dataclass(frozen=True)
class GraphEdge:
    source: str
    target: str
    type: str = EDGE_TYPE

    def to_dict(self) -> Dict[str, str]:
        return {"from": self.source, "to": self.target, "type": self.type}


@dataclass
class DependencyGraph:
    """Result of one ``analyze_dependencies`` call."""

    directory: str
    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)
    skipped: List[SkippedEntry] = field(default_factory=list)

    @property
    def total_files(self) -> int:
        return len(self.nodes)

    @property
    def total_dependencies(self) -> int:
        return len(self.edges)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "directory": self.directory,
            "totalFiles": self.total_files,
            "totalDependencies": self.total_dependencies,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }


@dataclass
class DependencyError:
    """Whole-operation failure: no partial graph."""

    directory: str
    error: str

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error, "directory": self.directory}


DependencyResult = Union[DependencyGraph, DependencyError]


# ---------------------------------------------------------------------------
# Import extraction
# ---------------------------------------------------------------------------


def _import_source(parsed: ParsedSource, node) -> Optional[str]:
    for child in node.children:
        if child.type == "string":
            return string_value(parsed, child)
    return None


def extract_imports(parsed: ParsedSource) -> List[ImportSpecifier]:
    """All static import specifiers in a parsed file, in document order."""
    specifiers: List[ImportSpecifier] = []
    for node in iter_nodes(parsed.root):
        if node.type not in IMPORT_DECLARATION_KINDS:
            continue
        source = _import_source(parsed, node)
        if source is not None:
            specifiers.append(ImportSpecifier(specifier=source, importer=parsed.path))
    return specifiers


def extract_file_imports(path: str) -> List[ImportSpecifier]:
    """Parse *path* and return its import specifiers.

    Raises ``OSError`` on read failure and
    ``ParseError`` on syntax errors.
    """
    return extract_imports(parse_file(path))


# ---------------------------------------------------------------------------
# Path resolution
# ---------------------------------------------------------------------------


class PathResolver:
    """Maps relative specifiers onto a fixed set of discovered files.

    A specifier matches a file when both paths are equal once a
    recognised source extension is stripped from each, so ``./util``
    and ``./util.js`` both find ``util.ts``.  When several files share
    a stripped path the first one in walk order wins.
    """

    def __init__(self, files: Iterable[FileEntry], extensions: Tuple[str, ...] = DEFAULT_EXTENSIONS):
        alternatives = "|".join(re.escape(e.lstrip(".")) for e in extensions)
        self._ext_re = re.compile(rf"\.({alternatives})$")
        self._by_stripped: Dict[str, FileEntry] = {}
        for entry in files:
            self._by_stripped.setdefault(self.strip(entry.path), entry)

    def strip(self, path: str) -> str:
        """*path* without a trailing recognised source extension."""
        return self._ext_re.sub("", path)

    def candidate(self, importer_dir: str, specifier: str) -> str:
        return os.path.normpath(os.path.join(importer_dir, specifier))

    def resolve(self, importer_dir: str, specifier: str) -> Optional[FileEntry]:
        """The discovered file *specifier* refers to, or None."""
        # An exact raw match always strips to the same key, so one
        # lookup covers both the stripped and the raw comparison.
        return self._by_stripped.get(self.strip(self.candidate(importer_dir, specifier)))


# ---------------------------------------------------------------------------
# Graph assembly
# ---------------------------------------------------------------------------


def analyze_dependencies(
    directory: str,
    extensions: Tuple[str, ...] = DEFAULT_EXTENSIONS,
    excluded_dirs: Iterable[str] = ("node_modules",),
) -> DependencyResult:
    """Build the import graph for every source file under *directory*.

    Returns a ``DependencyError`` carrying *directory* as given when
    the root cannot be listed; otherwise a ``DependencyGraph``.
    """
    try:
        walk = walk_files(directory, extensions, excluded_dirs=excluded_dirs)
    except OSError as exc:
        log.info(
            "Dependency analysis failed for %s: %s",
            directory,
            exc,
            extra={"path": directory},
        )
        return DependencyError(directory=directory, error=str(exc) or type(exc).__name__)

    graph = DependencyGraph(directory=directory, skipped=list(walk.skipped))

    # All nodes first: resolution needs the complete file set.
    for entry in walk.files:
        graph.nodes.append(GraphNode(id=entry.relative_path, path=entry.path))

    resolver = PathResolver(walk.files, extensions)

    for entry in walk.files:
        try:
            specifiers = extract_file_imports(entry.path)
        except ParseError as exc:
            graph.skipped.append(SkippedEntry(entry.path, PARSE_FAILED, str(exc)))
            log.debug("Skipping unparseable %s: %s", entry.path, exc)
            continue
        except OSError as exc:
            graph.skipped.append(SkippedEntry(entry.path, READ_FAILED, str(exc)))
            log.debug("Skipping unreadable %s: %s", entry.path, exc)
            continue

        importer_dir = os.path.dirname(entry.path)
        for spec in specifiers:
            if not spec.is_relative:
                continue
            target = resolver.resolve(importer_dir, spec.specifier)
            if target is not None:
                graph.edges.append(
                    GraphEdge(source=entry.relative_path, target=target.relative_path)
                )

    log.debug(
        "Dependency graph for %s: %d nodes, %d edges",
        directory,
        graph.total_files,
        graph.total_dependencies,
    )
    return graph


def get_dependency_summary(result: Mapping[str, Any]) -> str:
    """Human-readable summary of a dependency result dict."""
    if result.get("error"):
        return f"Error: {result['error']}"

    total_files = result.get("totalFiles", 0)
    total_deps = result.get("totalDependencies", 0)
    average = total_deps / total_files if total_files else 0.0
    return (
        f"Directory: {result.get('directory')}\n"
        f"Total Files: {total_files}\n"
        f"Total Dependencies: {total_deps}\n"
        f"Average Dependencies per File: {average:.2f}"
    )
