"""
contextengine.analysis — Static analysis of JavaScript/TypeScript sources.

Public API:
  analyze_dependencies() — file-level import graph for a directory
  analyze_ast()          — functions, classes, imports, exports, variables
  analyze_complexity()   — cyclomatic, Halstead and maintainability metrics
  analyze_code_stats()   — file and byte counts for a path
  walk_files()           — filtered recursive file enumeration
"""

from contextengine.analysis.ast_engine import analyze_ast, get_ast_summary
from contextengine.analysis.complexity import analyze_complexity, get_complexity_summary
from contextengine.analysis.dependencies import (
    DependencyError,
    DependencyGraph,
    GraphEdge,
    GraphNode,
    ImportSpecifier,
    PathResolver,
    analyze_dependencies,
    get_dependency_summary,
)
from contextengine.analysis.parser import ParseError
from contextengine.analysis.stats import CodeStats, analyze_code_stats
from contextengine.analysis.walker import FileEntry, SkippedEntry, WalkResult, walk_files

__all__ = [
    "analyze_dependencies",
    "get_dependency_summary",
    "analyze_ast",
    "get_ast_summary",
    "analyze_complexity",
    "get_complexity_summary",
    "analyze_code_stats",
    "walk_files",
    "CodeStats",
    "DependencyGraph",
    "DependencyError",
    "GraphNode",
    "GraphEdge",
    "ImportSpecifier",
    "PathResolver",
    "ParseError",
    "FileEntry",
    "SkippedEntry",
    "WalkResult",
]
