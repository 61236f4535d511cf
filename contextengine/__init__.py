"""
contextengine -- MCP tool server for project memory and JS/TS code analysis.

    from contextengine import Config, analyze_dependencies

    graph = analyze_dependencies("./src")
    print(graph.to_dict()["totalDependencies"])
"""

from contextengine.analysis import (
    analyze_ast,
    analyze_code_stats,
    analyze_complexity,
    analyze_dependencies,
)
from contextengine.core.config import Config
from contextengine.memory import MemoryStore, suggest_entries

__version__ = "0.1.0"

__all__ = [
    "Config",
    "MemoryStore",
    "suggest_entries",
    "analyze_ast",
    "analyze_complexity",
    "analyze_dependencies",
    "analyze_code_stats",
]
