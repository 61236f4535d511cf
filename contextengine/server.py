"""
contextengine -- MCP server exposing project memory and code analysis as tools.

Run with:
    contextengine serve

Or configure in your MCP client as:
    {
        "mcpServers": {
            "contextengine": {
                "command": "contextengine",
                "args": ["serve"]
            }
        }
    }

Tools exposed (7 total):
    Memory:
        memory_suggest      -- Propose memory entries from free text
        memory_update       -- Append entries to a memory file
        memory_search       -- Keyword search across memory files
    Code analysis:
        code_analyze        -- Count source files and bytes
        ast_analyze         -- Functions, classes, imports, exports, variables
        complexity_analyze  -- Cyclomatic / Halstead / maintainability metrics
        dependency_analyze  -- Import graph for a directory

Every tool returns a JSON document ``{"summary": ..., "result": ...}``.
"""

import json
import logging
import traceback
from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP

from contextengine.analysis.ast_engine import analyze_ast, get_ast_summary
from contextengine.analysis.complexity import analyze_complexity, get_complexity_summary
from contextengine.analysis.dependencies import analyze_dependencies, get_dependency_summary
from contextengine.analysis.stats import analyze_code_stats
from contextengine.core.config import Config
from contextengine.core.logging import configure_logging
from contextengine.core.types import MemoryEntry
from contextengine.memory.store import MemoryStore
from contextengine.memory.suggest import suggest_entries

log = logging.getLogger("contextengine.server")


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _validate_length(text: str, name: str) -> str:
    """Raise ValueError if *text* exceeds the configured input limit."""
    limit = _get_config().max_input_bytes
    if len(text.encode("utf-8", errors="replace")) > limit:
        raise ValueError(
            f"'{name}' exceeds maximum length ({limit} bytes). "
            f"Truncate or summarise the input."
        )
    return text


def _respond(summary: str, result: Dict[str, Any]) -> str:
    return json.dumps({"summary": summary, "result": result}, indent=2, default=str)


# ---------------------------------------------------------------------------
# Error-safe tool decorator
# ---------------------------------------------------------------------------


def _safe_json(fn):
    """Wrap an MCP tool so exceptions return JSON errors instead of crashing."""

    def wrapper(*args: Any, **kwargs: Any) -> str:
        try:
            return fn(*args, **kwargs)
        except Exception as exc:
            tool_name = getattr(fn, "__name__", "unknown")
            log.error(
                "Tool %s failed: %s\n%s",
                tool_name,
                exc,
                traceback.format_exc(),
                extra={"tool": tool_name},
            )
            return json.dumps(
                {
                    "error": True,
                    "tool": tool_name,
                    "message": str(exc),
                }
            )

    # FastMCP reads the name, docstring and parameter annotations
    wrapper.__name__ = fn.__name__
    wrapper.__qualname__ = fn.__qualname__
    wrapper.__doc__ = fn.__doc__
    wrapper.__annotations__ = fn.__annotations__
    wrapper.__module__ = fn.__module__
    wrapper.__wrapped__ = fn  # type: ignore[attr-defined]
    return wrapper


# ---------------------------------------------------------------------------
# Server singleton
# ---------------------------------------------------------------------------

mcp = FastMCP(
    "contextengine",
    instructions="Project memory notes and JavaScript/TypeScript code analysis",
)

# Loaded once at startup; tools reference it via _get_config().
_config: Optional[Config] = None


def init_config(config_path: Optional[str] = None, **overrides: Any) -> Config:
    """Initialize the global Config."""
    global _config

    if config_path:
        _config = Config.from_yaml(config_path, **overrides)
    elif overrides:
        _config = Config(**overrides)
    else:
        _config = Config.from_env()
    return _config


def _get_config() -> Config:
    global _config
    if _config is None:
        _config = init_config()
    return _config


def _get_store() -> MemoryStore:
    return MemoryStore(_get_config())


# ===========================================================================
# Memory Tools
# ===========================================================================


@mcp.tool()
@_safe_json
def memory_suggest(text: str) -> str:
    """Analyze text and propose project memory entries.

    Lines mentioning decisions, rules, notes, todos or guidelines
    become ``note`` entries; lines mentioning APIs, endpoints, config
    or paths become ``config`` entries.  Nothing is written.

    Args:
        text: Free text (conversation excerpt, commit message, notes).
    """
    _validate_length(text, "text")
    entries = [e.to_dict() for e in suggest_entries(text)]
    return _respond(json.dumps(entries), {"entries": entries})


@mcp.tool()
@_safe_json
def memory_update(entries: List[Dict[str, Any]], file: str = "") -> str:
    """Append memory entries to a memory file.

    Each entry is written as a ``- [type] text`` line.

    Args:
        entries: Objects with ``type`` and ``text`` (e.g. from memory_suggest).
        file: Target file (empty = the default memory file for this workspace).
    """
    parsed = [MemoryEntry.from_dict(e) for e in entries or []]
    for entry in parsed:
        _validate_length(entry.text, "entries.text")

    store = _get_store()
    path, count = store.append(parsed, file=file or None)
    return _respond(
        f"Wrote {count} entries to {path} ({store.mode} mode)",
        {"ok": True},
    )


@mcp.tool()
@_safe_json
def memory_search(query: str) -> str:
    """Keyword search across memory files (case-insensitive).

    Args:
        query: Text to look for in ``.md``/``.mdc`` memory files.
    """
    _validate_length(query, "query")
    store = _get_store()
    hits = store.search(query)
    return _respond(
        f"Found {len(hits)} matches in {store.mode} mode",
        {"results": [h.to_dict() for h in hits]},
    )


# ===========================================================================
# Code Analysis Tools
# ===========================================================================


@mcp.tool()
@_safe_json
def code_analyze(path: str) -> str:
    """Count source files and total bytes under a path.

    Args:
        path: A directory (walked recursively) or a single file.
    """
    config = _get_config()
    stats = analyze_code_stats(str(config.resolve(path)), config.stats_extensions)
    return _respond(stats.summary(), stats.to_dict())


@mcp.tool()
@_safe_json
def ast_analyze(path: str) -> str:
    """Parse a JavaScript/TypeScript file and extract its structure.

    Reports functions, classes (with methods), imports, exports and
    variable declarations.

    Args:
        path: Source file to analyze.
    """
    result = analyze_ast(str(_get_config().resolve(path)))
    return _respond(get_ast_summary(result), result)


@mcp.tool()
@_safe_json
def complexity_analyze(path: str) -> str:
    """Calculate cyclomatic complexity and maintainability metrics.

    Args:
        path: Source file to analyze.
    """
    config = _get_config()
    result = analyze_complexity(str(config.resolve(path)))
    summary = get_complexity_summary(result, threshold=config.high_complexity_threshold)
    return _respond(summary, result)


@mcp.tool()
@_safe_json
def dependency_analyze(path: str) -> str:
    """Map relative import relationships into a dependency graph.

    Walks the directory (skipping hidden directories and
    node_modules), and links each file to the files its relative
    imports resolve to.

    Args:
        path: Directory to analyze.
    """
    config = _get_config()
    graph = analyze_dependencies(
        str(config.resolve(path)),
        extensions=config.source_extensions,
        excluded_dirs=config.excluded_dirs,
    )
    # Report the directory as the caller wrote it
    graph.directory = path
    result = graph.to_dict()
    return _respond(get_dependency_summary(result), result)


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


def run_server(
    config_path: Optional[str] = None,
    transport: str = "stdio",
    host: str = "127.0.0.1",
    port: int = 8765,
) -> None:
    """Initialize and run the MCP server.

    Args:
        config_path: Path to a YAML config file (default: environment).
        transport: MCP transport: "stdio", "streamable-http", or "sse".
        host: Bind address for HTTP transports.
        port: Port for HTTP transports.
    """
    config = init_config(config_path=config_path)
    configure_logging(structured=config.structured_logging, level=config.log_level)
    log.info(
        "Starting contextengine MCP server (transport=%s, workspace=%s, memory=%s mode)",
        transport,
        config.workspace_root,
        config.memory_mode,
    )
    if transport in ("streamable-http", "sse"):
        mcp.settings.host = host
        mcp.settings.port = port
        log.info("HTTP endpoint: http://%s:%d", host, port)
    mcp.run(transport=transport)  # type: ignore[arg-type]
