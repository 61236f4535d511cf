"""
contextengine.__main__ -- CLI entry point.

Usage:
    contextengine serve [--config PATH] [--transport stdio|sse|streamable-http]
    contextengine deps DIR [--json]
    contextengine ast FILE [--json]
    contextengine complexity FILE [--json]
    contextengine stats PATH
    contextengine search QUERY [--config PATH]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="contextengine",
        description="contextengine -- project memory and JS/TS code analysis over MCP",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command")

    # -- serve -------------------------------------------------------------
    serve_p = sub.add_parser("serve", help="Start the MCP server")
    serve_p.add_argument("--config", default=None, help="Path to a YAML config file")
    serve_p.add_argument(
        "--transport",
        default="stdio",
        choices=["stdio", "sse", "streamable-http"],
        help="MCP transport (default: stdio)",
    )

    # -- deps --------------------------------------------------------------
    deps_p = sub.add_parser("deps", help="Build the import graph for a directory")
    deps_p.add_argument("directory", help="Directory to analyze")
    deps_p.add_argument("--json", action="store_true", help="Print the full graph")

    # -- ast ---------------------------------------------------------------
    ast_p = sub.add_parser("ast", help="Extract the structure of a source file")
    ast_p.add_argument("file", help="Source file to analyze")
    ast_p.add_argument("--json", action="store_true", help="Print the full result")

    # -- complexity --------------------------------------------------------
    cx_p = sub.add_parser("complexity", help="Complexity metrics for a source file")
    cx_p.add_argument("file", help="Source file to analyze")
    cx_p.add_argument("--json", action="store_true", help="Print the full result")

    # -- stats -------------------------------------------------------------
    stats_p = sub.add_parser("stats", help="Count source files and bytes")
    stats_p.add_argument("path", help="Directory or file")

    # -- search ------------------------------------------------------------
    search_p = sub.add_parser("search", help="Search project memory")
    search_p.add_argument("query", help="Search query")
    search_p.add_argument("--config", default=None, help="Path to a YAML config file")

    args = parser.parse_args(argv)

    # -- Logging (stderr: stdout carries the stdio transport) ---------------
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    if args.command is None:
        parser.print_help()
        return 0

    # -- Dispatch ----------------------------------------------------------
    if args.command == "serve":
        return _cmd_serve(args)
    elif args.command == "deps":
        return _cmd_deps(args)
    elif args.command == "ast":
        return _cmd_ast(args)
    elif args.command == "complexity":
        return _cmd_complexity(args)
    elif args.command == "stats":
        return _cmd_stats(args)
    elif args.command == "search":
        return _cmd_search(args)
    parser.print_help()
    return 0


# ---------------------------------------------------------------------------
# Command implementations
# ---------------------------------------------------------------------------


def _print_result(summary: str, result: dict, as_json: bool) -> int:
    if as_json:
        print(json.dumps(result, indent=2, default=str))
    else:
        print(summary)
    return 1 if result.get("error") else 0


def _cmd_serve(args: argparse.Namespace) -> int:
    """Start the MCP server."""
    from contextengine.server import run_server

    run_server(config_path=args.config, transport=args.transport)
    return 0


def _cmd_deps(args: argparse.Namespace) -> int:
    from contextengine.analysis.dependencies import (
        analyze_dependencies,
        get_dependency_summary,
    )

    result = analyze_dependencies(args.directory).to_dict()
    return _print_result(get_dependency_summary(result), result, args.json)


def _cmd_ast(args: argparse.Namespace) -> int:
    from contextengine.analysis.ast_engine import analyze_ast, get_ast_summary

    result = analyze_ast(args.file)
    return _print_result(get_ast_summary(result), result, args.json)


def _cmd_complexity(args: argparse.Namespace) -> int:
    from contextengine.analysis.complexity import (
        analyze_complexity,
        get_complexity_summary,
    )

    result = analyze_complexity(args.file)
    return _print_result(get_complexity_summary(result), result, args.json)


def _cmd_stats(args: argparse.Namespace) -> int:
    from contextengine.analysis.stats import analyze_code_stats
    from contextengine.core.config import Config

    stats = analyze_code_stats(args.path, Config().stats_extensions)
    print(stats.summary())
    return 1 if stats.error else 0


def _cmd_search(args: argparse.Namespace) -> int:
    """Search memory and print matching files."""
    from contextengine.core.config import Config
    from contextengine.memory.store import MemoryStore

    config = Config.from_yaml(args.config) if args.config else Config.from_env()
    hits = MemoryStore(config).search(args.query)
    if hits:
        print(json.dumps([h.to_dict() for h in hits], indent=2))
    else:
        print("No results found.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
