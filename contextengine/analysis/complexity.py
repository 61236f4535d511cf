"""
contextengine.analysis.complexity — Cyclomatic, Halstead and maintainability metrics.

All metrics are computed over the tree-sitter syntax tree:

  - cyclomatic complexity: 1 + decision points (branches, loops,
    non-default ``case``, ``catch``, ternaries, ``&&``/``||``/``??``)
  - logical SLOC: statements; physical SLOC: lines spanned
  - Halstead: anonymous tokens are operators, identifiers and literals
    are operands
  - maintainability: the 0-100 rescaled index
    ``(171 - 3.42 ln E - 0.23 C - 16.2 ln L) * 100 / 171``

Per-function figures exclude nested functions, which are reported on
their own.  Aggregate figures cover the whole file.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping

from contextengine.analysis.parser import (
    ParseError,
    ParsedSource,
    count_params,
    iter_nodes,
    parse_file,
)

log = logging.getLogger(__name__)

FUNCTION_NODES = frozenset(
    {
        "function_declaration",
        "generator_function_declaration",
        "function",
        "function_expression",
        "generator_function",
        "arrow_function",
        "method_definition",
    }
)

BRANCH_NODES = frozenset(
    {
        "if_statement",
        "for_statement",
        "for_in_statement",
        "while_statement",
        "do_statement",
        "catch_clause",
        "ternary_expression",
        "switch_case",
    }
)

LOGICAL_OPERATORS = frozenset({"&&", "||", "??"})

# Leaves counted as a single operand without descending into them
ATOMIC_OPERANDS = frozenset({"string", "template_string", "regex", "number"})


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------


@dataclass
class Halstead:
    operators: Dict[str, int] = field(default_factory=dict)
    operands: Dict[str, int] = field(default_factory=dict)

    def add_operator(self, token: str) -> None:
        self.operators[token] = self.operators.get(token, 0) + 1

    def add_operand(self, token: str) -> None:
        self.operands[token] = self.operands.get(token, 0) + 1

    @property
    def length(self) -> int:
        return sum(self.operators.values()) + sum(self.operands.values())

    @property
    def vocabulary(self) -> int:
        return len(self.operators) + len(self.operands)

    @property
    def difficulty(self) -> float:
        if not self.operands:
            return 0.0
        return (len(self.operators) / 2) * (sum(self.operands.values()) / len(self.operands))

    @property
    def volume(self) -> float:
        if self.vocabulary == 0:
            return 0.0
        return self.length * math.log2(self.vocabulary)

    @property
    def effort(self) -> float:
        return self.difficulty * self.volume

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operators": {
                "distinct": len(self.operators),
                "total": sum(self.operators.values()),
            },
            "operands": {
                "distinct": len(self.operands),
                "total": sum(self.operands.values()),
            },
            "length": self.length,
            "vocabulary": self.vocabulary,
            "difficulty": round(self.difficulty, 4),
            "volume": round(self.volume, 4),
            "effort": round(self.effort, 4),
            "bugs": round(self.volume / 3000, 4),
            "time": round(self.effort / 18, 4),
        }


@dataclass
class Metrics:
    """Complexity figures for one function or for a whole file."""

    cyclomatic: int = 1
    params: int = 0
    physical_sloc: int = 0
    logical_sloc: int = 0
    halstead: Halstead = field(default_factory=Halstead)

    @property
    def cyclomatic_density(self) -> float:
        if self.logical_sloc == 0:
            return 0.0
        return self.cyclomatic / self.logical_sloc * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cyclomatic": self.cyclomatic,
            "cyclomaticDensity": round(self.cyclomatic_density, 4),
            "halstead": self.halstead.to_dict(),
            "params": self.params,
            "sloc": {"physical": self.physical_sloc, "logical": self.logical_sloc},
        }


@dataclass
class FunctionMetrics(Metrics):
    name: str = "anonymous"
    line: int = 0

    def to_dict(self) -> Dict[str, Any]:
        d = {"name": self.name, "line": self.line}
        d.update(super().to_dict())
        return d


@dataclass
class ComplexityReport:
    file: str
    aggregate: Metrics
    methods: List[FunctionMetrics] = field(default_factory=list)

    @property
    def maintainability(self) -> float:
        if self.methods:
            n = len(self.methods)
            effort = sum(m.halstead.effort for m in self.methods) / n
            cyclomatic = sum(m.cyclomatic for m in self.methods) / n
            sloc = sum(m.logical_sloc for m in self.methods) / n
        else:
            effort = self.aggregate.halstead.effort
            cyclomatic = self.aggregate.cyclomatic
            sloc = self.aggregate.logical_sloc
        return maintainability_index(effort, cyclomatic, sloc)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.file,
            "aggregate": self.aggregate.to_dict(),
            "methods": [m.to_dict() for m in self.methods],
            "maintainability": round(self.maintainability, 4),
        }


def maintainability_index(effort: float, cyclomatic: float, logical_sloc: float) -> float:
    """Rescaled (0-100) maintainability index."""
    mi = (
        171
        - 3.42 * math.log(max(effort, 1.0))
        - 0.23 * cyclomatic
        - 16.2 * math.log(max(logical_sloc, 1.0))
    )
    return max(0.0, mi * 100 / 171)


# ---------------------------------------------------------------------------
# Tree measurements
# ---------------------------------------------------------------------------


def _is_statement(node_type: str) -> bool:
    if node_type == "statement_block":
        return False
    return node_type.endswith("_statement") or node_type in (
        "lexical_declaration",
        "variable_declaration",
    )


def _is_function(node) -> bool:
    # "function" is also the type of the anonymous keyword token
    return node.is_named and node.type in FUNCTION_NODES


def _is_decision(node) -> bool:
    if node.type in BRANCH_NODES:
        return True
    if node.type == "binary_expression":
        op = node.child_by_field_name("operator")
        return op is not None and op.type in LOGICAL_OPERATORS
    return False


def _own_nodes(func) -> Iterator:
    """Nodes inside *func*, not descending into nested functions."""
    stack = list(reversed(func.children))
    while stack:
        node = stack.pop()
        yield node
        if not _is_function(node):
            stack.extend(reversed(node.children))


def _measure(parsed: ParsedSource, nodes, metrics: Metrics) -> Metrics:
    for node in nodes:
        if _is_decision(node):
            metrics.cyclomatic += 1
        if _is_statement(node.type):
            metrics.logical_sloc += 1
        _count_halstead(parsed, node, metrics.halstead)
    return metrics


def _count_halstead(parsed: ParsedSource, node, halstead: Halstead) -> None:
    if node.type == "comment":
        return
    if node.parent is not None and node.parent.type in ATOMIC_OPERANDS:
        return  # counted with the enclosing literal
    if node.type in ATOMIC_OPERANDS:
        halstead.add_operand(parsed.text(node))
    elif node.child_count == 0:
        if node.is_named:
            halstead.add_operand(parsed.text(node))
        else:
            halstead.add_operator(node.type)


def _function_name(parsed: ParsedSource, node) -> str:
    name = node.child_by_field_name("name")
    if name is not None:
        return parsed.text(name)
    parent = node.parent
    if parent is not None:
        if parent.type == "variable_declarator":
            return parsed.text(parent.child_by_field_name("name")) or "anonymous"
        if parent.type == "pair":
            return parsed.text(parent.child_by_field_name("key")) or "anonymous"
        if parent.type in ("assignment_expression", "public_field_definition"):
            target = parent.child_by_field_name("left") or parent.child_by_field_name("name")
            return parsed.text(target) or "anonymous"
    return "anonymous"


def measure_complexity(parsed: ParsedSource) -> ComplexityReport:
    """Complexity report for an already-parsed file."""
    aggregate = _measure(parsed, iter_nodes(parsed.root), Metrics())
    aggregate.physical_sloc = parsed.line_count

    methods: List[FunctionMetrics] = []
    for node in iter_nodes(parsed.root):
        if not _is_function(node):
            continue
        fm = FunctionMetrics(
            name=_function_name(parsed, node),
            line=node.start_point[0] + 1,
            params=count_params(node),
            physical_sloc=node.end_point[0] - node.start_point[0] + 1,
        )
        _measure(parsed, _own_nodes(node), fm)
        # A concise arrow body is a single logical statement
        if fm.logical_sloc == 0:
            fm.logical_sloc = 1
        methods.append(fm)

    aggregate.params = sum(m.params for m in methods)
    return ComplexityReport(file=parsed.path, aggregate=aggregate, methods=methods)


def _empty_result(file_path: str, error: str) -> Dict[str, Any]:
    return {
        "error": error,
        "file": file_path,
        "aggregate": {
            "cyclomatic": 0,
            "cyclomaticDensity": 0,
            "halstead": {},
            "params": 0,
            "sloc": {"physical": 0, "logical": 0},
        },
        "methods": [],
        "maintainability": 0,
    }


def analyze_complexity(file_path: str) -> Dict[str, Any]:
    """Complexity result dict for *file_path*; errors come back zeroed."""
    try:
        parsed = parse_file(file_path)
    except (OSError, ParseError) as exc:
        log.debug("Complexity analysis failed for %s: %s", file_path, exc)
        return _empty_result(file_path, str(exc) or type(exc).__name__)
    return measure_complexity(parsed).to_dict()


def get_complexity_summary(result: Mapping[str, Any], threshold: int = 10) -> str:
    if result.get("error"):
        return f"Error: {result['error']}"
    high = [m for m in result["methods"] if m["cyclomatic"] > threshold]
    return (
        f"File: {result['file']}\n"
        f"Cyclomatic Complexity: {result['aggregate']['cyclomatic']}\n"
        f"Maintainability Index: {result['maintainability']:.2f}\n"
        f"Methods: {len(result['methods'])}\n"
        f"High Complexity Methods (>{threshold}): {len(high)}\n"
        f"SLOC: {result['aggregate']['sloc']['physical']}"
    )
