"""
contextengine.analysis.ast_engine — Structural extraction from JS/TS files.

Walks a tree-sitter syntax tree once and collects the declarations an
assistant needs to orient itself in a file: functions (including arrow
functions bound to variables), classes with their methods, imports with
their bindings, exports, and variable declarations.

Results are plain dataclasses; ``to_dict()`` produces the JSON shape
returned by the ``ast_analyze`` tool.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from contextengine.analysis.parser import (
    ParseError,
    ParsedSource,
    count_params,
    has_token,
    iter_nodes,
    location,
    parse_file,
    string_value,
)

log = logging.getLogger(__name__)

FUNCTION_DECLARATIONS = frozenset(
    {"function_declaration", "generator_function_declaration"}
)
CLASS_DECLARATIONS = frozenset({"class_declaration", "abstract_class_declaration"})
VARIABLE_DECLARATIONS = frozenset({"lexical_declaration", "variable_declaration"})


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------


@dataclass
class FunctionInfo:
    name: str
    params: int
    is_async: bool
    loc: Dict[str, Any]
    generator: bool = False
    arrow: bool = False

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "name": self.name,
            "params": self.params,
            "async": self.is_async,
        }
        if self.arrow:
            d["arrow"] = True
        else:
            d["generator"] = self.generator
        d["loc"] = self.loc
        return d


@dataclass
class MethodInfo:
    name: str
    kind: str  # constructor | method | get | set
    is_static: bool = False
    is_async: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind,
            "static": self.is_static,
            "async": self.is_async,
        }


@dataclass
class ClassInfo:
    name: str
    super_class: Optional[str]
    loc: Dict[str, Any]
    methods: List[MethodInfo] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "superClass": self.super_class,
            "methods": [m.to_dict() for m in self.methods],
            "loc": self.loc,
        }


@dataclass
class ImportBinding:
    type: str  # default | namespace | named
    local: str
    imported: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "local": self.local, "imported": self.imported}


@dataclass
class ImportDecl:
    source: str
    specifiers: List[ImportBinding] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "specifiers": [s.to_dict() for s in self.specifiers],
        }


@dataclass
class ExportInfo:
    type: str  # function | class | variable | default
    name: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "name": self.name}


@dataclass
class VariableInfo:
    name: str
    kind: str  # var | let | const
    loc: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "kind": self.kind, "loc": self.loc}


@dataclass
class FileAnalysis:
    """Everything ``ast_analyze`` reports for one file."""

    file: str
    functions: List[FunctionInfo] = field(default_factory=list)
    classes: List[ClassInfo] = field(default_factory=list)
    imports: List[ImportDecl] = field(default_factory=list)
    exports: List[ExportInfo] = field(default_factory=list)
    variables: List[VariableInfo] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.file,
            "functions": [f.to_dict() for f in self.functions],
            "classes": [c.to_dict() for c in self.classes],
            "imports": [i.to_dict() for i in self.imports],
            "exports": [e.to_dict() for e in self.exports],
            "variables": [v.to_dict() for v in self.variables],
        }


# ---------------------------------------------------------------------------
# Node helpers
# ---------------------------------------------------------------------------


def _name_of(parsed: ParsedSource, node) -> str:
    return parsed.text(node.child_by_field_name("name"))


def _super_class(parsed: ParsedSource, node) -> Optional[str]:
    for child in node.children:
        if child.type != "class_heritage":
            continue
        for clause in child.named_children:
            # TypeScript wraps the expression in an extends_clause
            target = clause
            if clause.type == "extends_clause":
                target = clause.child_by_field_name("value") or (
                    clause.named_children[0] if clause.named_children else None
                )
            elif clause.type == "implements_clause":
                continue
            if target is not None and target.type == "identifier":
                return parsed.text(target)
            return None
    return None


def _method_kind(name: str, node) -> str:
    if name == "constructor":
        return "constructor"
    for token in ("get", "set"):
        if has_token(node, token):
            return token
    return "method"


def _collect_methods(parsed: ParsedSource, class_node) -> List[MethodInfo]:
    body = class_node.child_by_field_name("body")
    if body is None:
        return []
    methods: List[MethodInfo] = []
    for member in body.named_children:
        if member.type != "method_definition":
            continue
        name_node = member.child_by_field_name("name")
        if name_node is None or name_node.type == "private_property_identifier":
            continue
        name = parsed.text(name_node)
        methods.append(
            MethodInfo(
                name=name,
                kind=_method_kind(name, member),
                is_static=has_token(member, "static"),
                is_async=has_token(member, "async"),
            )
        )
    return methods


def _import_bindings(parsed: ParsedSource, node) -> List[ImportBinding]:
    bindings: List[ImportBinding] = []
    for child in node.children:
        if child.type != "import_clause":
            continue
        for sub in child.named_children:
            if sub.type == "identifier":
                bindings.append(ImportBinding("default", parsed.text(sub)))
            elif sub.type == "namespace_import":
                ident = next((n for n in sub.named_children if n.type == "identifier"), None)
                bindings.append(ImportBinding("namespace", parsed.text(ident)))
            elif sub.type == "named_imports":
                for spec in sub.named_children:
                    if spec.type != "import_specifier":
                        continue
                    imported = parsed.text(spec.child_by_field_name("name"))
                    alias = spec.child_by_field_name("alias")
                    local = parsed.text(alias) if alias is not None else imported
                    bindings.append(ImportBinding("named", local, imported))
    return bindings


def _default_export_name(parsed: ParsedSource, node) -> str:
    target = node.child_by_field_name("declaration") or node.child_by_field_name("value")
    if target is None:
        return "default"
    if target.type == "identifier":
        return parsed.text(target)
    name = target.child_by_field_name("name")
    if name is not None:
        return parsed.text(name)
    return "default"


def _named_exports(parsed: ParsedSource, decl) -> List[ExportInfo]:
    if decl.type in FUNCTION_DECLARATIONS:
        return [ExportInfo("function", _name_of(parsed, decl))]
    if decl.type in CLASS_DECLARATIONS:
        return [ExportInfo("class", _name_of(parsed, decl))]
    if decl.type in VARIABLE_DECLARATIONS:
        return [
            ExportInfo("variable", parsed.text(d.child_by_field_name("name")))
            for d in decl.named_children
            if d.type == "variable_declarator"
        ]
    return []


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def extract_structure(parsed: ParsedSource) -> FileAnalysis:
    """Collect declarations from an already-parsed file."""
    result = FileAnalysis(file=parsed.path)

    for node in iter_nodes(parsed.root):
        node_type = node.type

        if node_type in FUNCTION_DECLARATIONS:
            result.functions.append(
                FunctionInfo(
                    name=_name_of(parsed, node) or "anonymous",
                    params=count_params(node),
                    is_async=has_token(node, "async"),
                    generator=node_type == "generator_function_declaration",
                    loc=location(node),
                )
            )

        elif node_type == "arrow_function":
            parent = node.parent
            if parent is None or parent.type != "variable_declarator":
                continue
            name_node = parent.child_by_field_name("name")
            if name_node is None or name_node.type != "identifier":
                continue
            result.functions.append(
                FunctionInfo(
                    name=parsed.text(name_node),
                    params=count_params(node),
                    is_async=has_token(node, "async"),
                    arrow=True,
                    loc=location(node),
                )
            )

        elif node_type in CLASS_DECLARATIONS:
            result.classes.append(
                ClassInfo(
                    name=_name_of(parsed, node),
                    super_class=_super_class(parsed, node),
                    methods=_collect_methods(parsed, node),
                    loc=location(node),
                )
            )

        elif node_type == "import_statement":
            source = next((c for c in node.children if c.type == "string"), None)
            if source is None:
                continue
            result.imports.append(
                ImportDecl(
                    source=string_value(parsed, source),
                    specifiers=_import_bindings(parsed, node),
                )
            )

        elif node_type == "export_statement":
            if has_token(node, "default"):
                result.exports.append(
                    ExportInfo("default", _default_export_name(parsed, node))
                )
            else:
                decl = node.child_by_field_name("declaration")
                if decl is not None:
                    result.exports.extend(_named_exports(parsed, decl))

        elif node_type in VARIABLE_DECLARATIONS:
            kind = node.children[0].type if node.children else "var"
            for decl in node.named_children:
                if decl.type != "variable_declarator":
                    continue
                name_node = decl.child_by_field_name("name")
                if name_node is None or name_node.type != "identifier":
                    continue
                result.variables.append(
                    VariableInfo(
                        name=parsed.text(name_node), kind=kind, loc=location(decl)
                    )
                )

    return result


def analyze_ast(file_path: str) -> Dict[str, Any]:
    """Parse *file_path* and return its structure as a result dict.

    Never raises for bad input: read and parse failures come back as
    ``{"error": message, "file": file_path}``.
    """
    try:
        parsed = parse_file(file_path)
    except (OSError, ParseError) as exc:
        log.debug("AST analysis failed for %s: %s", file_path, exc)
        return {"error": str(exc) or type(exc).__name__, "file": file_path}
    return extract_structure(parsed).to_dict()


def get_ast_summary(result: Mapping[str, Any]) -> str:
    if result.get("error"):
        return f"Error: {result['error']}"
    return (
        f"File: {result['file']}\n"
        f"Functions: {len(result['functions'])}\n"
        f"Classes: {len(result['classes'])}\n"
        f"Imports: {len(result['imports'])}\n"
        f"Exports: {len(result['exports'])}\n"
        f"Variables: {len(result['variables'])}"
    )
