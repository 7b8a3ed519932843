"""Intrinsic property checks: per-artifact syntactic predicates.

Each check is an independent function registered in :data:`INTRINSIC_CHECKS`
under the rule name it enforces.  The checker looks up every rule declared
``true`` on a symbol and runs the matching function over each resolved
artifact.  ``maxFanOut`` takes a numeric limit and is dispatched separately.
"""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING

from kindcheck.checker.diagnostics import Violation
from kindcheck.checker.imports import (
    dynamic_import_specifier,
    is_dynamic_import,
    iter_all_imports,
    iter_dynamic_imports,
    iter_static_imports,
    require_clause,
    walk,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from tree_sitter import Node as TSNode

    from kindcheck.program import SourceArtifact

# Known IO modules for the shallow noIO check.
IO_MODULES: frozenset[str] = frozenset(
    {
        "fs",
        "fs/promises",
        "node:fs",
        "node:fs/promises",
        "net",
        "node:net",
        "http",
        "node:http",
        "https",
        "node:https",
        "http2",
        "node:http2",
        "child_process",
        "node:child_process",
        "cluster",
        "node:cluster",
        "dgram",
        "node:dgram",
        "dns",
        "node:dns",
        "tls",
        "node:tls",
        "readline",
        "node:readline",
    }
)

# Top-level statements that declare things rather than run code.
_DECLARATION_STATEMENTS: frozenset[str] = frozenset(
    {
        "import_statement",
        "import_alias",
        "export_statement",
        "type_alias_declaration",
        "interface_declaration",
        "lexical_declaration",
        "variable_declaration",
        "function_declaration",
        "generator_function_declaration",
        "function_signature",
        "class_declaration",
        "abstract_class_declaration",
        "enum_declaration",
        "module",
        "internal_module",
        "ambient_declaration",
    }
)

# Named children of the program node that are not statements.
_NON_STATEMENTS: frozenset[str] = frozenset({"comment", "hash_bang_line"})

_VARIABLE_DECLARATIONS: frozenset[str] = frozenset({"lexical_declaration", "variable_declaration"})


def _statements(artifact: SourceArtifact) -> list[TSNode]:
    return [n for n in artifact.root.named_children if n.type not in _NON_STATEMENTS]


# ---------------------------------------------------------------------------
# Property checks
# ---------------------------------------------------------------------------


def check_no_imports(artifact: SourceArtifact) -> list[Violation]:
    violations: list[Violation] = []

    for stmt in _statements(artifact):
        if stmt.type == "import_statement":
            if require_clause(stmt) is not None:
                violations.append(Violation("noImports", stmt, "Import equals declaration"))
                continue
            source = stmt.child_by_field_name("source")
            spec = artifact.node_text(source) if source is not None else ""
            violations.append(Violation("noImports", stmt, f"Import declaration: {spec}"))
        elif stmt.type == "import_alias":
            violations.append(Violation("noImports", stmt, "Import equals declaration"))

    for call in iter_dynamic_imports(artifact.root):
        violations.append(Violation("noImports", call, "Dynamic import() expression"))

    return violations


def _is_console(artifact: SourceArtifact, node: TSNode | None) -> bool:
    return node is not None and node.type == "identifier" and artifact.node_text(node) == "console"


def check_no_console(artifact: SourceArtifact) -> list[Violation]:
    violations: list[Violation] = []
    stack = [artifact.root]

    while stack:
        node = stack.pop()
        if node.type in ("member_expression", "subscript_expression"):
            obj = node.child_by_field_name("object")
            if _is_console(artifact, obj):
                if node.type == "member_expression":
                    prop = node.child_by_field_name("property")
                    name = artifact.node_text(prop) if prop is not None else ""
                    violations.append(Violation("noConsole", node, f"console.{name}"))
                else:
                    violations.append(Violation("noConsole", node, "console[...] access"))
                continue
        stack.extend(reversed(node.children))

    return violations


def _is_const_declaration(declaration: TSNode) -> bool:
    if declaration.type != "lexical_declaration":
        return False  # var
    kind = declaration.child_by_field_name("kind")
    if kind is None and declaration.children:
        kind = declaration.children[0]
    return kind is not None and kind.type == "const"


def _variable_declaration(stmt: TSNode) -> TSNode | None:
    """Return the variable declaration of a statement, looking through export/declare."""
    if stmt.type in _VARIABLE_DECLARATIONS:
        return stmt
    if stmt.type in ("export_statement", "ambient_declaration"):
        for child in stmt.named_children:
            if child.type in _VARIABLE_DECLARATIONS:
                return child
    return None


def check_immutable(artifact: SourceArtifact) -> list[Violation]:
    violations: list[Violation] = []

    for stmt in _statements(artifact):
        declaration = _variable_declaration(stmt)
        if declaration is not None and not _is_const_declaration(declaration):
            violations.append(
                Violation("immutable", stmt, "Mutable binding (let/var) at module scope")
            )

    return violations


def _is_import_meta(artifact: SourceArtifact, node: TSNode) -> bool:
    if node.type == "meta_property":
        return artifact.node_text(node).startswith("import")
    # Older grammars parse `import.meta` as a member access on `import`.
    if node.type == "member_expression":
        obj = node.child_by_field_name("object")
        return obj is not None and obj.type == "import"
    return False


def check_static(artifact: SourceArtifact) -> list[Violation]:
    violations: list[Violation] = []

    for node in walk(artifact.root):
        if is_dynamic_import(node):
            violations.append(Violation("static", node, "Dynamic import() expression"))
        elif _is_import_meta(artifact, node):
            violations.append(Violation("static", node, "import.meta reference"))

    return violations


def _is_namespace_statement(stmt: TSNode) -> bool:
    # `namespace X {}` may surface as an expression statement wrapping the module.
    return (
        stmt.type == "expression_statement"
        and len(stmt.named_children) == 1
        and stmt.named_children[0].type == "internal_module"
    )


def check_no_side_effects(artifact: SourceArtifact) -> list[Violation]:
    violations: list[Violation] = []

    for stmt in _statements(artifact):
        if stmt.type in _DECLARATION_STATEMENTS or _is_namespace_statement(stmt):
            continue
        violations.append(Violation("noSideEffects", stmt, "Top-level side effect statement"))

    return violations


def check_no_mutation(artifact: SourceArtifact) -> list[Violation]:
    violations: list[Violation] = []

    for node in walk(artifact.root):
        if node.type == "assignment_expression":
            violations.append(Violation("noMutation", node, "Assignment: ="))
        elif node.type == "augmented_assignment_expression":
            operator = node.child_by_field_name("operator")
            op_text = artifact.node_text(operator) if operator is not None else "="
            violations.append(Violation("noMutation", node, f"Assignment: {op_text}"))
        elif node.type == "update_expression":
            if node.children and node.children[0].type in ("++", "--"):
                violations.append(Violation("noMutation", node, "Prefix increment/decrement"))
            else:
                violations.append(Violation("noMutation", node, "Postfix increment/decrement"))
        elif node.type == "unary_expression":
            operator = node.child_by_field_name("operator")
            if operator is not None and operator.type == "delete":
                violations.append(Violation("noMutation", node, "delete expression"))

    return violations


def check_no_io(artifact: SourceArtifact) -> list[Violation]:
    violations: list[Violation] = []

    for info in iter_static_imports(artifact):
        if info.kind == "import" and info.specifier in IO_MODULES:
            violations.append(
                Violation("noIO", info.node, f"Import of IO module: '{info.specifier}'")
            )

    for call in iter_dynamic_imports(artifact.root):
        specifier = dynamic_import_specifier(artifact, call)
        if specifier is not None and specifier in IO_MODULES:
            violations.append(
                Violation("noIO", call, f"Dynamic import of IO module: '{specifier}'")
            )

    return violations


def check_pure(artifact: SourceArtifact) -> list[Violation]:
    """Union of noIO, noMutation and noSideEffects, reported under ``pure``."""
    found = [
        *check_no_io(artifact),
        *check_no_mutation(artifact),
        *check_no_side_effects(artifact),
    ]
    return [dataclasses.replace(v, rule="pure") for v in found]


# ---------------------------------------------------------------------------
# Numeric check
# ---------------------------------------------------------------------------


def fan_out(artifact: SourceArtifact) -> int:
    """Count distinct module specifiers imported statically or dynamically."""
    return len({info.specifier for info in iter_all_imports(artifact)})


def check_max_fan_out(artifact: SourceArtifact, maximum: int) -> list[Violation]:
    actual = fan_out(artifact)
    if actual <= maximum:
        return []
    return [Violation("maxFanOut", None, f"{actual} dependencies, max is {maximum}")]


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

INTRINSIC_CHECKS: dict[str, Callable[[SourceArtifact], list[Violation]]] = {
    "noImports": check_no_imports,
    "noConsole": check_no_console,
    "immutable": check_immutable,
    "static": check_static,
    "noSideEffects": check_no_side_effects,
    "noMutation": check_no_mutation,
    "noIO": check_no_io,
    "pure": check_pure,
}
