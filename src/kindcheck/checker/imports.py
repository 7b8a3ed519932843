"""Import extraction from tree-sitter TypeScript/JavaScript trees."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from tree_sitter import Node as TSNode

    from kindcheck.program import SourceArtifact


@dataclass(frozen=True)
class ImportInfo:
    """A single import extracted from source code."""

    file_path: str  # importing artifact
    node: TSNode  # statement or call expression to anchor diagnostics at
    specifier: str  # raw module specifier (e.g. "./billing/invoice")
    kind: str  # "import" | "require" | "export" | "dynamic"


def walk(node: TSNode) -> Iterator[TSNode]:
    """Yield *node* and all of its descendants in document order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def string_value(artifact: SourceArtifact, node: TSNode | None) -> str | None:
    """Return the contents of a string literal node, or None for anything else."""
    if node is None or node.type != "string":
        return None
    return artifact.node_text(node)[1:-1]


def require_clause(statement: TSNode) -> TSNode | None:
    """Return the ``x = require("...")`` clause of an import statement, if any."""
    for child in statement.named_children:
        if child.type == "import_require_clause":
            return child
    return None


def _require_source(clause: TSNode) -> TSNode | None:
    source = clause.child_by_field_name("source")
    if source is not None:
        return source
    for child in clause.named_children:
        if child.type == "string":
            return child
    return None


def is_dynamic_import(node: TSNode) -> bool:
    """True for ``import(...)`` call expressions."""
    if node.type != "call_expression":
        return False
    function = node.child_by_field_name("function")
    return function is not None and function.type == "import"


def dynamic_import_specifier(artifact: SourceArtifact, call: TSNode) -> str | None:
    """Return the specifier of ``import("x")`` when its first argument is a string literal."""
    arguments = call.child_by_field_name("arguments")
    if arguments is None or not arguments.named_children:
        return None
    return string_value(artifact, arguments.named_children[0])


def iter_dynamic_imports(root: TSNode) -> Iterator[TSNode]:
    for node in walk(root):
        if is_dynamic_import(node):
            yield node


def iter_static_imports(
    artifact: SourceArtifact, *, include_exports: bool = False
) -> Iterator[ImportInfo]:
    """Yield the top-level static imports of *artifact*.

    ``import x = require("y")`` is reported with kind ``require``.  Re-exports
    (``export ... from "y"``) are only reported when *include_exports* is set.
    """
    for statement in artifact.root.named_children:
        if statement.type == "import_statement":
            clause = require_clause(statement)
            if clause is not None:
                specifier = string_value(artifact, _require_source(clause))
                kind = "require"
            else:
                specifier = string_value(artifact, statement.child_by_field_name("source"))
                kind = "import"
        elif statement.type == "export_statement" and include_exports:
            specifier = string_value(artifact, statement.child_by_field_name("source"))
            kind = "export"
        else:
            continue

        if specifier is not None:
            yield ImportInfo(
                file_path=artifact.path,
                node=statement,
                specifier=specifier,
                kind=kind,
            )


def iter_all_imports(artifact: SourceArtifact) -> Iterator[ImportInfo]:
    """Yield top-level import declarations followed by string-literal dynamic imports."""
    for info in iter_static_imports(artifact):
        if info.kind == "import":
            yield info
    for call in iter_dynamic_imports(artifact.root):
        specifier = dynamic_import_specifier(artifact, call)
        if specifier is not None:
            yield ImportInfo(
                file_path=artifact.path, node=call, specifier=specifier, kind="dynamic"
            )
