"""Relational and structural checks over a composite target's members.

Members of a composite are connected by :class:`ImportEdge` records: an edge
``A -> B`` exists for every static import in one of A's artifacts that
resolves into one of B's artifacts.  Dependency, cycle and reachability rules
run over that graph; ``exhaustive`` and ``scope`` compare the members against
the files around them.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from kindcheck.checker.diagnostics import Violation, create_diagnostic
from kindcheck.checker.imports import iter_static_imports
from kindcheck.checker.resolver import normalize_target_path, resolve_scope

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from tree_sitter import Node as TSNode

    from kindcheck.binder import Symbol
    from kindcheck.checker.diagnostics import Diagnostic
    from kindcheck.program import Program, SourceArtifact

logger = logging.getLogger(__name__)

_SCOPE_KINDS: dict[str, str] = {"folder": "directory", "file": "file"}

_GRAPH_RULES: frozenset[str] = frozenset(
    {"noDependency", "noTransitiveDependency", "noCycles", "noSiblingDependency"}
)


@dataclass(frozen=True)
class ImportEdge:
    """An import in one member's code that resolves into another member."""

    from_member: str
    to_member: str
    resolved_path: str
    artifact: SourceArtifact  # importing artifact
    node: TSNode  # import statement


class MemberGraph:
    """Directed member-to-member import graph.

    Successors are listed in member declaration order, which fixes the
    traversal order of every graph check.
    """

    def __init__(self, members: Sequence[str], edges: Iterable[ImportEdge]) -> None:
        self.members: tuple[str, ...] = tuple(members)
        self.edges: tuple[ImportEdge, ...] = tuple(edges)
        self._first_edge: dict[tuple[str, str], ImportEdge] = {}
        for edge in self.edges:
            self._first_edge.setdefault((edge.from_member, edge.to_member), edge)

    def first_edge(self, from_member: str, to_member: str) -> ImportEdge | None:
        return self._first_edge.get((from_member, to_member))

    def successors(self, member: str, within: Iterable[str] | None = None) -> list[str]:
        candidates = self.members if within is None else tuple(within)
        return [m for m in candidates if (member, m) in self._first_edge]


def build_import_edges(
    member_artifacts: Mapping[str, Sequence[SourceArtifact]],
    program: Program,
) -> list[ImportEdge]:
    """Resolve every static import of every member artifact and keep cross-member ones."""
    owners: dict[str, list[str]] = {}
    for member, artifacts in member_artifacts.items():
        for artifact in artifacts:
            owners.setdefault(artifact.path, []).append(member)

    edges: list[ImportEdge] = []
    for from_member, artifacts in member_artifacts.items():
        for artifact in artifacts:
            for info in iter_static_imports(artifact, include_exports=True):
                resolved = program.resolve_module(info.specifier, artifact.path)
                if resolved is None:
                    continue
                for to_member in owners.get(resolved, ()):
                    if to_member == from_member:
                        continue
                    edges.append(
                        ImportEdge(
                            from_member=from_member,
                            to_member=to_member,
                            resolved_path=resolved,
                            artifact=artifact,
                            node=info.node,
                        )
                    )
    return edges


# ---------------------------------------------------------------------------
# Graph rules
# ---------------------------------------------------------------------------


def _edge_diagnostic(rule: str, edge: ImportEdge, detail: str) -> Diagnostic:
    message = f"{detail} ({edge.artifact.path} imports {edge.resolved_path})"
    return create_diagnostic(rule, edge.artifact, Violation(rule, edge.node, message))


def _known_pairs(
    composite: Symbol, rule: str, pairs: Iterable[tuple[str, str]]
) -> list[tuple[str, str]]:
    known: list[tuple[str, str]] = []
    for from_member, to_member in pairs:
        if from_member in composite.members and to_member in composite.members:
            known.append((from_member, to_member))
        else:
            logger.warning(
                "Target '%s': %s pair (%s, %s) names an unknown member; ignored",
                composite.name,
                rule,
                from_member,
                to_member,
            )
    return known


def check_no_dependency(
    composite: Symbol, graph: MemberGraph, pairs: Iterable[tuple[str, str]]
) -> list[Diagnostic]:
    forbidden = set(_known_pairs(composite, "noDependency", pairs))
    return [
        _edge_diagnostic(
            "noDependency",
            edge,
            f"'{edge.from_member}' must not depend on '{edge.to_member}' in '{composite.name}'",
        )
        for edge in graph.edges
        if (edge.from_member, edge.to_member) in forbidden
    ]


def check_no_sibling_dependency(composite: Symbol, graph: MemberGraph) -> list[Diagnostic]:
    return [
        _edge_diagnostic(
            "noSiblingDependency",
            edge,
            f"'{edge.from_member}' depends on sibling '{edge.to_member}' in '{composite.name}'",
        )
        for edge in graph.edges
    ]


def find_cycles(graph: MemberGraph, members: Sequence[str]) -> list[list[str]]:
    """Return every cycle met by a depth-first search started from each member in turn.

    Each search keeps its own visited set, so a cycle is reported once per
    start member that reaches it.  A cycle is listed from the repeated node
    and ends with it again, e.g. ``["a", "b", "c", "a"]``.
    """
    cycles: list[list[str]] = []
    for start in members:
        _visit_cycles(graph, members, start, set(), [], cycles)
    return cycles


def _visit_cycles(
    graph: MemberGraph,
    members: Sequence[str],
    node: str,
    visited: set[str],
    path: list[str],
    cycles: list[list[str]],
) -> None:
    visited.add(node)
    path.append(node)
    for neighbor in graph.successors(node, members):
        if neighbor in path:
            cycles.append([*path[path.index(neighbor) :], neighbor])
        elif neighbor not in visited:
            _visit_cycles(graph, members, neighbor, visited, path, cycles)
    path.pop()


def check_no_cycles(
    composite: Symbol, graph: MemberGraph, members: Iterable[str]
) -> list[Diagnostic]:
    listed = [m for m in dict.fromkeys(members) if m in composite.members]
    diagnostics: list[Diagnostic] = []

    for cycle in find_cycles(graph, listed):
        edge = graph.first_edge(cycle[-2], cycle[-1])
        assert edge is not None
        display = " → ".join(cycle)
        diagnostics.append(
            _edge_diagnostic("noCycles", edge, f"{display} in '{composite.name}'")
        )

    return diagnostics


def find_path(graph: MemberGraph, source: str, target: str) -> list[str] | None:
    """Return a shortest member path of length >= 1 from *source* to *target*, if any."""
    parents: dict[str, str] = {}
    queue: deque[str] = deque()

    for neighbor in graph.successors(source):
        if neighbor not in parents:
            parents[neighbor] = source
            queue.append(neighbor)

    while queue:
        node = queue.popleft()
        if node == target:
            path = [node]
            while len(path) == 1 or path[-1] != source:
                path.append(parents[path[-1]])
            return list(reversed(path))
        for neighbor in graph.successors(node):
            if neighbor not in parents:
                parents[neighbor] = node
                queue.append(neighbor)

    return None


def check_no_transitive_dependency(
    composite: Symbol, graph: MemberGraph, pairs: Iterable[tuple[str, str]]
) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []

    for from_member, to_member in _known_pairs(composite, "noTransitiveDependency", pairs):
        path = find_path(graph, from_member, to_member)
        if path is None:
            continue
        edge = graph.first_edge(path[0], path[1])
        assert edge is not None
        display = " → ".join(path)
        diagnostics.append(
            _edge_diagnostic(
                "noTransitiveDependency",
                edge,
                f"'{from_member}' reaches '{to_member}' via {display} in '{composite.name}'",
            )
        )

    return diagnostics


# ---------------------------------------------------------------------------
# Structural rules
# ---------------------------------------------------------------------------


def common_directory(members: Iterable[Symbol]) -> str:
    """Longest directory shared by all leaf *members*; file members contribute their parent."""
    split: list[list[str]] = []
    for member in members:
        if not member.path:
            continue
        parts = [p for p in normalize_target_path(member.path).split("/") if p]
        if parts and member.value_kind == "file":
            parts = parts[:-1]
        split.append(parts)

    if not split:
        return ""

    common: list[str] = []
    for segments in zip(*split):
        if any(s != segments[0] for s in segments):
            break
        common.append(segments[0])
    return "/".join(common)


def check_exhaustive(
    composite: Symbol,
    member_artifacts: Mapping[str, Sequence[SourceArtifact]],
    program: Program,
) -> list[Diagnostic]:
    scope = common_directory(composite.members.values())
    covered = {a.path for artifacts in member_artifacts.values() for a in artifacts}
    unassigned = [a for a in resolve_scope(scope, program.artifacts) if a.path not in covered]
    if not unassigned:
        return []

    listing = ", ".join(a.path for a in unassigned)
    message = (
        f"{len(unassigned)} file(s) under '{scope or '.'}' not covered by "
        f"members of '{composite.name}': {listing}"
    )
    return [create_diagnostic("exhaustive", unassigned[0], Violation("exhaustive", None, message))]


def check_scope(
    symbol: Symbol,
    artifacts: Sequence[SourceArtifact],
    declared: object,
    *,
    owner: Symbol | None = None,
) -> list[Diagnostic]:
    """Compare a declared ``folder``/``file`` scope with the symbol's value kind.

    The diagnostic is anchored at the symbol's first artifact; symbols that
    resolve to nothing produce no diagnostic.
    """
    expected = _SCOPE_KINDS.get(str(declared))
    if expected is None or expected == symbol.value_kind or not artifacts:
        return []

    where = f"member '{symbol.name}' of '{owner.name}'" if owner else f"'{symbol.name}'"
    message = f"{where} is a {symbol.value_kind}, declared scope is '{declared}'"
    return [create_diagnostic("scope", artifacts[0], Violation("scope", None, message))]


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def check_composite(
    composite: Symbol,
    member_artifacts: Mapping[str, Sequence[SourceArtifact]],
    program: Program,
) -> list[Diagnostic]:
    """Evaluate a composite's relational and structural rules."""
    rules = composite.rules
    diagnostics: list[Diagnostic] = []

    if _GRAPH_RULES.intersection(rules):
        edges = build_import_edges(member_artifacts, program)
        graph = MemberGraph(list(composite.members), edges)
        logger.debug("Target '%s': %d member import edges", composite.name, len(graph.edges))

        forbidden: Any = rules.get("noDependency", ())
        diagnostics.extend(check_no_dependency(composite, graph, forbidden))
        if rules.get("noSiblingDependency") is True:
            diagnostics.extend(check_no_sibling_dependency(composite, graph))
        cycle_members: Any = rules.get("noCycles", ())
        diagnostics.extend(check_no_cycles(composite, graph, cycle_members))
        unreachable: Any = rules.get("noTransitiveDependency", ())
        diagnostics.extend(check_no_transitive_dependency(composite, graph, unreachable))

    if rules.get("exhaustive") is True:
        diagnostics.extend(check_exhaustive(composite, member_artifacts, program))

    if "scope" in rules:
        for name, member in composite.members.items():
            diagnostics.extend(
                check_scope(
                    member, member_artifacts.get(name, ()), rules["scope"], owner=composite
                )
            )

    return diagnostics
