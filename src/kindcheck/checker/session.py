"""Checker entry points and the memoizing analysis session."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from kindcheck.binder import bind
from kindcheck.checker.diagnostics import create_diagnostic
from kindcheck.checker.intrinsic import INTRINSIC_CHECKS, check_max_fan_out
from kindcheck.checker.relational import check_composite, check_scope
from kindcheck.checker.resolver import resolve_artifacts
from kindcheck.program import normalize_path

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from kindcheck.binder import Symbol
    from kindcheck.checker.diagnostics import Diagnostic
    from kindcheck.program import Program, SourceArtifact

logger = logging.getLogger(__name__)


def _check_leaf(symbol: Symbol, artifacts: Sequence[SourceArtifact]) -> list[Diagnostic]:
    """Run a leaf symbol's intrinsic rules over each of its artifacts."""
    diagnostics: list[Diagnostic] = []
    max_fan_out = symbol.rules.get("maxFanOut")

    for artifact in artifacts:
        for rule, value in symbol.rules.items():
            if value is not True:
                continue
            check = INTRINSIC_CHECKS.get(rule)
            if check is None:
                continue
            for violation in check(artifact):
                diagnostics.append(create_diagnostic(rule, artifact, violation))

        if isinstance(max_fan_out, int) and not isinstance(max_fan_out, bool):
            for violation in check_max_fan_out(artifact, max_fan_out):
                diagnostics.append(create_diagnostic("maxFanOut", artifact, violation))

    if "scope" in symbol.rules:
        diagnostics.extend(check_scope(symbol, artifacts, symbol.rules["scope"]))

    return diagnostics


def check_symbol(symbol: Symbol, program: Program) -> list[Diagnostic]:
    """Check one bound symbol against the program.

    Composite symbols check each member's own rules first, then their
    relational and structural rules.
    """
    if not symbol.is_composite:
        artifacts = resolve_artifacts(symbol, program.artifacts)
        logger.debug("Target '%s': %d artifacts", symbol.name, len(artifacts))
        return _check_leaf(symbol, artifacts)

    diagnostics: list[Diagnostic] = []
    member_artifacts: dict[str, list[SourceArtifact]] = {}
    for name, member in symbol.members.items():
        artifacts = resolve_artifacts(member, program.artifacts)
        logger.debug("Target '%s' member '%s': %d artifacts", symbol.name, name, len(artifacts))
        member_artifacts[name] = artifacts
        diagnostics.extend(_check_leaf(member, artifacts))

    diagnostics.extend(check_composite(symbol, member_artifacts, program))
    return diagnostics


def check(targets: Iterable[Symbol], program: Program) -> list[Diagnostic]:
    """Check every target and return all diagnostics, in target order."""
    diagnostics: list[Diagnostic] = []
    for symbol in targets:
        diagnostics.extend(check_symbol(symbol, program))
    return diagnostics


def _filter_artifact(diagnostics: Iterable[Diagnostic], artifact_path: str) -> list[Diagnostic]:
    path = normalize_path(artifact_path)
    return [d for d in diagnostics if d.artifact_path == path]


def check_artifact(
    targets: Iterable[Symbol], program: Program, artifact_path: str
) -> list[Diagnostic]:
    """Diagnostics of a full check that are located in one artifact."""
    return _filter_artifact(check(targets, program), artifact_path)


class Session:
    """One analysis pass over a fixed program snapshot.

    The configuration is bound once on construction.  The full diagnostic
    list is computed on the first :meth:`check` and reused afterwards;
    changed sources need a new session.
    """

    def __init__(self, config: Mapping[str, Mapping[str, object]], program: Program) -> None:
        result = bind(config)
        self._symbols = result.symbols
        self._targets = result.targets
        self._program = program
        self._diagnostics: tuple[Diagnostic, ...] | None = None

    @property
    def symbols(self) -> tuple[Symbol, ...]:
        return self._symbols

    @property
    def targets(self) -> tuple[Symbol, ...]:
        return self._targets

    @property
    def program(self) -> Program:
        return self._program

    def check(self) -> list[Diagnostic]:
        if self._diagnostics is None:
            self._diagnostics = tuple(check(self._targets, self._program))
        return list(self._diagnostics)

    def check_artifact(self, artifact_path: str) -> list[Diagnostic]:
        artifact = self._program.get_artifact(artifact_path)
        if artifact is not None and artifact.is_declaration:
            return []
        return _filter_artifact(self.check(), artifact_path)
