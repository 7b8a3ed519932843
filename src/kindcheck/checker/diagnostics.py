"""Diagnostic assembly: rule codes, message templates and the Diagnostic record."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tree_sitter import Node as TSNode

    from kindcheck.program import SourceArtifact

SEVERITY_ERROR = "error"


class RuleCode(IntEnum):
    """Stable diagnostic codes, one per checkable rule."""

    UNKNOWN = 70000
    NO_DEPENDENCY = 70001
    NO_TRANSITIVE_DEPENDENCY = 70002
    PURE = 70003
    NO_CYCLES = 70004
    SCOPE = 70005
    EXHAUSTIVE = 70006
    NO_IO = 70007
    NO_IMPORTS = 70008
    NO_CONSOLE = 70009
    IMMUTABLE = 70010
    STATIC = 70011
    NO_SIDE_EFFECTS = 70012
    NO_MUTATION = 70013
    MAX_FAN_OUT = 70014
    NO_SIBLING_DEPENDENCY = 70015


RULE_CODES: dict[str, RuleCode] = {
    "noDependency": RuleCode.NO_DEPENDENCY,
    "noTransitiveDependency": RuleCode.NO_TRANSITIVE_DEPENDENCY,
    "pure": RuleCode.PURE,
    "noCycles": RuleCode.NO_CYCLES,
    "scope": RuleCode.SCOPE,
    "exhaustive": RuleCode.EXHAUSTIVE,
    "noIO": RuleCode.NO_IO,
    "noImports": RuleCode.NO_IMPORTS,
    "noConsole": RuleCode.NO_CONSOLE,
    "immutable": RuleCode.IMMUTABLE,
    "static": RuleCode.STATIC,
    "noSideEffects": RuleCode.NO_SIDE_EFFECTS,
    "noMutation": RuleCode.NO_MUTATION,
    "maxFanOut": RuleCode.MAX_FAN_OUT,
    "noSiblingDependency": RuleCode.NO_SIBLING_DEPENDENCY,
}

RULE_MESSAGES: dict[str, str] = {
    "noDependency": "Forbidden dependency",
    "noTransitiveDependency": "Forbidden transitive dependency",
    "pure": "Value is not pure",
    "noCycles": "Circular dependency",
    "scope": "Value does not match its declared scope",
    "exhaustive": "Files are not assigned to any member",
    "noIO": "Value performs IO",
    "noImports": "Value has import declarations",
    "noConsole": "Value uses console",
    "immutable": "Value has mutable bindings at module scope",
    "static": "Value uses dynamic imports",
    "noSideEffects": "Value has top-level side effects",
    "noMutation": "Value contains mutations",
    "maxFanOut": "Value exceeds maximum fan-out",
    "noSiblingDependency": "Forbidden sibling dependency",
}


@dataclass(frozen=True)
class Violation:
    """A single finding of one property check.

    A ``node`` of ``None`` anchors the finding at the whole artifact.
    """

    rule: str
    node: TSNode | None
    message: str


@dataclass(frozen=True)
class Diagnostic:
    """A positioned, coded report of a single rule violation."""

    artifact_path: str
    start: int
    length: int
    message: str
    code: int
    rule: str
    severity: str = SEVERITY_ERROR

    def to_dict(self) -> dict[str, object]:
        """Serialize to the stable consumer-facing shape."""
        return {
            "artifactPath": self.artifact_path,
            "start": self.start,
            "length": self.length,
            "message": self.message,
            "severity": self.severity,
            "code": self.code,
            "rule": self.rule,
        }


def rule_code(rule: str) -> int:
    return int(RULE_CODES.get(rule, RuleCode.UNKNOWN))


def create_diagnostic(
    rule: str,
    artifact: SourceArtifact,
    violation: Violation | None = None,
) -> Diagnostic:
    """Build a diagnostic for *rule*, pointing at the violation node if there is one."""
    message = RULE_MESSAGES.get(rule, f"Property '{rule}' violated")
    node = None
    if violation is not None:
        message += f": {violation.message}"
        node = violation.node

    start, length = artifact.span(node)
    return Diagnostic(
        artifact_path=artifact.path,
        start=start,
        length=length,
        message=message,
        code=rule_code(rule),
        rule=rule,
    )
