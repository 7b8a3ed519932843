"""Checker — target resolution, intrinsic and relational rules, diagnostics."""

from kindcheck.checker.diagnostics import (
    RULE_CODES,
    Diagnostic,
    RuleCode,
    Violation,
    create_diagnostic,
)
from kindcheck.checker.intrinsic import INTRINSIC_CHECKS, IO_MODULES, fan_out
from kindcheck.checker.relational import (
    ImportEdge,
    MemberGraph,
    build_import_edges,
    check_composite,
    find_cycles,
    find_path,
)
from kindcheck.checker.resolver import resolve_artifacts
from kindcheck.checker.session import Session, check, check_artifact, check_symbol

__all__ = [
    "INTRINSIC_CHECKS",
    "IO_MODULES",
    "RULE_CODES",
    "Diagnostic",
    "ImportEdge",
    "MemberGraph",
    "RuleCode",
    "Session",
    "Violation",
    "build_import_edges",
    "check",
    "check_artifact",
    "check_composite",
    "check_symbol",
    "create_diagnostic",
    "fan_out",
    "find_cycles",
    "find_path",
    "resolve_artifacts",
]
