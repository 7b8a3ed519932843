"""Linter orchestrator: load config, parse the project, check, format results."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from kindcheck.checker import Session
from kindcheck.config import DEFAULT_CONFIG_NAME, load_config, validate_targets
from kindcheck.parsing import supported_extensions
from kindcheck.program import Program

if TYPE_CHECKING:
    from pathlib import Path

    from kindcheck.checker import Diagnostic

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class KindCheckError(Exception):
    """Raised when a check run encounters a configuration error."""


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class CheckResult:
    """Result of a check run."""

    diagnostics: list[Diagnostic] = field(default_factory=list)
    targets_checked: int = 0
    symbols_bound: int = 0
    files_scanned: int = 0
    elapsed_ms: float = 0.0
    program: Program | None = None  # checked sources, for line lookups


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def open_session(project_root: Path, *, config_path: Path | None = None) -> Session | None:
    """Load the config and sources of *project_root* into a new session.

    Returns ``None`` when there is no config file.

    Raises
    ------
    KindCheckError
        When the config file is present but invalid, or no grammar is installed.
    """
    if config_path is None:
        config_path = project_root / DEFAULT_CONFIG_NAME
    if not config_path.is_file():
        logger.debug("No config at %s", config_path)
        return None

    try:
        config = load_config(config_path)
    except ValueError as exc:
        msg = f"Invalid configuration: {exc}"
        raise KindCheckError(msg) from exc

    for warning in validate_targets(config.targets):
        logger.warning(warning)

    if not supported_extensions():
        msg = "No tree-sitter grammar available; install tree-sitter-typescript"
        raise KindCheckError(msg)

    program = Program.load(project_root, aliases=config.aliases)
    return Session(config.targets, program)


def run(project_root: Path, *, config_path: Path | None = None) -> CheckResult:
    """Check a project and return the diagnostics with run statistics.

    Parameters
    ----------
    project_root:
        Root of the project; artifact paths are reported relative to it.
    config_path:
        Optional explicit path to the config.  When *None* the default
        ``<project_root>/kindcheck.yml`` is used.

    Returns
    -------
    CheckResult
        Summary with diagnostics, counts, and timing.  Empty when there is
        no config file.

    Raises
    ------
    KindCheckError
        When the config file is present but invalid.
    """
    start = time.monotonic()

    session = open_session(project_root, config_path=config_path)
    if session is None:
        return CheckResult(elapsed_ms=(time.monotonic() - start) * 1000)

    diagnostics = session.check()
    elapsed = (time.monotonic() - start) * 1000

    return CheckResult(
        diagnostics=diagnostics,
        targets_checked=len(session.targets),
        symbols_bound=len(session.symbols),
        files_scanned=len(session.program),
        elapsed_ms=elapsed,
        program=session.program,
    )


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


def _location(diagnostic: Diagnostic, program: Program | None) -> str:
    artifact = program.get_artifact(diagnostic.artifact_path) if program is not None else None
    if artifact is None:
        return diagnostic.artifact_path
    return f"{diagnostic.artifact_path}:{artifact.line_of(diagnostic.start)}"


def format_rich(result: CheckResult) -> str:
    """Format a CheckResult as human-readable text.

    Example output with diagnostics::

        Targets: 2 checked (5 symbols)
        Files: 25 scanned

        ✗ noConsole [KS70009]
          src/app/main.ts:3 → Value uses console: console.log

        1 violations found (2 targets checked, 0.1s)
    """
    lines: list[str] = []

    lines.append(f"Targets: {result.targets_checked} checked ({result.symbols_bound} symbols)")
    lines.append(f"Files: {result.files_scanned} scanned")
    lines.append("")

    elapsed_str = f"{result.elapsed_ms / 1000:.1f}s"

    if result.diagnostics:
        for d in result.diagnostics:
            lines.append(f"✗ {d.rule} [KS{d.code}]")
            lines.append(f"  {_location(d, result.program)} → {d.message}")
            lines.append("")

        count = len(result.diagnostics)
        lines.append(
            f"{count} violations found ({result.targets_checked} targets checked, {elapsed_str})"
        )
    else:
        lines.append(
            f"✓ No violations found ({result.targets_checked} targets checked, {elapsed_str})"
        )

    return "\n".join(lines)


def format_json(result: CheckResult) -> str:
    """Format a CheckResult as structured JSON.

    Returns a JSON string with a ``diagnostics`` array and a ``summary`` object.
    """
    output: dict[str, object] = {
        "diagnostics": [d.to_dict() for d in result.diagnostics],
        "summary": {
            "targets_checked": result.targets_checked,
            "symbols_bound": result.symbols_bound,
            "files_scanned": result.files_scanned,
            "diagnostics_count": len(result.diagnostics),
            "elapsed_ms": result.elapsed_ms,
        },
    }

    return json.dumps(output, indent=2, ensure_ascii=False)


def format_porcelain(result: CheckResult) -> str:
    """Format a CheckResult as machine-readable one-line-per-diagnostic output.

    Format: ``artifact_path:start:length:code:rule:message``

    Returns empty string when there are no diagnostics.
    """
    return "\n".join(
        f"{d.artifact_path}:{d.start}:{d.length}:{d.code}:{d.rule}:{d.message}"
        for d in result.diagnostics
    )
