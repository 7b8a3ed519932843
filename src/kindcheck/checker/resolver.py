"""Target resolution: map a bound symbol to the source artifacts it governs."""

from __future__ import annotations

from typing import TYPE_CHECKING

from kindcheck.program import normalize_path

if TYPE_CHECKING:
    from collections.abc import Iterable

    from kindcheck.binder import Symbol
    from kindcheck.program import SourceArtifact


def normalize_target_path(path: str) -> str:
    """Normalize a configured path: forward slashes, no leading ``./``, no trailing ``/``.

    The project root (``.``) normalizes to the empty string.
    """
    normalized = normalize_path(path).rstrip("/")
    return "" if normalized == "." else normalized


def matches_file(artifact_path: str, target: str) -> bool:
    """File targets match by substring of the normalized artifact path."""
    return target in normalize_path(artifact_path)


def matches_directory(artifact_path: str, target: str) -> bool:
    """Directory targets match whole segments: ``src/domain`` never matches ``src/domain2``."""
    return f"/{target}/" in "/" + normalize_path(artifact_path)


def resolve_scope(
    scope: str,
    artifacts: Iterable[SourceArtifact],
) -> list[SourceArtifact]:
    """Return every non-declaration artifact under the directory *scope* (all when empty)."""
    target = normalize_target_path(scope)
    return [
        a
        for a in artifacts
        if not a.is_declaration and (not target or matches_directory(a.path, target))
    ]


def resolve_artifacts(
    symbol: Symbol,
    artifacts: Iterable[SourceArtifact],
) -> list[SourceArtifact]:
    """Return the artifacts *symbol* governs, in program order.

    Composite symbols resolve to nothing themselves; their members are
    resolved one by one.  Declaration files are never included.
    """
    if symbol.value_kind == "composite" or not symbol.path:
        return []

    if symbol.value_kind == "directory":
        return resolve_scope(symbol.path, artifacts)

    target = normalize_target_path(symbol.path)
    return [a for a in artifacts if not a.is_declaration and matches_file(a.path, target)]
