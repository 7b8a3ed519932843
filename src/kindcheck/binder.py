"""Binder: convert configured targets into immutable, checkable Symbols."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Literal

from kindcheck.config import is_composite_entry, parse_targets

if TYPE_CHECKING:
    from collections.abc import Mapping

ValueKind = Literal["file", "directory", "composite"]

# A final path segment with an extension marks a file target.
_FILE_EXTENSION_RE = re.compile(r"\.\w+$")

_EMPTY_MEMBERS: Mapping[str, Symbol] = MappingProxyType({})


@dataclass(frozen=True, eq=False)
class Symbol:
    """The bound form of one configured target.

    Leaf symbols carry a ``path`` and no members; composite symbols carry
    ``members`` and no path.
    """

    id: str
    name: str
    value_kind: ValueKind
    rules: Mapping[str, object]
    path: str | None = None
    members: Mapping[str, Symbol] = field(default_factory=lambda: _EMPTY_MEMBERS)

    @property
    def is_composite(self) -> bool:
        return self.value_kind == "composite"


@dataclass(frozen=True)
class BinderResult:
    """Result of binding a configuration."""

    symbols: tuple[Symbol, ...]  # every symbol, composite members included
    targets: tuple[Symbol, ...]  # top-level entries only


def detect_value_kind(path: str) -> ValueKind:
    """Paths with a file extension are files; everything else is a directory."""
    return "file" if _FILE_EXTENSION_RE.search(path) else "directory"


def bind(config: Mapping[str, Mapping[str, object]]) -> BinderResult:
    """Bind a ``{name: entry}`` configuration into symbols.

    Ids are assigned in configuration order.  Composite members are bound
    before their parent.  Paths are not checked against the filesystem.
    Raises ``ValueError`` on structural configuration errors.
    """
    entries = parse_targets(config)
    symbols: list[Symbol] = []
    targets: list[Symbol] = []
    next_id = 0

    def _leaf(name: str, entry: Mapping[str, object]) -> Symbol:
        nonlocal next_id
        path = str(entry["path"])
        sym = Symbol(
            id=f"sym-{next_id}",
            name=name,
            value_kind=detect_value_kind(path),
            rules=MappingProxyType(dict(entry["rules"])),  # type: ignore[call-overload]
            path=path,
        )
        next_id += 1
        symbols.append(sym)
        return sym

    for name, entry in entries.items():
        if not is_composite_entry(entry):
            targets.append(_leaf(name, entry))
            continue

        members_raw = entry["members"]
        assert isinstance(members_raw, dict)
        members = {
            member_name: _leaf(member_name, member)
            for member_name, member in members_raw.items()
        }
        sym = Symbol(
            id=f"sym-{next_id}",
            name=name,
            value_kind="composite",
            rules=MappingProxyType(dict(entry["rules"])),  # type: ignore[call-overload]
            members=MappingProxyType(members),
        )
        next_id += 1
        symbols.append(sym)
        targets.append(sym)

    return BinderResult(symbols=tuple(symbols), targets=tuple(targets))
