"""Configuration: parse kindcheck.yml into target entries and normalized rule sets."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import yaml

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_CONFIG_NAME = "kindcheck.yml"
SUPPORTED_SCHEMA_VERSIONS: frozenset[int] = frozenset({1})

# Intrinsic rules evaluated per artifact by walking its syntax tree.
INTRINSIC_RULES: frozenset[str] = frozenset(
    {
        "pure",
        "noIO",
        "noImports",
        "noMutation",
        "noConsole",
        "immutable",
        "static",
        "noSideEffects",
    }
)

BOOLEAN_RULES: frozenset[str] = INTRINSIC_RULES | frozenset({"exhaustive", "noSiblingDependency"})
PAIR_RULES: frozenset[str] = frozenset({"noDependency", "noTransitiveDependency"})
MEMBER_LIST_RULES: frozenset[str] = frozenset({"noCycles"})
VALID_SCOPES: frozenset[str] = frozenset({"folder", "file"})

KNOWN_RULES: frozenset[str] = (
    BOOLEAN_RULES | PAIR_RULES | MEMBER_LIST_RULES | frozenset({"maxFanOut", "scope"})
)

RuleSet = dict[str, object]


@dataclass(frozen=True)
class KindCheckConfig:
    """A loaded configuration file."""

    targets: dict[str, dict[str, object]] = field(default_factory=dict)
    aliases: dict[str, str] | None = None
    version: int = 1


# ---------------------------------------------------------------------------
# Rule sets
# ---------------------------------------------------------------------------


def _is_member_pair(item: object) -> bool:
    return (
        isinstance(item, (list, tuple))
        and len(item) == 2
        and all(isinstance(part, str) for part in item)
    )


def parse_rule_set(raw: object, context: str) -> RuleSet:
    """Normalize a ``rules`` mapping.

    Malformed values are dropped one rule at a time with a warning; unknown
    rule names are dropped silently.  Only a ``rules`` value that is not a
    mapping at all is an error.  Normalized rule sets parse to themselves.
    """
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        msg = f"{context}: 'rules' must be a mapping"
        raise ValueError(msg)

    rules: RuleSet = {}
    for name, value in raw.items():
        if name not in KNOWN_RULES:
            logger.debug("%s: ignoring unknown rule '%s'", context, name)
            continue

        if name in BOOLEAN_RULES:
            if value is True:
                rules[name] = True
            elif value is not False and value is not None:
                logger.warning("%s: rule '%s' expects true, got %r; ignored", context, name, value)

        elif name == "maxFanOut":
            if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
                rules[name] = value
            else:
                logger.warning(
                    "%s: maxFanOut must be a non-negative integer, got %r; ignored", context, value
                )

        elif name == "scope":
            if value in VALID_SCOPES:
                rules[name] = value
            else:
                logger.warning(
                    "%s: scope must be one of %s, got %r; ignored",
                    context,
                    sorted(VALID_SCOPES),
                    value,
                )

        elif name in PAIR_RULES:
            if not isinstance(value, (list, tuple)):
                logger.warning("%s: %s must be a list of pairs; ignored", context, name)
                continue
            pairs: list[tuple[str, str]] = []
            for item in value:
                if _is_member_pair(item):
                    pairs.append((item[0], item[1]))
                else:
                    logger.warning("%s: %s entry %r is not a pair; ignored", context, name, item)
            rules[name] = tuple(pairs)

        else:  # noCycles
            if not isinstance(value, (list, tuple)):
                logger.warning("%s: %s must be a list of member names; ignored", context, name)
                continue
            names = [item for item in value if isinstance(item, str)]
            if len(names) != len(value):
                logger.warning("%s: %s has non-string entries; they are ignored", context, name)
            rules[name] = tuple(names)

    return rules


# ---------------------------------------------------------------------------
# Target entries
# ---------------------------------------------------------------------------


def is_composite_entry(entry: Mapping[str, object]) -> bool:
    """An entry is composite when it declares ``members``."""
    return "members" in entry


def _parse_leaf_entry(data: object, context: str) -> dict[str, object]:
    if not isinstance(data, Mapping):
        msg = f"{context}: entry must be a mapping"
        raise ValueError(msg)

    path = data.get("path")
    if not isinstance(path, str) or not path.strip():
        msg = f"{context}: 'path' must be a non-empty string"
        raise ValueError(msg)

    return {"path": path, "rules": parse_rule_set(data.get("rules"), context)}


def parse_targets(data: object) -> dict[str, dict[str, object]]:
    """Validate a ``{name: entry}`` mapping and normalize every entry.

    Raises ``ValueError`` on structural errors.
    """
    if not isinstance(data, Mapping):
        msg = "targets must be a mapping of name to entry"
        raise ValueError(msg)

    targets: dict[str, dict[str, object]] = {}
    for name, entry in data.items():
        context = f"Target '{name}'"
        if not isinstance(entry, Mapping):
            msg = f"{context}: entry must be a mapping"
            raise ValueError(msg)

        if not is_composite_entry(entry):
            targets[str(name)] = _parse_leaf_entry(entry, context)
            continue

        members_raw = entry["members"]
        if not isinstance(members_raw, Mapping):
            msg = f"{context}: 'members' must be a mapping"
            raise ValueError(msg)
        if "path" in entry:
            logger.warning("%s: composite entries have no path; 'path' ignored", context)

        members = {
            str(member_name): _parse_leaf_entry(member, f"{context} member '{member_name}'")
            for member_name, member in members_raw.items()
        }
        targets[str(name)] = {
            "members": members,
            "rules": parse_rule_set(entry.get("rules"), context),
        }

    return targets


def validate_targets(targets: Mapping[str, Mapping[str, object]]) -> list[str]:
    """Return warnings for relational rules that name undeclared members."""
    warnings: list[str] = []
    for name, entry in targets.items():
        if not is_composite_entry(entry):
            continue
        members = entry["members"]
        assert isinstance(members, Mapping)
        rules = entry.get("rules") or {}
        assert isinstance(rules, Mapping)

        referenced: list[str] = []
        for rule_name in PAIR_RULES:
            for pair in rules.get(rule_name, ()):  # type: ignore[attr-defined]
                referenced.extend(pair)
        referenced.extend(rules.get("noCycles", ()))  # type: ignore[arg-type]

        for member_name in dict.fromkeys(referenced):
            if member_name not in members:
                warnings.append(f"Target '{name}': rules reference unknown member '{member_name}'")
    return warnings


# ---------------------------------------------------------------------------
# YAML loading
# ---------------------------------------------------------------------------


def parse_config(data: object) -> KindCheckConfig:
    """Validate a loaded configuration document.

    Raises ``ValueError`` on schema errors.
    """
    if data is None:
        return KindCheckConfig()
    if not isinstance(data, Mapping):
        msg = "kindcheck.yml must be a YAML mapping"
        raise ValueError(msg)

    version = data.get("version", 1)
    if version not in SUPPORTED_SCHEMA_VERSIONS:
        expected = sorted(SUPPORTED_SCHEMA_VERSIONS)
        msg = f"kindcheck.yml: unsupported version {version}, expected one of {expected}"
        raise ValueError(msg)

    aliases_raw = data.get("aliases")
    aliases: dict[str, str] | None = None
    if aliases_raw is not None:
        if not isinstance(aliases_raw, Mapping) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in aliases_raw.items()
        ):
            msg = "kindcheck.yml: 'aliases' must map prefixes to directories"
            raise ValueError(msg)
        aliases = dict(aliases_raw)

    targets = parse_targets(data.get("targets") or {})
    return KindCheckConfig(targets=targets, aliases=aliases, version=int(version))


def load_config(config_path: Path) -> KindCheckConfig:
    """Read and validate a kindcheck.yml file.

    Raises ``ValueError`` on YAML syntax and schema errors.
    """
    with config_path.open("r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            msg = f"{config_path.name}: invalid YAML: {exc}"
            raise ValueError(msg) from exc
    return parse_config(data)
