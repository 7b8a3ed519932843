"""Tree-sitter grammar loading for the supported source languages."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from tree_sitter import Language, Parser

if TYPE_CHECKING:
    from collections.abc import Callable

    from tree_sitter import Tree

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LangConfig:
    """Tree-sitter configuration for one source dialect."""

    name: str
    language: Language


# ---- Language loaders (lazy, handle ImportError) ----


def _load_typescript() -> LangConfig:
    import tree_sitter_typescript as tstypescript

    return LangConfig(name="typescript", language=Language(tstypescript.language_typescript()))


def _load_tsx() -> LangConfig:
    import tree_sitter_typescript as tstypescript

    return LangConfig(name="tsx", language=Language(tstypescript.language_tsx()))


# Extension -> loader function mapping.
_EXTENSION_LOADERS: dict[str, Callable[[], LangConfig]] = {
    ".ts": _load_typescript,
    ".mts": _load_typescript,
    ".cts": _load_typescript,
    ".js": _load_typescript,
    ".mjs": _load_typescript,
    ".cjs": _load_typescript,
    ".tsx": _load_tsx,
    ".jsx": _load_tsx,
}

# Cache for loaded languages (None means "tried and failed / unsupported").
_LANG_CACHE: dict[str, LangConfig | None] = {}


def get_lang_config(extension: str) -> LangConfig | None:
    """Get language config for a file extension, or ``None`` if unsupported/unavailable."""
    if extension in _LANG_CACHE:
        return _LANG_CACHE[extension]

    loader = _EXTENSION_LOADERS.get(extension)
    if loader is None:
        _LANG_CACHE[extension] = None
        return None

    try:
        config = loader()
    except ImportError:
        logger.warning("No tree-sitter grammar installed for '%s' files", extension)
        _LANG_CACHE[extension] = None
        return None

    _LANG_CACHE[extension] = config
    return config


def source_extensions() -> tuple[str, ...]:
    """Return every extension the program scanner considers, supported or not."""
    return tuple(_EXTENSION_LOADERS)


def supported_extensions() -> frozenset[str]:
    """Return the set of file extensions with available grammars."""
    return frozenset(ext for ext in _EXTENSION_LOADERS if get_lang_config(ext) is not None)


def clear_cache() -> None:
    """Clear the language config cache (useful for testing)."""
    _LANG_CACHE.clear()


def parse_source(text: str, extension: str) -> Tree | None:
    """Parse *text* with the grammar registered for *extension*.

    Returns ``None`` when no grammar is available for the extension.
    """
    config = get_lang_config(extension)
    if config is None:
        return None
    parser = Parser(config.language)
    return parser.parse(text.encode("utf-8"))
