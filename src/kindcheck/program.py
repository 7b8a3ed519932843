"""Source program: parsed artifacts plus module resolution between them."""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from kindcheck.parsing import parse_source, source_extensions

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

    from tree_sitter import Node as TSNode
    from tree_sitter import Tree

logger = logging.getLogger(__name__)

# Well-known TS/JS path aliases mapped to project-relative directories.
DEFAULT_ALIASES: dict[str, str] = {
    "@/": "src/",
    "~/": "src/",
}

# Directories never scanned for sources.
_SKIP_DIRS: frozenset[str] = frozenset({"node_modules", ".git", "dist", "build", "coverage"})

_DECLARATION_SUFFIXES: tuple[str, ...] = (".d.ts", ".d.mts", ".d.cts")

# Extensions appended to an extensionless specifier, in lookup order.
_RESOLVE_EXTENSIONS: tuple[str, ...] = (
    ".ts",
    ".tsx",
    ".d.ts",
    ".js",
    ".jsx",
    ".mts",
    ".cts",
    ".mjs",
    ".cjs",
)

# Emitted-JS extensions that point back at their TypeScript sources.
_JS_TO_TS: dict[str, tuple[str, ...]] = {
    ".js": (".ts", ".tsx"),
    ".jsx": (".tsx",),
    ".mjs": (".mts",),
    ".cjs": (".cts",),
}


def normalize_path(path: str) -> str:
    """Use forward slashes and drop any leading ``./`` segments."""
    normalized = path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


@dataclass(frozen=True, eq=False)
class SourceArtifact:
    """A single parsed source file.

    Offsets reported by :meth:`span` are character offsets into :attr:`text`,
    not tree-sitter byte offsets.
    """

    path: str  # project-relative POSIX path
    text: str
    tree: Tree
    _data: bytes = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_data", self.text.encode("utf-8"))

    @property
    def root(self) -> TSNode:
        return self.tree.root_node

    @property
    def is_declaration(self) -> bool:
        """True for declaration-only files such as ``types.d.ts``."""
        return self.path.endswith(_DECLARATION_SUFFIXES)

    def node_text(self, node: TSNode) -> str:
        return self._data[node.start_byte : node.end_byte].decode("utf-8")

    def span(self, node: TSNode | None = None) -> tuple[int, int]:
        """Return ``(start, length)`` of *node*, or of the whole file when *node* is None."""
        if node is None:
            node = self.root
        start = len(self._data[: node.start_byte].decode("utf-8"))
        length = len(self._data[node.start_byte : node.end_byte].decode("utf-8"))
        return start, length

    def line_of(self, offset: int) -> int:
        """Return the 1-based line number of a character offset."""
        return self.text.count("\n", 0, offset) + 1


class Program:
    """The set of parsed source artifacts for one analysis snapshot."""

    def __init__(
        self,
        artifacts: Iterable[SourceArtifact],
        *,
        aliases: Mapping[str, str] | None = None,
    ) -> None:
        self._artifacts: tuple[SourceArtifact, ...] = tuple(artifacts)
        self._by_path: dict[str, SourceArtifact] = {a.path: a for a in self._artifacts}
        self._aliases: dict[str, str] = dict(DEFAULT_ALIASES if aliases is None else aliases)

    # -- construction ------------------------------------------------------

    @classmethod
    def from_sources(
        cls,
        sources: Mapping[str, str],
        *,
        aliases: Mapping[str, str] | None = None,
    ) -> Program:
        """Build a program from in-memory ``{path: source text}`` pairs."""
        artifacts: list[SourceArtifact] = []
        for raw_path, text in sources.items():
            path = normalize_path(raw_path)
            tree = parse_source(text, _extension(path))
            if tree is None:
                logger.debug("Skipping %s: no grammar available", path)
                continue
            artifacts.append(SourceArtifact(path=path, text=text, tree=tree))
        return cls(artifacts, aliases=aliases)

    @classmethod
    def load(
        cls,
        root: Path,
        paths: Iterable[Path] | None = None,
        *,
        aliases: Mapping[str, str] | None = None,
    ) -> Program:
        """Read and parse source files under *root*.

        When *paths* is ``None`` the whole root is scanned.  Read errors are
        not caught.
        """
        files = sorted(paths) if paths is not None else _collect_source_files(root)
        artifacts: list[SourceArtifact] = []

        for file_path in files:
            full = file_path if file_path.is_absolute() else root / file_path
            rel_path = full.relative_to(root).as_posix()
            text = full.read_text(encoding="utf-8")
            tree = parse_source(text, _extension(rel_path))
            if tree is None:
                logger.debug("Skipping %s: no grammar available", rel_path)
                continue
            artifacts.append(SourceArtifact(path=rel_path, text=text, tree=tree))

        logger.debug("Loaded %d source files from %s", len(artifacts), root)
        return cls(artifacts, aliases=aliases)

    # -- queries -------------------------------------------------------------

    @property
    def artifacts(self) -> tuple[SourceArtifact, ...]:
        return self._artifacts

    def __iter__(self) -> Iterator[SourceArtifact]:
        return iter(self._artifacts)

    def __len__(self) -> int:
        return len(self._artifacts)

    def get_artifact(self, path: str) -> SourceArtifact | None:
        return self._by_path.get(normalize_path(path))

    def resolve_module(self, specifier: str, importing_path: str) -> str | None:
        """Map an import specifier to the path of a known artifact.

        Relative specifiers resolve against the importing file's directory,
        aliased ones against the project root.  Package imports and anything
        that does not land on a known artifact resolve to ``None``.
        """
        if specifier in (".", "..") or specifier.startswith(("./", "../")):
            importing_dir = posixpath.dirname(normalize_path(importing_path))
            base = posixpath.normpath(posixpath.join(importing_dir, specifier))
        else:
            for alias, replacement in self._aliases.items():
                if specifier.startswith(alias):
                    base = posixpath.normpath(replacement + specifier[len(alias) :])
                    break
            else:
                return None

        if base == ".." or base.startswith("../"):
            return None

        for candidate in _candidate_paths(base):
            if candidate in self._by_path:
                return candidate
        return None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _extension(path: str) -> str:
    return PurePosixPath(path).suffix


def _candidate_paths(base: str) -> list[str]:
    """List the artifact paths a resolved specifier base may refer to."""
    candidates = [base]
    suffix = _extension(base)
    if suffix in _JS_TO_TS:
        stem = base[: -len(suffix)]
        candidates.extend(stem + ext for ext in _JS_TO_TS[suffix])
    candidates.extend(base + ext for ext in _RESOLVE_EXTENSIONS)
    candidates.extend(f"{base}/index{ext}" for ext in _RESOLVE_EXTENSIONS)
    return candidates


def _collect_source_files(root: Path) -> list[Path]:
    """Collect all candidate source files under *root*, skipping vendored trees."""
    files: set[Path] = set()
    for ext in source_extensions():
        for path in root.rglob(f"*{ext}"):
            rel_parts = path.relative_to(root).parts
            if any(part in _SKIP_DIRS for part in rel_parts[:-1]):
                continue
            if path.is_file():
                files.add(path)
    return sorted(files)
