"""Shared test fixtures for kindcheck."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from kindcheck.program import Program

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


@pytest.fixture()
def make_program() -> Callable[..., Program]:
    """Build an in-memory program from a ``{path: source}`` mapping."""

    def _make(sources: dict[str, str]) -> Program:
        return Program.from_sources(sources)

    return _make


@pytest.fixture()
def tmp_project(tmp_path: Path) -> Path:
    """Create a small layered TypeScript project with a kindcheck.yml.

    Layout:
    - src/domain/order.ts        pure, imports nothing IO-related
    - src/infra/db.ts            imports fs and the domain
    - src/app/main.ts            uses console, imports infra
    """
    src = tmp_path / "src"
    (src / "domain").mkdir(parents=True)
    (src / "infra").mkdir()
    (src / "app").mkdir()
    (src / "domain" / "order.ts").write_text(
        "export interface Order { id: string }\n"
        "export const makeOrder = (id: string): Order => ({ id });\n"
    )
    (src / "infra" / "db.ts").write_text(
        "import { readFileSync } from 'fs';\n"
        "import { makeOrder } from '../domain/order';\n"
        "export const load = (p: string) => makeOrder(readFileSync(p, 'utf-8'));\n"
    )
    (src / "app" / "main.ts").write_text(
        "import { load } from '../infra/db';\n"
        "console.log(load('orders.json'));\n"
    )
    (tmp_path / "kindcheck.yml").write_text(
        "version: 1\n"
        "targets:\n"
        "  domain:\n"
        "    path: src/domain\n"
        "    rules: { pure: true, noIO: true }\n"
        "  layers:\n"
        "    members:\n"
        "      domain: { path: src/domain }\n"
        "      infra: { path: src/infra }\n"
        "      app: { path: src/app, rules: { noConsole: true } }\n"
        "    rules:\n"
        "      noDependency: [[domain, infra], [infra, app]]\n"
        "      noCycles: [domain, infra, app]\n"
    )
    return tmp_path
