"""Tests for kindcheck.checker.session — end-to-end checks and session caching."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from kindcheck.binder import bind
from kindcheck.checker import Session, check, check_artifact

if TYPE_CHECKING:
    from collections.abc import Callable

    from kindcheck.program import Program


@pytest.fixture()
def layered(make_program: Callable[..., Program]) -> Program:
    return make_program(
        {
            "src/domain/order.ts": "export const total = (n: number) => n * 2;\n",
            "src/infra/db.ts": (
                "import { readFileSync } from 'fs';\n"
                "import { total } from '../domain/order';\n"
                "export const load = () => total(readFileSync('x').length);\n"
            ),
            "src/app/main.ts": (
                "import { load } from '../infra/db';\nconsole.log(load());\n"
            ),
            "src/types.d.ts": "declare const env: string;\n",
        }
    )


class TestCheck:
    def test_empty_config(self, layered: Program) -> None:
        assert check(bind({}).targets, layered) == []

    def test_target_without_files(self, layered: Program) -> None:
        targets = bind({"ghost": {"path": "src/ghost", "rules": {"noConsole": True}}}).targets
        assert check(targets, layered) == []

    def test_single_console_call(self, layered: Program) -> None:
        targets = bind({"app": {"path": "src/app", "rules": {"noConsole": True}}}).targets
        diagnostics = check(targets, layered)
        assert len(diagnostics) == 1
        diag = diagnostics[0]
        assert diag.code == 70009
        assert diag.rule == "noConsole"
        assert diag.artifact_path == "src/app/main.ts"
        assert diag.start == layered.artifacts[2].text.index("console.log")
        assert diag.length == len("console.log")

    def test_each_mutation_is_reported(self, make_program: Callable[..., Program]) -> None:
        program = make_program({"src/counter.ts": "let x = 0;\nx = 1;\nx++;\n"})
        targets = bind({"c": {"path": "src/counter.ts", "rules": {"noMutation": True}}}).targets
        diagnostics = check(targets, program)
        assert [d.code for d in diagnostics] == [70013, 70013]

    def test_rules_run_in_declared_order(self, layered: Program) -> None:
        rules = {"noIO": True, "noImports": True}
        targets = bind({"infra": {"path": "src/infra", "rules": rules}}).targets
        diagnostics = check(targets, layered)
        assert [d.rule for d in diagnostics] == ["noIO", "noImports", "noImports"]

    def test_pure_reports_under_its_own_code(self, layered: Program) -> None:
        targets = bind({"infra": {"path": "src/infra", "rules": {"pure": True}}}).targets
        diagnostics = check(targets, layered)
        assert [(d.rule, d.code) for d in diagnostics] == [("pure", 70003)]
        assert "Import of IO module: 'fs'" in diagnostics[0].message

    @pytest.mark.parametrize(("maximum", "expected"), [(2, 0), (1, 1)])
    def test_max_fan_out(self, layered: Program, maximum: int, expected: int) -> None:
        targets = bind({"infra": {"path": "src/infra", "rules": {"maxFanOut": maximum}}}).targets
        diagnostics = check(targets, layered)
        assert len(diagnostics) == expected
        if diagnostics:
            assert diagnostics[0].code == 70014
            assert diagnostics[0].start == 0

    def test_composite_runs_member_rules(self, layered: Program) -> None:
        config = {
            "layers": {
                "members": {
                    "domain": {"path": "src/domain", "rules": {"pure": True}},
                    "infra": {"path": "src/infra"},
                    "app": {"path": "src/app", "rules": {"noConsole": True}},
                },
                "rules": {"noDependency": [["domain", "infra"], ["app", "infra"]]},
            }
        }
        diagnostics = check(bind(config).targets, layered)
        assert [(d.rule, d.artifact_path) for d in diagnostics] == [
            ("noConsole", "src/app/main.ts"),
            ("noDependency", "src/app/main.ts"),
        ]

    def test_composite_level_intrinsic_rules_are_ignored(self, layered: Program) -> None:
        config = {
            "layers": {"members": {"app": {"path": "src/app"}}, "rules": {"noConsole": True}}
        }
        assert check(bind(config).targets, layered) == []

    def test_declaration_files_are_never_checked(self, layered: Program) -> None:
        targets = bind({"all": {"path": ".", "rules": {"noSideEffects": True}}}).targets
        paths = {d.artifact_path for d in check(targets, layered)}
        assert paths == {"src/app/main.ts"}


class TestCheckArtifact:
    def test_filters_to_one_file(self, layered: Program) -> None:
        rules = {"noConsole": True, "noIO": True}
        targets = bind({"all": {"path": "src", "rules": rules}}).targets
        assert [d.rule for d in check_artifact(targets, layered, "src/infra/db.ts")] == ["noIO"]
        assert check_artifact(targets, layered, "./src/domain/order.ts") == []

    def test_relational_diagnostics_found_from_the_importing_file(self, layered: Program) -> None:
        config = {
            "layers": {
                "members": {"infra": {"path": "src/infra"}, "app": {"path": "src/app"}},
                "rules": {"noDependency": [["app", "infra"]]},
            }
        }
        targets = bind(config).targets
        assert len(check_artifact(targets, layered, "src/app/main.ts")) == 1
        assert check_artifact(targets, layered, "src/infra/db.ts") == []


class TestSession:
    CONFIG = {"app": {"path": "src/app", "rules": {"noConsole": True}}}

    def test_binds_on_construction(self, layered: Program) -> None:
        session = Session(self.CONFIG, layered)
        assert [s.name for s in session.symbols] == ["app"]
        assert session.targets == session.symbols
        assert session.program is layered

    def test_check_is_memoized(self, layered: Program) -> None:
        session = Session(self.CONFIG, layered)
        first = session.check()
        first.clear()
        second = session.check()
        assert len(second) == 1
        assert second == session.check()
        assert second[0] is session.check()[0]

    def test_check_artifact(self, layered: Program) -> None:
        session = Session(self.CONFIG, layered)
        assert len(session.check_artifact("src/app/main.ts")) == 1
        assert session.check_artifact("src/infra/db.ts") == []
        assert session.check_artifact("src/types.d.ts") == []
        assert session.check_artifact("src/unknown.ts") == []
