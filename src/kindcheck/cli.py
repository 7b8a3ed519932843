"""kindcheck CLI entry point."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click

from kindcheck import __version__


@click.group()
@click.version_option(version=__version__, prog_name="kindcheck")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """kindcheck - architectural rules checker for TypeScript projects."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    elif quiet:
        logging.basicConfig(level=logging.ERROR)


_PROJECT_OPTION = click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
_CONFIG_OPTION = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to kindcheck.yml (default: <project>/kindcheck.yml).",
)


@main.command()
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "json", "porcelain"]),
    default=None,
    help="Output format (default: rich on a TTY, porcelain otherwise).",
)
@click.option("--strict", is_flag=True, help="Exit with code 1 when violations are found.")
@_CONFIG_OPTION
@_PROJECT_OPTION
def check(
    *,
    fmt: str | None,
    strict: bool,
    config_path: Path | None,
    project: Path | None,
) -> None:
    """Check the project against the rules in kindcheck.yml.

    Exit codes: 0 = clean or violations without --strict,
    1 = violations with --strict, 2 = configuration error.
    """
    from kindcheck.linter import KindCheckError, format_json, format_porcelain, format_rich
    from kindcheck.linter import run as run_check

    project_root = project or Path.cwd()

    # Resolve output format: explicit flag > TTY detection.
    if fmt is None:
        fmt = "rich" if sys.stdout.isatty() else "porcelain"

    try:
        result = run_check(project_root, config_path=config_path)
    except KindCheckError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    if fmt == "rich":
        output = format_rich(result)
    elif fmt == "json":
        output = format_json(result)
    else:
        output = format_porcelain(result)
    if output:
        click.echo(output)

    if strict and result.diagnostics:
        sys.exit(1)


@main.command()
@click.option("--json", "output_json", is_flag=True, help="Output as JSON.")
@_CONFIG_OPTION
@_PROJECT_OPTION
def symbols(*, output_json: bool, config_path: Path | None, project: Path | None) -> None:
    """Show the bound symbols and how many files each one governs."""
    from kindcheck.checker import resolve_artifacts
    from kindcheck.linter import KindCheckError, open_session

    project_root = project or Path.cwd()
    try:
        session = open_session(project_root, config_path=config_path)
    except KindCheckError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    if session is None:
        click.echo("No kindcheck.yml found.", err=True)
        sys.exit(2)

    rows: list[dict[str, object]] = []
    for sym in session.symbols:
        row: dict[str, object] = {
            "id": sym.id,
            "name": sym.name,
            "valueKind": sym.value_kind,
            "rules": {k: list(v) if isinstance(v, tuple) else v for k, v in sym.rules.items()},
        }
        if sym.is_composite:
            row["members"] = list(sym.members)
        else:
            row["path"] = sym.path
            row["files"] = len(resolve_artifacts(sym, session.program.artifacts))
        rows.append(row)

    if output_json:
        click.echo(json.dumps(rows, ensure_ascii=False, indent=2))
        return

    from rich.console import Console
    from rich.table import Table

    console = Console()
    table = Table(title=f"Symbols ({len(rows)})")
    table.add_column("id", style="dim")
    table.add_column("name", style="cyan")
    table.add_column("kind")
    table.add_column("path / members")
    table.add_column("files", justify="right")
    table.add_column("rules")

    for row in rows:
        rules = row["rules"]
        assert isinstance(rules, dict)
        members = row.get("members")
        target = ", ".join(members) if isinstance(members, list) else str(row["path"])
        table.add_row(
            str(row["id"]),
            str(row["name"]),
            str(row["valueKind"]),
            target,
            str(row.get("files", "")),
            ", ".join(sorted(rules)),
        )

    console.print(table)
