"""PLC semantic analyzer CLI."""

from __future__ import annotations

from pathlib import Path

import click

from plc import __version__
from plc.analyzer import Analysis, Analyzer
from plc.ast_nodes import Node
from plc.config import ConfigError, PlcConfig, find_config, load_config
from plc.errors import AnalysisError, DiagnosticRenderer
from plc.loader import TreeFormatError, dump_tree, load_file
from plc.types import TypeCatalog


def _project_config(target: Path) -> PlcConfig:
    """Load the nearest plc.toml, or defaults when there is none."""
    try:
        config_path = find_config(target)
    except FileNotFoundError:
        return PlcConfig()
    try:
        return load_config(config_path)
    except ConfigError as e:
        click.echo(f"error: {e}", err=True)
        raise SystemExit(1)


def _catalog(config: PlcConfig, renderer: DiagnosticRenderer) -> TypeCatalog:
    try:
        return config.build_catalog()
    except AnalysisError as e:
        click.echo(renderer.render(e.to_diagnostic("plc.toml")), err=True)
        raise SystemExit(1)


def _tree_files(target: Path, config: PlcConfig) -> list[Path]:
    if target.is_file():
        return [target]
    src_dir = target / config.check.sources
    if not src_dir.is_dir():
        src_dir = target  # fallback to the given directory
    return sorted(src_dir.rglob("*.json"))


def _analyze_file(tree_file: Path, catalog: TypeCatalog) -> tuple[Node, Analysis]:
    node = load_file(tree_file)
    return node, Analyzer(catalog=catalog).analyze(node)


@click.group()
@click.version_option(__version__, prog_name="plc")
def main() -> None:
    """Semantic analyzer for the PLC language."""


@main.command()
@click.argument("path", default=".", type=click.Path(exists=True))
@click.option("--no-color", is_flag=True, help="Render diagnostics without ANSI colors.")
def check(path: str, no_color: bool) -> None:
    """Type-check syntax trees without running them."""
    target = Path(path)
    config = _project_config(target)
    renderer = DiagnosticRenderer(color=config.check.color and not no_color)
    catalog = _catalog(config, renderer)

    tree_files = _tree_files(target, config)
    if not tree_files:
        click.echo("warning: no .json syntax trees found", err=True)
        return

    click.echo(f"checking {config.package.name}...")
    failed = 0
    for tree_file in tree_files:
        try:
            _, analysis = _analyze_file(tree_file, catalog)
        except TreeFormatError as e:
            click.echo(f"error: {tree_file}: {e}", err=True)
            failed += 1
            continue
        if analysis.error is not None:
            click.echo(renderer.render(analysis.error.to_diagnostic(str(tree_file))), err=True)
            failed += 1

    if failed:
        click.echo(f"{failed} of {len(tree_files)} tree(s) failed to check", err=True)
        raise SystemExit(1)
    click.echo(f"checked {config.package.name}: {len(tree_files)} tree(s), no errors")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--no-color", is_flag=True, help="Render diagnostics without ANSI colors.")
def view(file: str, no_color: bool) -> None:
    """Show a syntax tree annotated with resolved types and bindings."""
    tree_file = Path(file)
    config = _project_config(tree_file)
    renderer = DiagnosticRenderer(color=config.check.color and not no_color)
    catalog = _catalog(config, renderer)

    try:
        node, analysis = _analyze_file(tree_file, catalog)
    except TreeFormatError as e:
        click.echo(f"error: {tree_file}: {e}", err=True)
        raise SystemExit(1)

    if analysis.error is not None:
        click.echo(renderer.render(analysis.error.to_diagnostic(str(tree_file))), err=True)
        raise SystemExit(1)

    click.echo(dump_tree(node, analysis.resolutions))
