"""PluginKit command-line interface."""

from __future__ import annotations

import json
import logging
import re
import sys
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .compiler import CompileResult, PluginCompiler
from .config import DEFAULT_CONFIG_PATH, load_target_config
from .exceptions import PluginKitError
from .models import AgentTargetStatus
from .source import DEFAULT_TEMPLATES_DIR, FilesystemSource
from .variables import parse_assignments
from .writer import write_result

app = typer.Typer(
    name="pkit",
    help="PluginKit: compile canonical agents, skills and commands into editor plugins",
    add_completion=False,
)
console = Console()

_STATUS_STYLE = {
    AgentTargetStatus.CONFIGURED: "[green]configured[/green]",
    AgentTargetStatus.DISABLED: "[yellow]disabled[/yellow]",
    AgentTargetStatus.UNCONFIGURED: "[dim]unconfigured[/dim]",
}


def _get_version_string() -> str:
    """Get version string from package metadata or pyproject.toml."""
    try:
        return get_version("pluginkit")
    except PackageNotFoundError:
        pass

    pyproject_path = Path(__file__).parent.parent.parent / "pyproject.toml"
    if pyproject_path.exists():
        content = pyproject_path.read_text(encoding="utf-8")
        match = re.search(r'version\s*=\s*["\']([^"\']+)["\']', content)
        if match:
            return f"{match.group(1)} (development)"

    return "unknown"


def _configure_logging(verbose: bool) -> None:
    """Route log records through rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def version_callback(value: bool) -> None:
    """Callback for --version flag."""
    if value:
        console.print(f"PluginKit version {_get_version_string()}")
        raise typer.Exit


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """PluginKit: compile canonical agents, skills and commands into editor plugins."""


def _load_compiler(
    project: Path,
    templates: str,
    config_path: Path | None,
    variables: list[str] | None,
) -> PluginCompiler:
    source = FilesystemSource(project, templates)
    if not source.root.is_dir():
        msg = f"Template directory not found: {source.root}"
        raise PluginKitError(msg)
    if config_path is None:
        config_path = source.root / DEFAULT_CONFIG_PATH
    config = load_target_config(config_path)
    try:
        extra = parse_assignments(variables or [])
    except ValueError as e:
        raise PluginKitError(str(e)) from e
    return PluginCompiler(source, config, variables=extra)


def _json_report(result: CompileResult) -> dict[str, object]:
    return {
        target: {
            "files": [
                {"relativePath": f.relative_path, "size": len(f.content.encode("utf-8"))}
                for f in files
            ],
            "totalFiles": len(files),
        }
        for target, files in result.files.items()
    }


def _print_dry_run(result: CompileResult) -> None:
    for target, files in result.files.items():
        table = Table(title=f"{target} ({len(files)} files)")
        table.add_column("Path", style="cyan")
        table.add_column("Bytes", justify="right", style="green")
        for generated in files:
            table.add_row(generated.relative_path, str(len(generated.content.encode("utf-8"))))
        console.print(table)


@app.command()
def build(
    project: Path = typer.Option(
        Path.cwd(),
        "--project",
        "-p",
        help="Project root containing the template directory",
        file_okay=False,
        dir_okay=True,
    ),
    templates: str = typer.Option(
        DEFAULT_TEMPLATES_DIR,
        "--templates",
        help="Template directory, relative to the project root",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help=f"Target configuration (defaults to <templates>/{DEFAULT_CONFIG_PATH})",
    ),
    target: list[str] | None = typer.Option(
        None,
        "--target",
        "-t",
        help="Target to compile (can be repeated; defaults to all)",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Output root; each target is written to <output>/<target>/",
    ),
    var: list[str] | None = typer.Option(
        None,
        "--var",
        help="Extra composition variable as KEY=VALUE (can be repeated)",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="List generated files without writing them",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print the generated file list as JSON",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Compile the template tree into one plugin tree per target."""
    _configure_logging(verbose)

    if output is None and not (dry_run or json_output):
        console.print("[red]Error:[/red] --output is required unless --dry-run or --json is set")
        raise typer.Exit(1)

    try:
        compiler = _load_compiler(project, templates, config, var)
        result = compiler.compile(target or None)

        if json_output:
            typer.echo(json.dumps(_json_report(result), indent=2, ensure_ascii=False))
        elif dry_run:
            console.print("[bold blue]Dry run - generated files:[/bold blue]")
            _print_dry_run(result)

        if dry_run or output is None:
            return

        written = write_result(result, output)
        if not json_output:
            for name, paths in written.items():
                console.print(
                    f"[green]✓[/green] {name}: {len(paths)} files written to {output / name}",
                )

    except PluginKitError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e


@app.command()
def status(
    project: Path = typer.Option(
        Path.cwd(),
        "--project",
        "-p",
        help="Project root containing the template directory",
    ),
    templates: str = typer.Option(
        DEFAULT_TEMPLATES_DIR,
        "--templates",
        help="Template directory, relative to the project root",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Target configuration file",
    ),
) -> None:
    """Show how each agent is configured for each target."""
    _configure_logging(False)
    try:
        compiler = _load_compiler(project, templates, config, None)
        rows = compiler.agent_report()

        table = Table(title="PluginKit Agent Status")
        table.add_column("Agent", style="cyan")
        table.add_column("Kind")
        for target_name in compiler.adapters:
            table.add_column(target_name)

        for row in rows:
            kind = "composable" if row.composable else "single-file"
            table.add_row(
                row.name,
                kind,
                *(_STATUS_STYLE[row.statuses[name]] for name in compiler.adapters),
            )

        console.print(table)
        if not rows:
            console.print("[yellow]Warning:[/yellow] No agents found")

    except PluginKitError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e


@app.command()
def version() -> None:
    """Show PluginKit version information."""
    console.print(f"PluginKit version {_get_version_string()}")


def main() -> None:
    """Entry point for the CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
