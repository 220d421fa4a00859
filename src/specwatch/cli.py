"""SpecWatch CLI - Command-line interface.

Usage:
    specwatch diff <old-spec> <new-spec> [--name NAME] [--json]
"""

import asyncio
import logging

import httpx
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from specwatch.config import Settings
from specwatch.types import ChangeSet, ChangeType, Severity

console = Console()
err_console = Console(stderr=True)
app = typer.Typer(
    name="specwatch",
    help="Detect and classify changes between versions of an OpenAPI spec",
    no_args_is_help=True,
)

SEVERITY_COLORS: dict[Severity, str] = {
    Severity.CRITICAL: "red",
    Severity.HIGH: "magenta",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "green",
}

CHANGE_TYPE_COLORS: dict[ChangeType, str] = {
    ChangeType.BREAKING: "red",
    ChangeType.DEPRECATION: "yellow",
    ChangeType.ADDITION: "blue",
    ChangeType.NON_BREAKING: "green",
}


def setup_logging(verbose: bool = False, level_name: str = "INFO") -> None:
    """Set up logging with rich handler."""
    level = logging.DEBUG if verbose else logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_time=False, show_path=False)],
    )
    logging.getLogger("specwatch").setLevel(level)

    # Quiet down httpx
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


@app.command()
def diff(
    old_spec: str = typer.Argument(..., help="Previous spec: file path or http(s) URL"),
    new_spec: str = typer.Argument(..., help="New spec: file path or http(s) URL"),
    name: str = typer.Option(
        None,
        "--name",
        "-n",
        help="API name used in the summary (defaults to the spec title)",
    ),
    api_id: str = typer.Option(
        "cli",
        "--api-id",
        help="Identifier recorded in the change set",
    ),
    output_json: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output the change set as JSON",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """Diff two spec versions. Exits 1 when the change is breaking."""
    from specwatch.modules.openapi_parser import load_spec_source
    from specwatch.modules.pipeline import analyze_specs
    from specwatch.modules.spec_normalizer import InvalidSpecError

    try:
        settings = Settings.from_env()
    except ValueError as e:
        console.print(f"[red]Invalid configuration:[/red] {escape(str(e))}")
        raise typer.Exit(2)

    setup_logging(verbose=verbose, level_name=settings.log_level)

    try:
        old_doc = asyncio.run(load_spec_source(old_spec, timeout=settings.fetch_timeout))
        new_doc = asyncio.run(load_spec_source(new_spec, timeout=settings.fetch_timeout))
        change_set = analyze_specs(api_id, old_doc, new_doc, api_name=name, settings=settings)
    except (InvalidSpecError, OSError, httpx.HTTPError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(2)

    if output_json:
        _output_json(change_set)
    else:
        _output_rich(change_set)

    if change_set.is_breaking:
        raise typer.Exit(1)


def _output_json(change_set: ChangeSet) -> None:
    """Output change set as JSON."""
    print(change_set.model_dump_json(indent=2))


def _output_rich(change_set: ChangeSet) -> None:
    """Output change set with rich formatting."""
    if not change_set.has_changes:
        console.print(Panel(
            f"[green]✓ {escape(change_set.summary)}[/green]",
            title="Result",
            border_style="green",
        ))
        return

    color = CHANGE_TYPE_COLORS.get(change_set.change_type, "white")
    console.print(Panel(
        f"[{color}]{change_set.change_type.value.upper()}[/{color}]\n\n"
        f"Severity: {change_set.severity.value}\n"
        f"Impact score: {change_set.impact_score}/100\n\n"
        f"{escape(change_set.summary)}",
        title=f"v{change_set.from_version} → v{change_set.to_version}",
        border_style=color,
    ))

    table = Table(title=f"Changes ({len(change_set.changes)})")
    table.add_column("Severity")
    table.add_column("Type")
    table.add_column("Path")
    table.add_column("Description")

    for change in change_set.changes:
        severity_color = SEVERITY_COLORS.get(change.severity, "white")
        table.add_row(
            f"[{severity_color}]{change.severity.value}[/{severity_color}]",
            change.change_type.value,
            escape(change.path),
            escape(change.description[:80] + "..." if len(change.description) > 80 else change.description),
        )

    console.print(table)


@app.command()
def version() -> None:
    """Show version information."""
    from specwatch import __version__
    console.print(f"specwatch version {__version__}")


if __name__ == "__main__":
    app()
