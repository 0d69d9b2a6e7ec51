"""BigIF CLI - typer application entry point."""

from __future__ import annotations

import atexit
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.table import Table

from bigif.errors import CompileError, ConfigError, StructuralError
from bigif.observability import close_file_logging, configure_logging, get_logger

if TYPE_CHECKING:
    from bigif.config import CompileConfig
    from bigif.models.story import StoryGraph

# Load environment variables from .env file
load_dotenv()

app = typer.Typer(
    name="bigif",
    help="BigIF: compile branching story scripts into graphs of reachable states.",
    no_args_is_help=True,
)
console = Console()
log = get_logger(__name__)

VIZ_FORMATS = ("dot", "mermaid")

# Global state for logging flags (set by callback, used by commands)
_verbose: int = 0
_log_enabled: bool = False


@app.callback()
def main(
    verbose: Annotated[
        int,
        typer.Option(
            "-v",
            "--verbose",
            count=True,
            help="Increase verbosity: -v for INFO, -vv for DEBUG.",
        ),
    ] = 0,
    log_file: Annotated[
        bool,
        typer.Option(
            "--log",
            help="Enable file logging to logs/debug.jsonl next to the script.",
        ),
    ] = False,
) -> None:
    """BigIF: compile branching story scripts into graphs of reachable states."""
    global _verbose, _log_enabled
    _verbose = verbose
    _log_enabled = log_file

    # File logging is configured later, once the script location is known
    configure_logging(verbosity=verbose)


def _configure_script_logging(script_path: Path) -> None:
    """Configure file logging beside the script if --log was set."""
    if _log_enabled:
        configure_logging(
            verbosity=_verbose,
            log_to_file=True,
            log_dir=script_path.parent / "logs",
        )
        atexit.register(close_file_logging)


def _read_script(script_path: Path) -> str:
    """Read a script file or exit with an error message."""
    if not script_path.is_file():
        console.print(f"[red]Error:[/red] Script '{script_path}' not found")
        raise typer.Exit(1)
    _configure_script_logging(script_path)
    return script_path.read_text(encoding="utf-8")


def _load_config(
    script_path: Path,
    config_path: Path | None,
    entry: str | None,
) -> CompileConfig:
    """Resolve configuration: --config, else bigif.yaml beside the script."""
    from bigif.config import find_config, load_compile_config

    try:
        cfg = load_compile_config(config_path or find_config(script_path))
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    if entry:
        cfg.entry_knot = entry
    return cfg


def _report_compile_error(error: CompileError) -> None:
    """Print a compile error, with author feedback for structural errors."""
    log.debug("compile_failed", stage=error.stage, error=str(error))
    console.print(f"[red]Error ({error.stage}):[/red] {escape(str(error))}")
    if isinstance(error, StructuralError):
        console.print()
        console.print(Markdown(error.to_feedback()))


def _compile_or_exit(text: str, cfg: CompileConfig) -> StoryGraph:
    from bigif.compiler import compile_script

    try:
        return compile_script(
            text,
            entry=cfg.entry_knot,
            validate=cfg.validate,
            metadata_defaults=cfg.metadata_defaults,
        )
    except CompileError as e:
        _report_compile_error(e)
        raise typer.Exit(1) from e


# =============================================================================
# Commands
# =============================================================================


@app.command()
def version() -> None:
    """Show version information."""
    from bigif import __version__

    console.print(f"BigIF v{__version__}")


@app.command("compile")
def compile_command(
    script: Annotated[Path, typer.Argument(help="Script file to compile")],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Output directory (default: build/)."),
    ] = None,
    format_name: Annotated[
        str | None,
        typer.Option("--format", "-f", help="Output format: json or twee."),
    ] = None,
    to_stdout: Annotated[
        bool,
        typer.Option("--stdout", help="Print the artifact instead of writing a file."),
    ] = False,
    entry: Annotated[
        str | None,
        typer.Option("--entry", help="Name of the starting knot (default: index)."),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Config file (default: bigif.yaml beside script)."),
    ] = None,
    no_validate: Annotated[
        bool,
        typer.Option("--no-validate", help="Skip post-build invariant checks."),
    ] = False,
) -> None:
    """Compile a script into its graph of reachable story states."""
    from bigif.export import get_exporter, render_json, render_twee

    text = _read_script(script)
    cfg = _load_config(script, config, entry)
    if format_name:
        cfg.output_format = format_name
    if output is not None:
        cfg.output_dir = output
    if no_validate:
        cfg.validate = False

    try:
        exporter = get_exporter(cfg.output_format)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    graph = _compile_or_exit(text, cfg)

    if to_stdout:
        rendered = render_json(graph) if exporter.format_name == "json" else render_twee(graph)
        typer.echo(rendered)
        return

    output_file = exporter.export(graph, cfg.output_dir)
    console.print(
        f"[green]✓[/green] Compiled [bold]{script.name}[/bold]: "
        f"{len(graph.nodes)} nodes, {graph.edge_count} edges"
    )
    console.print(f"  Output: {output_file}")


@app.command()
def check(
    script: Annotated[Path, typer.Argument(help="Script file to check")],
    entry: Annotated[
        str | None,
        typer.Option("--entry", help="Name of the starting knot (default: index)."),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Config file (default: bigif.yaml beside script)."),
    ] = None,
) -> None:
    """Compile a script and report reachability statistics and invariants."""
    from bigif.graph.builder import build_story_graph
    from bigif.inspection import inspect_graph
    from bigif.parser import parse_script

    text = _read_script(script)
    cfg = _load_config(script, config, entry)

    try:
        parsed = parse_script(text)
        graph = build_story_graph(parsed, entry=cfg.entry_knot)
    except CompileError as e:
        _report_compile_error(e)
        raise typer.Exit(1) from e

    summary = inspect_graph(parsed, graph)

    table = Table(title=f"Story Graph: {summary.title or script.name}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="bold", justify="right")
    table.add_row("Knots", str(summary.knot_count))
    table.add_row("Variables", str(summary.variable_count))
    table.add_row("Reachable nodes", str(summary.node_count))
    table.add_row("Edges", str(summary.edge_count))
    table.add_row("Ending nodes", str(len(summary.ending_nodes)))
    table.add_row("Max states per knot", str(summary.max_states_per_knot))

    console.print()
    console.print(table)
    console.print()

    for name in summary.unreachable_knots:
        console.print(f"  [yellow]![/yellow] Knot '{escape(name)}' is never reached")
    for node_id in summary.dead_ends:
        console.print(f"  [yellow]![/yellow] Dead end without END: {escape(node_id)}")

    status_icons = {
        "pass": "[green]✓[/green]",
        "warn": "[yellow]![/yellow]",
        "fail": "[red]✗[/red]",
    }
    for c in summary.report.checks:
        console.print(f"  {status_icons[c.severity]} {c.name}: {escape(c.message)}")

    console.print()
    console.print(f"Checks: {summary.report.summary}")
    if summary.report.has_failures:
        raise typer.Exit(1)


@app.command()
def visualize(
    script: Annotated[Path, typer.Argument(help="Script file to visualize")],
    format_name: Annotated[
        str,
        typer.Option("--format", "-f", help="Markup format: dot or mermaid."),
    ] = "dot",
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write markup to this file instead of stdout."),
    ] = None,
    no_labels: Annotated[
        bool,
        typer.Option("--no-labels", help="Omit choice labels on edges."),
    ] = False,
    collapse: Annotated[
        bool,
        typer.Option("--collapse", help="Draw one node per knot instead of per state."),
    ] = False,
    entry: Annotated[
        str | None,
        typer.Option("--entry", help="Name of the starting knot (default: index)."),
    ] = None,
) -> None:
    """Render the compiled story graph as DOT or Mermaid markup."""
    from bigif.visualization import build_viz_graph, render_dot, render_mermaid

    if format_name not in VIZ_FORMATS:
        console.print(
            f"[red]Error:[/red] Unknown format '{format_name}'. "
            f"Supported: {', '.join(VIZ_FORMATS)}"
        )
        raise typer.Exit(1)

    text = _read_script(script)
    cfg = _load_config(script, None, entry)
    graph = _compile_or_exit(text, cfg)

    vg = build_viz_graph(graph, collapse_states=collapse)
    render = render_dot if format_name == "dot" else render_mermaid
    markup = render(vg, no_labels=no_labels)

    if output is None:
        typer.echo(markup)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(markup + "\n", encoding="utf-8")
    console.print(f"[green]✓[/green] Wrote {format_name} markup to {output}")


if __name__ == "__main__":
    app()
