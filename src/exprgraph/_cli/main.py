import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from exprgraph._engine import EngineOptions, ExpressionEngine
from exprgraph._errors import EngineError, ExpressionError
from exprgraph._io import DocumentError, build_engine, export_results, load_document
from exprgraph._parser import evaluate_expression

from .config import ConfigError, ExprgraphConfig, get_config
from .graph_query import get_dependency_tree, get_value_usage
from .graph_render import render_engine_error, render_results_table, render_tree, render_usage_table

app = typer.Typer()

logger = logging.getLogger(__name__)
# Progress, diagnostics and logs
err_console = Console(stderr=True)
# Results
out_console = Console()

InputArgument = Annotated[
    Path | None,
    typer.Argument(help="Path to input TOML file (defaults to the configured input)"),
]


@app.callback()
def callback(
    *,
    verbose: bool = typer.Option(default=False, help="Enable verbose output"),
) -> None:
    """Evaluate named expressions that depend on each other."""
    log_level = logging.DEBUG if verbose else logging.INFO

    # Logs share stderr with progress messages
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=err_console,
                show_time=False,
                show_path=verbose,
                rich_tracebacks=True,
            ),
        ],
    )


def _load_config() -> ExprgraphConfig:
    try:
        return get_config()
    except ConfigError as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e


def _engine_options(config: ExprgraphConfig) -> EngineOptions:
    if config.max_depth is None:
        return EngineOptions()
    return EngineOptions(max_depth=config.max_depth)


def _load_engine(input_path: Path | None, config: ExprgraphConfig) -> ExpressionEngine:
    """Build an engine from the input file given on the command line or in the config."""
    path = input_path or config.input
    if path is None:
        err_console.print("[red]Error: No input file given and none configured in pyproject.toml[/red]")
        raise typer.Exit(code=1)

    err_console.print(f"[cyan]Loading input from:[/cyan] {path}")
    try:
        document = load_document(path)
        engine = build_engine(document, _engine_options(config))
    except DocumentError as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e
    except ExpressionError as e:
        err_console.print(f"[red]Error: {escape(e.message)}[/red]")
        raise typer.Exit(code=1) from e

    logger.debug("Engine has %d value(s) and %d expression(s)", len(engine.values), len(engine.expressions))
    return engine


@app.command()
def calc(
    input: InputArgument = None,  # noqa: A002
    *,
    output: Annotated[
        Path | None,
        typer.Option("-o", "--output", help="Path to output TOML file (defaults to the configured output)"),
    ] = None,
) -> None:
    """Evaluate every expression of an input file and print the results."""
    err_console.print()
    config = _load_config()
    engine = _load_engine(input, config)

    err_console.print("[cyan]Evaluating expressions...[/cyan]")
    try:
        results = engine.evaluate()
    except EngineError as e:
        err_console.print()
        render_engine_error(e, err_console)
        err_console.print()
        raise typer.Exit(code=1) from e
    err_console.print()

    render_results_table(results, engine.expressions, out_console)

    output_path = output or config.output
    if output_path is not None:
        err_console.print()
        err_console.print(f"[cyan]Exporting results to:[/cyan] {output_path}")
        export_results(results, output_path)

    err_console.print()
    err_console.print("[green]✓ Calculation complete[/green]")
    err_console.print()


@app.command()
def check(input: InputArgument = None) -> None:  # noqa: A002
    """Check references and dependency cycles without evaluating."""
    err_console.print()
    config = _load_config()
    engine = _load_engine(input, config)

    err_console.print("[cyan]Validating dependencies...[/cyan]")
    graph, validation = engine.validate()
    try:
        validation.raise_for_errors()
    except EngineError as e:
        render_engine_error(e, err_console)
        raise typer.Exit(code=1) from e
    err_console.print()

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Expressions", justify="right", style="green")
    table.add_column("Values", justify="right", style="blue")
    table.add_column("Dependencies", justify="right", style="yellow")
    n_edges = sum(len(graph.dependencies(vertex)) for vertex in graph.vertices)
    table.add_row(str(len(graph)), str(len(engine.values)), str(n_edges))

    err_console.print(Panel(table, title="[bold]Dependency graph[/bold]", border_style="cyan"))
    err_console.print()
    err_console.print("[green]✓ Expressions are valid[/green]")
    err_console.print()


@app.command()
def usage(input: InputArgument = None) -> None:  # noqa: A002
    """Show how often each value is referenced by expressions."""
    config = _load_config()
    engine = _load_engine(input, config)
    err_console.print()
    render_usage_table(get_value_usage(engine), out_console)

    unique_ids = engine.get_unique_ids()
    err_console.print()
    err_console.print(f"[dim]{len(unique_ids)} of {len(engine.values)} value(s) referenced[/dim]")


@app.command()
def tree(
    identifier: Annotated[str, typer.Argument(help="Expression or value to show the dependencies of")],
    input: InputArgument = None,  # noqa: A002
) -> None:
    """Show the dependency tree of one expression."""
    config = _load_config()
    engine = _load_engine(input, config)
    err_console.print()
    try:
        root = get_dependency_tree(engine, identifier)
    except KeyError as e:
        err_console.print(f"[red]Error: '{escape(identifier)}' is not a registered expression or value[/red]")
        raise typer.Exit(code=1) from e
    except ExpressionError as e:
        err_console.print(f"[red]Error: {escape(e.message)}[/red]")
        raise typer.Exit(code=1) from e
    render_tree(root, out_console)


def _parse_assignment(text: str) -> tuple[str, float]:
    name, sep, value = text.partition("=")
    if not sep or not name.strip():
        msg = f"Expected NAME=NUMBER, got '{text}'"
        raise typer.BadParameter(msg)
    try:
        return name.strip(), float(value)
    except ValueError as e:
        msg = f"'{value}' is not a number"
        raise typer.BadParameter(msg) from e


@app.command(name="eval")
def eval_(
    text: Annotated[str, typer.Argument(help="Expression to evaluate, e.g. 'a1 * 2 + sqrt(b)'")],
    *,
    assignments: Annotated[
        list[str] | None,
        typer.Option("--set", "-s", help="Symbol value as NAME=NUMBER (repeatable)"),
    ] = None,
) -> None:
    """Evaluate a single expression."""
    config = _load_config()
    symbols = dict(_parse_assignment(item) for item in assignments or [])
    try:
        value = evaluate_expression(text, symbols, max_depth=_engine_options(config).max_depth)
    except ExpressionError as e:
        err_console.print(f"[red]{e.kind.label} error: {escape(e.message)}[/red]")
        raise typer.Exit(code=1) from e
    out_console.print(f"{value:.12g}")


def main() -> None:
    app()
