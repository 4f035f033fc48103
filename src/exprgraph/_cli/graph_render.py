"""Rich rendering utilities for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from .graph_query import NodeKind

if TYPE_CHECKING:
    from collections.abc import Mapping

    from rich.console import Console

    from exprgraph._errors import EngineError, ErrorRecord

    from .graph_query import TreeNode, ValueUsage


def render_results_table(results: Mapping[str, float], expressions: Mapping[str, str], console: Console) -> None:
    """Render computed results as a Rich table.

    Args:
        results: Mapping from expression identifier to value.
        expressions: Source text of each expression.
        console: Rich Console to output to.

    """
    if not results:
        console.print("[dim]No expressions registered[/dim]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Expression", style="bold")
    table.add_column("Source", style="dim")
    table.add_column("Value", justify="right")

    for identifier in sorted(results):
        table.add_row(escape(identifier), escape(expressions.get(identifier, "")), f"{results[identifier]:.12g}")

    console.print(table)


def render_usage_table(usages: list[ValueUsage], console: Console) -> None:
    """Render value reference counts as a Rich table.

    Args:
        usages: List of ValueUsage to render.
        console: Rich Console to output to.

    """
    if not usages:
        console.print("[dim]No values registered[/dim]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Value", style="bold")
    table.add_column("Number", justify="right")
    table.add_column("References", justify="right")

    for usage in usages:
        count = str(usage.count) if usage.count else "[yellow]0 (unused)[/yellow]"
        table.add_row(escape(usage.identifier), f"{usage.value:.12g}", count)

    console.print(table)


def render_engine_error(error: EngineError, console: Console) -> None:
    """Render every record of an aggregate engine error."""
    console.print(f"[red]✗ {error.kind.label} error ({len(error.records)} problem(s)):[/red]")
    for record in error.records:
        console.print(f"  [red]•[/red] {_format_record(record)}")


def _format_record(record: ErrorRecord) -> str:
    text = f"[bold]{record.kind.label}[/bold]: {escape(record.message)}"
    if record.identifier is not None and record.source is not None:
        text += f"\n    [dim]expression[{record.expression_index}] {escape(record.identifier)} = {escape(record.source)}[/dim]"
        if record.position is not None:
            # Caret under the offending token, aligned with the source above
            prefix = f"expression[{record.expression_index}] {record.identifier} = "
            text += f"\n    {' ' * (len(prefix) + record.position)}[red]^[/red]"
    return text


def render_tree(tree_node: TreeNode, console: Console) -> None:
    """Render a dependency tree using Rich Tree.

    Args:
        tree_node: TreeNode root to render.
        console: Rich Console to output to.

    """
    rich_tree = Tree(_format_node(tree_node, root=True))
    _add_tree_children(rich_tree, tree_node.children)
    console.print(rich_tree)


def _add_tree_children(parent: Tree, children: list[TreeNode]) -> None:
    """Recursively add children to a Rich Tree.

    Args:
        parent: Parent Tree node to add children to.
        children: List of TreeNode children.

    """
    for child in children:
        child_tree = parent.add(_format_node(child))
        _add_tree_children(child_tree, child.children)


def _format_node(node: TreeNode, *, root: bool = False) -> str:
    style = _get_kind_style(node.kind)
    name = f"[bold]{escape(node.identifier)}[/bold]" if root else escape(node.identifier)
    text = f"{name} [{style}]{node.kind.upper()}[/{style}]"
    if node.source is not None:
        text += f" [dim]= {escape(node.source)}[/dim]"
    if node.cyclic:
        text += " [red](cycle)[/red]"
    return text


def _get_kind_style(kind: NodeKind) -> str:
    """Get Rich style string for a node kind.

    Args:
        kind: The NodeKind.

    Returns:
        Rich style string.

    """
    match kind:
        case NodeKind.EXPRESSION:
            return "green"
        case NodeKind.VALUE:
            return "blue"
        case NodeKind.CONSTANT:
            return "cyan"
        case NodeKind.UNKNOWN:
            return "red"
