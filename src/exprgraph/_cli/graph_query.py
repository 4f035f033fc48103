"""Dependency query functions for CLI commands.

This module provides pure functions for inspecting an engine's registrations.
These are the functional core - no I/O, no Rich rendering.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum, auto
from typing import TYPE_CHECKING

from exprgraph._parser import RESERVED_CONSTANTS, extract_identifiers

if TYPE_CHECKING:
    from exprgraph._engine import ExpressionEngine


class NodeKind(StrEnum):
    """What an identifier refers to."""

    EXPRESSION = auto()
    VALUE = auto()
    CONSTANT = auto()  # pi, e
    UNKNOWN = auto()  # Referenced but never registered


@dataclass(slots=True)
class TreeNode:
    """A node in a dependency tree for rendering."""

    identifier: str
    kind: NodeKind
    children: list[TreeNode]
    source: str | None = None
    cyclic: bool = False  # Already on the path from the root


@dataclass(frozen=True, slots=True)
class ValueUsage:
    """How often a registered value is referenced."""

    identifier: str
    value: float
    count: int


def classify(engine: ExpressionEngine, identifier: str) -> NodeKind:
    """Tell what an identifier refers to in an engine."""
    if identifier in engine.expressions:
        return NodeKind.EXPRESSION
    if identifier in engine.values:
        return NodeKind.VALUE
    if identifier in RESERVED_CONSTANTS:
        return NodeKind.CONSTANT
    return NodeKind.UNKNOWN


def _unique(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


def get_dependency_tree(engine: ExpressionEngine, identifier: str) -> TreeNode:
    """Build the tree of everything an identifier depends on.

    Expressions are expanded into the identifiers they reference. A
    reference back to an identifier already on the path is marked cyclic
    and not expanded again.

    Raises:
        KeyError: If the identifier is neither an expression nor a value.
        exprgraph.LexicalError: If an expression in the tree contains an invalid token.

    """
    expressions = engine.expressions
    kind = classify(engine, identifier)
    if kind not in (NodeKind.EXPRESSION, NodeKind.VALUE):
        msg = f"'{identifier}' is not a registered expression or value"
        raise KeyError(msg)

    def build(current: str, path: frozenset[str]) -> TreeNode:
        current_kind = classify(engine, current)
        if current_kind is not NodeKind.EXPRESSION:
            return TreeNode(identifier=current, kind=current_kind, children=[])
        if current in path:
            return TreeNode(identifier=current, kind=current_kind, children=[], cyclic=True)
        source = expressions[current]
        children = [build(child, path | {current}) for child in _unique(extract_identifiers(source))]
        return TreeNode(identifier=current, kind=current_kind, children=children, source=source)

    return build(identifier, frozenset())


def get_value_usage(engine: ExpressionEngine) -> list[ValueUsage]:
    """List every registered value with its reference count, sorted by identifier."""
    values = engine.values
    return [
        ValueUsage(identifier=identifier, value=values[identifier], count=count)
        for identifier, count in engine.get_id_count().items()
    ]

