"""Dependency graph over expression identifiers."""

from __future__ import annotations

from collections.abc import Hashable
from typing import TYPE_CHECKING, Generic, TypeVar

from ._algorithms import find_cycles, topological_sort

if TYPE_CHECKING:
    from collections.abc import Iterable

T = TypeVar("T", bound=Hashable)


class DependencyGraph(Generic[T]):
    """A directed graph representing "depends on" relations between nodes.

    The vertex set is fixed at construction and each vertex gets the integer
    position it had in `vertices`. Edges are added one at a time:
    `add_edge(a, b)` means "a depends on b, b must be computed first".

    Example:
        >>> graph = DependencyGraph(["a2", "a3"])
        >>> graph.add_edge("a3", "a2")
        >>> graph.topological_order()
        ['a2', 'a3']

    """

    def __init__(self, vertices: Iterable[T]) -> None:
        self._vertices: list[T] = []
        self._index: dict[T, int] = {}
        for vertex in vertices:
            if vertex in self._index:
                msg = f"Duplicate vertex '{vertex}'"
                raise ValueError(msg)
            self._index[vertex] = len(self._vertices)
            self._vertices.append(vertex)
        self._adjacency: list[list[int]] = [[] for _ in self._vertices]

    @property
    def vertices(self) -> list[T]:
        """All vertices, in index order."""
        return list(self._vertices)

    def index_of(self, vertex: T) -> int:
        """Get the fixed integer position of a vertex.

        Raises:
            KeyError: If the vertex is not in the graph.

        """
        try:
            return self._index[vertex]
        except KeyError:
            msg = f"Unknown vertex '{vertex}'"
            raise KeyError(msg) from None

    def add_edge(self, source: T, target: T) -> None:
        """Record that `source` depends on `target`. Repeated edges are ignored."""
        v = self.index_of(source)
        w = self.index_of(target)
        if w not in self._adjacency[v]:
            self._adjacency[v].append(w)

    def dependencies(self, vertex: T) -> list[T]:
        """Get the direct dependencies of a vertex, in insertion order."""
        return [self._vertices[w] for w in self._adjacency[self.index_of(vertex)]]

    def dependents(self, vertex: T) -> list[T]:
        """Get the vertices that directly depend on a vertex, in index order."""
        w = self.index_of(vertex)
        return [self._vertices[v] for v, targets in enumerate(self._adjacency) if w in targets]

    def ancestors(self, vertex: T) -> frozenset[T]:
        """Get all transitive dependencies of a vertex."""
        visited: set[int] = set()
        stack = list(self._adjacency[self.index_of(vertex)])
        while stack:
            current = stack.pop()
            if current not in visited:
                visited.add(current)
                stack.extend(self._adjacency[current])
        return frozenset(self._vertices[v] for v in visited)

    def descendants(self, vertex: T) -> frozenset[T]:
        """Get all vertices that transitively depend on a vertex."""
        visited: set[T] = set()
        stack = self.dependents(vertex)
        while stack:
            current = stack.pop()
            if current not in visited:
                visited.add(current)
                stack.extend(self.dependents(current))
        return frozenset(visited)

    def topological_order(self) -> list[T]:
        """Return vertices in evaluation order (dependencies before dependents).

        The order is only trustworthy for an acyclic graph; check
        `find_cycles()` first.
        """
        return [self._vertices[v] for v in topological_sort(self._adjacency)]

    def find_cycles(self) -> list[list[T]]:
        """Return every cycle found in one pass over all vertices."""
        return [[self._vertices[v] for v in cycle] for cycle in find_cycles(self._adjacency)]

    def has_cycle(self) -> bool:
        """Check if the graph contains a cycle."""
        return bool(self.find_cycles())

    def __len__(self) -> int:
        """Return the number of vertices in the graph."""
        return len(self._vertices)

    def __contains__(self, vertex: object) -> bool:
        """Check if a vertex is in the graph."""
        return vertex in self._index
