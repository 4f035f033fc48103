"""Graph algorithms over integer adjacency lists.

Both traversals keep their own work stack instead of recursing, so the
length of a dependency chain is not limited by the interpreter stack.
"""

from collections.abc import Iterator, Sequence
from enum import Enum, auto


class VertexState(Enum):
    """Marking of a vertex during a depth-first traversal."""

    NOT_VISITED = auto()
    IN_STACK = auto()  # On the active traversal path
    VISITED = auto()


def topological_sort(adjacency: Sequence[Sequence[int]]) -> list[int]:
    """Order vertices so that every vertex comes after all of its successors.

    Vertices are visited depth first, roots taken in index order. A vertex is
    emitted only once all of its successors have been emitted. With edges
    pointing from dependent to dependency, the result lists dependencies
    before dependents.

    The result is only meaningful for an acyclic graph; check with
    `find_cycles` first.

    Args:
        adjacency: `adjacency[v]` lists the successors of vertex `v`.

    Returns:
        Every vertex index exactly once, in post-order.

    Example:
        >>> # 0 depends on 1, 1 depends on 2
        >>> topological_sort([[1], [2], []])
        [2, 1, 0]

    """
    visited = [False] * len(adjacency)
    order: list[int] = []

    for root in range(len(adjacency)):
        if visited[root]:
            continue
        visited[root] = True
        stack: list[tuple[int, Iterator[int]]] = [(root, iter(adjacency[root]))]
        while stack:
            vertex, successors = stack[-1]
            for successor in successors:
                if not visited[successor]:
                    visited[successor] = True
                    stack.append((successor, iter(adjacency[successor])))
                    break
            else:
                # All successors done
                stack.pop()
                order.append(vertex)

    return order


def find_cycles(adjacency: Sequence[Sequence[int]]) -> list[list[int]]:
    """Find the cycles of a graph in one depth-first pass over all vertices.

    Reaching a vertex that is still on the active path closes a cycle. The
    cycle is reported as the slice of the active path starting at that
    vertex and ending at the current traversal head.

    Args:
        adjacency: `adjacency[v]` lists the successors of vertex `v`.

    Returns:
        List of cycles, each a list of vertex indices. Empty if the graph is acyclic.

    Example:
        >>> find_cycles([[1], [0], []])
        [[0, 1]]

    """
    state = [VertexState.NOT_VISITED] * len(adjacency)
    cycles: list[list[int]] = []

    for root in range(len(adjacency)):
        if state[root] is not VertexState.NOT_VISITED:
            continue
        state[root] = VertexState.IN_STACK
        path = [root]
        stack: list[Iterator[int]] = [iter(adjacency[root])]
        while stack:
            for successor in stack[-1]:
                if state[successor] is VertexState.IN_STACK:
                    cycles.append(path[path.index(successor) :])
                elif state[successor] is VertexState.NOT_VISITED:
                    state[successor] = VertexState.IN_STACK
                    path.append(successor)
                    stack.append(iter(adjacency[successor]))
                    break
            else:
                stack.pop()
                state[path.pop()] = VertexState.VISITED

    return cycles
