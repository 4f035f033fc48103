"""Graph module providing the expression dependency graph.

This module contains:
- DependencyGraph[T]: A directed graph with fixed, indexed vertices
- topological_sort: Depth-first ordering of an adjacency list
- find_cycles: Depth-first enumeration of the cycles of an adjacency list
"""

from ._algorithms import VertexState, find_cycles, topological_sort
from ._dependency_graph import DependencyGraph

__all__ = ["DependencyGraph", "VertexState", "find_cycles", "topological_sort"]
