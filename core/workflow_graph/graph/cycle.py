"""
Cycle detection for workflow graphs.

A directed graph G is acyclic if and only if a depth-first search of G yields
no back edges (Cormen, Leiserson, Rivest, Stein - Introduction to Algorithms).

Nodes are colored WHITE (unvisited), GRAY (on the current DFS path) or BLACK
(fully explored). Reaching a GRAY node from the current node is a back edge.
The DFS runs on an explicit stack so graph depth is not bounded by the
interpreter recursion limit.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, NamedTuple

from workflow_graph.errors import MalformedGraphReference
from workflow_graph.graph.node import WorkflowGraph

logger = logging.getLogger(__name__)

CYCLE_REASON = "Cycle"


class Color(StrEnum):
    """DFS visitation state of a node."""

    WHITE = "white"
    GRAY = "gray"
    BLACK = "black"


class CycleEdge(NamedTuple):
    """An edge reported as part of a cycle chain."""

    source: int
    target: int
    reason: str = CYCLE_REASON


@dataclass
class CycleReport:
    """Result of a cycle check."""

    is_cyclic: bool
    cycles: list[CycleEdge] = field(default_factory=list)

    @property
    def is_acyclic(self) -> bool:
        return not self.is_cyclic


class CycleDetector:
    """
    Detects whether a workflow graph contains a cycle.

    Roots are tried in node declaration order and neighbours in connection
    order, so the reported chain is reproducible. Detection stops at the
    first cycle found; only that cycle's chain is reported.

    The chain starts with the back edge and walks back up the DFS path
    towards the root. The edge leaving the DFS root is not part of the chain.

    Example:
        report = CycleDetector(graph).detect()
        if report.is_cyclic:
            for source, target, reason in report.cycles:
                ...
    """

    def __init__(self, graph: WorkflowGraph | Any):
        self.graph = WorkflowGraph.from_data(graph)
        self.edge_list = self.graph.edge_list()

    def detect(self) -> CycleReport:
        """Return whether the graph is cyclic, with the edges of the first cycle found."""
        color = {node_id: Color.WHITE for node_id in self.edge_list}
        for root in self.edge_list:
            if color[root] != Color.WHITE:
                continue
            cycle = self._visit(root, color)
            if cycle:
                logger.info(
                    f"Cycle detected from root {root}: "
                    + ", ".join(f"{edge.source}->{edge.target}" for edge in cycle)
                )
                return CycleReport(is_cyclic=True, cycles=cycle)
        return CycleReport(is_cyclic=False, cycles=[])

    def _visit(self, root: int, color: dict[int, Color]) -> list[CycleEdge]:
        color[root] = Color.GRAY
        stack: list[tuple[int, Iterator[int]]] = [(root, iter(self.edge_list[root]))]

        while stack:
            node_id, neighbours = stack[-1]
            for neighbour in neighbours:
                state = color.get(neighbour)
                if state is None:
                    raise MalformedGraphReference(neighbour, source=node_id)
                if state == Color.GRAY:
                    return self._chain(stack, neighbour)
                if state == Color.WHITE:
                    color[neighbour] = Color.GRAY
                    stack.append((neighbour, iter(self.edge_list[neighbour])))
                    break
            else:
                color[node_id] = Color.BLACK
                stack.pop()

        return []

    @staticmethod
    def _chain(stack: list[tuple[int, Iterator[int]]], target: int) -> list[CycleEdge]:
        chain = [CycleEdge(stack[-1][0], target)]
        # Each frame between the root and the back edge records the edge to its child
        for depth in range(len(stack) - 2, 0, -1):
            chain.append(CycleEdge(stack[depth][0], stack[depth + 1][0]))
        return chain


def detect_cycles(graph: WorkflowGraph | Any) -> CycleReport:
    """Run cycle detection on a graph or raw graph data."""
    return CycleDetector(graph).detect()
