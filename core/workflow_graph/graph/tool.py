"""Stateless helpers over workflow graphs: triggers, cycle checks and walks."""

import logging
from collections.abc import Callable, Iterator
from typing import Any

from workflow_graph.config import GraphConfig
from workflow_graph.graph.context import TraversalContext
from workflow_graph.graph.cycle import CycleDetector, CycleEdge
from workflow_graph.graph.node import ModuleType, Node, PathType, WorkflowGraph
from workflow_graph.graph.walker import ConditionEvaluator, GraphWalker, TraversalRecord

logger = logging.getLogger(__name__)

NODE_NOT_FOUND = -1


class WorkflowGraphTool:
    """Entry points used by the workflow subsystem."""

    @staticmethod
    def extract_triggers(
        graph: WorkflowGraph | Any, full_node: bool = False
    ) -> list[str] | list[Node]:
        """
        Return the trigger module ids (or the full trigger nodes) of a workflow.

        Args:
            graph: The workflow graph or raw graph data
            full_node: Return Node objects instead of module ids

        Returns:
            Triggers in node declaration order
        """
        graph = WorkflowGraph.from_data(graph)
        triggers = [node for node in graph.iter_nodes() if node.module_type == ModuleType.TRIGGER]
        if full_node:
            return triggers
        return [node.module_id for node in triggers]

    @staticmethod
    def trigger_has_blocking_path(
        node: Node | dict[str, Any], config: GraphConfig | None = None
    ) -> bool:
        """Return if the trigger has an edge leading to a blocking path."""
        config = config or GraphConfig()
        return _as_node(node).has_connections(config.blocking_output)

    @staticmethod
    def trigger_has_non_blocking_path(
        node: Node | dict[str, Any], config: GraphConfig | None = None
    ) -> bool:
        """Return if the trigger has an edge leading to a non-blocking path."""
        config = config or GraphConfig()
        return _as_node(node).has_connections(config.non_blocking_output)

    @staticmethod
    def is_acyclic(graph: WorkflowGraph | Any) -> tuple[bool, list[CycleEdge]]:
        """
        Return if the graph is free of cycles.

        Returns:
            (is_acyclic, cycles) where cycles lists the edges of the first
            cycle found, empty when the graph is acyclic
        """
        report = CycleDetector(graph).detect()
        return report.is_acyclic, report.cycles

    @staticmethod
    def node_id_for_trigger(graph: WorkflowGraph | Any, trigger_id: str) -> int:
        """
        Return the node id of the trigger running the given module.

        Returns:
            The node id, or NODE_NOT_FOUND (-1) if no trigger runs that module
        """
        for node in WorkflowGraphTool.extract_triggers(graph, full_node=True):
            if node.module_id == trigger_id:
                return node.id
        return NODE_NOT_FOUND

    @staticmethod
    def new_context(actor: dict[str, Any], payload: dict[str, Any]) -> TraversalContext:
        return TraversalContext(actor, payload)

    @staticmethod
    def walk(
        graph: WorkflowGraph | Any,
        evaluator: ConditionEvaluator | Callable[[Node, TraversalContext], bool],
        start_node: int,
        path_filter: PathType | str | None,
        context: TraversalContext,
        config: GraphConfig | None = None,
    ) -> Iterator[TraversalRecord]:
        """Build a walker and start it; fails immediately if start_node is missing."""
        walker = GraphWalker(graph, evaluator, start_node, path_filter=path_filter, config=config)
        logger.debug(
            f"Walking from node {start_node} (filter: {walker.path_filter or 'none'})",
            extra={"event": "walk.start", "node_id": start_node},
        )
        return walker.walk(context)


def _as_node(node: Node | dict[str, Any]) -> Node:
    if isinstance(node, Node):
        return node
    return Node.model_validate(node)
