"""
Graph Walker - Enumerates the executable steps of a workflow.

The walker:
1. Starts at a node (usually a trigger)
2. Walks every branch depth-first, in declaration order
3. Asks the condition evaluator which branch a conditional node takes
4. Classifies each branch as blocking or non-blocking
5. Yields one TraversalRecord per action node, lazily

The walker never runs a step itself. The consumer executes each yielded
action and updates the shared TraversalContext before pulling the next
record; conditions further down the walk see those updates.

The walker does not guard against cycles. Check the graph with
CycleDetector before walking it.
"""

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from workflow_graph.config import GraphConfig
from workflow_graph.errors import StartNodeNotFound
from workflow_graph.graph.context import TraversalContext
from workflow_graph.graph.node import ModuleType, Node, PathType, WorkflowGraph

logger = logging.getLogger(__name__)

# (source node id, target node id, classification, edge trail)
_Step = tuple[int | None, int, PathType | None, tuple[str, ...]]


@runtime_checkable
class ConditionEvaluator(Protocol):
    """Decides which branch a conditional logic node takes."""

    def evaluate(self, node: Node, context: TraversalContext) -> bool:
        """Return True for the then-branch (output_1), False for the else-branch."""
        ...


@dataclass(frozen=True)
class TraversalRecord:
    """An action node reached by the walk."""

    node: Node
    path_type: PathType | None
    path: tuple[str, ...] = ()  # "from:slot:index:to" edges from the start

    @property
    def node_id(self) -> int:
        return self.node.id


class GraphWalker:
    """
    Walks a workflow graph from a start node.

    Example:
        walker = GraphWalker(graph, evaluator, start_node=1, path_filter="blocking")
        context = TraversalContext(actor=user, payload=data)
        for record in walker.walk(context):
            result = run_action(record.node, context.payload)
            context.replace_payload(result)
    """

    def __init__(
        self,
        graph: WorkflowGraph | Any,
        evaluator: ConditionEvaluator | Callable[[Node, TraversalContext], bool],
        start_node: int,
        path_filter: PathType | str | None = None,
        config: GraphConfig | None = None,
    ):
        """
        Args:
            graph: The graph to walk, or raw graph data
            evaluator: Object with ``evaluate(node, context)`` or a callable with
                the same signature
            start_node: ID of the node to start from
            path_filter: Only walk branches of this classification (None walks all)
            config: Routing configuration (defaults to GraphConfig())

        Raises:
            StartNodeNotFound: If start_node is not in the graph
        """
        self.graph = WorkflowGraph.from_data(graph)
        self.config = config or GraphConfig()
        self.path_filter = PathType(path_filter) if path_filter is not None else None

        if isinstance(evaluator, ConditionEvaluator):
            self._evaluate = evaluator.evaluate
        elif callable(evaluator):
            self._evaluate = evaluator
        else:
            raise TypeError(
                f"evaluator must be callable or define evaluate(), got {type(evaluator).__name__}"
            )

        if start_node not in self.graph:
            raise StartNodeNotFound(start_node)
        self.start_node = start_node
        self._cursor = start_node

    @property
    def cursor(self) -> int:
        """ID of the node the walk currently stands on."""
        return self._cursor

    def walk(self, context: TraversalContext) -> Iterator[TraversalRecord]:
        """
        Lazily yield every action node reachable under the current conditions.

        Each ``next()`` runs just enough of the traversal to reach the next
        action node. Exceptions from the evaluator propagate out of ``next()``
        and end the walk.
        """
        stack: list[Iterator[_Step]] = []
        step: _Step | None = (None, self.start_node, None, ())

        while step is not None:
            source, node_id, path_type, path = step
            node = self.graph.require_node(node_id, source=source)
            self._cursor = node_id

            # trigger and logic nodes are control nodes, not steps
            if not node.is_control:
                logger.debug(
                    f"Reached action node {node_id} ({node.module_id})",
                    extra={"event": "walk.emit", "node_id": node_id, "path_type": path_type},
                )
                yield TraversalRecord(node=node, path_type=path_type, path=path)

            stack.append(self._branches(node, path_type, path, context))

            step = None
            while stack and step is None:
                step = next(stack[-1], None)
                if step is None:
                    stack.pop()

    def _branches(
        self,
        node: Node,
        path_type: PathType | None,
        path: tuple[str, ...],
        context: TraversalContext,
    ) -> Iterator[_Step]:
        for slot, groups in self._allowed_outputs(node, context).items():
            slot_path_type = self._get_path_type(node, slot, path_type)
            if self.path_filter is not None and slot_path_type != self.path_filter:
                logger.debug(
                    f"Skipping output '{slot}' of node {node.id}: "
                    f"{slot_path_type} does not match filter {self.path_filter}",
                    extra={"event": "walk.filtered", "node_id": node.id},
                )
                continue
            for group in groups:
                for index, connection in enumerate(group):
                    edge = f"{node.id}:{slot}:{index}:{connection.node}"
                    yield node.id, connection.node, slot_path_type, (*path, edge)

    def _allowed_outputs(
        self, node: Node, context: TraversalContext
    ) -> dict[str, list[list[Any]]]:
        if not self._is_conditional(node):
            return node.outputs

        use_then_branch = bool(self._evaluate(node, context))
        if use_then_branch:
            slot = self.config.blocking_output
        else:
            slot = self.config.non_blocking_output
        logger.debug(
            f"Condition node {node.id} selected '{slot}'",
            extra={"event": "walk.condition", "node_id": node.id},
        )
        return {slot: node.outputs.get(slot, [])}

    def _get_path_type(
        self, node: Node, slot: str, path_type: PathType | None
    ) -> PathType | None:
        if node.module_type == ModuleType.TRIGGER:
            if slot == self.config.blocking_output:
                return PathType.BLOCKING
            return PathType.NON_BLOCKING
        if node.module_type == ModuleType.LOGIC and node.module_id in self.config.fan_out_modules:
            return PathType.NON_BLOCKING
        return path_type

    def _is_conditional(self, node: Node) -> bool:
        return (
            node.module_type == ModuleType.LOGIC
            and node.module_id in self.config.conditional_modules
        )
