"""
Node Protocol - The building blocks of a workflow graph.

A workflow graph is the serialized output of the workflow editor: an ordered
collection of node records, each carrying its module in ``data`` and its
downstream wiring in ``outputs``.

Node Types:
- trigger: Entry point of a workflow. output_1 leads to the blocking path,
  output_2 to the non-blocking path.
- logic: Routes traversal (conditional branch selection, parallel fan-out)
  without doing real work.
- action: A real unit of work. The only kind handed to traversal consumers.

Both trigger and logic nodes are "control" nodes.
"""

from collections.abc import Iterator, Mapping
from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, PrivateAttr, field_validator

from workflow_graph.errors import MalformedGraphReference


class ModuleType(StrEnum):
    """What kind of module a node runs."""

    TRIGGER = "trigger"  # Workflow entry point
    LOGIC = "logic"  # Routing only
    ACTION = "action"  # Real work


class PathType(StrEnum):
    """Classification of a traversal branch relative to the triggering event."""

    BLOCKING = "blocking"  # Must complete before the event resolves
    NON_BLOCKING = "non-blocking"  # Runs detached from the event


CONTROL_MODULE_TYPES = frozenset({ModuleType.TRIGGER, ModuleType.LOGIC})


class Connection(BaseModel):
    """Reference to the downstream node reached through an output slot."""

    node: int = Field(description="ID of the downstream node")

    model_config = {"extra": "allow"}


class NodeData(BaseModel):
    """Module information attached to a node."""

    module_type: ModuleType
    module_id: str = Field(
        validation_alias=AliasChoices("module_id", "id"),
        description="Identifier of the module, e.g. 'if' or 'parallel-task'",
    )

    model_config = {"extra": "allow"}

    @field_validator("module_id", mode="before")
    @classmethod
    def _coerce_module_id(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value


class Node(BaseModel):
    """
    A single node of a workflow graph.

    Example:
        Node(
            id=1,
            data={"module_type": "trigger", "id": "publish"},
            outputs={
                "output_1": {"connections": [{"node": "2", "output": "input_1"}]},
            },
        )
    """

    id: int
    data: NodeData
    outputs: dict[str, list[list[Connection]]] = Field(
        default_factory=dict,
        description="Output slot name -> ordered connection groups",
    )

    model_config = {"extra": "allow"}

    @field_validator("outputs", mode="before")
    @classmethod
    def _normalize_outputs(cls, value: Any) -> Any:
        """Accept slots holding either a list of groups or a mapping of named groups."""
        if value is None:
            return {}
        if isinstance(value, list) and not value:
            # Empty outputs are sometimes serialized as an empty list
            return {}
        if not isinstance(value, Mapping):
            return value

        normalized = {}
        for slot, groups in value.items():
            if groups is None:
                groups = []
            elif isinstance(groups, Mapping):
                groups = list(groups.values())
            normalized[slot] = groups
        return normalized

    @property
    def module_type(self) -> ModuleType:
        return self.data.module_type

    @property
    def module_id(self) -> str:
        return self.data.module_id

    @property
    def is_control(self) -> bool:
        """Trigger and logic nodes route traversal and are never yielded as steps."""
        return self.data.module_type in CONTROL_MODULE_TYPES

    def has_connections(self, slot: str) -> bool:
        """True if the slot has at least one non-empty connection group."""
        return any(group for group in self.outputs.get(slot, []))

    def iter_connections(self, slot: str) -> Iterator[tuple[int, Connection]]:
        """Yield (index within group, connection) for every connection of a slot, in order."""
        for group in self.outputs.get(slot, []):
            yield from enumerate(group)

    def downstream_ids(self) -> list[int]:
        """All downstream node ids across every slot, in declaration order."""
        return [
            connection.node
            for groups in self.outputs.values()
            for group in groups
            for connection in group
        ]


class WorkflowGraph(BaseModel):
    """
    A workflow graph: nodes indexed by id, in declaration order.

    The graph is read-only during analysis and traversal.
    """

    nodes: list[Node] = Field(default_factory=list)

    _index: dict[int, Node] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        index: dict[int, Node] = {}
        for node in self.nodes:
            if node.id in index:
                raise ValueError(f"Duplicate node id: {node.id}")
            index[node.id] = node
        self._index = index

    @classmethod
    def from_data(cls, data: "WorkflowGraph | Mapping[Any, Any] | list[Any]") -> "WorkflowGraph":
        """
        Build a graph from serialized data.

        Args:
            data: A list of node records, a mapping of node id to node record
                (records lacking an ``id`` take their key), or a WorkflowGraph.

        Returns:
            The parsed WorkflowGraph
        """
        if isinstance(data, WorkflowGraph):
            return data

        if isinstance(data, Mapping):
            records = []
            for key, record in data.items():
                if isinstance(record, Mapping) and "id" not in record:
                    record = {**record, "id": key}
                records.append(record)
        else:
            records = list(data)

        return cls(nodes=records)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._index

    def iter_nodes(self) -> Iterator[Node]:
        """Iterate nodes in declaration order."""
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def node_ids(self) -> list[int]:
        return list(self._index)

    def get_node(self, node_id: int) -> Node | None:
        """Get a node by ID."""
        return self._index.get(node_id)

    def require_node(self, node_id: int, source: int | None = None) -> Node:
        """Get a node by ID, raising MalformedGraphReference if it is missing."""
        node = self._index.get(node_id)
        if node is None:
            raise MalformedGraphReference(node_id, source=source)
        return node

    def edge_list(self) -> dict[int, list[int]]:
        """Project the graph to node id -> downstream node ids, ignoring slots."""
        return {node.id: node.downstream_ids() for node in self.nodes}

    def validate(self) -> list[str]:  # type: ignore[override]
        """Validate the graph structure."""
        errors = []
        for node in self.nodes:
            for slot, groups in node.outputs.items():
                for group in groups:
                    for connection in group:
                        if connection.node not in self._index:
                            errors.append(
                                f"Node {node.id} output '{slot}' references "
                                f"missing node {connection.node}"
                            )
        return errors
