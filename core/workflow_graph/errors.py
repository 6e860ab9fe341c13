"""Errors raised by graph analysis and traversal.

Cycles are not errors: the cycle detector reports them as a result and the
caller decides whether a cyclic graph is fatal.
"""


class WorkflowGraphError(Exception):
    """Base class for workflow graph errors."""

    pass


class MalformedGraphReference(WorkflowGraphError, KeyError):
    """A connection (or lookup) points to a node id absent from the graph."""

    def __init__(self, target: int, source: int | None = None):
        self.source = source
        self.target = target
        if source is None:
            message = f"Node {target} not found in graph"
        else:
            message = f"Node {source} references missing node {target}"
        super().__init__(message)

    def __str__(self) -> str:
        # KeyError would repr() the message
        return str(self.args[0])


class StartNodeNotFound(WorkflowGraphError, LookupError):
    """The walker was asked to start from a node absent from the graph."""

    def __init__(self, node_id: int):
        self.node_id = node_id
        super().__init__(f"Could not find start node {node_id}")
