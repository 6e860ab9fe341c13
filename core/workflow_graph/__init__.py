"""Cycle detection and branch-aware traversal for workflow graphs."""

from workflow_graph.config import GraphConfig
from workflow_graph.errors import MalformedGraphReference, StartNodeNotFound, WorkflowGraphError
from workflow_graph.graph import (
    ConditionEvaluator,
    CycleDetector,
    GraphWalker,
    ModuleType,
    Node,
    PathType,
    TraversalContext,
    TraversalRecord,
    WorkflowGraph,
    WorkflowGraphTool,
)

__all__ = [
    "GraphConfig",
    "WorkflowGraphError",
    "MalformedGraphReference",
    "StartNodeNotFound",
    "ModuleType",
    "PathType",
    "Node",
    "WorkflowGraph",
    "CycleDetector",
    "TraversalContext",
    "GraphWalker",
    "TraversalRecord",
    "ConditionEvaluator",
    "WorkflowGraphTool",
]
