"""Graph structures: Nodes, cycle detection and traversal."""

from workflow_graph.graph.context import TraversalContext
from workflow_graph.graph.cycle import CycleDetector, CycleEdge, CycleReport, detect_cycles
from workflow_graph.graph.node import (
    Connection,
    ModuleType,
    Node,
    NodeData,
    PathType,
    WorkflowGraph,
)
from workflow_graph.graph.tool import NODE_NOT_FOUND, WorkflowGraphTool
from workflow_graph.graph.walker import ConditionEvaluator, GraphWalker, TraversalRecord

__all__ = [
    # Node
    "ModuleType",
    "PathType",
    "Connection",
    "NodeData",
    "Node",
    "WorkflowGraph",
    # Cycle detection
    "CycleDetector",
    "CycleEdge",
    "CycleReport",
    "detect_cycles",
    # Traversal
    "TraversalContext",
    "GraphWalker",
    "TraversalRecord",
    "ConditionEvaluator",
    # Tool
    "WorkflowGraphTool",
    "NODE_NOT_FOUND",
]
