"""
Tests for GraphWalker traversal.

Covers path classification (trigger outputs, fan-out), conditional branch
selection through the evaluator, path filters, laziness and error
propagation.
"""

import dataclasses
from collections.abc import Sequence

import pytest

from workflow_graph.config import GraphConfig
from workflow_graph.errors import MalformedGraphReference, StartNodeNotFound
from workflow_graph.graph.context import TraversalContext
from workflow_graph.graph.node import PathType
from workflow_graph.graph.walker import GraphWalker

# === HELPER FUNCTIONS ===


def _slot(targets: Sequence[int]) -> dict:
    return {"connections": [{"node": str(t), "output": "input_1"} for t in targets]}


def trigger(node_id: int, blocking: Sequence[int] = (), non_blocking: Sequence[int] = ()) -> dict:
    return {
        "id": node_id,
        "data": {"module_type": "trigger", "id": f"trigger-{node_id}"},
        "outputs": {"output_1": _slot(blocking), "output_2": _slot(non_blocking)},
    }


def action(node_id: int, then: Sequence[int] = ()) -> dict:
    return {
        "id": node_id,
        "data": {"module_type": "action", "id": f"action-{node_id}"},
        "outputs": {"output_1": _slot(then)} if then else {},
    }


def logic(
    node_id: int, module_id: str, output_1: Sequence[int] = (), output_2: Sequence[int] = ()
) -> dict:
    outputs = {"output_1": _slot(output_1)}
    if output_2:
        outputs["output_2"] = _slot(output_2)
    return {"id": node_id, "data": {"module_type": "logic", "id": module_id}, "outputs": outputs}


def never_called(node, context):
    raise AssertionError(f"evaluator should not be called for node {node.id}")


def emitted(records) -> list[tuple[int, PathType | None]]:
    return [(record.node_id, record.path_type) for record in records]


@pytest.fixture
def context():
    return TraversalContext(actor={"id": 1, "email": "admin@example.com"}, payload={})


# === BASIC TRAVERSAL ===


class TestLinearTraversal:
    def test_linear_blocking_path(self, context):
        graph = [trigger(1, blocking=[2]), action(2, then=[3]), action(3)]

        records = list(GraphWalker(graph, never_called, 1).walk(context))

        assert emitted(records) == [(2, PathType.BLOCKING), (3, PathType.BLOCKING)]
        assert records[0].path == ("1:output_1:0:2",)
        assert records[1].path == ("1:output_1:0:2", "2:output_1:0:3")

    def test_depth_first_preorder(self, context):
        graph = [trigger(1, blocking=[2, 3]), action(2, then=[4]), action(3), action(4)]

        records = list(GraphWalker(graph, never_called, 1).walk(context))

        assert [record.node_id for record in records] == [2, 4, 3]
        assert records[2].path == ("1:output_1:1:3",)

    def test_start_at_action_node(self, context):
        graph = [action(2, then=[3]), action(3)]

        records = list(GraphWalker(graph, never_called, 2).walk(context))

        assert emitted(records) == [(2, None), (3, None)]
        assert records[0].path == ()

    def test_records_are_immutable(self, context):
        graph = [trigger(1, blocking=[2]), action(2, then=[3]), action(3)]

        first, second = GraphWalker(graph, never_called, 1).walk(context)

        assert isinstance(first.path, tuple)
        with pytest.raises(dataclasses.FrozenInstanceError):
            first.path = ()
        assert second.path[: len(first.path)] == first.path
        assert first.path == ("1:output_1:0:2",)

    def test_node_reached_twice_is_emitted_twice(self, context):
        graph = [trigger(1, blocking=[2, 3]), action(2, then=[4]), action(3, then=[4]), action(4)]

        records = list(GraphWalker(graph, never_called, 1).walk(context))

        assert [record.node_id for record in records] == [2, 4, 3, 4]

    def test_control_nodes_never_emitted(self, context):
        graph = [
            trigger(1, blocking=[2], non_blocking=[3]),
            logic(2, "parallel-task", output_1=[4]),
            logic(3, "if", output_1=[5], output_2=[6]),
            action(4),
            action(5),
            action(6),
        ]

        records = list(GraphWalker(graph, lambda node, ctx: True, 1).walk(context))

        assert [record.node_id for record in records] == [4, 5]
        assert all(not record.node.is_control for record in records)


# === PATH CLASSIFICATION ===


class TestPathClassification:
    @pytest.fixture
    def two_path_graph(self):
        return [trigger(1, blocking=[2], non_blocking=[3]), action(2), action(3)]

    def test_unfiltered_walk_yields_both(self, two_path_graph, context):
        records = GraphWalker(two_path_graph, never_called, 1).walk(context)

        assert emitted(records) == [(2, PathType.BLOCKING), (3, PathType.NON_BLOCKING)]

    def test_blocking_filter(self, two_path_graph, context):
        walker = GraphWalker(two_path_graph, never_called, 1, path_filter=PathType.BLOCKING)

        assert emitted(walker.walk(context)) == [(2, PathType.BLOCKING)]

    def test_non_blocking_filter_as_string(self, two_path_graph, context):
        walker = GraphWalker(two_path_graph, never_called, 1, path_filter="non-blocking")

        assert walker.path_filter == PathType.NON_BLOCKING
        assert emitted(walker.walk(context)) == [(3, PathType.NON_BLOCKING)]

    def test_invalid_filter_rejected(self, two_path_graph):
        with pytest.raises(ValueError):
            GraphWalker(two_path_graph, never_called, 1, path_filter="sometimes")

    def test_fan_out_forces_non_blocking(self, context):
        graph = [
            trigger(1, blocking=[2]),
            action(2, then=[3]),
            logic(3, "parallel-task", output_1=[4, 5]),
            action(4, then=[6]),
            action(5),
            action(6),
        ]

        records = GraphWalker(graph, never_called, 1).walk(context)

        assert emitted(records) == [
            (2, PathType.BLOCKING),
            (4, PathType.NON_BLOCKING),
            (6, PathType.NON_BLOCKING),
            (5, PathType.NON_BLOCKING),
        ]

    def test_blocking_filter_stops_at_fan_out(self, context):
        graph = [
            trigger(1, blocking=[2]),
            action(2, then=[3]),
            logic(3, "parallel-task", output_1=[4]),
            action(4),
        ]

        walker = GraphWalker(graph, never_called, 1, path_filter="blocking")

        assert emitted(walker.walk(context)) == [(2, PathType.BLOCKING)]

    def test_non_blocking_filter_below_action_start(self, context):
        # No trigger upstream: the path stays unclassified and the filter prunes it
        graph = [action(2, then=[3]), action(3)]

        walker = GraphWalker(graph, never_called, 2, path_filter="non-blocking")

        assert emitted(walker.walk(context)) == [(2, None)]


# === CONDITIONAL BRANCHING ===


class TestConditional:
    @pytest.fixture
    def if_graph(self):
        return [
            trigger(1, blocking=[2]),
            logic(2, "if", output_1=[3], output_2=[4]),
            action(3, then=[5]),
            action(4),
            action(5),
        ]

    def test_true_takes_then_branch(self, if_graph, context):
        records = GraphWalker(if_graph, lambda node, ctx: True, 1).walk(context)

        assert [record.node_id for record in records] == [3, 5]

    def test_false_takes_else_branch(self, if_graph, context):
        records = list(GraphWalker(if_graph, lambda node, ctx: False, 1).walk(context))

        assert [record.node_id for record in records] == [4]
        assert records[0].path == ("1:output_1:0:2", "2:output_2:0:4")
        assert records[0].path_type == PathType.BLOCKING

    def test_evaluator_object(self, if_graph, context):
        class PayloadFlag:
            def __init__(self):
                self.calls = []

            def evaluate(self, node, ctx):
                self.calls.append((node.id, ctx))
                return ctx.payload.get("approved", False)

        evaluator = PayloadFlag()
        context.replace_payload({"approved": True})

        records = GraphWalker(if_graph, evaluator, 1).walk(context)

        assert [record.node_id for record in records] == [3, 5]
        assert evaluator.calls == [(2, context)]

    def test_truthy_result_is_coerced(self, if_graph, context):
        records = GraphWalker(if_graph, lambda node, ctx: "yes", 1).walk(context)

        assert [record.node_id for record in records] == [3, 5]

    def test_missing_selected_slot_ends_branch(self, context):
        graph = [trigger(1, blocking=[2]), logic(2, "if", output_1=[3]), action(3)]

        records = GraphWalker(graph, lambda node, ctx: False, 1).walk(context)

        assert list(records) == []

    def test_non_conditional_logic_not_evaluated(self, context):
        graph = [trigger(1, blocking=[2]), logic(2, "concurrent-tasks", output_1=[3]), action(3)]

        records = GraphWalker(graph, never_called, 1).walk(context)

        assert emitted(records) == [(3, PathType.BLOCKING)]

    def test_configured_conditional_module(self, context):
        graph = [trigger(1, blocking=[2]), logic(2, "branch", output_1=[3], output_2=[4])]
        graph += [action(3), action(4)]
        config = GraphConfig(conditional_modules=["branch"])

        records = GraphWalker(graph, lambda node, ctx: False, 1, config=config).walk(context)

        assert [record.node_id for record in records] == [4]

    def test_invalid_evaluator_rejected(self, if_graph):
        with pytest.raises(TypeError):
            GraphWalker(if_graph, "not callable", 1)


# === LAZINESS AND SHARED CONTEXT ===


class TestLazyTraversal:
    def test_condition_sees_payload_written_by_consumer(self, context):
        graph = [
            trigger(1, blocking=[2]),
            action(2, then=[3]),
            logic(3, "if", output_1=[4], output_2=[5]),
            action(4),
            action(5),
        ]
        calls = []

        def evaluator(node, ctx):
            calls.append(node.id)
            return ctx.payload["score"] > 80

        records = GraphWalker(graph, evaluator, 1).walk(context)

        first = next(records)
        assert first.node_id == 2
        assert calls == []

        context.replace_payload({"score": 85})
        assert [record.node_id for record in records] == [4]
        assert calls == [3]

    def test_abandoned_walk_stops_evaluating(self, context):
        graph = [trigger(1, blocking=[2, 3]), action(2), logic(3, "if", output_1=[4]), action(4)]

        records = GraphWalker(graph, never_called, 1).walk(context)

        assert next(records).node_id == 2
        records.close()

    def test_cursor_follows_walk(self, context):
        graph = [trigger(1, blocking=[2]), action(2, then=[3]), action(3)]
        walker = GraphWalker(graph, never_called, 1)

        assert walker.cursor == 1
        records = walker.walk(context)
        next(records)
        assert walker.cursor == 2
        next(records)
        assert walker.cursor == 3

    def test_deep_graph(self, context):
        size = 3000
        graph = [trigger(0, blocking=[1])]
        graph += [action(i, then=[i + 1]) for i in range(1, size)]
        graph.append(action(size))

        records = list(GraphWalker(graph, never_called, 0).walk(context))

        assert len(records) == size
        assert records[-1].node_id == size
        assert len(records[-1].path) == size


# === ERRORS ===


class TestErrors:
    def test_missing_start_node(self):
        graph = [trigger(1, blocking=[2]), action(2)]

        with pytest.raises(StartNodeNotFound) as exc_info:
            GraphWalker(graph, never_called, 42)

        assert exc_info.value.node_id == 42
        assert "42" in str(exc_info.value)

    def test_evaluator_error_propagates_and_ends_walk(self, context):
        graph = [
            trigger(1, blocking=[2]),
            action(2, then=[3]),
            logic(3, "if", output_1=[4]),
            action(4),
        ]

        def broken(node, ctx):
            raise RuntimeError("condition service down")

        records = GraphWalker(graph, broken, 1).walk(context)

        assert next(records).node_id == 2
        with pytest.raises(RuntimeError, match="condition service down"):
            next(records)
        with pytest.raises(StopIteration):
            next(records)

    def test_dangling_connection(self, context):
        graph = [trigger(1, blocking=[2]), action(2, then=[99])]

        records = GraphWalker(graph, never_called, 1).walk(context)

        assert next(records).node_id == 2
        with pytest.raises(MalformedGraphReference) as exc_info:
            next(records)
        assert (exc_info.value.source, exc_info.value.target) == (2, 99)
