"""Shared fixtures for workflow graph tests."""

import pytest

from workflow_graph.observability import clear_trace_context


@pytest.fixture(autouse=True)
def clean_trace_context():
    clear_trace_context()
    yield
    clear_trace_context()
