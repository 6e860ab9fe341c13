"""Data shared by every step of one traversal run."""

from typing import Any


class TraversalContext:
    """
    Carries the acting user and the workflow data through one walk.

    The same instance is seen by the condition evaluator and the consumer for
    the whole walk, so payload changes made between two records are visible to
    every later evaluation. One context serves exactly one traversal.
    """

    def __init__(self, actor: dict[str, Any], payload: dict[str, Any]):
        self._actor = actor
        self._payload = payload

    @property
    def actor(self) -> dict[str, Any]:
        return self._actor

    @property
    def payload(self) -> dict[str, Any]:
        return self._payload

    def replace_payload(self, payload: dict[str, Any]) -> dict[str, Any]:
        self._payload = payload
        return self._payload

    def __repr__(self) -> str:
        return f"TraversalContext(actor={self._actor!r}, payload_keys={list(self._payload)!r})"
