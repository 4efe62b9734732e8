"""Context propagation utilities for poll round correlation IDs."""

from __future__ import annotations

import contextvars
import uuid
from contextlib import contextmanager
from typing import Any, Iterator

# Context variable for storing the current poll round ID
round_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "round_id", default=None
)


def new_round_id() -> str:
    """Generate a short identifier for a poll round."""
    return uuid.uuid4().hex[:12]


def get_round_id() -> str | None:
    """Get the poll round ID from the current context.

    Returns:
        Round ID if set, None otherwise
    """
    return round_id.get()


@contextmanager
def with_round_id(rid: str) -> Iterator[str]:
    """Context manager to set a round ID for the duration of a block.

    Worker threads do not inherit context variables, so threads started inside
    the block should be run through ``contextvars.copy_context().run``.

    Args:
        rid: Round ID to use

    Yields:
        The round ID
    """
    token = round_id.set(rid)
    try:
        yield rid
    finally:
        round_id.reset(token)


def get_context_dict(additional: dict[str, Any] | None = None) -> dict[str, Any]:
    """Get a dictionary of context values.

    Args:
        additional: Additional key-value pairs to include

    Returns:
        Dictionary with context values including round_id
    """
    ctx: dict[str, Any] = {}

    rid = get_round_id()
    if rid:
        ctx["round_id"] = rid

    if additional:
        ctx.update(additional)

    return ctx
