"""Dependency tracking for reactive refs.

A contextvar holds the effect currently being evaluated; any Ref read while it
is set registers itself as a dependency of that effect.

Batching: writes inside ``with batch()`` queue their dependents and run them
once when the outermost batch exits, so an effect never observes a cell that
is half way between two states.
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from hydrafx.ref import Effect

current_effect: contextvars.ContextVar[Effect | None] = contextvars.ContextVar(
    "hydrafx_current_effect", default=None
)

_batch_depth: int = 0
_pending: dict[Effect, None] = {}


def schedule(effect: Effect) -> None:
    """Run an effect now, or queue it if a batch is open."""
    if _batch_depth > 0:
        _pending[effect] = None
    else:
        effect._run()


@contextmanager
def batch() -> Iterator[None]:
    """Defer effects until the outermost batch exits. Nesting is allowed."""
    global _batch_depth
    _batch_depth += 1
    try:
        yield
    finally:
        _batch_depth -= 1
        if _batch_depth == 0:
            _flush()


def _flush() -> None:
    # Effects may write refs while flushing; keep draining until quiet.
    while _pending:
        queued = list(_pending)
        _pending.clear()
        for effect in queued:
            effect._run()
