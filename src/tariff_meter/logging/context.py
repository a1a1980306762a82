"""Per-tick log context."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import structlog


@contextmanager
def tick_context(tick: int, **extra: object) -> Iterator[None]:
    """Tag every record logged inside the block with the tick number.

    The binding is task-local, so concurrent refreshes triggered by a
    settings change are not mislabelled.
    """
    with structlog.contextvars.bound_contextvars(tick=tick, **extra):
        yield
