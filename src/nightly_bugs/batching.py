"""Split bug IDs into Bugzilla-sized batches."""

from __future__ import annotations

from collections.abc import Sequence

from nightly_bugs.config import MAX_BATCH_SIZE


def plan_batches(ids: Sequence[int], max_size: int = MAX_BATCH_SIZE) -> list[list[int]]:
    """Cut ``ids`` into consecutive batches of at most ``max_size``.

    Order is preserved and only the last batch can be short. An empty
    input gives no batches.
    """
    if max_size < 1:
        raise ValueError(f"max_size must be positive, got {max_size}")
    return [list(ids[start:start + max_size]) for start in range(0, len(ids), max_size)]
