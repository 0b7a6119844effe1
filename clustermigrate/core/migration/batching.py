"""Batched iteration over selector results.

Each batch re-runs the selector instead of holding a cursor open, so a
record that stopped matching (migrated by an earlier step or changed by
another process) is never yielded. The last yielded position is kept in
memory only, which stops a record that failed to migrate from being
returned again in the same run.
"""

import logging
from typing import Iterator, Optional

from ..constants import DEFAULT_BATCH_SIZE
from .selector import Candidate, UnmanagedServiceSelector

logger = logging.getLogger(__name__)


def each_candidate(
    selector: UnmanagedServiceSelector,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> Iterator[Candidate]:
    """Yield candidates one at a time until a batch query comes back empty."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")

    position: Optional[Candidate] = None
    batch_number = 0
    while True:
        batch = selector.fetch(after=position, limit=batch_size)
        if not batch:
            logger.debug(f"Selector exhausted after {batch_number} batches")
            return
        batch_number += 1
        for candidate in batch:
            yield candidate
        position = batch[-1]
