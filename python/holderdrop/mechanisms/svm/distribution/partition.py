"""Batch partitioning under the per-transaction recipient cap."""

import math

from .constants import MAX_BATCH_SIZE
from .types import Batch, Recipient


def batch_count(recipient_count: int, max_batch_size: int = MAX_BATCH_SIZE) -> int:
    return math.ceil(recipient_count / max_batch_size) if recipient_count > 0 else 0


def partition(recipients: list[Recipient], max_batch_size: int = MAX_BATCH_SIZE) -> list[Batch]:
    """Split recipients into ordered batches of at most ``max_batch_size``.

    Every recipient lands in exactly one batch and order is preserved. Dust
    recipients keep their slot; they are filtered at submission time.
    """
    if max_batch_size < 1:
        raise ValueError(f"max_batch_size must be >= 1, got {max_batch_size}")

    return [
        Batch(index=i, recipients=recipients[start : start + max_batch_size])
        for i, start in enumerate(range(0, len(recipients), max_batch_size))
    ]
