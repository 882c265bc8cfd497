"""
Batched execution helper shared by every table load.
"""

from typing import Sequence, TypeVar, Callable, Awaitable, Optional, Any
import logging

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def apply_in_batches(
    items: Sequence[T],
    batch_size: int,
    operation: Callable[[Sequence[T]], Awaitable[Any]],
    on_progress: Optional[Callable[[float], None]] = None
) -> int:
    """
    Run an async operation over fixed-size slices of a sequence.
    
    Args:
        items: Full sequence to process
        batch_size: Slice length (the last slice may be shorter)
        operation: Awaited once per slice
        on_progress: Called after each slice with percent of items done
    
    Returns:
        Number of batches executed (0 for an empty sequence)
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    
    total = len(items)
    if total == 0:
        return 0
    
    batches = 0
    for i in range(0, total, batch_size):
        batch = items[i:i + batch_size]
        await operation(batch)
        batches += 1
        
        done = min(i + batch_size, total)
        if on_progress is not None:
            on_progress(done / total * 100)
        
        logger.debug(f"Batch {batches}: processed {done}/{total}")
    
    return batches
