from __future__ import annotations

import asyncio
import random
from typing import Optional


def compute_backoff(attempt: int, base: float = 0.5, jitter: Optional[float] = None) -> float:
    """Compute exponential backoff in seconds, with jitter."""
    if jitter is None:
        jitter = base / 2
    delay = base * (2 ** attempt)
    return delay + random.uniform(0, jitter)


async def schedule_retry(attempt: int, base: float = 0.5) -> None:
    """Sleep for computed backoff delay before retrying."""
    delay = compute_backoff(attempt, base=base)
    await asyncio.sleep(delay)
