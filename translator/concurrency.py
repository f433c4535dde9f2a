"""
Bounded fan-out for per-job remote calls (chunks, cells, slides).
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Iterable, List, TypeVar

T = TypeVar("T")
R = TypeVar("R")


class BoundedRunner:
    """Run coroutines concurrently with at most ``limit`` in flight."""

    def __init__(self, limit: int):
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        self.limit = limit

    async def map(
        self,
        func: Callable[[T], Awaitable[R]],
        items: Iterable[T],
    ) -> List[R]:
        """Apply ``func`` to every item; results keep the input order."""
        semaphore = asyncio.Semaphore(self.limit)

        async def run_one(item: T) -> R:
            async with semaphore:
                return await func(item)

        return list(await asyncio.gather(*(run_one(item) for item in items)))
