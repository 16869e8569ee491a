from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable


@dataclass
class RetryBudget:
    """
    Retry allowance for re-polling PRs whose mergeable state is still UNKNOWN.

    GitHub computes mergeability lazily in the background, so the first query
    after a push often returns UNKNOWN. One budget is shared by the whole pass:
    once it runs out, every later UNKNOWN PR is left alone.
    """
    retry_after: float
    remaining: int
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, repr=False)

    @property
    def exhausted(self) -> bool:
        return self.remaining <= 0

    async def wait(self) -> None:
        """Suspend for `retry_after` seconds and consume one retry."""
        await self.sleep(self.retry_after)
        self.remaining -= 1
