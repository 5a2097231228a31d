"""
Bounded exponential backoff shared by the pipeline workers.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

Sleeper = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget for one external call.

    ``max_retries`` counts attempts after the first, so the call is made at
    most ``max_retries + 1`` times. The delay before retry ``n`` (1-based) is
    ``base_delay * factor ** (n - 1)``.
    """

    max_retries: int = 2
    base_delay: float = 1.0
    factor: float = 2.0
    max_delay: float = 60.0

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay_for(self, retry_number: int) -> float:
        delay = self.base_delay * self.factor ** max(retry_number - 1, 0)
        return min(delay, self.max_delay)

    @classmethod
    def from_config(cls, section: dict | None, **defaults: float) -> "RetryPolicy":
        values = dict(defaults)
        values.update({k: v for k, v in (section or {}).items() if v is not None})
        return cls(
            max_retries=int(values.get("max_retries", 2)),
            base_delay=float(values.get("base_delay", 1.0)),
            factor=float(values.get("factor", 2.0)),
            max_delay=float(values.get("max_delay", 60.0)),
        )


async def default_sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)
