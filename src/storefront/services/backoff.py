from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import dataclass, field

from storefront.core.config import Settings


@dataclass(frozen=True)
class BackoffPolicy:
    """
    Exponential backoff with jitter for rate-limited upstream calls.

    The n-th wait (1-based) is ``base_delay * 2 ** (n - 1)``, capped at
    ``max_delay`` and scaled by a random factor in ``[1 - jitter, 1 + jitter]``.
    """

    max_attempts: int = 5
    base_delay: float = 1.0
    max_delay: float = 8.0
    jitter: float = 0.1
    rand: Callable[[float, float], float] = field(default=random.uniform, repr=False)

    @classmethod
    def from_settings(cls, settings: Settings) -> BackoffPolicy:
        return cls(
            max_attempts=settings.retry_max_attempts,
            base_delay=settings.retry_base_delay_seconds,
            max_delay=settings.retry_max_delay_seconds,
            jitter=settings.retry_jitter,
        )

    def delay(self, attempt: int, retry_after: float | None = None) -> float:
        if retry_after is not None:
            return min(retry_after, self.max_delay)
        delay = min(self.base_delay * (2 ** max(attempt - 1, 0)), self.max_delay)
        if self.jitter:
            delay *= self.rand(1 - self.jitter, 1 + self.jitter)
        return max(delay, 0.0)

    def should_retry(self, attempt: int) -> bool:
        """``attempt`` counts consecutive rate-limited responses so far."""
        return attempt < self.max_attempts
