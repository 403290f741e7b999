# core/retry.py

import time
from typing import Callable

from core.config import settings


class RetryPolicy:
    """
    Bounded retry with a fixed delay between attempts.

    The profile row race in account provisioning is against a database
    trigger that finishes within milliseconds, so no backoff is applied.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        delay_seconds: float = 0.2,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.delay_seconds = max(delay_seconds, 0)
        self._sleep = sleep

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            max_attempts=settings.PROFILE_RETRY_ATTEMPTS,
            delay_seconds=settings.PROFILE_RETRY_DELAY_SECONDS,
        )

    def attempts(self) -> range:
        return range(1, self.max_attempts + 1)

    def wait(self) -> None:
        if self.delay_seconds:
            self._sleep(self.delay_seconds)

    def __repr__(self) -> str:
        return f"RetryPolicy(max_attempts={self.max_attempts}, delay_seconds={self.delay_seconds})"
