"""Resilience – short in-call retries backed by ``tenacity``."""
from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import tenacity

T = TypeVar("T")


class TenacityRetryPolicy:
    """Bounded, immediate retries of a single call.

    Used for connection hiccups inside one index call; longer outages are
    left to the outbox redelivery schedule.

    Parameters
    ----------
    max_attempts:
        Maximum number of call attempts (including the first call).
    retry_on:
        Exception types worth another immediate try.
    wait:
        A ``tenacity`` wait strategy. Defaults to a short exponential wait.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        retry_on: tuple[type[BaseException], ...] = (Exception,),
        wait: Any = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._max_attempts = max_attempts
        self._retry = tenacity.retry_if_exception_type(retry_on)
        self._wait = wait if wait is not None else tenacity.wait_exponential(multiplier=0.05, max=0.5)

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def _build_async_retrying(self) -> tenacity.AsyncRetrying:
        return tenacity.AsyncRetrying(
            stop=tenacity.stop_after_attempt(self._max_attempts),
            wait=self._wait,
            retry=self._retry,
            reraise=True,
        )

    async def execute_async(self, func: Callable[[], Awaitable[T]]) -> T:
        """Await *func* until it succeeds or the attempts run out."""
        async for attempt in self._build_async_retrying():
            with attempt:
                result = await func()
        return result  # type: ignore[return-value]


__all__ = ["TenacityRetryPolicy"]
