"""Rate-limited call runner shared by the ingestion and indexing services.

Third-party AI endpoints (summaries, embeddings, image generation) enforce
per-minute request quotas.  Instead of sprinkling ``asyncio.sleep`` calls
between requests, every service that talks to those endpoints routes its
calls through a :class:`RateLimitedRunner`, which guarantees a minimum gap
between the end of one call and the start of the next.

The runner serialises calls with an ``asyncio.Lock`` -- two coroutines that
share a runner never overlap -- and optionally bounds each call with
``asyncio.wait_for`` so a hung collaborator cannot stall a batch forever.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, TypeVar

import structlog

from src.utils.errors import TransientNetworkError
from src.utils.logging import get_logger

_T = TypeVar("_T")

_logger: structlog.BoundLogger = get_logger(__name__)


class RateLimitedRunner:
    """Run coroutine functions sequentially with a fixed inter-call interval.

    Parameters
    ----------
    interval_seconds:
        Minimum delay between the completion of one call and the start of
        the next.  ``0`` disables the delay but keeps calls sequential.
    timeout_seconds:
        Optional per-call timeout.  A call that exceeds it raises
        :class:`TransientNetworkError`.
    clock:
        Monotonic clock, injectable for tests.
    sleep:
        Async sleep function, injectable for tests.
    """

    def __init__(
        self,
        interval_seconds: float = 1.0,
        timeout_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        if interval_seconds < 0:
            raise ValueError("interval_seconds must be >= 0")
        self._interval = interval_seconds
        self._timeout = timeout_seconds
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_finished: float | None = None

    @property
    def interval_seconds(self) -> float:
        return self._interval

    async def run(
        self,
        fn: Callable[..., Awaitable[_T]],
        *args: Any,
        **kwargs: Any,
    ) -> _T:
        """Await ``fn(*args, **kwargs)`` once the interval has elapsed.

        Exceptions raised by ``fn`` propagate unchanged (apart from timeouts,
        which become :class:`TransientNetworkError`).  The interval is
        measured from the end of the previous call whether it succeeded
        or failed.
        """
        async with self._lock:
            if self._last_finished is not None and self._interval > 0:
                wait = self._interval - (self._clock() - self._last_finished)
                if wait > 0:
                    await self._sleep(wait)

            try:
                if self._timeout is not None:
                    return await asyncio.wait_for(fn(*args, **kwargs), timeout=self._timeout)
                return await fn(*args, **kwargs)
            except asyncio.TimeoutError as exc:
                _logger.warning(
                    "rate_limited_call_timeout",
                    call=getattr(fn, "__qualname__", repr(fn)),
                    timeout=self._timeout,
                )
                raise TransientNetworkError(
                    message=f"Call timed out after {self._timeout}s",
                ) from exc
            finally:
                self._last_finished = self._clock()
