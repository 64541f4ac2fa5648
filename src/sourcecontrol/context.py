"""Cancellable execution context for lifecycle operations.

Each operation receives an ``OperationContext`` explicitly. The context
carries a cancellation signal and an optional deadline shared by every
operation it is passed to. Cancellation is cooperative: it aborts local
waits, never remote work that has already been submitted.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from .errors import OperationCancelledError, OperationTimeoutError

logger = logging.getLogger(__name__)

# Upper bound on how long a cancellation or deadline goes unnoticed
POLL_INTERVAL_SECONDS = 0.5


class OperationContext:
    """Cancellation signal plus deadline for one or more operations."""

    def __init__(self, timeout_seconds: float | None = None) -> None:
        self._timeout_seconds = timeout_seconds
        self._deadline = (
            time.monotonic() + timeout_seconds if timeout_seconds is not None else None
        )
        self._cancelled = asyncio.Event()

    @property
    def timeout_seconds(self) -> float | None:
        return self._timeout_seconds

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Signal cancellation to any operation waiting on this context."""
        if not self._cancelled.is_set():
            logger.info("Operation context cancelled")
        self._cancelled.set()

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None when unbounded."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_cancelled(self, operation_name: str) -> None:
        if self.cancelled:
            raise OperationCancelledError(operation_name)
        if self._deadline is not None and self.remaining() == 0.0:
            raise OperationTimeoutError(operation_name, self._timeout_seconds)

    async def wait_for_poller(self, poller: Any, operation_name: str) -> Any:
        """Wait for an LROPoller to reach a terminal state.

        The poller polls on its own daemon thread; this coroutine only checks
        ``poller.done()`` between short sleeps that wake early on
        cancellation. No thread is left behind when the wait is abandoned,
        so the event loop can shut down immediately.

        Returns:
            The poller's final result.

        Raises:
            OperationCancelledError: If the context is cancelled first.
            OperationTimeoutError: If the deadline passes first.
            AzureError: If the long-running operation itself fails.
        """
        self.raise_if_cancelled(operation_name)

        while not poller.done():
            if self.cancelled:
                logger.warning(
                    f"{operation_name} abandoned on cancellation; remote work may still complete",
                    extra={"operation": operation_name},
                )
                raise OperationCancelledError(operation_name)

            remaining = self.remaining()
            if remaining == 0.0:
                logger.error(
                    f"{operation_name} timed out",
                    extra={"operation": operation_name, "timeout_seconds": self._timeout_seconds},
                )
                raise OperationTimeoutError(operation_name, self._timeout_seconds)

            interval = POLL_INTERVAL_SECONDS
            if remaining is not None:
                interval = min(interval, remaining)
            try:
                await asyncio.wait_for(self._cancelled.wait(), timeout=interval)
            except TimeoutError:
                pass

        # Terminal: result() returns immediately or raises the LRO's error
        return poller.result()
