"""Process-wide cooperative cancellation.

A single ``CancellationScope`` is created at process start and triggered on
shutdown. Streaming code never owns it: it polls ``cancelled``, registers
wake-up callbacks while suspended, and guards awaits that could otherwise
hang forever with ``run()``.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from typing import TypeVar

from logpipe.domain.shared.error import OperationCancelledError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancellationScope:
    """Externally triggerable, set-once cancellation flag."""

    def __init__(self) -> None:
        self._cancelled = False
        self._reason: str | None = None
        self._callbacks: list[Callable[[], None]] = []
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str | None = None) -> None:
        """Trigger the scope. Subsequent calls are no-ops."""
        if self._cancelled:
            return
        self._cancelled = True
        self._reason = reason
        self._event.set()
        logger.info("Cancellation requested: %s", reason or "no reason given")
        for callback in list(self._callbacks):
            callback()

    @contextmanager
    def register(self, callback: Callable[[], None]) -> Iterator[None]:
        """Invoke ``callback`` if the scope fires while the block runs.

        Fires immediately if the scope is already cancelled.
        """
        if self._cancelled:
            callback()
            yield
            return
        self._callbacks.append(callback)
        try:
            yield
        finally:
            self._callbacks.remove(callback)

    async def wait(self) -> None:
        """Suspend until the scope is cancelled."""
        await self._event.wait()

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable``, abandoning it if the scope fires first.

        Raises:
            OperationCancelledError: If the scope fired before or during the await.
        """
        if self._cancelled:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise OperationCancelledError(self._reason or "Operation cancelled")

        task = asyncio.ensure_future(awaitable)
        with self.register(task.cancel):
            try:
                return await task
            except asyncio.CancelledError:
                current = asyncio.current_task()
                # Only translate our own cancellation; outer task cancellation propagates
                if self._cancelled and (current is None or not current.cancelling()):
                    raise OperationCancelledError(self._reason or "Operation cancelled") from None
                raise
