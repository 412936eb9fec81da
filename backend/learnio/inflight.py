"""Single-slot guard around one credential resolution at a time."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from .errors import AuthUnavailableError, ResolutionCancelled, ResolutionInFlight

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResolutionSlot:
    """Holds at most one running resolution task.

    ``submit`` refuses a second job while the first is running, bounds every
    job by ``timeout`` seconds and turns an explicit :meth:`cancel` into
    :class:`ResolutionCancelled` for the awaiting caller.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self._timeout = timeout
        self._task: Optional["asyncio.Task[object]"] = None
        self._cancel_requested = False

    @property
    def busy(self) -> bool:
        return self._task is not None and not self._task.done()

    async def submit(self, job: Callable[[], Awaitable[T]]) -> T:
        if self.busy:
            raise ResolutionInFlight("A sign-in attempt is already in progress.")
        self._cancel_requested = False
        task = asyncio.ensure_future(self._bounded(job))
        self._task = task  # type: ignore[assignment]
        try:
            return await task
        except asyncio.CancelledError as exc:
            if self._cancel_requested:
                raise ResolutionCancelled("The sign-in attempt was cancelled.") from exc
            raise
        finally:
            if self._task is task:
                self._task = None

    async def _bounded(self, job: Callable[[], Awaitable[T]]) -> T:
        if self._timeout is None:
            return await job()
        try:
            return await asyncio.wait_for(job(), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            logger.warning("Resolution exceeded %.2fs and was abandoned", self._timeout)
            raise AuthUnavailableError("sign-in timed out") from exc

    def cancel(self) -> bool:
        """Cancel the running job. Returns False when the slot is idle."""
        if not self.busy:
            return False
        self._cancel_requested = True
        assert self._task is not None
        self._task.cancel()
        logger.info("Resolution cancelled on request")
        return True


__all__ = ["ResolutionSlot"]
