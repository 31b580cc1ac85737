"""Trailing-edge debouncer for deferred writes.

Each key owns at most one pending timer. Scheduling on a key that already
has a timer cancels it and starts a new one, so only the last action of a
burst runs. Once a timer has fired its action is in flight and can no
longer be superseded; a later schedule on the same key starts a fresh timer
alongside it.

A Debouncer is owned by one repository instance; nothing here is global.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from collections.abc import Awaitable, Callable
from typing import Any

from conduct.exceptions import RepositoryClosedError
from conduct.models.config import NOTES_DEBOUNCE_SECONDS

logger = logging.getLogger(__name__)

Action = Callable[[], Awaitable[Any]]


class Debouncer:
    """Per-key trailing-edge debounce over the running asyncio loop."""

    def __init__(self, delay: float = NOTES_DEBOUNCE_SECONDS) -> None:
        self._delay = delay
        self._timers: dict[str, tuple[asyncio.Task[Any], Action]] = {}
        self._tasks: set[asyncio.Task[Any]] = set()
        self._sending: Counter[str] = Counter()
        self._closed = False

    @property
    def delay(self) -> float:
        return self._delay

    def schedule(self, key: str, action: Action) -> None:
        """(Re)start the timer for ``key``; ``action`` runs when it expires.

        Must be called from inside the running event loop.

        Raises:
            RepositoryClosedError: If the debouncer has been closed.
        """
        if self._closed:
            raise RepositoryClosedError(f"Cannot schedule {key!r}: debouncer is closed")
        loop = asyncio.get_running_loop()
        if self.cancel(key):
            logger.debug("Debounce superseded: %s", key)
        task = loop.create_task(self._fire_later(key, action))
        self._timers[key] = (task, action)
        self._track(task)

    def cancel(self, key: str) -> bool:
        """Cancel the unsent timer for ``key``. Returns True if one existed."""
        entry = self._timers.pop(key, None)
        if entry is None:
            return False
        entry[0].cancel()
        return True

    def is_scheduled(self, key: str) -> bool:
        """True while ``key`` has a timer that has not fired yet."""
        return key in self._timers

    def is_active(self, key: str) -> bool:
        """True while ``key`` has an unsent or an in-flight action."""
        return key in self._timers or self._sending[key] > 0

    @property
    def pending_keys(self) -> set[str]:
        return set(self._timers)

    async def flush(self) -> list[BaseException]:
        """Fire every pending timer now and wait for all in-flight actions.

        Returns:
            The exceptions raised by actions that failed, in completion order.
        """
        loop = asyncio.get_running_loop()
        for key in list(self._timers):
            task, action = self._timers.pop(key)
            task.cancel()
            self._track(loop.create_task(self._dispatch(key, action)))

        failures: list[BaseException] = []
        while True:
            running = [task for task in self._tasks if not task.done()]
            if not running:
                break
            results = await asyncio.gather(*running, return_exceptions=True)
            for result in results:
                if isinstance(result, asyncio.CancelledError):
                    continue
                if isinstance(result, BaseException):
                    failures.append(result)
        return failures

    async def close(self) -> list[BaseException]:
        """Refuse new work, then flush what is pending."""
        self._closed = True
        return await self.flush()

    def _track(self, task: asyncio.Task[Any]) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _fire_later(self, key: str, action: Action) -> BaseException | None:
        await asyncio.sleep(self._delay)
        # Fired: from here the action is in flight and no longer cancellable.
        entry = self._timers.get(key)
        if entry is not None and entry[0] is asyncio.current_task():
            del self._timers[key]
        return await self._dispatch(key, action)

    async def _dispatch(self, key: str, action: Action) -> BaseException | None:
        self._sending[key] += 1
        try:
            await action()
        except Exception as exc:
            logger.debug("Debounced action failed: %s (%s)", key, exc)
            return exc
        finally:
            self._sending[key] -= 1
            if self._sending[key] <= 0:
                del self._sending[key]
        return None
