"""
Debounced search input synchronized with URL search params.

Flow::

    user types -> local value (instant) -> [debounce] -> params.search (URL / API)
                                                               |
    URL changes (back button) ---------------------------> local value (instant)

The controller keeps the text box responsive while only committing to the
parameter store once typing pauses. Clearing the box commits immediately.
"""
from __future__ import annotations

import asyncio
import logging
import threading
from typing import Callable, Optional, Protocol

from app.client.params import SearchParams
from app.core.pagination import DEFAULT_PAGE

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_MS = 500


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Runs ``callback`` once after ``delay`` seconds unless the handle is cancelled."""

    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class LoopScheduler:
    """Schedules callbacks on an asyncio event loop (single-threaded hosts)."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


class ThreadTimerScheduler:
    """
    Schedules callbacks on ``threading.Timer`` for blocking hosts (terminal UIs).

    Callbacks run while holding ``lock``; the host takes the same lock around
    its own calls into the controller so the two never interleave.
    """

    def __init__(self, lock: Optional[threading.RLock] = None):
        self.lock = lock or threading.RLock()

    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        def run() -> None:
            with self.lock:
                callback()

        timer = threading.Timer(delay, run)
        timer.daemon = True
        timer.start()
        return timer


class SearchParamsController:
    """
    Owns the search box's displayed value and commits it to the params store.

    Args:
        params: Current SearchParams when the search box mounts.
        apply: Setter committing a full replacement of the params.
        scheduler: Timer source; see LoopScheduler and ThreadTimerScheduler.
        debounce_ms: Quiet period before a typed value is committed.
    """

    def __init__(
        self,
        params: SearchParams,
        apply: Callable[[SearchParams], None],
        scheduler: Scheduler,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
    ):
        self._params = params
        self._apply = apply
        self._scheduler = scheduler
        self._delay = debounce_ms / 1000.0
        self._local_value = params.search
        self._pending: Optional[TimerHandle] = None
        # Bumped whenever a timer is superseded so a cancel that loses the race still no-ops.
        self._generation = 0
        self._closed = False

    @property
    def params(self) -> SearchParams:
        return self._params

    @property
    def has_pending_commit(self) -> bool:
        return self._pending is not None

    def get_display_value(self) -> str:
        return self._local_value

    def on_user_input(self, next_value: str) -> None:
        """Record a keystroke and (re)start reconciliation."""
        if self._closed:
            return
        self._local_value = next_value
        self._cancel_pending()

        if next_value == "" and self._params.search != "":
            logger.debug("Search cleared; committing immediately")
            self._commit("")
            return

        generation = self._generation
        self._pending = self._scheduler.schedule(
            self._delay, lambda: self._on_timer(generation, next_value)
        )

    def sync(self, params: SearchParams) -> None:
        """
        React to a params change coming from the store (navigation or our own commit).

        When ``search`` changed, the displayed value snaps to it without
        debounce and without writing back, and a pending commit is dropped.
        Changes to other fields (page, page size) leave typing in progress alone.
        """
        if self._closed:
            return
        search_changed = params.search != self._params.search
        self._params = params
        if search_changed:
            self._cancel_pending()
            self._local_value = params.search

    def close(self) -> None:
        """Unmount: drop any pending commit. Later callbacks become no-ops."""
        self._cancel_pending()
        self._closed = True

    def __enter__(self) -> "SearchParamsController":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _cancel_pending(self) -> None:
        self._generation += 1
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _on_timer(self, generation: int, value: str) -> None:
        if self._closed or generation != self._generation:
            return
        self._pending = None
        if value != self._params.search:
            self._commit(value)

    def _commit(self, search: str) -> None:
        new_params = self._params.replace(search=search, page=DEFAULT_PAGE)
        logger.debug("Committing search %r", search)
        self._apply(new_params)
