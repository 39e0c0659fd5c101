"""Aggregated status of in-flight mutations for one client session.

Every create/update/delete goes through ``SyncCoordinator.run``. The
coordinator counts pending actions and folds them into a single status a
view can display: ``syncing`` while anything is in flight, then ``success``
or ``error`` once everything has settled, then back to ``idle`` after a
short delay.

All state changes happen on the event loop thread, between awaits, so no
locking is needed.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

SUCCESS_MESSAGE = "All changes saved."
FALLBACK_ERROR_MESSAGE = "Update failed."


class SyncStatus(str, Enum):
    IDLE = "idle"
    SYNCING = "syncing"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class SyncState:
    pending: int = 0
    status: SyncStatus = SyncStatus.IDLE
    message: str = ""

    @property
    def is_terminal(self) -> bool:
        return self.status in (SyncStatus.SUCCESS, SyncStatus.ERROR)


def saving_message(count: int) -> str:
    return f"Saving {count} change{'s' if count > 1 else ''}..."


class SyncCoordinator:
    def __init__(self, revert_delay: float = 4):
        self.revert_delay = revert_delay
        self._state = SyncState()
        self._batch_failed = False
        self._last_error = ""
        self._revert_handle: Optional[asyncio.TimerHandle] = None
        self._listeners: List[Callable[[SyncState], None]] = []

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def pending(self) -> int:
        return self._state.pending

    @property
    def status(self) -> SyncStatus:
        return self._state.status

    @property
    def message(self) -> str:
        return self._state.message

    def subscribe(self, listener: Callable[[SyncState], None]) -> Callable[[], None]:
        """Call ``listener`` with the new state on every change.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def run(self, action: Callable[[], Awaitable[T]]) -> T:
        """Run ``action`` as one tracked mutation.

        The action's exception is re-raised after the status is updated so
        the caller can roll back its speculative state.
        """
        if self._state.pending == 0:
            self._batch_failed = False

        pending = self._state.pending + 1
        self._set_state(SyncState(pending, SyncStatus.SYNCING, saving_message(pending)))

        try:
            result = await action()
        except BaseException as exc:
            self._settle(exc)
            raise
        self._settle(None)
        return result

    def _settle(self, error: Optional[BaseException]) -> None:
        pending = self._state.pending - 1

        if error is not None:
            self._batch_failed = True
            self._last_error = str(error) or FALLBACK_ERROR_MESSAGE
            logger.warning("Sync action failed (%d still pending): %s", pending, self._last_error)
            self._set_state(SyncState(pending, SyncStatus.ERROR, self._last_error))
        elif pending > 0:
            self._set_state(SyncState(pending, SyncStatus.SYNCING, saving_message(pending)))
        elif self._batch_failed:
            # An earlier action of this batch failed; keep reporting it.
            self._set_state(SyncState(0, SyncStatus.ERROR, self._last_error))
        else:
            self._set_state(SyncState(0, SyncStatus.SUCCESS, SUCCESS_MESSAGE))

    def _set_state(self, state: SyncState) -> None:
        self._state = state
        self._cancel_revert()
        if state.is_terminal:
            loop = asyncio.get_running_loop()
            self._revert_handle = loop.call_later(self.revert_delay, self._revert)

        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Sync status listener failed")

    def _cancel_revert(self) -> None:
        if self._revert_handle is not None:
            self._revert_handle.cancel()
            self._revert_handle = None

    def _revert(self) -> None:
        self._revert_handle = None
        pending = self._state.pending
        if pending > 0:
            self._set_state(SyncState(pending, SyncStatus.SYNCING, saving_message(pending)))
        else:
            self._set_state(SyncState(0, SyncStatus.IDLE, ""))
