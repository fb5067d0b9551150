"""In-memory category store kept in sync with the category service.

The store holds the last list of categories confirmed by the service. It is
never patched locally: every change goes through the service and is picked
up by a full refresh, which swaps the snapshot in one assignment.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple
from models.category import Category
from services.errors import FetchError
from services.remote import RemoteCategoryService
from logger import get_logger

logger = get_logger()

Snapshot = Tuple[Category, ...]


class StoreState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"


@dataclass(frozen=True)
class RefreshResult:
    """Outcome of a single refresh.

    Attributes:
        ok: False if the service call failed.
        snapshot: The store's snapshot after this refresh completed.
        error: The failure, when ok is False.
        applied: True if this refresh's result replaced the snapshot. A
            successful refresh is not applied when a later-issued refresh
            already completed.
    """

    ok: bool
    snapshot: Snapshot
    error: Optional[FetchError] = None
    applied: bool = False


class CategoryStore:
    """Owns the authoritative category snapshot.

    Concurrent refreshes are ordered by ticket: each call takes the next
    ticket when issued, and its result is only applied if no refresh with a
    higher ticket has been applied yet. Results from superseded requests
    are discarded.

    Args:
        remote: The category service to load from.
    """

    def __init__(self, remote: RemoteCategoryService):
        self.remote = remote
        self.last_error: Optional[FetchError] = None
        self._snapshot: Snapshot = ()
        self._issued = 0
        self._applied = 0
        self._in_flight = 0
        self._loaded = False
        self._stale = False
        self._closed = False
        self._subscribers: List[Callable[[Snapshot], None]] = []

    @property
    def state(self) -> StoreState:
        if self._in_flight:
            return StoreState.LOADING
        if self._loaded:
            return StoreState.READY
        return StoreState.UNINITIALIZED

    @property
    def is_stale(self) -> bool:
        """True when the most recent refresh failed and the snapshot may be out of date."""
        return self._stale

    def current_snapshot(self) -> Snapshot:
        """Return the latest confirmed categories (empty before the first load)."""
        return self._snapshot

    def subscribe(self, callback: Callable[[Snapshot], None]) -> Callable[[], None]:
        """Register a callback invoked with each newly applied snapshot.

        Returns:
            A function that removes the callback.
        """
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def close(self) -> None:
        """Tear down the store. Refreshes still in flight are discarded."""
        self._closed = True
        self._subscribers.clear()

    async def refresh(self) -> RefreshResult:
        """Reload all categories from the service.

        Never raises: a failure leaves the previous snapshot in place and is
        returned in the result.
        """
        self._issued += 1
        ticket = self._issued
        self._in_flight += 1
        logger.debug(f"Refresh #{ticket} started")

        try:
            categories = await self.remote.list_categories()
        except Exception as e:
            error = e if isinstance(e, FetchError) else FetchError(
                f"Failed to load categories: {e}", cause=e
            )
            logger.error(f"Refresh #{ticket} failed: {error}")
            if ticket > self._applied and not self._closed:
                self.last_error = error
                self._stale = True
            return RefreshResult(ok=False, snapshot=self._snapshot, error=error)
        finally:
            self._in_flight -= 1

        if self._closed:
            logger.debug(f"Refresh #{ticket} completed after close, discarded")
            return RefreshResult(ok=True, snapshot=self._snapshot)

        if ticket < self._applied:
            logger.debug(
                f"Refresh #{ticket} superseded by #{self._applied}, discarded"
            )
            return RefreshResult(ok=True, snapshot=self._snapshot)

        self._snapshot = tuple(categories)
        self._applied = ticket
        self._loaded = True
        self._stale = False
        self.last_error = None
        logger.debug(f"Refresh #{ticket} applied ({len(self._snapshot)} categories)")

        self._notify()
        return RefreshResult(ok=True, snapshot=self._snapshot, applied=True)

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            try:
                callback(self._snapshot)
            except Exception as e:
                logger.error(f"Category subscriber failed: {e}")
