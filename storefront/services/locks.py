import threading
from contextlib import contextmanager
from typing import Dict, Iterator
import logging

from storefront.core.exceptions import StockBusy

logger = logging.getLogger(__name__)


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class ItemLockRegistry:
    """
    One lock per inventory item id.

    An entry exists only while some caller holds or waits on it, so ids that
    never resolve to an item leave nothing behind. The registry lock only
    guards the dictionary and is never held while an item lock is awaited.
    """

    def __init__(self, timeout: float = 5.0):
        self.timeout = timeout
        self._guard = threading.Lock()
        self._entries: Dict[int, _Entry] = {}

    def _checkout(self, item_id: int) -> _Entry:
        with self._guard:
            entry = self._entries.get(item_id)
            if entry is None:
                entry = self._entries[item_id] = _Entry()
            entry.users += 1
            return entry

    def _checkin(self, item_id: int, entry: _Entry) -> None:
        with self._guard:
            entry.users -= 1
            if entry.users == 0:
                del self._entries[item_id]

    @contextmanager
    def hold(self, item_id: int, wait: bool = False) -> Iterator[None]:
        """
        Hold the item's lock.

        By default gives up after ``timeout`` seconds with StockBusy. With
        ``wait=True`` blocks until the lock is free; rollback uses this so
        returning stock cannot fail on contention.
        """
        entry = self._checkout(item_id)
        try:
            acquired = entry.lock.acquire() if wait else entry.lock.acquire(timeout=self.timeout)
            if not acquired:
                logger.warning(f"Timed out waiting for lock on inventory item {item_id}")
                raise StockBusy(f"Inventory item {item_id} is busy. Please try again.")
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            self._checkin(item_id, entry)

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)
