"""
Per-item serialisation for stock changes.

Every read-modify-write of an item's stock happens while holding that item's
lock. Locks for different items are independent. Waiting is bounded by
INVENTORY_LOCK_TIMEOUT or by the caller's deadline, whichever comes first.
"""
from contextlib import contextmanager
from datetime import datetime
from threading import Lock
from typing import Optional
from weakref import WeakValueDictionary

from django.conf import settings
from django.utils import timezone

from inventory.services.base_service import DeadlineExceededError, ItemNotFoundError


def remaining_seconds(deadline: Optional[datetime]) -> Optional[float]:
    if deadline is None:
        return None
    return (deadline - timezone.now()).total_seconds()


def check_deadline(deadline: Optional[datetime], operation: str):
    remaining = remaining_seconds(deadline)
    if remaining is not None and remaining <= 0:
        raise DeadlineExceededError(operation)


class ItemLocks:
    _lock = Lock()
    # Entries vanish once no caller holds a reference to the item's lock
    _locks = WeakValueDictionary()

    @staticmethod
    def key(item_id) -> int:
        try:
            return int(item_id)
        except (TypeError, ValueError):
            raise ItemNotFoundError(item_id)

    @classmethod
    def get(cls, item_id: int) -> Lock:
        item_id = cls.key(item_id)
        with cls._lock:
            lock = cls._locks.get(item_id)
            if lock is None:
                lock = Lock()
                cls._locks[item_id] = lock
            return lock

    @classmethod
    def wait_timeout(cls, deadline: Optional[datetime]) -> float:
        timeout = float(settings.INVENTORY_LOCK_TIMEOUT)
        remaining = remaining_seconds(deadline)
        if remaining is not None:
            timeout = min(timeout, remaining)
        return timeout

    @classmethod
    @contextmanager
    def hold(cls, item_id: int, deadline: Optional[datetime] = None,
             operation: str = "adjust stock"):
        lock = cls.get(item_id)
        timeout = cls.wait_timeout(deadline)
        if timeout <= 0 or not lock.acquire(timeout=timeout):
            raise DeadlineExceededError(operation)
        try:
            yield
        finally:
            lock.release()
