import threading
import uuid
from datetime import timedelta

import pytest
from django.db import connection
from django.utils import timezone

from inventory.models import Category, Item, StockMovement
from inventory.services import StockAdjustmentService, DeadlineExceededError
from inventory.services.locking import ItemLocks

WORKERS = 20


@pytest.mark.django_db(transaction=True)
def test_concurrent_stock_in_serialises_per_item():
    org_id = uuid.uuid4()
    user_id = uuid.uuid4()
    category = Category.objects.create(organization_id=org_id, name="Bulk")
    item = Item.objects.create(
        organization_id=org_id,
        category=category,
        name="Rice",
        unit_of_measurement="gm",
        current_stock=0,
        minimum_threshold=0,
    )

    barrier = threading.Barrier(WORKERS)
    errors = []

    def worker():
        try:
            barrier.wait()
            StockAdjustmentService.adjust(item.id, "IN", 1, user_id)
        except Exception as e:
            errors.append(e)
        finally:
            connection.close()

    threads = [threading.Thread(target=worker) for _ in range(WORKERS)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert errors == []
    item.refresh_from_db()
    assert item.current_stock == WORKERS

    movements = list(StockMovement.objects.filter(item=item).order_by("id"))
    assert len(movements) == WORKERS
    assert movements[0].previous_stock == 0
    for prev, nxt in zip(movements, movements[1:]):
        assert prev.new_stock == nxt.previous_stock
    assert movements[-1].new_stock == WORKERS


def test_locks_are_per_item():
    first = ItemLocks.get(101)
    assert ItemLocks.get(101) is first
    assert ItemLocks.get("101") is first
    assert ItemLocks.get(102) is not first


def test_other_items_are_not_blocked():
    entered = threading.Event()
    release = threading.Event()

    def hold_first_item():
        with ItemLocks.hold(201):
            entered.set()
            release.wait(5)

    holder = threading.Thread(target=hold_first_item)
    holder.start()
    entered.wait(5)
    try:
        deadline = timezone.now() + timedelta(seconds=1)
        with ItemLocks.hold(202, deadline):
            pass
    finally:
        release.set()
        holder.join(5)


def test_waiting_on_a_held_item_respects_deadline():
    entered = threading.Event()
    release = threading.Event()

    def hold_item():
        with ItemLocks.hold(301):
            entered.set()
            release.wait(5)

    holder = threading.Thread(target=hold_item)
    holder.start()
    entered.wait(5)
    try:
        with pytest.raises(DeadlineExceededError):
            with ItemLocks.hold(301, timezone.now() + timedelta(milliseconds=100)):
                pass
    finally:
        release.set()
        holder.join(5)
