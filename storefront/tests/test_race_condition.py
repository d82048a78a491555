import pytest
import asyncio
import random
import threading
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from storefront.core.exceptions import InsufficientStock
from storefront.models.domain import Order, Reservation


def run_concurrently(fn, count):
    """Start ``count`` calls to ``fn`` at the same moment, collecting results or errors"""
    barrier = threading.Barrier(count)

    def call(i):
        barrier.wait()
        try:
            return fn(i)
        except Exception as e:
            return e

    with ThreadPoolExecutor(max_workers=count) as executor:
        return list(executor.map(call, range(count)))


class TestConcurrentReservations:
    """Concurrent reservations must never oversell"""

    def test_ten_reservations_on_five_units(self, store, sample_inventory_item):
        results = run_concurrently(lambda i: store.reserve(sample_inventory_item.id, 1), 10)

        successes = [r for r in results if isinstance(r, Reservation)]
        failures = [r for r in results if isinstance(r, InsufficientStock)]

        assert len(successes) == 5, f"Expected 5 reservations, got {len(successes)}"
        assert len(failures) == 5, f"Expected 5 failures, got {len(failures)}"
        assert store.get(sample_inventory_item.id).quantity == 0

    @pytest.mark.asyncio
    async def test_reservations_from_event_loop(self, store, sample_inventory_item):
        """Same property when requests arrive as concurrent asyncio tasks"""
        results = await asyncio.gather(
            *[asyncio.to_thread(store.reserve, sample_inventory_item.id, 1) for _ in range(10)],
            return_exceptions=True
        )

        successes = sum(1 for result in results if isinstance(result, Reservation))
        errors = [result for result in results if isinstance(result, Exception)]

        assert successes == 5
        assert len(errors) == 5
        assert all(isinstance(error, InsufficientStock) for error in errors)
        assert store.get(sample_inventory_item.id).quantity == 0

    def test_mixed_amounts_never_exceed_stock(self, store):
        item = store.create("Water Bottle", 20, Decimal("349.00"))
        amounts = [random.randint(1, 4) for _ in range(16)]

        results = run_concurrently(lambda i: store.reserve(item.id, amounts[i]), len(amounts))

        reserved = sum(r.quantity for r in results if isinstance(r, Reservation))
        assert reserved <= 20
        assert store.get(item.id).quantity == 20 - reserved

    def test_admin_update_does_not_clobber_reservations(self, store):
        item = store.create("Notebook", 100, Decimal("120.00"))

        def work(i):
            if i % 5 == 0:
                return store.update(item.id, description=f"edit {i}")
            return store.reserve(item.id, 1)

        results = run_concurrently(work, 20)

        reserved = sum(1 for r in results if isinstance(r, Reservation))
        assert reserved == 16
        assert store.get(item.id).quantity == 100 - reserved


class TestConcurrentOrders:
    """Concurrent multi-line orders on overlapping items"""

    def test_two_orders_for_three_of_five(self, store, processor, sample_inventory_item):
        results = run_concurrently(lambda i: processor.place_order({sample_inventory_item.id: 3}), 2)

        successful_orders = sum(1 for result in results if isinstance(result, Order))
        errors = [result for result in results if isinstance(result, Exception)]

        assert successful_orders == 1, f"Expected 1 successful order, got {successful_orders}"
        assert len(errors) == 1
        assert "Insufficient stock" in str(errors[0])
        assert store.get(sample_inventory_item.id).quantity == 2

    def test_overlapping_orders_do_not_deadlock_or_oversell(self, store, processor, order_repository):
        a = store.create("Mug A", 5, Decimal("20.00"))
        b = store.create("Mug B", 5, Decimal("25.00"))

        def order(i):
            # alternate the order lines are listed in
            lines = {a.id: 1, b.id: 1} if i % 2 else {b.id: 1, a.id: 1}
            return processor.place_order(lines)

        results = run_concurrently(order, 12)

        successes = [r for r in results if isinstance(r, Order)]
        failures = [r for r in results if isinstance(r, InsufficientStock)]
        assert len(successes) == 5
        assert len(failures) == 7
        assert store.get(a.id).quantity == 0
        assert store.get(b.id).quantity == 0
        assert len(order_repository.list()) == 5

    def test_failed_orders_leave_no_partial_stock(self, store, processor):
        scarce = store.create("Limited Print", 3, Decimal("60.00"))
        plenty = store.create("Gift Wrap", 100, Decimal("0.50"))

        results = run_concurrently(lambda i: processor.place_order({scarce.id: 1, plenty.id: 2}), 8)

        successes = sum(1 for r in results if isinstance(r, Order))
        assert successes == 3
        assert store.get(scarce.id).quantity == 0
        # only committed orders consumed gift wrap
        assert store.get(plenty.id).quantity == 100 - 2 * successes
