import threading
from decimal import Decimal
from typing import Callable, Dict, List
import logging

from storefront.core.exceptions import NotFound
from storefront.models.domain import CartLine, CartTotal
from storefront.services.inventory_store import validate_quantity

logger = logging.getLogger(__name__)

PriceLookup = Callable[[int], Decimal]


class CartSession:
    """
    Per-client shopping cart held in memory.

    Items are added freely; stock is only checked when the cart is checked
    out. The cart never touches the inventory store and keeps no prices.
    Concurrent requests on one session are serialized by the cart's lock.
    """

    def __init__(self, session_id: str = None):
        self.session_id = session_id
        self._guard = threading.Lock()
        self._quantities: Dict[int, int] = {}

    def add_item(self, item_id: int, quantity: int = 1) -> CartLine:
        validate_quantity(quantity, minimum=1)
        with self._guard:
            self._quantities[item_id] = self._quantities.get(item_id, 0) + quantity
            return CartLine(item_id, self._quantities[item_id])

    def remove_one(self, item_id: int) -> None:
        with self._guard:
            current = self._require(item_id)
            if current <= 1:
                del self._quantities[item_id]
            else:
                self._quantities[item_id] = current - 1

    def remove_all(self, item_id: int) -> None:
        with self._guard:
            self._require(item_id)
            del self._quantities[item_id]

    def deduct(self, item_id: int, quantity: int) -> None:
        """Take ``quantity`` units off a line after they were ordered"""
        with self._guard:
            remaining = self._quantities.get(item_id, 0) - quantity
            if remaining > 0:
                self._quantities[item_id] = remaining
            else:
                self._quantities.pop(item_id, None)

    def clear(self) -> None:
        with self._guard:
            self._quantities.clear()

    def lines(self) -> List[CartLine]:
        with self._guard:
            return [CartLine(item_id, qty) for item_id, qty in sorted(self._quantities.items())]

    def item_count(self) -> int:
        with self._guard:
            return sum(self._quantities.values())

    def is_empty(self) -> bool:
        with self._guard:
            return not self._quantities

    def total(self, price_lookup: PriceLookup) -> CartTotal:
        """Sum ``quantity * current price``; vanished items are skipped and reported"""
        amount = Decimal("0.00")
        missing = []
        for line in self.lines():
            try:
                price = price_lookup(line.item_id)
            except NotFound:
                missing.append(line.item_id)
                continue
            amount += price * line.quantity

        if missing:
            logger.warning(
                f"Cart {self.session_id} references missing item(s) {missing}; "
                f"excluded from total"
            )
        return CartTotal(amount=amount, missing_item_ids=tuple(missing))

    def _require(self, item_id: int) -> int:
        if item_id not in self._quantities:
            raise NotFound(f"Item {item_id} is not in the cart")
        return self._quantities[item_id]


class CartRegistry:
    """Thread-safe map of session id to cart"""

    def __init__(self):
        self._guard = threading.Lock()
        self._carts: Dict[str, CartSession] = {}

    def get_or_create(self, session_id: str) -> CartSession:
        with self._guard:
            cart = self._carts.get(session_id)
            if cart is None:
                cart = self._carts[session_id] = CartSession(session_id)
            return cart

    def discard(self, session_id: str) -> None:
        with self._guard:
            self._carts.pop(session_id, None)

    def __len__(self) -> int:
        with self._guard:
            return len(self._carts)
