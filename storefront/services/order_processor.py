import enum
import threading
from typing import Iterable, List, Mapping, Optional, Tuple, Union
import logging

from sqlalchemy.exc import SQLAlchemyError

from storefront.core.exceptions import (
    InvalidOrderState,
    OrderCancelled,
    PersistenceFailure,
    ValidationError,
)
from storefront.models.domain import CartLine, Order, Reservation
from storefront.services.cart_session import CartSession
from storefront.services.inventory_store import InventoryStore, validate_quantity
from storefront.services.order_repository import OrderRepository

logger = logging.getLogger(__name__)

OrderLines = Union[Mapping[int, int], Iterable[CartLine]]


class OrderState(str, enum.Enum):
    PENDING = "pending"
    RESERVING = "reserving"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


def normalize_lines(lines: OrderLines) -> List[Tuple[int, int]]:
    """Merge duplicate item ids and sort by ascending id"""
    pairs = lines.items() if isinstance(lines, Mapping) else ((line.item_id, line.quantity) for line in lines)

    merged = {}
    for item_id, quantity in pairs:
        validate_quantity(quantity, minimum=1)
        merged[item_id] = merged.get(item_id, 0) + quantity

    if not merged:
        raise ValidationError("An order needs at least one line")
    return sorted(merged.items())


class OrderAttempt:
    """
    A single try at turning order lines into a committed order.

    PENDING -> RESERVING -> COMMITTED | ROLLED_BACK

    Lines are reserved one item at a time in ascending id order, so two
    attempts that share items always lock them in the same sequence. Any
    failure before commit gives back every unit reserved so far.
    """

    def __init__(self, store: InventoryStore, orders: OrderRepository, lines: List[Tuple[int, int]]):
        self.store = store
        self.orders = orders
        self.lines = lines
        self.state = OrderState.PENDING
        self.reservations: List[Reservation] = []
        self.order: Optional[Order] = None

    def reserve(self, cancel_event: Optional[threading.Event] = None) -> List[Reservation]:
        if self.state is not OrderState.PENDING:
            raise InvalidOrderState(f"Cannot reserve an order attempt in state {self.state.value}")
        self.state = OrderState.RESERVING

        for item_id, quantity in self.lines:
            if cancel_event is not None and cancel_event.is_set():
                self.abort(OrderCancelled("Order attempt was cancelled before all lines were reserved"))
            try:
                self.reservations.append(self.store.reserve(item_id, quantity))
            except Exception as e:
                self.abort(e)
        return list(self.reservations)

    def commit(self) -> Order:
        if self.state is not OrderState.RESERVING or len(self.reservations) != len(self.lines):
            raise InvalidOrderState(f"Cannot commit an order attempt in state {self.state.value}")
        try:
            self.order = self.orders.save(self.reservations)
        except SQLAlchemyError as e:
            logger.error(f"Error saving order: {str(e)}")
            failure = PersistenceFailure(f"Order could not be saved: {e}")
            failure.__cause__ = e
            self.abort(failure)

        self.state = OrderState.COMMITTED
        return self.order

    def rollback(self) -> None:
        """Return reserved stock in reverse order; safe to call twice"""
        if self.state is OrderState.COMMITTED:
            raise InvalidOrderState("A committed order cannot be rolled back")
        if self.state is OrderState.ROLLED_BACK:
            return

        if self.reservations:
            logger.warning(f"Rolling back {len(self.reservations)} reservation(s)")

        # every release is attempted; the ones that fail stay for another rollback()
        failures = []
        for reservation in reversed(list(self.reservations)):
            try:
                self.store.release(reservation)
            except Exception as e:
                logger.error(f"Could not return stock of inventory item {reservation.item_id}: {e}")
                failures.append(e)
            else:
                self.reservations.remove(reservation)

        if failures:
            raise failures[0]
        self.state = OrderState.ROLLED_BACK

    # abandonment by the caller
    cancel = rollback

    def abort(self, error: BaseException) -> None:
        """Roll back, then raise ``error`` with any release failure chained onto it"""
        try:
            self.rollback()
        except Exception as release_error:
            raise error from release_error
        raise error


class OrderProcessor:
    """Reconciles order intent against current stock and commits orders"""

    def __init__(self, store: InventoryStore, orders: OrderRepository):
        self.store = store
        self.orders = orders

    def begin(self, lines: OrderLines) -> OrderAttempt:
        return OrderAttempt(self.store, self.orders, normalize_lines(lines))

    def place_order(self, lines: OrderLines, cancel_event: Optional[threading.Event] = None) -> Order:
        attempt = self.begin(lines)
        logger.info(f"Processing order for {len(attempt.lines)} line(s)")

        attempt.reserve(cancel_event)
        if cancel_event is not None and cancel_event.is_set():
            attempt.abort(OrderCancelled("Order attempt was cancelled before commit"))
        order = attempt.commit()

        logger.info(f"Order {order.order_number} processed successfully")
        return order

    def place_single(self, item_id: int, quantity: int) -> Order:
        return self.place_order({item_id: quantity})

    def checkout(self, cart: CartSession, cancel_event: Optional[threading.Event] = None) -> Order:
        """Order everything in the cart; the cart only changes once the order is committed"""
        order = self.place_order(cart.lines(), cancel_event)
        for line in order.lines:
            cart.deduct(line.item_id, line.quantity)
        return order
