import uuid
from decimal import Decimal
from typing import List, Sequence
import logging

from sqlalchemy.orm import selectinload, sessionmaker

from storefront.core.config import settings
from storefront.core.exceptions import NotFound
from storefront.models.database import OrderLineRecord, OrderRecord
from storefront.models.domain import Order, Reservation

logger = logging.getLogger(__name__)


class OrderRepository:
    """Durable storage for committed orders"""

    def __init__(self, session_factory: sessionmaker, number_prefix: str = None):
        self._session_factory = session_factory
        self.number_prefix = number_prefix or settings.order_number_prefix

    def _next_order_number(self) -> str:
        return f"{self.number_prefix}-{uuid.uuid4().hex[:8].upper()}"

    def save(self, reservations: Sequence[Reservation]) -> Order:
        """Write the order and all of its lines in one transaction"""
        total_amount = sum((r.line_total for r in reservations), Decimal("0.00"))

        with self._session_factory() as db:
            order = OrderRecord(
                order_number=self._next_order_number(),
                status="confirmed",
                total_amount=total_amount,
            )
            order.lines = [
                OrderLineRecord(
                    item_id=r.item_id,
                    item_name=r.item_name,
                    quantity=r.quantity,
                    unit_price=r.unit_price,
                    line_total=r.line_total,
                )
                for r in reservations
            ]
            db.add(order)
            db.commit()
            saved = Order.from_record(order)

        logger.info(f"Order {saved.order_number} saved with {len(saved.lines)} line(s), total {saved.total_amount}")
        return saved

    def get(self, order_id: int) -> Order:
        with self._session_factory() as db:
            order = (
                db.query(OrderRecord)
                .options(selectinload(OrderRecord.lines))
                .filter(OrderRecord.id == order_id)
                .first()
            )
            if not order:
                raise NotFound(f"Order {order_id} not found")
            return Order.from_record(order)

    def list(self) -> List[Order]:
        with self._session_factory() as db:
            orders = (
                db.query(OrderRecord)
                .options(selectinload(OrderRecord.lines))
                .order_by(OrderRecord.id)
                .all()
            )
            return [Order.from_record(order) for order in orders]
