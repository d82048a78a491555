"""Immutable values handed out by the services.

ORM rows never leave a session; callers get these snapshots instead, so a
value read once cannot change underneath them.
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple


@dataclass(frozen=True)
class InventoryItem:
    id: int
    name: str
    quantity: int
    price: Decimal
    description: Optional[str] = None
    version: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record) -> "InventoryItem":
        return cls(
            id=record.id,
            name=record.name,
            quantity=record.quantity,
            price=record.price,
            description=record.description,
            version=record.version,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


@dataclass(frozen=True)
class CartLine:
    item_id: int
    quantity: int


@dataclass(frozen=True)
class CartTotal:
    amount: Decimal
    missing_item_ids: Tuple[int, ...] = ()

    @property
    def complete(self) -> bool:
        return not self.missing_item_ids


@dataclass(frozen=True)
class Reservation:
    """Stock taken from one item on behalf of an order line"""
    item_id: int
    quantity: int
    item_name: str
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class OrderLine:
    item_id: int
    item_name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


@dataclass(frozen=True)
class Order:
    id: int
    order_number: str
    status: str
    total_amount: Decimal
    created_at: Optional[datetime]
    lines: Tuple[OrderLine, ...] = field(default_factory=tuple)

    @classmethod
    def from_record(cls, record) -> "Order":
        return cls(
            id=record.id,
            order_number=record.order_number,
            status=record.status,
            total_amount=record.total_amount,
            created_at=record.created_at,
            lines=tuple(
                OrderLine(
                    item_id=line.item_id,
                    item_name=line.item_name,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    line_total=line.line_total,
                )
                for line in record.lines
            ),
        )
