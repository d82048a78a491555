from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.types import TypeDecorator

Base = declarative_base()

CENT = Decimal("0.01")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Money(TypeDecorator):
    """Decimal amount stored as an integer number of cents"""

    impl = Integer
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return int((Decimal(value) / CENT).to_integral_value())

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return (Decimal(value) * CENT).quantize(CENT)


class InventoryItemRecord(Base):
    """Inventory item row; ``quantity`` is the only contended column"""
    __tablename__ = "inventory_items"
    # AUTOINCREMENT keeps SQLite from handing a deleted id to a new row
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    price = Column(Money, nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class OrderRecord(Base):
    """Committed order; never edited after insert"""
    __tablename__ = "orders"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String, unique=True, index=True, nullable=False)
    status = Column(String, nullable=False, default="confirmed")
    total_amount = Column(Money, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    lines = relationship(
        "OrderLineRecord",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLineRecord.item_id",
    )


class OrderLineRecord(Base):
    """Order line with name and price captured at purchase time.

    ``item_id`` is not a foreign key; the line outlives edits and deletes of
    the inventory item.
    """
    __tablename__ = "order_lines"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    item_id = Column(Integer, nullable=False, index=True)
    item_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Money, nullable=False)
    line_total = Column(Money, nullable=False)

    order = relationship("OrderRecord", back_populates="lines")
