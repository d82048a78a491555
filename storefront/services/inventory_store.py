from decimal import Decimal, InvalidOperation
from typing import List, Optional, Tuple
import logging

from sqlalchemy import update
from sqlalchemy.orm import Session, sessionmaker

from storefront.core.config import settings
from storefront.core.exceptions import InsufficientStock, NotFound, ValidationError
from storefront.models.database import CENT, InventoryItemRecord, utcnow
from storefront.models.domain import InventoryItem, Reservation
from storefront.services.locks import ItemLockRegistry

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 255
UPDATABLE_FIELDS = ("name", "quantity", "price", "description")


def validate_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Name is required")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"Name must be at most {MAX_NAME_LENGTH} characters")
    return name


def validate_quantity(quantity, minimum: int = 0) -> int:
    # bool is an int subclass; True is not a quantity
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("Quantity must be an integer")
    if quantity < minimum:
        raise ValidationError(f"Quantity must be at least {minimum}")
    return quantity


def validate_price(price) -> Decimal:
    """Coerce ``price`` to a Decimal with exactly two fractional digits"""
    if isinstance(price, bool) or price is None:
        raise ValidationError("Price must be a number")
    if isinstance(price, float):
        # str() keeps 19.99 as written rather than its binary expansion
        price = str(price)
    try:
        value = Decimal(price)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Price must be a number, got {price!r}")
    if not value.is_finite():
        raise ValidationError("Price must be a finite number")
    if value < 0:
        raise ValidationError("Price must not be negative")
    if value != value.quantize(CENT):
        raise ValidationError("Price must have at most two decimal places")
    return value.quantize(CENT)


def validate_description(description) -> Optional[str]:
    if description is not None and not isinstance(description, str):
        raise ValidationError("Description must be a string")
    return description


def validate_item(name, quantity, price, description=None) -> Tuple[str, int, Decimal, Optional[str]]:
    return (
        validate_name(name),
        validate_quantity(quantity),
        validate_price(price),
        validate_description(description),
    )


class InventoryStore:
    """
    Authoritative record of inventory items.

    All stock mutation goes through this class. ``reserve``, ``release``,
    ``update`` and ``delete`` hold the item's lock across their
    read-modify-commit, so an admin edit can never overwrite a concurrent
    reservation. There is no store-wide lock.
    """

    def __init__(self, session_factory: sessionmaker, locks: Optional[ItemLockRegistry] = None):
        self._session_factory = session_factory
        self._locks = locks or ItemLockRegistry(timeout=settings.lock_timeout_seconds)

    def _load(self, db: Session, item_id: int) -> InventoryItemRecord:
        record = db.get(InventoryItemRecord, item_id)
        if record is None:
            raise NotFound(f"Inventory item {item_id} not found")
        return record

    def create(self, name: str, quantity: int, price, description: Optional[str] = None) -> InventoryItem:
        name, quantity, price, description = validate_item(name, quantity, price, description)
        with self._session_factory() as db:
            record = InventoryItemRecord(
                name=name,
                quantity=quantity,
                price=price,
                description=description,
            )
            db.add(record)
            db.commit()
            item = InventoryItem.from_record(record)

        logger.info(f"Created inventory item {item.id} ({item.name}) with quantity {item.quantity}")
        return item

    def get(self, item_id: int) -> InventoryItem:
        with self._session_factory() as db:
            return InventoryItem.from_record(self._load(db, item_id))

    def list(self) -> List[InventoryItem]:
        """Point-in-time snapshot of every item, read with a single query"""
        with self._session_factory() as db:
            records = db.query(InventoryItemRecord).order_by(InventoryItemRecord.id).all()
            return [InventoryItem.from_record(record) for record in records]

    def current_price(self, item_id: int) -> Decimal:
        return self.get(item_id).price

    def update(self, item_id: int, **fields) -> InventoryItem:
        """Apply only the supplied fields, then re-validate the merged record"""
        unknown = sorted(set(fields) - set(UPDATABLE_FIELDS))
        if unknown:
            raise ValidationError(f"Unknown inventory fields: {', '.join(unknown)}")

        with self._locks.hold(item_id), self._session_factory() as db:
            record = self._load(db, item_id)
            merged = {name: fields.get(name, getattr(record, name)) for name in UPDATABLE_FIELDS}
            name, quantity, price, description = validate_item(**merged)

            record.name = name
            record.quantity = quantity
            record.price = price
            record.description = description
            record.version = record.version + 1
            db.commit()
            item = InventoryItem.from_record(record)

        logger.info(f"Updated inventory item {item_id}: fields {sorted(fields)} (version {item.version})")
        return item

    def delete(self, item_id: int) -> None:
        with self._locks.hold(item_id), self._session_factory() as db:
            db.delete(self._load(db, item_id))
            db.commit()

        logger.info(f"Deleted inventory item {item_id}")

    def reserve(self, item_id: int, amount: int) -> Reservation:
        """
        Atomically check ``quantity >= amount`` and decrement.

        The conditional UPDATE is the check; it touches no row when stock is
        short, in which case nothing changes and InsufficientStock is raised.
        """
        validate_quantity(amount, minimum=1)

        with self._locks.hold(item_id), self._session_factory() as db:
            result = db.execute(
                update(InventoryItemRecord)
                .where(
                    InventoryItemRecord.id == item_id,
                    InventoryItemRecord.quantity >= amount,
                )
                .values(
                    quantity=InventoryItemRecord.quantity - amount,
                    version=InventoryItemRecord.version + 1,
                    updated_at=utcnow(),
                )
            )
            if result.rowcount == 0:
                record = self._load(db, item_id)
                raise InsufficientStock(item_id, amount, record.quantity)

            record = self._load(db, item_id)
            reservation = Reservation(
                item_id=item_id,
                quantity=amount,
                item_name=record.name,
                unit_price=record.price,
            )
            remaining = record.quantity
            db.commit()

        logger.info(f"Reserved {amount} of inventory item {item_id}: new quantity = {remaining}")
        return reservation

    def release(self, reservation: Reservation) -> bool:
        """Give reserved stock back, waiting as long as the item lock is held.

        Returns False if the item no longer exists.
        """
        item_id = reservation.item_id
        with self._locks.hold(item_id, wait=True), self._session_factory() as db:
            result = db.execute(
                update(InventoryItemRecord)
                .where(InventoryItemRecord.id == item_id)
                .values(
                    quantity=InventoryItemRecord.quantity + reservation.quantity,
                    version=InventoryItemRecord.version + 1,
                    updated_at=utcnow(),
                )
            )
            if result.rowcount == 0:
                logger.warning(
                    f"Inventory item {item_id} was deleted; "
                    f"{reservation.quantity} reserved unit(s) not returned"
                )
                return False
            db.commit()

        logger.info(f"Released {reservation.quantity} of inventory item {item_id}")
        return True
