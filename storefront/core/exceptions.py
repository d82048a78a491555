"""Error taxonomy shared by the inventory, cart and order services.

Every failure raised by the core is a ``StorefrontError`` so the HTTP layer
can map it onto a response in one place.
"""


class StorefrontError(Exception):
    """Base class for all storefront errors"""
    pass


class ValidationError(StorefrontError, ValueError):
    """Raised for malformed input (negative quantity, empty name, ...)"""
    pass


class NotFound(StorefrontError, LookupError):
    """Raised when an item, order or cart line does not exist"""
    pass


class InsufficientStock(StorefrontError):
    """Raised when a reservation cannot be satisfied"""

    def __init__(self, item_id: int, requested: int, available: int):
        self.item_id = item_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for item {item_id}. "
            f"Available: {available}, Requested: {requested}"
        )


class StockBusy(StorefrontError):
    """Raised when an item's lock could not be acquired in time"""
    pass


class OrderCancelled(StorefrontError):
    """Raised when the caller cancels an order attempt before commit"""
    pass


class InvalidOrderState(StorefrontError):
    """Raised when an order attempt is driven out of sequence"""
    pass


class PersistenceFailure(StorefrontError):
    """Raised when an order could not be written after stock was reserved"""
    pass
