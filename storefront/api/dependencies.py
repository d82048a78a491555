"""FastAPI providers for the shared services.

Tests swap any of these out through ``app.dependency_overrides``.
"""
from functools import lru_cache

from storefront.core.database import SessionLocal
from storefront.services.cart_session import CartRegistry
from storefront.services.inventory_store import InventoryStore
from storefront.services.order_processor import OrderProcessor
from storefront.services.order_repository import OrderRepository


@lru_cache(maxsize=None)
def get_store() -> InventoryStore:
    return InventoryStore(SessionLocal)


@lru_cache(maxsize=None)
def get_order_repository() -> OrderRepository:
    return OrderRepository(SessionLocal)


def get_order_processor() -> OrderProcessor:
    return OrderProcessor(get_store(), get_order_repository())


@lru_cache(maxsize=None)
def get_cart_registry() -> CartRegistry:
    return CartRegistry()
