import pytest
from decimal import Decimal
from storefront.core.database import init_db, make_engine, make_session_factory
from storefront.services.inventory_store import InventoryStore
from storefront.services.order_processor import OrderProcessor
from storefront.services.order_repository import OrderRepository


@pytest.fixture
def test_engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return make_session_factory(test_engine)


@pytest.fixture
def store(session_factory):
    return InventoryStore(session_factory)


@pytest.fixture
def order_repository(session_factory):
    return OrderRepository(session_factory)


@pytest.fixture
def processor(store, order_repository):
    return OrderProcessor(store, order_repository)


@pytest.fixture
def sample_inventory_item(store):
    """Create a sample inventory item for testing"""
    return store.create(
        name="Espresso Machine",
        quantity=5,
        price=Decimal("299.99"),
        description="Stainless steel espresso machine",
    )
