from fastapi import APIRouter, Depends
from decimal import Decimal
from storefront.api.dependencies import get_cart_registry, get_order_processor, get_store
from storefront.core.exceptions import NotFound
from storefront.models.schemas import Cart, CartItemAdd, CartLineView, Order
from storefront.services.cart_session import CartRegistry, CartSession
from storefront.services.inventory_store import InventoryStore
from storefront.services.order_processor import OrderProcessor

router = APIRouter()


def render_cart(cart: CartSession, store: InventoryStore) -> Cart:
    """Price every line from a single read of each item"""
    items = {}
    for line in cart.lines():
        try:
            items[line.item_id] = store.get(line.item_id)
        except NotFound:
            pass

    def price_lookup(item_id: int) -> Decimal:
        if item_id not in items:
            raise NotFound(f"Inventory item {item_id} not found")
        return items[item_id].price

    total = cart.total(price_lookup)
    lines = []
    for line in cart.lines():
        item = items.get(line.item_id)
        if item is None:
            lines.append(CartLineView(item_id=line.item_id, quantity=line.quantity, available=False))
            continue
        lines.append(CartLineView(
            item_id=line.item_id,
            quantity=line.quantity,
            name=item.name,
            unit_price=item.price,
            line_total=item.price * line.quantity,
        ))

    return Cart(
        session_id=cart.session_id,
        lines=lines,
        item_count=cart.item_count(),
        total=total.amount,
        missing_item_ids=list(total.missing_item_ids),
    )


@router.get("/{session_id}", response_model=Cart)
def get_cart(
    session_id: str,
    carts: CartRegistry = Depends(get_cart_registry),
    store: InventoryStore = Depends(get_store),
):
    """Get the cart priced at current inventory prices"""
    return render_cart(carts.get_or_create(session_id), store)


@router.post("/{session_id}/items", response_model=Cart)
def add_cart_item(
    session_id: str,
    item: CartItemAdd,
    carts: CartRegistry = Depends(get_cart_registry),
    store: InventoryStore = Depends(get_store),
):
    """Add units of an item; stock is not checked until checkout"""
    cart = carts.get_or_create(session_id)
    cart.add_item(item.item_id, item.quantity)
    return render_cart(cart, store)


@router.delete("/{session_id}/items/{item_id}", response_model=Cart)
def remove_one_cart_item(
    session_id: str,
    item_id: int,
    carts: CartRegistry = Depends(get_cart_registry),
    store: InventoryStore = Depends(get_store),
):
    """Remove a single unit of an item"""
    cart = carts.get_or_create(session_id)
    cart.remove_one(item_id)
    return render_cart(cart, store)


@router.delete("/{session_id}/items/{item_id}/all", response_model=Cart)
def remove_all_cart_item(
    session_id: str,
    item_id: int,
    carts: CartRegistry = Depends(get_cart_registry),
    store: InventoryStore = Depends(get_store),
):
    """Remove an item from the cart regardless of quantity"""
    cart = carts.get_or_create(session_id)
    cart.remove_all(item_id)
    return render_cart(cart, store)


@router.post("/{session_id}/checkout", response_model=Order, status_code=201)
def checkout_cart(
    session_id: str,
    carts: CartRegistry = Depends(get_cart_registry),
    processor: OrderProcessor = Depends(get_order_processor),
):
    """Turn the cart into an order; the cart is left untouched on failure"""
    cart = carts.get_or_create(session_id)
    order = processor.checkout(cart)
    if cart.is_empty():
        carts.discard(session_id)
    return order
