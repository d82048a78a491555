from fastapi import APIRouter, Depends
from typing import List
from storefront.api.dependencies import get_order_processor, get_order_repository
from storefront.models.schemas import OrderCreate, Order
from storefront.services.order_processor import OrderProcessor
from storefront.services.order_repository import OrderRepository

router = APIRouter()

@router.post("/", response_model=Order, status_code=201)
def create_order(order_data: OrderCreate, processor: OrderProcessor = Depends(get_order_processor)):
    """Place an order; stock for every line is reserved or none is"""
    if order_data.product_id is not None:
        return processor.place_single(order_data.product_id, order_data.quantity)
    return processor.place_order(order_data.items)

@router.get("/", response_model=List[Order])
def get_orders(orders: OrderRepository = Depends(get_order_repository)):
    """Get all orders"""
    return orders.list()

@router.get("/{order_id}", response_model=Order)
def get_order(order_id: int, orders: OrderRepository = Depends(get_order_repository)):
    """Get a specific order"""
    return orders.get(order_id)
