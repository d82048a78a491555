from pydantic import BaseModel, Field, model_validator
from typing import List, Optional
from datetime import datetime
from decimal import Decimal


class InventoryItemBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, decimal_places=2)
    quantity: int = Field(..., ge=0)


class InventoryItemCreate(InventoryItemBase):
    pass


class InventoryItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    quantity: Optional[int] = Field(None, ge=0)


class InventoryItem(InventoryItemBase):
    id: int
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OrderLineCreate(BaseModel):
    item_id: int
    quantity: int = Field(..., ge=1)


class OrderCreate(BaseModel):
    """Either a list of lines or the single ``product_id``/``quantity`` shape"""
    items: Optional[List[OrderLineCreate]] = None
    product_id: Optional[int] = None
    quantity: Optional[int] = Field(None, ge=1)

    @model_validator(mode="after")
    def check_shape(self):
        single = self.product_id is not None
        if single == bool(self.items):
            raise ValueError("Provide either items or product_id with quantity")
        if single and self.quantity is None:
            raise ValueError("quantity is required with product_id")
        if not single and self.quantity is not None:
            raise ValueError("quantity belongs on each item, not on the order")
        return self


class OrderLine(BaseModel):
    item_id: int
    item_name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal

    class Config:
        from_attributes = True


class Order(BaseModel):
    id: int
    order_number: str
    status: str
    total_amount: Decimal
    created_at: Optional[datetime] = None
    lines: List[OrderLine] = []

    class Config:
        from_attributes = True


class CartItemAdd(BaseModel):
    item_id: int
    quantity: int = Field(1, ge=1)


class CartLineView(BaseModel):
    item_id: int
    quantity: int
    name: Optional[str] = None
    unit_price: Optional[Decimal] = None
    line_total: Optional[Decimal] = None
    available: bool = True


class Cart(BaseModel):
    session_id: str
    lines: List[CartLineView] = []
    item_count: int
    total: Decimal
    missing_item_ids: List[int] = []
