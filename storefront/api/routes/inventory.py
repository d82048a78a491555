from fastapi import APIRouter, Depends, Response
from typing import List
from storefront.api.dependencies import get_store
from storefront.models.schemas import InventoryItem, InventoryItemCreate, InventoryItemUpdate
from storefront.services.inventory_store import InventoryStore

router = APIRouter()

@router.post("/", response_model=InventoryItem, status_code=201)
def create_inventory_item(item_data: InventoryItemCreate, store: InventoryStore = Depends(get_store)):
    """Create a new inventory item"""
    return store.create(**item_data.model_dump())

@router.get("/", response_model=List[InventoryItem])
def get_inventory_items(store: InventoryStore = Depends(get_store)):
    """Get a consistent snapshot of all inventory items"""
    return store.list()

@router.get("/{item_id}", response_model=InventoryItem)
def get_inventory_item(item_id: int, store: InventoryStore = Depends(get_store)):
    """Get a specific inventory item"""
    return store.get(item_id)

@router.put("/{item_id}", response_model=InventoryItem)
@router.patch("/{item_id}", response_model=InventoryItem)
def update_inventory_item(
    item_id: int,
    item_data: InventoryItemUpdate,
    store: InventoryStore = Depends(get_store)
):
    """Update only the fields present in the request body"""
    return store.update(item_id, **item_data.model_dump(exclude_unset=True))

@router.delete("/{item_id}", status_code=204)
def delete_inventory_item(item_id: int, store: InventoryStore = Depends(get_store)):
    """Delete an inventory item"""
    store.delete(item_id)
    return Response(status_code=204)
