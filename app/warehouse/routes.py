from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime
import json
from ..core.database import get_db
from ..core.cache import get_cache, set_cache
from ..core.invalidation_helpers import invalidate_dashboard_cache, invalidate_specific_cache
from ..auth.authentication import get_current_user_with_permissions
from ..user.models import User
from .schemas import (
    WarehouseCreate, WarehouseUpdate, WarehouseResponse, StockChange,
    InventoryItemCreate, InventoryItemResponse, StockOperationCreate, StockOperationResponse,
)
from . import crud

router = APIRouter(prefix="/api/warehouses", tags=["Warehouses"])
operations_router = APIRouter(prefix="/api/warehouse", tags=["Warehouse Operations"])

manage_warehouse = get_current_user_with_permissions(["manage_warehouse"])
view_inventory = get_current_user_with_permissions(["view_inventory"])

def _analytics_key(user_id: int) -> str:
    return f"warehouse:analytics:{user_id}"

@router.get("", response_model=List[WarehouseResponse])
async def list_warehouses(current_user: User = Depends(view_inventory), db: Session = Depends(get_db)):
    return crud.get_warehouses(db, current_user.user_id)

@router.post("", response_model=WarehouseResponse, status_code=status.HTTP_201_CREATED)
async def create_warehouse(
    warehouse: WarehouseCreate,
    current_user: User = Depends(manage_warehouse),
    db: Session = Depends(get_db)
):
    db_warehouse = crud.create_warehouse(db, current_user.user_id, warehouse)
    await invalidate_specific_cache([_analytics_key(current_user.user_id)])
    return db_warehouse

@router.get("/analytics", response_model=dict)
async def warehouse_analytics(current_user: User = Depends(view_inventory), db: Session = Depends(get_db)):
    cache_key = _analytics_key(current_user.user_id)
    cached_data = await get_cache(cache_key)
    if cached_data:
        return json.loads(cached_data)

    analytics = crud.get_warehouse_analytics(db, current_user.user_id)
    await set_cache(cache_key, json.dumps(analytics, default=str), 300)
    return analytics

@router.get("/revenue", response_model=List[dict])
async def warehouse_revenue(current_user: User = Depends(view_inventory), db: Session = Depends(get_db)):
    return crud.get_warehouse_revenue(db, current_user.user_id)

@router.put("/{warehouse_id}", response_model=WarehouseResponse)
async def update_warehouse(
    warehouse_id: int,
    warehouse: WarehouseUpdate,
    current_user: User = Depends(manage_warehouse),
    db: Session = Depends(get_db)
):
    db_warehouse = crud.update_warehouse(db, current_user.user_id, warehouse_id, warehouse)
    await invalidate_specific_cache([_analytics_key(current_user.user_id)])
    return db_warehouse

@router.patch("/{warehouse_id}/stock", response_model=WarehouseResponse)
async def update_warehouse_stock(
    warehouse_id: int,
    stock_change: StockChange,
    current_user: User = Depends(manage_warehouse),
    db: Session = Depends(get_db)
):
    db_warehouse = crud.update_stock(db, current_user.user_id, warehouse_id, stock_change.change)
    await invalidate_specific_cache([_analytics_key(current_user.user_id)])
    return db_warehouse

@router.delete("/{warehouse_id}", response_model=dict)
async def delete_warehouse(
    warehouse_id: int,
    current_user: User = Depends(manage_warehouse),
    db: Session = Depends(get_db)
):
    crud.delete_warehouse(db, current_user.user_id, warehouse_id)
    await invalidate_specific_cache([_analytics_key(current_user.user_id)])
    return {"message": "Warehouse deleted successfully"}

@router.get("/{warehouse_id}/stock-history", response_model=List[dict])
async def stock_history(
    warehouse_id: int,
    limit: int = Query(50, ge=1, le=500),
    current_user: User = Depends(view_inventory),
    db: Session = Depends(get_db)
):
    return crud.get_stock_history(db, current_user.user_id, warehouse_id, limit)

@operations_router.get("/stock-operations", response_model=List[StockOperationResponse])
async def list_stock_operations(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    current_user: User = Depends(view_inventory),
    db: Session = Depends(get_db)
):
    return crud.get_stock_operations(db, current_user.user_id, start_date, end_date)

@operations_router.post("/stock-operations", response_model=StockOperationResponse, status_code=status.HTTP_201_CREATED)
async def create_stock_operation(
    operation: StockOperationCreate,
    current_user: User = Depends(manage_warehouse),
    db: Session = Depends(get_db)
):
    db_operation = crud.record_stock_operation(db, current_user, operation)
    await invalidate_specific_cache([_analytics_key(current_user.user_id)])
    await invalidate_dashboard_cache([current_user.user_id])
    return db_operation

@operations_router.get("/inventory", response_model=List[InventoryItemResponse])
async def list_inventory(current_user: User = Depends(view_inventory), db: Session = Depends(get_db)):
    return crud.get_inventory(db, current_user.user_id)

@operations_router.post("/inventory", response_model=InventoryItemResponse, status_code=status.HTTP_201_CREATED)
async def add_inventory_item(
    item: InventoryItemCreate,
    current_user: User = Depends(manage_warehouse),
    db: Session = Depends(get_db)
):
    return crud.add_inventory_item(db, current_user.user_id, item)

@operations_router.get("/analytics", response_model=dict)
async def operations_analytics(current_user: User = Depends(view_inventory), db: Session = Depends(get_db)):
    return crud.get_operations_analytics(db, current_user.user_id)
