from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from typing import List, Optional, Dict, Any
from datetime import datetime
import math
from .models import Warehouse, InventoryItem, StockOperation
from .schemas import WarehouseCreate, WarehouseUpdate, InventoryItemCreate, StockOperationCreate
from ..booking.models import Booking
from ..user.models import User
import logging

logger = logging.getLogger(__name__)

HANDLING_CHARGE_RATE = 0.15
INVENTORY_UNIT_VALUE = 100

def get_warehouses(db: Session, owner_id: int) -> List[Warehouse]:
    return db.query(Warehouse).filter(Warehouse.user_id == owner_id).order_by(Warehouse.id).all()

def get_warehouse(db: Session, owner_id: int, warehouse_id: int, for_update: bool = False) -> Warehouse:
    query = db.query(Warehouse).filter(Warehouse.id == warehouse_id, Warehouse.user_id == owner_id)
    if for_update:
        query = query.with_for_update()
    warehouse = query.first()
    if not warehouse:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Warehouse {warehouse_id} not found")
    return warehouse

def create_warehouse(db: Session, owner_id: int, warehouse: WarehouseCreate) -> Warehouse:
    try:
        db_warehouse = Warehouse(user_id=owner_id, **warehouse.model_dump())
        db.add(db_warehouse)
        db.commit()
        db.refresh(db_warehouse)
        logger.info(f"Created warehouse {db_warehouse.id} for user {owner_id}")
        return db_warehouse
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating warehouse: {str(e)}")
        raise

def update_warehouse(db: Session, owner_id: int, warehouse_id: int, warehouse_data: WarehouseUpdate) -> Warehouse:
    try:
        db_warehouse = get_warehouse(db, owner_id, warehouse_id, for_update=True)
        for key, value in warehouse_data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(db_warehouse, key, value)

        if db_warehouse.current_stock > db_warehouse.effective_capacity:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Stock exceeds warehouse capacity"
            )

        db.commit()
        db.refresh(db_warehouse)
        return db_warehouse
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating warehouse {warehouse_id}: {str(e)}")
        raise

def delete_warehouse(db: Session, owner_id: int, warehouse_id: int) -> bool:
    try:
        db_warehouse = get_warehouse(db, owner_id, warehouse_id)
        db.query(StockOperation).filter(StockOperation.warehouse_id == warehouse_id).delete(synchronize_session=False)
        db.query(StockOperation).filter(StockOperation.to_warehouse_id == warehouse_id).update(
            {"to_warehouse_id": None}, synchronize_session=False
        )
        db.query(InventoryItem).filter(InventoryItem.warehouse_id == warehouse_id).update(
            {"warehouse_id": None}, synchronize_session=False
        )
        db.delete(db_warehouse)
        db.commit()
        return True
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting warehouse {warehouse_id}: {str(e)}")
        raise

def _apply_stock_change(warehouse: Warehouse, change: int) -> None:
    new_stock = max(0, (warehouse.current_stock or 0) + change)
    if new_stock > warehouse.effective_capacity:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Stock exceeds warehouse capacity"
        )
    warehouse.current_stock = new_stock

def update_stock(db: Session, owner_id: int, warehouse_id: int, change: int) -> Warehouse:
    """
    Function: update_stock

    1. Summary:
    Adjust a warehouse's stock level by a signed amount.

    2. Purpose:
    The row is locked for the duration of the transaction so concurrent
    adjustments serialize. Stock never drops below zero and never rises
    above `max_capacity` (or `capacity` when no maximum is set).

    3. Parameters:
    - db (Session): Database session
    - owner_id (int): Warehouse owner
    - warehouse_id (int): Warehouse to adjust
    - change (int): Signed stock delta

    4. Returns:
    - Warehouse: The updated warehouse
    """
    try:
        warehouse = get_warehouse(db, owner_id, warehouse_id, for_update=True)
        _apply_stock_change(warehouse, change)
        db.commit()
        db.refresh(warehouse)
        return warehouse
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating stock of warehouse {warehouse_id}: {str(e)}")
        raise

def get_warehouse_analytics(db: Session, owner_id: int) -> Dict[str, Any]:
    warehouses = get_warehouses(db, owner_id)
    total_capacity = sum(w.capacity or 0 for w in warehouses)
    total_stock = sum(w.current_stock or 0 for w in warehouses)

    by_type: Dict[str, int] = {}
    by_status: Dict[str, int] = {}
    monthly_cost = 0.0
    for warehouse in warehouses:
        warehouse_type = warehouse.warehouse_type or "storage"
        by_type[warehouse_type] = by_type.get(warehouse_type, 0) + 1
        operational_status = warehouse.operational_status or "operational"
        by_status[operational_status] = by_status.get(operational_status, 0) + 1
        monthly_cost += float(warehouse.monthly_operational_cost or 0)

    return {
        "totalWarehouses": len(warehouses),
        "totalCapacity": total_capacity,
        "totalCurrentStock": total_stock,
        "averageUtilization": round(total_stock / total_capacity * 100) if total_capacity > 0 else 0,
        "warehousesByType": by_type,
        "warehousesByStatus": by_status,
        "monthlyOperationalCost": monthly_cost,
    }

def get_warehouse_revenue(db: Session, owner_id: int) -> List[Dict[str, Any]]:
    """
    Revenue attributed to each warehouse: bookings of the owner picked up in
    the warehouse's city.
    """
    revenue_data = []
    for warehouse in get_warehouses(db, owner_id):
        bookings = db.query(Booking).filter(
            Booking.user_id == owner_id,
            Booking.pickup_city == warehouse.city
        ).all()
        revenue = sum(float(b.total_amount or 0) for b in bookings)
        operational_cost = float(warehouse.monthly_operational_cost or 0)
        occupancy = (warehouse.current_stock or 0) / warehouse.capacity * 100 if warehouse.capacity else 0

        revenue_data.append({
            "warehouseId": warehouse.id,
            "name": warehouse.name,
            "city": warehouse.city,
            "monthlyRevenue": math.ceil(revenue),
            "operationalCost": math.ceil(operational_cost),
            "netProfit": math.ceil(revenue - operational_cost),
            "occupancyRate": math.ceil(occupancy),
            "throughput": len(bookings),
            "averageStorageFee": math.ceil(revenue / len(bookings)) if bookings and revenue > 0 else 0,
            "handlingCharges": math.ceil(revenue * HANDLING_CHARGE_RATE),
        })
    return revenue_data

def _history_direction(op: StockOperation) -> str:
    if op.operation_type == "stock_in":
        return "add"
    if op.operation_type == "adjustment" and (op.stock_change or 0) > 0:
        return "add"
    return "remove"

def get_stock_history(db: Session, owner_id: int, warehouse_id: int, limit: int = 50) -> List[Dict[str, Any]]:
    get_warehouse(db, owner_id, warehouse_id)
    operations = (
        db.query(StockOperation)
        .filter(StockOperation.warehouse_id == warehouse_id)
        .order_by(StockOperation.operation_date.desc(), StockOperation.id.desc())
        .limit(limit)
        .all()
    )
    return [
        {
            "id": op.id,
            "warehouseId": op.warehouse_id,
            "operationType": _history_direction(op),
            "sourceOperation": op.operation_type,
            "itemName": op.item_name,
            "quantity": op.quantity,
            "stockChange": op.stock_change,
            "reason": op.reason,
            "operatedBy": op.operated_by,
            "status": op.status,
            "operationDate": op.operation_date,
        }
        for op in operations
    ]

def get_inventory(db: Session, owner_id: int) -> List[InventoryItem]:
    return (
        db.query(InventoryItem)
        .filter(InventoryItem.user_id == owner_id)
        .order_by(InventoryItem.last_updated.desc(), InventoryItem.id.desc())
        .all()
    )

def add_inventory_item(db: Session, owner_id: int, item: InventoryItemCreate) -> InventoryItem:
    try:
        if item.warehouse_id is not None:
            get_warehouse(db, owner_id, item.warehouse_id)
        db_item = InventoryItem(user_id=owner_id, **item.model_dump())
        db.add(db_item)
        db.commit()
        db.refresh(db_item)
        return db_item
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error adding inventory item: {str(e)}")
        raise

def _find_item(db: Session, owner_id: int, item_name: str, warehouse_id: Optional[int]) -> Optional[InventoryItem]:
    return db.query(InventoryItem).filter(
        InventoryItem.user_id == owner_id,
        InventoryItem.item_name == item_name,
        InventoryItem.warehouse_id == warehouse_id if warehouse_id is not None else InventoryItem.warehouse_id.is_(None),
    ).first()

def _receive_item(db: Session, owner_id: int, item_name: str, warehouse_id: Optional[int], quantity: int) -> InventoryItem:
    item = _find_item(db, owner_id, item_name, warehouse_id)
    if item is None:
        item = InventoryItem(
            user_id=owner_id,
            warehouse_id=warehouse_id,
            item_name=item_name,
            category="general",
            current_stock=0,
            min_stock=10,
            max_stock=1000,
            unit="units",
        )
        db.add(item)
    item.current_stock = (item.current_stock or 0) + quantity
    item.last_updated = datetime.now()
    return item

def _release_item(db: Session, owner_id: int, item_name: str, warehouse_id: Optional[int], quantity: int) -> Optional[InventoryItem]:
    item = _find_item(db, owner_id, item_name, warehouse_id)
    if item is not None:
        item.current_stock = max(0, (item.current_stock or 0) - quantity)
        item.last_updated = datetime.now()
    return item

def record_stock_operation(db: Session, user: User, operation: StockOperationCreate) -> StockOperation:
    """
    Function: record_stock_operation

    1. Summary:
    Record a stock movement and apply it to the ledger.

    2. Purpose:
    Completed operations update inventory items and warehouse stock in the
    same transaction as the operation record:
    - stock_in adds to the item (creating it when absent) and the warehouse
    - stock_out removes from both, never below zero
    - transfer moves the quantity to `to_warehouse_id` when one is given
    - adjustment sets the item to `quantity` and moves the warehouse stock
      by the difference
    The signed effect on the item is kept in `stock_change`.
    Pending, cancelled and in-transit operations are recorded only.

    3. Parameters:
    - db (Session): Database session
    - user (User): Operator; owns the warehouses
    - operation (StockOperationCreate): Validated operation

    4. Returns:
    - StockOperation: The recorded operation
    """
    owner_id = user.user_id
    try:
        source = get_warehouse(db, owner_id, operation.warehouse_id, for_update=True) if operation.warehouse_id is not None else None
        target = None
        if operation.operation_type == "transfer" and operation.to_warehouse_id is not None:
            target = get_warehouse(db, owner_id, operation.to_warehouse_id, for_update=True)

        change = None
        if operation.status == "completed":
            qty = operation.quantity
            if operation.operation_type == "stock_in":
                change = qty
                _receive_item(db, owner_id, operation.item_name, operation.warehouse_id, qty)
                if source:
                    _apply_stock_change(source, qty)
            elif operation.operation_type == "stock_out":
                change = -qty
                _release_item(db, owner_id, operation.item_name, operation.warehouse_id, qty)
                if source:
                    _apply_stock_change(source, -qty)
            elif operation.operation_type == "transfer":
                if target is not None:
                    change = -qty
                    _release_item(db, owner_id, operation.item_name, operation.warehouse_id, qty)
                    _receive_item(db, owner_id, operation.item_name, target.id, qty)
                    if source:
                        _apply_stock_change(source, -qty)
                    _apply_stock_change(target, qty)
            elif operation.operation_type == "adjustment":
                item = _find_item(db, owner_id, operation.item_name, operation.warehouse_id)
                previous = item.current_stock if item is not None else 0
                if item is None:
                    item = _receive_item(db, owner_id, operation.item_name, operation.warehouse_id, qty)
                else:
                    item.current_stock = qty
                    item.last_updated = datetime.now()
                change = qty - previous
                if source:
                    _apply_stock_change(source, change)

        db_operation = StockOperation(
            user_id=owner_id,
            warehouse_id=operation.warehouse_id,
            to_warehouse_id=operation.to_warehouse_id,
            operation_type=operation.operation_type,
            item_name=operation.item_name,
            quantity=operation.quantity,
            stock_change=change,
            from_location=operation.from_location or (source.name if source else None),
            to_location=operation.to_location or (target.name if target else None),
            reason=operation.reason,
            operated_by=user.full_name or user.email,
            status=operation.status,
        )
        db.add(db_operation)
        db.commit()
        db.refresh(db_operation)
        logger.info(f"Recorded {operation.operation_type} of {operation.quantity} x {operation.item_name} by user {owner_id}")
        return db_operation
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error recording stock operation: {str(e)}")
        raise

def get_stock_operations(db: Session, owner_id: int, start_date: Optional[datetime] = None,
                         end_date: Optional[datetime] = None) -> List[StockOperation]:
    query = db.query(StockOperation).filter(StockOperation.user_id == owner_id)
    if start_date:
        query = query.filter(StockOperation.operation_date >= start_date)
    if end_date:
        query = query.filter(StockOperation.operation_date <= end_date)
    return query.order_by(StockOperation.operation_date.desc(), StockOperation.id.desc()).all()

def get_operations_analytics(db: Session, owner_id: int) -> Dict[str, Any]:
    operations = get_stock_operations(db, owner_id)
    inventory = get_inventory(db, owner_id)
    return {
        "totalOperations": len(operations),
        "stockIn": sum(1 for op in operations if op.operation_type == "stock_in"),
        "stockOut": sum(1 for op in operations if op.operation_type == "stock_out"),
        "lowStockItems": sum(1 for item in inventory if item.current_stock <= item.min_stock),
        "inventoryValue": sum(item.current_stock * INVENTORY_UNIT_VALUE for item in inventory),
    }
