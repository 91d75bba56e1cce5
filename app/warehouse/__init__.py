# Models and schemas for warehouses, inventory and stock operations
from .models import Warehouse, InventoryItem, StockOperation
from .schemas import WarehouseCreate, WarehouseUpdate, InventoryItemCreate, StockOperationCreate

# Export crud functions
from .crud import (
    create_warehouse,
    get_warehouse,
    get_warehouses,
    update_warehouse,
    delete_warehouse,
    update_stock,
    record_stock_operation,
    get_stock_operations,
    get_inventory,
)

# Import the routers after everything else to avoid a circular import
from .routes import router, operations_router
