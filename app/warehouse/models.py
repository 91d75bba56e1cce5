from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, DECIMAL, Boolean, Float
from datetime import datetime
from ..core.database import Base

class Warehouse(Base):
    __tablename__ = "warehouses"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    name = Column(String(150), nullable=False)
    address = Column(Text, nullable=False)
    city = Column(String(100), nullable=False, index=True)
    state = Column(String(100), nullable=False)
    pin_code = Column(String(10), nullable=False)
    capacity = Column(Integer, nullable=False)
    current_stock = Column(Integer, default=0, nullable=False)
    max_capacity = Column(Integer)
    # distribution, storage, fulfillment, cold_storage, bonded
    warehouse_type = Column(String(20), default="storage")
    # operational, maintenance, closed, under_construction
    operational_status = Column(String(20), default="operational")
    # basic, medium, high, maximum
    security_level = Column(String(20), default="basic")
    manager_name = Column(String(100))
    contact_phone = Column(String(20))
    monthly_operational_cost = Column(DECIMAL(12, 2), default=0)
    latitude = Column(Float)
    longitude = Column(Float)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    @property
    def effective_capacity(self) -> int:
        return self.max_capacity or self.capacity

    @property
    def utilization(self) -> int:
        if not self.capacity:
            return 0
        return round((self.current_stock or 0) / self.capacity * 100)

class InventoryItem(Base):
    __tablename__ = "warehouse_inventory"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=True, index=True)
    item_name = Column(String(150), nullable=False)
    category = Column(String(100), default="general")
    current_stock = Column(Integer, default=0, nullable=False)
    min_stock = Column(Integer, default=10, nullable=False)
    max_stock = Column(Integer, default=1000, nullable=False)
    unit = Column(String(20), default="units")
    last_updated = Column(DateTime, default=datetime.now, onupdate=datetime.now)

class StockOperation(Base):
    __tablename__ = "warehouse_stock_operations"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=True, index=True)
    to_warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=True)
    # stock_in, stock_out, transfer, adjustment
    operation_type = Column(String(20), nullable=False)
    item_name = Column(String(150), nullable=False)
    quantity = Column(Integer, nullable=False)
    # Signed effect on the item's stock, NULL when nothing was applied
    stock_change = Column(Integer, nullable=True)
    from_location = Column(String(150))
    to_location = Column(String(150))
    reason = Column(Text)
    operated_by = Column(String(150))
    # completed, pending, cancelled, in_transit
    status = Column(String(20), default="completed")
    operation_date = Column(DateTime, default=datetime.now, index=True)
