from pydantic import BaseModel, Field, model_validator
from typing import Optional, Literal
from datetime import datetime

WarehouseType = Literal["distribution", "storage", "fulfillment", "cold_storage", "bonded"]
OperationalStatus = Literal["operational", "maintenance", "closed", "under_construction"]
SecurityLevel = Literal["basic", "medium", "high", "maximum"]
OperationType = Literal["stock_in", "stock_out", "transfer", "adjustment"]
OperationStatus = Literal["completed", "pending", "cancelled", "in_transit"]

class WarehouseBase(BaseModel):
    name: str = Field(min_length=1)
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    pin_code: str = Field(min_length=1, max_length=10)
    capacity: int = Field(ge=1)
    current_stock: int = Field(default=0, ge=0)
    max_capacity: Optional[int] = Field(default=None, ge=1)
    warehouse_type: WarehouseType = "storage"
    operational_status: OperationalStatus = "operational"
    security_level: SecurityLevel = "basic"
    manager_name: Optional[str] = None
    contact_phone: Optional[str] = None
    monthly_operational_cost: float = Field(default=0, ge=0)
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_active: bool = True

class WarehouseCreate(WarehouseBase):
    @model_validator(mode="after")
    def check_stock_within_capacity(self):
        if self.current_stock > (self.max_capacity or self.capacity):
            raise ValueError("Stock exceeds warehouse capacity")
        return self

class WarehouseUpdate(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pin_code: Optional[str] = Field(default=None, max_length=10)
    capacity: Optional[int] = Field(default=None, ge=1)
    max_capacity: Optional[int] = Field(default=None, ge=1)
    warehouse_type: Optional[WarehouseType] = None
    operational_status: Optional[OperationalStatus] = None
    security_level: Optional[SecurityLevel] = None
    manager_name: Optional[str] = None
    contact_phone: Optional[str] = None
    monthly_operational_cost: Optional[float] = Field(default=None, ge=0)
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_active: Optional[bool] = None

class WarehouseResponse(WarehouseBase):
    id: int
    user_id: int
    utilization: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class StockChange(BaseModel):
    change: int
    reason: Optional[str] = None

class InventoryItemCreate(BaseModel):
    item_name: str = Field(min_length=1)
    category: str = "general"
    warehouse_id: Optional[int] = None
    current_stock: int = Field(default=0, ge=0)
    min_stock: int = Field(default=10, ge=0)
    max_stock: int = Field(default=1000, ge=1)
    unit: str = "units"

class InventoryItemResponse(InventoryItemCreate):
    id: int
    user_id: int
    last_updated: Optional[datetime] = None

    class Config:
        from_attributes = True

class StockOperationCreate(BaseModel):
    operation_type: OperationType
    item_name: str = Field(min_length=1)
    quantity: int = Field(ge=1)
    warehouse_id: Optional[int] = None
    to_warehouse_id: Optional[int] = None
    from_location: Optional[str] = None
    to_location: Optional[str] = None
    reason: Optional[str] = None
    status: OperationStatus = "completed"

    @model_validator(mode="after")
    def check_transfer_target(self):
        if self.operation_type == "transfer" and self.to_warehouse_id is not None and self.to_warehouse_id == self.warehouse_id:
            raise ValueError("Transfer source and destination must differ")
        return self

class StockOperationResponse(BaseModel):
    id: int
    user_id: int
    warehouse_id: Optional[int] = None
    to_warehouse_id: Optional[int] = None
    operation_type: str
    item_name: str
    quantity: int
    stock_change: Optional[int] = None
    from_location: Optional[str] = None
    to_location: Optional[str] = None
    reason: Optional[str] = None
    operated_by: Optional[str] = None
    status: str
    operation_date: datetime

    class Config:
        from_attributes = True
