from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, DECIMAL
from datetime import datetime
from ..core.database import Base

class Vehicle(Base):
    __tablename__ = "vehicles"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    registration_number = Column(String(30), unique=True, nullable=False)
    vehicle_type = Column(String(50), nullable=False)
    capacity = Column(DECIMAL(10, 2))
    driver_name = Column(String(100))
    driver_phone = Column(String(20))
    driver_license = Column(String(50))
    # available, in_transit, maintenance
    status = Column(String(20), default="available", nullable=False)
    current_location = Column(String(150))
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
