from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from typing import List, Optional
from .models import Vehicle
from .schemas import VehicleCreate, VehicleUpdate
import logging

logger = logging.getLogger(__name__)

def get_vehicles(db: Session, owner_id: int) -> List[Vehicle]:
    return db.query(Vehicle).filter(Vehicle.user_id == owner_id).order_by(Vehicle.id).all()

def get_vehicle(db: Session, vehicle_id: int, owner_id: Optional[int] = None) -> Optional[Vehicle]:
    query = db.query(Vehicle).filter(Vehicle.id == vehicle_id)
    if owner_id is not None:
        query = query.filter(Vehicle.user_id == owner_id)
    return query.first()

def _ensure_unique_registration(db: Session, registration_number: str, exclude_id: Optional[int] = None):
    query = db.query(Vehicle).filter(Vehicle.registration_number == registration_number)
    if exclude_id is not None:
        query = query.filter(Vehicle.id != exclude_id)
    if query.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Vehicle with registration number {registration_number} already exists"
        )

def create_vehicle(db: Session, owner_id: int, vehicle: VehicleCreate) -> Vehicle:
    """
    Register a vehicle in the owner's fleet.

    Raises:
        HTTPException: 409 when the registration number is taken
    """
    try:
        _ensure_unique_registration(db, vehicle.registration_number)
        db_vehicle = Vehicle(user_id=owner_id, **vehicle.model_dump())
        db.add(db_vehicle)
        db.commit()
        db.refresh(db_vehicle)
        return db_vehicle
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating vehicle: {str(e)}")
        raise

def update_vehicle(db: Session, owner_id: int, vehicle_id: int, vehicle_data: VehicleUpdate) -> Vehicle:
    try:
        db_vehicle = get_vehicle(db, vehicle_id, owner_id)
        if not db_vehicle:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Vehicle {vehicle_id} not found")

        update_data = vehicle_data.model_dump(exclude_unset=True, exclude_none=True)
        if update_data.get("registration_number"):
            _ensure_unique_registration(db, update_data["registration_number"], exclude_id=vehicle_id)

        for key, value in update_data.items():
            setattr(db_vehicle, key, value)

        db.commit()
        db.refresh(db_vehicle)
        return db_vehicle
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating vehicle: {str(e)}")
        raise

def delete_vehicle(db: Session, owner_id: int, vehicle_id: int) -> bool:
    try:
        db_vehicle = get_vehicle(db, vehicle_id, owner_id)
        if not db_vehicle:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Vehicle {vehicle_id} not found")
        db.delete(db_vehicle)
        db.commit()
        return True
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting vehicle: {str(e)}")
        raise
