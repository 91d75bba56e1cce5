from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from ..core.database import get_db
from ..core.auth import get_current_user
from ..core.invalidation_helpers import invalidate_dashboard_cache
from ..auth.authentication import get_current_user_with_permissions
from ..user.models import User
from ..user.crud import get_fleet_owner_id
from .schemas import VehicleCreate, VehicleUpdate, VehicleResponse
from . import crud

router = APIRouter(prefix="/api/vehicles", tags=["Vehicles"])

@router.get("", response_model=List[VehicleResponse])
async def list_vehicles(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    # Office accounts see the parent's fleet
    return crud.get_vehicles(db, get_fleet_owner_id(current_user))

@router.post("", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    vehicle: VehicleCreate,
    current_user: User = Depends(get_current_user_with_permissions(["manage_vehicles"])),
    db: Session = Depends(get_db)
):
    db_vehicle = crud.create_vehicle(db, current_user.user_id, vehicle)
    await invalidate_dashboard_cache([current_user.user_id])
    return db_vehicle

@router.put("/{vehicle_id}", response_model=VehicleResponse)
async def update_vehicle(
    vehicle_id: int,
    vehicle: VehicleUpdate,
    current_user: User = Depends(get_current_user_with_permissions(["manage_vehicles"])),
    db: Session = Depends(get_db)
):
    db_vehicle = crud.update_vehicle(db, current_user.user_id, vehicle_id, vehicle)
    await invalidate_dashboard_cache([current_user.user_id])
    return db_vehicle

@router.delete("/{vehicle_id}", response_model=dict)
async def delete_vehicle(
    vehicle_id: int,
    current_user: User = Depends(get_current_user_with_permissions(["manage_vehicles"])),
    db: Session = Depends(get_db)
):
    crud.delete_vehicle(db, current_user.user_id, vehicle_id)
    await invalidate_dashboard_cache([current_user.user_id])
    return {"message": "Vehicle deleted successfully"}
