from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from ..core.database import get_db
from ..auth.authentication import get_current_user_with_permissions
from ..user.models import User
from .schemas import (
    TeamMemberCreate, TeamMemberUpdate, TeamMemberResponse,
    TeamRoleCreate, TeamRoleUpdate, TeamRoleResponse
)
from . import crud

router = APIRouter(prefix="/api/team", tags=["Team"])

manage_team = get_current_user_with_permissions(["manage_team"])

@router.get("/members", response_model=List[TeamMemberResponse])
async def list_members(
    department: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    current_user: User = Depends(manage_team),
    db: Session = Depends(get_db)
):
    return crud.get_members(db, current_user.user_id, department, search)

@router.post("/members", response_model=TeamMemberResponse, status_code=status.HTTP_201_CREATED)
async def create_member(member: TeamMemberCreate, current_user: User = Depends(manage_team), db: Session = Depends(get_db)):
    return crud.create_member(db, current_user.user_id, member)

@router.put("/members/{member_id}", response_model=TeamMemberResponse)
async def update_member(
    member_id: int,
    member: TeamMemberUpdate,
    current_user: User = Depends(manage_team),
    db: Session = Depends(get_db)
):
    return crud.update_member(db, current_user.user_id, member_id, member)

@router.delete("/members/{member_id}", response_model=dict)
async def delete_member(member_id: int, current_user: User = Depends(manage_team), db: Session = Depends(get_db)):
    crud.delete_member(db, current_user.user_id, member_id)
    return {"message": "Team member removed successfully"}

@router.get("/roles", response_model=List[TeamRoleResponse])
async def list_roles(current_user: User = Depends(manage_team), db: Session = Depends(get_db)):
    return crud.get_roles(db, current_user.user_id)

@router.post("/roles", response_model=TeamRoleResponse, status_code=status.HTTP_201_CREATED)
async def create_role(role: TeamRoleCreate, current_user: User = Depends(manage_team), db: Session = Depends(get_db)):
    return crud.create_role(db, current_user.user_id, role)

@router.put("/roles/{role_id}", response_model=TeamRoleResponse)
async def update_role(
    role_id: int,
    role: TeamRoleUpdate,
    current_user: User = Depends(manage_team),
    db: Session = Depends(get_db)
):
    return crud.update_role(db, current_user.user_id, role_id, role)

@router.delete("/roles/{role_id}", response_model=dict)
async def delete_role(role_id: int, current_user: User = Depends(manage_team), db: Session = Depends(get_db)):
    crud.delete_role(db, current_user.user_id, role_id)
    return {"message": "Role deleted successfully"}

@router.get("/departments", response_model=List[str])
async def list_departments(current_user: User = Depends(manage_team)):
    return crud.DEPARTMENTS

@router.get("/permissions", response_model=List[str])
async def list_permissions(current_user: User = Depends(manage_team)):
    return crud.PERMISSIONS

@router.get("/stats", response_model=dict)
async def team_stats(current_user: User = Depends(manage_team), db: Session = Depends(get_db)):
    return crud.get_team_stats(db, current_user.user_id)
