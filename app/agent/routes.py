from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime
from ..core.database import get_db
from ..core.auth import get_current_user
from ..core.invalidation_helpers import invalidate_dashboard_cache
from ..auth.authentication import get_current_user_with_permissions
from ..user.models import User
from ..user.crud import get_user
from .schemas import OfficeAccountCreate, OfficeAccountUpdate, OfficeAccountResponse, PasswordReset
from . import crud
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/office-accounts", tags=["Office Accounts"])
agents_router = APIRouter(prefix="/api/agents", tags=["Agents"])

manage_agents = get_current_user_with_permissions(["manage_agents"])

@router.get("", response_model=List[dict])
async def list_office_accounts(current_user: User = Depends(manage_agents), db: Session = Depends(get_db)):
    return crud.list_office_accounts(db, current_user)

@router.post("", response_model=OfficeAccountResponse, status_code=status.HTTP_201_CREATED)
async def create_office_account(
    account: OfficeAccountCreate,
    current_user: User = Depends(manage_agents),
    db: Session = Depends(get_db)
):
    office = crud.create_office_account(db, current_user, account)
    await invalidate_dashboard_cache([current_user.user_id])
    return office

@router.put("/{office_id}", response_model=OfficeAccountResponse)
async def update_office_account(
    office_id: int,
    account: OfficeAccountUpdate,
    current_user: User = Depends(manage_agents),
    db: Session = Depends(get_db)
):
    office = crud.update_office_account(db, current_user, office_id, account)
    await invalidate_dashboard_cache([current_user.user_id, office_id])
    return office

@router.put("/{office_id}/reset-password", response_model=dict)
async def reset_office_password(
    office_id: int,
    payload: PasswordReset,
    current_user: User = Depends(manage_agents),
    db: Session = Depends(get_db)
):
    crud.reset_office_password(db, current_user, office_id, payload.new_password)
    logger.info(f"User {current_user.user_id} reset password of office account {office_id}")
    return {"message": "Password reset successfully"}

@router.delete("/{office_id}", response_model=dict)
async def delete_office_account(
    office_id: int,
    current_user: User = Depends(manage_agents),
    db: Session = Depends(get_db)
):
    crud.delete_office_account(db, current_user, office_id)
    await invalidate_dashboard_cache([current_user.user_id, office_id])
    return {"message": "Office account deleted successfully"}

@agents_router.get("/{agent_id}/analytics", response_model=dict)
async def agent_analytics(
    agent_id: int,
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Visible to the agent itself, its parent account and admins.
    """
    agent = get_user(db, agent_id)
    if not agent or agent.role != "office":
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Agent not found")
    if current_user.role != "admin" and current_user.user_id not in (agent.user_id, agent.parent_user_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to view this agent")
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="startDate must be before endDate")
    return crud.get_agent_analytics(db, agent, start_date, end_date)
