from sqlalchemy.orm import Session
from sqlalchemy import or_, func
from fastapi import HTTPException, status
from typing import List, Optional, Dict, Any
from .models import TeamMember, TeamRole
from .schemas import TeamMemberCreate, TeamMemberUpdate, TeamRoleCreate, TeamRoleUpdate
import logging

logger = logging.getLogger(__name__)

DEPARTMENTS = ["Operations", "Fleet Management", "Warehouse", "Customer Service", "Transportation", "Finance"]

PERMISSIONS = [
    "view_all_bookings", "view_bookings", "manage_bookings", "view_customers", "manage_customers",
    "view_fleet", "manage_fleet", "manage_vehicles", "view_gps", "manage_warehouse",
    "view_inventory", "manage_loading", "view_financials", "manage_payments",
    "generate_reports", "view_reports", "manage_team", "manage_support",
    "view_assigned_trips", "update_status", "view_route",
]

# Seeded the first time an owner lists roles
DEFAULT_ROLES = [
    {
        "name": "Operations Manager",
        "description": "Oversees daily operations and fleet management",
        "department": "Operations",
        "permissions": ["view_all_bookings", "manage_fleet", "view_reports", "manage_team"],
        "salary_range": "₹60,000 - ₹80,000",
        "level": "Senior",
    },
    {
        "name": "Fleet Coordinator",
        "description": "Coordinates vehicle assignments and maintenance",
        "department": "Fleet Management",
        "permissions": ["view_bookings", "manage_vehicles", "view_gps"],
        "salary_range": "₹45,000 - ₹65,000",
        "level": "Mid",
    },
    {
        "name": "Warehouse Supervisor",
        "description": "Manages warehouse operations and inventory",
        "department": "Warehouse",
        "permissions": ["manage_warehouse", "view_inventory", "manage_loading"],
        "salary_range": "₹40,000 - ₹60,000",
        "level": "Mid",
    },
    {
        "name": "Customer Support Lead",
        "description": "Handles customer queries and complaints",
        "department": "Customer Service",
        "permissions": ["view_customers", "manage_support", "view_bookings"],
        "salary_range": "₹35,000 - ₹55,000",
        "level": "Mid",
    },
    {
        "name": "Driver",
        "description": "Responsible for safe transportation of goods",
        "department": "Transportation",
        "permissions": ["view_assigned_trips", "update_status", "view_route"],
        "salary_range": "₹25,000 - ₹40,000",
        "level": "Junior",
    },
    {
        "name": "Accounts Manager",
        "description": "Manages financial transactions and billing",
        "department": "Finance",
        "permissions": ["view_financials", "manage_payments", "generate_reports"],
        "salary_range": "₹50,000 - ₹70,000",
        "level": "Senior",
    },
]

def _validate_department(department: Optional[str]) -> None:
    if department and department not in DEPARTMENTS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown department: {department}")

def _validate_permissions(permissions: Optional[List[str]]) -> None:
    unknown = [p for p in permissions or [] if p not in PERMISSIONS]
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown permissions: {', '.join(unknown)}"
        )

def _escape_like(value: str) -> str:
    # Search text is matched literally
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")

# Members

def get_members(db: Session, owner_id: int, department: Optional[str] = None,
                search: Optional[str] = None) -> List[TeamMember]:
    """
    Function: get_members

    1. Summary:
    List an owner's team members.

    2. Purpose:
    `department` "All" or empty applies no department filter. `search`
    matches name, email or role, case-insensitively.

    3. Parameters:
    - db (Session): Database session
    - owner_id (int): Account that owns the team
    - department (str): Department filter
    - search (str): Free-text filter

    4. Returns:
    - List[TeamMember]: Matching members, oldest first
    """
    query = db.query(TeamMember).filter(TeamMember.owner_id == owner_id)
    if department and department != "All":
        query = query.filter(TeamMember.department == department)
    if search:
        pattern = f"%{_escape_like(search.lower())}%"
        query = query.filter(or_(
            func.lower(TeamMember.name).like(pattern, escape="\\"),
            func.lower(TeamMember.email).like(pattern, escape="\\"),
            func.lower(TeamMember.role).like(pattern, escape="\\"),
        ))
    return query.order_by(TeamMember.id).all()

def get_member(db: Session, owner_id: int, member_id: int) -> TeamMember:
    member = db.query(TeamMember).filter(
        TeamMember.id == member_id,
        TeamMember.owner_id == owner_id
    ).first()
    if not member:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Team member not found")
    return member

def create_member(db: Session, owner_id: int, member: TeamMemberCreate) -> TeamMember:
    _validate_department(member.department)
    try:
        db_member = TeamMember(owner_id=owner_id, status="active", **member.model_dump())
        db.add(db_member)
        db.commit()
        db.refresh(db_member)
        logger.info(f"Owner {owner_id} added team member {db_member.id}")
        return db_member
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating team member: {str(e)}")
        raise

def update_member(db: Session, owner_id: int, member_id: int, member: TeamMemberUpdate) -> TeamMember:
    db_member = get_member(db, owner_id, member_id)
    update_data = member.model_dump(exclude_unset=True, exclude_none=True)
    _validate_department(update_data.get("department"))
    try:
        for field, value in update_data.items():
            setattr(db_member, field, value)
        db.commit()
        db.refresh(db_member)
        return db_member
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating team member {member_id}: {str(e)}")
        raise

def delete_member(db: Session, owner_id: int, member_id: int) -> bool:
    db_member = get_member(db, owner_id, member_id)
    try:
        db.delete(db_member)
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting team member {member_id}: {str(e)}")
        raise

# Roles

def get_roles(db: Session, owner_id: int) -> List[TeamRole]:
    roles = db.query(TeamRole).filter(TeamRole.owner_id == owner_id).order_by(TeamRole.id).all()
    if roles:
        return roles
    try:
        for role in DEFAULT_ROLES:
            db.add(TeamRole(owner_id=owner_id, **role))
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error seeding roles for owner {owner_id}: {str(e)}")
        raise
    return db.query(TeamRole).filter(TeamRole.owner_id == owner_id).order_by(TeamRole.id).all()

def get_role(db: Session, owner_id: int, role_id: int) -> TeamRole:
    role = db.query(TeamRole).filter(TeamRole.id == role_id, TeamRole.owner_id == owner_id).first()
    if not role:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Role not found")
    return role

def create_role(db: Session, owner_id: int, role: TeamRoleCreate) -> TeamRole:
    _validate_department(role.department)
    _validate_permissions(role.permissions)
    try:
        db_role = TeamRole(owner_id=owner_id, **role.model_dump())
        db.add(db_role)
        db.commit()
        db.refresh(db_role)
        return db_role
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating role for owner {owner_id}: {str(e)}")
        raise

def update_role(db: Session, owner_id: int, role_id: int, role: TeamRoleUpdate) -> TeamRole:
    db_role = get_role(db, owner_id, role_id)
    update_data = role.model_dump(exclude_unset=True, exclude_none=True)
    _validate_department(update_data.get("department"))
    _validate_permissions(update_data.get("permissions"))
    old_name = db_role.name
    try:
        for field, value in update_data.items():
            setattr(db_role, field, value)
        # Members hold the role by name
        if db_role.name != old_name:
            db.query(TeamMember).filter(
                TeamMember.owner_id == owner_id,
                TeamMember.role == old_name
            ).update({"role": db_role.name}, synchronize_session=False)
        db.commit()
        db.refresh(db_role)
        return db_role
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating role {role_id}: {str(e)}")
        raise

def delete_role(db: Session, owner_id: int, role_id: int) -> bool:
    db_role = get_role(db, owner_id, role_id)
    in_use = db.query(TeamMember).filter(
        TeamMember.owner_id == owner_id,
        TeamMember.role == db_role.name
    ).count()
    if in_use:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This role is currently assigned to team members"
        )
    try:
        db.delete(db_role)
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting role {role_id}: {str(e)}")
        raise

def get_team_stats(db: Session, owner_id: int) -> Dict[str, Any]:
    members = db.query(TeamMember).filter(TeamMember.owner_id == owner_id).all()
    return {
        "totalMembers": len(members),
        "activeMembers": sum(1 for m in members if m.status == "active"),
        "departments": len({m.department for m in members if m.department}),
        "roles": db.query(TeamRole).filter(TeamRole.owner_id == owner_id).count(),
    }
