from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List, Literal
from datetime import date, datetime

MemberStatus = Literal["active", "inactive"]
RoleLevel = Literal["Junior", "Mid", "Senior"]

class TeamMemberBase(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    role: str = Field(min_length=1)
    phone: Optional[str] = None
    department: Optional[str] = None
    location: Optional[str] = None
    salary: Optional[str] = None
    notes: Optional[str] = None

class TeamMemberCreate(TeamMemberBase):
    pass

class TeamMemberUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    role: Optional[str] = Field(default=None, min_length=1)
    phone: Optional[str] = None
    department: Optional[str] = None
    location: Optional[str] = None
    salary: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[MemberStatus] = None

class TeamMemberResponse(TeamMemberBase):
    id: int
    email: str
    status: str
    join_date: Optional[date] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class TeamRoleBase(BaseModel):
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    department: Optional[str] = None
    permissions: List[str] = []
    salary_range: Optional[str] = None
    level: Optional[RoleLevel] = None

class TeamRoleCreate(TeamRoleBase):
    pass

class TeamRoleUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    department: Optional[str] = None
    permissions: Optional[List[str]] = None
    salary_range: Optional[str] = None
    level: Optional[RoleLevel] = None

class TeamRoleResponse(TeamRoleBase):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
