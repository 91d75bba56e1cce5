from sqlalchemy import Column, Integer, String, Text, DateTime, Date, ForeignKey, JSON
from datetime import datetime
from ..core.database import Base

class TeamMember(Base):
    __tablename__ = "team_members"
    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    name = Column(String(150), nullable=False)
    email = Column(String(100), nullable=False)
    phone = Column(String(20))
    role = Column(String(100), nullable=False)
    department = Column(String(50))
    location = Column(String(100))
    salary = Column(String(50))
    notes = Column(Text)
    # active, inactive, on_leave
    status = Column(String(20), default="active", nullable=False)
    join_date = Column(Date, default=lambda: datetime.now().date())
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

class TeamRole(Base):
    __tablename__ = "team_roles"
    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    department = Column(String(50))
    permissions = Column(JSON, default=list)
    salary_range = Column(String(50))
    level = Column(String(20))
    created_at = Column(DateTime, default=datetime.now)
