# Auth schemas reuse the user definitions
from ..user.schemas import Token, UserCreate, Login
from pydantic import BaseModel
from typing import Optional

class LoginResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user_id: int
    role: str

class RegisterResponse(BaseModel):
    token: str
    user_id: int
    trial_end_date: Optional[str] = None
