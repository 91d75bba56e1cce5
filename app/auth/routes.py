from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from ..core.database import get_db
from ..core.auth import create_access_token, get_current_user
from ..core.security import verify_password
from ..core.cache import get_cache, set_cache
from ..core.invalidation_helpers import invalidate_specific_cache
from ..user.models import User
from ..user.crud import get_user_by_username, get_user_by_email, get_user_by_login, create_user
from ..user.subscription import subscription_summary
from .schemas import UserCreate, Login, LoginResponse, RegisterResponse
import json
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

def _authenticate(db: Session, username_or_email: str, password: str) -> User:
    user = get_user_by_login(db, username_or_email)
    if not user or not verify_password(password, user.password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username/email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if user.status == "blocked":
        logger.warning(f"Blocked user {user.user_id} attempted to log in")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account has been blocked. Please contact administrator.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if user.status == "inactive":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )
    return user

@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(user: UserCreate, db: Session = Depends(get_db)):
    if user.username and get_user_by_username(db, user.username):
        raise HTTPException(status_code=400, detail="Username already registered")
    if get_user_by_email(db, user.email):
        raise HTTPException(status_code=400, detail="Email already registered")
    if len(user.password) < 6:
        raise HTTPException(status_code=400, detail="Password must be at least 6 characters")

    new_user = create_user(db, user)
    access_token = create_access_token({"user_id": new_user.user_id, "role": new_user.role})
    return {
        "token": access_token,
        "user_id": new_user.user_id,
        "trial_end_date": new_user.trial_end_date.isoformat() if new_user.trial_end_date else None,
    }

@router.post("/login", response_model=LoginResponse)
async def login(login_data: Login, db: Session = Depends(get_db)):
    user = _authenticate(db, login_data.username_or_email, login_data.password)
    access_token = create_access_token({"user_id": user.user_id, "role": user.role})
    logger.info(f"User {user.user_id} logged in")
    return {
        "token": access_token,
        "token_type": "bearer",
        "user_id": user.user_id,
        "role": user.role
    }

@router.post("/token")
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    """
    OAuth2 password flow used by the interactive API docs.
    """
    user = _authenticate(db, form_data.username, form_data.password)
    access_token = create_access_token({"user_id": user.user_id, "role": user.role})
    return {"access_token": access_token, "token_type": "bearer"}

@router.post("/logout", response_model=dict)
async def logout(current_user: User = Depends(get_current_user)):
    cleared = await invalidate_specific_cache([
        f"user_info:{current_user.user_id}",
        f"dashboard:stats:{current_user.user_id}",
        f"analytics:{current_user.user_id}",
        f"reports:{current_user.user_id}",
    ])
    if not cleared:
        return {"message": "Logged out successfully"}
    return {"message": "Logged out successfully and cleared user cache"}

@router.get("/me", response_model=dict)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """
    Current account with its subscription summary. Cached for 15 minutes.
    """
    cache_key = f"user_info:{current_user.user_id}"
    cached_data = await get_cache(cache_key)
    if cached_data:
        return json.loads(cached_data)

    user_data = {
        "user_id": current_user.user_id,
        "username": current_user.username,
        "email": current_user.email,
        "first_name": current_user.first_name,
        "last_name": current_user.last_name,
        "full_name": current_user.full_name,
        "role": current_user.role,
        "status": current_user.status,
        "office_name": current_user.office_name,
        "parent_user_id": current_user.parent_user_id,
        "commission_rate": float(current_user.commission_rate or 0),
        "created_at": current_user.created_at.isoformat() if current_user.created_at else None,
        "subscription": subscription_summary(current_user),
    }
    user_data = {k: v for k, v in user_data.items() if v is not None}
    user_data = json.loads(json.dumps(user_data, default=str))

    await set_cache(cache_key, json.dumps(user_data), 900)
    return user_data
