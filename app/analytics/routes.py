from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import json
import logging
from ..core.database import get_db
from ..core.auth import get_current_user
from ..core.cache import get_cache, set_cache
from ..auth.authentication import get_current_user_with_permissions
from ..user.models import User
from . import crud

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Analytics"])

async def _cached(cache_key: str, ttl: int, build):
    cached_data = await get_cache(cache_key)
    if cached_data:
        return json.loads(cached_data)
    data = build()
    await set_cache(cache_key, json.dumps(data, default=str), ttl)
    return data

@router.get("/dashboard/stats", response_model=dict)
async def dashboard_stats(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return await _cached(
        f"dashboard:stats:{current_user.user_id}", 120,
        lambda: crud.get_dashboard_stats(db, current_user),
    )

@router.get("/analytics", response_model=dict)
async def user_analytics(
    current_user: User = Depends(get_current_user_with_permissions(["view_reports"])),
    db: Session = Depends(get_db)
):
    return await _cached(
        f"analytics:{current_user.user_id}", 300,
        lambda: crud.get_user_analytics(db, current_user),
    )

@router.get("/reports/data", response_model=dict)
async def reports_data(
    current_user: User = Depends(get_current_user_with_permissions(["view_reports"])),
    db: Session = Depends(get_db)
):
    return await _cached(
        f"reports:{current_user.user_id}", 300,
        lambda: crud.get_reports_data(db, current_user),
    )
