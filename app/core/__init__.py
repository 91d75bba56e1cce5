# Core building blocks shared by every module
from .database import get_db, Base, engine, SessionLocal
from .cache import get_cache, set_cache, redis_client
from .security import hash_password, verify_password

__all__ = [
    'Base', 'engine', 'get_db', 'SessionLocal',
    'verify_password', 'hash_password',
    'set_cache', 'get_cache', 'redis_client'
]

# auth.py is not imported here to avoid a circular import with user.models.
# Other modules import it directly from core.auth
