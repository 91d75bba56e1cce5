"""
Auth module: registration, login and role permissions
"""

from .schemas import UserCreate, Login, Token

# Import the router from routes.py
from .routes import router

# Export authentication helpers
from . import authentication

__all__ = ["router", "authentication"]
