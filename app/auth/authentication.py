from fastapi import Depends, HTTPException, status
from typing import List
from ..user.models import User
from ..core.auth import get_current_user
import logging

logger = logging.getLogger(__name__)

# Role to permission mapping. Admin implicitly holds every permission.
ROLE_PERMISSIONS = {
    "admin": [
        "manage_users",
        "manage_bookings",
        "view_bookings",
        "create_bookings",
        "manage_vehicles",
        "manage_warehouse",
        "view_inventory",
        "manage_team",
        "manage_agents",
        "view_reports",
        "view_dashboard",
    ],
    "transporter": [
        "manage_bookings",
        "view_bookings",
        "create_bookings",
        "manage_vehicles",
        "manage_warehouse",
        "view_inventory",
        "manage_team",
        "manage_agents",
        "view_reports",
        "view_dashboard",
    ],
    "distributor": [
        "manage_bookings",
        "view_bookings",
        "create_bookings",
        "manage_vehicles",
        "manage_warehouse",
        "view_inventory",
        "manage_team",
        "manage_agents",
        "view_reports",
        "view_dashboard",
    ],
    "warehouse": [
        "view_bookings",
        "create_bookings",
        "manage_warehouse",
        "view_inventory",
        "manage_team",
        "view_reports",
        "view_dashboard",
    ],
    "office": [
        "view_bookings",
        "create_bookings",
        "view_reports",
        "view_dashboard",
    ],
}

def get_user_permissions(user: User) -> List[str]:
    """
    Return the permissions granted by the user's role.

    Args:
        user: User object

    Returns:
        List[str]: Permission names
    """
    return ROLE_PERMISSIONS.get(user.role, [])

def get_current_user_with_permissions(required_permissions: List[str] = None):
    """
    Dependency factory checking that the current user holds every required
    permission.

    Args:
        required_permissions: Permission names the endpoint needs

    Returns:
        function: Dependency usable with FastAPI's Depends
    """
    async def _get_current_user_with_permissions(
        current_user: User = Depends(get_current_user),
    ) -> User:
        if not required_permissions:
            return current_user

        if current_user.role == "admin":
            return current_user

        user_permissions = get_user_permissions(current_user)

        for permission in required_permissions:
            if permission not in user_permissions:
                logger.warning(f"User {current_user.user_id} ({current_user.email}) with role {current_user.role} tried to access a resource requiring permission '{permission}'")

                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=f"You don't have the required permission: {permission}"
                )

        return current_user

    return _get_current_user_with_permissions
