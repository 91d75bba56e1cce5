# Models and schemas for the user module
from .models import User, PricingPlan, Subscription
from .schemas import UserCreate, UserUpdate, AdminUserCreate

# Export crud functions
from .crud import (
    get_user_by_username,
    get_user_by_email,
    get_user_by_login,
    create_user,
    get_user,
    update_user,
    delete_user,
    get_users,
    get_office_accounts,
    get_network_user_ids,
)

# Import the router after everything else to avoid a circular import
from .routes import router, subscription_router
