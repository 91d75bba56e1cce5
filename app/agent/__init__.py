from .schemas import OfficeAccountCreate, OfficeAccountUpdate, OfficeAccountResponse, PasswordReset
from .crud import (
    create_office_account,
    list_office_accounts,
    update_office_account,
    reset_office_password,
    delete_office_account,
    get_agent_analytics
)

# Router last to avoid a circular import
from .routes import router, agents_router
