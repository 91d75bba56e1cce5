"""
Admin module: account, subscription and platform-wide analytics management
"""

from .schemas import (
    BasicInfoUpdate, PasswordResetRequest, CommissionUpdate, TrialExtension,
    SubscriptionUpdate, EnterpriseDecision, BookingStatusUpdate, UserStats
)

# Router last to avoid a circular import
from .routes import router

__all__ = [
    "router",
    "BasicInfoUpdate", "PasswordResetRequest", "CommissionUpdate", "TrialExtension",
    "SubscriptionUpdate", "EnterpriseDecision", "BookingStatusUpdate", "UserStats"
]
