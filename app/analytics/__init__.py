from .crud import get_dashboard_stats, get_user_analytics, get_reports_data

# Router last to avoid a circular import
from .routes import router
