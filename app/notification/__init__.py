from .models import Notification
from .crud import add_notification, get_notifications, get_unread_count

# Router last to avoid a circular import
from .routes import router
