from .health import health_bp
from .auth import auth_bp
from .providers import provider_bp
from .services import service_bp
from .vehicles import vehicle_bp
from .booking import booking_bp
from .reviews import review_bp
from .chat import chat_bp
from .notifications import notification_bp
