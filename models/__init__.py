from .db import db
from .user import User, Role, user_roles
from .audit_log import AuditLog
from .session import Session
from .provider import Provider
from .service import Service, AddOn
from .vehicle import Vehicle
from .booking import Booking
from .review import Review
from .chat import ChatRoom, ChatMessage
from .notification import Notification
from .schedule import ProviderAvailability, ProviderBlockedTime
