from .health import health_bp
from .auth import auth_bp
from .packages import package_bp
from .checkout import checkout_bp
from .stripe_webhook import webhook_bp
from .booking import booking_bp
from .dashboard import dashboard_bp
from .contact import contact_bp
from .posts import post_bp
from .audit_logs import audit_bp

__all__ = [
    "health_bp", "auth_bp", "package_bp", "checkout_bp", "webhook_bp",
    "booking_bp", "dashboard_bp", "contact_bp", "post_bp", "audit_bp",
]
