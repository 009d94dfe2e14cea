from .db import db
from .user import User
from .audit_log import AuditLog
from .package import Package
from .booking import Booking
from .post import Post
