import uuid
from datetime import datetime
from models.db import db

PAYMENT_TYPES = ("DEPOSIT", "FULL", "BALANCE")
# stored for gateway events that predate the paymentType metadata field
PAYMENT_TYPE_UNKNOWN = "UNKNOWN"

STATUS_PENDING = "pending"
STATUS_PAID = "paid"

METHOD_STRIPE = "STRIPE"
METHOD_TRANSFER = "TRANSFER"


def _new_id() -> str:
    return str(uuid.uuid4())


class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)

    package_id = db.Column(
        db.String(36),
        db.ForeignKey("packages.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    customer_name = db.Column(db.String(160), nullable=True)
    customer_email = db.Column(db.String(255), nullable=True, index=True)

    # authoritative amount in major units, never derived at read time
    amount_paid = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    currency = db.Column(db.String(10), nullable=False, default="GBP")

    payment_type = db.Column(db.String(20), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=STATUS_PENDING, index=True)
    # STRIPE, TRANSFER; NULL on rows created before the column existed
    payment_method = db.Column(db.String(20), nullable=True)

    stripe_session_id = db.Column(db.String(255), nullable=True)
    receipt_url = db.Column(db.String(500), nullable=True)

    locale = db.Column(db.String(5), nullable=False, default="en")
    session_date = db.Column(db.DateTime, nullable=True)

    terms_accepted = db.Column(db.Boolean, default=False, nullable=False)
    terms_accepted_at = db.Column(db.DateTime, nullable=True)
    terms_version = db.Column(db.String(40), nullable=True)
    client_ip = db.Column(db.String(64), nullable=True)
    client_user_agent = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    package = db.relationship("Package", back_populates="bookings")

    __table_args__ = (
        # One booking per completed checkout session (webhooks are delivered at-least-once)
        db.UniqueConstraint("stripe_session_id", name="uq_booking_stripe_session"),
    )

    @property
    def reference(self) -> str:
        return self.id[:8].upper()
