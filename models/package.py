import uuid
from datetime import datetime
from models.db import db


def _new_id() -> str:
    return str(uuid.uuid4())


class Package(db.Model):
    __tablename__ = "packages"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)

    name = db.Column(db.String(120), unique=True, nullable=False)
    name_pt = db.Column(db.String(120), nullable=True)
    description = db.Column(db.Text, nullable=True)
    description_pt = db.Column(db.Text, nullable=True)

    # major units (e.g. 150.00 GBP)
    total_price = db.Column(db.Numeric(10, 2), nullable=False)
    deposit_price = db.Column(db.Numeric(10, 2), nullable=False)

    # soft-delete flag: inactive packages stay referenced by old bookings
    active = db.Column(db.Boolean, default=True, nullable=False, index=True)
    stripe_product_id = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    bookings = db.relationship("Booking", back_populates="package", passive_deletes=True)

    __table_args__ = (
        db.CheckConstraint("deposit_price <= total_price", name="ck_package_deposit_le_total"),
    )

    def display_name(self, locale: str = "en") -> str:
        if locale == "pt" and self.name_pt:
            return self.name_pt
        return self.name
