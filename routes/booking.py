from flask import Blueprint, request, jsonify, g

from models import db
from models.booking import Booking, STATUS_PAID, STATUS_PENDING
from routes.packages import money_str
from security.rbac import require_admin
from services.checkout import confirm_booking_payment
from utils.audit import log_event

booking_bp = Blueprint("booking", __name__, url_prefix="/bookings")


def booking_to_json(b: Booking) -> dict:
    pkg = b.package
    return {
        "id": b.id,
        "reference": b.reference,
        "packageId": b.package_id,
        "package": {
            "id": pkg.id,
            "name": pkg.name,
            "active": pkg.active,
            "totalPrice": money_str(pkg.total_price),
            "depositPrice": money_str(pkg.deposit_price),
        } if pkg else None,
        "customerName": b.customer_name,
        "customerEmail": b.customer_email,
        "amountPaid": money_str(b.amount_paid),
        "currency": b.currency,
        "paymentType": b.payment_type,
        "status": b.status,
        "paymentMethod": b.payment_method,
        "stripeSessionId": b.stripe_session_id,
        "receiptUrl": b.receipt_url,
        "locale": b.locale,
        "sessionDate": b.session_date.isoformat() if b.session_date else None,
        "termsAccepted": b.terms_accepted,
        "termsAcceptedAt": b.terms_accepted_at.isoformat() if b.terms_accepted_at else None,
        "termsVersion": b.terms_version,
        "clientIp": b.client_ip,
        "clientUserAgent": b.client_user_agent,
        "createdAt": b.created_at.isoformat() if b.created_at else None,
        "updatedAt": b.updated_at.isoformat() if b.updated_at else None,
    }


@booking_bp.get("")
@require_admin
def list_bookings():
    status = request.args.get("status")
    if status and status not in (STATUS_PENDING, STATUS_PAID):
        return jsonify(error="status must be pending or paid"), 400

    q = Booking.query
    if status:
        q = q.filter_by(status=status)

    rows = q.order_by(Booking.created_at.desc()).all()
    return jsonify([booking_to_json(b) for b in rows]), 200


@booking_bp.post("/<booking_id>/confirm")
@require_admin
def confirm_booking(booking_id: str):
    booking = confirm_booking_payment(booking_id)

    log_event(
        "BOOKING_CONFIRM",
        admin_email=g.admin_email,
        entity="booking",
        entity_id=booking.id,
        metadata={"amount": str(booking.amount_paid)},
    )
    return jsonify(booking_to_json(booking)), 200


@booking_bp.delete("/<booking_id>")
@require_admin
def delete_booking(booking_id: str):
    booking = db.session.get(Booking, booking_id)
    if not booking:
        return jsonify(error="Booking not found"), 404

    db.session.delete(booking)
    db.session.commit()

    log_event("BOOKING_DELETE", admin_email=g.admin_email, entity="booking", entity_id=booking_id)
    return "", 204
