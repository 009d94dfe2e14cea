from datetime import datetime

from flask import Blueprint, current_app, jsonify, request

from models.booking import PAYMENT_TYPES
from services import checkout
from services.gateway import get_gateway
from services.metadata import parse_datetime
from services.pricing import SUPPORTED_LOCALES
from utils.audit import client_ip, client_user_agent, log_event
from utils.errors import ValidationError
from utils.validation import clean_str, is_valid_email

checkout_bp = Blueprint("checkout", __name__, url_prefix="/checkout")


def _checkout_request(data: dict) -> checkout.CheckoutRequest:
    package_id = clean_str(data.get("packageId"))
    if not package_id:
        raise ValidationError("Package ID is required")

    payment_type = data.get("paymentType")
    if payment_type not in PAYMENT_TYPES:
        raise ValidationError("Payment type must be DEPOSIT, FULL, or BALANCE")

    locale = data.get("locale") or "en"
    if locale not in SUPPORTED_LOCALES:
        raise ValidationError("locale must be one of: " + ", ".join(SUPPORTED_LOCALES))

    customer_email = clean_str(data.get("customerEmail"))
    if customer_email is not None and not is_valid_email(customer_email):
        raise ValidationError("Invalid email address")

    session_date = None
    raw_date = data.get("sessionDate")
    if raw_date:
        session_date = parse_datetime(raw_date) if isinstance(raw_date, str) else None
        if session_date is None:
            raise ValidationError("sessionDate must be an ISO 8601 date")

    terms_accepted = data.get("termsAccepted") is True

    return checkout.CheckoutRequest(
        package_id=package_id,
        payment_type=payment_type,
        locale=locale,
        customer_email=customer_email,
        customer_name=clean_str(data.get("customerName")),
        session_date=session_date,
        idempotency_key=clean_str(request.headers.get("Idempotency-Key")),
        client_ip=client_ip(),
        client_user_agent=client_user_agent(),
        terms_accepted=terms_accepted,
        terms_accepted_at=datetime.utcnow() if terms_accepted else None,
    )


@checkout_bp.post("/session")
def create_session():
    req = _checkout_request(request.get_json(silent=True) or {})

    session = checkout.create_session(
        get_gateway(),
        req,
        currency=current_app.config.get("CHECKOUT_CURRENCY", "gbp"),
        frontend_url=current_app.config.get("FRONTEND_URL", ""),
        terms_version=current_app.config.get("TERMS_VERSION"),
    )

    log_event(
        "CHECKOUT_SESSION_CREATED",
        entity="package",
        entity_id=req.package_id,
        metadata={"stripe_session_id": session.session_id, "payment_type": req.payment_type},
    )
    return jsonify(url=session.url), 200


@checkout_bp.post("/manual")
def create_manual_booking():
    req = _checkout_request(request.get_json(silent=True) or {})

    booking = checkout.create_manual_booking(
        req,
        currency=current_app.config.get("CHECKOUT_CURRENCY", "gbp"),
        terms_version=current_app.config.get("TERMS_VERSION"),
    )

    log_event("MANUAL_BOOKING_CREATE", entity="booking", entity_id=booking.id, metadata={"payment_type": booking.payment_type})
    return jsonify(success=True, bookingId=booking.id, reference=booking.reference), 201
