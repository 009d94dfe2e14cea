"""Checkout orchestration: sessions, manual bookings, webhook reconciliation.

Plain functions; the payment gateway is always passed in by the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.booking import (
    METHOD_STRIPE,
    METHOD_TRANSFER,
    STATUS_PAID,
    STATUS_PENDING,
    Booking,
)
from models.package import Package
from services.gateway import CheckoutSession, PaymentGateway
from services.metadata import BookingMetadata
from services.notifications import (
    BookingEmailDetails,
    send_admin_booking_notification,
    send_booking_confirmation,
)
from services.pricing import compute_amount, from_minor_units, normalize_locale, to_minor_units
from utils.errors import ConflictError, GatewayError, NotFoundError, PersistenceError, ValidationError

logger = logging.getLogger(__name__)

COMPLETED = "checkout.session.completed"
ASYNC_SUCCEEDED = "checkout.session.async_payment_succeeded"
SETTLED_PAYMENT_STATUSES = ("paid", "no_payment_required")

FALLBACK_PACKAGE_NAME = "Custom Package"


@dataclass
class CheckoutRequest:
    package_id: str
    payment_type: str
    locale: str = "en"
    customer_email: str | None = None
    customer_name: str | None = None
    session_date: datetime | None = None
    idempotency_key: str | None = None
    client_ip: str | None = None
    client_user_agent: str | None = None
    terms_accepted: bool = False
    terms_accepted_at: datetime | None = None


def load_active_package(package_id: str) -> Package:
    package = db.session.get(Package, package_id) if package_id else None
    if package is None:
        raise NotFoundError("Package not found")
    if not package.active:
        raise NotFoundError("This package is no longer available.")
    return package


def booking_reference(booking: Booking) -> str:
    if booking.stripe_session_id:
        return booking.stripe_session_id[-8:]
    return booking.reference


def create_session(
    gateway: PaymentGateway,
    request: CheckoutRequest,
    *,
    currency: str,
    frontend_url: str,
    terms_version: str | None = None,
) -> CheckoutSession:
    package = load_active_package(request.package_id)
    locale = normalize_locale(request.locale)
    quote = compute_amount(package, request.payment_type, locale)

    base = frontend_url.rstrip("/")
    success_url = f"{base}/{locale}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}"
    cancel_url = f"{base}/{locale}/checkout/cancel"

    envelope = BookingMetadata(
        package_id=package.id,
        package_name=package.name,
        payment_type=request.payment_type,
        locale=locale,
        session_date=request.session_date,
        terms_accepted=request.terms_accepted,
        terms_accepted_at=request.terms_accepted_at,
        terms_version=terms_version,
        client_ip=request.client_ip,
        client_user_agent=request.client_user_agent,
    )

    session = gateway.create_checkout_session(
        amount=to_minor_units(quote.amount),
        currency=currency,
        product_name=quote.product_name,
        description=quote.description,
        payment_type=request.payment_type,
        metadata=envelope.to_metadata(),
        success_url=success_url,
        cancel_url=cancel_url,
        customer_email=request.customer_email,
        idempotency_key=request.idempotency_key,
    )
    logger.info(
        "Checkout session %s opened for package %s (%s, %s)",
        session.session_id, package.id, request.payment_type, quote.amount,
    )
    return session


def create_manual_booking(request: CheckoutRequest, *, currency: str, terms_version: str | None = None) -> Booking:
    if not request.customer_email or not request.customer_name:
        raise ValidationError("customerEmail and customerName are required for bank transfer bookings")

    package = load_active_package(request.package_id)
    locale = normalize_locale(request.locale)
    # validates the payment type and rejects packages with nothing to pay
    compute_amount(package, request.payment_type, locale)

    booking = Booking(
        package_id=package.id,
        customer_name=request.customer_name,
        customer_email=request.customer_email,
        amount_paid=0,
        currency=currency.upper(),
        payment_type=request.payment_type,
        status=STATUS_PENDING,
        payment_method=METHOD_TRANSFER,
        locale=locale,
        session_date=request.session_date,
        terms_accepted=request.terms_accepted,
        terms_accepted_at=request.terms_accepted_at,
        terms_version=terms_version if request.terms_accepted else None,
        client_ip=request.client_ip,
        client_user_agent=request.client_user_agent,
    )
    db.session.add(booking)
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Could not save manual booking for package %s", package.id)
        raise PersistenceError("Could not save the booking. Please try again.") from exc

    logger.info("Manual booking %s created for package %s", booking.id, package.id)
    return booking


def _email_details(booking: Booking, package_name: str) -> BookingEmailDetails:
    return BookingEmailDetails(
        customer_name=booking.customer_name or "Client",
        customer_email=booking.customer_email,
        amount=booking.amount_paid,
        currency=booking.currency,
        package_name=package_name,
        payment_type=booking.payment_type,
        locale=booking.locale,
        reference=booking_reference(booking),
        session_date=booking.session_date,
        receipt_url=booking.receipt_url,
    )


def _notify(booking: Booking, package_name: str, *, admin: bool) -> None:
    details = _email_details(booking, package_name)
    if booking.customer_email:
        ok, error = send_booking_confirmation(details)
        if not ok:
            logger.warning("Confirmation email for booking %s not sent: %s", booking.id, error)
    if admin:
        ok, error = send_admin_booking_notification(details)
        if not ok:
            logger.warning("Admin notification for booking %s not sent: %s", booking.id, error)


def _attach_receipt(gateway: PaymentGateway, booking: Booking, payment_reference: str | None) -> None:
    if not payment_reference:
        return
    try:
        booking.receipt_url = gateway.fetch_receipt_url(payment_reference)
        db.session.commit()
    except GatewayError as exc:
        logger.warning("Receipt lookup for booking %s failed: %s", booking.id, exc.message)
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Could not store receipt URL for booking %s", booking.id)


def reconcile_completed_session(gateway: PaymentGateway, raw_body: bytes, signature: str | None):
    """Turn a verified completion event into exactly one paid booking.

    Returns ``(booking, created)``. ``booking`` is None when the event is
    ignored or the row could not be written; persistence failures are logged
    and swallowed so the provider does not keep retrying. Raises
    ``GatewayError`` when the signature does not verify.
    """
    event = gateway.verify_and_parse_event(raw_body, signature)
    event_type = event.get("type")
    if event_type not in (COMPLETED, ASYNC_SUCCEEDED):
        logger.info("Ignoring webhook event %s (%s)", event.get("id"), event_type)
        return None, False

    session = (event.get("data") or {}).get("object") or {}
    session_id = session.get("id")
    if not session_id:
        logger.error("Webhook event %s has no checkout session id", event.get("id"))
        return None, False

    if event_type == COMPLETED and session.get("payment_status") not in SETTLED_PAYMENT_STATUSES:
        # delayed methods settle later through async_payment_succeeded
        logger.info("Session %s completed with payment_status=%s; waiting", session_id, session.get("payment_status"))
        return None, False

    existing = Booking.query.filter_by(stripe_session_id=session_id).first()
    if existing is not None:
        logger.info("Session %s already reconciled as booking %s", session_id, existing.id)
        return existing, False

    meta = BookingMetadata.from_metadata(session.get("metadata"))
    package = db.session.get(Package, meta.package_id) if meta.package_id else None
    if meta.package_id and package is None:
        logger.warning("Session %s references unknown package %s", session_id, meta.package_id)

    customer = session.get("customer_details") or {}
    booking = Booking(
        package_id=package.id if package else None,
        stripe_session_id=session_id,
        customer_email=customer.get("email") or session.get("customer_email"),
        customer_name=customer.get("name"),
        amount_paid=from_minor_units(session.get("amount_total")),
        currency=(session.get("currency") or "gbp").upper(),
        payment_type=meta.payment_type,
        status=STATUS_PAID,
        payment_method=METHOD_STRIPE,
        locale=meta.locale,
        session_date=meta.session_date,
        terms_accepted=meta.terms_accepted,
        terms_accepted_at=meta.terms_accepted_at,
        terms_version=meta.terms_version,
        client_ip=meta.client_ip,
        client_user_agent=meta.client_user_agent,
    )
    try:
        db.session.add(booking)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        # TODO: push these into a dead-letter table so a job can replay them
        logger.exception("Error saving booking for session %s", session_id)
        return None, False

    logger.info("Payment succeeded: session %s -> booking %s", session_id, booking.id)

    _attach_receipt(gateway, booking, session.get("payment_intent"))

    if meta.package_name:
        package_name = meta.package_name
    elif package is not None:
        package_name = package.name
    else:
        package_name = FALLBACK_PACKAGE_NAME
    _notify(booking, package_name, admin=True)

    return booking, True


def confirm_booking_payment(booking_id: str) -> Booking:
    """Admin confirmation of a bank transfer: the only pending -> paid path."""
    booking = db.session.get(Booking, booking_id)
    if booking is None:
        raise NotFoundError("Booking not found")
    if booking.status == STATUS_PAID:
        raise ConflictError("Booking is already paid")

    if not booking.amount_paid:
        if booking.package is None:
            raise ValidationError("Cannot compute the amount: the booking has no package")
        booking.amount_paid = compute_amount(booking.package, booking.payment_type, booking.locale).amount

    booking.status = STATUS_PAID
    db.session.commit()
    logger.info("Booking %s confirmed as paid (%s)", booking.id, booking.amount_paid)

    package_name = booking.package.name if booking.package else FALLBACK_PACKAGE_NAME
    _notify(booking, package_name, admin=False)
    return booking
