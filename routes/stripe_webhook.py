from flask import Blueprint, current_app, request, jsonify

from services.checkout import reconcile_completed_session
from services.gateway import get_gateway
from utils.audit import log_event
from utils.errors import GatewayError

webhook_bp = Blueprint("webhook", __name__, url_prefix="/webhooks")


@webhook_bp.post("/stripe")
def stripe_webhook():
    sig_header = request.headers.get("Stripe-Signature")
    payload = request.get_data()

    if not sig_header:
        return jsonify(error="Missing Stripe signature"), 400

    try:
        booking, created = reconcile_completed_session(get_gateway(), payload, sig_header)
    except GatewayError as exc:
        current_app.logger.warning("Webhook rejected: %s", exc.message)
        return jsonify(error="Invalid webhook signature"), 400

    if created:
        log_event(
            "PAYMENT_PAID",
            entity="booking",
            entity_id=booking.id,
            metadata={"stripe_session_id": booking.stripe_session_id, "amount": str(booking.amount_paid)},
        )

    # Always acknowledge once the signature is valid so Stripe stops retrying
    return jsonify(received=True), 200
