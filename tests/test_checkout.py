from decimal import Decimal

from models import db
from models.booking import Booking
from services.gateway import payment_methods_for
from utils.errors import GatewayError


def test_create_session_for_deposit(client, gateway, make_package):
    pkg = make_package(total="150.00", deposit="50.00")

    resp = client.post("/checkout/session", json={
        "packageId": pkg.id,
        "paymentType": "DEPOSIT",
        "locale": "pt",
        "customerEmail": "jane@example.com",
        "sessionDate": "2026-11-20T10:00:00Z",
        "termsAccepted": True,
    }, headers={"Idempotency-Key": "abc-123", "X-Forwarded-For": "203.0.113.9, 10.0.0.1"})

    assert resp.status_code == 200
    assert resp.get_json()["url"].startswith("https://checkout.stripe.test/")

    sent = gateway.sessions[0]
    assert sent["amount"] == 5000
    assert sent["currency"] == "gbp"
    assert sent["idempotency_key"] == "abc-123"
    assert sent["success_url"] == "https://studio.test/pt/checkout/success?session_id={CHECKOUT_SESSION_ID}"
    assert sent["cancel_url"] == "https://studio.test/pt/checkout/cancel"
    assert sent["metadata"]["packageId"] == pkg.id
    assert sent["metadata"]["paymentType"] == "DEPOSIT"
    assert sent["metadata"]["termsAccepted"] == "true"
    assert sent["metadata"]["termsVersion"] == "v1-feb-2026"
    assert sent["metadata"]["clientIp"] == "203.0.113.9"

    # nothing is written until the webhook arrives
    assert Booking.query.count() == 0


def test_balance_session_amount(client, gateway, make_package):
    pkg = make_package(total="300.00", deposit="50.00")
    resp = client.post("/checkout/session", json={"packageId": pkg.id, "paymentType": "BALANCE"})
    assert resp.status_code == 200
    assert gateway.sessions[0]["amount"] == 25000
    assert "remaining balance" in gateway.sessions[0]["description"]


def test_invalid_payment_type(client, make_package):
    pkg = make_package()
    resp = client.post("/checkout/session", json={"packageId": pkg.id, "paymentType": "LATER"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Payment type must be DEPOSIT, FULL, or BALANCE"


def test_missing_package_id(client):
    resp = client.post("/checkout/session", json={"paymentType": "FULL"})
    assert resp.status_code == 400


def test_unknown_and_inactive_packages_are_not_found(client, make_package):
    resp = client.post("/checkout/session", json={"packageId": "nope", "paymentType": "FULL"})
    assert resp.status_code == 404

    pkg = make_package(active=False)
    resp = client.post("/checkout/session", json={"packageId": pkg.id, "paymentType": "FULL"})
    assert resp.status_code == 404


def test_zero_balance_rejected(client, gateway, make_package):
    pkg = make_package(total="50.00", deposit="50.00")
    resp = client.post("/checkout/session", json={"packageId": pkg.id, "paymentType": "BALANCE"})
    assert resp.status_code == 400
    assert gateway.sessions == []


def test_gateway_failure_is_generic(client, gateway, make_package, monkeypatch):
    pkg = make_package()

    def boom(**kwargs):
        raise GatewayError("Stripe session creation failed: No such api key sk_live_xxx")

    monkeypatch.setattr(gateway, "create_checkout_session", boom)
    resp = client.post("/checkout/session", json={"packageId": pkg.id, "paymentType": "FULL"})
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Payment provider error"}


def test_deposit_is_card_only():
    assert payment_methods_for("DEPOSIT") == ["card"]
    assert "klarna" in payment_methods_for("FULL")


def test_manual_booking_is_pending_transfer(client, make_package):
    pkg = make_package()
    resp = client.post("/checkout/manual", json={
        "packageId": pkg.id,
        "paymentType": "DEPOSIT",
        "customerName": "Jane Doe",
        "customerEmail": "jane@example.com",
        "termsAccepted": True,
    })
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["success"] is True

    booking = db.session.get(Booking, body["bookingId"])
    assert body["reference"] == booking.reference
    assert booking.status == "pending"
    assert booking.payment_method == "TRANSFER"
    assert booking.amount_paid == Decimal("0")
    assert booking.terms_version == "v1-feb-2026"


def test_manual_booking_requires_customer(client, make_package):
    pkg = make_package()
    resp = client.post("/checkout/manual", json={"packageId": pkg.id, "paymentType": "FULL"})
    assert resp.status_code == 400
    assert Booking.query.count() == 0


def test_manual_booking_rejects_bad_email(client, make_package):
    pkg = make_package()
    resp = client.post("/checkout/manual", json={
        "packageId": pkg.id,
        "paymentType": "FULL",
        "customerName": "Jane",
        "customerEmail": "not-an-email",
    })
    assert resp.status_code == 400


def test_manual_booking_storage_failure(client, make_package, monkeypatch):
    from sqlalchemy.exc import OperationalError

    pkg = make_package()

    def failing_commit():
        raise OperationalError("INSERT INTO bookings", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db.session(), "commit", failing_commit)
    resp = client.post("/checkout/manual", json={
        "packageId": pkg.id,
        "paymentType": "FULL",
        "customerName": "Jane",
        "customerEmail": "jane@example.com",
    })
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Could not save the booking. Please try again."}
