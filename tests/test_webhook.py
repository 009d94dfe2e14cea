import hashlib
import hmac
import json
import time

import pytest
from sqlalchemy.exc import OperationalError

from models import db
from models.audit_log import AuditLog
from models.booking import Booking
from services.gateway import StripePaymentGateway
from services.metadata import BookingMetadata
from utils.errors import GatewayError

from conftest import VALID_SIGNATURE, completed_event


def _post(client, event, signature=VALID_SIGNATURE):
    return client.post(
        "/webhooks/stripe",
        data=json.dumps(event),
        headers={"Stripe-Signature": signature, "Content-Type": "application/json"},
    )


def _metadata(pkg, payment_type="DEPOSIT", **extra):
    meta = BookingMetadata(package_id=pkg.id, package_name=pkg.name, payment_type=payment_type, **extra)
    return meta.to_metadata()


def test_completed_session_creates_paid_booking(client, gateway, outbox, make_package):
    pkg = make_package(total="150.00", deposit="50.00")

    resp = _post(client, completed_event("cs_test_1", _metadata(pkg), amount_total=5000))
    assert resp.status_code == 200
    assert resp.get_json() == {"received": True}

    booking = Booking.query.one()
    assert booking.status == "paid"
    assert booking.payment_method == "STRIPE"
    assert str(booking.amount_paid) == "50.00"
    assert booking.currency == "GBP"
    assert booking.package_id == pkg.id
    assert booking.customer_email == "jane@example.com"
    assert booking.receipt_url == gateway.receipt_url
    assert gateway.receipt_lookups == ["pi_cs_test_1"]

    assert [m["to"] for m in outbox] == ["jane@example.com", "owner@studio.test"]
    assert "test_1" in outbox[0]["body"]
    assert AuditLog.query.filter_by(action="PAYMENT_PAID").count() == 1


def test_replayed_event_is_idempotent(client, outbox, make_package):
    pkg = make_package()
    event = completed_event("cs_test_dup", _metadata(pkg))

    assert _post(client, event).status_code == 200
    assert _post(client, event).status_code == 200

    assert Booking.query.filter_by(stripe_session_id="cs_test_dup").count() == 1
    assert len(outbox) == 2


def test_bad_signature_rejected(client, outbox, make_package):
    pkg = make_package()
    resp = _post(client, completed_event("cs_test_bad", _metadata(pkg)), signature="t=1,v1=forged")
    assert resp.status_code == 400
    assert Booking.query.count() == 0
    assert outbox == []


def test_missing_signature_header(client):
    resp = client.post("/webhooks/stripe", data="{}")
    assert resp.status_code == 400


def test_other_event_types_are_acknowledged(client):
    resp = _post(client, {"id": "evt_1", "type": "payment_intent.created", "data": {"object": {}}})
    assert resp.status_code == 200
    assert Booking.query.count() == 0


def test_unpaid_completion_waits_for_async_success(client, outbox, make_package):
    pkg = make_package()
    meta = _metadata(pkg, payment_type="FULL")

    _post(client, completed_event("cs_test_klarna", meta, payment_status="unpaid"))
    assert Booking.query.count() == 0

    _post(client, completed_event(
        "cs_test_klarna", meta, amount_total=30000,
        payment_status="paid", event_type="checkout.session.async_payment_succeeded",
    ))
    booking = Booking.query.one()
    assert booking.payment_type == "FULL"
    assert str(booking.amount_paid) == "300.00"


def test_unknown_package_still_records_payment(client, outbox):
    meta = {"v": "2", "packageId": "deleted-package", "paymentType": "DEPOSIT", "locale": "en"}
    assert _post(client, completed_event("cs_test_orphan", meta)).status_code == 200

    booking = Booking.query.one()
    assert booking.package_id is None
    assert "Custom Package" in outbox[1]["body"]


def test_legacy_metadata_without_payment_type(client, outbox, make_package):
    pkg = make_package()
    _post(client, completed_event("cs_test_legacy", {"packageId": pkg.id}))
    booking = Booking.query.one()
    assert booking.payment_type == "UNKNOWN"
    assert booking.package_id == pkg.id


def test_receipt_failure_does_not_block_booking(client, gateway, outbox, make_package):
    gateway.receipt_error = GatewayError("stripe down")
    pkg = make_package()

    assert _post(client, completed_event("cs_test_norcpt", _metadata(pkg))).status_code == 200
    booking = Booking.query.one()
    assert booking.receipt_url is None
    assert len(outbox) == 2


def test_persistence_failure_is_acknowledged(client, outbox, make_package, monkeypatch):
    pkg = make_package()

    def failing_commit():
        raise OperationalError("INSERT INTO bookings", {}, Exception("database is locked"))

    monkeypatch.setattr(db.session(), "commit", failing_commit)
    resp = _post(client, completed_event("cs_test_dbdown", _metadata(pkg)))
    monkeypatch.undo()

    assert resp.status_code == 200
    assert Booking.query.count() == 0
    assert outbox == []


def _stripe_signature(payload: str, secret: str) -> str:
    timestamp = int(time.time())
    digest = hmac.new(secret.encode("utf-8"), f"{timestamp}.{payload}".encode("utf-8"), hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


def test_stripe_gateway_verifies_real_signatures():
    gateway = StripePaymentGateway(secret_key=None, webhook_secret="whsec_test")
    payload = json.dumps({"id": "evt_1", "object": "event", "type": "checkout.session.completed",
                          "data": {"object": {"id": "cs_1"}}})

    event = gateway.verify_and_parse_event(payload.encode("utf-8"), _stripe_signature(payload, "whsec_test"))
    assert event["data"]["object"]["id"] == "cs_1"

    with pytest.raises(GatewayError):
        gateway.verify_and_parse_event(payload.encode("utf-8"), _stripe_signature(payload, "whsec_other"))


def test_stripe_gateway_requires_secret_key():
    gateway = StripePaymentGateway(secret_key=None, webhook_secret=None)
    with pytest.raises(GatewayError):
        gateway.create_checkout_session(
            amount=5000, currency="gbp", product_name="p", description="d", payment_type="FULL",
            metadata={}, success_url="https://s", cancel_url="https://c",
        )


def test_line_breaks_in_customer_name_do_not_break_emails(client, smtp_server, make_package):
    pkg = make_package(total="150.00", deposit="50.00")
    event = completed_event("cs_test_crlf", _metadata(pkg), name="Jane\r\nDoe")

    assert _post(client, event).status_code == 200
    assert Booking.query.count() == 1

    subjects = [m["Subject"] for m in smtp_server]
    assert "New booking: Jane Doe (£50.00)" in subjects
    assert len(smtp_server) == 2


def test_concurrent_delivery_loses_the_unique_race_quietly(client, outbox, make_package, monkeypatch):
    pkg = make_package()

    class LookupThenRivalInsert:
        # the lookup misses, then a parallel delivery commits the same session first
        def filter_by(self, **criteria):
            db.session.add(Booking(
                payment_type="DEPOSIT", status="paid", payment_method="STRIPE",
                amount_paid=50, stripe_session_id=criteria["stripe_session_id"],
            ))
            db.session.commit()
            return self

        def first(self):
            return None

    monkeypatch.setattr(Booking, "query", LookupThenRivalInsert())
    resp = _post(client, completed_event("cs_test_race", _metadata(pkg)))
    monkeypatch.undo()

    assert resp.status_code == 200
    assert Booking.query.filter_by(stripe_session_id="cs_test_race").count() == 1
    assert outbox == []
    assert AuditLog.query.filter_by(action="PAYMENT_PAID").count() == 0
