import json
from decimal import Decimal

import pytest

from app import create_app
from config import Config
from models import db
from models.package import Package
from security.tokens import issue_token
from services.gateway import CheckoutSession, PaymentGateway
from utils.errors import GatewayError

ADMIN_EMAIL = "admin@studio.test"
VALID_SIGNATURE = "t=1,v1=valid"


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    JWT_SECRET = "test-jwt-secret"
    GOOGLE_CLIENT_ID = "studio-web.apps.googleusercontent.com"
    BCRYPT_ROUNDS = 4
    ALLOWED_ADMINS = [ADMIN_EMAIL]
    STRIPE_SECRET_KEY = None
    STRIPE_WEBHOOK_SECRET = "whsec_test"
    FRONTEND_URL = "https://studio.test"
    SMTP_HOST = "smtp.studio.test"
    SMTP_FROM_EMAIL = "hello@studio.test"
    ADMIN_EMAIL = "owner@studio.test"


class FakeGateway(PaymentGateway):
    """Records every call; only VALID_SIGNATURE passes verification."""

    def __init__(self):
        self.sessions = []
        self.receipt_lookups = []
        self.receipt_url = "https://pay.stripe.test/receipts/rcpt_1"
        self.receipt_error = None

    def create_checkout_session(self, **kwargs):
        self.sessions.append(kwargs)
        session_id = f"cs_test_{len(self.sessions):08d}"
        return CheckoutSession(session_id=session_id, url=f"https://checkout.stripe.test/{session_id}")

    def verify_and_parse_event(self, raw_body, signature_header):
        if signature_header != VALID_SIGNATURE:
            raise GatewayError("signature mismatch")
        return json.loads(raw_body)

    def fetch_receipt_url(self, payment_reference):
        self.receipt_lookups.append(payment_reference)
        if self.receipt_error:
            raise self.receipt_error
        return self.receipt_url


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def app(gateway):
    app = create_app(TestConfig, gateway=gateway)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def admin_headers(app):
    return {"Authorization": f"Bearer {issue_token(1, ADMIN_EMAIL)}"}


@pytest.fixture()
def outbox(monkeypatch):
    sent = []

    def fake_send_email(to_email, subject, body, html=None, reply_to=None, from_name=None):
        sent.append({"to": to_email, "subject": subject, "body": body, "html": html, "reply_to": reply_to})
        return True, None

    monkeypatch.setattr("services.notifications.send_email", fake_send_email)
    return sent


@pytest.fixture()
def make_package(app):
    def _make(name="Family Session (Silver)", total="300.00", deposit="50.00", active=True, name_pt=None):
        pkg = Package(
            name=name,
            name_pt=name_pt,
            total_price=Decimal(total),
            deposit_price=Decimal(deposit),
            active=active,
        )
        db.session.add(pkg)
        db.session.commit()
        return pkg
    return _make


def completed_event(session_id, metadata, *, amount_total=5000, payment_status="paid",
                    event_type="checkout.session.completed", email="jane@example.com", name="Jane Doe"):
    return {
        "id": f"evt_{session_id}",
        "type": event_type,
        "data": {
            "object": {
                "id": session_id,
                "object": "checkout.session",
                "amount_total": amount_total,
                "currency": "gbp",
                "payment_status": payment_status,
                "payment_intent": f"pi_{session_id}",
                "customer_details": {"email": email, "name": name},
                "metadata": metadata,
            }
        },
    }


@pytest.fixture()
def smtp_server(monkeypatch):
    """Replaces smtplib.SMTP so the real send_email runs without a network."""
    delivered = []

    class FakeSMTP:
        def __init__(self, host, port, timeout=None):
            self.host = host

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

        def starttls(self):
            pass

        def login(self, username, password):
            pass

        def send_message(self, msg):
            delivered.append(msg)

    monkeypatch.setattr("utils.emailer.smtplib.SMTP", FakeSMTP)
    return delivered
