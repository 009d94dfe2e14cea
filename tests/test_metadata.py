from datetime import datetime

from services.metadata import LEGACY_VERSION, SCHEMA_VERSION, BookingMetadata, parse_datetime


def test_envelope_values_are_strings_and_versioned():
    meta = BookingMetadata(
        package_id="pkg-1",
        package_name="Silver",
        payment_type="DEPOSIT",
        locale="pt",
        session_date=datetime(2026, 5, 4, 10, 30),
        terms_accepted=True,
        terms_version="v1-feb-2026",
    ).to_metadata()

    assert meta["v"] == SCHEMA_VERSION
    assert meta["termsAccepted"] == "true"
    assert meta["sessionDate"] == "2026-05-04T10:30:00"
    assert meta["clientIp"] == "unknown"
    assert all(isinstance(v, str) for v in meta.values())


def test_long_values_are_truncated():
    meta = BookingMetadata(package_id="p", payment_type="FULL", client_user_agent="x" * 900).to_metadata()
    assert len(meta["userAgent"]) == 500


def test_parse_written_envelope():
    written = BookingMetadata(
        package_id="pkg-1",
        payment_type="BALANCE",
        locale="pt",
        session_date=datetime(2026, 5, 4, 10, 30),
        client_ip="203.0.113.9",
    ).to_metadata()

    parsed = BookingMetadata.from_metadata(written)
    assert parsed.package_id == "pkg-1"
    assert parsed.payment_type == "BALANCE"
    assert parsed.locale == "pt"
    assert parsed.session_date == datetime(2026, 5, 4, 10, 30)
    assert parsed.client_ip == "203.0.113.9"
    assert parsed.client_user_agent is None


def test_legacy_metadata_without_payment_type():
    parsed = BookingMetadata.from_metadata({"packageId": "pkg-1"})
    assert parsed.version == LEGACY_VERSION
    assert parsed.payment_type == "UNKNOWN"
    assert parsed.locale == "en"
    assert parsed.terms_accepted is False


def test_garbage_session_date_is_dropped():
    parsed = BookingMetadata.from_metadata({"paymentType": "FULL", "sessionDate": "next tuesday"})
    assert parsed.session_date is None


def test_parse_datetime_normalizes_to_naive_utc():
    assert parse_datetime("2026-05-04T10:30:00Z") == datetime(2026, 5, 4, 10, 30)
    assert parse_datetime("2026-05-04T11:30:00+01:00") == datetime(2026, 5, 4, 10, 30)
    assert parse_datetime("") is None
