"""Booking context carried through the payment provider's metadata.

The checkout request and the completion webhook may be served by different
processes, so everything needed to rebuild the booking travels inside the
checkout session's metadata. Provider metadata is a flat ``str -> str`` map,
which is what :meth:`BookingMetadata.to_metadata` produces.

Schema versions:

* ``1`` (no ``v`` key): packageId, paymentType, locale, sessionDate,
  termsAccepted, termsAcceptedAt, termsVersion, clientIp, userAgent.
* ``2``: adds ``v`` and ``packageName``.

:meth:`BookingMetadata.from_metadata` applies the defaulting rules for absent
or malformed values once, so callers never coalesce fields themselves.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping

from models.booking import PAYMENT_TYPES, PAYMENT_TYPE_UNKNOWN
from services.pricing import normalize_locale

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "2"
LEGACY_VERSION = "1"

# provider limit on a single metadata value
_MAX_VALUE_LEN = 500
_PLACEHOLDERS = ("", "unknown")


def parse_datetime(value: str | None) -> datetime | None:
    """ISO 8601 -> naive UTC datetime; None for blanks and garbage."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _blank_to_none(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return None if text.lower() in _PLACEHOLDERS else text


@dataclass
class BookingMetadata:
    package_id: str | None
    payment_type: str
    locale: str = "en"
    package_name: str | None = None
    session_date: datetime | None = None
    terms_accepted: bool = False
    terms_accepted_at: datetime | None = None
    terms_version: str | None = None
    client_ip: str | None = None
    client_user_agent: str | None = None
    version: str = SCHEMA_VERSION

    def to_metadata(self) -> dict[str, str]:
        values = {
            "v": self.version,
            "packageId": self.package_id or "",
            "packageName": self.package_name or "",
            "paymentType": self.payment_type,
            "locale": self.locale,
            "sessionDate": self.session_date.isoformat() if self.session_date else "",
            "termsAccepted": "true" if self.terms_accepted else "false",
            "termsAcceptedAt": self.terms_accepted_at.isoformat() if self.terms_accepted_at else "",
            "termsVersion": self.terms_version or "",
            "clientIp": self.client_ip or "unknown",
            "userAgent": self.client_user_agent or "unknown",
        }
        return {key: value[:_MAX_VALUE_LEN] for key, value in values.items()}

    @classmethod
    def from_metadata(cls, metadata: Mapping[str, Any] | None) -> "BookingMetadata":
        meta = dict(metadata or {})
        version = _blank_to_none(meta.get("v")) or LEGACY_VERSION

        payment_type = (_blank_to_none(meta.get("paymentType")) or "").upper()
        if payment_type not in PAYMENT_TYPES:
            logger.warning("Metadata v%s has no usable paymentType (%r)", version, meta.get("paymentType"))
            payment_type = PAYMENT_TYPE_UNKNOWN

        raw_session_date = _blank_to_none(meta.get("sessionDate"))
        session_date = parse_datetime(raw_session_date)
        if raw_session_date and session_date is None:
            logger.warning("Ignoring unparseable sessionDate %r in metadata", raw_session_date)

        user_agent = _blank_to_none(meta.get("userAgent"))

        return cls(
            package_id=_blank_to_none(meta.get("packageId")),
            payment_type=payment_type,
            locale=normalize_locale(_blank_to_none(meta.get("locale"))),
            package_name=_blank_to_none(meta.get("packageName")),
            session_date=session_date,
            terms_accepted=str(meta.get("termsAccepted") or "").strip().lower() == "true",
            terms_accepted_at=parse_datetime(_blank_to_none(meta.get("termsAcceptedAt"))),
            terms_version=_blank_to_none(meta.get("termsVersion")),
            client_ip=_blank_to_none(meta.get("clientIp")),
            client_user_agent=user_agent[:255] if user_agent else None,
            version=version,
        )
