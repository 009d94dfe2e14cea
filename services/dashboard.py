"""Read-only statistics for the admin dashboard, recomputed on every call."""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import and_, func, or_, select

from models import db
from models.booking import (
    METHOD_STRIPE,
    METHOD_TRANSFER,
    STATUS_PAID,
    STATUS_PENDING,
    Booking,
)
from models.package import Package

HISTORY_MONTHS = 6
TOP_LIMIT = 5
STUCK_AFTER_DAYS = 90
# a BALANCE payment belongs to a sale already counted by its DEPOSIT
INITIAL_SALE_TYPES = ("DEPOSIT", "FULL")


def _number(value) -> float:
    return float(Decimal(str(value or 0)).quantize(Decimal("0.01")))


def month_start(value: datetime) -> datetime:
    return datetime(value.year, value.month, 1)


def shift_months(start: datetime, months: int) -> datetime:
    """Move a day-1 anchor by whole months (never overflows short months)."""
    index = start.year * 12 + (start.month - 1) + months
    return datetime(index // 12, index % 12 + 1, 1)


def trailing_month_starts(now: datetime, count: int = HISTORY_MONTHS) -> list[datetime]:
    current = month_start(now)
    return [shift_months(current, -offset) for offset in range(count - 1, -1, -1)]


def _paid_revenue(*criteria) -> float:
    total = (
        db.session.query(func.sum(Booking.amount_paid))
        .filter(Booking.status == STATUS_PAID, *criteria)
        .scalar()
    )
    return _number(total)


def _count(*criteria) -> int:
    return Booking.query.filter(*criteria).count()


def _sales_history(now: datetime) -> list[dict]:
    history = []
    for start in trailing_month_starts(now):
        end = shift_months(start, 1)
        history.append({
            "month": start.strftime("%b"),
            "period": start.strftime("%Y-%m"),
            "revenue": _paid_revenue(Booking.created_at >= start, Booking.created_at < end),
        })
    return history


def _top_packages() -> list[dict]:
    booking_count = func.count(Booking.id)
    rows = (
        db.session.query(Booking.package_id, booking_count)
        .filter(Booking.status == STATUS_PAID, Booking.payment_type.in_(INITIAL_SALE_TYPES))
        .group_by(Booking.package_id)
        .order_by(booking_count.desc())
        .limit(TOP_LIMIT)
        .all()
    )
    ids = [package_id for package_id, _ in rows if package_id]
    names = {p.id: p.name for p in Package.query.filter(Package.id.in_(ids)).all()} if ids else {}
    return [
        {"id": package_id, "name": names.get(package_id, "Custom Package"), "count": count}
        for package_id, count in rows
    ]


def _top_clients() -> list[dict]:
    total = func.sum(Booking.amount_paid)
    rows = (
        db.session.query(Booking.customer_email, Booking.customer_name, total)
        .filter(Booking.status == STATUS_PAID)
        .group_by(Booking.customer_email, Booking.customer_name)
        .order_by(total.desc())
        .limit(TOP_LIMIT)
        .all()
    )
    return [
        {"name": name or "Unknown", "email": email, "total": _number(amount)}
        for email, name, amount in rows
    ]


def _stuck_packages(now: datetime) -> list[dict]:
    cutoff = now - timedelta(days=STUCK_AFTER_DAYS)
    recently_booked = (
        select(Booking.package_id)
        .where(Booking.created_at >= cutoff, Booking.package_id.isnot(None))
        .distinct()
    )
    rows = (
        Package.query
        .filter(Package.active.is_(True), Package.id.notin_(recently_booked))
        .order_by(Package.total_price.asc())
        .limit(TOP_LIMIT)
        .all()
    )
    return [{"id": p.id, "name": p.name, "price": _number(p.total_price)} for p in rows]


def build_stats(now: datetime | None = None) -> dict:
    now = now or datetime.utcnow()

    return {
        "revenue": {
            "total": _paid_revenue(),
            "month": _paid_revenue(Booking.created_at >= month_start(now)),
        },
        "counts": {
            "total": _count(),
            "pending": _count(Booking.status == STATUS_PENDING),
            "paid": _count(Booking.status == STATUS_PAID),
        },
        "methods": {
            # rows older than the payment_method column: a session id means the gateway created them
            "stripe": _count(or_(
                Booking.payment_method == METHOD_STRIPE,
                and_(Booking.payment_method.is_(None), Booking.stripe_session_id.isnot(None)),
            )),
            "transfer": _count(Booking.payment_method == METHOD_TRANSFER),
            # no method and no session id: cannot tell, reported separately
            "unknown": _count(Booking.payment_method.is_(None), Booking.stripe_session_id.is_(None)),
        },
        "types": {
            "deposit": _count(Booking.payment_type == "DEPOSIT"),
            "full": _count(Booking.payment_type == "FULL"),
            "balance": _count(Booking.payment_type == "BALANCE"),
        },
        "sessions": {
            "scheduled": _count(Booking.status == STATUS_PAID, Booking.session_date > now),
            "completed": _count(Booking.status == STATUS_PAID, Booking.session_date <= now),
            "unscheduled": _count(Booking.status == STATUS_PAID, Booking.session_date.is_(None)),
        },
        "salesHistory": _sales_history(now),
        "topPackages": _top_packages(),
        "topClients": _top_clients(),
        "stuckPackages": _stuck_packages(now),
    }
