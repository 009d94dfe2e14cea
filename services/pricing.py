"""Amount calculation for the three payment types.

Everything here is pure: no database, no request context. Amounts are
``Decimal`` in major currency units; the gateway boundary uses integer minor
units, converted with :func:`to_minor_units` / :func:`from_minor_units`.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from models.booking import PAYMENT_TYPES
from utils.errors import ValidationError

SUPPORTED_LOCALES = ("en", "pt")

_CENT = Decimal("0.01")
_MINOR_PER_MAJOR = Decimal(100)

_DESCRIPTIONS = {
    "en": {
        "DEPOSIT": "Date reservation, non-refundable booking fee for {name}",
        "FULL": "Full payment for {name}",
        "BALANCE": "Payment of the remaining balance for {name}",
    },
    "pt": {
        "DEPOSIT": "Reserva de data, taxa de reserva não reembolsável para {name}",
        "FULL": "Pagamento total de {name}",
        "BALANCE": "Pagamento do saldo restante de {name}",
    },
}

_PRODUCT_NAMES = {
    "en": "Payment: {name}",
    "pt": "Pagamento: {name}",
}


@dataclass(frozen=True)
class Quote:
    amount: Decimal
    description: str
    product_name: str


def normalize_locale(locale: str | None) -> str:
    return locale if locale in SUPPORTED_LOCALES else "en"


def _money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP)


def amount_for(total_price, deposit_price, payment_type: str) -> Decimal:
    """Raw rule table, without the positivity check."""
    total = _money(total_price)
    deposit = _money(deposit_price)
    if payment_type == "DEPOSIT":
        return deposit
    if payment_type == "FULL":
        return total
    if payment_type == "BALANCE":
        return total - deposit
    raise ValidationError("Payment type must be DEPOSIT, FULL, or BALANCE")


def compute_amount(package, payment_type: str, locale: str = "en") -> Quote:
    if payment_type not in PAYMENT_TYPES:
        raise ValidationError("Payment type must be DEPOSIT, FULL, or BALANCE")

    amount = amount_for(package.total_price, package.deposit_price, payment_type)
    if amount <= 0:
        raise ValidationError("Invalid calculation. Price must be greater than 0.")

    locale = normalize_locale(locale)
    name = package.display_name(locale)
    return Quote(
        amount=amount,
        description=_DESCRIPTIONS[locale][payment_type].format(name=name),
        product_name=_PRODUCT_NAMES[locale].format(name=name),
    )


def to_minor_units(amount: Decimal) -> int:
    return int((_money(amount) * _MINOR_PER_MAJOR).to_integral_value(rounding=ROUND_HALF_UP))


def from_minor_units(amount: int | None) -> Decimal:
    if not amount:
        return Decimal("0.00")
    return (Decimal(int(amount)) / _MINOR_PER_MAJOR).quantize(_CENT)
