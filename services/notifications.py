"""Customer and admin emails for bookings and the contact form."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from html import escape

from flask import current_app

from utils.emailer import send_email

_CURRENCY_SYMBOLS = {"GBP": "£", "EUR": "€", "USD": "$", "BRL": "R$"}

_PAYMENT_TYPE_LABELS = {
    "DEPOSIT": {"en": "Booking Fee", "pt": "Taxa de Reserva"},
    "FULL": {"en": "Full Payment", "pt": "Pagamento Total"},
    "BALANCE": {"en": "Remaining Balance", "pt": "Saldo Restante"},
}

_MONTHS_PT = (
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
)


@dataclass
class BookingEmailDetails:
    customer_name: str
    customer_email: str
    amount: Decimal
    currency: str
    package_name: str
    payment_type: str
    locale: str
    reference: str
    session_date: datetime | None = None
    receipt_url: str | None = None


def format_amount(amount, currency: str = "GBP") -> str:
    code = (currency or "GBP").upper()
    value = Decimal(str(amount or 0)).quantize(Decimal("0.01"))
    symbol = _CURRENCY_SYMBOLS.get(code)
    if symbol:
        return f"{symbol}{value:,}"
    return f"{value:,} {code}"


def payment_type_label(payment_type: str, locale: str) -> str:
    return _PAYMENT_TYPE_LABELS.get(payment_type, {}).get(locale, payment_type)


def format_session_date(value: datetime | None, locale: str) -> str:
    if not value:
        return ""
    if locale == "pt":
        return f"{value.day} de {_MONTHS_PT[value.month - 1]} de {value.year}, {value:%H:%M}"
    return f"{value:%A} {value.day} {value:%B %Y}, {value:%H:%M}"


def one_line(text) -> str:
    """Collapse whitespace runs (CR/LF included) so the text is safe in a header."""
    return " ".join(str(text or "").split())


def _business_name() -> str:
    return current_app.config.get("BUSINESS_NAME", "Photography")


def _confirmation_lines(details: BookingEmailDetails, pt: bool) -> list[tuple[str, str]]:
    locale = "pt" if pt else "en"
    rows = [("Pacote" if pt else "Package", details.package_name)]
    if details.session_date:
        rows.append(("Data da Sessão" if pt else "Session Date", format_session_date(details.session_date, locale)))
    rows.append(("Valor Pago" if pt else "Amount Paid", format_amount(details.amount, details.currency)))
    rows.append(("Tipo de Pagamento" if pt else "Payment Type", payment_type_label(details.payment_type, locale)))
    rows.append(("Referência" if pt else "Reference", details.reference))
    return rows


def send_booking_confirmation(details: BookingEmailDetails):
    pt = details.locale == "pt"
    business = _business_name()
    subject = f"Confirmação de Pagamento - {business}" if pt else f"Payment Confirmation - {business}"

    customer = one_line(details.customer_name)
    greeting = f"Olá, {customer}!" if pt else f"Hi {customer}!"
    intro = (
        "Recebemos seu pagamento com sucesso. Muito obrigada!" if pt
        else "We have successfully received your payment. Thank you so much!"
    )
    outro = (
        "Em breve entrarei em contato para confirmarmos os próximos passos da sua sessão." if pt
        else "I will be in touch shortly to confirm the next steps for your session."
    )
    policy = ""
    if details.payment_type in ("DEPOSIT", "FULL"):
        policy = (
            "Importante: A Taxa de Reserva não é reembolsável e garante a exclusividade da sua data." if pt
            else "Important: The Booking Fee is non-refundable and secures your session date exclusively."
        )
    receipt = ""
    if details.receipt_url:
        receipt = ("Recibo: " if pt else "Receipt: ") + details.receipt_url

    rows = _confirmation_lines(details, pt)

    text_parts = [greeting, "", intro, ""]
    text_parts += [f"{label}: {value}" for label, value in rows]
    if receipt:
        text_parts.append(receipt)
    text_parts += ["", outro]
    if policy:
        text_parts += ["", policy]
    text_parts += ["", business]
    body = "\n".join(text_parts)

    html_rows = "".join(f"<p><strong>{escape(label)}:</strong> {escape(value)}</p>" for label, value in rows)
    if details.receipt_url:
        link_text = "Ver recibo" if pt else "View receipt"
        html_rows += f'<p><a href="{escape(details.receipt_url)}">{link_text}</a></p>'
    html = (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        f"<h2>{escape(greeting)}</h2><p>{escape(intro)}</p>"
        f'<div style="background-color: #f9f9f9; padding: 15px; border-radius: 5px;">{html_rows}</div>'
        f"<p>{escape(outro)}</p>"
        + (f'<p style="color: #666; font-size: 12px;">{escape(policy)}</p>' if policy else "")
        + f"<p>{escape(business)}</p></div>"
    )

    return send_email(details.customer_email, subject, body, html=html, from_name=business)


def send_admin_booking_notification(details: BookingEmailDetails):
    admin_email = current_app.config.get("ADMIN_EMAIL") or current_app.config.get("SMTP_FROM_EMAIL")
    if not admin_email:
        return False, "Admin email not configured"

    amount = format_amount(details.amount, details.currency)
    customer = one_line(details.customer_name)
    subject = f"New booking: {customer} ({amount})"
    lines = [
        f"Client: {customer} ({details.customer_email})",
        f"Package: {details.package_name}",
    ]
    if details.session_date:
        lines.append(f"Session date: {format_session_date(details.session_date, 'en')}")
    lines += [
        f"Amount: {amount}",
        f"Type: {details.payment_type}",
        f"Client language: {details.locale.upper()}",
        f"Reference: {details.reference}",
    ]
    if details.receipt_url:
        lines.append(f"Receipt: {details.receipt_url}")

    return send_email(admin_email, subject, "\n".join(lines), from_name=_business_name())


def send_contact_email(name: str, email: str, message: str):
    admin_email = current_app.config.get("ADMIN_EMAIL") or current_app.config.get("SMTP_FROM_EMAIL")
    if not admin_email:
        return False, "Admin email not configured"

    name = one_line(name)
    subject = f"New contact from {name}"
    body = f"Name: {name}\nEmail: {email}\n\nMessage:\n{message}"
    html = (
        "<h2>New contact received</h2>"
        f"<p><strong>Name:</strong> {escape(name)}</p>"
        f"<p><strong>Email:</strong> {escape(email)}</p>"
        f"<p><strong>Message:</strong></p><p>{escape(message).replace(chr(10), '<br>')}</p>"
    )
    return send_email(admin_email, subject, body, html=html, reply_to=email, from_name="Contact")
