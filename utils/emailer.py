import smtplib
from email.message import EmailMessage
from email.utils import formataddr

from flask import current_app


def _build_message(from_addr: str, to_email: str, subject: str, body: str,
                   html: str = None, reply_to: str = None) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = from_addr
    msg["To"] = to_email
    msg["Subject"] = subject
    if reply_to:
        msg["Reply-To"] = reply_to
    msg.set_content(body)
    if html:
        msg.add_alternative(html, subtype="html")
    return msg


def send_email(to_email: str, subject: str, body: str, html: str = None,
               reply_to: str = None, from_name: str = None):
    host = current_app.config.get("SMTP_HOST")
    port = current_app.config.get("SMTP_PORT", 587)
    username = current_app.config.get("SMTP_USERNAME")
    password = current_app.config.get("SMTP_PASSWORD")
    from_email = current_app.config.get("SMTP_FROM_EMAIL") or username
    use_tls = current_app.config.get("SMTP_USE_TLS", True)

    if not host or not from_email:
        return False, "Email not configured"
    if not to_email:
        return False, "No recipient"

    try:
        # header values with CR/LF raise ValueError here
        msg = _build_message(
            formataddr((from_name, from_email)) if from_name else from_email,
            to_email, subject, body, html=html, reply_to=reply_to,
        )
    except ValueError as exc:
        current_app.logger.warning("Email to %s not built: %s", to_email, exc)
        return False, str(exc)

    try:
        # port 465 is implicit TLS, everything else upgrades with STARTTLS
        if port == 465:
            server = smtplib.SMTP_SSL(host, port, timeout=10)
        else:
            server = smtplib.SMTP(host, port, timeout=10)
        with server:
            if use_tls and port != 465:
                server.starttls()
            if username and password:
                server.login(username, password)
            server.send_message(msg)
        return True, None
    except (smtplib.SMTPException, OSError) as exc:
        current_app.logger.warning("Email to %s failed: %s", to_email, exc)
        return False, str(exc)
