from functools import wraps
from flask import current_app, g, request

from security.tokens import decode_token
from utils.errors import AuthError, ForbiddenError


def allowed_admins() -> set:
    return {e.strip().lower() for e in current_app.config.get("ALLOWED_ADMINS", []) if e.strip()}


def is_allowed_admin(email: str) -> bool:
    return bool(email) and email.strip().lower() in allowed_admins()


def _bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme != "Bearer":
        raise AuthError("Unauthorized: No token provided or malformed header.")
    token = token.strip()
    if not token:
        raise AuthError("Unauthorized: No token provided.")
    return token


def require_admin(fn):
    """
    Usage: @require_admin
    401 for a missing/invalid/expired bearer token, 403 for a valid token whose
    email is not in ALLOWED_ADMINS.
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        claims = decode_token(_bearer_token())
        email = claims["email"]
        if not is_allowed_admin(email):
            current_app.logger.warning("Rejected admin request from %s", email)
            raise ForbiddenError("Access denied: not an admin")

        g.admin_email = email.strip().lower()
        return fn(*args, **kwargs)
    return wrapper
