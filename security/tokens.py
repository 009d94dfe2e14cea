from datetime import datetime, timedelta, timezone

from flask import current_app
from jose import ExpiredSignatureError, JWTError, jwt

from utils.errors import AuthError, ConfigurationError


def _secret() -> str:
    secret = current_app.config.get("JWT_SECRET")
    if not secret:
        raise ConfigurationError("JWT_SECRET is not configured")
    return secret


def issue_token(user_id: int, email: str) -> str:
    hours = current_app.config.get("JWT_EXPIRES_HOURS", 24)
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "email": email,
        "iat": now,
        "exp": now + timedelta(hours=hours),
    }
    return jwt.encode(claims, _secret(), algorithm=current_app.config.get("JWT_ALGORITHM", "HS256"))


def decode_token(token: str) -> dict:
    """Returns the claims, or raises AuthError for bad/expired tokens."""
    try:
        claims = jwt.decode(
            token,
            _secret(),
            algorithms=[current_app.config.get("JWT_ALGORITHM", "HS256")],
        )
    except ExpiredSignatureError:
        raise AuthError("Unauthorized: Token expired.")
    except JWTError:
        raise AuthError("Unauthorized: Invalid token.")

    if not claims.get("email"):
        raise AuthError("Unauthorized: Invalid token.")
    return claims
