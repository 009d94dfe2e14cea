from flask import current_app
from google.auth import exceptions as google_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from utils.errors import AuthError, ConfigurationError


def verify_google_credential(credential: str) -> dict:
    """Verify a Google Identity Services ID token; returns its claims.

    The token must be signed by Google and issued for GOOGLE_CLIENT_ID.
    """
    client_id = current_app.config.get("GOOGLE_CLIENT_ID")
    if not client_id:
        raise ConfigurationError("Google sign-in is not configured")

    try:
        return id_token.verify_oauth2_token(credential, google_requests.Request(), client_id)
    except (ValueError, google_exceptions.GoogleAuthError) as exc:
        current_app.logger.info("Rejected Google credential: %s", exc)
        raise AuthError("Invalid Google token") from exc
