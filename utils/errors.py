class AppError(Exception):
    """Domain error carrying the HTTP status it maps to.

    The message is shown to the client verbatim, so it must never contain
    secrets or internal detail.
    """

    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    status_code = 400


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class GatewayError(AppError):
    """Payment provider failure. Clients only ever see PUBLIC_MESSAGE."""

    status_code = 400
    PUBLIC_MESSAGE = "Payment provider error"


class PersistenceError(AppError):
    status_code = 500


class AuthError(AppError):
    status_code = 401


class ForbiddenError(AppError):
    status_code = 403


class ConfigurationError(AppError):
    """A required setting is missing; the client gets a 500."""

    status_code = 500
