# eyes/core/errors.py
# Domain errors raised by services and translated to HTTP responses by the
# exception handler in eyes/main.py
#
# Every user-facing failure carries a (title, message) pair -- the same pair the
# mobile app shows in its modal dialog. There is no retry policy: a failure is
# terminal to the attempt and the user retries manually.

from typing import Optional


class EyesError(Exception):
    """Base class for all EYES domain errors."""

    status_code = 400
    title = "Error"
    headers: Optional[dict] = None

    def __init__(self, message: str, title: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if title:
            self.title = title


class Unauthorized(EyesError):
    status_code = 401
    title = "Login Required"
    headers = {"WWW-Authenticate": "Bearer"}


class ValidationFailed(EyesError):
    status_code = 422


class FaceRejected(EyesError):
    """Detector output failed one of the face acceptance checks."""
    status_code = 422


class NotFound(EyesError):
    status_code = 404
    title = "Not Found"


class Forbidden(EyesError):
    status_code = 403
    title = "Not Allowed"


class IdentityProviderError(EyesError):
    """The identity provider rejected a sign-up / sign-in / reset call."""

    status_code = 400

    def __init__(self, message: str, title: Optional[str] = None, provider_status: int = 0):
        super().__init__(message, title)
        self.provider_status = provider_status


class PushDeliveryError(EyesError):
    status_code = 502
    title = "Push Error"


class StoreUnavailable(EyesError):
    status_code = 503
    title = "Database Unavailable"
