"""Error kinds raised by the session token manager.

Callers branch on the exception *class*, never on the message: an expired
or revoked session is usually dropped silently, while a
``JsonWebTokenError`` on a token we issued points at tampering.
"""

from datetime import datetime


class JsonWebTokenError(Exception):
    """Token is malformed, badly signed or fails a claim check."""

    def __init__(self, message: str, inner: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.inner = inner


class TokenExpiredError(JsonWebTokenError):
    """Token expired by its ``exp`` claim, or its registry entry is gone.

    ``expired_at`` is only known for signature-level expiry; it is ``None``
    when the session was revoked or its registry key timed out.
    """

    def __init__(self, message: str = "jwt expired", expired_at: datetime | None = None):
        super().__init__(message)
        self.expired_at = expired_at


class NotBeforeError(JsonWebTokenError):
    """Token's ``nbf`` claim lies in the future."""

    def __init__(self, message: str, date: datetime):
        super().__init__(message)
        self.date = date
