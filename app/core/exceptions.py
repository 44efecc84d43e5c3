"""
Domain exceptions that map to flat JSON error bodies (no FastAPI "detail" wrapper),
so clients can read `upgrade_required` and `code` at the top level.
"""

from typing import Optional


class FeatureLimitExceeded(Exception):
    """Raised when a user has used up a metered feature for the current period."""

    status_code = 429
    code = "LIMIT_EXCEEDED"

    def __init__(
        self,
        message: str,
        limit: Optional[int] = None,
        current_usage: Optional[int] = None,
        upgrade_required=None,
        status_code: Optional[int] = None,
        **extra,
    ):
        super().__init__(message)
        self.message = message
        self.limit = limit
        self.current_usage = current_usage
        self.upgrade_required = upgrade_required
        self.extra = extra
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        body = {"error": self.message, "code": self.code}
        if self.limit is not None:
            body["limit"] = self.limit
        if self.current_usage is not None:
            body["current_usage"] = self.current_usage
        if self.upgrade_required is not None:
            body["upgrade_required"] = self.upgrade_required
        body.update(self.extra)
        return body


class ExternalServiceError(Exception):
    """Failure talking to a third-party API."""

    status_code = 502
    code = "EXTERNAL_ERROR"

    def __init__(self, message: str, upstream_status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.upstream_status = upstream_status

    def to_dict(self) -> dict:
        body = {"error": self.message, "code": self.code}
        if self.upstream_status is not None:
            body["upstream_status"] = self.upstream_status
        return body


class GladiaError(ExternalServiceError):
    code = "GLADIA_ERROR"


class GeminiError(ExternalServiceError):
    code = "GEMINI_ERROR"
