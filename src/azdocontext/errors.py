from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    AUTH_FAILED = "AUTH_FAILED"
    CLIENT_ERROR = "CLIENT_ERROR"
    REMOTE_UNAVAILABLE = "REMOTE_UNAVAILABLE"
    REQUEST_TIMEOUT = "REQUEST_TIMEOUT"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    DETAILS_FETCH_FAILED = "DETAILS_FETCH_FAILED"
    INVALID_CONFIG = "INVALID_CONFIG"


class AzdoContextError(Exception):
    """Raised for all expected failure conditions talking to Azure DevOps.

    ``status_code`` carries the HTTP status when the failure came from a
    response, and is ``None`` for network failures and timeouts. The retry
    classifier in retry.py reads both ``code`` and ``status_code``.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str,
        recoverable: bool = False,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable
        self.status_code = status_code

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "suggestion": self.suggestion,
                "recoverable": self.recoverable,
                "status_code": self.status_code,
            }
        }


def is_timeout(exc: BaseException) -> bool:
    """True when ``exc`` reports a request timeout."""
    return isinstance(exc, AzdoContextError) and exc.code == ErrorCode.REQUEST_TIMEOUT


def details_error(what: str, exc: Exception) -> AzdoContextError:
    """Wrap a terminal failure from a single-entity fetch."""
    return AzdoContextError(
        code=ErrorCode.DETAILS_FETCH_FAILED,
        message=f"Failed to get {what}: {exc}",
        suggestion=getattr(exc, "suggestion", "Retry later or check the identifiers."),
        recoverable=getattr(exc, "recoverable", False),
        status_code=getattr(exc, "status_code", None),
    )
