"""Exception hierarchy for scan failures that reach the caller."""

from __future__ import annotations

from typing import Any, Optional


class ExpoScopeError(Exception):
    """Base class for errors surfaced as a structured error envelope."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        """Render the failure envelope returned to API and CLI callers."""
        return {"error": self.message, "statusCode": self.status_code}


class InvalidTargetError(ExpoScopeError):
    """Raised when the target URL is missing or malformed."""

    status_code = 400


class PrimaryFetchError(ExpoScopeError):
    """Raised when the primary target page cannot be fetched at all."""

    status_code = 502


class ScanCancelledError(ExpoScopeError):
    """Raised when a scan is aborted through its cancel token."""

    status_code = 500
