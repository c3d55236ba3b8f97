"""Fetch job and result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

BINARY_MEDIA_TYPES = (
    "image/",
    "audio/",
    "video/",
    "font/",
    "application/octet-stream",
    "application/pdf",
    "application/zip",
)


class FetchKind(str, Enum):
    """Whether a URL is the scan target or was derived from it."""
    PRIMARY = "primary"
    DERIVED = "derived"


class FetchOutcome(str, Enum):
    """Terminal state of a single fetch."""
    SUCCESS = "success"
    TIMEOUT = "timeout"
    NETWORK_ERROR = "network_error"
    INVALID_URL = "invalid_url"
    TOO_LARGE = "too_large"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class FetchJob:
    """A single request to issue. Consumed exactly once, never retried."""
    url: str
    kind: FetchKind = FetchKind.DERIVED
    timeout: float = 10.0
    max_bytes: int = 2 * 1024 * 1024
    method: str = "GET"


@dataclass
class FetchResult:
    """Result of one fetch job."""
    job: FetchJob
    outcome: FetchOutcome
    status: Optional[int] = None
    reason: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None
    error: Optional[str] = None
    elapsed_ms: float = 0.0
    final_url: Optional[str] = None

    @property
    def ok(self) -> bool:
        """True when a complete response was received."""
        return self.outcome == FetchOutcome.SUCCESS

    @property
    def responded(self) -> bool:
        """True when the server answered, whatever the body size."""
        return self.status is not None

    @property
    def url(self) -> str:
        """URL that was requested."""
        return self.job.url

    @property
    def content_type(self) -> str:
        """Lower-cased Content-Type header, empty when absent."""
        return self.headers.get("content-type", "").lower()

    @property
    def is_text(self) -> bool:
        """True when a body was read and the media type is not binary."""
        if self.body is None:
            return False
        return not self.content_type.startswith(BINARY_MEDIA_TYPES)
