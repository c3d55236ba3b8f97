"""Scan target model."""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict

from exposcope.core.errors import InvalidTargetError


class ScanTarget(BaseModel):
    """
    The site being scanned.

    Immutable for the duration of one scan.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    parsed_host: str
    scheme: str

    @property
    def is_https(self) -> bool:
        """Check if the target is served over TLS."""
        return self.scheme == "https"

    @property
    def base_url(self) -> str:
        """Target URL guaranteed to end with a slash."""
        return self.url if self.url.endswith("/") else f"{self.url}/"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "ScanTarget":
        """
        Build a target from user input.

        Input without a scheme is treated as HTTPS.

        Args:
            raw: URL or bare hostname

        Returns:
            ScanTarget instance

        Raises:
            InvalidTargetError: If the input is empty or not an http(s) URL
        """
        if raw is None or not raw.strip():
            raise InvalidTargetError("URL parameter is required")

        candidate = raw.strip()
        if "://" not in candidate:
            candidate = f"https://{candidate}"

        try:
            parts = urlsplit(candidate)
            host = parts.hostname
            parts.port  # raises on out-of-range ports
        except ValueError as e:
            raise InvalidTargetError(f"Invalid URL: {raw}") from e

        scheme = parts.scheme.lower()
        if scheme not in ("http", "https"):
            raise InvalidTargetError(f"Unsupported URL scheme: {scheme}")
        if not host or any(c.isspace() for c in candidate):
            raise InvalidTargetError(f"Invalid URL: {raw}")

        return cls(url=candidate, parsed_host=host.lower(), scheme=scheme)
