"""Detection result data models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    """Finding severity tiers."""
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @property
    def rank(self) -> int:
        """Numeric rank for sorting, higher is worse."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.CRITICAL: 4,
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
}


class SourceKind(str, Enum):
    """Where a match was found."""
    HTML = "HTML Source"
    JAVASCRIPT = "JavaScript File"


@dataclass(frozen=True)
class RawMatch:
    """An unvalidated pattern hit, before false-positive suppression."""
    rule_id: str
    value: str
    context_window: str
    source_url: str
    source_kind: str
    position: int = 0


class Finding(BaseModel):
    """
    A classified, masked detection result.

    The raw value is kept for deduplication only and is never serialized;
    reports only ever carry the masked representation.
    """

    model_config = ConfigDict(frozen=True)

    type: str
    value: str = Field(..., repr=False, exclude=True)
    masked_value: str
    severity: Severity
    source_url: str
    source_kind: str
    context: str = ""

    @property
    def dedup_key(self) -> tuple[str, str, str]:
        """Identity used to collapse duplicates, on the unmasked value."""
        return (self.type, self.value, self.source_url)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the report dictionary shape."""
        return {
            "type": self.type,
            "value": self.masked_value,
            "severity": self.severity.value,
            "sourceUrl": self.source_url,
            "sourceType": self.source_kind,
            "context": self.context,
        }
