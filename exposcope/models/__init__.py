"""Data models for ExpoScope."""

from exposcope.models.fetch import FetchJob, FetchKind, FetchOutcome, FetchResult
from exposcope.models.finding import Finding, RawMatch, Severity, SourceKind
from exposcope.models.report import (
    CdnReport,
    ExposedFilesReport,
    LinkAuditReport,
    SecretsReport,
    TakeoverReport,
)
from exposcope.models.target import ScanTarget

__all__ = [
    "FetchJob",
    "FetchKind",
    "FetchOutcome",
    "FetchResult",
    "Finding",
    "RawMatch",
    "Severity",
    "SourceKind",
    "CdnReport",
    "ExposedFilesReport",
    "LinkAuditReport",
    "SecretsReport",
    "TakeoverReport",
    "ScanTarget",
]
