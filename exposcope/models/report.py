"""Per-check report models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from exposcope.models.finding import Finding, Severity


def utc_now() -> datetime:
    """Current time in UTC."""
    return datetime.now(timezone.utc)


def iso_timestamp(value: datetime) -> str:
    """Format a timestamp as ISO-8601 with millisecond precision and a Z suffix."""
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ScannedFile(BaseModel):
    """A resource the secrets scanner actually read."""

    model_config = ConfigDict(frozen=True)

    url: str
    type: str


class SecretsReport(BaseModel):
    """Result of the secrets and PII scan."""

    model_config = ConfigDict(frozen=True)

    url: str
    timestamp: datetime = Field(default_factory=utc_now)
    findings: tuple[Finding, ...] = ()
    scanned_files: tuple[ScannedFile, ...] = ()
    summary: dict[str, int] = Field(default_factory=dict)
    score: int = 100

    def to_dict(self) -> dict[str, Any]:
        """Convert to the report dictionary shape."""
        return {
            "url": self.url,
            "timestamp": iso_timestamp(self.timestamp),
            "scannedFilesCount": len(self.scanned_files),
            "totalFindings": len(self.findings),
            "findings": [f.to_dict() for f in self.findings],
            "scannedFiles": [f.model_dump() for f in self.scanned_files],
            "summary": dict(self.summary),
            "score": self.score,
        }


class ExposedFile(BaseModel):
    """A sensitive file that answered with real content."""

    model_config = ConfigDict(frozen=True)

    file: str
    url: str
    severity: Severity
    type: str

    @property
    def dedup_key(self) -> tuple[str, str, str]:
        return (self.type, self.file, self.url)

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "url": self.url,
            "severity": self.severity.value,
            "type": self.type,
        }


class ExposedFilesReport(BaseModel):
    """Result of the sensitive file probe."""

    model_config = ConfigDict(frozen=True)

    url: str
    timestamp: datetime = Field(default_factory=utc_now)
    exposed_files: tuple[ExposedFile, ...] = ()
    scanned_count: int = 0
    summary: dict[str, int] = Field(default_factory=dict)
    score: int = 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "timestamp": iso_timestamp(self.timestamp),
            "exposedFiles": [f.to_dict() for f in self.exposed_files],
            "scannedCount": self.scanned_count,
            "summary": dict(self.summary),
            "score": self.score,
        }


class BrokenLink(BaseModel):
    """A link that answered with an error status or not at all."""

    model_config = ConfigDict(frozen=True)

    url: str
    status: int
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"url": self.url, "status": self.status, "reason": self.reason}


class MixedContentItem(BaseModel):
    """An HTTP resource embedded in an HTTPS page."""

    model_config = ConfigDict(frozen=True)

    url: str
    type: str
    severity: Severity = Severity.HIGH

    @property
    def dedup_key(self) -> tuple[str, str, str]:
        return ("Mixed Content", self.url, self.type)

    def to_dict(self) -> dict[str, Any]:
        return {"url": self.url, "type": self.type, "severity": self.severity.value}


class LinkAuditReport(BaseModel):
    """Result of the broken link and mixed content audit."""

    model_config = ConfigDict(frozen=True)

    url: str
    timestamp: datetime = Field(default_factory=utc_now)
    total_links: int = 0
    broken_links: tuple[BrokenLink, ...] = ()
    mixed_content: tuple[MixedContentItem, ...] = ()
    internal_links: int = 0
    external_links: int = 0
    checked_links: int = 0
    score: int = 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "timestamp": iso_timestamp(self.timestamp),
            "totalLinks": self.total_links,
            "brokenLinks": [b.to_dict() for b in self.broken_links],
            "mixedContent": [m.to_dict() for m in self.mixed_content],
            "internalLinks": self.internal_links,
            "externalLinks": self.external_links,
            "checkedLinks": self.checked_links,
            "score": self.score,
        }


class CdnProviderInfo(BaseModel):
    """Known CDN or third-party host signature."""

    model_config = ConfigDict(frozen=True)

    name: str
    category: str
    privacy: str


class ExternalResource(BaseModel):
    """A resource loaded from a host other than the target."""

    model_config = ConfigDict(frozen=True)

    url: str
    domain: str
    type: str
    protocol: str
    provider: Optional[CdnProviderInfo] = None

    @property
    def is_secure(self) -> bool:
        return self.protocol == "https:"

    @property
    def is_cdn(self) -> bool:
        return self.provider is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "domain": self.domain,
            "type": self.type,
            "protocol": self.protocol,
            "isSecure": self.is_secure,
            "isCDN": self.is_cdn,
            "provider": self.provider.model_dump() if self.provider else None,
        }


class DetectedCdn(BaseModel):
    """A CDN provider seen on the page with its resource count."""

    model_config = ConfigDict(frozen=True)

    domain: str
    info: CdnProviderInfo
    resource_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "domain": self.domain,
            **self.info.model_dump(),
            "resourceCount": self.resource_count,
        }


class Issue(BaseModel):
    """A security, privacy or performance observation."""

    model_config = ConfigDict(frozen=True)

    type: str
    severity: Severity
    title: str
    description: str
    recommendation: str
    impact: str
    resource: Optional[str] = None
    domain: Optional[str] = None
    article: Optional[str] = None

    @property
    def dedup_key(self) -> tuple[str, str, str]:
        return (self.type, self.resource or self.title, self.domain or "")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type, "severity": self.severity.value}
        if self.resource is not None:
            data["resource"] = self.resource
        if self.domain is not None:
            data["domain"] = self.domain
        data.update(
            title=self.title,
            description=self.description,
            recommendation=self.recommendation,
            impact=self.impact,
        )
        if self.article is not None:
            data["article"] = self.article
        return data


class CdnSummary(BaseModel):
    """Counters for the CDN report."""

    model_config = ConfigDict(frozen=True)

    cdn_count: int = 0
    external_domains: int = 0
    insecure_resources: int = 0
    tracking_resources: int = 0
    performance_score: int = 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "cdnCount": self.cdn_count,
            "externalDomains": self.external_domains,
            "insecureResources": self.insecure_resources,
            "trackingResources": self.tracking_resources,
            "performanceScore": self.performance_score,
        }


class CdnReport(BaseModel):
    """Result of the CDN and third-party resource analysis."""

    model_config = ConfigDict(frozen=True)

    url: str
    timestamp: datetime = Field(default_factory=utc_now)
    cdn_providers: tuple[DetectedCdn, ...] = ()
    external_resources: tuple[ExternalResource, ...] = ()
    security_issues: tuple[Issue, ...] = ()
    performance_issues: tuple[Issue, ...] = ()
    privacy_issues: tuple[Issue, ...] = ()
    summary: CdnSummary = Field(default_factory=CdnSummary)
    is_spa: bool = False
    spa_warning: Optional[str] = None

    @property
    def score(self) -> int:
        return self.summary.performance_score

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "url": self.url,
            "timestamp": iso_timestamp(self.timestamp),
            "cdnProviders": [c.to_dict() for c in self.cdn_providers],
            "externalResources": [r.to_dict() for r in self.external_resources],
            "securityIssues": [i.to_dict() for i in self.security_issues],
            "performanceIssues": [i.to_dict() for i in self.performance_issues],
            "privacyIssues": [i.to_dict() for i in self.privacy_issues],
            "totalResources": len(self.external_resources),
            "summary": self.summary.to_dict(),
            "score": self.score,
        }
        if self.spa_warning:
            data["spaWarning"] = self.spa_warning
            data["isSPA"] = self.is_spa
        return data


class TakeoverReport(BaseModel):
    """Result of the dangling CNAME check."""

    model_config = ConfigDict(frozen=True)

    hostname: str
    timestamp: datetime = Field(default_factory=utc_now)
    vulnerable: bool = False
    cname: Optional[str] = None
    service: Optional[str] = None
    status: str = "Safe"
    details: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "hostname": self.hostname,
            "timestamp": iso_timestamp(self.timestamp),
            "vulnerable": self.vulnerable,
            "cname": self.cname,
            "service": self.service,
            "status": self.status,
        }
        if self.details:
            data["details"] = self.details
        return data
