"""CDN and third-party resource analysis."""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlsplit

from exposcope.checks.base import BaseCheck, ScanContext
from exposcope.core.errors import PrimaryFetchError
from exposcope.core.scoring import CDN_WEIGHTS, compute_score, deduplicate_findings
from exposcope.models.finding import Severity
from exposcope.models.report import (
    CdnProviderInfo,
    CdnReport,
    CdnSummary,
    DetectedCdn,
    ExternalResource,
    Issue,
)
from exposcope.rules.cdn import (
    CDN_PROVIDERS,
    GOOGLE_FONTS_HOSTS,
    SPA_MARKERS,
    SPA_ROOT,
    SPA_WARNING,
    TRACKING_DOMAINS,
    VULNERABLE_JQUERY,
)

RESOURCE_COUNT_WARNING = 15
DOMAIN_COUNT_WARNING = 8
RESOURCE_PENALTY_THRESHOLD = 20
DOMAIN_PENALTY_THRESHOLD = 10


def is_spa(html: str) -> bool:
    """Check for single page application markers in the initial HTML."""
    return any(marker in html for marker in SPA_MARKERS) or bool(SPA_ROOT.search(html))


def classify_domain(domain: str) -> tuple[Optional[CdnProviderInfo], list[str]]:
    """
    Look a domain up in the CDN table.

    Returns:
        Provider info (last matching entry wins) and every matching key
    """
    matches = CDN_PROVIDERS.lookup(domain)
    if not matches:
        return None, []
    return matches[-1][1], [key for key, _ in matches]


def performance_score(total_resources: int, external_domains: int, insecure: int, cdn_count: int) -> int:
    """Score resource volume and hygiene, clamped to [0, 100]."""
    counts = {"insecure_resource": insecure}
    if total_resources > RESOURCE_PENALTY_THRESHOLD:
        counts["excess_resources"] = min(30, (total_resources - RESOURCE_PENALTY_THRESHOLD) * 2)
    if external_domains > DOMAIN_PENALTY_THRESHOLD:
        counts["excess_domains"] = min(20, (external_domains - DOMAIN_PENALTY_THRESHOLD) * 3)
    return compute_score(counts, CDN_WEIGHTS, signals=cdn_count)


def security_issues(resources: list[ExternalResource], page_is_https: bool) -> list[Issue]:
    issues = []
    for resource in resources:
        if page_is_https and resource.protocol == "http:":
            issues.append(Issue(
                type="mixed_content",
                severity=Severity.HIGH if resource.type in ("script", "stylesheet") else Severity.MEDIUM,
                resource=resource.url,
                title="Mixed Content Warning",
                description=f"Loading {resource.type} over HTTP on HTTPS site",
                recommendation="Use HTTPS URLs for all external resources",
                impact="Content may be blocked by browsers, security warnings",
            ))

        if "jquery" in resource.url and VULNERABLE_JQUERY.search(resource.url):
            issues.append(Issue(
                type="vulnerable_library",
                severity=Severity.MEDIUM,
                resource=resource.url,
                title="Potentially Vulnerable jQuery Version",
                description="jQuery version may have known vulnerabilities",
                recommendation="Update to jQuery 3.5.0 or later",
                impact="XSS vulnerabilities possible",
            ))

        if resource.type in ("script", "stylesheet") and resource.is_cdn:
            issues.append(Issue(
                type="missing_sri",
                severity=Severity.LOW,
                resource=resource.url,
                title="Subresource Integrity Recommended",
                description="CDN resource should use SRI for security",
                recommendation="Add integrity attribute to prevent tampering",
                impact="CDN compromise could inject malicious code",
            ))
    return issues


def privacy_issues(resources: list[ExternalResource]) -> tuple[list[Issue], int]:
    """
    Flag tracking, font and low-privacy providers.

    Returns:
        Issues and the number of tracking hits
    """
    issues = []
    tracking = 0
    for resource in resources:
        domain = resource.domain.lower()

        for tracker in TRACKING_DOMAINS:
            if tracker in domain:
                name = resource.provider.name if resource.provider else resource.domain
                issues.append(Issue(
                    type="tracking_resource",
                    severity=Severity.MEDIUM,
                    resource=resource.url,
                    domain=resource.domain,
                    title=f"Tracking Resource: {name}",
                    description="Resource from known tracking/analytics provider",
                    recommendation="Ensure proper consent management for tracking",
                    impact="User data may be collected without explicit consent",
                    article="Article 6 et 7 APDP - Licéité et consentement",
                ))
                tracking += 1

        if any(host in domain for host in GOOGLE_FONTS_HOSTS):
            issues.append(Issue(
                type="google_fonts_privacy",
                severity=Severity.LOW,
                resource=resource.url,
                title="Google Fonts Privacy Concern",
                description="Google Fonts may transmit user IP addresses to Google",
                recommendation="Consider self-hosting fonts or using privacy-friendly alternatives",
                impact="User IP addresses shared with Google",
                article="Article 6 APDP - Licéité du traitement",
            ))

        if resource.provider and resource.provider.privacy == "Poor":
            issues.append(Issue(
                type="privacy_concern_cdn",
                severity=Severity.LOW,
                resource=resource.url,
                title=f"Privacy Concern: {resource.provider.name}",
                description="CDN provider may collect user data",
                recommendation="Review privacy policy of CDN provider",
                impact="Potential user data collection by third party",
                article="Article 28 APDP - Sous-traitant",
            ))
    return issues, tracking


def performance_issues(total_resources: int, external_domains: int, insecure: int) -> list[Issue]:
    issues = []
    if total_resources > RESOURCE_COUNT_WARNING:
        issues.append(Issue(
            type="too_many_resources",
            severity=Severity.MEDIUM,
            title=f"{total_resources} External Resources Detected",
            description="High number of external resources may slow page loading",
            recommendation="Consider bundling resources or using fewer external dependencies",
            impact="Slower page load times and more DNS lookups",
        ))
    if external_domains > DOMAIN_COUNT_WARNING:
        issues.append(Issue(
            type="too_many_domains",
            severity=Severity.MEDIUM,
            title=f"{external_domains} External Domains",
            description="Multiple external domains increase DNS lookup time",
            recommendation="Reduce number of external domains or use DNS prefetching",
            impact="Additional DNS resolution delays",
        ))
    if insecure > 0:
        issues.append(Issue(
            type="mixed_content_performance",
            severity=Severity.LOW,
            title="Mixed Content May Cause Delays",
            description="Browsers may block or warn about insecure resources",
            recommendation="Use HTTPS for all external resources",
            impact="Resource loading may be blocked or delayed",
        ))
    return issues


class CdnResourcesCheck(BaseCheck):
    """Inventories third-party resources and rates their security, privacy and cost."""

    name = "cdn-resources"
    description = "Third-party CDN, tracking and font providers loaded by the page"
    failure_message = "Failed to analyze CDN resources"

    async def scan(self, ctx: ScanContext) -> CdnReport:
        url = ctx.target.url
        ctx.partial.update(url=url)

        primary = await ctx.html_fetcher.fetch_html(url, timeout=ctx.settings.cdn.timeout, cancel=ctx.cancel)
        if not primary.responded or primary.body is None:
            raise PrimaryFetchError(f"Failed to fetch {url}: {primary.error or primary.outcome.value}")
        html = primary.body

        resources: list[ExternalResource] = []
        detected: list[str] = []
        for res_url, kind in ctx.extractor.external_resources(html, url):
            parts = urlsplit(res_url)
            domain = (parts.hostname or "").lower()
            provider, keys = classify_domain(domain)
            for key in keys:
                if key not in detected:
                    detected.append(key)
            resources.append(ExternalResource(
                url=res_url,
                domain=domain,
                type=kind,
                protocol=f"{parts.scheme}:",
                provider=provider,
            ))
        ctx.partial["externalResources"] = [r.to_dict() for r in resources]

        providers = [
            DetectedCdn(
                domain=key,
                info=CDN_PROVIDERS.get(key),
                resource_count=sum(1 for r in resources if r.domain == key or key in r.domain),
            )
            for key in detected
        ]

        external_domains = len({r.domain for r in resources})
        security = deduplicate_findings(security_issues(resources, ctx.target.is_https))
        insecure = sum(1 for i in security if i.type == "mixed_content")
        privacy, tracking = privacy_issues(resources)

        summary = CdnSummary(
            cdn_count=len(providers),
            external_domains=external_domains,
            insecure_resources=insecure,
            tracking_resources=tracking,
            performance_score=performance_score(len(resources), external_domains, insecure, len(providers)),
        )

        spa = is_spa(html)
        return CdnReport(
            url=url,
            cdn_providers=tuple(providers),
            external_resources=tuple(resources),
            security_issues=tuple(security),
            performance_issues=tuple(performance_issues(len(resources), external_domains, insecure)),
            privacy_issues=tuple(privacy),
            summary=summary,
            is_spa=spa,
            spa_warning=SPA_WARNING if spa and not resources else None,
        )
