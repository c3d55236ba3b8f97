"""Dangling CNAME (subdomain takeover) detection."""

from __future__ import annotations

from typing import Optional

from exposcope.checks.base import BaseCheck, ScanContext
from exposcope.core.dns import DnsResolver
from exposcope.core.logger import log_finding
from exposcope.models.report import TakeoverReport
from exposcope.rules.takeover import TAKEOVER_FINGERPRINTS

STATUS_NO_CNAME = "No CNAME record found"
STATUS_UNKNOWN_SERVICE = "CNAME found but service not in fingerprint database"
STATUS_VULNERABLE = "VULNERABLE: Dangling CNAME record detected!"
STATUS_CLAIMED = "Safe: Service appears to be claimed"
STATUS_UNVERIFIED = "Unknown: Could not fetch content to verify"


class TakeoverCheck(BaseCheck):
    """
    Checks whether a hostname points at an unclaimed third-party resource.

    The CNAME target is matched against known takeover-prone services; the
    hostname is then fetched over plain HTTP and the body compared with the
    service's "nothing here" page.
    """

    name = "subdomain-takeover"
    description = "CNAME records pointing at unclaimed third-party services"
    failure_message = "Failed to check for subdomain takeover"

    def build_resolver(self) -> Optional[DnsResolver]:
        return self.resolver or DnsResolver.from_config(self.settings.takeover)

    async def scan(self, ctx: ScanContext) -> TakeoverReport:
        hostname = ctx.target.parsed_host
        ctx.partial.update(hostname=hostname)

        cnames = await ctx.resolver.resolve_cname(hostname)
        if not cnames:
            return TakeoverReport(hostname=hostname, status=STATUS_NO_CNAME)

        cname = cnames[0]
        match = TAKEOVER_FINGERPRINTS.find_contained(cname)
        if match is None:
            return TakeoverReport(hostname=hostname, cname=cname, status=STATUS_UNKNOWN_SERVICE)

        service = match[1]
        ctx.partial.update(cname=cname, service=service.name)

        job = ctx.orchestrator.job(f"http://{hostname}", timeout=ctx.settings.takeover.timeout)
        result = await ctx.orchestrator.fetch(job, ctx.cancel)
        if not result.responded or result.body is None:
            return TakeoverReport(
                hostname=hostname, cname=cname, service=service.name, status=STATUS_UNVERIFIED,
            )

        if service.matches_body(result.body):
            log_finding("Subdomain Takeover", "Critical", hostname, cname=cname, service=service.name)
            return TakeoverReport(
                hostname=hostname,
                vulnerable=True,
                cname=cname,
                service=service.name,
                status=STATUS_VULNERABLE,
                details=(
                    f"The domain points to {service.name} ({cname}) "
                    "but the resource appears to be unclaimed."
                ),
            )

        return TakeoverReport(hostname=hostname, cname=cname, service=service.name, status=STATUS_CLAIMED)
