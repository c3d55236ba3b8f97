"""Broken link and mixed content auditor."""

from __future__ import annotations

from typing import Optional

from exposcope.checks.base import BaseCheck, ScanContext
from exposcope.core.config import ConcurrencyMode
from exposcope.core.errors import PrimaryFetchError
from exposcope.core.scoring import LINK_AUDIT_WEIGHTS, FindingDeduplicator, compute_score
from exposcope.models.fetch import FetchOutcome, FetchResult
from exposcope.models.report import BrokenLink, LinkAuditReport, MixedContentItem

# Only the status line matters when re-checking with GET
LINK_PROBE_MAX_BYTES = 1000


def is_broken(result: FetchResult) -> bool:
    """A link is broken when it answered with an error status or not at all."""
    if result.outcome == FetchOutcome.CANCELLED:
        return False
    return not result.responded or result.status >= 400


def to_broken_link(result: FetchResult) -> Optional[BrokenLink]:
    """Describe a failed link check, None when the link is fine."""
    if not is_broken(result):
        return None
    if result.responded:
        return BrokenLink(url=result.url, status=result.status, reason=result.reason)
    return BrokenLink(url=result.url, status=0, reason="Connection Failed")


class LinkAuditCheck(BaseCheck):
    """
    Checks the links of the target page and flags insecure embeds.

    Each link gets a HEAD request; links that fail it are retried with a
    small GET since many servers reject HEAD.
    """

    name = "link-audit"
    description = "Broken links and HTTP resources embedded in HTTPS pages"
    failure_message = "Failed to audit links"

    async def check_links(self, ctx: ScanContext, links: list[str]) -> list[BrokenLink]:
        """
        Check links with HEAD, then GET for those that failed.

        Returns:
            Broken links in input order
        """
        cfg = ctx.settings.link_audit

        async def probe(urls: list[str], method: str) -> list[FetchResult]:
            jobs = [
                ctx.orchestrator.job(
                    u, timeout=cfg.link_timeout, max_bytes=LINK_PROBE_MAX_BYTES, method=method,
                )
                for u in urls
            ]
            return await ctx.orchestrator.fetch_all(
                jobs,
                cancel=ctx.cancel,
                concurrency=cfg.concurrency,
                mode=ConcurrencyMode.POOL,
            )

        head_results = await probe(links, "HEAD")
        retry = [r.url for r in head_results if is_broken(r)]
        if not retry:
            return []

        self.logger.debug("Retrying links with GET", count=len(retry))
        get_results = {r.url: r for r in await probe(retry, "GET")}

        broken = []
        for url in links:
            result = get_results.get(url)
            if result is None:
                continue
            link = to_broken_link(result)
            if link:
                broken.append(link)
        return broken

    async def scan(self, ctx: ScanContext) -> LinkAuditReport:
        cfg = ctx.settings.link_audit
        url = ctx.target.url
        ctx.partial.update(url=url, brokenLinks=[], mixedContent=[])

        primary = await ctx.html_fetcher.fetch_html(url, timeout=cfg.primary_timeout, cancel=ctx.cancel)
        if not primary.responded or primary.body is None:
            raise PrimaryFetchError(f"Failed to fetch {url}: {primary.error or primary.outcome.value}")

        html = primary.body
        mixed: list[MixedContentItem] = []
        if ctx.target.is_https:
            mixed = FindingDeduplicator().deduplicate(
                MixedContentItem(url=res_url, type=tag)
                for res_url, tag in ctx.extractor.embedded_resources(html, url)
                if res_url.startswith("http:")
            )
        ctx.partial["mixedContent"] = [m.to_dict() for m in mixed]

        links = ctx.extractor.anchors(html, url)
        internal = sum(1 for link in links if link.startswith(url))
        to_check = links[:cfg.max_links]

        broken = await self.check_links(ctx, to_check)
        ctx.partial["brokenLinks"] = [b.to_dict() for b in broken]

        score = compute_score(
            {"broken_link": len(broken), "mixed_content": len(mixed)},
            LINK_AUDIT_WEIGHTS,
        )
        return LinkAuditReport(
            url=url,
            total_links=len(links),
            broken_links=tuple(broken),
            mixed_content=tuple(mixed),
            internal_links=internal,
            external_links=len(links) - internal,
            checked_links=len(to_check),
            score=score,
        )
