"""Secrets and PII scanner for a page and its external scripts."""

from __future__ import annotations

from exposcope.checks.base import BaseCheck, ScanContext
from exposcope.core.errors import PrimaryFetchError
from exposcope.core.logger import log_finding
from exposcope.core.matcher import RuleMatcher
from exposcope.core.scoring import SECRETS_WEIGHTS, FindingDeduplicator, severity_score, severity_summary
from exposcope.core.severity import SeverityClassifier, to_finding
from exposcope.core.suppressor import FalsePositiveSuppressor
from exposcope.models.finding import Finding, Severity, SourceKind
from exposcope.models.report import ScannedFile, SecretsReport
from exposcope.rules.secrets import SECRET_RULES


class SecretsCheck(BaseCheck):
    """
    Looks for API keys, tokens, private keys and PII.

    The primary page is scanned as HTML source, then up to ``max_scripts``
    external scripts are fetched and scanned as JavaScript files.
    """

    name = "secrets"
    description = "Leaked API keys, tokens, private keys and personal data"
    failure_message = "Failed to scan for secrets"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        cfg = self.settings.secrets
        self.matcher = RuleMatcher(
            SECRET_RULES,
            max_matches_per_rule=cfg.max_matches_per_rule,
            context_chars=cfg.context_chars,
        )
        self.suppressor = FalsePositiveSuppressor()
        self.classifier = SeverityClassifier()

    def analyze(self, content: str, source_url: str, source_kind: SourceKind) -> list[Finding]:
        """
        Run the matching pipeline over one document.

        Args:
            content: Document text
            source_url: Where the document came from
            source_kind: HTML source or JavaScript file

        Returns:
            Classified, masked findings (not yet deduplicated)
        """
        raw = self.matcher.match(content, source_url, source_kind.value)
        return [to_finding(m, self.classifier) for m in self.suppressor.filter(raw)]

    async def scan(self, ctx: ScanContext) -> SecretsReport:
        cfg = ctx.settings.secrets
        url = ctx.target.url
        dedup = FindingDeduplicator()
        findings: list[Finding] = []
        scanned: list[ScannedFile] = []
        ctx.partial.update(url=url, findings=[], scannedFiles=[])

        def collect(new: list[Finding], source: ScannedFile) -> None:
            scanned.append(source)
            findings.extend(dedup.deduplicate(new))
            ctx.partial["findings"] = [f.to_dict() for f in findings]
            ctx.partial["scannedFiles"] = [s.model_dump() for s in scanned]

        primary = await ctx.html_fetcher.fetch_html(url, timeout=cfg.primary_timeout, cancel=ctx.cancel)
        if not primary.responded:
            raise PrimaryFetchError(f"Failed to fetch {url}: {primary.error or primary.outcome.value}")
        if not primary.is_text:
            raise PrimaryFetchError("Invalid response content type")

        collect(self.analyze(primary.body, url, SourceKind.HTML), ScannedFile(url=url, type="html"))

        scripts = ctx.extractor.scripts(primary.body, primary.final_url or url, limit=cfg.max_scripts)
        jobs = [ctx.orchestrator.job(s, timeout=cfg.script_timeout) for s in scripts]
        for result in await ctx.orchestrator.fetch_all(jobs, cancel=ctx.cancel):
            if not result.responded or not result.is_text:
                continue
            collect(
                self.analyze(result.body, result.url, SourceKind.JAVASCRIPT),
                ScannedFile(url=result.url, type="js"),
            )

        for finding in findings:
            if finding.severity.rank >= Severity.HIGH.rank:
                log_finding(finding.type, finding.severity.value, finding.source_url, value=finding.masked_value)

        return SecretsReport(
            url=url,
            findings=tuple(findings),
            scanned_files=tuple(scanned),
            summary=severity_summary(findings),
            score=severity_score(findings, SECRETS_WEIGHTS),
        )
