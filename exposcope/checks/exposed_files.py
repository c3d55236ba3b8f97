"""Probe for sensitive files left in the web root."""

from __future__ import annotations

from exposcope.checks.base import BaseCheck, ScanContext
from exposcope.core.config import ConcurrencyMode
from exposcope.core.logger import log_finding
from exposcope.core.matcher import RuleMatcher
from exposcope.core.scoring import EXPOSED_FILES_WEIGHTS, FindingDeduplicator, severity_score, severity_summary
from exposcope.core.suppressor import FalsePositiveSuppressor
from exposcope.models.fetch import FetchResult
from exposcope.models.report import ExposedFile, ExposedFilesReport
from exposcope.rules.exposed_files import ERROR_PAGE_SIGNATURES, RULES_BY_PATH, SENSITIVE_FILES


class ExposedFilesCheck(BaseCheck):
    """
    Requests well-known sensitive paths under the target.

    Only a 200 response whose body is neither an error page nor missing the
    file's expected content counts as an exposure. Probes run in small
    batches to stay below WAF thresholds.
    """

    name = "exposed-files"
    description = "Publicly reachable config files, dumps, keys and VCS metadata"
    failure_message = "Failed to scan for exposed files"

    def evaluate(self, file: str, result: FetchResult) -> bool:
        """
        Decide whether a probe result is a real exposure.

        Bodies cut off at the size cap are never evaluated.
        """
        if not result.ok or result.status != 200 or result.body is None:
            return False
        if FalsePositiveSuppressor.is_error_page(result.body, ERROR_PAGE_SIGNATURES):
            return False
        matcher = RuleMatcher((RULES_BY_PATH[file],))
        return bool(matcher.match(result.body, result.url, "Exposed File"))

    async def scan(self, ctx: ScanContext) -> ExposedFilesReport:
        cfg = ctx.settings.exposed_files
        base_url = ctx.target.base_url
        dedup = FindingDeduplicator()
        exposed: list[ExposedFile] = []
        scanned_count = 0
        ctx.partial.update(url=ctx.target.url, exposedFiles=[], scannedCount=0)

        for offset in range(0, len(SENSITIVE_FILES), cfg.batch_size):
            if ctx.cancel.is_set():
                break
            batch = SENSITIVE_FILES[offset:offset + cfg.batch_size]
            jobs = [
                ctx.orchestrator.job(base_url + file, timeout=cfg.timeout, max_bytes=cfg.max_bytes)
                for file in batch
            ]
            results = await ctx.orchestrator.fetch_all(
                jobs,
                cancel=ctx.cancel,
                concurrency=cfg.batch_size,
                mode=ConcurrencyMode.BATCH,
            )

            found = []
            for file, result in zip(batch, results):
                if not self.evaluate(file, result):
                    continue
                rule = RULES_BY_PATH[file]
                found.append(ExposedFile(
                    file=file,
                    url=result.url,
                    severity=rule.default_severity,
                    type=rule.category,
                ))
            exposed.extend(dedup.deduplicate(found))
            scanned_count += len(batch)

            ctx.partial["exposedFiles"] = [f.to_dict() for f in exposed]
            ctx.partial["scannedCount"] = scanned_count

        for item in exposed:
            log_finding("Exposed File", item.severity.value, item.url, file=item.file)

        return ExposedFilesReport(
            url=ctx.target.url,
            exposed_files=tuple(exposed),
            scanned_count=scanned_count,
            summary=severity_summary(exposed),
            score=severity_score(exposed, EXPOSED_FILES_WEIGHTS),
        )
