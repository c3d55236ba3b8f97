"""Bounded-concurrency HTTP fetching."""

from __future__ import annotations

import asyncio
import codecs
import dataclasses
import time
from typing import Iterable, Optional, Protocol

import httpx

from exposcope.core.config import ConcurrencyMode, FetchConfig, HttpConfig
from exposcope.core.extractor import visible_text_length
from exposcope.core.logger import get_logger
from exposcope.models.fetch import FetchJob, FetchKind, FetchOutcome, FetchResult

logger = get_logger(__name__)


def create_client(
    http_config: Optional[HttpConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """
    Create the HTTP client shared by every fetch of one scan.

    Args:
        http_config: Headers, redirect and TLS settings
        transport: Optional transport override, used by tests

    Returns:
        Configured httpx.AsyncClient (caller closes it)
    """
    http_config = http_config or HttpConfig()
    kwargs = {
        "headers": http_config.headers(),
        "follow_redirects": True,
        "max_redirects": http_config.max_redirects,
        "verify": http_config.verify_tls,
    }
    if transport is not None:
        kwargs["transport"] = transport
    return httpx.AsyncClient(**kwargs)


def _decode(raw: bytes, charset: Optional[str]) -> str:
    encoding = "utf-8"
    if charset:
        try:
            encoding = codecs.lookup(charset).name
        except LookupError:
            pass
    return raw.decode(encoding, errors="replace")


class FetchOrchestrator:
    """
    Runs fetch jobs with bounded parallelism.

    HTTP status codes are never treated as errors here; every job ends in a
    FetchResult whose outcome says what happened. Results always come back
    in the order the jobs were given.
    """

    def __init__(self, client: httpx.AsyncClient, config: Optional[FetchConfig] = None):
        """
        Initialize orchestrator.

        Args:
            client: Shared HTTP client
            config: Concurrency and default limits
        """
        self.client = client
        self.config = config or FetchConfig()

    def job(
        self,
        url: str,
        kind: FetchKind = FetchKind.DERIVED,
        timeout: Optional[float] = None,
        max_bytes: Optional[int] = None,
        method: str = "GET",
    ) -> FetchJob:
        """Build a job, filling unset limits from config."""
        return FetchJob(
            url=url,
            kind=kind,
            timeout=timeout if timeout is not None else self.config.default_timeout,
            max_bytes=max_bytes if max_bytes is not None else self.config.default_max_bytes,
            method=method,
        )

    async def fetch(self, job: FetchJob, cancel: Optional[asyncio.Event] = None) -> FetchResult:
        """
        Execute a single fetch job.

        Args:
            job: Job to run
            cancel: Scan-level cancel token

        Returns:
            FetchResult, never raises for network conditions
        """
        if cancel is not None and cancel.is_set():
            return FetchResult(job=job, outcome=FetchOutcome.CANCELLED, error="Scan cancelled")

        start = time.monotonic()
        if cancel is None:
            result = await self._fetch_with_deadline(job)
        else:
            result = await self._race_cancel(job, cancel)
        result.elapsed_ms = round((time.monotonic() - start) * 1000, 2)

        if not result.ok:
            logger.debug(
                "Fetch did not complete",
                url=job.url,
                outcome=result.outcome.value,
                status=result.status,
                error=result.error,
            )
        return result

    async def _race_cancel(self, job: FetchJob, cancel: asyncio.Event) -> FetchResult:
        fetch_task = asyncio.ensure_future(self._fetch_with_deadline(job))
        cancel_task = asyncio.ensure_future(cancel.wait())
        try:
            done, _ = await asyncio.wait(
                {fetch_task, cancel_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            fetch_task.cancel()
            raise
        finally:
            cancel_task.cancel()

        if fetch_task in done:
            return fetch_task.result()

        fetch_task.cancel()
        try:
            await fetch_task
        except asyncio.CancelledError:
            pass
        return FetchResult(job=job, outcome=FetchOutcome.CANCELLED, error="Scan cancelled")

    async def _fetch_with_deadline(self, job: FetchJob) -> FetchResult:
        try:
            return await asyncio.wait_for(self._request(job), timeout=job.timeout)
        except asyncio.TimeoutError:
            return FetchResult(
                job=job,
                outcome=FetchOutcome.TIMEOUT,
                error=f"Timed out after {job.timeout}s",
            )
        except httpx.TimeoutException as e:
            return FetchResult(job=job, outcome=FetchOutcome.TIMEOUT, error=str(e) or "Timeout")
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            return FetchResult(job=job, outcome=FetchOutcome.INVALID_URL, error=str(e))
        except httpx.HTTPError as e:
            return FetchResult(
                job=job,
                outcome=FetchOutcome.NETWORK_ERROR,
                error=str(e) or e.__class__.__name__,
            )

    async def _request(self, job: FetchJob) -> FetchResult:
        async with self.client.stream(
            job.method,
            job.url,
            timeout=httpx.Timeout(job.timeout),
        ) as response:
            chunks: list[bytes] = []
            size = 0
            too_large = False
            async for chunk in response.aiter_bytes():
                remaining = job.max_bytes - size
                if len(chunk) > remaining:
                    chunks.append(chunk[:remaining])
                    too_large = True
                    break
                chunks.append(chunk)
                size += len(chunk)

            return FetchResult(
                job=job,
                outcome=FetchOutcome.TOO_LARGE if too_large else FetchOutcome.SUCCESS,
                status=response.status_code,
                reason=response.reason_phrase,
                headers={k.lower(): v for k, v in response.headers.items()},
                body=_decode(b"".join(chunks), response.charset_encoding),
                error=f"Body exceeds {job.max_bytes} bytes" if too_large else None,
                final_url=str(response.url),
            )

    async def fetch_all(
        self,
        jobs: Iterable[FetchJob],
        cancel: Optional[asyncio.Event] = None,
        concurrency: Optional[int] = None,
        mode: Optional[ConcurrencyMode] = None,
    ) -> list[FetchResult]:
        """
        Execute jobs with bounded parallelism.

        Args:
            jobs: Jobs to run
            cancel: Scan-level cancel token; once set no new job starts
            concurrency: Override for the configured concurrency
            mode: Override for the configured scheduling mode

        Returns:
            One result per job, in input order
        """
        jobs = list(jobs)
        if not jobs:
            return []

        size = max(1, concurrency or self.config.concurrency)
        mode = mode or self.config.mode
        results: list[Optional[FetchResult]] = [None] * len(jobs)

        if mode == ConcurrencyMode.BATCH:
            for offset in range(0, len(jobs), size):
                batch = jobs[offset:offset + size]
                batch_results = await asyncio.gather(*(self.fetch(j, cancel) for j in batch))
                results[offset:offset + len(batch)] = batch_results
        else:
            semaphore = asyncio.Semaphore(size)

            async def run_with_semaphore(idx: int, job: FetchJob) -> None:
                async with semaphore:
                    results[idx] = await self.fetch(job, cancel)

            await asyncio.gather(*(run_with_semaphore(i, j) for i, j in enumerate(jobs)))

        completed = sum(1 for r in results if r is not None and r.ok)
        logger.debug(
            "Fetch wave complete",
            jobs=len(jobs),
            succeeded=completed,
            mode=mode.value,
            concurrency=size,
        )
        return results  # type: ignore[return-value]


class Renderer(Protocol):
    """Headless renderer collaborator returning post-JavaScript HTML."""

    async def render(self, url: str, timeout: float) -> str:
        ...


class HtmlFetcher:
    """
    Fetches a primary page as HTML.

    A static GET is tried first. When a renderer is available and the static
    page shows almost no visible text (a JavaScript shell), the rendered
    document replaces the static body.
    """

    def __init__(
        self,
        orchestrator: FetchOrchestrator,
        renderer: Optional[Renderer] = None,
        min_chars: Optional[int] = None,
    ):
        self.orchestrator = orchestrator
        self.renderer = renderer
        self.min_chars = min_chars if min_chars is not None else orchestrator.config.render_min_chars

    async def fetch_html(
        self,
        url: str,
        timeout: Optional[float] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> FetchResult:
        """
        Fetch the primary page.

        Args:
            url: Page URL
            timeout: Request deadline in seconds
            cancel: Scan-level cancel token

        Returns:
            FetchResult whose body is the best available HTML
        """
        job = self.orchestrator.job(url, kind=FetchKind.PRIMARY, timeout=timeout)
        result = await self.orchestrator.fetch(job, cancel)

        if self.renderer is None or not result.ok or not result.body:
            return result
        if visible_text_length(result.body) >= self.min_chars:
            return result

        logger.debug("Static page looks empty, rendering", url=url)
        try:
            rendered = await self.renderer.render(url, job.timeout)
        except Exception as e:
            logger.warning("Renderer failed, keeping static HTML", url=url, error=str(e))
            return result

        if not rendered:
            return result
        return dataclasses.replace(result, body=rendered)
