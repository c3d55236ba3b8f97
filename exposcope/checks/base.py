"""Shared plumbing for exposure checks."""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx
from pydantic import BaseModel

from exposcope.core.config import Settings, get_settings
from exposcope.core.dns import DnsResolver
from exposcope.core.errors import ExpoScopeError, InvalidTargetError, ScanCancelledError
from exposcope.core.extractor import ResourceExtractor
from exposcope.core.fetcher import FetchOrchestrator, HtmlFetcher, Renderer, create_client
from exposcope.core.logger import LoggerMixin, log_check_complete, log_check_start, scan_context
from exposcope.models.target import ScanTarget


@dataclass
class ScanContext:
    """Everything one check run needs, created fresh per run."""
    target: ScanTarget
    settings: Settings
    orchestrator: FetchOrchestrator
    html_fetcher: HtmlFetcher
    extractor: ResourceExtractor
    resolver: Optional[DnsResolver]
    cancel: asyncio.Event
    # Whatever has been collected so far, returned if the scan fails late
    partial: dict[str, Any] = field(default_factory=dict)


class BaseCheck(LoggerMixin, ABC):
    """
    Base class for exposure checks.

    ``run`` owns input validation, the HTTP client lifetime and error
    envelopes; subclasses only implement ``scan``.
    """

    name: str = ""
    description: str = ""
    failure_message: str = "Scan failed"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        resolver: Optional[DnsResolver] = None,
        renderer: Optional[Renderer] = None,
    ):
        """
        Initialize check.

        Args:
            settings: Application settings
            transport: HTTP transport override (tests, proxies)
            resolver: DNS resolver override
            renderer: Optional headless renderer for JavaScript-only pages
        """
        self.settings = settings or get_settings()
        self.transport = transport
        self.resolver = resolver
        self.renderer = renderer

    def parse_target(self, raw: Optional[str]) -> ScanTarget:
        return ScanTarget.parse(raw)

    def build_resolver(self) -> Optional[DnsResolver]:
        return self.resolver

    @abstractmethod
    async def scan(self, ctx: ScanContext) -> BaseModel:
        """Run the check and return its report model."""

    async def run(self, url: Optional[str], cancel: Optional[asyncio.Event] = None) -> dict[str, Any]:
        """
        Run the check against a URL.

        Args:
            url: Target URL or hostname as given by the user
            cancel: Scan-level cancel token

        Returns:
            Report dictionary, or an error envelope with ``statusCode``
        """
        try:
            target = self.parse_target(url)
        except InvalidTargetError as e:
            return e.to_dict()

        with scan_context(self.name, target.url):
            return await self._run_target(target, cancel or asyncio.Event())

    async def _run_target(self, target: ScanTarget, cancel: asyncio.Event) -> dict[str, Any]:
        start = time.monotonic()
        log_check_start(self.name, target.url)

        async with create_client(self.settings.http, self.transport) as client:
            orchestrator = FetchOrchestrator(client, self.settings.fetch)
            partial: dict[str, Any] = {}
            try:
                ctx = ScanContext(
                    target=target,
                    settings=self.settings,
                    orchestrator=orchestrator,
                    html_fetcher=HtmlFetcher(orchestrator, self.renderer),
                    extractor=ResourceExtractor(),
                    resolver=self.build_resolver(),
                    cancel=cancel,
                    partial=partial,
                )
                report = await self.scan(ctx)
                if cancel.is_set():
                    partial.update(report.to_dict())
                    raise ScanCancelledError(f"Scan cancelled while executing {self.name}")
            except ExpoScopeError as e:
                log_check_complete(
                    self.name, target.url, False, time.monotonic() - start, error=e.message,
                )
                envelope = e.to_dict()
                if partial:
                    envelope["partialResults"] = dict(partial)
                return envelope
            except Exception as e:
                self.logger.exception("Check failed")
                log_check_complete(
                    self.name, target.url, False, time.monotonic() - start, error=str(e),
                )
                return {
                    "error": f"{self.failure_message}: {e}",
                    "statusCode": 500,
                    "partialResults": dict(partial),
                }

        log_check_complete(self.name, target.url, True, time.monotonic() - start)
        return report.to_dict()
