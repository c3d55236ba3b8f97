"""Resource extraction from HTML documents."""

from __future__ import annotations

import re
from typing import Iterable, Iterator, Optional
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup

from exposcope.core.logger import get_logger

logger = get_logger(__name__)

IGNORED_SCHEMES = ("javascript:", "mailto:", "tel:", "data:")

_BACKGROUND_URL = re.compile(r"background[^:;{}]*:[^;{}]*?url\(\s*['\"]?([^'\"()]+)['\"]?\s*\)", re.IGNORECASE)
_FONT_EXTENSIONS = (".woff", ".woff2", ".ttf", ".otf")


def _unique(urls: Iterable[Optional[str]]) -> list[str]:
    seen: set[str] = set()
    unique = []
    for url in urls:
        if url and url not in seen:
            seen.add(url)
            unique.append(url)
    return unique


def _dedupe(urls: Iterable[tuple[str, str]]) -> list[tuple[str, str]]:
    seen: set[str] = set()
    unique = []
    for url, kind in urls:
        if url in seen:
            continue
        seen.add(url)
        unique.append((url, kind))
    return unique


def visible_text_length(html: str) -> int:
    """Number of visible text characters in an HTML document."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript", "template"]):
        tag.decompose()
    return len(" ".join(soup.get_text(" ").split()))


class ResourceExtractor:
    """
    Pulls derived URLs out of an HTML page.

    Every URL is resolved against a base URL. Pseudo-schemes and
    unparsable references are dropped silently, and results keep
    first-seen order without duplicates.
    """

    def __init__(self, parser: str = "html.parser"):
        self.parser = parser

    def _soup(self, html: str) -> BeautifulSoup:
        return BeautifulSoup(html, self.parser)

    @staticmethod
    def resolve(ref: Optional[str], base: str) -> Optional[str]:
        """
        Resolve a reference against a base URL.

        Returns:
            Absolute http(s) URL, or None when the reference is unusable
        """
        if not ref:
            return None
        ref = ref.strip()
        if not ref or ref.lower().startswith(IGNORED_SCHEMES):
            return None
        try:
            absolute = urljoin(base, ref)
            parts = urlsplit(absolute)
            if parts.scheme not in ("http", "https") or not parts.hostname:
                return None
        except ValueError:
            logger.debug("Skipping unparsable URL", ref=ref[:100])
            return None
        return absolute

    def scripts(self, html: str, base: str, limit: Optional[int] = None) -> list[str]:
        """
        External script URLs in document order.

        Args:
            html: Page HTML
            base: URL the page was served from
            limit: Keep at most this many scripts

        Returns:
            Resolved script URLs
        """
        urls = _unique(
            self.resolve(tag["src"], base) for tag in self._soup(html).find_all("script", src=True)
        )
        return urls[:limit] if limit is not None else urls

    def anchors(self, html: str, base: str, limit: Optional[int] = None) -> list[str]:
        """Unique link targets of ``<a href>`` elements."""
        urls = _unique(
            self.resolve(tag["href"], base) for tag in self._soup(html).find_all("a", href=True)
        )
        return urls[:limit] if limit is not None else urls

    def embedded_resources(self, html: str, base: str) -> list[tuple[str, str]]:
        """
        Resources the browser loads with the page.

        Returns:
            (url, tag name) pairs for img, script, link and iframe elements
        """
        pairs = []
        for tag in self._soup(html).find_all(["img", "script", "link", "iframe"]):
            url = self.resolve(tag.get("src") or tag.get("href"), base)
            if url:
                pairs.append((url, tag.name))
        return list(dict.fromkeys(pairs))

    def external_resources(self, html: str, page_url: str) -> list[tuple[str, str]]:
        """
        Resources served from a host other than the page's own.

        Args:
            html: Page HTML
            page_url: URL of the page

        Returns:
            (url, resource type) pairs, types being script, stylesheet,
            image, iframe, font, video, audio or object
        """
        page_host = (urlsplit(page_url).hostname or "").lower()
        pairs = []
        for ref, kind in self._raw_resources(self._soup(html)):
            url = self.resolve(ref, page_url)
            if url and (urlsplit(url).hostname or "").lower() != page_host:
                pairs.append((url, kind))
        return _dedupe(pairs)

    def _raw_resources(self, soup: BeautifulSoup) -> Iterator[tuple[str, str]]:
        for tag in soup.find_all("script", src=True):
            yield tag["src"], "script"

        for tag in soup.find_all("link", href=True):
            href = tag["href"]
            try:
                path = urlsplit(href).path.lower()
            except ValueError:
                continue
            if ".css" in path or "stylesheet" in (tag.get("rel") or []):
                yield href, "stylesheet"
            elif path.endswith(_FONT_EXTENSIONS):
                yield href, "font"

        for tag in soup.find_all("img"):
            if tag.get("src"):
                yield tag["src"], "image"
            if tag.get("srcset"):
                for candidate in tag["srcset"].split(","):
                    parts = candidate.split()
                    if parts:
                        yield parts[0], "image"

        for tag in soup.find_all(style=True):
            for match in _BACKGROUND_URL.finditer(tag["style"]):
                yield match.group(1), "image"
        for tag in soup.find_all("style"):
            for match in _BACKGROUND_URL.finditer(tag.string or ""):
                yield match.group(1), "image"

        for tag in soup.find_all("iframe", src=True):
            yield tag["src"], "iframe"
        for name in ("video", "source"):
            for tag in soup.find_all(name, src=True):
                yield tag["src"], "video"
        for tag in soup.find_all("audio", src=True):
            yield tag["src"], "audio"
        for tag in soup.find_all("object", data=True):
            yield tag["data"], "object"
        for tag in soup.find_all("embed", src=True):
            yield tag["src"], "object"
