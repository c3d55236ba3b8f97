"""Fingerprints for services that allow subdomain takeover."""

from __future__ import annotations

from dataclasses import dataclass

from exposcope.core.matcher import FingerprintTable


@dataclass(frozen=True)
class TakeoverService:
    """Fingerprint for a takeover-prone service."""
    name: str
    cname_patterns: tuple[str, ...]
    signatures: tuple[str, ...]
    documentation: str = ""

    def matches_body(self, body: str) -> bool:
        """Check if a response body shows the unclaimed-resource page."""
        return any(signature in body for signature in self.signatures)


BUILTIN_SERVICES: tuple[TakeoverService, ...] = (
    TakeoverService(
        name="AWS S3",
        cname_patterns=("s3.amazonaws.com", "s3-website"),
        signatures=("The specified bucket does not exist", "NoSuchBucket"),
    ),
    TakeoverService(
        name="GitHub Pages",
        cname_patterns=("github.io",),
        signatures=("There isn't a GitHub Pages site here",),
    ),
    TakeoverService(
        name="Heroku",
        cname_patterns=("herokuapp.com", "herokudns.com"),
        signatures=("No such app", "Heroku | Welcome to your new app!", "herokucdn.com/error-pages"),
    ),
    TakeoverService(
        name="Shopify",
        cname_patterns=("myshopify.com",),
        signatures=("Sorry, this shop is currently unavailable",),
    ),
    TakeoverService(
        name="Tumblr",
        cname_patterns=("tumblr.com",),
        signatures=("There's nothing here.", "Whatever you were looking for doesn't currently exist"),
    ),
    TakeoverService(
        name="WordPress.com",
        cname_patterns=("wordpress.com",),
        signatures=("Do you want to register",),
    ),
    TakeoverService(
        name="Zendesk",
        cname_patterns=("zendesk.com",),
        signatures=("Help Center Closed",),
    ),
    TakeoverService(
        name="Bitbucket",
        cname_patterns=("bitbucket.io",),
        signatures=("Repository not found",),
    ),
    TakeoverService(
        name="Ghost",
        cname_patterns=("ghost.io",),
        signatures=("The thing you were looking for is no longer here",),
    ),
    TakeoverService(
        name="Cargo",
        cname_patterns=("cargocollective.com",),
        signatures=("404 Not Found",),
    ),
    TakeoverService(
        name="Azure",
        cname_patterns=("azurewebsites.net", "cloudapp.azure.com"),
        signatures=("404 Web Site not found",),
    ),
    TakeoverService(
        name="Netlify",
        cname_patterns=("netlify.app", "netlify.com"),
        signatures=("Not Found - Request ID",),
    ),
    TakeoverService(
        name="Vercel",
        cname_patterns=("vercel.app", "now.sh"),
        signatures=("The deployment could not be found",),
    ),
    TakeoverService(
        name="Surge.sh",
        cname_patterns=("surge.sh",),
        signatures=("project not found",),
    ),
)

TAKEOVER_FINGERPRINTS: FingerprintTable[TakeoverService] = FingerprintTable(
    (pattern, service)
    for service in BUILTIN_SERVICES
    for pattern in service.cname_patterns
)
