"""CDN, social media and tracking host signatures."""

from __future__ import annotations

import re

from exposcope.core.matcher import FingerprintTable
from exposcope.models.report import CdnProviderInfo


def _provider(name: str, category: str, privacy: str) -> CdnProviderInfo:
    return CdnProviderInfo(name=name, category=category, privacy=privacy)


CDN_PROVIDERS: FingerprintTable[CdnProviderInfo] = FingerprintTable([
    # Public CDNs
    ("cdnjs.cloudflare.com", _provider("Cloudflare CDNJS", "Public CDN", "Medium")),
    ("cdn.jsdelivr.net", _provider("jsDelivr", "Public CDN", "Good")),
    ("unpkg.com", _provider("UNPKG", "Public CDN", "Medium")),
    ("code.jquery.com", _provider("jQuery CDN", "Library CDN", "Good")),
    ("stackpath.bootstrapcdn.com", _provider("Bootstrap CDN", "Library CDN", "Medium")),

    # Google
    ("fonts.googleapis.com", _provider("Google Fonts", "Font CDN", "Poor")),
    ("fonts.gstatic.com", _provider("Google Fonts Static", "Font CDN", "Poor")),
    ("ajax.googleapis.com", _provider("Google Ajax Libraries", "Library CDN", "Poor")),
    ("www.gstatic.com", _provider("Google Static", "Library CDN", "Poor")),

    # Facebook / Instagram
    ("scontent", _provider("Facebook/Instagram CDN", "Social Media", "Poor")),
    ("cdninstagram.com", _provider("Instagram CDN", "Social Media", "Poor")),
    ("fbcdn.net", _provider("Facebook CDN", "Social Media", "Poor")),
    ("xx.fbcdn.net", _provider("Facebook CDN", "Social Media", "Poor")),

    # Twitter / X
    ("pbs.twimg.com", _provider("Twitter Images CDN", "Social Media", "Poor")),
    ("abs.twimg.com", _provider("Twitter CDN", "Social Media", "Poor")),
    ("video.twimg.com", _provider("Twitter Video CDN", "Social Media", "Poor")),

    # LinkedIn
    ("media.licdn.com", _provider("LinkedIn Media CDN", "Social Media", "Poor")),
    ("static.licdn.com", _provider("LinkedIn Static CDN", "Social Media", "Poor")),

    # YouTube
    ("i.ytimg.com", _provider("YouTube Images CDN", "Social Media", "Poor")),
    ("yt3.ggpht.com", _provider("YouTube CDN", "Social Media", "Poor")),

    # TikTok
    ("p16-sign", _provider("TikTok CDN", "Social Media", "Poor")),
    ("v16-webapp", _provider("TikTok CDN", "Social Media", "Poor")),

    # Commercial CDNs
    ("fastly.com", _provider("Fastly", "Commercial CDN", "Medium")),
    ("amazonaws.com", _provider("Amazon CloudFront", "Commercial CDN", "Medium")),
    ("cloudfront.net", _provider("Amazon CloudFront", "Commercial CDN", "Medium")),
    ("azure.microsoft.com", _provider("Azure CDN", "Commercial CDN", "Medium")),
    ("keycdn.com", _provider("KeyCDN", "Commercial CDN", "Good")),
    ("akamaized.net", _provider("Akamai", "Commercial CDN", "Medium")),
    ("cloudflare.com", _provider("Cloudflare", "Commercial CDN", "Medium")),
])

TRACKING_DOMAINS: tuple[str, ...] = (
    "google-analytics.com",
    "googletagmanager.com",
    "facebook.com",
    "connect.facebook.net",
    "doubleclick.net",
    "googlesyndication.com",
    "adsystem.amazon.com",
    "amazon-adsystem.com",
    "scorecardresearch.com",
    "quantserve.com",
    "hotjar.com",
    "crazyegg.com",
    "mouseflow.com",
    "fullstory.com",
)

GOOGLE_FONTS_HOSTS: tuple[str, ...] = ("fonts.googleapis.com", "fonts.gstatic.com")

# jQuery 1.x, 2.x and 3.0 - 3.4 carry known XSS issues
VULNERABLE_JQUERY = re.compile(r"jquery[/-](?:[12]\.|3\.[0-4])")

SPA_MARKERS: tuple[str, ...] = ("__NEXT_DATA__", "React", "Vue", "ng-app")
SPA_ROOT = re.compile(r"<div[^>]+id=[\"'](?:root|app)[\"']", re.IGNORECASE)

SPA_WARNING = (
    "Site détecté comme SPA (Single Page Application). Les ressources externes "
    "sont chargées dynamiquement par JavaScript et ne peuvent pas être détectées "
    "dans le HTML initial. Utilisez les outils de développement du navigateur "
    "pour voir toutes les ressources."
)
