"""Static detection tables, built once per process and shared read-only."""

from exposcope.rules.cdn import CDN_PROVIDERS, TRACKING_DOMAINS
from exposcope.rules.exposed_files import EXPOSED_FILE_RULES, SENSITIVE_FILES
from exposcope.rules.secrets import SECRET_RULES, SEVERITY_TIERS
from exposcope.rules.takeover import BUILTIN_SERVICES, TAKEOVER_FINGERPRINTS

__all__ = [
    "CDN_PROVIDERS",
    "TRACKING_DOMAINS",
    "EXPOSED_FILE_RULES",
    "SENSITIVE_FILES",
    "SECRET_RULES",
    "SEVERITY_TIERS",
    "BUILTIN_SERVICES",
    "TAKEOVER_FINGERPRINTS",
]
