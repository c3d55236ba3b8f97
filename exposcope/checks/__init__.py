"""Exposure check implementations."""

from typing import Type

from exposcope.checks.base import BaseCheck, ScanContext
from exposcope.checks.cdn_resources import CdnResourcesCheck
from exposcope.checks.exposed_files import ExposedFilesCheck
from exposcope.checks.link_audit import LinkAuditCheck
from exposcope.checks.secrets import SecretsCheck
from exposcope.checks.takeover import TakeoverCheck

CHECKS: dict[str, Type[BaseCheck]] = {
    check.name: check
    for check in (
        SecretsCheck,
        ExposedFilesCheck,
        LinkAuditCheck,
        CdnResourcesCheck,
        TakeoverCheck,
    )
}


def get_check(name: str) -> Type[BaseCheck]:
    """Look up a check class by name."""
    try:
        return CHECKS[name]
    except KeyError:
        raise KeyError(f"Unknown check: {name}. Available: {', '.join(CHECKS)}") from None


__all__ = [
    "BaseCheck",
    "ScanContext",
    "CHECKS",
    "get_check",
    "SecretsCheck",
    "ExposedFilesCheck",
    "LinkAuditCheck",
    "CdnResourcesCheck",
    "TakeoverCheck",
]
