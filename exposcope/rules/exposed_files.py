"""Sensitive file paths and the content each must show to count as exposed."""

from __future__ import annotations

import re
from typing import Callable

from exposcope.core.matcher import DetectionRule
from exposcope.models.finding import Severity

SENSITIVE_FILES: tuple[str, ...] = (
    # Environment and config
    ".env",
    ".env.local",
    ".env.production",
    "config.json",
    "config.php",
    "wp-config.php",
    "wp-config.php.bak",
    "configuration.php",
    "LocalSettings.php",

    # Version control
    ".git/HEAD",
    ".git/config",
    ".gitignore",
    ".svn/entries",
    ".hg/requires",

    # Backups and dumps
    "backup.sql",
    "database.sql",
    "dump.sql",
    "users.sql",
    "backup.zip",
    "backup.tar.gz",
    "www.zip",

    # System and logs
    ".DS_Store",
    "error_log",
    "access_log",
    "php_errors.log",
    "debug.log",

    # Keys
    "id_rsa",
    "id_rsa.pub",
    "id_dsa",
    "key.pem",
    "cert.pem",
)

# Soft 404s, WAF challenges and HTML shells. Sensitive files are never
# full HTML pages, so any of these means the probe hit an error page.
ERROR_PAGE_SIGNATURES: tuple[str, ...] = (
    "Navigation bloquée",
    "blocked for security reasons",
    "Access Denied",
    "Error 404",
    "Page Not Found",
    "404 Not Found",
    "not found",
    "cannot be found",
    "Request rejected",
    "Security Incident Detected",
    "Cloudflare",
    "Sucuri",
    "Incapsula",
    "Mod_Security",
    "<!DOCTYPE html>",
    "<html",
    "<body",
)

_SQL_KEYWORDS = re.compile(r"CREATE|INSERT|TABLE|DROP|SELECT", re.IGNORECASE)
_LOG_TIMESTAMP = re.compile(r"\d{4}-\d{2}-\d{2}|\d{2}:\d{2}:\d{2}")


def file_severity(file: str) -> Severity:
    """Severity of an exposed file, decided by its name."""
    if ".env" in file or "config" in file or "id_rsa" in file or "shadow" in file:
        return Severity.CRITICAL
    if ".git" in file or ".sql" in file or "backup" in file:
        return Severity.HIGH
    if ".DS_Store" in file or "log" in file:
        return Severity.MEDIUM
    return Severity.LOW


def file_type(file: str) -> str:
    """Display category of an exposed file."""
    if file.startswith("."):
        return "Config/System"
    if file.endswith(".sql"):
        return "Database"
    if file.endswith(".log"):
        return "Log"
    if file.endswith(".php"):
        return "Code"
    return "Other"


def content_check(file: str) -> Callable[[str], bool]:
    """
    Content predicate a 200 response body must satisfy for ``file``.

    Config scripts that execute and print nothing are not exposures, so PHP
    paths only count when the source itself comes back.
    """
    checks: list[Callable[[str], bool]] = []

    if file == ".git/HEAD":
        checks.append(lambda body: "ref:" in body)
    if ".env" in file:
        checks.append(lambda body: "=" in body)
    if file.endswith(".sql"):
        checks.append(lambda body: bool(_SQL_KEYWORDS.search(body)))
    if file.endswith(".php") or file.endswith(".php.bak"):
        checks.append(lambda body: "<?php" in body)
    if file.endswith(".log"):
        checks.append(lambda body: bool(_LOG_TIMESTAMP.search(body)))
    if "id_rsa" in file:
        checks.append(lambda body: "BEGIN RSA PRIVATE KEY" in body)

    return lambda body: all(check(body) for check in checks)


EXPOSED_FILE_RULES: tuple[DetectionRule, ...] = tuple(
    DetectionRule(
        id=path,
        category=file_type(path),
        predicate=content_check(path),
        default_severity=file_severity(path),
    )
    for path in SENSITIVE_FILES
)

RULES_BY_PATH = {rule.id: rule for rule in EXPOSED_FILE_RULES}
