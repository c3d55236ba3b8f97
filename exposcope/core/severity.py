"""Severity classification and safe display of matched values."""

from __future__ import annotations

import re
from typing import Mapping

from exposcope.models.finding import Finding, RawMatch, Severity
from exposcope.rules.secrets import SEVERITY_TIERS, UNMASKED_RULES

_WHITESPACE = re.compile(r"\s+")

MASK_MIN_LENGTH = 8
MASK_KEEP = 4


class SeverityClassifier:
    """Maps rule ids to severity tiers through a static table."""

    def __init__(
        self,
        tiers: Mapping[Severity, frozenset[str]] = SEVERITY_TIERS,
        default: Severity = Severity.LOW,
    ):
        self._lookup: dict[str, Severity] = {}
        # Higher tiers win if an id is listed twice
        for severity in sorted(tiers, key=lambda s: s.rank):
            for rule_id in tiers[severity]:
                self._lookup[rule_id] = severity
        self.default = default

    def classify(self, rule_id: str) -> Severity:
        """
        Get the severity tier for a rule.

        Args:
            rule_id: Detection rule id

        Returns:
            Severity tier, the default tier for unknown ids
        """
        return self._lookup.get(rule_id, self.default)


def mask(value: str, rule_id: str) -> str:
    """
    Produce a safe-to-display representation of a matched value.

    Emails and internal IPs stay readable since they are needed for
    remediation. Anything shorter than 8 characters becomes ``***``;
    longer values keep only their first and last four characters.
    """
    if rule_id in UNMASKED_RULES:
        return value
    if len(value) < MASK_MIN_LENGTH:
        return "***"
    return f"{value[:MASK_KEEP]}...{value[-MASK_KEEP:]}"


def clean_context(context: str) -> str:
    """Collapse a context window onto one trimmed line."""
    return _WHITESPACE.sub(" ", context.replace("\n", " ")).strip()


def to_finding(raw: RawMatch, classifier: SeverityClassifier) -> Finding:
    """Classify and mask a surviving raw match."""
    return Finding(
        type=raw.rule_id,
        value=raw.value,
        masked_value=mask(raw.value, raw.rule_id),
        severity=classifier.classify(raw.rule_id),
        source_url=raw.source_url,
        source_kind=raw.source_kind,
        context=clean_context(raw.context_window),
    )


_default_classifier = SeverityClassifier()


def classify(rule_id: str) -> Severity:
    """Classify a rule id with the built-in secret tier table."""
    return _default_classifier.classify(rule_id)
