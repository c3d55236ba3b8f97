"""Context-aware false-positive suppression."""

from __future__ import annotations

import re
from typing import Iterable, Sequence

from exposcope.core.logger import get_logger
from exposcope.models.finding import RawMatch
from exposcope.rules.secrets import (
    BASIC_AUTH_TEXT_HINTS,
    BENIGN_TERMS,
    EMAIL_ASSET_SUFFIXES,
    EMAIL_IGNORED_HOSTS,
    PLACEHOLDER_TERMS,
    URL_PARAMETER_HINTS,
    UUID_SENSITIVE_RULES,
)

logger = get_logger(__name__)

_UUID = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
_UPPERCASE_RUN = re.compile(r"[A-Z]{3,}")


class FalsePositiveSuppressor:
    """
    Discards matches that are structurally plausible but contextually benign.

    Decisions depend only on the match itself, so filtering is deterministic
    and idempotent. The heuristics lean towards dropping ambiguous matches.
    Placeholder words ("test", "dummy") are only checked for generic
    assignments; dedicated provider rules do not get that check.
    """

    def __init__(
        self,
        benign_terms: Sequence[str] = BENIGN_TERMS,
        url_parameter_hints: Sequence[str] = URL_PARAMETER_HINTS,
        uuid_sensitive_rules: Iterable[str] = UUID_SENSITIVE_RULES,
    ):
        """
        Initialize suppressor.

        Args:
            benign_terms: Value substrings that mark a match as benign
            url_parameter_hints: Context substrings that suggest a URL parameter
            uuid_sensitive_rules: Rules for which UUID-shaped values still count
        """
        self.benign_terms = tuple(t.lower() for t in benign_terms)
        self.url_parameter_hints = tuple(url_parameter_hints)
        self.uuid_sensitive_rules = frozenset(uuid_sensitive_rules)

    def is_false_positive(self, match: RawMatch) -> bool:
        """
        Decide whether a raw match should be discarded.

        Args:
            match: Raw pattern hit with its context window

        Returns:
            True to discard, False to keep
        """
        value = match.value
        lower_value = value.lower()
        lower_context = match.context_window.lower()
        rule = match.rule_id

        if any(term in lower_value for term in self.benign_terms):
            return True

        if rule in self.uuid_sensitive_rules and any(
            hint in lower_context for hint in self.url_parameter_hints
        ):
            return True

        if rule == "Twilio Account SID":
            # Surrounded by other uppercase words: a constant name, not a SID
            if _UPPERCASE_RUN.search(match.context_window):
                return True

        elif rule == "Basic Auth":
            if any(hint in lower_context for hint in BASIC_AUTH_TEXT_HINTS):
                return True

        elif rule == "Generic Secret Assignment":
            if len(value) < 8:
                return True
            if any(term in lower_value or term in lower_context for term in PLACEHOLDER_TERMS):
                return True

        elif rule == "Email Address":
            if lower_value.endswith(EMAIL_ASSET_SUFFIXES):
                return True
            if any(host in lower_value for host in EMAIL_IGNORED_HOSTS):
                return True

        if _UUID.match(value) and rule not in self.uuid_sensitive_rules:
            return True

        return False

    def filter(self, matches: Iterable[RawMatch]) -> list[RawMatch]:
        """Keep only the matches that survive suppression, in order."""
        kept = []
        dropped = 0
        for match in matches:
            if self.is_false_positive(match):
                dropped += 1
                continue
            kept.append(match)
        if dropped:
            logger.debug("Suppressed false positives", dropped=dropped, kept=len(kept))
        return kept

    @staticmethod
    def is_error_page(body: str, signatures: Sequence[str]) -> bool:
        """
        Check if a body looks like a soft 404, WAF challenge or HTML shell.

        Args:
            body: Response body
            signatures: Case-insensitive signature strings

        Returns:
            True if any signature occurs in the body
        """
        lower_body = body.lower()
        return any(sig.lower() in lower_body for sig in signatures)
