"""Rule-based content matching."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Generic, Iterable, Optional, Sequence, TypeVar

from exposcope.core.logger import get_logger
from exposcope.models.finding import RawMatch, Severity

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_MATCHES = 50
DEFAULT_CONTEXT_CHARS = 50


@dataclass(frozen=True)
class DetectionRule:
    """
    A single detection rule.

    Exactly one of ``pattern`` or ``predicate`` is set. Pattern rules yield
    one match per non-overlapping hit; predicate rules yield at most one
    match for the whole document.
    """
    id: str
    category: str
    pattern: Optional[re.Pattern] = None
    predicate: Optional[Callable[[str], bool]] = None
    default_severity: Severity = Severity.LOW
    value_group: int = 0

    def __post_init__(self) -> None:
        if (self.pattern is None) == (self.predicate is None):
            raise ValueError(f"Rule {self.id!r} needs exactly one of pattern or predicate")


def pattern_rule(
    rule_id: str,
    category: str,
    regex: str,
    severity: Severity = Severity.LOW,
    flags: int = 0,
    value_group: int = 0,
) -> DetectionRule:
    """Build a pattern rule from a regex string."""
    return DetectionRule(
        id=rule_id,
        category=category,
        pattern=re.compile(regex, flags),
        default_severity=severity,
        value_group=value_group,
    )


class RuleMatcher:
    """
    Applies an ordered rule dictionary to text content.

    Output order is rule order, then match position within a rule. Every
    call builds fresh ``finditer`` iterators, so compiled patterns can be
    shared freely between concurrent scans.
    """

    def __init__(
        self,
        rules: Sequence[DetectionRule],
        max_matches_per_rule: int = DEFAULT_MAX_MATCHES,
        context_chars: int = DEFAULT_CONTEXT_CHARS,
    ):
        """
        Initialize matcher.

        Args:
            rules: Ordered detection rules
            max_matches_per_rule: Cap on matches per rule per document
            context_chars: Characters of context kept on each side of a match
        """
        self.rules = tuple(rules)
        self.max_matches_per_rule = max_matches_per_rule
        self.context_chars = context_chars

    def match(self, content: str, source_url: str, source_kind: str) -> list[RawMatch]:
        """
        Run every rule against a document.

        Args:
            content: Document text
            source_url: URL the content was fetched from
            source_kind: Label for the kind of document

        Returns:
            Raw matches in rule order, then position order
        """
        matches: list[RawMatch] = []
        for rule in self.rules:
            if rule.pattern is not None:
                matches.extend(self._match_pattern(rule, content, source_url, source_kind))
            elif rule.predicate(content):
                matches.append(RawMatch(
                    rule_id=rule.id,
                    value=rule.id,
                    context_window=content[: self.context_chars * 2],
                    source_url=source_url,
                    source_kind=source_kind,
                ))
        return matches

    def _match_pattern(
        self,
        rule: DetectionRule,
        content: str,
        source_url: str,
        source_kind: str,
    ) -> Iterable[RawMatch]:
        count = 0
        for m in rule.pattern.finditer(content):
            if count >= self.max_matches_per_rule:
                logger.debug("Match cap reached", rule=rule.id, source=source_url)
                break
            count += 1

            value = m.group(rule.value_group)
            if not value:
                continue
            start = max(0, m.start() - self.context_chars)
            end = min(len(content), m.end() + self.context_chars)
            yield RawMatch(
                rule_id=rule.id,
                value=value,
                context_window=content[start:end],
                source_url=source_url,
                source_kind=source_kind,
                position=m.start(),
            )


class FingerprintTable(Generic[T]):
    """
    Domain-keyed signature lookup.

    Entries keep their declaration order, which decides which entry wins
    when several partial matches apply.
    """

    def __init__(self, entries: Iterable[tuple[str, T]]):
        self._entries: tuple[tuple[str, T], ...] = tuple(
            (key.lower(), value) for key, value in entries
        )
        self._exact = dict(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key.lower() in self._exact

    def get(self, key: str) -> Optional[T]:
        return self._exact.get(key.lower())

    def lookup(self, domain: str) -> list[tuple[str, T]]:
        """
        Find the entries that describe a domain.

        An exact key match wins outright. Otherwise every key that contains,
        or is contained in, the domain is returned in table order.

        Args:
            domain: Hostname to classify

        Returns:
            Matching (key, value) pairs, empty if unknown
        """
        domain = domain.lower()
        if domain in self._exact:
            return [(domain, self._exact[domain])]
        return [
            (key, value) for key, value in self._entries
            if key in domain or domain in key
        ]

    def find_contained(self, text: str) -> Optional[tuple[str, T]]:
        """Return the first entry whose key occurs inside ``text``."""
        text = text.lower()
        for key, value in self._entries:
            if key in text:
                return key, value
        return None
