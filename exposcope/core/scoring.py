"""Finding deduplication and per-check scoring."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Hashable, Iterable, Mapping, TypeVar

from exposcope.core.logger import get_logger
from exposcope.models.finding import Severity

logger = get_logger(__name__)

T = TypeVar("T")

BASELINE_SCORE = 100


class FindingDeduplicator:
    """
    Collapses findings that share an identity key.

    Keeps the first occurrence, so output order is first-seen order.
    """

    def __init__(self, key_func: Callable[[T], Hashable] = lambda f: f.dedup_key):
        """
        Initialize deduplicator.

        Args:
            key_func: Function extracting the identity key of a finding
        """
        self.key_func = key_func
        self._seen: set[Hashable] = set()

    def add(self, item: T) -> bool:
        """
        Record a finding.

        Returns:
            True if the finding was new, False if already seen
        """
        key = self.key_func(item)
        if key in self._seen:
            return False
        self._seen.add(key)
        return True

    def deduplicate(self, items: Iterable[T]) -> list[T]:
        """
        Deduplicate findings against everything seen so far.

        Args:
            items: Findings to deduplicate

        Returns:
            New (unseen) findings in input order
        """
        return [item for item in items if self.add(item)]

    @property
    def count(self) -> int:
        """Number of distinct findings seen."""
        return len(self._seen)


def deduplicate_findings(items: Iterable[T], key_func: Callable[[T], Hashable] = lambda f: f.dedup_key) -> list[T]:
    """Convenience wrapper that deduplicates a single list."""
    items = list(items)
    unique = FindingDeduplicator(key_func).deduplicate(items)
    if len(unique) != len(items):
        logger.debug(
            "Deduplication complete",
            total=len(items),
            unique=len(unique),
            duplicates=len(items) - len(unique),
        )
    return unique


@dataclass(frozen=True)
class ScoreWeights:
    """
    Check-specific scoring table.

    Every check shares the same shape: start at 100, subtract a fixed
    penalty per finding of each kind, add a capped bonus for positive
    signals, and clamp to [0, 100].
    """
    penalties: Mapping[str, int] = field(default_factory=dict)
    bonus_per_signal: int = 0
    bonus_cap: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "penalties", MappingProxyType(dict(self.penalties)))

    def penalty(self, kind: str) -> int:
        return self.penalties.get(kind, 0)


def compute_score(
    counts: Mapping[str, int],
    weights: ScoreWeights,
    signals: int = 0,
) -> int:
    """
    Compute a 0-100 score from per-kind finding counts.

    Args:
        counts: Number of findings per kind (severity name or issue kind)
        weights: Check-specific weights
        signals: Number of positive signals earning a bonus

    Returns:
        Score clamped to [0, 100]
    """
    score = BASELINE_SCORE
    for kind, count in counts.items():
        score -= weights.penalty(kind) * count
    if signals > 0 and weights.bonus_per_signal:
        score += min(weights.bonus_cap, signals * weights.bonus_per_signal)
    return max(0, min(BASELINE_SCORE, score))


def severity_summary(items: Iterable[object]) -> dict[str, int]:
    """Count findings per severity tier, every tier present."""
    counts = Counter(getattr(item, "severity") for item in items)
    return {severity.value: counts.get(severity, 0) for severity in Severity}


def severity_score(items: Iterable[object], weights: ScoreWeights) -> int:
    """Score a list of findings carrying a ``severity`` attribute."""
    return compute_score(severity_summary(items), weights)


# Sensitive file exposure
EXPOSED_FILES_WEIGHTS = ScoreWeights(penalties={
    Severity.CRITICAL.value: 40,
    Severity.HIGH.value: 20,
    Severity.MEDIUM.value: 10,
})

# Compliance-style weights for leaked secrets
SECRETS_WEIGHTS = ScoreWeights(penalties={
    Severity.CRITICAL.value: 15,
    Severity.HIGH.value: 8,
    Severity.MEDIUM.value: 3,
    Severity.LOW.value: 1,
})

LINK_AUDIT_WEIGHTS = ScoreWeights(penalties={
    "broken_link": 10,
    "mixed_content": 15,
})

# Insecure resources cost 5 each; each detected CDN earns 2, capped at 10.
# Resource and domain volume penalties are computed by the CDN check itself.
CDN_WEIGHTS = ScoreWeights(
    penalties={
        "insecure_resource": 5,
        "excess_resources": 1,
        "excess_domains": 1,
    },
    bonus_per_signal=2,
    bonus_cap=10,
)
