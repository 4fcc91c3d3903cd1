"""
Relevance scoring primitives.

This module intentionally lives inside card_service/ so it can be shared by
the web application, batch jobs, or any future CLI tooling without
introducing Flask dependencies.

A score is the sum of independent signals (uniqueness, recency, type match,
length match, language match), plus a small uniform jitter, clamped at zero,
plus a cold-start boost for visitors with very little history.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, Mapping, Optional, Protocol, Sequence
import random

from ..models import ContentItem, VisitorState


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Core data structures
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class RelevanceScore:
    """Score information for a single (item, visitor) pair."""

    score: float
    breakdown: Dict[str, float] = field(default_factory=dict)
    jitter: float = 0.0
    cold_start_boost: float = 0.0

    @property
    def base(self) -> float:
        """Sum of the signals before jitter and boost."""
        return sum(self.breakdown.values())


class ScoringSignal(Protocol):
    """Interface for one additive relevance signal."""

    name: str
    weight: float

    def score(self, item: ContentItem, state: VisitorState, now: datetime) -> float:
        """Return a value in ``[0, weight]``."""


# ---------------------------------------------------------------------------
# Signals
# ---------------------------------------------------------------------------


class UniquenessSignal:
    """Full weight for items the visitor has not been shown yet."""

    name = "uniqueness"

    def __init__(self, weight: float = 40.0):
        self.weight = weight

    def score(self, item: ContentItem, state: VisitorState, now: datetime) -> float:
        return 0.0 if state.has_seen(item.id) else self.weight


class RecencySignal:
    """Linear decay of ``decay_per_week`` points for every week of age."""

    name = "recency"

    def __init__(self, weight: float = 20.0, decay_per_week: float = 2.0):
        self.weight = weight
        self.decay_per_week = decay_per_week

    def score(self, item: ContentItem, state: VisitorState, now: datetime) -> float:
        age_days = item.age_days(now)
        if age_days is None:
            return 0.0
        value = max(0.0, self.weight - (age_days / 7.0) * self.decay_per_week)
        return min(self.weight, value)


class _CounterRatioSignal:
    """Weight scaled by the share of past deliveries with the same attribute."""

    name = ""
    attribute = ""

    def __init__(self, weight: float):
        self.weight = weight

    def _counters(self, state: VisitorState) -> Mapping[str, int]:
        raise NotImplementedError

    def score(self, item: ContentItem, state: VisitorState, now: datetime) -> float:
        value = getattr(item, self.attribute)
        if not value:
            return 0.0
        counters = self._counters(state)
        total = sum(counters.values()) or 1
        return self.weight * counters.get(value, 0) / total


class TypeMatchSignal(_CounterRatioSignal):
    name = "type_match"
    attribute = "content_type"

    def __init__(self, weight: float = 20.0):
        super().__init__(weight)

    def _counters(self, state: VisitorState) -> Mapping[str, int]:
        return state.preferences.content_types


class LengthMatchSignal(_CounterRatioSignal):
    name = "length_match"
    attribute = "reading_length"

    def __init__(self, weight: float = 10.0):
        super().__init__(weight)

    def _counters(self, state: VisitorState) -> Mapping[str, int]:
        return state.preferences.reading_lengths


class LanguageMatchSignal:
    """Full weight when the item language is one the visitor has seen."""

    name = "language_match"

    def __init__(self, weight: float = 10.0):
        self.weight = weight

    def score(self, item: ContentItem, state: VisitorState, now: datetime) -> float:
        if item.language and item.language in state.languages:
            return self.weight
        return 0.0


# ---------------------------------------------------------------------------
# Scorer
# ---------------------------------------------------------------------------


class RelevanceScorer:
    """Aggregates signals into a single sortable score.

    The injected ``rng`` is the only source of non-determinism; pass a seeded
    ``random.Random`` (or ``jitter=0``) to get reproducible scores.
    """

    def __init__(
        self,
        signals: Sequence[ScoringSignal],
        rng: Optional[random.Random] = None,
        now: Optional[Callable[[], datetime]] = None,
        jitter: float = 2.5,
        cold_start_threshold: int = 5,
        cold_start_boost: float = 10.0,
        cold_start_recent_days: float = 30.0,
        likes_divisor: float = 10.0,
    ):
        if not signals:
            raise ValueError("At least one scoring signal is required.")
        self.signals = list(signals)
        self.rng = rng or random.Random()
        self.now = now or _utcnow
        self.jitter = max(0.0, jitter)
        self.cold_start_threshold = cold_start_threshold
        self.cold_start_boost = cold_start_boost
        self.cold_start_recent_days = cold_start_recent_days
        self.likes_divisor = likes_divisor

    @property
    def max_base_score(self) -> float:
        return sum(signal.weight for signal in self.signals)

    def explain(self, item: ContentItem, state: VisitorState) -> RelevanceScore:
        now = self.now()
        breakdown = {signal.name: signal.score(item, state, now) for signal in self.signals}
        jitter = self.rng.uniform(-self.jitter, self.jitter) if self.jitter else 0.0
        relevance = max(0.0, sum(breakdown.values()) + jitter)
        boost = self._cold_start_boost(item, state, now)
        return RelevanceScore(
            score=relevance + boost,
            breakdown=breakdown,
            jitter=jitter,
            cold_start_boost=boost,
        )

    def score(self, item: ContentItem, state: VisitorState) -> float:
        return self.explain(item, state).score

    # Internals ----------------------------------------------------------------

    def _cold_start_boost(self, item: ContentItem, state: VisitorState, now: datetime) -> float:
        if not state.is_cold_start(self.cold_start_threshold):
            return 0.0
        age_days = item.age_days(now)
        if age_days is not None and age_days < self.cold_start_recent_days:
            return self.cold_start_boost
        if item.likes:
            return min(self.cold_start_boost, item.likes / self.likes_divisor)
        return 0.0


def build_default_signals() -> list:
    return [
        UniquenessSignal(),
        RecencySignal(),
        TypeMatchSignal(),
        LengthMatchSignal(),
        LanguageMatchSignal(),
    ]


def build_default_scorer(
    rng: Optional[random.Random] = None,
    now: Optional[Callable[[], datetime]] = None,
) -> RelevanceScorer:
    """Factory for the default five-signal scorer used by the card engine."""
    return RelevanceScorer(signals=build_default_signals(), rng=rng, now=now)
