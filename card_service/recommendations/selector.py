"""
Card selection: picks the single best next card for a visitor.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..models import ContentItem, VisitorState
from .engine import RelevanceScorer


@dataclass(slots=True)
class SelectionResult:
    """Outcome of one selection round."""

    item: Optional[ContentItem]
    was_all_seen_fallback: bool = False
    score: Optional[float] = None
    scored_count: int = 0

    @property
    def has_item(self) -> bool:
        return self.item is not None

    @classmethod
    def empty(cls) -> "SelectionResult":
        """No candidates matched; a legitimate 'no card' result."""
        return cls(item=None)


class CardSelector:
    """Ranks candidates with a relevance scorer, preferring unseen items."""

    def __init__(self, scorer: RelevanceScorer):
        self.scorer = scorer

    def rank(self, state: VisitorState, candidates: Sequence[ContentItem]) -> List[Tuple[ContentItem, float]]:
        """Score candidates and sort them best first (stable on ties)."""
        scored = [(item, self.scorer.score(item, state)) for item in candidates]
        scored.sort(key=lambda pair: pair[1], reverse=True)
        return scored

    def select(self, state: VisitorState, candidates: Sequence[ContentItem]) -> SelectionResult:
        if not candidates:
            return SelectionResult.empty()

        delivered = set(state.delivered_items)
        unseen = [item for item in candidates if item.id not in delivered]
        all_seen = not unseen
        pool = list(candidates) if all_seen else unseen

        ranked = self.rank(state, pool)
        best_item, best_score = ranked[0]
        return SelectionResult(
            item=best_item,
            was_all_seen_fallback=all_seen,
            score=best_score,
            scored_count=len(ranked),
        )
