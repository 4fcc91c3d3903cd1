"""
Recommendation package for personalized card ordering.

Provides the relevance scorer and the card selector, reusable by the web
layer or any batch job without creating Flask dependencies.
"""

from .engine import (
    LanguageMatchSignal,
    LengthMatchSignal,
    RecencySignal,
    RelevanceScore,
    RelevanceScorer,
    ScoringSignal,
    TypeMatchSignal,
    UniquenessSignal,
    build_default_scorer,
    build_default_signals,
)
from .selector import CardSelector, SelectionResult

__all__ = [
    "CardSelector",
    "LanguageMatchSignal",
    "LengthMatchSignal",
    "RecencySignal",
    "RelevanceScore",
    "RelevanceScorer",
    "ScoringSignal",
    "SelectionResult",
    "TypeMatchSignal",
    "UniquenessSignal",
    "build_default_scorer",
    "build_default_signals",
]
