"""Exact and fuzzy matching of stop names."""

from lagos_transit.matching.normalizers import is_blank, normalize_text
from lagos_transit.matching.stop_matcher import (
    MIN_SEARCH_SCORE,
    best_stop_score,
    find_stop_by_name,
    rank_stops,
    similarity_score,
)

__all__ = [
    # Matchers
    "find_stop_by_name",
    "rank_stops",
    # Scoring
    "similarity_score",
    "best_stop_score",
    "MIN_SEARCH_SCORE",
    # Normalizers
    "normalize_text",
    "is_blank",
]
