from typing import TYPE_CHECKING

from rapidfuzz.distance import Levenshtein

from lagos_transit.matching.normalizers import is_blank, normalize_text
from lagos_transit.models.transit import Stop

if TYPE_CHECKING:
    from lagos_transit.data.catalog import TransitCatalog

# Tiered scores (0-100). Each tier sits above every score the next tier can produce.
EXACT_SCORE = 100.0
PREFIX_SCORE = 90.0
SUBSTRING_SCORE = 80.0
EDIT_DISTANCE_WEIGHT = 70.0

# Stops must score strictly above this to appear in search results
MIN_SEARCH_SCORE = 30.0


def similarity_score(query: str, target: str) -> float:
    """Score how well a query matches a stop name.

    Tiers, checked in order on normalized text:
    1. Exact match -> 100
    2. Target starts with query -> 90
    3. Target contains query -> 80
    4. Levenshtein similarity scaled to 0-70

    Examples:
        similarity_score("ikeja", "Ikeja") -> 100.0
        similarity_score("ike", "Ikeja Along") -> 90.0
        similarity_score("along", "Ikeja Along") -> 80.0
    """
    query_normalized = normalize_text(query)
    target_normalized = normalize_text(target)

    if query_normalized == target_normalized:
        return EXACT_SCORE
    if target_normalized.startswith(query_normalized):
        return PREFIX_SCORE
    if query_normalized in target_normalized:
        return SUBSTRING_SCORE

    max_length = max(len(query_normalized), len(target_normalized))
    if max_length == 0:
        return EXACT_SCORE
    distance = Levenshtein.distance(query_normalized, target_normalized)
    return ((max_length - distance) / max_length) * EDIT_DISTANCE_WEIGHT


def best_stop_score(query: str, stop: Stop) -> float:
    """Best similarity of a query against a stop's name and aliases."""
    return max(similarity_score(query, name) for name in stop.names)


def find_stop_by_name(name: str, catalog: "TransitCatalog") -> Stop | None:
    """Resolve a name or alias to a stop (case- and whitespace-insensitive).

    Returns None when nothing matches exactly.
    """
    return catalog.stop_by_name(name)


def rank_stops(
    query: str,
    catalog: "TransitCatalog",
    limit: int = 5,
    min_score: float = MIN_SEARCH_SCORE,
) -> list[tuple[Stop, float]]:
    """Rank catalog stops against a free-text query.

    Stops scoring at or below `min_score` are dropped. The rest are sorted
    by score descending; equal scores keep catalog order.

    Returns:
        Up to `limit` (stop, score) pairs.
    """
    if is_blank(query):
        return []

    scored: list[tuple[Stop, float]] = []
    for stop in catalog.stops:
        score = best_stop_score(query, stop)
        if score > min_score:
            scored.append((stop, score))

    # list.sort is stable, so ties stay in catalog order
    scored.sort(key=lambda item: -item[1])
    return scored[:limit]
