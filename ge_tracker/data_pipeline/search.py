"""
ge_tracker.data_pipeline.search — Name matching and ranking for item search.

Scores (higher ranks first)::

    exact name ............ 100   "rune sword" → "Rune sword"
    name prefix ...........  80   "rune"       → "Rune sword"
    any-word prefix .......  60   "sword"      → "Rune sword"
    substring .............  40   "une sw"     → "Rune sword"
    ordered characters ....  20   "rune"       → "Runite ore"

Anything else is excluded.  Ties go to the higher-volume item, then the
alphabetically first name.
"""

from __future__ import annotations

from typing import Iterable, List, Tuple

from ge_tracker.core.constants import (
    SEARCH_RESULT_LIMIT,
    SEARCH_SCORE_CONTAINS,
    SEARCH_SCORE_EXACT,
    SEARCH_SCORE_FUZZY,
    SEARCH_SCORE_PREFIX,
    SEARCH_SCORE_WORD_PREFIX,
)
from ge_tracker.domain.models import CatalogEntry


def _is_subsequence(needle: str, haystack: str) -> bool:
    chars = iter(haystack)
    return all(ch in chars for ch in needle)


def match_score(name: str, query: str) -> int:
    """Score ``name`` against ``query`` (case-insensitive); 0 means no match."""
    name = name.lower().strip()
    query = query.lower().strip()
    if not name or not query:
        return 0

    if name == query:
        return SEARCH_SCORE_EXACT
    if name.startswith(query):
        return SEARCH_SCORE_PREFIX
    if any(word.startswith(query) for word in name.split()):
        return SEARCH_SCORE_WORD_PREFIX
    if query in name:
        return SEARCH_SCORE_CONTAINS
    if _is_subsequence(query.replace(" ", ""), name):
        return SEARCH_SCORE_FUZZY
    return 0


def rank_items(
    entries: Iterable[CatalogEntry],
    query: str,
    limit: int = SEARCH_RESULT_LIMIT,
) -> List[CatalogEntry]:
    """Return the best ``limit`` matches for ``query``, best first."""
    scored: List[Tuple[int, CatalogEntry]] = []
    for entry in entries:
        score = match_score(entry.name, query)
        if score > 0:
            scored.append((score, entry))

    scored.sort(key=lambda pair: (-pair[0], -(pair[1].volume or 0), pair[1].name.lower()))
    return [entry for _, entry in scored[:limit]]
