"""
Relevance scoring for answer search.

Two strategies are kept on purpose, one per search family:

- ``frequency_score``: term occurrence counts, normalised assuming at most
  three hits per term (consultation answers)
- ``presence_score``: share of query terms present at all (forum answers)

Both are pure and return a value in [0, 1].
"""
import time
from contextlib import contextmanager
from typing import Callable, List

MAX_HITS_PER_TERM = 3

Scorer = Callable[[str, str], float]


def query_terms(query: str) -> List[str]:
    return [t for t in query.lower().split() if t]


def frequency_score(query: str, text: str) -> float:
    terms = query_terms(query)
    if not terms:
        return 0.0

    haystack = (text or "").lower()
    hits = sum(haystack.count(term) for term in terms)

    return max(0.0, min(hits / (len(terms) * MAX_HITS_PER_TERM), 1.0))


def presence_score(query: str, text: str) -> float:
    terms = query_terms(query)
    if not terms:
        return 0.0

    haystack = (text or "").lower()
    matched = sum(1 for term in terms if term in haystack)

    return round(matched / len(terms), 2)


class SearchTimer:
    elapsed_ms: int = 0


@contextmanager
def timed():
    """Measure a block in whole milliseconds (monotonic, never negative)."""
    timer = SearchTimer()
    start = time.perf_counter()
    try:
        yield timer
    finally:
        timer.elapsed_ms = max(0, int((time.perf_counter() - start) * 1000))
