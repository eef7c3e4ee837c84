"""
Character-trigram cosine similarity between generated text and crawl snippets.

Score semantics:
  - per source: round(cosine * 100), half rounding up
  - similarity_score: the maximum over all sources (not the mean)
  - compared_source_ids: sources whose score is strictly above 10
  - passed: similarity_score < 70 (70 itself fails)

Text shorter than three characters has no trigrams and therefore scores 0
against everything.
"""

from __future__ import annotations

import math
import re
from collections import Counter
from typing import Any, Dict, Iterable, List, Mapping

PASS_THRESHOLD = 70
COMPARED_MIN_PCT = 10

_WS_RE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    return _WS_RE.sub(" ", (text or "").lower()).strip()


def trigram_counts(text: str) -> Counter:
    norm = normalize_text(text)
    return Counter(norm[i:i + 3] for i in range(len(norm) - 2))


def cosine_similarity(a: Mapping[str, int], b: Mapping[str, int]) -> float:
    if not a or not b:
        return 0.0
    dot = sum(count * b[gram] for gram, count in a.items() if gram in b)
    denom = math.sqrt(sum(v * v for v in a.values())) * math.sqrt(sum(v * v for v in b.values()))
    if denom == 0:
        return 0.0
    return dot / denom


def to_percent(similarity: float) -> int:
    return int(math.floor(similarity * 100 + 0.5))


def check_plagiarism(generated_text: str, sources: Iterable[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Compare *generated_text* against each source's ``snippet_text``.

    Args:
        generated_text: the new post body.
        sources: items with ``id`` and ``snippet_text``.

    Returns:
        {"similarity_score": int, "passed": bool, "compared_source_ids": list[str]}
    """
    sources = list(sources)
    if not sources:
        return {"similarity_score": 0, "passed": True, "compared_source_ids": []}

    generated = trigram_counts(generated_text)
    best = 0
    compared: List[str] = []
    for src in sources:
        pct = to_percent(cosine_similarity(generated, trigram_counts(src["snippet_text"])))
        if pct > COMPARED_MIN_PCT:
            compared.append(src["id"])
        best = max(best, pct)

    return {
        "similarity_score": best,
        "passed": best < PASS_THRESHOLD,
        "compared_source_ids": compared,
    }
