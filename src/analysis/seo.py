"""
Rule-based SEO scoring of a generated post.

Five sub-scores, each clamped to 0..100, plus their rounded mean. Banded
scores pick a random value inside a fixed half-open range, so only the band
is stable between runs; pass ``rng`` for reproducible numbers.
"""

from __future__ import annotations

import math
import random
import re
from typing import Any, Dict, List, Optional

_HEADING_RE = re.compile(r"^#{1,3}\s", re.MULTILINE)
_LINK_RE = re.compile(r"\[.*?\]\(.*?\)")

# (low, high) half-open bands
KEYWORD_IDEAL_BAND = (90, 100)
KEYWORD_OK_BAND = (60, 80)
KEYWORD_LOW_BAND = (30, 50)
META_IDEAL_BAND = (85, 100)
META_OK_BAND = (60, 75)
META_FALLBACK_SCORE = 50
LINKS_MANY_BAND = (80, 100)
LINKS_ONE_BAND = (50, 70)
LINKS_NONE_BAND = (20, 40)

SUGGEST_KEYWORD = '"{keyword}" 키워드를 본문에 더 자연스럽게 포함시켜 주세요.'
SUGGEST_TITLE_KEYWORD = '제목에 "{keyword}" 키워드를 포함시켜 주세요.'
SUGGEST_TITLE_LONG = "제목이 너무 깁니다. 60자 이내로 줄여주세요."
SUGGEST_TITLE_SHORT = "제목이 너무 짧습니다. 10자 이상으로 작성해주세요."
SUGGEST_META = "첫 단락을 50-160자 사이로 작성하면 메타 설명으로 활용하기 좋습니다."
SUGGEST_HEADINGS = "소제목(##)을 2개 이상 사용하면 가독성이 향상됩니다."
SUGGEST_LENGTH = "본문을 300단어 이상으로 작성해주세요."
SUGGEST_ONE_MORE_LINK = "내부 링크를 1개 더 추가하면 SEO에 도움이 됩니다."
SUGGEST_ADD_LINK = "관련 글이나 참고 링크를 본문에 추가해주세요."


def _clamp(value: int) -> int:
    return min(100, max(0, value))


def _band(rng: random.Random, band: tuple) -> int:
    low, high = band
    return rng.randrange(low, high)


def keyword_density(content: str, keyword: str) -> float:
    """Non-overlapping keyword hits per 100 whitespace-delimited words."""
    words = content.lower().split()
    if not words or not keyword:
        return 0.0
    return content.lower().count(keyword.lower()) / len(words) * 100


def _keyword_score(content: str, location_name: str, rng, suggestions: List[str]) -> int:
    density = keyword_density(content, location_name)
    if 1 <= density <= 3:
        return _band(rng, KEYWORD_IDEAL_BAND)
    if density > 0.5:
        return _band(rng, KEYWORD_OK_BAND)
    suggestions.append(SUGGEST_KEYWORD.format(keyword=location_name))
    return _band(rng, KEYWORD_LOW_BAND)


def _title_score(title: str, location_name: str, suggestions: List[str]) -> int:
    score = 50
    if location_name.lower() in title.lower():
        score += 25
    else:
        suggestions.append(SUGGEST_TITLE_KEYWORD.format(keyword=location_name))
    if 10 <= len(title) <= 60:
        score += 25
    elif len(title) > 60:
        suggestions.append(SUGGEST_TITLE_LONG)
    else:
        suggestions.append(SUGGEST_TITLE_SHORT)
    return score


def _meta_score(content: str, rng, suggestions: List[str]) -> int:
    # first blank-line separated block stands in for the meta description
    first = content.split("\n\n")[0]
    if 50 <= len(first) <= 160:
        return _band(rng, META_IDEAL_BAND)
    if len(first) >= 30:
        return _band(rng, META_OK_BAND)
    suggestions.append(SUGGEST_META)
    return META_FALLBACK_SCORE


def _readability_score(content: str, suggestions: List[str]) -> int:
    paragraphs = [p for p in content.split("\n\n") if p]
    headings = _HEADING_RE.findall(content)
    word_count = len(content.split())

    score = 50
    if len(paragraphs) >= 5:
        score += 15
    if len(headings) >= 2:
        score += 15
    else:
        suggestions.append(SUGGEST_HEADINGS)
    if word_count >= 300:
        score += 10
    else:
        suggestions.append(SUGGEST_LENGTH)
    if word_count >= 500:
        score += 10
    return score


def _links_score(content: str, rng, suggestions: List[str]) -> int:
    links = len(_LINK_RE.findall(content))
    if links >= 2:
        return _band(rng, LINKS_MANY_BAND)
    if links == 1:
        suggestions.append(SUGGEST_ONE_MORE_LINK)
        return _band(rng, LINKS_ONE_BAND)
    suggestions.append(SUGGEST_ADD_LINK)
    return _band(rng, LINKS_NONE_BAND)


def analyze_seo(
    title: str,
    content_markdown: str,
    location_name: str,
    rng: Optional[random.Random] = None,
) -> Dict[str, Any]:
    rng = rng or random.Random()
    title = title or ""
    content = content_markdown or ""
    location_name = location_name or ""
    suggestions: List[str] = []

    scores = {
        "keyword_density_score": _clamp(_keyword_score(content, location_name, rng, suggestions)),
        "title_optimization_score": _clamp(_title_score(title, location_name, suggestions)),
        "meta_description_score": _clamp(_meta_score(content, rng, suggestions)),
        "readability_score": _clamp(_readability_score(content, suggestions)),
        "internal_links_score": _clamp(_links_score(content, rng, suggestions)),
    }
    mean = sum(scores.values()) / len(scores)
    scores["overall_score"] = int(math.floor(mean + 0.5))
    scores["suggestions"] = suggestions
    return scores
