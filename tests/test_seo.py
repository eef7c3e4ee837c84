"""
SEO heuristic scorer: score bounds, mean, bands and suggestions.
"""

import math
import random

import pytest

from src.analysis.seo import (
    KEYWORD_IDEAL_BAND,
    KEYWORD_LOW_BAND,
    LINKS_MANY_BAND,
    LINKS_NONE_BAND,
    LINKS_ONE_BAND,
    META_FALLBACK_SCORE,
    META_IDEAL_BAND,
    SUGGEST_ADD_LINK,
    SUGGEST_HEADINGS,
    SUGGEST_ONE_MORE_LINK,
    SUGGEST_TITLE_SHORT,
    analyze_seo,
    keyword_density,
)

SUB_SCORES = (
    "keyword_density_score",
    "title_optimization_score",
    "meta_description_score",
    "readability_score",
    "internal_links_score",
)


def _in_band(value, band):
    low, high = band
    return low <= value < high


@pytest.mark.parametrize("seed", range(5))
@pytest.mark.parametrize(
    "title,content,location",
    [
        ("", "", ""),
        ("성수동 카페 후기", "성수동 카페 좋아요", "성수동 카페"),
        ("x" * 100, "word " * 600, "nowhere"),
        ("Cafe Review in Seoul", "## A\n\n## B\n\n[a](b) [c](d) [e](f)", "seoul"),
    ],
)
def test_scores_bounded_and_overall_is_rounded_mean(seed, title, content, location):
    result = analyze_seo(title, content, location, rng=random.Random(seed))
    for key in SUB_SCORES + ("overall_score",):
        assert 0 <= result[key] <= 100
    mean = sum(result[k] for k in SUB_SCORES) / 5
    assert result["overall_score"] == math.floor(mean + 0.5)


class TestKeyword:
    def test_density(self):
        assert keyword_density("cafe is a cafe", "cafe") == pytest.approx(50.0)
        assert keyword_density("", "cafe") == 0.0

    def test_ideal_band(self):
        content = "seoul " + "word " * 49
        result = analyze_seo("t", content, "seoul")
        assert _in_band(result["keyword_density_score"], KEYWORD_IDEAL_BAND)

    def test_low_band_adds_suggestion(self):
        result = analyze_seo("t", "word " * 300, "seoul")
        assert _in_band(result["keyword_density_score"], KEYWORD_LOW_BAND)
        assert any("seoul" in s and "본문" in s for s in result["suggestions"])


class TestTitle:
    def test_missing_keyword_suggested(self):
        result = analyze_seo("A nice afternoon out", "body", "성수동")
        assert any("제목" in s and "성수동" in s for s in result["suggestions"])
        assert result["title_optimization_score"] == 75

    def test_keyword_and_good_length(self):
        result = analyze_seo("성수동 카페 방문 후기입니다", "body", "성수동")
        assert result["title_optimization_score"] == 100

    def test_short_title(self):
        result = analyze_seo("성수동", "body", "성수동")
        assert result["title_optimization_score"] == 75
        assert SUGGEST_TITLE_SHORT in result["suggestions"]


class TestMetaAndReadability:
    def test_meta_ideal(self):
        content = "a" * 80 + "\n\nrest"
        assert _in_band(analyze_seo("t", content, "k")["meta_description_score"], META_IDEAL_BAND)

    def test_meta_too_short(self):
        assert analyze_seo("t", "short", "k")["meta_description_score"] == META_FALLBACK_SCORE

    def test_readability_full_marks(self):
        paragraphs = ["## Heading one", "## Heading two"] + ["word " * 130] * 4
        result = analyze_seo("t", "\n\n".join(paragraphs), "k")
        assert result["readability_score"] == 100
        assert SUGGEST_HEADINGS not in result["suggestions"]

    def test_readability_base(self):
        result = analyze_seo("t", "one short paragraph", "k")
        assert result["readability_score"] == 50
        assert SUGGEST_HEADINGS in result["suggestions"]


class TestLinks:
    def test_no_links(self):
        result = analyze_seo("t", "no links here", "k")
        assert _in_band(result["internal_links_score"], LINKS_NONE_BAND)
        assert SUGGEST_ADD_LINK in result["suggestions"]

    def test_one_link(self):
        result = analyze_seo("t", "see [here](https://example.com)", "k")
        assert _in_band(result["internal_links_score"], LINKS_ONE_BAND)
        assert SUGGEST_ONE_MORE_LINK in result["suggestions"]

    def test_two_links(self):
        result = analyze_seo("t", "[a](/a) and [b](/b)", "k")
        assert _in_band(result["internal_links_score"], LINKS_MANY_BAND)
