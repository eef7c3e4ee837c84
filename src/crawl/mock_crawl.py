"""
Mock crawl provider.

No real scraping happens: for a location name it fabricates 17 review
snippets (naver 5, kakao 5, google 5, blog 2) with plausible ratings, and a
Korean summary of them. The output has the same shape a real crawler would
hand to the crawl store.
"""

from __future__ import annotations

import math
import random
from typing import Any, Dict, List, Optional

from src.log import get_logger
from src.store.crawl import replace_crawl_sources

logger = get_logger(__name__)

# (provider, count, url template, base id, rating low, rating span); rating = low + random * span
_PROVIDERS = (
    ("naver", 5, "https://map.naver.com/place/{n}", 1000000, 3.5, 1.5),
    ("kakao", 5, "https://place.map.kakao.com/{n}", 2000000, 3.0, 2.0),
    ("google", 5, "https://maps.google.com/place/{n}", 3000000, 3.0, 2.0),
)

_SNIPPETS = {
    "naver": (
        "{loc} 방문 후기 - 분위기가 정말 좋고 음식도 맛있었어요. 특히 인테리어가 감각적이라 사진 찍기에도 좋습니다.",
        "{loc} 추천! 주말에 방문했는데 웨이팅이 좀 있었지만 그만한 가치가 있었습니다.",
        "{loc} 평일 점심에 다녀왔어요. 가성비 좋고 직원분들 친절합니다.",
        "{loc} 재방문 의사 100%! 메뉴가 다양하고 맛도 일정해서 만족스럽습니다.",
        "{loc} 데이트 코스로 딱! 조용하고 분위기 있는 곳이에요.",
    ),
    "kakao": (
        "{loc} - 위치가 좋고 접근성이 뛰어납니다. 주차도 편리해요.",
        "{loc} 리뷰: 서비스 퀄리티가 높고 가격대비 만족도 높은 곳입니다.",
        "{loc} 한 줄 평: 재방문하고 싶은 곳. 특히 디저트 추천합니다.",
        "{loc} 방문기: 아이와 함께 방문하기 좋은 곳이에요. 키즈존도 있습니다.",
        "{loc} 후기: 깔끔한 인테리어와 맛있는 음식, 합리적인 가격이 매력적입니다.",
    ),
    "google": (
        "Great experience at {loc}. The atmosphere is wonderful and the food quality is excellent.",
        "{loc} is a must-visit. Friendly staff and delicious menu options.",
        "Visited {loc} last weekend. A bit crowded but worth the wait.",
        "{loc} review: Clean, well-organized, and great service. Highly recommended.",
        "{loc} - One of the best spots in the area. Will definitely come back.",
    ),
}

_BLOG_SNIPPETS = (
    "[{loc} 방문 후기] 오늘은 요즘 핫한 {loc}에 다녀왔어요! 솔직히 기대 이상이었습니다. "
    "분위기부터 음식, 서비스까지 모두 만족스러웠고, 다음에 또 방문하고 싶은 곳이에요. "
    "사진과 함께 자세한 후기를 남깁니다.",
    "[솔직 후기] {loc} 가볼만한 곳? 최근 {loc}을 방문했는데요, SNS에서 본 것처럼 인테리어가 "
    "예쁘고 사진 찍기 좋은 곳이었어요. 메뉴 구성도 다양하고 맛도 괜찮았습니다. 다만 주말에는 "
    "웨이팅이 좀 길 수 있으니 평일 방문을 추천합니다.",
)
_BLOG_COUNT = 2


def _snippet(location: str, provider: str, index: int) -> str:
    templates = _SNIPPETS.get(provider, ())
    if index <= len(templates):
        return templates[index - 1].format(loc=location)
    return f"{location} 리뷰 #{index}"


def generate_mock_crawl_data(location: str, rng: Optional[random.Random] = None) -> List[Dict[str, Any]]:
    """17 sources as dicts with provider / source_url / snippet_text / rating."""
    rng = rng or random
    sources: List[Dict[str, Any]] = []
    for provider, count, url, base_id, low, span in _PROVIDERS:
        for i in range(1, count + 1):
            sources.append({
                "provider": provider,
                "source_url": url.format(n=base_id + i),
                "snippet_text": _snippet(location, provider, i),
                "rating": low + rng.random() * span,
            })
    for i in range(1, _BLOG_COUNT + 1):
        sources.append({
            "provider": "blog",
            "source_url": f"https://blog.naver.com/reviewer{i}/post{4000000 + i}",
            "snippet_text": _BLOG_SNIPPETS[i - 1].format(loc=location),
            "rating": None,
        })
    return sources


def generate_mock_summary(location: str, sources: List[Dict[str, Any]]) -> Dict[str, Any]:
    """total_count, average_rating (one decimal, None when nothing is rated), summary_text."""
    rated = [s["rating"] for s in sources if s.get("rating") is not None]
    average = math.floor(sum(rated) / len(rated) * 10 + 0.5) / 10 if rated else None

    counts = {p: sum(1 for s in sources if s["provider"] == p) for p in ("naver", "kakao", "google", "blog")}
    text = (
        f"{location}에 대해 총 {len(sources)}개의 자료를 수집했습니다. "
        f"네이버 {counts['naver']}건, 카카오 {counts['kakao']}건, 구글 {counts['google']}건, "
        f"블로그 {counts['blog']}건의 리뷰와 정보를 분석했습니다."
    )
    if average:
        text += f" 평균 평점은 {average}점입니다."
    text += " 대체로 긍정적인 평가가 많으며, 분위기와 서비스에 대한 언급이 자주 등장합니다."
    return {"total_count": len(sources), "average_rating": average, "summary_text": text}


def run_crawl(user_id: str, post: Dict[str, Any]) -> Dict[str, Any]:
    """Re-crawl a post: previous sources are replaced, the summary is upserted."""
    sources = generate_mock_crawl_data(post["location_name"])
    summary = generate_mock_summary(post["location_name"], sources)
    result = replace_crawl_sources(user_id, post["id"], sources, summary)
    logger.info("crawl post=%s sources=%d", post["id"], len(result["sources"]))
    return result
