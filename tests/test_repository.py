"""
Versioned-entity repository: natural-key upserts, post-version numbering,
photo cap and two-phase photo reorder, latest-analysis lookup.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import func
from sqlmodel import select

from src.db.engine import session_scope
from src.db.errors import PhotoLimitExceeded
from src.db.models import MAX_PHOTOS_PER_POST, CrawlSummary, MonetizationTip, PostVersion, StyleProfile
from src.store import analyses, crawl, learning, monetization, photos, posts, versions


def _count(model) -> int:
    with session_scope() as s:
        return s.exec(select(func.count()).select_from(model)).one()


class TestUpserts:
    def _assert_single_row_updated(self, first, second):
        assert second["id"] == first["id"]
        assert second["created_at"] == first["created_at"]
        assert second["updated_at"] >= first["updated_at"]

    def test_style_profile(self, user_id, category):
        first = learning.upsert_style_profile(user_id, category["id"], '{"tone": "casual"}', 5)
        second = learning.upsert_style_profile(user_id, category["id"], '{"tone": "formal"}', 6)
        self._assert_single_row_updated(first, second)
        stored = learning.get_style_profile(user_id, category["id"])
        assert stored["profile_json"] == '{"tone": "formal"}'
        assert stored["sample_count"] == 6
        assert _count(StyleProfile) == 1

    def test_crawl_summary(self, user_id, post):
        first = crawl.upsert_crawl_summary(user_id, post["id"], 3, 4.2, "first")
        second = crawl.upsert_crawl_summary(user_id, post["id"], 17, None, "second")
        self._assert_single_row_updated(first, second)
        stored = crawl.get_crawl_summary_by_post(user_id, post["id"])
        assert stored["summary_text"] == "second"
        assert stored["average_rating"] is None
        assert _count(CrawlSummary) == 1

    def test_monetization_tip(self, user_id, category):
        first = monetization.upsert_monetization_tip(user_id, category["id"], "애드센스", "첫 번째 팁")
        second = monetization.upsert_monetization_tip(user_id, category["id"], "제휴 마케팅", "두 번째 팁")
        self._assert_single_row_updated(first, second)
        assert monetization.get_monetization_tip(user_id, category["id"])["tip_text"] == "두 번째 팁"
        assert _count(MonetizationTip) == 1

    def test_keys_are_per_user(self, user_id, category):
        mine = learning.upsert_style_profile(user_id, category["id"], "{}", 5)
        theirs = learning.upsert_style_profile("other", category["id"], "{}", 5)
        assert mine["id"] != theirs["id"]


class TestPostVersions:
    def test_numbers_are_monotonic(self, user_id, post, long_body):
        v1 = versions.create_post_version_next(user_id, post["id"], "첫 번째", long_body)
        v2 = versions.create_post_version_next(user_id, post["id"], "두 번째", long_body, prompt_note="더 짧게")
        assert v1["version_number"] == 1
        assert v2["version_number"] == 2
        assert v2["prompt_note"] == "더 짧게"

        listed = versions.list_post_versions(user_id, post["id"])
        assert [v["version_number"] for v in listed] == [2, 1]
        assert versions.get_latest_post_version(user_id, post["id"])["id"] == v2["id"]
        assert versions.get_post_version_by_id(v1["id"])["title"] == "첫 번째"

    def test_numbering_is_per_post(self, user_id, category, post, long_body):
        other = posts.create_post(user_id, category["id"], "다른 장소", "메모")
        versions.create_post_version_next(user_id, post["id"], "a", long_body)
        v = versions.create_post_version_next(user_id, other["id"], "b", long_body)
        assert v["version_number"] == 1


class TestPhotos:
    def _add(self, user_id, post_id, n):
        return photos.add_photo_with_next_sort_order(user_id, post_id, f"p{n}.jpg", f"u/p{n}.jpg", f"memo {n}")

    def test_sort_order_appends(self, user_id, post):
        added = [self._add(user_id, post["id"], i) for i in range(3)]
        assert [p["sort_order"] for p in added] == [1, 2, 3]

    def test_cap_at_twenty(self, user_id, post):
        for i in range(MAX_PHOTOS_PER_POST):
            self._add(user_id, post["id"], i)
        with pytest.raises(PhotoLimitExceeded) as exc:
            self._add(user_id, post["id"], 21)
        assert "max_photos_per_post_exceeded" in str(exc.value)
        assert len(photos.list_photos_by_post(user_id, post["id"])) == MAX_PHOTOS_PER_POST

    def test_reorder(self, user_id, post):
        a, b, c = (self._add(user_id, post["id"], i) for i in range(3))
        result = photos.reorder_photos(user_id, post["id"], [c["id"], a["id"], b["id"]])
        assert [p["id"] for p in result] == [c["id"], a["id"], b["id"]]
        assert [p["sort_order"] for p in result] == [1, 2, 3]

    def test_delete_scoped_to_post(self, user_id, post):
        photo = self._add(user_id, post["id"], 1)
        assert photos.delete_photo(photo["id"], user_id, "another-post") is None
        deleted = photos.delete_photo(photo["id"], user_id, post["id"])
        assert deleted["id"] == photo["id"]
        assert photos.get_photo(photo["id"]) is None


class TestLatestAnalyses:
    def test_latest_plagiarism_uses_insertion_order_on_ties(self, user_id, post, long_body):
        version = versions.create_post_version_next(user_id, post["id"], "t", long_body)
        analyses.create_plagiarism_check(
            user_id, post["id"], version["id"],
            {"similarity_score": 10, "passed": True, "compared_source_ids": []},
        )
        second = analyses.create_plagiarism_check(
            user_id, post["id"], version["id"],
            {"similarity_score": 75, "passed": False, "compared_source_ids": ["s1"]},
        )
        latest = analyses.get_latest_plagiarism_check(user_id, post["id"])
        assert latest["id"] == second["id"]
        assert latest["passed"] is False
        assert latest["compared_source_ids"] == ["s1"]

    def test_latest_seo_filtered_by_version(self, user_id, post, long_body):
        v1 = versions.create_post_version_next(user_id, post["id"], "t", long_body)
        v2 = versions.create_post_version_next(user_id, post["id"], "t", long_body)
        scores = {
            "keyword_density_score": 40, "title_optimization_score": 75,
            "meta_description_score": 50, "readability_score": 65,
            "internal_links_score": 30, "overall_score": 52,
            "suggestions": ["제목에 키워드를 넣어주세요"],
        }
        first = analyses.create_seo_analysis(user_id, post["id"], v1["id"], scores)
        analyses.create_seo_analysis(user_id, post["id"], v2["id"], scores)
        latest_v1 = analyses.get_latest_seo_analysis(user_id, post["id"], v1["id"])
        assert latest_v1["id"] == first["id"]
        assert latest_v1["suggestions"] == ["제목에 키워드를 넣어주세요"]
        assert analyses.get_latest_seo_analysis(user_id, "missing-post") is None


class TestConcurrency:
    WORKERS = 12

    def test_parallel_versions_get_consecutive_numbers(self, user_id, post, long_body):
        def make(i):
            return versions.create_post_version_next(user_id, post["id"], f"v{i}", long_body)

        with ThreadPoolExecutor(max_workers=self.WORKERS) as pool:
            results = list(pool.map(make, range(self.WORKERS)))

        assert sorted(r["version_number"] for r in results) == list(range(1, self.WORKERS + 1))
        assert _count(PostVersion) == self.WORKERS

    def test_parallel_upserts_share_one_row(self, user_id, category):
        def upsert(i):
            return learning.upsert_style_profile(user_id, category["id"], f'{{"n": {i}}}', 5 + i)

        with ThreadPoolExecutor(max_workers=self.WORKERS) as pool:
            results = list(pool.map(upsert, range(self.WORKERS)))

        assert len({r["id"] for r in results}) == 1
        assert _count(StyleProfile) == 1
