"""
Generation workflow with a mocked LLM client: persistence of the four
writes, failure modes, style-profile learning and analysis re-runs.
"""

import json

import pytest

from src.crawl import run_crawl
from src.generation import orchestrator
from src.generation.content import parse_post_response
from src.store import analyses, learning, photos, posts, versions
from src.utils.errors import NotFoundError, PreconditionFailed, ProviderError, ProviderNotConfigured

SAMPLE_TEXT = "나" * 300


class TestGeneratePost:
    def test_persists_version_post_and_analyses(self, user_id, post, mock_llm_client):
        photos.add_photo_with_next_sort_order(user_id, post["id"], "latte.jpg", "u/latte.jpg", "라떼 아트")
        run_crawl(user_id, post)

        result = orchestrator.generate_post(user_id, post["id"], client=mock_llm_client)

        assert result["version"]["version_number"] == 1
        assert result["post"]["status"] == "generated"
        assert result["post"]["title"] == "성수동 카페 방문 후기"
        assert result["plagiarism_check"]["version_id"] == result["version"]["id"]
        assert result["seo_analysis"]["version_id"] == result["version"]["id"]
        assert 0 <= result["seo_analysis"]["overall_score"] <= 100

        stored = posts.get_post_by_id(post["id"])
        assert stored["content_markdown"] == result["version"]["content_markdown"]
        assert analyses.get_latest_plagiarism_check(user_id, post["id"])["id"] == result["plagiarism_check"]["id"]

    def test_prompt_includes_photos_crawl_and_note(self, user_id, post, mock_llm_client):
        photos.add_photo_with_next_sort_order(user_id, post["id"], "latte.jpg", "u/latte.jpg", "라떼 아트")
        run_crawl(user_id, post)

        orchestrator.generate_post(user_id, post["id"], prompt_note="존댓말로", client=mock_llm_client)

        messages = mock_llm_client.chat.call_args.args[0]
        user_prompt = messages[-1]["content"]
        assert "사진 1: 라떼 아트" in user_prompt
        assert "참고 자료 요약:" in user_prompt
        assert "[naver]" in user_prompt
        assert "추가 요청: 존댓말로" in user_prompt
        assert mock_llm_client.chat.call_args.kwargs["json_mode"] is True

    def test_second_run_increments_version(self, user_id, post, mock_llm_client):
        orchestrator.generate_post(user_id, post["id"], client=mock_llm_client)
        second = orchestrator.generate_post(user_id, post["id"], prompt_note="다시", client=mock_llm_client)
        assert second["version"]["version_number"] == 2
        assert second["version"]["prompt_note"] == "다시"
        assert len(versions.list_post_versions(user_id, post["id"])) == 2

    def test_exported_post_stays_exported(self, user_id, post, mock_llm_client):
        posts.update_post(post["id"], user_id, status="exported")
        result = orchestrator.generate_post(user_id, post["id"], client=mock_llm_client)
        assert result["post"]["status"] == "exported"

    def test_long_title_is_clipped(self, user_id, post, mock_llm_client, long_body):
        mock_llm_client.chat.return_value = json.dumps({"title": "가" * 200, "contentMarkdown": long_body})
        result = orchestrator.generate_post(user_id, post["id"], client=mock_llm_client)
        assert len(result["version"]["title"]) == orchestrator.MAX_TITLE_CHARS

    @pytest.mark.parametrize("title", ["   ", 123, None, ["list"]])
    def test_unusable_title_falls_back_to_location(self, user_id, post, mock_llm_client, long_body, title):
        mock_llm_client.chat.return_value = json.dumps({"title": title, "contentMarkdown": long_body})
        result = orchestrator.generate_post(user_id, post["id"], client=mock_llm_client)
        assert result["version"]["title"] == "성수동 카페"
        assert result["post"]["title"] == "성수동 카페"

    def test_non_string_body_writes_nothing(self, user_id, post, mock_llm_client):
        mock_llm_client.chat.return_value = json.dumps({"title": "t", "contentMarkdown": 123})
        with pytest.raises(ProviderError):
            orchestrator.generate_post(user_id, post["id"], client=mock_llm_client)
        assert versions.list_post_versions(user_id, post["id"]) == []

    def test_unconfigured_llm_fails_before_calling(self, user_id, post, mock_llm_client):
        mock_llm_client.is_configured.return_value = False
        with pytest.raises(ProviderNotConfigured) as exc:
            orchestrator.generate_post(user_id, post["id"], client=mock_llm_client)
        assert str(exc.value) == orchestrator.LLM_NOT_CONFIGURED_MESSAGE
        mock_llm_client.chat.assert_not_called()

    def test_unconfigured_settings_without_client(self, user_id, post, llm_unconfigured):
        with pytest.raises(ProviderNotConfigured):
            orchestrator.generate_post(user_id, post["id"])

    def test_short_content_writes_nothing(self, user_id, post, mock_llm_client):
        mock_llm_client.chat.return_value = json.dumps({"title": "t", "contentMarkdown": "too short"})
        with pytest.raises(ProviderError):
            orchestrator.generate_post(user_id, post["id"], client=mock_llm_client)
        assert versions.list_post_versions(user_id, post["id"]) == []
        assert posts.get_post_by_id(post["id"])["status"] == "draft"

    def test_other_users_post_is_not_found(self, post, mock_llm_client):
        with pytest.raises(NotFoundError):
            orchestrator.generate_post("someone-else", post["id"], client=mock_llm_client)

    def test_failed_analysis_rolls_back_version(self, user_id, post, mock_llm_client, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("seo failed")

        monkeypatch.setattr(orchestrator, "analyze_seo", boom)
        with pytest.raises(RuntimeError):
            orchestrator.generate_post(user_id, post["id"], client=mock_llm_client)
        assert versions.list_post_versions(user_id, post["id"]) == []
        assert posts.get_post_by_id(post["id"])["title"] == ""


class TestParsePostResponse:
    def test_valid_json(self):
        parsed = parse_post_response('{"title": "T", "contentMarkdown": "body"}', "장소")
        assert parsed == {"title": "T", "content_markdown": "body"}

    def test_non_json_becomes_body(self):
        parsed = parse_post_response("plain text answer", "장소")
        assert parsed == {"title": "장소", "content_markdown": "plain text answer"}

    def test_missing_title_uses_location(self):
        assert parse_post_response('{"contentMarkdown": "b"}', "장소")["title"] == "장소"

    def test_blank_or_non_string_title_uses_location(self):
        assert parse_post_response('{"title": "  ", "contentMarkdown": "b"}', "장소")["title"] == "장소"
        assert parse_post_response('{"title": 7, "contentMarkdown": "b"}', "장소")["title"] == "장소"

    def test_missing_body_is_empty(self):
        assert parse_post_response('{"title": "T"}', "장소")["content_markdown"] == ""

    def test_non_string_body_is_provider_error(self):
        with pytest.raises(ProviderError):
            parse_post_response('{"title": "T", "contentMarkdown": {"a": 1}}', "장소")


class TestRerunAnalyses:
    def test_rerun_adds_new_rows_for_version(self, user_id, post, mock_llm_client):
        first = orchestrator.generate_post(user_id, post["id"], client=mock_llm_client)
        version_id = first["version"]["id"]

        rerun = orchestrator.rerun_analyses(user_id, post["id"], version_id)

        assert rerun["plagiarism_check"]["id"] != first["plagiarism_check"]["id"]
        assert rerun["seo_analysis"]["version_id"] == version_id
        latest = orchestrator.latest_analyses(user_id, post["id"], version_id)
        assert latest["plagiarism_check"]["id"] == rerun["plagiarism_check"]["id"]

    def test_unknown_version(self, user_id, post):
        with pytest.raises(NotFoundError):
            orchestrator.rerun_analyses(user_id, post["id"], "missing")


class TestStyleProfile:
    def _add_samples(self, user_id, category_id, n):
        for i in range(n):
            learning.create_learning_sample(user_id, category_id, "file", SAMPLE_TEXT, file_name=f"{i}.txt")

    def test_needs_five_samples(self, user_id, category, mock_llm_client):
        self._add_samples(user_id, category["id"], 4)
        with pytest.raises(PreconditionFailed):
            orchestrator.generate_style_profile_for_category(user_id, category["id"], client=mock_llm_client)
        mock_llm_client.chat.assert_not_called()

    def test_generates_and_upserts(self, user_id, category, mock_llm_client):
        self._add_samples(user_id, category["id"], 5)
        mock_llm_client.chat.return_value = '{"tone": "친근한 반말"}'

        first = orchestrator.generate_style_profile_for_category(user_id, category["id"], client=mock_llm_client)
        second = orchestrator.generate_style_profile_for_category(user_id, category["id"], client=mock_llm_client)

        assert first["profile_json"] == '{"tone": "친근한 반말"}'
        assert first["sample_count"] == 5
        assert second["id"] == first["id"]
        prompt = mock_llm_client.chat.call_args.args[0][-1]["content"]
        assert "--- 샘플 1 ---" in prompt
        assert "--- 샘플 5 ---" in prompt

    def test_samples_are_truncated(self, user_id, category, mock_llm_client):
        for i in range(5):
            learning.create_learning_sample(user_id, category["id"], "file", "다" * 3000, file_name=f"{i}.txt")
        orchestrator.generate_style_profile_for_category(user_id, category["id"], client=mock_llm_client)
        prompt = mock_llm_client.chat.call_args.args[0][-1]["content"]
        assert "다" * 2001 not in prompt
        assert "다" * 2000 in prompt
