"""
Generation workflow for one post.

    generate_post(user_id, post_id)
        load post, style profile, photos, crawl summary + sources
        -> LLM (title, contentMarkdown)
        -> [one transaction] next PostVersion, post title/body/status,
           PlagiarismCheck, SeoAnalysis

The four writes share one session, so a failure in any of them rolls back
the whole run; rerun_analyses() re-derives both checks for an existing
version.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from src.analysis import analyze_seo, check_plagiarism
from src.db.engine import session_scope
from src.generation.content import generate_post_content, generate_style_profile
from src.llm import is_llm_configured
from src.log import get_logger
from src.observability import metrics
from src.store import analyses, crawl, learning, photos, posts, versions
from src.utils.errors import NotFoundError, PreconditionFailed, ProviderError, ProviderNotConfigured

logger = get_logger(__name__)

LLM_NOT_CONFIGURED_MESSAGE = "OpenAI API가 설정되지 않았습니다."
MIN_SAMPLES_MESSAGE = "스타일 프로필을 생성하려면 최소 5개의 학습 샘플이 필요합니다."
MIN_STYLE_SAMPLES = 5
MIN_CONTENT_CHARS = 200
MAX_TITLE_CHARS = 120


def _require_llm(client) -> None:
    configured = client.is_configured() if client is not None else is_llm_configured()
    if not configured:
        raise ProviderNotConfigured(LLM_NOT_CONFIGURED_MESSAGE)


def _owned_post(user_id: str, post_id: str) -> Dict[str, Any]:
    post = posts.get_post_by_id(post_id)
    if not post or post["user_id"] != str(user_id):
        raise NotFoundError(f"post not found: {post_id}")
    return post


def _run_analyses(user_id: str, post: Dict[str, Any], version: Dict[str, Any], session=None):
    sources = crawl.list_crawl_sources(user_id, post["id"])
    plagiarism = check_plagiarism(
        version["content_markdown"],
        [{"id": s["id"], "snippet_text": s["snippet_text"]} for s in sources],
    )
    seo = analyze_seo(version["title"], version["content_markdown"], post["location_name"])
    saved_check = analyses.create_plagiarism_check(
        user_id, post["id"], version["id"], plagiarism, session=session
    )
    saved_seo = analyses.create_seo_analysis(
        user_id, post["id"], version["id"], seo, session=session
    )
    return saved_check, saved_seo


def generate_post(user_id: str, post_id: str, prompt_note: str = "", client=None) -> Dict[str, Any]:
    """
    Generate and persist the next version of a post.

    Returns {"version", "plagiarism_check", "seo_analysis", "post"}.

    Raises:
        NotFoundError: the post does not exist or belongs to another user.
        ProviderNotConfigured: no LLM credentials (checked before any call).
        ProviderError: the call failed or the body came back too short.
    """
    user_id = str(user_id)
    post = _owned_post(user_id, post_id)
    _require_llm(client)

    style = learning.get_style_profile(user_id, post["category_id"])
    photo_rows = photos.list_photos_by_post(user_id, post_id)
    summary = crawl.get_crawl_summary_by_post(user_id, post_id)
    sources = crawl.list_crawl_sources(user_id, post_id)

    logger.info(
        "generate post=%s photos=%d sources=%d style=%s",
        post_id, len(photo_rows), len(sources), bool(style),
    )
    generated = generate_post_content(
        style_profile=style["profile_json"] if style else "{}",
        location_name=post["location_name"],
        overall_note=post["overall_note"],
        photos=photo_rows,
        crawl_summary=summary["summary_text"] if summary else None,
        crawl_sources=sources,
        prompt_note=prompt_note or "",
        client=client,
    )

    title = str(generated["title"] or "").strip()[:MAX_TITLE_CHARS] or post["location_name"][:MAX_TITLE_CHARS]
    content = generated["content_markdown"]
    if len(content) < MIN_CONTENT_CHARS:
        logger.warning("generated body too short post=%s chars=%d", post_id, len(content))
        metrics.generations_total.labels(outcome="short_content").inc()
        raise ProviderError(f"generated content is too short ({len(content)} chars)")

    # exported stays exported; a regenerate never moves status backwards
    status = "exported" if post["status"] == "exported" else "generated"

    with session_scope() as s:
        version = versions.create_post_version_next(
            user_id, post_id, title, content, prompt_note=prompt_note or "", session=s
        )
        updated = posts.update_post(
            post_id, user_id, session=s,
            title=title, content_markdown=content, status=status,
        )
        saved_check, saved_seo = _run_analyses(user_id, post, version, session=s)

    metrics.generations_total.labels(outcome="ok").inc()
    logger.info(
        "generated post=%s version=%d similarity=%d seo=%d",
        post_id, version["version_number"],
        saved_check["similarity_score"], saved_seo["overall_score"],
    )
    return {
        "version": version,
        "plagiarism_check": saved_check,
        "seo_analysis": saved_seo,
        "post": updated,
    }


def rerun_analyses(user_id: str, post_id: str, version_id: str) -> Dict[str, Any]:
    """Recompute plagiarism + SEO for an existing version against the current crawl sources."""
    user_id = str(user_id)
    post = _owned_post(user_id, post_id)
    version = versions.get_post_version_by_id(version_id)
    if not version or version["post_id"] != post_id or version["user_id"] != user_id:
        raise NotFoundError(f"version not found: {version_id}")

    with session_scope() as s:
        saved_check, saved_seo = _run_analyses(user_id, post, version, session=s)
    return {"version": version, "plagiarism_check": saved_check, "seo_analysis": saved_seo}


def generate_style_profile_for_category(
    user_id: str,
    category_id: str,
    client=None,
) -> Dict[str, Any]:
    """Learn the category's style profile from its samples (5 or more) and upsert it."""
    user_id = str(user_id)
    samples = learning.list_learning_samples_for_category(user_id, category_id)
    if len(samples) < MIN_STYLE_SAMPLES:
        raise PreconditionFailed(MIN_SAMPLES_MESSAGE)
    _require_llm(client)

    profile_json = generate_style_profile(samples, client=client)
    profile = learning.upsert_style_profile(user_id, category_id, profile_json, len(samples))
    metrics.style_profiles_total.inc()
    logger.info("style profile updated category=%s samples=%d", category_id, len(samples))
    return profile


def latest_analyses(user_id: str, post_id: str, version_id: Optional[str] = None) -> Dict[str, Any]:
    _owned_post(user_id, post_id)
    return {
        "plagiarism_check": analyses.get_latest_plagiarism_check(user_id, post_id, version_id),
        "seo_analysis": analyses.get_latest_seo_analysis(user_id, post_id, version_id),
    }
