"""
LLM-backed generation: the writing-style profile of a category and the
blog post body for a location.

Both take an optional client (anything with the OpenAICompatClient.chat
signature) so callers and tests can swap the transport.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Mapping, Optional

from src.llm import get_client
from src.log import get_logger
from src.utils.errors import ProviderError
from src.utils.prompt_manager import PromptManager

logger = get_logger(__name__)

SAMPLE_CHAR_LIMIT = 2000


def _max_tokens(kind: str) -> int:
    from config.settings import settings
    return settings.llm.style_max_tokens if kind == "style" else settings.llm.post_max_tokens


def generate_style_profile(samples: Iterable[Mapping[str, Any]], client=None) -> str:
    """
    Summarize raw writing samples into a style profile.

    Returns the model's JSON text as-is ("{}" on an empty answer); the
    payload is stored opaquely and never validated against a schema.
    """
    client = client or get_client()
    pm = PromptManager()
    joined = "\n\n".join(
        f"--- 샘플 {i} ---\n{s['raw_text'][:SAMPLE_CHAR_LIMIT]}"
        for i, s in enumerate(samples, start=1)
    )
    messages = [
        {"role": "system", "content": pm.render("style_profile_system.txt")},
        {"role": "user", "content": pm.render("style_profile_user.txt", samples=joined)},
    ]
    text = client.chat(messages, max_tokens=_max_tokens("style"), json_mode=True)
    return text or "{}"


def _post_user_prompt(
    style_profile: str,
    location_name: str,
    overall_note: str,
    photos: List[Mapping[str, Any]],
    crawl_summary: Optional[str],
    crawl_sources: List[Mapping[str, Any]],
    prompt_note: str,
) -> str:
    photo_lines = "\n".join(
        f"사진 {i}: {p.get('memo') or p.get('original_file_name', '')}"
        for i, p in enumerate(photos, start=1)
    )
    crawl_block = f"\n\n참고 자료 요약:\n{crawl_summary}" if crawl_summary else ""
    sources_block = ""
    if crawl_sources:
        sources_block = "\n\n수집된 정보:\n" + "\n".join(
            f"[{s['provider']}] {s['snippet_text']}" for s in crawl_sources
        )
    note_block = f"\n\n추가 요청: {prompt_note}" if prompt_note else ""
    return PromptManager().render(
        "post_user.txt",
        style_profile=style_profile,
        location_name=location_name,
        overall_note=overall_note,
        photo_lines=photo_lines,
        crawl_block=crawl_block,
        sources_block=sources_block,
        note_block=note_block,
    )


def parse_post_response(text: str, location_name: str) -> Dict[str, str]:
    """
    Read {"title", "contentMarkdown"} from the model output. Non-JSON output
    becomes the body verbatim with the location name as title; a blank or
    non-string title also falls back to the location name. A non-string
    body raises ProviderError.
    """
    try:
        parsed = json.loads(text or "{}")
    except json.JSONDecodeError:
        logger.warning("post generation returned non-JSON output (%d chars)", len(text or ""))
        return {"title": location_name, "content_markdown": text or ""}
    if not isinstance(parsed, dict):
        return {"title": location_name, "content_markdown": text or ""}

    title = parsed.get("title")
    if not isinstance(title, str) or not title.strip():
        title = location_name
    content = parsed.get("contentMarkdown")
    if content is None:
        content = ""
    if not isinstance(content, str):
        raise ProviderError(f"contentMarkdown is not a string ({type(content).__name__})")
    return {"title": title, "content_markdown": content}


def generate_post_content(
    style_profile: str,
    location_name: str,
    overall_note: str,
    photos: List[Mapping[str, Any]],
    crawl_summary: Optional[str] = None,
    crawl_sources: Optional[List[Mapping[str, Any]]] = None,
    prompt_note: str = "",
    client=None,
) -> Dict[str, str]:
    """Returns {"title": str, "content_markdown": str}."""
    client = client or get_client()
    messages = [
        {"role": "system", "content": PromptManager().render("post_system.txt")},
        {
            "role": "user",
            "content": _post_user_prompt(
                style_profile, location_name, overall_note, photos,
                crawl_summary, crawl_sources or [], prompt_note,
            ),
        },
    ]
    text = client.chat(messages, max_tokens=_max_tokens("post"), json_mode=True)
    return parse_post_response(text, location_name)
