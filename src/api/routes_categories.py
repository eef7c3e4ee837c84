"""
카테고리 API: 카테고리 CRUD, 학습 샘플, 스타일 프로필, 수익화 팁.
"""

from urllib.parse import urlparse

from fastapi import APIRouter, Depends, HTTPException

from src.api.routes_auth import get_current_user_id
from src.api.schemas import CategoryCreateRequest, LearningSampleCreateRequest, MonetizationTipRequest
from src.db.models import LEARNING_SOURCE_TYPES
from src.generation.orchestrator import generate_style_profile_for_category
from src.store.categories import create_category, delete_category, get_category_by_id, list_categories_by_user
from src.store.learning import (
    create_learning_sample,
    delete_learning_sample,
    get_style_profile,
    list_learning_samples_for_category,
)
from src.store.monetization import get_monetization_tip, upsert_monetization_tip

router = APIRouter(prefix="/categories", tags=["categories"])

MIN_SAMPLE_CHARS = 200


def _owned_category(category_id: str, user_id: int) -> dict:
    category = get_category_by_id(category_id)
    if not category or category["user_id"] != str(user_id):
        raise HTTPException(status_code=404, detail="Not found")
    return category


def _is_http_url(url: str | None) -> bool:
    if not url:
        return False
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


@router.get("")
def list_categories(user_id: int = Depends(get_current_user_id)) -> dict:
    return {"categories": list_categories_by_user(str(user_id))}


@router.post("", status_code=201)
def create(body: CategoryCreateRequest, user_id: int = Depends(get_current_user_id)) -> dict:
    name = body.name.strip()
    if not 1 <= len(name) <= 50:
        raise HTTPException(status_code=400, detail="카테고리 이름은 1-50자여야 합니다.")
    description = (body.description or "").strip() or None
    return {"category": create_category(str(user_id), name, description)}


@router.get("/{category_id}")
def get_category(category_id: str, user_id: int = Depends(get_current_user_id)) -> dict:
    return {"category": _owned_category(category_id, user_id)}


@router.delete("/{category_id}")
def remove_category(category_id: str, user_id: int = Depends(get_current_user_id)) -> dict:
    """학습 샘플/스타일 프로필/수익화 팁은 함께 삭제, 게시글은 남는다."""
    _owned_category(category_id, user_id)
    if not delete_category(category_id, str(user_id)):
        raise HTTPException(status_code=404, detail="Not found")
    return {"ok": True}


# ── learning samples ───────────────────────────────────────────────────────

@router.get("/{category_id}/learning-samples")
def list_samples(category_id: str, user_id: int = Depends(get_current_user_id)) -> dict:
    _owned_category(category_id, user_id)
    return {"samples": list_learning_samples_for_category(str(user_id), category_id)}


@router.post("/{category_id}/learning-samples", status_code=201)
def create_sample(
    category_id: str,
    body: LearningSampleCreateRequest,
    user_id: int = Depends(get_current_user_id),
) -> dict:
    _owned_category(category_id, user_id)
    if body.source_type not in LEARNING_SOURCE_TYPES:
        raise HTTPException(status_code=400, detail="sourceType은 url 또는 file이어야 합니다.")
    if len(body.raw_text) < MIN_SAMPLE_CHARS:
        raise HTTPException(status_code=400, detail="본문은 200자 이상이어야 합니다.")
    if body.source_type == "url" and not _is_http_url(body.source_url):
        raise HTTPException(status_code=400, detail="올바른 URL을 입력해주세요.")
    sample = create_learning_sample(
        str(user_id),
        category_id,
        body.source_type,
        body.raw_text,
        source_url=body.source_url,
        file_name=body.file_name,
    )
    return {"sample": sample}


@router.delete("/{category_id}/learning-samples/{sample_id}")
def remove_sample(category_id: str, sample_id: str, user_id: int = Depends(get_current_user_id)) -> dict:
    _owned_category(category_id, user_id)
    if not delete_learning_sample(sample_id, str(user_id)):
        raise HTTPException(status_code=404, detail="Not found")
    return {"ok": True}


# ── style profile ──────────────────────────────────────────────────────────

@router.get("/{category_id}/style-profile")
def style_profile(category_id: str, user_id: int = Depends(get_current_user_id)) -> dict:
    _owned_category(category_id, user_id)
    return {"profile": get_style_profile(str(user_id), category_id)}


@router.post("/{category_id}/style-profile/generate", status_code=201)
def generate_profile(category_id: str, user_id: int = Depends(get_current_user_id)) -> dict:
    """샘플 5개 미만이면 409, LLM 미설정이면 503."""
    _owned_category(category_id, user_id)
    return {"profile": generate_style_profile_for_category(str(user_id), category_id)}


# ── monetization tip ───────────────────────────────────────────────────────

@router.get("/{category_id}/monetization-tip")
def monetization_tip(category_id: str, user_id: int = Depends(get_current_user_id)) -> dict:
    _owned_category(category_id, user_id)
    return {"tip": get_monetization_tip(str(user_id), category_id)}


@router.put("/{category_id}/monetization-tip")
def save_monetization_tip(
    category_id: str,
    body: MonetizationTipRequest,
    user_id: int = Depends(get_current_user_id),
) -> dict:
    _owned_category(category_id, user_id)
    method = body.recommended_method.strip()
    tip_text = body.tip_text.strip()
    if not 1 <= len(method) <= 60:
        raise HTTPException(status_code=400, detail="추천 방법은 1-60자여야 합니다.")
    if not 1 <= len(tip_text) <= 500:
        raise HTTPException(status_code=400, detail="팁 내용은 1-500자여야 합니다.")
    return {"tip": upsert_monetization_tip(str(user_id), category_id, method, tip_text)}
