"""
게시글 API: 게시글 CRUD, 사진 업로드/정렬, 크롤링, 생성, 버전/분석, 내보내기.
"""

from pathlib import Path
from urllib.parse import quote
from uuid import uuid4

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile

from config.settings import settings
from src.api.routes_auth import get_current_user_id
from src.api.schemas import GenerateRequest, PhotoOrderRequest, PostCreateRequest, PostUpdateRequest
from src.crawl import run_crawl
from src.db.errors import ConstraintViolation
from src.db.models import POST_STATUSES, now_ms
from src.export import export_markdown, export_photos_zip
from src.generation.orchestrator import generate_post, latest_analyses, rerun_analyses
from src.log import get_logger
from src.store.categories import create_category, get_category_by_id
from src.store.crawl import get_crawl_summary_by_post, list_crawl_sources
from src.store.photos import add_photo_with_next_sort_order, delete_photo, list_photos_by_post, reorder_photos
from src.store.posts import create_post, delete_post, get_post_by_id, list_posts_by_user, update_post
from src.store.versions import list_post_versions

logger = get_logger(__name__)

router = APIRouter(prefix="/posts", tags=["posts"])

MEMO_MAX_CHARS = 500


def _owned_post(post_id: str, user_id: int) -> dict:
    post = get_post_by_id(post_id)
    if not post or post["user_id"] != str(user_id):
        raise HTTPException(status_code=404, detail="Not found")
    return post


def _attachment(file_name: str) -> dict:
    return {"Content-Disposition": f"attachment; filename=\"{quote(file_name)}\""}


@router.get("")
def list_posts(user_id: int = Depends(get_current_user_id)) -> dict:
    return {"posts": list_posts_by_user(str(user_id))}


@router.post("", status_code=201)
def create(body: PostCreateRequest, user_id: int = Depends(get_current_user_id)) -> dict:
    """category_id 대신 category_name을 주면 카테고리를 먼저 만든다."""
    uid = str(user_id)
    location_name = body.location_name.strip()
    overall_note = body.overall_note.strip()
    if not location_name or not overall_note:
        raise HTTPException(status_code=400, detail="장소명과 메모는 필수입니다.")

    category_id = body.category_id
    if category_id:
        category = get_category_by_id(category_id)
        if not category or category["user_id"] != uid:
            raise HTTPException(status_code=404, detail="Not found")
    elif body.category_name and body.category_name.strip():
        category_id = create_category(uid, body.category_name.strip())["id"]
    else:
        raise HTTPException(status_code=400, detail="카테고리를 선택하거나 새로 만들어주세요.")

    return {"post": create_post(uid, category_id, location_name, overall_note)}


@router.get("/{post_id}")
def get_post(post_id: str, user_id: int = Depends(get_current_user_id)) -> dict:
    post = _owned_post(post_id, user_id)
    return {"post": post, "photos": list_photos_by_post(str(user_id), post_id)}


@router.patch("/{post_id}")
def patch_post(post_id: str, body: PostUpdateRequest, user_id: int = Depends(get_current_user_id)) -> dict:
    _owned_post(post_id, user_id)
    if body.status is not None and body.status not in POST_STATUSES:
        raise HTTPException(status_code=400, detail="status는 draft, generated, exported 중 하나여야 합니다.")
    if body.category_id is not None:
        category = get_category_by_id(body.category_id)
        if not category or category["user_id"] != str(user_id):
            raise HTTPException(status_code=404, detail="Not found")
    post = update_post(post_id, str(user_id), **body.model_dump(exclude_none=True))
    if not post:
        raise HTTPException(status_code=404, detail="Not found")
    return {"post": post}


@router.delete("/{post_id}")
def remove_post(post_id: str, user_id: int = Depends(get_current_user_id)) -> dict:
    if not delete_post(post_id, str(user_id)):
        raise HTTPException(status_code=404, detail="Not found")
    return {"ok": True}


# ── photos ─────────────────────────────────────────────────────────────────

@router.get("/{post_id}/photos")
def list_photos(post_id: str, user_id: int = Depends(get_current_user_id)) -> dict:
    _owned_post(post_id, user_id)
    return {"photos": list_photos_by_post(str(user_id), post_id)}


@router.post("/{post_id}/photos", status_code=201)
def upload_photo(
    post_id: str,
    file: UploadFile = File(...),
    memo: str = Form(""),
    user_id: int = Depends(get_current_user_id),
) -> dict:
    """파일은 upload_dir/<userId>/<postId>/<ms>_<rand><ext> 에 저장, 21번째 사진은 409."""
    _owned_post(post_id, user_id)
    original_name = Path(file.filename or "").name
    if not original_name:
        raise HTTPException(status_code=400, detail="파일이 필요합니다.")

    ext = Path(original_name).suffix or ".jpg"
    relative = Path(str(user_id)) / post_id / f"{now_ms()}_{uuid4().hex[:8]}{ext}"
    target = settings.storage.upload_path / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(file.file.read())

    memo_text = (memo.strip() or original_name)[:MEMO_MAX_CHARS]
    try:
        photo = add_photo_with_next_sort_order(
            str(user_id), post_id, original_name, relative.as_posix(), memo_text
        )
    except ConstraintViolation:
        target.unlink(missing_ok=True)
        raise
    return {"photo": photo}


@router.delete("/{post_id}/photos/{photo_id}")
def remove_photo(post_id: str, photo_id: str, user_id: int = Depends(get_current_user_id)) -> dict:
    _owned_post(post_id, user_id)
    deleted = delete_photo(photo_id, str(user_id), post_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Not found")
    (settings.storage.upload_path / deleted["stored_file_path"]).unlink(missing_ok=True)
    return {"ok": True}


@router.put("/{post_id}/photos/order")
def order_photos(post_id: str, body: PhotoOrderRequest, user_id: int = Depends(get_current_user_id)) -> dict:
    _owned_post(post_id, user_id)
    if not body.ordered_photo_ids:
        raise HTTPException(status_code=400, detail="orderedPhotoIds 배열이 필요합니다.")
    return {"photos": reorder_photos(str(user_id), post_id, body.ordered_photo_ids)}


# ── crawl ──────────────────────────────────────────────────────────────────

@router.post("/{post_id}/crawl", status_code=201)
def crawl(post_id: str, user_id: int = Depends(get_current_user_id)) -> dict:
    post = _owned_post(post_id, user_id)
    return run_crawl(str(user_id), post)


@router.get("/{post_id}/crawl-sources")
def crawl_sources(post_id: str, user_id: int = Depends(get_current_user_id)) -> dict:
    _owned_post(post_id, user_id)
    return {
        "sources": list_crawl_sources(str(user_id), post_id),
        "summary": get_crawl_summary_by_post(str(user_id), post_id),
    }


# ── generation / versions / analyses ──────────────────────────────────────

@router.post("/{post_id}/generate", status_code=201)
def generate(
    post_id: str,
    body: GenerateRequest | None = None,
    user_id: int = Depends(get_current_user_id),
) -> dict:
    _owned_post(post_id, user_id)
    prompt_note = body.prompt_note.strip() if body else ""
    return generate_post(str(user_id), post_id, prompt_note=prompt_note)


@router.get("/{post_id}/versions")
def versions(post_id: str, user_id: int = Depends(get_current_user_id)) -> dict:
    _owned_post(post_id, user_id)
    return {"versions": list_post_versions(str(user_id), post_id)}


@router.get("/{post_id}/analyses/latest")
def analyses_latest(
    post_id: str,
    version_id: str | None = None,
    user_id: int = Depends(get_current_user_id),
) -> dict:
    _owned_post(post_id, user_id)
    return latest_analyses(str(user_id), post_id, version_id)


@router.post("/{post_id}/versions/{version_id}/analyses", status_code=201)
def analyses_rerun(post_id: str, version_id: str, user_id: int = Depends(get_current_user_id)) -> dict:
    _owned_post(post_id, user_id)
    return rerun_analyses(str(user_id), post_id, version_id)


# ── export ─────────────────────────────────────────────────────────────────

@router.get("/{post_id}/export/markdown")
def export_post_markdown(post_id: str, user_id: int = Depends(get_current_user_id)) -> Response:
    post = _owned_post(post_id, user_id)
    file_name, markdown = export_markdown(str(user_id), post)
    return Response(
        content=markdown,
        media_type="text/markdown; charset=utf-8",
        headers=_attachment(file_name),
    )


@router.get("/{post_id}/export/photos-zip")
def export_post_photos(post_id: str, user_id: int = Depends(get_current_user_id)) -> Response:
    post = _owned_post(post_id, user_id)
    file_name, data = export_photos_zip(str(user_id), post)
    return Response(content=data, media_type="application/zip", headers=_attachment(file_name))
