"""
Post export: the body as a markdown file, and the photos as a zip in
display order.
"""

from __future__ import annotations

import io
import re
import zipfile
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from src.log import get_logger
from src.store.photos import list_photos_by_post
from src.store.posts import update_post

logger = get_logger(__name__)

NO_CONTENT_MESSAGE = "내보낼 본문이 없습니다."
NO_PHOTOS_MESSAGE = "내보낼 사진이 없습니다."

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9가-힣]")


def safe_file_stem(location_name: str) -> str:
    return _UNSAFE_CHARS.sub("_", location_name)


def export_markdown(user_id: str, post: Dict[str, Any]) -> Tuple[str, str]:
    """
    Render the post as ``# {title}\\n\\n{body}`` and return (file_name, markdown).
    A post in 'generated' moves to 'exported'. Raises ValueError without a body.
    """
    if not post.get("content_markdown"):
        raise ValueError(NO_CONTENT_MESSAGE)
    heading = post.get("title") or post["location_name"]
    markdown = f"# {heading}\n\n{post['content_markdown']}"
    if post.get("status") == "generated":
        update_post(post["id"], user_id, status="exported")
        logger.info("post exported post=%s", post["id"])
    return f"{safe_file_stem(post['location_name'])}.md", markdown


def export_photos_zip(
    user_id: str,
    post: Dict[str, Any],
    upload_root: Optional[Path] = None,
) -> Tuple[str, bytes]:
    """
    Zip the post's photos as ``NN_<originalFileName>`` in sortOrder. Files
    missing from upload storage are skipped. Raises ValueError when the post
    has no photos.
    """
    if upload_root is None:
        from config.settings import settings
        upload_root = settings.storage.upload_path

    photos = list_photos_by_post(user_id, post["id"])
    if not photos:
        raise ValueError(NO_PHOTOS_MESSAGE)

    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=5) as zf:
        for index, photo in enumerate(photos, start=1):
            path = Path(upload_root) / photo["stored_file_path"]
            if not path.is_file():
                logger.warning("photo file missing, skipped: %s", photo["stored_file_path"])
                continue
            zf.write(path, arcname=f"{index:02d}_{photo['original_file_name']}")
    return f"{safe_file_stem(post['location_name'])}_photos.zip", buf.getvalue()
