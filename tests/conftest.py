"""
共享 Fixtures: 临时 SQLite 数据库 / 上传目录 / Mock LLM 客户端。
"""

import json
from unittest.mock import MagicMock

import pytest

from config.settings import settings
from src.db.engine import init_db, reset_engine

LONG_BODY = (
    "## 첫인상\n\n성수동 카페는 골목 안쪽에 숨어 있어 찾는 재미가 있었습니다. "
    "창가 자리에 앉으면 햇살이 길게 들어와 오후 시간을 보내기 좋았어요.\n\n"
    "## 메뉴\n\n시그니처 라떼는 고소하고 부드러웠고 디저트도 과하게 달지 않아 "
    "함께 먹기 좋았습니다. 재방문 의사가 충분한 곳입니다.\n\n"
    "## 정리\n\n주말 오후에는 웨이팅이 조금 있었지만 회전이 빨라 오래 기다리지 않았습니다. "
    "조용히 책을 읽거나 대화를 나누기 좋은 분위기라 친구에게도 자신 있게 추천할 수 있는 카페였습니다."
)


@pytest.fixture
def db(tmp_path, monkeypatch):
    """每个测试独立的 SQLite 文件，测试结束后释放 engine。"""
    monkeypatch.setenv("BLOGCRAFT_DATABASE_URL", f"sqlite:///{tmp_path / 'blogcraft.db'}")
    reset_engine()
    init_db()
    yield
    reset_engine()


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings.storage, "upload_dir", str(path))
    return path


@pytest.fixture
def user(db):
    from src.store.users import create_user
    return create_user("writer@example.com", "secret123", "Writer")


@pytest.fixture
def user_id(user):
    """Domain tables key users by the string form of the account id."""
    return str(user["id"])


@pytest.fixture
def category(user_id):
    from src.store.categories import create_category
    return create_category(user_id, "Food")


@pytest.fixture
def post(user_id, category):
    from src.store.posts import create_post
    return create_post(user_id, category["id"], "성수동 카페", "창가 자리가 좋았던 카페")


@pytest.fixture
def mock_llm_client():
    """模拟 LLM 客户端：已配置，返回一篇合法的 JSON 文章"""
    client = MagicMock()
    client.is_configured.return_value = True
    client.chat.return_value = json.dumps(
        {"title": "성수동 카페 방문 후기", "contentMarkdown": LONG_BODY},
        ensure_ascii=False,
    )
    return client


@pytest.fixture
def llm_configured(monkeypatch):
    monkeypatch.setattr(settings.llm, "api_key", "sk-test")


@pytest.fixture
def llm_unconfigured(monkeypatch):
    monkeypatch.setattr(settings.llm, "api_key", "")


@pytest.fixture
def long_body():
    return LONG_BODY
