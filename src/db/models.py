"""
SQLModel table definitions: single source of truth for the BlogCraft schema.

Design rules:
  - Domain tables keep their camelCase column names on disk (userId,
    createdAt, ...); the Python attributes are snake_case and map onto them
    through sa_column=Column("<diskName>", ...).
  - Domain ids are uuid4 strings; the user account id is an autoincrement
    integer and is stored as TEXT in the domain tables' userId column.
  - Timestamps are integer milliseconds since epoch (users/subscriptions
    keep their ISO text timestamps).
  - Cascades are enforced by the database (ON DELETE CASCADE with
    PRAGMA foreign_keys=ON), not by ORM relationships. posts.categoryId
    has no foreign key at all: deleting a category leaves its posts.
  - JSON payload columns (profileJson, comparedSourceIds, suggestions) are
    TEXT with Python-side (de)serialization.
"""

import json
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    DDL,
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    event,
)
from sqlmodel import Field, SQLModel

MAX_PHOTOS_PER_POST = 20
POST_STATUSES = ("draft", "generated", "exported")
CRAWL_PROVIDERS = ("naver", "kakao", "google", "blog")
LEARNING_SOURCE_TYPES = ("url", "file")


def now_ms() -> int:
    return int(time.time() * 1000)


def now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _fk(target: str) -> ForeignKey:
    return ForeignKey(target, ondelete="CASCADE")


# ──────────────────────────────────────────────────────────────────────────────
# 1. Accounts
# ──────────────────────────────────────────────────────────────────────────────

class User(SQLModel, table=True):
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(sa_column=Column(Text, nullable=False, unique=True))
    password_hash: str = Field(sa_column=Column(Text, nullable=False))
    name: str = Field(default="", sa_column=Column(Text, nullable=False, server_default=""))
    created_at: str = Field(default_factory=now_iso, sa_column=Column(Text, nullable=False))
    updated_at: str = Field(default_factory=now_iso, sa_column=Column(Text, nullable=False))

    def to_safe_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class UserSession(SQLModel, table=True):
    """Persisted login session; the raw token is never stored, only its SHA-256."""
    __tablename__ = "sessions"
    __table_args__ = (Index("idx_sessions_expires", "expires_at"),)

    token_hash: str = Field(primary_key=True)
    user_id: int = Field(sa_column=Column(Integer, _fk("users.id"), nullable=False))
    expires_at: int = Field(sa_column=Column(Integer, nullable=False))
    created_at: int = Field(default_factory=now_ms, sa_column=Column(Integer, nullable=False))


class Subscription(SQLModel, table=True):
    __tablename__ = "subscriptions"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(sa_column=Column(Integer, _fk("users.id"), nullable=False, unique=True))
    stripe_customer_id: Optional[str] = Field(default=None, sa_column=Column(Text, unique=True))
    stripe_subscription_id: Optional[str] = Field(default=None, sa_column=Column(Text, unique=True))
    status: str = Field(default="inactive", sa_column=Column(Text, nullable=False, server_default="inactive"))
    tier: str = Field(default="free", sa_column=Column(Text, nullable=False, server_default="free"))
    current_period_end: Optional[str] = Field(default=None, sa_column=Column(Text))
    created_at: str = Field(default_factory=now_iso, sa_column=Column(Text, nullable=False))
    updated_at: str = Field(default_factory=now_iso, sa_column=Column(Text, nullable=False))


# ──────────────────────────────────────────────────────────────────────────────
# 2. Categories and what hangs off them (cascade on category delete)
# ──────────────────────────────────────────────────────────────────────────────

class Category(SQLModel, table=True):
    __tablename__ = "categories"
    __table_args__ = (
        CheckConstraint("length(name) BETWEEN 1 AND 50", name="categories_name_len"),
        UniqueConstraint("userId", "name", name="idx_categories_user_name"),
        Index("idx_categories_user_updated", "userId", "updatedAt"),
    )

    id: str = Field(sa_column=Column("id", Text, primary_key=True))
    user_id: str = Field(sa_column=Column("userId", Text, nullable=False))
    name: str = Field(sa_column=Column("name", Text, nullable=False))
    description: Optional[str] = Field(default=None, sa_column=Column("description", Text, nullable=True))
    created_at: int = Field(sa_column=Column("createdAt", Integer, nullable=False))
    updated_at: int = Field(sa_column=Column("updatedAt", Integer, nullable=False))


class MonetizationTip(SQLModel, table=True):
    __tablename__ = "monetization_tips"
    __table_args__ = (
        CheckConstraint("length(recommendedMethod) BETWEEN 1 AND 60", name="monetization_recommended_len"),
        CheckConstraint("length(tipText) BETWEEN 1 AND 500", name="monetization_tip_len"),
        UniqueConstraint("userId", "categoryId", name="idx_monetization_user_category"),
    )

    id: str = Field(sa_column=Column("id", Text, primary_key=True))
    user_id: str = Field(sa_column=Column("userId", Text, nullable=False))
    category_id: str = Field(sa_column=Column("categoryId", Text, _fk("categories.id"), nullable=False))
    recommended_method: str = Field(sa_column=Column("recommendedMethod", Text, nullable=False))
    tip_text: str = Field(sa_column=Column("tipText", Text, nullable=False))
    created_at: int = Field(sa_column=Column("createdAt", Integer, nullable=False))
    updated_at: int = Field(sa_column=Column("updatedAt", Integer, nullable=False))


class LearningSample(SQLModel, table=True):
    __tablename__ = "learning_samples"
    __table_args__ = (
        CheckConstraint("sourceType IN ('url','file')", name="learning_source_type"),
        CheckConstraint("length(rawText) BETWEEN 200 AND 200000", name="learning_raw_len"),
        CheckConstraint(
            "(sourceType='url' AND sourceUrl IS NOT NULL AND fileName IS NULL) OR "
            "(sourceType='file' AND fileName IS NOT NULL AND sourceUrl IS NULL)",
            name="learning_source_rules",
        ),
        Index("idx_learning_user_category_created", "userId", "categoryId", "createdAt"),
    )

    id: str = Field(sa_column=Column("id", Text, primary_key=True))
    user_id: str = Field(sa_column=Column("userId", Text, nullable=False))
    category_id: str = Field(sa_column=Column("categoryId", Text, _fk("categories.id"), nullable=False))
    source_type: str = Field(sa_column=Column("sourceType", Text, nullable=False))
    source_url: Optional[str] = Field(default=None, sa_column=Column("sourceUrl", Text, nullable=True))
    file_name: Optional[str] = Field(default=None, sa_column=Column("fileName", Text, nullable=True))
    raw_text: str = Field(sa_column=Column("rawText", Text, nullable=False))
    created_at: int = Field(sa_column=Column("createdAt", Integer, nullable=False))


class StyleProfile(SQLModel, table=True):
    __tablename__ = "style_profiles"
    __table_args__ = (
        CheckConstraint("sampleCount >= 0", name="style_profiles_sample_count"),
        UniqueConstraint("userId", "categoryId", name="idx_style_profiles_user_category"),
    )

    id: str = Field(sa_column=Column("id", Text, primary_key=True))
    user_id: str = Field(sa_column=Column("userId", Text, nullable=False))
    category_id: str = Field(sa_column=Column("categoryId", Text, _fk("categories.id"), nullable=False))
    profile_json: str = Field(sa_column=Column("profileJson", Text, nullable=False))
    sample_count: int = Field(sa_column=Column("sampleCount", Integer, nullable=False))
    created_at: int = Field(sa_column=Column("createdAt", Integer, nullable=False))
    updated_at: int = Field(sa_column=Column("updatedAt", Integer, nullable=False))

    def get_profile(self) -> Dict[str, Any]:
        try:
            return json.loads(self.profile_json or "{}")
        except (TypeError, ValueError):
            return {}


# ──────────────────────────────────────────────────────────────────────────────
# 3. Posts and what hangs off them (cascade on post delete)
# ──────────────────────────────────────────────────────────────────────────────

class Post(SQLModel, table=True):
    __tablename__ = "posts"
    __table_args__ = (
        CheckConstraint("status IN ('draft','generated','exported')", name="posts_status"),
        CheckConstraint("length(locationName) BETWEEN 1 AND 80", name="posts_location_len"),
        CheckConstraint("length(overallNote) BETWEEN 1 AND 5000", name="posts_overall_len"),
        Index("idx_posts_user_updated", "userId", "updatedAt"),
        Index("idx_posts_user_category", "userId", "categoryId"),
    )

    id: str = Field(sa_column=Column("id", Text, primary_key=True))
    user_id: str = Field(sa_column=Column("userId", Text, nullable=False))
    # no FK: a deleted category leaves its posts with a dangling categoryId
    category_id: str = Field(sa_column=Column("categoryId", Text, nullable=False))
    location_name: str = Field(sa_column=Column("locationName", Text, nullable=False))
    overall_note: str = Field(sa_column=Column("overallNote", Text, nullable=False))
    title: str = Field(default="", sa_column=Column("title", Text, nullable=False, server_default=""))
    content_markdown: str = Field(default="", sa_column=Column("contentMarkdown", Text, nullable=False, server_default=""))
    status: str = Field(default="draft", sa_column=Column("status", Text, nullable=False))
    created_at: int = Field(sa_column=Column("createdAt", Integer, nullable=False))
    updated_at: int = Field(sa_column=Column("updatedAt", Integer, nullable=False))


class Photo(SQLModel, table=True):
    __tablename__ = "photos"
    __table_args__ = (
        CheckConstraint("length(memo) BETWEEN 1 AND 500", name="photos_memo_len"),
        CheckConstraint("sortOrder >= 1", name="photos_sort_positive"),
        UniqueConstraint("postId", "sortOrder", name="idx_photos_post_sort"),
        Index("idx_photos_post_created", "postId", "createdAt"),
    )

    id: str = Field(sa_column=Column("id", Text, primary_key=True))
    user_id: str = Field(sa_column=Column("userId", Text, nullable=False))
    post_id: str = Field(sa_column=Column("postId", Text, _fk("posts.id"), nullable=False))
    original_file_name: str = Field(sa_column=Column("originalFileName", Text, nullable=False))
    stored_file_path: str = Field(sa_column=Column("storedFilePath", Text, nullable=False))
    memo: str = Field(sa_column=Column("memo", Text, nullable=False))
    sort_order: int = Field(sa_column=Column("sortOrder", Integer, nullable=False))
    created_at: int = Field(sa_column=Column("createdAt", Integer, nullable=False))


# RAISE(ABORT) surfaces as an IntegrityError whose message is the literal below;
# src.db.errors keys PhotoLimitExceeded on it.
_PHOTO_CAP_TRIGGER = DDL(
    "CREATE TRIGGER IF NOT EXISTS trg_photos_max_20 "
    "BEFORE INSERT ON photos "
    "FOR EACH ROW "
    f"WHEN (SELECT COUNT(1) FROM photos WHERE postId = NEW.postId) >= {MAX_PHOTOS_PER_POST} "
    "BEGIN "
    "SELECT RAISE(ABORT, 'max_photos_per_post_exceeded'); "
    "END"
).execute_if(dialect="sqlite")

event.listen(Photo.__table__, "after_create", _PHOTO_CAP_TRIGGER)


class CrawlSource(SQLModel, table=True):
    __tablename__ = "crawl_sources"
    __table_args__ = (
        CheckConstraint("provider IN ('naver','kakao','google','blog')", name="crawl_provider"),
        CheckConstraint("length(snippetText) BETWEEN 20 AND 2000", name="crawl_snippet_len"),
        CheckConstraint("rating IS NULL OR (rating >= 0 AND rating <= 5)", name="crawl_rating_range"),
        Index("idx_crawl_sources_post_created", "userId", "postId", "createdAt"),
    )

    id: str = Field(sa_column=Column("id", Text, primary_key=True))
    user_id: str = Field(sa_column=Column("userId", Text, nullable=False))
    post_id: str = Field(sa_column=Column("postId", Text, _fk("posts.id"), nullable=False))
    provider: str = Field(sa_column=Column("provider", Text, nullable=False))
    source_url: Optional[str] = Field(default=None, sa_column=Column("sourceUrl", Text, nullable=True))
    snippet_text: str = Field(sa_column=Column("snippetText", Text, nullable=False))
    rating: Optional[float] = Field(default=None, sa_column=Column("rating", Float, nullable=True))
    created_at: int = Field(sa_column=Column("createdAt", Integer, nullable=False))


class CrawlSummary(SQLModel, table=True):
    __tablename__ = "crawl_summaries"
    __table_args__ = (
        CheckConstraint("totalCount BETWEEN 0 AND 17", name="crawl_summaries_total"),
        UniqueConstraint("userId", "postId", name="idx_crawl_summaries_user_post"),
    )

    id: str = Field(sa_column=Column("id", Text, primary_key=True))
    user_id: str = Field(sa_column=Column("userId", Text, nullable=False))
    post_id: str = Field(sa_column=Column("postId", Text, _fk("posts.id"), nullable=False))
    total_count: int = Field(sa_column=Column("totalCount", Integer, nullable=False))
    average_rating: Optional[float] = Field(default=None, sa_column=Column("averageRating", Float, nullable=True))
    summary_text: str = Field(sa_column=Column("summaryText", Text, nullable=False))
    created_at: int = Field(sa_column=Column("createdAt", Integer, nullable=False))
    updated_at: int = Field(sa_column=Column("updatedAt", Integer, nullable=False))


class PostVersion(SQLModel, table=True):
    """Immutable snapshot; versionNumber is 1-based and dense per post."""
    __tablename__ = "post_versions"
    __table_args__ = (
        CheckConstraint("versionNumber >= 1", name="post_versions_number_positive"),
        CheckConstraint("length(title) BETWEEN 1 AND 120", name="post_versions_title_len"),
        CheckConstraint("length(contentMarkdown) BETWEEN 200 AND 200000", name="post_versions_content_len"),
        UniqueConstraint("postId", "versionNumber", name="idx_post_versions_post_version"),
        Index("idx_post_versions_post_created", "userId", "postId", "createdAt"),
    )

    id: str = Field(sa_column=Column("id", Text, primary_key=True))
    user_id: str = Field(sa_column=Column("userId", Text, nullable=False))
    post_id: str = Field(sa_column=Column("postId", Text, _fk("posts.id"), nullable=False))
    version_number: int = Field(sa_column=Column("versionNumber", Integer, nullable=False))
    prompt_note: str = Field(default="", sa_column=Column("promptNote", Text, nullable=False, server_default=""))
    title: str = Field(sa_column=Column("title", Text, nullable=False))
    content_markdown: str = Field(sa_column=Column("contentMarkdown", Text, nullable=False))
    created_at: int = Field(sa_column=Column("createdAt", Integer, nullable=False))


# ──────────────────────────────────────────────────────────────────────────────
# 4. Analyses (append-only history per version)
# ──────────────────────────────────────────────────────────────────────────────

class PlagiarismCheck(SQLModel, table=True):
    __tablename__ = "plagiarism_checks"
    __table_args__ = (
        CheckConstraint("similarityScore BETWEEN 0 AND 100", name="plagiarism_score_range"),
        CheckConstraint("passed IN (0,1)", name="plagiarism_passed_bool"),
        Index("idx_plagiarism_post_version", "userId", "postId", "versionId", "createdAt"),
    )

    id: str = Field(sa_column=Column("id", Text, primary_key=True))
    user_id: str = Field(sa_column=Column("userId", Text, nullable=False))
    post_id: str = Field(sa_column=Column("postId", Text, _fk("posts.id"), nullable=False))
    version_id: str = Field(sa_column=Column("versionId", Text, _fk("post_versions.id"), nullable=False))
    similarity_score: int = Field(sa_column=Column("similarityScore", Integer, nullable=False))
    compared_source_ids: str = Field(default="[]", sa_column=Column("comparedSourceIds", Text, nullable=False))
    passed: int = Field(sa_column=Column("passed", Integer, nullable=False))
    created_at: int = Field(sa_column=Column("createdAt", Integer, nullable=False))

    def get_compared_source_ids(self) -> List[str]:
        try:
            return json.loads(self.compared_source_ids or "[]")
        except (TypeError, ValueError):
            return []


class SeoAnalysis(SQLModel, table=True):
    __tablename__ = "seo_analyses"
    __table_args__ = (
        CheckConstraint("keywordDensityScore BETWEEN 0 AND 100", name="seo_keyword_range"),
        CheckConstraint("titleOptimizationScore BETWEEN 0 AND 100", name="seo_title_range"),
        CheckConstraint("metaDescriptionScore BETWEEN 0 AND 100", name="seo_meta_range"),
        CheckConstraint("readabilityScore BETWEEN 0 AND 100", name="seo_readability_range"),
        CheckConstraint("internalLinksScore BETWEEN 0 AND 100", name="seo_links_range"),
        CheckConstraint("overallScore BETWEEN 0 AND 100", name="seo_overall_range"),
        Index("idx_seo_post_version", "userId", "postId", "versionId", "createdAt"),
    )

    id: str = Field(sa_column=Column("id", Text, primary_key=True))
    user_id: str = Field(sa_column=Column("userId", Text, nullable=False))
    post_id: str = Field(sa_column=Column("postId", Text, _fk("posts.id"), nullable=False))
    version_id: str = Field(sa_column=Column("versionId", Text, _fk("post_versions.id"), nullable=False))
    keyword_density_score: int = Field(sa_column=Column("keywordDensityScore", Integer, nullable=False))
    title_optimization_score: int = Field(sa_column=Column("titleOptimizationScore", Integer, nullable=False))
    meta_description_score: int = Field(sa_column=Column("metaDescriptionScore", Integer, nullable=False))
    readability_score: int = Field(sa_column=Column("readabilityScore", Integer, nullable=False))
    internal_links_score: int = Field(sa_column=Column("internalLinksScore", Integer, nullable=False))
    overall_score: int = Field(sa_column=Column("overallScore", Integer, nullable=False))
    suggestions: str = Field(default="[]", sa_column=Column("suggestions", Text, nullable=False))
    created_at: int = Field(sa_column=Column("createdAt", Integer, nullable=False))

    def get_suggestions(self) -> List[str]:
        try:
            return json.loads(self.suggestions or "[]")
        except (TypeError, ValueError):
            return []
