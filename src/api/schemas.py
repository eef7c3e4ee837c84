"""
API 请求 Pydantic 模型
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class SignupRequest(BaseModel):
    email: str = Field(..., description="로그인 이메일")
    password: str = Field(..., description="비밀번호 (6자 이상)")
    name: str = Field("", description="표시 이름")


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class CategoryCreateRequest(BaseModel):
    name: str = Field(..., description="카테고리 이름, 사용자별 고유 (1-50자)")
    description: Optional[str] = None


class LearningSampleCreateRequest(BaseModel):
    source_type: str = Field(..., description="url | file")
    raw_text: str = Field("", description="본문 (200자 이상)")
    source_url: Optional[str] = None
    file_name: Optional[str] = None


class MonetizationTipRequest(BaseModel):
    recommended_method: str = ""
    tip_text: str = ""


class PostCreateRequest(BaseModel):
    category_id: Optional[str] = Field(None, description="기존 카테고리 ID")
    category_name: Optional[str] = Field(None, description="category_id 대신 새 카테고리를 만들 때")
    location_name: str = ""
    overall_note: str = ""


class PostUpdateRequest(BaseModel):
    category_id: Optional[str] = None
    location_name: Optional[str] = None
    overall_note: Optional[str] = None
    title: Optional[str] = None
    content_markdown: Optional[str] = None
    status: Optional[str] = Field(None, description="draft | generated | exported")


class PhotoOrderRequest(BaseModel):
    ordered_photo_ids: List[str] = Field(default_factory=list)


class GenerateRequest(BaseModel):
    prompt_note: str = Field("", description="이번 생성에만 적용할 추가 요청")


class CheckoutRequest(BaseModel):
    price_id: str = Field(..., min_length=1)
    mode: str = Field("subscription", description="subscription | payment")
    success_url: Optional[str] = None
    cancel_url: Optional[str] = None
