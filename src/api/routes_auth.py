"""
认证 API：注册、登录、登出、当前用户。

Sessions travel in the ``session_token`` cookie; API clients may send the
same token as ``Authorization: Bearer <token>``.
"""

import re

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response

from config.settings import settings
from src.api.schemas import LoginRequest, SignupRequest
from src.auth.password import MIN_PASSWORD_LENGTH
from src.auth.session import create_session, delete_session, validate_session
from src.store.users import authenticate_user, create_user, get_user_by_id

router = APIRouter(prefix="/auth", tags=["auth"])

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _get_token(request: Request, authorization: str | None) -> str | None:
    if authorization and authorization.startswith("Bearer "):
        token = authorization[7:].strip()
        if token:
            return token
    return request.cookies.get(settings.auth.cookie_name) or None


def get_current_user_id(request: Request, authorization: str | None = Header(None)) -> int:
    """Dependency: require a live session, return the user id."""
    user_id = validate_session(_get_token(request, authorization))
    if user_id is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user_id


def get_optional_user_id(request: Request, authorization: str | None = Header(None)) -> int | None:
    """Dependency: user id if a live session is present, else None (no 401)."""
    return validate_session(_get_token(request, authorization))


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.auth.cookie_name,
        value=token,
        max_age=settings.auth.session_max_age_seconds,
        httponly=True,
        secure=settings.auth.cookie_secure,
        samesite="lax",
        path="/",
    )


@router.post("/signup", status_code=201)
def signup(body: SignupRequest, response: Response) -> dict:
    email = body.email.strip().lower()
    if not email or not body.password:
        raise HTTPException(status_code=400, detail="Email and password are required")
    if not EMAIL_RE.match(email):
        raise HTTPException(status_code=400, detail="Invalid email format")
    if len(body.password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(status_code=400, detail="Password must be at least 6 characters")
    name = body.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Name is required")

    user = create_user(email, body.password, name)
    token = create_session(user["id"])
    _set_session_cookie(response, token)
    return {"user": user, "token": token}


@router.post("/login")
def login(body: LoginRequest, response: Response) -> dict:
    user = authenticate_user(body.email, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    token = create_session(user["id"])
    _set_session_cookie(response, token)
    return {"user": user, "token": token}


@router.post("/logout")
def logout(request: Request, response: Response, authorization: str | None = Header(None)) -> dict:
    delete_session(_get_token(request, authorization))
    response.delete_cookie(settings.auth.cookie_name, path="/")
    return {"ok": True}


@router.get("/me")
def me(user_id: int = Depends(get_current_user_id)) -> dict:
    user = get_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return {"user": user}
