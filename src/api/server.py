"""
FastAPI 应用入口 - BlogCraft AI API
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import settings
from src.api.errors import register_error_handlers
from src.api.routes_auth import router as auth_router
from src.api.routes_categories import router as categories_router
from src.api.routes_payments import router as payments_router
from src.api.routes_posts import router as posts_router
from src.log import cleanup_logs, get_logger, init_logging
from src.observability import setup_observability

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期：日志（含旧日志清理）→ 建表（含照片触发器）→ 清理过期会话"""
    init_logging()
    report = cleanup_logs()
    if report["deleted"]:
        logger.info("[startup] removed %d old log file(s)", len(report["deleted"]))

    from src.db.engine import init_db
    init_db()

    from src.auth.session import purge_expired_sessions
    purged = purge_expired_sessions()
    if purged:
        logger.info("[startup] purged %d expired session(s)", purged)

    if not settings.llm.is_available():
        logger.warning("[startup] OPENAI_API_KEY not set: generation endpoints will answer 503")
    if not settings.payments.is_configured():
        logger.info("[startup] payments not configured")

    yield


app = FastAPI(
    title="BlogCraft AI API",
    description="장소 리뷰 블로그 글 생성 API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.api.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(auth_router)
app.include_router(categories_router)
app.include_router(posts_router)
app.include_router(payments_router)

# Observability: 中间件 + /metrics + /health/detailed
setup_observability(app)


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
