"""
一键初始化 Observability：注册中间件 + /metrics + /health/detailed + 应用元信息。
"""

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from src.log import get_logger
from src.observability.metrics import metrics
from src.observability.middleware import ObservabilityMiddleware

logger = get_logger(__name__)


def check_components() -> dict:
    """各组件状态：数据库可达性、LLM / 支付是否已配置。"""
    from src.billing import is_payments_configured
    from src.db.engine import get_engine
    from src.llm import is_llm_configured

    checks = {}
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except SQLAlchemyError as e:
        logger.warning("[health] database check failed: %s", e)
        checks["database"] = f"error: {e}"

    checks["llm"] = "ok" if is_llm_configured() else "not_configured"
    checks["payments"] = "ok" if is_payments_configured() else "not_configured"
    return checks


def setup_observability(app: FastAPI, version: str = "0.1.0") -> None:
    """
    在 FastAPI app 上挂载 Observability 组件。

    应在 router 注册之后、启动之前调用。未配置的 LLM / 支付不算故障，
    只有数据库不可达时 status 为 degraded。
    """
    app.add_middleware(ObservabilityMiddleware)

    @app.get("/metrics", include_in_schema=False)
    def prometheus_metrics():
        return PlainTextResponse(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/health/detailed", tags=["observability"])
    def health_detailed():
        """详细健康检查：各组件状态"""
        checks = check_components()
        overall = "ok" if checks["database"] == "ok" else "degraded"
        return {"status": overall, "components": checks}

    metrics.app_info.info({"version": version, "service": "blogcraft-ai"})
    logger.info("[observability] middleware + /metrics + /health/detailed registered")
