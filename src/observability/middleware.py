"""
FastAPI 中间件：采集 HTTP 请求延迟 / 计数 / 状态码。
"""

import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from src.observability.metrics import metrics

# 这些 segment 之后的一段是资源 ID
_ID_PARENTS = ("categories", "posts", "photos", "learning-samples", "versions")
_SKIP_PATHS = ("/metrics", "/health", "/health/detailed")


def _normalize_path(path: str) -> str:
    """
    将 path 中的动态 ID 替换为占位符，防止高基数指标。
    e.g. /posts/abc123/photos/p1 → /posts/{id}/photos/{id}
    """
    parts = [p for p in path.strip("/").split("/") if p]
    normalized = []
    skip_next = False
    for part in parts:
        if skip_next:
            # 固定子路由不是 ID
            normalized.append(part if part == "order" else "{id}")
            skip_next = False
            continue
        normalized.append(part)
        skip_next = part in _ID_PARENTS
    return "/" + "/".join(normalized)


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """采集每个 HTTP 请求的延迟和计数指标。"""

    async def dispatch(self, request: Request, call_next):
        if request.url.path in _SKIP_PATHS:
            return await call_next(request)

        method = request.method
        path = _normalize_path(request.url.path)
        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed = time.perf_counter() - start

        metrics.http_requests_total.labels(
            method=method, endpoint=path, status_code=str(response.status_code)
        ).inc()
        metrics.http_request_duration_seconds.labels(method=method, endpoint=path).observe(elapsed)
        return response
