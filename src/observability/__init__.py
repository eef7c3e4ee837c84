"""
Observability 模块：Prometheus metrics + 请求中间件 + /metrics、/health/detailed。

用法：
    from src.observability import setup_observability, metrics

    setup_observability(app)           # 在 router 注册之后调用
    metrics.generations_total.labels(outcome="ok").inc()
"""

from src.observability.metrics import metrics
from src.observability.setup import setup_observability

__all__ = ["setup_observability", "metrics"]
