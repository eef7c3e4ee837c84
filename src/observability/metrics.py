"""
Prometheus metrics 定义。

所有指标集中在这里，业务模块通过 `from src.observability import metrics` 引用。
"""

from prometheus_client import Counter, Histogram, Info


class _Metrics:
    """集中管理所有 Prometheus 指标"""

    def __init__(self):
        # ── HTTP 请求 ──
        self.http_requests_total = Counter(
            "blogcraft_http_requests_total",
            "HTTP 请求总数",
            ["method", "endpoint", "status_code"],
        )
        self.http_request_duration_seconds = Histogram(
            "blogcraft_http_request_duration_seconds",
            "HTTP 请求延迟 (秒)",
            ["method", "endpoint"],
            buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
        )

        # ── LLM ──
        self.llm_requests_total = Counter(
            "blogcraft_llm_requests_total",
            "LLM 调用总数",
            ["model"],
        )
        self.llm_duration_seconds = Histogram(
            "blogcraft_llm_duration_seconds",
            "LLM 调用延迟 (秒)",
            ["model"],
            buckets=(0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0),
        )
        self.llm_errors_total = Counter(
            "blogcraft_llm_errors_total",
            "LLM 调用失败数",
            ["model"],
        )

        # ── 生成流程 ──
        self.generations_total = Counter(
            "blogcraft_generations_total",
            "文章生成次数",
            ["outcome"],  # ok / short_content
        )
        self.style_profiles_total = Counter(
            "blogcraft_style_profiles_total",
            "风格档案生成次数",
        )

        # ── 支付 ──
        self.webhook_events_total = Counter(
            "blogcraft_webhook_events_total",
            "已验证的支付 webhook 事件数",
            ["event_type", "applied"],
        )

        self.app_info = Info(
            "blogcraft_app",
            "应用元信息",
        )


# 单例
metrics = _Metrics()
