"""
OpenAI-compatible chat client over requests.

- Session reuse, configurable timeout
- Retry on 429/5xx with exponential backoff (llm.max_retries, default 0:
  a failure surfaces on the first attempt)
- is_configured() lets callers fail fast before building prompts
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from src.log import get_logger
from src.observability import metrics
from src.utils.errors import ProviderError, ProviderNotConfigured

logger = get_logger(__name__)

_RETRYABLE_STATUS = (429, 500, 502, 503)


@dataclass
class ProviderConfig:
    api_key: str
    base_url: str
    model: str
    timeout: int = 120
    max_retries: int = 0
    retry_backoff: float = 1.5

    @classmethod
    def from_settings(cls) -> "ProviderConfig":
        from config.settings import settings
        llm = settings.llm
        return cls(
            api_key=llm.api_key,
            base_url=llm.base_url,
            model=llm.model,
            timeout=llm.timeout_seconds,
            max_retries=llm.max_retries,
            retry_backoff=llm.retry_backoff,
        )


def _request_with_retry(
    session: requests.Session,
    url: str,
    timeout: int,
    max_retries: int,
    backoff: float,
    **kwargs: Any,
) -> requests.Response:
    for attempt in range(max_retries + 1):
        last = attempt >= max_retries
        try:
            resp = session.post(url, timeout=timeout, **kwargs)
        except requests.exceptions.RequestException:
            if last:
                raise
            time.sleep(backoff ** attempt)
            continue
        if resp.status_code in _RETRYABLE_STATUS and not last:
            logger.warning("LLM HTTP %s, retry %d/%d", resp.status_code, attempt + 1, max_retries)
            time.sleep(backoff ** attempt)
            continue
        resp.raise_for_status()
        return resp
    raise RuntimeError("unreachable")


class OpenAICompatClient:
    """Minimal /chat/completions client returning the first choice's text."""

    def __init__(self, config: ProviderConfig):
        self.config = config
        self._session = requests.Session()

    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    def chat(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int = 1000,
        json_mode: bool = False,
        model: Optional[str] = None,
    ) -> str:
        if not self.is_configured():
            raise ProviderNotConfigured("OpenAI API key is not configured")

        payload: Dict[str, Any] = {
            "model": model or self.config.model,
            "messages": messages,
            "max_tokens": max_tokens,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        url = f"{self.config.base_url.rstrip('/')}/chat/completions"
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.api_key}",
        }
        model_name = payload["model"]
        metrics.llm_requests_total.labels(model=model_name).inc()
        started = time.time()
        try:
            resp = _request_with_retry(
                self._session, url, self.config.timeout,
                self.config.max_retries, self.config.retry_backoff,
                headers=headers, json=payload,
            )
            raw = resp.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            metrics.llm_errors_total.labels(model=model_name).inc()
            logger.error("LLM request failed: %s", e)
            raise ProviderError(f"LLM request failed: {e}") from e

        elapsed = time.time() - started
        metrics.llm_duration_seconds.labels(model=model_name).observe(elapsed)

        choices = raw.get("choices") or []
        content = ((choices[0] if choices else {}).get("message") or {}).get("content")
        logger.info(
            "LLM chat done model=%s elapsed=%.1fs usage=%s",
            model_name, elapsed, raw.get("usage"),
        )
        return content or ""


_client: Optional[OpenAICompatClient] = None


def get_client() -> OpenAICompatClient:
    """Process-wide client built from settings.llm; rebuilt when the config changes."""
    global _client
    config = ProviderConfig.from_settings()
    if _client is None or _client.config != config:
        _client = OpenAICompatClient(config)
    return _client


def is_llm_configured() -> bool:
    from config.settings import settings
    return settings.llm.is_available()
