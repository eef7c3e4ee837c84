"""
统一配置模块
- 配置文件: config/blogcraft_config.json（可调参数）
- 本地覆盖: config/blogcraft_config.local.json（本地私密配置）
- 环境变量优先覆盖敏感项（API Key、Stripe 密钥等）
"""

import os
import json
from pathlib import Path
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional
from dotenv import load_dotenv

load_dotenv()

_CONFIG_PATH = Path(__file__).parent / "blogcraft_config.json"
_LOCAL_CONFIG_PATH = Path(__file__).parent / "blogcraft_config.local.json"


def _load_json(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_raw_config() -> Dict[str, Any]:
    """blogcraft_config.json 与 .local.json 合并后的原始字典。"""
    raw = _load_json(_CONFIG_PATH)
    if _LOCAL_CONFIG_PATH.exists():
        raw = _deep_merge(raw, _load_json(_LOCAL_CONFIG_PATH))
    return raw


_RAW_CONFIG: Dict[str, Any] = load_raw_config()


def _section(name: str) -> Dict[str, Any]:
    return _RAW_CONFIG.get(name) or {}


@dataclass
class ApiSettings:
    """API 服务配置"""
    host: str = os.getenv("API_HOST", "127.0.0.1")
    port: int = int(os.getenv("API_PORT", "8000"))
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    # 结账/门户回跳地址的基础 URL
    app_url: str = os.getenv("APP_URL", "http://localhost:3000")


@dataclass
class AuthSettings:
    """会话认证配置（持久化 sessions 表）"""
    session_max_age_days: int = 7
    cookie_name: str = "session_token"
    cookie_secure: bool = False

    @property
    def session_max_age_seconds(self) -> int:
        return self.session_max_age_days * 24 * 60 * 60


@dataclass
class StorageSettings:
    """上传照片存储"""
    upload_dir: str = "data/uploads"

    @property
    def upload_path(self) -> Path:
        p = Path(self.upload_dir)
        if not p.is_absolute():
            p = Path(__file__).resolve().parent.parent / p
        return p


@dataclass
class LLMSettings:
    """
    OpenAI 兼容接口配置。api_key 为空即视为未配置，
    生成流程据此在调用前直接失败（503）。
    """
    api_key: str = ""
    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4o-mini"
    timeout_seconds: int = 120
    max_retries: int = 0
    retry_backoff: float = 1.5
    style_max_tokens: int = 1000
    post_max_tokens: int = 4000

    def is_available(self) -> bool:
        return bool(self.api_key)


@dataclass
class PaymentSettings:
    """Stripe 配置。secret_key 为空时支付相关接口返回 503。"""
    secret_key: str = ""
    webhook_secret: str = ""
    webhook_tolerance_seconds: int = 300

    def is_configured(self) -> bool:
        return bool(self.secret_key)


@dataclass
class LoggingSettings:
    level: str = "INFO"
    console_output: bool = True
    max_size_mb: int = 100
    max_age_days: int = 30
    log_dir: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "console_output": self.console_output,
            "max_size_mb": self.max_size_mb,
            "max_age_days": self.max_age_days,
            "log_dir": self.log_dir,
        }


class Settings:
    def __init__(self):
        self.env = os.getenv("BLOGCRAFT_ENV", "dev")

        api_cfg = _section("api")
        self.api = ApiSettings(
            host=api_cfg.get("host", ApiSettings.host),
            port=int(api_cfg.get("port", ApiSettings.port)),
            cors_origins=api_cfg.get("cors_origins") or ["*"],
            app_url=os.getenv("APP_URL") or api_cfg.get("app_url") or ApiSettings.app_url,
        )

        auth_cfg = _section("auth")
        self.auth = AuthSettings(
            session_max_age_days=int(auth_cfg.get("session_max_age_days", 7)),
            cookie_name=auth_cfg.get("cookie_name", "session_token"),
            cookie_secure=bool(auth_cfg.get("cookie_secure", self.env == "prod")),
        )

        storage_cfg = _section("storage")
        self.storage = StorageSettings(
            upload_dir=os.getenv("BLOGCRAFT_UPLOAD_DIR") or storage_cfg.get("upload_dir", "data/uploads"),
        )

        llm_cfg = _section("llm")
        self.llm = LLMSettings(
            api_key=os.getenv("OPENAI_API_KEY") or llm_cfg.get("api_key", ""),
            base_url=os.getenv("OPENAI_BASE_URL") or llm_cfg.get("base_url", LLMSettings.base_url),
            model=llm_cfg.get("model", LLMSettings.model),
            timeout_seconds=int(llm_cfg.get("timeout_seconds", 120)),
            max_retries=int(llm_cfg.get("max_retries", 0)),
            retry_backoff=float(llm_cfg.get("retry_backoff", 1.5)),
            style_max_tokens=int(llm_cfg.get("style_max_tokens", 1000)),
            post_max_tokens=int(llm_cfg.get("post_max_tokens", 4000)),
        )

        pay_cfg = _section("payments")
        self.payments = PaymentSettings(
            secret_key=os.getenv("STRIPE_SECRET_KEY") or pay_cfg.get("secret_key", ""),
            webhook_secret=os.getenv("STRIPE_WEBHOOK_SECRET") or pay_cfg.get("webhook_secret", ""),
            webhook_tolerance_seconds=int(pay_cfg.get("webhook_tolerance_seconds", 300)),
        )

        log_cfg = _section("logging")
        self.logging = LoggingSettings(
            level=os.getenv("LOG_LEVEL") or log_cfg.get("level", "INFO"),
            console_output=bool(log_cfg.get("console_output", True)),
            max_size_mb=int(log_cfg.get("max_size_mb", 100)),
            max_age_days=int(log_cfg.get("max_age_days", 30)),
            log_dir=log_cfg.get("log_dir"),
        )

    @property
    def is_prod(self) -> bool:
        return self.env == "prod"


settings = Settings()
