"""
日志管理模块：分级输出、每次启动一个日志文件、按大小/时间清理。
"""
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

DEFAULT_LEVEL = "INFO"
DEFAULT_MAX_SIZE_MB = 100
DEFAULT_MAX_AGE_DAYS = 30
LOG_SUBDIR = "app"
LOG_FORMAT = "%(asctime)s.%(msecs)03d | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class LogManager:
    """
    具名 logger 工厂：控制台 + 当前运行日志文件双输出。
    同一进程内所有 logger 共用一个按启动时间命名的 .log 文件。
    """

    def __init__(self, config: dict[str, Any] | None = None):
        config = config or {}
        log_dir = config.get("log_dir")
        self.log_dir = Path(log_dir) if log_dir else _PROJECT_ROOT / "logs" / LOG_SUBDIR
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.max_size_mb = int(config.get("max_size_mb", DEFAULT_MAX_SIZE_MB))
        self.max_age_days = int(config.get("max_age_days", DEFAULT_MAX_AGE_DAYS))
        self.console_output = bool(config.get("console_output", True))
        self.level = getattr(logging, str(config.get("level") or DEFAULT_LEVEL).upper(), logging.INFO)

        self.run_file = self.log_dir / datetime.now().strftime("%Y-%m-%d_%H-%M-%S.log")
        self._formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    def _handlers(self) -> list[logging.Handler]:
        handlers: list[logging.Handler] = [logging.FileHandler(self.run_file, encoding="utf-8")]
        if self.console_output:
            handlers.append(logging.StreamHandler())
        for h in handlers:
            h.setLevel(self.level)
            h.setFormatter(self._formatter)
        return handlers

    def get_logger(self, name: str) -> logging.Logger:
        logger = logging.getLogger(name)
        if logger.handlers:
            return logger
        logger.setLevel(self.level)
        logger.propagate = False
        for h in self._handlers():
            logger.addHandler(h)
        return logger

    def cleanup(self) -> dict[str, Any]:
        """先删过期文件，再从最旧开始删到总量不超过 max_size_mb。当前运行文件不删。"""
        report: dict[str, Any] = {"deleted": [], "remaining_mb": 0.0}
        files = sorted(
            (f for f in self.log_dir.glob("*.log") if f != self.run_file),
            key=lambda p: p.stat().st_mtime,
        )
        cutoff = (datetime.now() - timedelta(days=self.max_age_days)).timestamp()
        kept: list[Path] = []
        for f in files:
            if f.stat().st_mtime < cutoff:
                f.unlink()
                report["deleted"].append(f.name)
            else:
                kept.append(f)

        limit_bytes = self.max_size_mb * 1024 * 1024
        while kept and sum(f.stat().st_size for f in kept) > limit_bytes:
            oldest = kept.pop(0)
            oldest.unlink()
            report["deleted"].append(oldest.name)

        report["remaining_mb"] = sum(f.stat().st_size for f in kept) / (1024 * 1024)
        return report


_manager: LogManager | None = None


def init_logging(config: dict[str, Any] | None = None) -> LogManager:
    """用 config 初始化；未传时读取 settings.logging。"""
    global _manager
    if config is None:
        from config.settings import settings
        config = settings.logging.as_dict()
    _manager = LogManager(config)
    return _manager


def get_logger(name: str) -> logging.Logger:
    if _manager is None:
        init_logging()
    return _manager.get_logger(name)


def cleanup_logs() -> dict[str, Any]:
    if _manager is None:
        init_logging()
    return _manager.cleanup()
