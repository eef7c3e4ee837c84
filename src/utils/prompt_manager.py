"""Prompt templates for the generation calls, loaded from ``src/prompts/*.txt``."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Dict

_PROMPTS_DIR = Path(__file__).resolve().parents[1] / "prompts"


class PromptManager:
    """Process-wide template cache.

    Templates use ``str.format`` placeholders; literal braces (the JSON
    response schemas) are doubled in the files. Each file is read once.

    Usage::

        text = PromptManager().render("post_user.txt", location_name="...", ...)
    """

    _instance: PromptManager | None = None
    _lock = threading.Lock()

    def __new__(cls) -> "PromptManager":
        with cls._lock:
            if cls._instance is None:
                inst = super().__new__(cls)
                inst._templates = {}
                cls._instance = inst
        return cls._instance

    def template(self, name: str) -> str:
        cache: Dict[str, str] = self._templates
        if name not in cache:
            cache[name] = (_PROMPTS_DIR / name).read_text(encoding="utf-8").strip()
        return cache[name]

    def render(self, name: str, **kwargs: object) -> str:
        return self.template(name).format(**kwargs)
