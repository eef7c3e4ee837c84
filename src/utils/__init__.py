# Utils: prompt templates, shared provider/lookup errors
from src.utils.errors import NotFoundError, PreconditionFailed, ProviderError, ProviderNotConfigured
from src.utils.prompt_manager import PromptManager

__all__ = [
    "NotFoundError",
    "PreconditionFailed",
    "ProviderError",
    "ProviderNotConfigured",
    "PromptManager",
]
