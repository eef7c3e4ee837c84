"""
LLM access for style-profile and post generation.

    from src.llm import get_client, is_llm_configured
    text = get_client().chat(messages, max_tokens=1000, json_mode=True)
"""

from src.llm.client import OpenAICompatClient, ProviderConfig, get_client, is_llm_configured

__all__ = ["OpenAICompatClient", "ProviderConfig", "get_client", "is_llm_configured"]
