"""
LLM Adapter Factory

提供商名称 -> 适配器类 的固定映射，纯构造，无 I/O。
"""

from typing import Dict, Optional, Type, Union

import httpx

from paperinsight.errors import UnsupportedProviderError

from .base import BaseLLMAdapter, LLMConfig, LLMProvider
from .claude import ClaudeAdapter
from .deepseek import DeepSeekAdapter
from .gemini import GeminiAdapter
from .openai import OpenAIAdapter


ADAPTERS: Dict[LLMProvider, Type[BaseLLMAdapter]] = {
    LLMProvider.DEEPSEEK: DeepSeekAdapter,
    LLMProvider.OPENAI: OpenAIAdapter,
    LLMProvider.CLAUDE: ClaudeAdapter,
    LLMProvider.GEMINI: GeminiAdapter,
}


def parse_provider(provider: Union[str, LLMProvider]) -> LLMProvider:
    """
    字符串 -> LLMProvider，不在枚举内则抛 UnsupportedProviderError
    """
    if isinstance(provider, LLMProvider):
        return provider
    try:
        return LLMProvider(provider)
    except ValueError:
        raise UnsupportedProviderError(str(provider)) from None


def create_llm_adapter(
    provider: Union[str, LLMProvider],
    config: LLMConfig,
    http_client: Optional[httpx.AsyncClient] = None,
) -> BaseLLMAdapter:
    adapter_cls = ADAPTERS[parse_provider(provider)]
    return adapter_cls(config, http_client=http_client)
