# paperinsight/llm/__init__.py

"""
多提供商 LLM 适配层

提供：
- 统一的消息 / 响应 / 配置结构
- DeepSeek / OpenAI / Claude / Gemini 适配器
- 按提供商名称构造适配器的工厂
"""

from .base import (
    BaseLLMAdapter,
    LLMConfig,
    LLMMessage,
    LLMProvider,
    LLMResponse,
)
from .claude import ClaudeAdapter
from .deepseek import DeepSeekAdapter
from .gemini import GeminiAdapter
from .openai import OpenAIAdapter
from .factory import create_llm_adapter, parse_provider

__all__ = [
    # 基础结构
    "BaseLLMAdapter",
    "LLMConfig",
    "LLMMessage",
    "LLMProvider",
    "LLMResponse",
    # 适配器
    "DeepSeekAdapter",
    "OpenAIAdapter",
    "ClaudeAdapter",
    "GeminiAdapter",
    # 工厂
    "create_llm_adapter",
    "parse_provider",
]
