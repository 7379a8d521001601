"""
LLM 适配器基类

四家提供商（DeepSeek / OpenAI / Claude / Gemini）统一成同一套接口：
- chat: 发送消息列表，返回文本 + token 用量
- validate_api_key: 用最便宜的请求验证密钥
- estimate_cost: 按固定价格表粗略估算费用（输入/输出各占一半）
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Dict, List, Literal, Optional

import httpx

from paperinsight.errors import ProviderError

logger = logging.getLogger(__name__)


class LLMProvider(str, Enum):
    DEEPSEEK = "deepseek"
    OPENAI = "openai"
    CLAUDE = "claude"
    GEMINI = "gemini"


Role = Literal["system", "user", "assistant"]


@dataclass
class LLMMessage:
    role: Role
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class LLMResponse:
    content: str
    tokens_used: Optional[int] = None
    model: Optional[str] = None


@dataclass
class LLMConfig:
    api_key: str
    model: str
    temperature: float = 0.7
    max_tokens: int = 4000
    timeout: float = 120.0


@dataclass(frozen=True)
class Pricing:
    """USD per token"""
    input_per_token: float
    output_per_token: float


class BaseLLMAdapter(ABC):
    provider: LLMProvider
    base_url: str
    pricing: Pricing

    def __init__(self, config: LLMConfig, http_client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._http_client = http_client

    @abstractmethod
    async def chat(self, messages: List[LLMMessage]) -> LLMResponse:
        """发送聊天请求"""

    @abstractmethod
    async def validate_api_key(self) -> bool:
        """验证 API 密钥是否有效"""

    def get_provider(self) -> str:
        return self.provider.value

    def get_model(self) -> str:
        return self.config.model

    def estimate_cost(self, tokens_used: int) -> float:
        """
        简化估算：假设输入输出 token 各占一半
        """
        half = tokens_used * 0.5
        return half * self.pricing.input_per_token + half * self.pricing.output_per_token

    # --------------------------------------------------
    # HTTP helpers
    # --------------------------------------------------

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        """
        优先使用注入的 client（测试 / 连接复用），否则每次调用临时创建
        """
        if self._http_client is not None:
            yield self._http_client
            return

        async with httpx.AsyncClient(timeout=self.config.timeout) as client:
            yield client

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return
        logger.error(
            f"❌ [{self.get_provider()}] chat failed: {response.status_code} {response.text[:200]}"
        )
        raise ProviderError(self.get_provider(), response.status_code, response.text)

    @staticmethod
    def _split_system(messages: List[LLMMessage]) -> tuple[Optional[LLMMessage], List[LLMMessage]]:
        """拆出 system 消息（至多一条）和其余对话消息"""
        system = next((m for m in messages if m.role == "system"), None)
        rest = [m for m in messages if m.role != "system"]
        return system, rest
