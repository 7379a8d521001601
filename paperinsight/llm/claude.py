"""
Claude (Anthropic) LLM Adapter

与 OpenAI 协议的差异：
- system 消息不放在 messages 里，而是提升为顶层 system 字段
- 鉴权头为 x-api-key + anthropic-version
"""

import logging
from typing import List

import httpx

from .base import BaseLLMAdapter, LLMMessage, LLMProvider, LLMResponse, Pricing

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"


class ClaudeAdapter(BaseLLMAdapter):
    provider = LLMProvider.CLAUDE
    base_url = "https://api.anthropic.com/v1"
    # $0.015 / 1K input, $0.075 / 1K output
    pricing = Pricing(input_per_token=0.015 / 1000, output_per_token=0.075 / 1000)

    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "x-api-key": self.config.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

    async def chat(self, messages: List[LLMMessage]) -> LLMResponse:
        system, conversation = self._split_system(messages)

        payload = {
            "model": self.config.model,
            "messages": [m.to_dict() for m in conversation],
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
        }
        if system is not None:
            payload["system"] = system.content

        async with self._client() as client:
            response = await client.post(
                f"{self.base_url}/messages",
                headers=self._headers(),
                json=payload,
            )

        self._raise_for_status(response)
        data = response.json()

        blocks = data.get("content") or [{}]
        usage = data.get("usage") or {}
        tokens_used = None
        if "input_tokens" in usage or "output_tokens" in usage:
            tokens_used = usage.get("input_tokens", 0) + usage.get("output_tokens", 0)

        return LLMResponse(
            content=blocks[0].get("text") or "",
            tokens_used=tokens_used,
            model=data.get("model"),
        )

    async def validate_api_key(self) -> bool:
        """
        Claude 没有专门的验证端点，发一个 1 token 的请求；400 也说明密钥本身有效
        """
        try:
            async with self._client() as client:
                response = await client.post(
                    f"{self.base_url}/messages",
                    headers=self._headers(),
                    json={
                        "model": self.config.model,
                        "messages": [{"role": "user", "content": "test"}],
                        "max_tokens": 1,
                    },
                )
            return response.is_success or response.status_code == 400
        except httpx.HTTPError as e:
            logger.warning(f"⚠️ [claude] API key validation error: {e}")
            return False
