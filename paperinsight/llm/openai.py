"""
OpenAI LLM Adapter

/chat/completions 协议，DeepSeek 复用同一实现。
"""

import logging
from typing import List

import httpx

from .base import BaseLLMAdapter, LLMMessage, LLMProvider, LLMResponse, Pricing

logger = logging.getLogger(__name__)


class OpenAIAdapter(BaseLLMAdapter):
    provider = LLMProvider.OPENAI
    base_url = "https://api.openai.com/v1"
    # GPT-4: $0.03 / 1K input, $0.06 / 1K output
    pricing = Pricing(input_per_token=0.03 / 1000, output_per_token=0.06 / 1000)

    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.api_key}",
        }

    async def chat(self, messages: List[LLMMessage]) -> LLMResponse:
        payload = {
            "model": self.config.model,
            "messages": [m.to_dict() for m in messages],
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
        }

        async with self._client() as client:
            response = await client.post(
                f"{self.base_url}/chat/completions",
                headers=self._headers(),
                json=payload,
            )

        self._raise_for_status(response)
        data = response.json()

        choices = data.get("choices") or [{}]
        return LLMResponse(
            content=(choices[0].get("message") or {}).get("content") or "",
            tokens_used=(data.get("usage") or {}).get("total_tokens"),
            model=data.get("model"),
        )

    async def validate_api_key(self) -> bool:
        try:
            async with self._client() as client:
                response = await client.get(
                    f"{self.base_url}/models",
                    headers={"Authorization": f"Bearer {self.config.api_key}"},
                )
            return response.is_success
        except httpx.HTTPError as e:
            logger.warning(f"⚠️ [{self.get_provider()}] API key validation error: {e}")
            return False
