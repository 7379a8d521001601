"""
Gemini (Google) LLM Adapter

- assistant -> model，其余角色 -> user
- system 消息转为 systemInstruction
- 密钥通过 ?key= 查询参数传递
"""

import logging
from typing import List

import httpx

from .base import BaseLLMAdapter, LLMMessage, LLMProvider, LLMResponse, Pricing

logger = logging.getLogger(__name__)


class GeminiAdapter(BaseLLMAdapter):
    provider = LLMProvider.GEMINI
    base_url = "https://generativelanguage.googleapis.com/v1beta"
    # $0.00025 / 1K input, $0.0005 / 1K output
    pricing = Pricing(input_per_token=0.00025 / 1000, output_per_token=0.0005 / 1000)

    async def chat(self, messages: List[LLMMessage]) -> LLMResponse:
        system, conversation = self._split_system(messages)

        payload = {
            "contents": [
                {
                    "role": "model" if m.role == "assistant" else "user",
                    "parts": [{"text": m.content}],
                }
                for m in conversation
            ],
            "generationConfig": {
                "temperature": self.config.temperature,
                "maxOutputTokens": self.config.max_tokens,
            },
        }
        if system is not None:
            payload["systemInstruction"] = {"parts": [{"text": system.content}]}

        async with self._client() as client:
            response = await client.post(
                f"{self.base_url}/models/{self.config.model}:generateContent",
                params={"key": self.config.api_key},
                headers={"Content-Type": "application/json"},
                json=payload,
            )

        self._raise_for_status(response)
        data = response.json()

        candidates = data.get("candidates") or [{}]
        parts = (candidates[0].get("content") or {}).get("parts") or [{}]
        usage = data.get("usageMetadata") or {}
        tokens_used = None
        if usage:
            tokens_used = usage.get("promptTokenCount", 0) + usage.get("candidatesTokenCount", 0)

        return LLMResponse(
            content=parts[0].get("text") or "",
            tokens_used=tokens_used,
            model=self.config.model,
        )

    async def validate_api_key(self) -> bool:
        try:
            async with self._client() as client:
                response = await client.get(
                    f"{self.base_url}/models",
                    params={"key": self.config.api_key},
                )
            return response.is_success
        except httpx.HTTPError as e:
            logger.warning(f"⚠️ [gemini] API key validation error: {e}")
            return False
