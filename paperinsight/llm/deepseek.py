"""
DeepSeek LLM Adapter（OpenAI 兼容协议）
"""

from .base import LLMProvider, Pricing
from .openai import OpenAIAdapter


class DeepSeekAdapter(OpenAIAdapter):
    provider = LLMProvider.DEEPSEEK
    base_url = "https://api.deepseek.com/v1"
    # $0.14 / 1M input, $0.28 / 1M output
    pricing = Pricing(input_per_token=0.14 / 1_000_000, output_per_token=0.28 / 1_000_000)
