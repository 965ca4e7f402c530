"""LLM provider adapters.

Two concrete implementations of ILLMProvider (src/interfaces/llm_provider.py):
    - OpenAILLMProvider    - gpt-4o-mini (also supports OpenAI-compatible APIs)
    - AnthropicLLMProvider - Claude

main.py picks the first provider whose API key is configured.
"""

from src.providers.llm.anthropic_provider import AnthropicLLMProvider
from src.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["AnthropicLLMProvider", "OpenAILLMProvider"]
