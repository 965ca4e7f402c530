"""Abstract base class for LLM service providers.

Defines the contract for the text-completion backend that writes article
summaries.  Implementations wrap the OpenAI API (or any OpenAI-compatible
endpoint) and the Anthropic API.  The adapter pattern keeps every
call-site provider-agnostic.
"""

from __future__ import annotations

# ABC = Abstract Base Class - Python's way of defining interfaces.
# abstractmethod marks methods that MUST be overridden by concrete classes.
from abc import ABC, abstractmethod


# Concrete implementations: OpenAILLMProvider, AnthropicLLMProvider
# Located in: src/providers/llm/
class ILLMProvider(ABC):
    """Contract for text-completion services."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.5,
        max_tokens: int = 300,
    ) -> str:
        """Generate a text completion from the model.

        Parameters
        ----------
        system_prompt:
            The system/instruction message that sets the model's behaviour.
        user_prompt:
            The user-facing prompt containing the actual request or data.
        temperature:
            Sampling temperature (0.0 = deterministic, 1.0 = creative).
        max_tokens:
            Upper bound on the number of tokens in the response.

        Returns
        -------
        str
            The model's text response.

        Raises
        ------
        src.utils.errors.LLMError
            If the API call fails or returns an empty response.
        src.utils.errors.RateLimitError
            If the provider reports a rate limit.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are configured."""
