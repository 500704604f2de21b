"""Abstract base class for text-generation service providers.

Defines the contract for the large-language-model backend used by the
summarizer, the tag classifier and the answer generator.  Implementations
wrap OpenAI (or an OpenAI-compatible endpoint), Anthropic, or a local
Ollama server, so every call-site stays provider-agnostic and tests can
inject a mock.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations: OpenAILLMProvider, AnthropicLLMProvider, OllamaLLMProvider
# Located in: src/providers/llm/
class ILLMProvider(ABC):
    """Contract for LLM services used by the linkvault pipelines."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
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
            The model's text response.  Callers must treat it as untrusted
            text, never as structured data.

        Raises
        ------
        src.utils.errors.LLMError
            If the API call fails, times out, or returns no content.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this LLM provider.

        Example return values: ``"openai"``, ``"anthropic"``, ``"ollama"``.
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured.

        Implementations check that credentials are present without making
        an inference call.
        """

    @abstractmethod
    async def validate_credentials(self) -> bool:
        """Perform a lightweight API call to confirm credentials are valid.

        Unlike :meth:`is_available`, this method contacts the remote service.
        """
