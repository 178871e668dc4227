"""Abstract base class for LLM providers."""

import os
from abc import ABC, abstractmethod

from careersync.core.errors import StartupError


class LLMProvider(ABC):
    """Base class that every LLM provider must implement.

    The API key is taken from the constructor or, failing that, from the
    provider's environment variable.
    """

    def __init__(self, api_key: str | None = None, base_url: str | None = None) -> None:
        self._api_key = api_key
        self._base_url = base_url

    @property
    @abstractmethod
    def provider_id(self) -> str:
        """Unique identifier for this provider (e.g. 'gemini')."""

    @property
    @abstractmethod
    def default_model(self) -> str:
        """Model used for heavy requests when no override is configured."""

    @property
    @abstractmethod
    def default_fast_model(self) -> str:
        """Model used for light requests (skill lists, explanations)."""

    @property
    @abstractmethod
    def env_var(self) -> str:
        """Environment variable holding the API key."""

    def require_api_key(self) -> str:
        """Return the API key. Raises StartupError when none is configured."""
        api_key = self._api_key or os.environ.get(self.env_var, "").strip()
        if not api_key:
            msg = f"{self.env_var} environment variable is required"
            raise StartupError(msg)
        return api_key

    @abstractmethod
    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
        json_output: bool = False,
        web_search: bool = False,
    ) -> str:
        """Send a prompt and return the raw response text.

        Args:
            prompt: The user prompt.
            model: Override the provider's default model. None uses default.
            system: Optional system instruction.
            json_output: Ask the model for a bare JSON response.
            web_search: Let the model ground its answer in web search
                results, where the provider supports it.

        Returns:
            Raw text response from the LLM.
        """
