"""OpenAI LLM provider, also used for OpenAI-compatible local servers."""

import logging

from careersync.analysis.llm.base import LLMProvider

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """LLM provider using the OpenAI chat completions API.

    Set ``base_url`` to target an OpenAI-compatible server such as Ollama
    (``http://localhost:11434/v1``).
    """

    @property
    def provider_id(self) -> str:
        return "openai"

    @property
    def default_model(self) -> str:
        return "gpt-4o"

    @property
    def default_fast_model(self) -> str:
        return "gpt-4o-mini"

    @property
    def env_var(self) -> str:
        return "OPENAI_API_KEY"

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
        json_output: bool = False,
        web_search: bool = False,
    ) -> str:
        api_key = self.require_api_key()

        try:
            import openai
        except ImportError:
            msg = (
                "openai is required for the OpenAI provider. "
                "Install with: pip install 'careersync[openai]'"
            )
            raise ImportError(msg) from None

        if web_search:
            logger.debug("Web search grounding is not supported by chat completions; ignoring")

        client = openai.OpenAI(api_key=api_key, base_url=self._base_url)
        use_model = model or self.default_model

        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        kwargs = {}
        if json_output:
            kwargs["response_format"] = {"type": "json_object"}

        logger.info("Sending request to OpenAI API (%s)...", use_model)
        response = client.chat.completions.create(
            model=use_model,
            messages=messages,
            **kwargs,
        )

        return response.choices[0].message.content or ""
