"""Google Gemini LLM provider (google-genai SDK)."""

import logging

from careersync.analysis.llm.base import LLMProvider

logger = logging.getLogger(__name__)


class GeminiProvider(LLMProvider):
    """LLM provider using the Google Gemini API (google-genai SDK)."""

    @property
    def provider_id(self) -> str:
        return "gemini"

    @property
    def default_model(self) -> str:
        return "gemini-2.5-pro"

    @property
    def default_fast_model(self) -> str:
        return "gemini-2.5-flash"

    @property
    def env_var(self) -> str:
        return "GOOGLE_API_KEY"

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
            from google import genai
            from google.genai import types as genai_types
        except ImportError:
            msg = (
                "google-genai is required for the Gemini provider. "
                "Install with: pip install google-genai"
            )
            raise ImportError(msg) from None

        use_model = model or self.default_model
        config_kwargs: dict[str, object] = {"system_instruction": system}
        if web_search:
            # Search grounding cannot be combined with a JSON response type.
            config_kwargs["tools"] = [genai_types.Tool(google_search=genai_types.GoogleSearch())]
        elif json_output:
            config_kwargs["response_mime_type"] = "application/json"

        logger.info("Sending request to Gemini API (%s)...", use_model)
        client = genai.Client(api_key=api_key)
        response = client.models.generate_content(
            model=use_model,
            contents=prompt,
            config=genai_types.GenerateContentConfig(**config_kwargs),
        )

        return response.text or ""
