"""LLM provider registry with lazy loading.

Usage:
    from careersync.analysis.llm import get_provider

    provider = get_provider("gemini")
    raw = provider.complete(prompt)
"""

from __future__ import annotations

import importlib

from careersync.analysis.llm.base import LLMProvider

__all__ = ["LLMProvider", "available_providers", "get_provider"]

# Lazy registry: maps provider name → (module_path, class_name)
_REGISTRY: dict[str, tuple[str, str]] = {
    "gemini": ("careersync.analysis.llm.gemini", "GeminiProvider"),
    "openai": ("careersync.analysis.llm.openai", "OpenAIProvider"),
}


def get_provider(
    name: str,
    *,
    api_key: str | None = None,
    base_url: str | None = None,
) -> LLMProvider:
    """Instantiate and return an LLM provider by name.

    Args:
        name: Provider identifier (gemini, openai).
        api_key: Explicit key; None falls back to the provider's env var.
        base_url: Custom endpoint for providers that support one.

    Raises:
        ValueError: If the provider name is unknown.
    """
    if name not in _REGISTRY:
        valid = ", ".join(sorted(_REGISTRY))
        msg = f"Unknown LLM provider '{name}'. Available: {valid}"
        raise ValueError(msg)

    module_path, class_name = _REGISTRY[name]
    module = importlib.import_module(module_path)
    cls = getattr(module, class_name)
    return cls(api_key=api_key, base_url=base_url)  # type: ignore[no-any-return]


def available_providers() -> list[str]:
    """Return sorted list of registered provider names."""
    return sorted(_REGISTRY)
