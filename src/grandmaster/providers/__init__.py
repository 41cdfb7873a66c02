"""Provider abstraction layer for language-model access.

Re-exports the public interface so callers can write::

    from grandmaster.providers import Provider, create_provider
"""

from grandmaster.config import Config
from grandmaster.providers.base import Provider, ProviderError
from grandmaster.providers.gemini import GeminiProvider
from grandmaster.providers.openrouter import OpenRouterProvider

_PROVIDER_CLASSES: dict[str, type[Provider]] = {
    "gemini": GeminiProvider,
    "openrouter": OpenRouterProvider,
}


def create_provider(config: Config) -> Provider:
    """Build the provider selected by ``config.provider``.

    Args:
        config: Loaded application configuration.

    Returns:
        An unopened provider; use it with ``async with``.

    Raises:
        ValueError: If the provider is unknown or its API key is missing.
    """
    cls = _PROVIDER_CLASSES.get(config.provider)
    if cls is None:
        raise ValueError(f"Unknown provider '{config.provider}'.")
    return cls(
        config.api_key,
        config.resolve_model(),
        temperature=config.temperature,
        timeout=config.timeout,
    )


__all__ = [
    "GeminiProvider",
    "OpenRouterProvider",
    "Provider",
    "ProviderError",
    "create_provider",
]
