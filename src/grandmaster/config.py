"""Configuration management for Grandmaster.

Handles API key resolution, provider and model selection, team-mode
pacing, and export defaults. Configuration is loaded from a TOML file
(~/.grandmaster/config.toml) with environment variable overrides.

Typical usage::

    from grandmaster.config import load_config

    config = load_config()
    key = config.api_key
    model_id = config.resolve_model()
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

APP_DIR = Path.home() / ".grandmaster"
CONFIG_PATH = APP_DIR / "config.toml"

SUPPORTED_PROVIDERS = ("gemini", "openrouter")
DEFAULT_PROVIDER = "gemini"

# Provider name → default model ID.
DEFAULT_MODELS: dict[str, str] = {
    "gemini": "gemini-2.5-pro",
    "openrouter": "google/gemini-2.5-pro",
}

DEFAULT_TEMPERATURE = 0.7
DEFAULT_STEP_DELAY = 1.0
DEFAULT_TIMEOUT = 120.0
DEFAULT_EXPORT_FILENAME = "grandmaster-solution.ipynb"

# Env var name → provider key in the providers dict. Later entries win.
_ENV_VAR_MAP: dict[str, str] = {
    "API_KEY": "gemini",
    "GOOGLE_API_KEY": "gemini",
    "GEMINI_API_KEY": "gemini",
    "OPENROUTER_API_KEY": "openrouter",
}

PROVIDER_ENV_VAR = "GRANDMASTER_PROVIDER"


@dataclass
class Config:
    """Application configuration.

    Attributes:
        provider: Active language-model provider ("gemini" or "openrouter").
        providers: Mapping of provider name to API key.
        models: Mapping of provider name to model ID.
        temperature: Sampling temperature sent with every request.
        step_delay: Seconds to wait between Team Mode steps.
        timeout: Request timeout in seconds.
        export_filename: Default filename for notebook downloads.
    """

    provider: str = DEFAULT_PROVIDER
    providers: dict[str, str] = field(default_factory=dict)
    models: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_MODELS))
    temperature: float = DEFAULT_TEMPERATURE
    step_delay: float = DEFAULT_STEP_DELAY
    timeout: float = DEFAULT_TIMEOUT
    export_filename: str = DEFAULT_EXPORT_FILENAME

    @property
    def api_key(self) -> str:
        """API key for the active provider, or empty string if unset."""
        return self.get_provider_key(self.provider) or ""

    def resolve_model(self, provider: str | None = None) -> str:
        """Return the model ID configured for a provider.

        Args:
            provider: Provider name. Defaults to the active provider.

        Returns:
            The model ID string.

        Raises:
            ValueError: If the provider is not supported.
        """
        name = provider or self.provider
        if name not in SUPPORTED_PROVIDERS:
            raise ValueError(
                f"Unknown provider '{name}'. Supported: {', '.join(SUPPORTED_PROVIDERS)}."
            )
        return self.models.get(name) or DEFAULT_MODELS[name]

    def get_provider_key(self, provider: str) -> str | None:
        """Get the API key for a given provider.

        Checks the ``providers`` dict first, then falls back to the
        matching environment variables. The fallback covers manually
        constructed ``Config()`` instances that bypass ``load_config()``.

        Args:
            provider: Provider name (e.g. "gemini", "openrouter").

        Returns:
            The API key string, or None if not configured.
        """
        key = self.providers.get(provider, "")
        if key:
            return key
        for env_var in reversed(list(_ENV_VAR_MAP)):
            if _ENV_VAR_MAP[env_var] != provider:
                continue
            env_val = os.environ.get(env_var, "")
            if env_val:
                return env_val
        return None


def _apply_toml(config: Config, data: dict[str, Any]) -> None:
    """Apply parsed TOML data to a Config instance.

    Args:
        config: Config instance to populate.
        data: Parsed TOML dictionary.
    """
    if "provider" in data:
        config.provider = str(data["provider"])

    # --- Providers ---
    if "providers" in data:
        for toml_key, value in data["providers"].items():
            # Keys are like "gemini_api_key" → strip "_api_key" suffix.
            if toml_key.endswith("_api_key") and value:
                config.providers[toml_key[: -len("_api_key")]] = value

    # --- Models ---
    if "models" in data:
        config.models.update({k: str(v) for k, v in data["models"].items()})

    # --- Team ---
    if "team" in data:
        team: dict[str, Any] = data["team"]
        if "step_delay" in team:
            config.step_delay = max(float(team["step_delay"]), 0.0)
        if "temperature" in team:
            config.temperature = float(team["temperature"])
        if "timeout" in team:
            config.timeout = float(team["timeout"])

    # --- Export ---
    if "export" in data and "filename" in data["export"]:
        config.export_filename = str(data["export"]["filename"])


def _apply_env_overrides(config: Config) -> None:
    """Apply environment variable overrides to provider keys and provider choice.

    Args:
        config: Config instance to update.
    """
    for env_var, provider_name in _ENV_VAR_MAP.items():
        env_val = os.environ.get(env_var, "")
        if env_val:
            config.providers[provider_name] = env_val

    provider = os.environ.get(PROVIDER_ENV_VAR, "")
    if provider:
        config.provider = provider


def env_provider_names() -> set[str]:
    """Return provider names whose API keys are set in the environment."""
    return {name for var, name in _ENV_VAR_MAP.items() if os.environ.get(var, "")}


def load_config() -> Config:
    """Load configuration from file and environment.

    Resolution order for the Gemini API key:
        1. GEMINI_API_KEY, GOOGLE_API_KEY, then API_KEY environment variables
        2. [providers].gemini_api_key in config.toml
        3. Empty string (will fail at request time)

    Returns:
        Populated Config instance.

    Raises:
        ValueError: If the configured provider is not supported.
    """
    config = Config()

    if CONFIG_PATH.exists():
        with open(CONFIG_PATH, "rb") as f:
            _apply_toml(config, tomllib.load(f))

    _apply_env_overrides(config)

    if config.provider not in SUPPORTED_PROVIDERS:
        raise ValueError(
            f"Unknown provider '{config.provider}'. "
            f"Supported: {', '.join(SUPPORTED_PROVIDERS)}."
        )
    return config


def write_config(
    config: Config,
    path: Path | None = None,
    *,
    env_providers: set[str] | None = None,
) -> None:
    """Serialize a Config to TOML and write to disk.

    Provider keys sourced from environment variables are excluded. If the
    file already exists, its permissions are preserved after write.

    Args:
        config: Config instance to serialize.
        path: File path to write. Defaults to CONFIG_PATH.
        env_providers: Provider names whose keys came from env vars and
            should be excluded from the written file.
    """
    import tomlkit

    target = path or CONFIG_PATH
    env_provs = env_providers or set()

    existing_mode: int | None = None
    if target.exists():
        existing_mode = target.stat().st_mode & 0o777

    doc = tomlkit.document()
    doc.add("provider", config.provider)

    providers_table = tomlkit.table()
    for provider_name, key_value in sorted(config.providers.items()):
        if provider_name in env_provs:
            continue
        if key_value:
            providers_table.add(f"{provider_name}_api_key", key_value)
    doc.add("providers", providers_table)

    models_table = tomlkit.table()
    for provider_name, model_id in sorted(config.models.items()):
        models_table.add(provider_name, model_id)
    doc.add("models", models_table)

    team_table = tomlkit.table()
    team_table.add("step_delay", config.step_delay)
    team_table.add("temperature", config.temperature)
    team_table.add("timeout", config.timeout)
    doc.add("team", team_table)

    export_table = tomlkit.table()
    export_table.add("filename", config.export_filename)
    doc.add("export", export_table)

    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(tomlkit.dumps(doc), encoding="utf-8")

    if existing_mode is not None:
        target.chmod(existing_mode)
