"""Abstract base class for language-model providers.

Defines the ``Provider`` interface the team runner talks to. Providers
handle auth, endpoints, request formatting, and response normalization.
All providers return ``AgentReply`` objects; request-time failures are
reported through ``AgentReply.error`` rather than raised.

Subclasses must implement ``_post()``, ``_build_payload()``,
``_parse_body()``, and the async context manager hooks.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Any

import httpx

from grandmaster.models import AgentReply
from grandmaster.personas import Persona

DEFAULT_TIMEOUT = 120.0  # seconds


class ProviderError(Exception):
    """Raised when a provider API returns an unusable response.

    Attributes:
        status_code: HTTP status code from the API response.
        detail: Error detail string from the API response body.
    """

    def __init__(self, status_code: int, detail: str) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Provider API error {status_code}: {detail}")


class Provider(ABC):
    """Base class for all language-model providers.

    Designed as an async context manager for connection lifecycle.

    Args:
        api_key: Provider API key.
        model_id: Provider-specific model identifier.
        temperature: Sampling temperature.
        timeout: Request timeout in seconds.
    """

    name = "provider"
    key_hint = "API key"

    def __init__(
        self,
        api_key: str,
        model_id: str,
        *,
        temperature: float = 0.7,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if not api_key:
            raise ValueError(
                f"{self.name} API key is required. Set {self.key_hint} env var "
                "or add it to ~/.grandmaster/config.toml"
            )
        self._api_key = api_key
        self._model_id = model_id
        self._temperature = temperature
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    @property
    def model_id(self) -> str:
        """Model identifier sent with every request."""
        return self._model_id

    async def respond(
        self,
        persona: Persona,
        history: list[dict[str, str]],
        prompt: str,
    ) -> AgentReply:
        """Ask the model to answer ``prompt`` in character as ``persona``.

        Args:
            persona: Persona whose system prompt frames the reply.
            history: Prior turns as ``{"role": "user"|"model", "content": ...}``.
            prompt: The new user turn to answer.

        Returns:
            AgentReply with the model's text, timing, and token stats. On
            timeout, HTTP error, or an unparseable body, ``content`` is
            empty and ``error`` describes the failure.

        Raises:
            RuntimeError: If the provider is used outside a context manager.
        """
        if not self._client:
            raise RuntimeError("Client not initialized. Use 'async with' context manager.")

        payload = self._build_payload(persona, history, prompt)
        start = time.monotonic()

        try:
            resp = await self._post(payload)
        except httpx.TimeoutException:
            return self._failed(persona, start, f"Request timed out after {self._timeout}s")
        except httpx.HTTPError as exc:
            return self._failed(persona, start, f"Connection error: {exc}")

        if resp.status_code != 200:
            return self._failed(
                persona, start, f"HTTP {resp.status_code}: {_extract_error(resp)}"
            )

        try:
            data = resp.json()
        except ValueError:
            return self._failed(
                persona, start, f"[Failed to parse response: {resp.text[:500]}]"
            )

        try:
            content, token_count = self._parse_body(data)
        except ProviderError as exc:
            return self._failed(persona, start, exc.detail)

        return AgentReply(
            persona_id=persona.id,
            model_id=self._model_id,
            content=content,
            latency_ms=_elapsed_ms(start),
            token_count=token_count,
        )

    def _failed(self, persona: Persona, start: float, error: str) -> AgentReply:
        """Build an errored reply."""
        return AgentReply(
            persona_id=persona.id,
            model_id=self._model_id,
            content="",
            latency_ms=_elapsed_ms(start),
            error=error,
        )

    @abstractmethod
    def _build_payload(
        self,
        persona: Persona,
        history: list[dict[str, str]],
        prompt: str,
    ) -> dict[str, Any]:
        """Build the JSON request body for one call."""
        ...

    @abstractmethod
    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        """Send the request body to the provider endpoint."""
        ...

    @abstractmethod
    def _parse_body(self, data: dict[str, Any]) -> tuple[str, int | None]:
        """Extract ``(content, token_count)`` from a 200 response body.

        Raises:
            ProviderError: If the body has no usable content.
        """
        ...

    @abstractmethod
    async def __aenter__(self) -> Provider:
        """Enter the async context manager (open connections)."""
        ...

    async def __aexit__(self, *exc: Any) -> None:
        """Close the underlying HTTP connection pool."""
        if self._client:
            await self._client.aclose()
            self._client = None


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def _extract_error(resp: httpx.Response) -> str:
    """Extract error detail from a non-2xx API response.

    Args:
        resp: The httpx response object.

    Returns:
        Human-readable error description.
    """
    try:
        body = resp.json()
        error = body.get("error", {})
        if isinstance(error, dict):
            return str(error.get("message", str(body)))
        return str(error)
    except Exception:
        return str(resp.text[:500])
