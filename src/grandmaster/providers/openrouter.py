"""OpenRouter provider implementation.

Async HTTP provider that sends chat completion requests to OpenRouter's
OpenAI-compatible endpoint. The persona's system prompt is sent as a
``system`` message; agent turns in the history map to ``assistant``.

Typical usage::

    async with OpenRouterProvider(api_key="sk-or-...", model_id="google/gemini-2.5-pro") as p:
        reply = await p.respond(persona, history, "Plan the EDA.")
"""

from __future__ import annotations

from typing import Any

import httpx

from grandmaster.personas import Persona
from grandmaster.providers.base import Provider, ProviderError

OPENROUTER_API_URL = "https://openrouter.ai/api/v1/chat/completions"
APP_NAME = "Grandmaster"


class OpenRouterProvider(Provider):
    """Async provider for the OpenRouter chat completions API."""

    name = "OpenRouter"
    key_hint = "OPENROUTER_API_KEY"

    async def __aenter__(self) -> OpenRouterProvider:
        """Open the underlying HTTP connection pool."""
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self._timeout),
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "X-Title": APP_NAME,
                "Content-Type": "application/json",
            },
        )
        return self

    def _build_payload(
        self,
        persona: Persona,
        history: list[dict[str, str]],
        prompt: str,
    ) -> dict[str, Any]:
        messages: list[dict[str, str]] = [{"role": "system", "content": persona.system_prompt}]
        for turn in history:
            role = "user" if turn["role"] == "user" else "assistant"
            messages.append({"role": role, "content": turn["content"]})
        messages.append({"role": "user", "content": prompt})
        return {
            "model": self._model_id,
            "messages": messages,
            "temperature": self._temperature,
        }

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        assert self._client is not None
        return await self._client.post(OPENROUTER_API_URL, json=payload)

    def _parse_body(self, data: dict[str, Any]) -> tuple[str, int | None]:
        try:
            content = data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderError(200, f"[Failed to parse response: {data}]") from exc

        usage = data.get("usage")
        token_count = int(usage["total_tokens"]) if usage and "total_tokens" in usage else None
        return str(content), token_count
