"""Google Gemini provider implementation.

Async HTTP provider for the Generative Language ``generateContent``
endpoint. The persona's system prompt is sent as ``systemInstruction``
and the conversation history as alternating ``user``/``model`` contents.

Typical usage::

    async with GeminiProvider(api_key="...", model_id="gemini-2.5-pro") as provider:
        reply = await provider.respond(persona, history, "Plan the EDA.")
"""

from __future__ import annotations

from typing import Any

import httpx

from grandmaster.personas import Persona
from grandmaster.providers.base import Provider, ProviderError

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta/models"


class GeminiProvider(Provider):
    """Async provider for the Gemini ``generateContent`` API."""

    name = "Gemini"
    key_hint = "GEMINI_API_KEY"

    async def __aenter__(self) -> GeminiProvider:
        """Open the underlying HTTP connection pool."""
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self._timeout),
            headers={
                "x-goog-api-key": self._api_key,
                "Content-Type": "application/json",
            },
        )
        return self

    @property
    def endpoint(self) -> str:
        """Full ``generateContent`` URL for the configured model."""
        return f"{GEMINI_API_BASE}/{self._model_id}:generateContent"

    def _build_payload(
        self,
        persona: Persona,
        history: list[dict[str, str]],
        prompt: str,
    ) -> dict[str, Any]:
        contents = [
            {
                "role": "user" if turn["role"] == "user" else "model",
                "parts": [{"text": turn["content"]}],
            }
            for turn in history
        ]
        contents.append({"role": "user", "parts": [{"text": prompt}]})
        return {
            "systemInstruction": {"parts": [{"text": persona.system_prompt}]},
            "contents": contents,
            "generationConfig": {"temperature": self._temperature},
        }

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        assert self._client is not None
        return await self._client.post(self.endpoint, json=payload)

    def _parse_body(self, data: dict[str, Any]) -> tuple[str, int | None]:
        """Join the text parts of the first candidate.

        A response without candidates (for example a blocked prompt) yields
        empty content rather than an error.
        """
        if not isinstance(data, dict):
            raise ProviderError(200, f"[Failed to parse response: {data}]")
        candidates = data.get("candidates") or []
        text = ""
        if candidates:
            try:
                parts = candidates[0].get("content", {}).get("parts", [])
                text = "".join(str(p.get("text", "")) for p in parts)
            except (AttributeError, TypeError) as exc:
                raise ProviderError(200, f"[Failed to parse response: {data}]") from exc

        usage = data.get("usageMetadata") or {}
        token_count = usage.get("totalTokenCount")
        return text, int(token_count) if token_count is not None else None
