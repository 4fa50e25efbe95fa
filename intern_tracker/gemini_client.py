"""HTTP client for the Gemini text generation API."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"


class GeminiApiError(RuntimeError):
    """Raised when Gemini returns an error response."""

    def __init__(self, model: str, error: str) -> None:
        super().__init__(f"Gemini API error for {model}: {error}")
        self.model = model
        self.error = error


class GeminiClient:
    """Simple async wrapper around `models.generateContent`."""

    def __init__(
        self,
        api_key: str,
        model: str,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.model = model
        self._client = httpx.AsyncClient(
            base_url=GEMINI_API_BASE,
            headers={"x-goog-api-key": api_key},
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def generate_text(self, prompt: str, *, system_instruction: Optional[str] = None) -> str:
        """Return the concatenated text parts of the first candidate."""

        payload: Dict[str, Any] = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}

        response = await self._client.post(f"models/{self.model}:generateContent", json=payload)
        data = response.json()
        if response.is_error:
            raise GeminiApiError(self.model, data.get("error", {}).get("message", "unknown_error"))

        candidates = data.get("candidates") or []
        if not candidates:
            return ""
        parts = candidates[0].get("content", {}).get("parts", [])
        return "".join(part.get("text", "") for part in parts)


__all__ = ["GeminiClient", "GeminiApiError"]
