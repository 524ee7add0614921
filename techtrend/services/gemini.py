from __future__ import annotations

from typing import Any, Optional

import requests
import structlog

from techtrend.config import GeminiConfig
from techtrend.services.exceptions import (
    ApiRequestError,
    GenerationError,
    ResponseValidationError,
)

logger = structlog.get_logger(__name__)

GENERATION_CONFIG = {
    "temperature": 0.3,
    "maxOutputTokens": 2500,
    "topP": 0.8,
    "topK": 40,
}


def _extract_text(data: Any) -> Optional[str]:
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) else None


class GeminiClient:
    """Prompt-in, text-out client for the Gemini ``generateContent`` REST call."""

    def __init__(
        self, config: GeminiConfig, *, session: Optional[requests.Session] = None
    ) -> None:
        if not config.is_valid:
            raise GenerationError("GEMINI_API_KEY is not configured")
        self._config = config
        self._session = session or requests.Session()

    @property
    def model(self) -> str:
        return self._config.model

    def build_payload(self, prompt: str) -> dict[str, Any]:
        return {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": dict(GENERATION_CONFIG),
        }

    def generate_text(self, prompt: str) -> str:
        try:
            response = self._session.post(
                self._config.endpoint,
                headers={
                    "x-goog-api-key": self._config.api_key or "",
                    "Content-Type": "application/json",
                },
                json=self.build_payload(prompt),
                timeout=self._config.timeout_seconds,
            )
        except requests.RequestException as exc:
            # structlog uses the positional argument for the event name; keep ``event`` keyword-only.
            logger.warning(
                event="gemini_transport_error",
                operation="generation.api",
                model=self.model,
                error=str(exc),
            )
            # The endpoint URL ("...:generateContent") would trip rate-limit matching.
            raise GenerationError(f"API request failed: {type(exc).__name__}") from exc

        if not 200 <= response.status_code < 300:
            raise ApiRequestError(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as exc:
            raise ResponseValidationError(["API response is not JSON"]) from exc

        text = _extract_text(data)
        if not text:
            raise ResponseValidationError(["API response has no candidate text"])

        # structlog uses the positional argument for the event name; keep ``event`` keyword-only.
        logger.debug(
            event="gemini_response",
            operation="generation.api",
            model=self.model,
            chars=len(text),
        )
        return text
