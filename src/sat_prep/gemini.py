"""HTTP client for the Gemini generateContent API."""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from sat_prep.config import Settings, get_settings
from sat_prep.errors import GenerationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContentRequest:
    """One generation call: what is asked for and the JSON shape expected back.

    ``schema`` is None for free-text requests such as mistake feedback.
    """
    kind: str
    prompt: str
    schema: Optional[Dict[str, Any]] = None


class GeminiClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        settings = settings or get_settings()
        self.api_key = api_key or settings.gemini_api_key
        self.model = model or settings.gemini_model
        root = (base_url or settings.gemini_base_url).rstrip("/")
        self.url = f"{root}/models/{self.model}:generateContent"
        self._client = httpx.Client(timeout=settings.gemini_timeout, transport=transport)

    def generate(self, request: ContentRequest) -> str:
        """Send the request and return the model's raw text answer."""
        if not self.api_key:
            raise GenerationError("GEMINI_API_KEY is not configured")
        payload: Dict[str, Any] = {"contents": [{"parts": [{"text": request.prompt}]}]}
        if request.schema is not None:
            payload["generationConfig"] = {
                "responseMimeType": "application/json",
                "responseSchema": request.schema,
            }
        logger.debug("Requesting %s from %s", request.kind, self.model)
        try:
            r = self._client.post(self.url, params={"key": self.api_key}, json=payload)
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning("Gemini returned HTTP %s for %s", e.response.status_code, request.kind)
            raise GenerationError(f"Content API returned HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.warning("Gemini request for %s failed: %s", request.kind, e)
            raise GenerationError(f"Content API request failed: {e}") from e
        try:
            data = r.json()
            return data["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.warning("Unexpected Gemini response for %s: %.200s", request.kind, r.text)
            raise GenerationError("Unexpected response shape from content API") from e

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "GeminiClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
