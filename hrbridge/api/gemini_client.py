"""Gemini generative language API client."""
import logging
import requests
from typing import Any, Dict, Optional

from config import GeminiConfig
from hrbridge.errors import AIServiceError

logger = logging.getLogger(__name__)


class GeminiClient:
    """Text-completion client for the Gemini REST API."""

    def __init__(self, config: GeminiConfig, session: Optional[requests.Session] = None):
        """Initialize client."""
        self.config = config
        self.session = session or requests.Session()

        if config.api_key:
            self.session.headers.update({"x-goog-api-key": config.api_key})

    @property
    def url(self) -> str:
        return f"{self.config.api_url.rstrip('/')}/models/{self.config.model}:generateContent"

    def complete(self, prompt: str) -> str:
        """
        Send a single prompt and return the concatenated text response.

        Raises:
            AIServiceError: on missing key, network failure, non-2xx status
                or a response without text.
        """
        if not self.config.api_key:
            raise AIServiceError("GEMINI_API_KEY is not configured")

        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": self.config.temperature},
        }

        try:
            response = self.session.post(self.url, json=payload, timeout=self.config.timeout)
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as e:
            raise AIServiceError(f"Gemini API request failed: {e}") from e
        except ValueError as e:
            raise AIServiceError(f"Gemini API returned invalid JSON: {e}") from e

        text = self._extract_text(body)
        if not text:
            raise AIServiceError("Gemini API response has no text candidate")

        logger.debug(f"Gemini response: {len(text)} chars")
        return text

    @staticmethod
    def _extract_text(body: Any) -> str:
        if not isinstance(body, dict):
            return ""
        for candidate in body.get("candidates") or []:
            parts = (candidate.get("content") or {}).get("parts") or []
            text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
            if text:
                return text
        return ""
