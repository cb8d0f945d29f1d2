"""Generate destination schemas from plain-language descriptions."""
import json
import logging
from typing import Any, Dict

from hrbridge.api.gemini_client import GeminiClient
from hrbridge.api.prompts import build_schema_prompt
from hrbridge.errors import AIServiceError

logger = logging.getLogger(__name__)


def extract_json_object(text: str) -> str:
    """Span from the first `{` to the last `}`, or the stripped text."""
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end < start:
        return text.strip()
    return text[start:end + 1]


class SchemaGenerator:
    """Ask the AI service for an example destination payload."""

    def __init__(self, client: GeminiClient):
        self.client = client

    def generate(self, description: str, target_format: str = "detailed_payload") -> Dict[str, Any]:
        """
        Generate a schema for the described system.

        Raises:
            AIServiceError: if the service fails or returns no JSON object.
        """
        if not description or not description.strip():
            raise AIServiceError("A system description is required")

        response = self.client.complete(build_schema_prompt(description, target_format))
        try:
            schema = json.loads(extract_json_object(response))
        except ValueError as e:
            raise AIServiceError(f"AI response is not a valid schema: {e}") from e

        if not isinstance(schema, dict):
            raise AIServiceError("AI response is not a JSON object")

        logger.info(f"Generated schema with {len(schema)} top-level fields")
        return schema
