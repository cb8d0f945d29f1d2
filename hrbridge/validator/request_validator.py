"""Integration request and client schema validation."""
import re
from typing import Any, List
from urllib.parse import urlparse

from hrbridge.builder.models import IntegrationRequest
from hrbridge.mapper.mapping import Mapping
from hrbridge.schema.paths import max_depth, split_path

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MAX_SCHEMA_DEPTH = 5


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email or ""))


def is_valid_url(url: str) -> bool:
    parsed = urlparse(url or "")
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def find_target_collisions(mappings: List[Mapping]) -> List[str]:
    """
    Describe target paths written more than once.

    Also reports a path that is a prefix of another one, since writing
    both would replace a leaf with an object (or the reverse).
    """
    problems = []
    seen = set()
    for mapping in mappings:
        path = ".".join(split_path(mapping.target_path))
        if path in seen:
            problems.append(f"Duplicate targetPath: {path}")
        seen.add(path)

    for path in sorted(seen):
        parts = split_path(path)
        for i in range(1, len(parts)):
            prefix = ".".join(parts[:i])
            if prefix in seen:
                problems.append(f"targetPath {prefix} conflicts with {path}")
    return problems


def validate_client_schema(schema: Any) -> List[str]:
    """Client schema must be a non-empty object nested at most 5 levels."""
    if not isinstance(schema, dict):
        return ["Schema must be a JSON object"]
    if not schema:
        return ["Schema cannot be empty"]

    depth = max_depth(schema, limit=MAX_SCHEMA_DEPTH)
    if depth > MAX_SCHEMA_DEPTH:
        return [f"Schema nesting is too deep (maximum {MAX_SCHEMA_DEPTH} levels)"]
    return []


class RequestValidator:
    """Validates integration requests before compilation."""

    def __init__(self, allow_target_collisions: bool = False):
        self.allow_target_collisions = allow_target_collisions

    def validate(self, request: IntegrationRequest) -> List[str]:
        """Validate request."""
        errors = []

        if not request.customer_email:
            errors.append("customerEmail is required")
        elif not is_valid_email(request.customer_email):
            errors.append("Invalid email format")

        if not request.destination_endpoint:
            errors.append("destinationEndpoint is required")
        elif not is_valid_url(request.destination_endpoint):
            errors.append("Invalid endpoint URL format")

        if request.source_payload is None:
            errors.append("sourcePayload is required")
        elif not isinstance(request.source_payload, dict):
            errors.append("sourcePayload must be a JSON object")

        for index, mapping in enumerate(request.mappings):
            if not split_path(mapping.target_path):
                errors.append(f"Mapping {index} has an empty targetPath")
            if not split_path(mapping.source_field.path):
                errors.append(f"Mapping {index} has an empty source path")

        if not self.allow_target_collisions:
            errors.extend(find_target_collisions(request.mappings))

        return errors
