"""
Salvage mapping records from truncated or malformed AI responses.

Both entry points are best-effort and never raise.
"""
import json
import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


def extract_json_array(text: str) -> str:
    """
    Return the first balanced `[...]` region of text.

    When the array never closes, everything from the first `[` is
    returned so the recoverer can work on it. Text without any `[` is
    returned stripped.
    """
    if not text:
        return ""

    start = text.find("[")
    if start < 0:
        return text.strip()

    depth = 0
    in_string = False
    escape = False
    for i in range(start, len(text)):
        char = text[i]
        if escape:
            escape = False
            continue
        if in_string:
            if char == "\\":
                escape = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]

    return text[start:].strip()


def _parse_array(text: str) -> Optional[List[Any]]:
    try:
        parsed = json.loads(text)
    except (ValueError, TypeError):
        return None
    return parsed if isinstance(parsed, list) else None


def _last_top_level_comma(text: str) -> int:
    """Index of the last comma directly inside the outer array, or -1."""
    depth = 0
    in_string = False
    escape = False
    last = -1
    for i, char in enumerate(text):
        if escape:
            escape = False
            continue
        if in_string:
            if char == "\\":
                escape = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in "[{":
            depth += 1
        elif char in "]}":
            depth -= 1
        elif char == "," and depth == 1:
            last = i
    return last


def _trim_to_last_comma(text: str) -> List[Any]:
    comma = _last_top_level_comma(text)
    if comma <= 0:
        return []

    parsed = _parse_array(text[:comma] + "]")
    if parsed:
        logger.info(f"Recovered {len(parsed)} records by trimming to the last complete record")
        return parsed
    return []


def _is_record(value: Any) -> bool:
    return isinstance(value, dict) and bool(value.get("sourceField")) and bool(value.get("targetPath"))


def _scan_records(text: str) -> List[Dict[str, Any]]:
    """Parse each brace-balanced object inside the array on its own."""
    records: List[Dict[str, Any]] = []
    depth = 0
    in_string = False
    escape = False
    start = -1

    for i, char in enumerate(text):
        if escape:
            escape = False
            continue
        if in_string:
            if char == "\\":
                escape = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            if depth == 0:
                start = i
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0 and start >= 0:
                candidate = text[start:i + 1]
                start = -1
                try:
                    record = json.loads(candidate)
                except ValueError:
                    logger.debug(f"Skipping malformed record: {candidate[:50]}...")
                    continue
                if _is_record(record):
                    records.append(record)

    logger.info(f"Record scan recovered {len(records)} records")
    return records


def recover(text: Any) -> List[Any]:
    """
    Recover as many complete records as possible from text.

    An already well-formed array is returned as-is. Otherwise the text is
    first cut after the last complete top-level record and closed; if
    that does not parse, each object is parsed individually and kept when
    it carries both `sourceField` and `targetPath`.
    """
    try:
        if not isinstance(text, str) or not text.strip():
            return []

        start = text.find("[")
        if start < 0:
            return []
        candidate = text[start:].strip()

        parsed = _parse_array(extract_json_array(candidate))
        if parsed is not None:
            return parsed

        logger.warning(f"Response of {len(text)} chars is not valid JSON, attempting recovery")
        records = _trim_to_last_comma(candidate)
        if records:
            return records
        return _scan_records(candidate[1:])
    except Exception as e:
        logger.warning(f"JSON recovery failed: {e}")
        return []
