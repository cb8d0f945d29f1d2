"""Transformer registry."""
import math
import re
import unicodedata
from datetime import datetime, timezone
from typing import Any, Callable, Dict, NamedTuple, Optional

from hrbridge.mapper.mapping import TransformationKind, TransformationSpec
from hrbridge.transformer import lookups, snippets

ValueFunction = Callable[[Any, TransformationSpec], Any]
SnippetFunction = Callable[[str, str, TransformationSpec], str]

PHONE_PATTERNS = [
    re.compile(r"^\+55(?P<area>\d{2})(?P<number>\d{8,9})$"),
    re.compile(r"^\+(?P<country>\d{2})(?P<area>\d{2})(?P<number>\d{8,9})$"),
    re.compile(r"^\((?P<area>\d{2})\)(?P<number>\d{8,9})$"),
    re.compile(r"^(?P<area>\d{2})(?P<number>\d{8,9})$"),
]

DATE_INPUT_FORMATS = ["%Y-%m-%d", "%Y/%m/%d"]


class TransformationHandler(NamedTuple):
    """Value function and snippet generator for one kind."""

    apply: ValueFunction
    snippet: SnippetFunction


class TransformerRegistry:
    """
    Registry of available transformations.

    One table serves both the in-process engine (pre-applying values to
    sample payloads) and the compiler (generating task snippets), so the
    two can not drift apart.
    """

    def __init__(self):
        """Initialize registry."""
        table_handler = TransformationHandler(self._lookup, snippets.table_lookup)
        self.handlers: Dict[TransformationKind, TransformationHandler] = {
            TransformationKind.FORMAT_DOCUMENT: TransformationHandler(
                self._format_document, snippets.format_document
            ),
            TransformationKind.CONCAT: TransformationHandler(self._concat, snippets.concat),
            TransformationKind.SPLIT: TransformationHandler(self._split, snippets.split),
            TransformationKind.PHONE_SPLIT: TransformationHandler(
                self._split_phone, snippets.phone_split
            ),
            TransformationKind.NAME_SPLIT: TransformationHandler(
                self._split_name, snippets.name_split
            ),
            TransformationKind.CONVERT: TransformationHandler(self._convert, snippets.convert),
            TransformationKind.NORMALIZE: TransformationHandler(
                self._normalize, snippets.normalize
            ),
            TransformationKind.FORMAT_DATE: TransformationHandler(
                self._format_date, snippets.format_date
            ),
            TransformationKind.COUNTRY_CODE: table_handler,
            TransformationKind.GENDER_CODE: table_handler,
            TransformationKind.CODE_LOOKUP: table_handler,
            TransformationKind.UNKNOWN: TransformationHandler(self._identity, snippets.identity),
        }

    def get(self, kind: TransformationKind) -> TransformationHandler:
        """Get handler by kind."""
        return self.handlers.get(kind, self.handlers[TransformationKind.UNKNOWN])

    def is_supported(self, kind: TransformationKind) -> bool:
        return kind != TransformationKind.UNKNOWN and kind in self.handlers

    def transform(self, value: Any, spec: TransformationSpec) -> Any:
        """Apply transformation. May raise on malformed input."""
        return self.get(spec.kind).apply(value, spec)

    def snippet(self, var_name: str, source_path: str, spec: Optional[TransformationSpec]) -> str:
        """Generate the Jsonnet snippet computing var_name from source_path."""
        if spec is None:
            return snippets.identity(var_name, source_path)
        return self.get(spec.kind).snippet(var_name, source_path, spec)

    @staticmethod
    def _identity(value: Any, spec: TransformationSpec) -> Any:
        return value

    @staticmethod
    def _format_document(value: Any, spec: TransformationSpec) -> Any:
        """Strip document punctuation according to the pattern."""
        if not isinstance(value, str):
            return value

        chars = lookups.document_strip_chars(spec.pattern)
        literal = re.escape(chars.replace(" ", ""))
        whitespace = r"\s" if " " in chars else ""
        return re.sub(f"[{literal}{whitespace}]", "", value)

    @staticmethod
    def _concat(value: Any, spec: TransformationSpec) -> Any:
        """Join non-blank entries of a list."""
        if not isinstance(value, list):
            return value

        separator = spec.separator if spec.separator is not None else " "
        parts = [str(v) for v in value if v is not None and str(v).strip()]
        return separator.join(parts)

    @classmethod
    def _split(cls, value: Any, spec: TransformationSpec) -> Any:
        if not isinstance(value, str):
            return value

        if spec.operation in lookups.PHONE_OPERATIONS:
            return cls._split_phone(value, spec)
        if spec.operation in lookups.NAME_OPERATIONS:
            return cls._split_name(value, spec)
        if spec.separator:
            return value.split(spec.separator)
        return value

    @staticmethod
    def _split_phone(value: Any, spec: TransformationSpec) -> Any:
        """Decompose a Brazilian phone number."""
        if not isinstance(value, str):
            return value

        clean = re.sub(r"[\s\-]", "", value)
        for pattern in PHONE_PATTERNS:
            match = pattern.match(clean)
            if not match:
                continue

            parts = match.groupdict()
            if spec.operation == "extract_area_code":
                return parts["area"]
            if spec.operation == "extract_phone_number":
                return parts["number"]
            return {
                "countryCode": parts.get("country") or "55",
                "areaCode": parts["area"],
                "phoneNumber": parts["number"],
            }

        return value

    @staticmethod
    def _split_name(value: Any, spec: TransformationSpec) -> Any:
        if not isinstance(value, str):
            return value

        parts = value.split()
        if spec.operation == "split_first_name":
            return parts[0] if parts else ""
        if spec.operation == "split_last_name":
            return " ".join(parts[1:])
        return value

    @staticmethod
    def _render_scalar(value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)

    @classmethod
    def _convert(cls, value: Any, spec: TransformationSpec) -> Any:
        operation = spec.operation
        if operation == "string_to_number":
            try:
                number = float(str(value).strip())
            except ValueError:
                return value
            return value if math.isnan(number) else number
        if operation in ("number_to_string", "boolean_to_string"):
            return cls._render_scalar(value)
        if operation == "string_to_boolean":
            return cls._render_scalar(value).lower() in lookups.TRUTHY_STRINGS
        return value

    @staticmethod
    def _normalize(value: Any, spec: TransformationSpec) -> Any:
        if not isinstance(value, str):
            return value

        operation = spec.operation
        if operation == "upper_case":
            return value.upper()
        if operation == "lower_case":
            return value.lower()
        if operation == "title_case":
            return re.sub(r"\S+", lambda m: m.group(0)[:1].upper() + m.group(0)[1:].lower(), value)
        if operation == "remove_accents":
            decomposed = unicodedata.normalize("NFD", value)
            return re.sub(r"[\u0300-\u036f]", "", decomposed)
        return value

    @staticmethod
    def _parse_date(value: str) -> Optional[datetime]:
        text = value.strip()
        for date_format in DATE_INPUT_FORMATS:
            try:
                return datetime.strptime(text, date_format).replace(tzinfo=timezone.utc)
            except ValueError:
                continue
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)

    @classmethod
    def _format_date(cls, value: Any, spec: TransformationSpec) -> Any:
        """Reformat a date string; unparseable dates pass through."""
        if not isinstance(value, str) or not value:
            return value

        date = cls._parse_date(value)
        if date is None:
            return value

        output_format = spec.output_format
        if output_format == "dd/MM/yyyy":
            return date.strftime("%d/%m/%Y")
        if output_format == "yyyy-MM-dd":
            return date.strftime("%Y-%m-%d")
        if output_format == "MM/dd/yyyy":
            return date.strftime("%m/%d/%Y")
        if output_format == "ISO":
            return date.strftime("%Y-%m-%dT%H:%M:%S.") + f"{date.microsecond // 1000:03d}Z"
        return value

    @staticmethod
    def _lookup(value: Any, spec: TransformationSpec) -> Any:
        table = lookups.lookup_table(spec)
        if not table or not isinstance(value, str):
            return value
        return table.get(value) or value
