"""Field mapping model."""
import hashlib
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from hrbridge.schema.paths import leaf_name


class TransformationKind(str, Enum):
    """Closed set of value transformations."""

    FORMAT_DOCUMENT = "format_document"
    CONCAT = "concat"
    SPLIT = "split"
    PHONE_SPLIT = "phone_split"
    NAME_SPLIT = "name_split"
    CONVERT = "convert"
    NORMALIZE = "normalize"
    FORMAT_DATE = "format_date"
    COUNTRY_CODE = "country_code"
    GENDER_CODE = "gender_code"
    CODE_LOOKUP = "code_lookup"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: Any) -> "TransformationKind":
        """Map a raw type string to a kind; anything unrecognized is UNKNOWN."""
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class FieldRef:
    """Reference to a leaf field of the source payload."""

    id: str
    name: str
    type: str
    path: str

    @classmethod
    def from_path(cls, path: str, type: str = "string") -> "FieldRef":
        return cls(id=path, name=leaf_name(path), type=type, path=path)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {"id": self.id, "name": self.name, "type": self.type, "path": self.path}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldRef":
        path = str(data.get("path") or data.get("id") or data.get("name") or "")
        return cls(
            id=str(data.get("id") or path),
            name=str(data.get("name") or leaf_name(path)),
            type=str(data.get("type") or "string"),
            path=path,
        )


@dataclass(frozen=True)
class TransformationSpec:
    """A value transformation and its kind-specific parameters."""

    kind: TransformationKind
    operation: str = ""
    pattern: Optional[str] = None
    separator: Optional[str] = None
    mapping: Optional[Dict[str, str]] = None
    input_format: Optional[str] = None
    output_format: Optional[str] = None
    parameters: Dict[str, Any] = field(default_factory=dict)
    preview: Optional[Dict[str, str]] = None
    raw_type: str = ""

    @property
    def type_name(self) -> str:
        """Name as received, so unknown kinds can be reported."""
        return self.raw_type or self.kind.value

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data: Dict[str, Any] = {"type": self.type_name, "operation": self.operation}
        optional = {
            "pattern": self.pattern,
            "separator": self.separator,
            "mapping": self.mapping,
            "inputFormat": self.input_format,
            "outputFormat": self.output_format,
            "preview": self.preview,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        if self.parameters:
            data["parameters"] = self.parameters
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TransformationSpec":
        raw_type = str(data.get("type") or data.get("kind") or "")
        mapping = data.get("mapping")
        return cls(
            kind=TransformationKind.parse(raw_type),
            operation=str(data.get("operation") or ""),
            pattern=data.get("pattern"),
            separator=data.get("separator"),
            mapping=dict(mapping) if isinstance(mapping, dict) else None,
            input_format=data.get("inputFormat"),
            output_format=data.get("outputFormat"),
            parameters=dict(data.get("parameters") or {}),
            preview=data.get("preview"),
            raw_type=raw_type,
        )


def normalize_confidence(value: Any) -> float:
    """
    Bring a raw confidence score into [0, 1].

    Percentages (> 1) are divided by 100. Missing or unparseable values
    become 0.5.
    """
    if isinstance(value, bool):
        return 0.5
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0.5
    if math.isnan(score):
        return 0.5
    if score > 1:
        score = score / 100
    return min(max(score, 0.0), 1.0)


def make_mapping_id(source_path: str, target_path: str) -> str:
    """Stable id for a (source, target) pair."""
    digest = hashlib.sha1(f"{source_path}->{target_path}".encode("utf-8")).hexdigest()
    return f"mapping_{digest[:12]}"


@dataclass
class Mapping:
    """Association of one source leaf field with one destination path."""

    source_field: FieldRef
    target_path: str
    transformation: Optional[TransformationSpec] = None
    confidence: Optional[float] = None
    reasoning: Optional[str] = None
    ai_generated: bool = False
    id: str = ""

    def __post_init__(self):
        if not self.id:
            self.id = make_mapping_id(self.source_field.path, self.target_path)

    @property
    def is_direct(self) -> bool:
        return self.transformation is None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data: Dict[str, Any] = {
            "id": self.id,
            "sourceField": self.source_field.to_dict(),
            "targetPath": self.target_path,
            "aiGenerated": self.ai_generated,
        }
        if self.transformation is not None:
            data["transformation"] = self.transformation.to_dict()
        if self.confidence is not None:
            data["confidence"] = self.confidence
        if self.reasoning:
            data["reasoning"] = self.reasoning
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Mapping":
        """
        Build a mapping from its wire form.

        `sourceField` may be a full field object or just a path string,
        which is what the AI service usually returns.
        """
        source = data.get("sourceField")
        if isinstance(source, dict):
            source_field = FieldRef.from_dict(source)
        else:
            source_field = FieldRef.from_path(str(source or ""))

        transformation = data.get("transformation")
        confidence = data.get("confidence")
        return cls(
            id=str(data.get("id") or ""),
            source_field=source_field,
            target_path=str(data.get("targetPath") or ""),
            transformation=(
                TransformationSpec.from_dict(transformation)
                if isinstance(transformation, dict) else None
            ),
            confidence=normalize_confidence(confidence) if confidence is not None else None,
            reasoning=data.get("reasoning"),
            ai_generated=bool(data.get("aiGenerated", False)),
        )


def dedupe_by_source(mappings: List[Mapping]) -> List[Mapping]:
    """Keep the first mapping for each source path."""
    seen = set()
    unique = []
    for mapping in mappings:
        if mapping.source_field.path in seen:
            continue
        seen.add(mapping.source_field.path)
        unique.append(mapping)
    return unique
