"""Confidence-based heuristic matcher for source and destination fields."""
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Union

from hrbridge.mapper.mapping import FieldRef, Mapping, normalize_confidence
from hrbridge.schema.models import SemanticRules
from hrbridge.schema.paths import extract_field_paths, leaf_name, split_path


class SourceField(NamedTuple):
    """Leaf field of a source schema."""

    path: str
    type: str
    semantic_tags: List[str]


def _infer_type(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return "string"


def _is_descriptor(node: Any) -> bool:
    return isinstance(node, dict) and isinstance(node.get("type"), str)


def flatten_source_schema(schema: Dict[str, Any]) -> List[SourceField]:
    """
    Flatten a source schema into leaf fields.

    Accepts flat schemas keyed by dotted path and nested trees. A dict
    carrying a string `type` is a field descriptor; other dicts are
    descended into. Plain values are leaves ("string" style type names
    are taken as the type).
    """
    fields: List[SourceField] = []

    def traverse(node: Any, current: str) -> None:
        if _is_descriptor(node):
            tags = [str(t) for t in node.get("semanticTags") or [] if str(t).strip()]
            fields.append(SourceField(current, node["type"], tags))
            return
        if isinstance(node, dict):
            for key, value in node.items():
                traverse(value, f"{current}.{key}" if current else str(key))
            return
        if current:
            field_type = node if isinstance(node, str) and node in (
                "string", "number", "integer", "boolean", "array", "object"
            ) else _infer_type(node)
            fields.append(SourceField(current, field_type, []))

    traverse(schema, "")
    return fields


class ConfidenceMatcher:
    """
    Score every (source field, destination path) pair by rule.

    Rules in priority order, first match wins: exact leaf name, semantic
    tag, synonym group, hierarchical container, partial substring. Scores
    come from `SemanticRules.confidence_rules` on a 0-100 scale and are
    normalized to [0, 1] on the emitted mappings.
    """

    def __init__(self, semantic_rules: Optional[SemanticRules] = None):
        """Initialize matcher with optional default rules."""
        self.semantic_rules = semantic_rules or SemanticRules.default()

    def match(
        self,
        source_schema: Dict[str, Any],
        destination_paths: Union[Sequence[str], Dict[str, Any]],
        semantic_rules: Optional[SemanticRules] = None,
    ) -> List[Mapping]:
        """Generate ranked mapping candidates, at most one per source field."""
        rules = semantic_rules or self.semantic_rules
        minimum = rules.confidence_rules.minimum_confidence

        if isinstance(destination_paths, dict):
            targets = extract_field_paths(destination_paths)
        else:
            targets = list(destination_paths)

        scored = []
        for source in flatten_source_schema(source_schema):
            for target in targets:
                score = self.score(source.path, target, source.semantic_tags, rules)
                if score > 0 and score >= minimum:
                    scored.append((score, source, target))

        # sorted() is stable: ties keep schema order
        scored = sorted(scored, key=lambda item: item[0], reverse=True)

        mappings: List[Mapping] = []
        seen = set()
        for score, source, target in scored:
            if source.path in seen:
                continue
            seen.add(source.path)
            mappings.append(
                Mapping(
                    source_field=FieldRef.from_path(source.path, source.type),
                    target_path=target,
                    confidence=normalize_confidence(score),
                    reasoning=self.reasoning(source.path, target, score),
                    ai_generated=False,
                )
            )

        return mappings

    def score(
        self,
        source_path: str,
        target_path: str,
        semantic_tags: Sequence[str],
        rules: SemanticRules,
    ) -> float:
        """Score one pair on the 0-100 scale."""
        confidence = rules.confidence_rules
        source_leaf = leaf_name(source_path).lower()
        target_leaf = leaf_name(target_path).lower()
        if not source_leaf or not target_leaf:
            return 0

        # Exact match
        if source_leaf == target_leaf:
            return confidence.exact_match

        # Semantic tags
        for tag in semantic_tags:
            tag = tag.lower()
            if tag in target_leaf or target_leaf in tag:
                return confidence.semantic_tag_match

        # Synonym groups
        for variations in rules.patterns.values():
            lowered = [v.lower() for v in variations]
            if source_leaf in lowered and target_leaf in lowered:
                return confidence.similar_name

        # Hierarchical: same container category and same synonym group
        for containers in rules.hierarchical_patterns.values():
            if not (self._find_container(source_path, containers)
                    and self._find_container(target_path, containers)):
                continue
            for variations in rules.patterns.values():
                lowered = [v.lower() for v in variations]
                if (any(v in source_leaf for v in lowered)
                        and any(v in target_leaf for v in lowered)):
                    return confidence.hierarchical_match

        # Partial substring
        if source_leaf in target_leaf or target_leaf in source_leaf:
            return confidence.partial_match

        return 0

    @staticmethod
    def _find_container(path: str, containers: Sequence[str]) -> Optional[str]:
        lowered = {c.lower() for c in containers}
        for part in split_path(path):
            if part.lower() in lowered:
                return part
        return None

    @staticmethod
    def reasoning(source_path: str, target_path: str, score: float) -> str:
        """Human-readable explanation by score band."""
        source_leaf = leaf_name(source_path)
        target_leaf = leaf_name(target_path)

        if score >= 95:
            return f'Strong semantic match: "{source_leaf}" -> "{target_leaf}"'
        if score >= 85:
            return f'Semantic pattern match: "{source_leaf}" -> "{target_leaf}" (known pattern)'
        if score >= 80:
            return f'Hierarchical match: "{source_path}" -> "{target_path}" (same context)'
        return f'Partial match: "{source_leaf}" -> "{target_leaf}" (similar names)'
