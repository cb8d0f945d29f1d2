"""
Unit tests for the mapping model and the heuristic matcher

Tests:
- Mapping model: ids, confidence normalization, wire format
- ConfidenceMatcher: rule priority, threshold, ordering, determinism
"""

import math

import pytest

from hrbridge.mapper.heuristic import ConfidenceMatcher, flatten_source_schema
from hrbridge.mapper.mapping import (
    FieldRef,
    Mapping,
    TransformationKind,
    TransformationSpec,
    dedupe_by_source,
    make_mapping_id,
    normalize_confidence,
)
from hrbridge.schema.models import ConfidenceRules, SemanticRules


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def source_schema():
    """Flat source schema keyed by dotted path"""
    return {
        "data.candidate.name": {"type": "string", "semanticTags": ["first_name", "nome"]},
        "data.candidate.email": {"type": "string"},
        "data.candidate.mobileNumber": {"type": "string"},
        "data.job.department": {"type": "string"},
    }


@pytest.fixture
def destination_paths():
    return ["employee.firstName", "employee.email", "employee.phone", "employee.unrelated"]


@pytest.fixture
def matcher():
    return ConfidenceMatcher()


# ============================================================================
# MAPPING MODEL
# ============================================================================


class TestNormalizeConfidence:
    """Tests for confidence normalization"""

    def test_percentages(self):
        assert normalize_confidence(95) == 0.95
        assert normalize_confidence("85") == 0.85

    def test_fractions_unchanged(self):
        assert normalize_confidence(0.7) == 0.7

    def test_clamped(self):
        assert normalize_confidence(-5) == 0.0
        assert normalize_confidence(250) == 1.0

    def test_invalid_defaults_to_half(self):
        for value in (None, "abc", float("nan"), True, [], {}):
            assert normalize_confidence(value) == 0.5


class TestMappingModel:
    """Tests for Mapping and TransformationSpec"""

    def test_id_is_deterministic(self):
        first = Mapping(FieldRef.from_path("data.candidate.email"), "employee.email")
        second = Mapping(FieldRef.from_path("data.candidate.email"), "employee.email")

        assert first.id == second.id == make_mapping_id("data.candidate.email", "employee.email")
        assert first.id.startswith("mapping_")

    def test_field_ref_from_path(self):
        field = FieldRef.from_path("data.candidate.email")
        assert field.name == "email"
        assert field.id == "data.candidate.email"

    def test_direct(self):
        mapping = Mapping(FieldRef.from_path("a.b"), "x.y")
        assert mapping.is_direct is True

    def test_from_dict_with_path_string(self):
        mapping = Mapping.from_dict({
            "sourceField": "data.candidate.identificationDocument",
            "targetPath": "employee.documentNumber",
            "transformation": {"type": "format_document", "pattern": "cpf"},
            "confidence": 92,
        })

        assert mapping.source_field.name == "identificationDocument"
        assert mapping.transformation.kind == TransformationKind.FORMAT_DOCUMENT
        assert mapping.confidence == 0.92
        assert mapping.is_direct is False

    def test_round_trip(self):
        mapping = Mapping(
            FieldRef.from_path("data.birthdate"),
            "employee.birthDate",
            TransformationSpec.from_dict({"type": "format_date", "outputFormat": "dd/MM/yyyy"}),
            confidence=0.9,
            reasoning="date field",
        )
        assert Mapping.from_dict(mapping.to_dict()) == mapping

    def test_unknown_type_keeps_raw_name(self):
        transformation = TransformationSpec.from_dict({"type": "Reverse_String"})
        assert transformation.kind == TransformationKind.UNKNOWN
        assert transformation.to_dict()["type"] == "Reverse_String"

    def test_dedupe_first_wins(self):
        mappings = [
            Mapping(FieldRef.from_path("a"), "x"),
            Mapping(FieldRef.from_path("a"), "y"),
            Mapping(FieldRef.from_path("b"), "z"),
        ]
        assert [m.target_path for m in dedupe_by_source(mappings)] == ["x", "z"]


# ============================================================================
# SOURCE SCHEMA FLATTENING
# ============================================================================


class TestFlattenSourceSchema:
    def test_flat_descriptors(self, source_schema):
        fields = flatten_source_schema(source_schema)
        assert [f.path for f in fields] == list(source_schema)
        assert fields[0].semantic_tags == ["first_name", "nome"]

    def test_nested_tree(self):
        fields = flatten_source_schema({"candidate": {"email": "string", "age": 30}})
        assert [(f.path, f.type) for f in fields] == [
            ("candidate.email", "string"),
            ("candidate.age", "number"),
        ]


# ============================================================================
# CONFIDENCE MATCHER
# ============================================================================


class TestConfidenceMatcher:
    """Tests for the heuristic matcher"""

    def test_best_match_per_source(self, matcher, source_schema, destination_paths):
        """Exact beats synonym; sources without a match are left out"""
        mappings = matcher.match(source_schema, destination_paths)

        assert [(m.source_field.path, m.target_path, m.confidence) for m in mappings] == [
            ("data.candidate.email", "employee.email", 1.0),
            ("data.candidate.name", "employee.firstName", 0.85),
            ("data.candidate.mobileNumber", "employee.phone", 0.85),
        ]
        assert all(not m.ai_generated for m in mappings)
        assert all(m.transformation is None for m in mappings)

    def test_semantic_tag(self, matcher):
        schema = {"data.candidate.identificationDocument": {"type": "string", "semanticTags": ["cpf"]}}
        mappings = matcher.match(schema, ["person.cpfNumber"])

        assert mappings[0].confidence == 0.95
        assert mappings[0].reasoning.startswith("Strong semantic match")

    def test_hierarchical(self, matcher):
        schema = {"data.candidate.addressCity": {"type": "string"}}
        mappings = matcher.match(schema, ["person.address.cityName"])

        assert mappings[0].confidence == 0.8
        assert mappings[0].reasoning.startswith("Hierarchical match")

    def test_partial(self, matcher):
        schema = {"data.candidate.code": {"type": "string"}}
        mappings = matcher.match(schema, ["item.zipcode"])

        assert mappings[0].confidence == 0.7
        assert mappings[0].reasoning.startswith("Partial match")

    def test_minimum_confidence(self, matcher, source_schema, destination_paths):
        rules = SemanticRules.default()
        rules.confidence_rules = ConfidenceRules(minimum_confidence=90)

        mappings = matcher.match(source_schema, destination_paths, rules)
        assert [m.target_path for m in mappings] == ["employee.email"]

    def test_destination_tree(self, matcher, source_schema):
        mappings = matcher.match(source_schema, {"employee": {"email": "ana@example.com"}})
        assert [m.target_path for m in mappings] == ["employee.email"]

    def test_deterministic(self, matcher, source_schema, destination_paths):
        first = matcher.match(source_schema, destination_paths)
        second = matcher.match(source_schema, destination_paths)
        assert [m.to_dict() for m in first] == [m.to_dict() for m in second]

    def test_sorted_and_bounded(self, matcher, source_schema, destination_paths):
        mappings = matcher.match(source_schema, destination_paths)
        confidences = [m.confidence for m in mappings]

        assert confidences == sorted(confidences, reverse=True)
        assert all(0 <= c <= 1 and not math.isnan(c) for c in confidences)
        assert len({m.source_field.path for m in mappings}) == len(mappings)

    def test_empty_inputs(self, matcher):
        assert matcher.match({}, ["a.b"]) == []
        assert matcher.match({"a": {"type": "string"}}, []) == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
