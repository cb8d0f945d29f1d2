"""
Unit tests for schema helpers, reference data, exporter and configuration

Tests:
- Path helpers: leaf extraction, counting, reading and writing paths
- Reference data loading
- JsonExporter: artifacts and mapping lists
- Config: environment overrides
"""

import json

import pytest

from config import AppConfig, BatchConfig, CompilerConfig, GeminiConfig
from hrbridge.builder.integration_compiler import IntegrationCompiler
from hrbridge.builder.models import IntegrationRequest
from hrbridge.errors import ConfigurationError
from hrbridge.exporter.json_exporter import JsonExporter
from hrbridge.mapper.mapping import FieldRef, Mapping, TransformationSpec
from hrbridge.schema import paths
from hrbridge.schema.reference_store import load_reference_data


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def tree():
    """Nested payload with arrays and an empty object"""
    return {
        "employee": {
            "name": "Ana",
            "phones": ["1", "2"],
            "address": {"city": "Recife", "zip": None},
            "extra": {},
        },
        "active": True,
    }


@pytest.fixture
def reference_dir(tmp_path):
    """Reference data directory with schema and sample"""
    (tmp_path / "source-schema.json").write_text(json.dumps({
        "schema": {"data.candidate.email": {"type": "string"}},
    }))
    (tmp_path / "source-example-payload.json").write_text(json.dumps({
        "data": {"candidate": {"email": "ana@example.com"}},
    }))
    return tmp_path


@pytest.fixture
def mappings():
    return [
        Mapping(FieldRef.from_path("data.candidate.email"), "employee.email",
                confidence=1.0, reasoning="exact"),
        Mapping(FieldRef.from_path("data.candidate.name"), "employee.name",
                TransformationSpec.from_dict({"type": "normalize", "operation": "upper_case"}),
                confidence=0.9, ai_generated=True),
    ]


# ============================================================================
# PATH HELPERS
# ============================================================================


class TestPaths:
    """Tests for dotted path helpers"""

    def test_extract_field_paths(self, tree):
        """Arrays and nulls are leaves, empty objects are not"""
        assert paths.extract_field_paths(tree) == [
            "employee.name",
            "employee.phones",
            "employee.address.city",
            "employee.address.zip",
            "active",
        ]

    def test_count_fields(self, tree):
        assert paths.count_fields(tree) == 5
        assert paths.count_fields("not a tree") == 0

    def test_count_fields_depth_limit(self):
        deep = {"a": {"b": {"c": 1}}, "d": 2}
        assert paths.count_fields(deep, max_depth=1) == 1

    def test_get_value(self, tree):
        assert paths.get_value_by_path(tree, "employee.address.city") == "Recife"
        assert paths.get_value_by_path(tree, "employee.nope.city", "default") == "default"
        assert paths.get_value_by_path(tree, "employee.name.first") is None

    def test_set_value(self):
        target = {"employee": "flat"}
        paths.set_value_by_path(target, "employee.name", "Ana")
        assert target == {"employee": {"name": "Ana"}}

        with pytest.raises(ValueError):
            paths.set_value_by_path(target, "", "x")

    def test_create_field_batch(self, tree):
        batch = paths.create_field_batch(tree, ["employee.address.city", "active", "missing.path"])
        assert batch == {"employee": {"address": {"city": "Recife"}}, "active": True}

    def test_max_depth(self):
        assert paths.max_depth({"a": 1}) == 0
        assert paths.max_depth({"a": {"b": [{"c": 1}]}}) == 3

    def test_has_concrete_values(self):
        assert paths.has_concrete_values({"name": "Ana"})
        assert not paths.has_concrete_values({"name": "string", "address": {"zip": "number"}})


# ============================================================================
# REFERENCE DATA
# ============================================================================


class TestReferenceStore:
    """Tests for load_reference_data"""

    def test_load(self, reference_dir):
        reference = load_reference_data(reference_dir)

        assert reference.source_schema == {"data.candidate.email": {"type": "string"}}
        assert reference.source_sample["data"]["candidate"]["email"] == "ana@example.com"
        assert "email_variations" in reference.semantic_rules.patterns
        assert reference.source_system == "gupy"

    def test_custom_patterns(self, reference_dir):
        (reference_dir / "semantic-patterns.json").write_text(json.dumps({
            "patterns": {"badge_variations": ["badge", "cracha"]},
            "confidence_rules": {"minimum_confidence": 80},
        }))
        rules = load_reference_data(reference_dir).semantic_rules

        assert rules.patterns == {"badge_variations": ["badge", "cracha"]}
        assert rules.confidence_rules.minimum_confidence == 80
        assert rules.confidence_rules.exact_match == 100

    def test_missing_schema(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_reference_data(tmp_path)

    def test_invalid_json(self, reference_dir):
        (reference_dir / "source-example-payload.json").write_text("{not json")
        with pytest.raises(ConfigurationError):
            load_reference_data(reference_dir)


# ============================================================================
# JSON EXPORTER
# ============================================================================


class TestJsonExporter:
    """Tests for JsonExporter"""

    def test_export_mappings(self, tmp_path, mappings):
        output_file = tmp_path / "out" / "mappings.json"
        JsonExporter().export_mappings(output_file, mappings, "ai", ["partial result"])

        data = json.loads(output_file.read_text(encoding="utf-8"))
        assert data["metadata"]["strategy"] == "ai"
        assert data["metadata"]["total_mappings"] == 2
        assert data["metadata"]["transformed_mappings"] == 1
        assert data["metadata"]["ai_generated"] == 1
        assert data["metadata"]["warnings"] == ["partial result"]
        assert data["mappings"][1]["transformation"]["operation"] == "upper_case"

    def test_load_mappings(self, tmp_path, mappings):
        output_file = tmp_path / "mappings.json"
        exporter = JsonExporter()
        exporter.export_mappings(output_file, mappings)

        assert exporter.load_mappings(output_file) == mappings

    def test_load_bare_list(self, tmp_path):
        input_file = tmp_path / "list.json"
        input_file.write_text(json.dumps([{"sourceField": "a.b", "targetPath": "x.y"}]))

        loaded = JsonExporter.load_mappings(input_file)
        assert loaded[0].source_field.path == "a.b"

    def test_load_invalid_json(self, tmp_path):
        input_file = tmp_path / "broken.json"
        input_file.write_text("[{not json")

        with pytest.raises(ConfigurationError):
            JsonExporter.load_mappings(input_file)

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            JsonExporter.load_mappings(tmp_path / "missing.json")

    def test_load_wrong_shape(self, tmp_path):
        input_file = tmp_path / "shape.json"
        input_file.write_text(json.dumps({"mappings": "data.candidate.email"}))

        with pytest.raises(ConfigurationError):
            JsonExporter.load_mappings(input_file)

    def test_export_artifact(self, tmp_path, mappings):
        request = IntegrationRequest(
            "rh@example.com", "https://api.example.com", mappings,
            {"data": {"candidate": {"email": "ana@example.com", "name": "Ana"}}},
        )
        artifact = IntegrationCompiler().compile(request)
        output_file = tmp_path / "integration.json"

        JsonExporter().export(output_file, artifact)

        assert json.loads(output_file.read_text(encoding="utf-8")) == artifact.to_dict()


# ============================================================================
# CONFIG
# ============================================================================


class TestConfig:
    """Tests for environment configuration"""

    def test_defaults(self):
        config = BatchConfig()
        assert config.large_payload_threshold == 100
        assert (config.min_batch_size, config.max_batch_size) == (20, 80)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "secret")
        monkeypatch.setenv("HRBRIDGE_BATCH_MIN", "10")
        monkeypatch.setenv("HRBRIDGE_BATCH_TIMEOUT", "not a number")
        monkeypatch.setenv("HRBRIDGE_ALLOW_TARGET_COLLISIONS", "true")

        config = AppConfig.from_env()

        assert config.gemini.enabled
        assert config.batch.min_batch_size == 10
        assert config.batch.batch_timeout == 120.0
        assert config.compiler.allow_target_collisions is True

    def test_growth_from_env(self, monkeypatch):
        monkeypatch.setenv("HRBRIDGE_BATCH_INITIAL_DIVISOR", "5")
        monkeypatch.setenv("HRBRIDGE_BATCH_GROWTH_STEP", "15")
        monkeypatch.setenv("HRBRIDGE_BATCH_GROWTH_AFTER", "3")

        config = BatchConfig.from_env()

        assert config.initial_batch_divisor == 5
        assert config.growth_step == 15
        assert config.growth_after_successes == 3

    def test_gemini_disabled_without_key(self):
        assert not GeminiConfig(api_key="").enabled
        assert CompilerConfig().allow_target_collisions is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
