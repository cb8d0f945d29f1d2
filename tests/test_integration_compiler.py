"""
Unit tests for the integration compiler

Tests:
- RequestValidator: required fields, formats, target collisions
- IntegrationCompiler: payload template, task graph, variables, preview
"""

import json

import _jsonnet
import pytest

from config import CompilerConfig
from hrbridge.builder.integration_compiler import IntegrationCompiler, variable_name
from hrbridge.builder.models import IntegrationRequest
from hrbridge.errors import ValidationError
from hrbridge.mapper.mapping import FieldRef, Mapping, TransformationSpec
from hrbridge.schema.paths import extract_field_paths
from hrbridge.validator.request_validator import (
    RequestValidator,
    find_target_collisions,
    is_valid_url,
    validate_client_schema,
)


def mapping(source_path, target_path, transformation=None, confidence=None):
    return Mapping(
        source_field=FieldRef.from_path(source_path),
        target_path=target_path,
        transformation=TransformationSpec.from_dict(transformation) if transformation else None,
        confidence=confidence,
    )


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def source_payload():
    """Sample source payload"""
    return {
        "data": {
            "candidate": {
                "name": "Erica Brugognolle",
                "email": "erica@example.com",
                "identificationDocument": "269.622.778-06",
                "gender": "Female",
            }
        }
    }


@pytest.fixture
def mappings():
    """One direct, one supported and one unsupported transformation"""
    return [
        mapping("data.candidate.email", "employee.contact.email"),
        mapping("data.candidate.identificationDocument", "employee.documentNumber",
                {"type": "format_document", "pattern": "cpf"}, confidence=0.95),
        mapping("data.candidate.name", "employee.displayName", {"type": "reverse_string"}),
    ]


@pytest.fixture
def request_(source_payload, mappings):
    return IntegrationRequest(
        customer_email="rh@example.com",
        destination_endpoint="https://api.example.com/employees",
        mappings=mappings,
        source_payload=source_payload,
        integration_name="Gupy to ERP",
    )


@pytest.fixture
def compiler():
    return IntegrationCompiler()


# ============================================================================
# REQUEST VALIDATOR
# ============================================================================


class TestRequestValidator:
    """Tests for request validation"""

    def test_valid_request(self, request_):
        assert RequestValidator().validate(request_) == []

    def test_missing_fields(self):
        errors = RequestValidator().validate(IntegrationRequest("", ""))
        assert errors == [
            "customerEmail is required",
            "destinationEndpoint is required",
            "sourcePayload is required",
        ]

    def test_invalid_formats(self, source_payload):
        request = IntegrationRequest("not-an-email", "ftp://example.com", [], source_payload)
        assert RequestValidator().validate(request) == [
            "Invalid email format",
            "Invalid endpoint URL format",
        ]

    def test_payload_must_be_object(self):
        request = IntegrationRequest("rh@example.com", "https://x.example.com", [], ["a"])
        assert RequestValidator().validate(request) == ["sourcePayload must be a JSON object"]

    def test_url(self):
        assert is_valid_url("http://localhost:8080/hook")
        assert not is_valid_url("example.com/hook")

    def test_collisions(self):
        problems = find_target_collisions([
            mapping("a", "employee.name"),
            mapping("b", "employee.name"),
            mapping("c", "employee.address"),
            mapping("d", "employee.address.city"),
        ])
        assert problems == [
            "Duplicate targetPath: employee.name",
            "targetPath employee.address conflicts with employee.address.city",
        ]

    def test_client_schema(self):
        assert validate_client_schema({"a": {"b": {"c": {"d": {"e": {"f": 1}}}}}}) == []
        assert validate_client_schema({"a": {"b": {"c": {"d": {"e": {"f": {"g": 1}}}}}}})
        assert validate_client_schema([]) == ["Schema must be a JSON object"]


# ============================================================================
# COMPILER
# ============================================================================


class TestIntegrationCompiler:
    """Tests for IntegrationCompiler"""

    def test_output_payload(self, compiler, request_):
        """One leaf per mapping, direct ones referencing the source"""
        artifact = compiler.compile(request_)
        payload = artifact.output_payload

        assert sorted(extract_field_paths(payload)) == [
            "employee.contact.email",
            "employee.displayName",
            "employee.documentNumber",
        ]
        assert payload["employee"]["contact"]["email"] == "${source.data.candidate.email}"
        assert payload["employee"]["documentNumber"] == "${transformed_identificationdocument_10}"
        assert payload["employee"]["displayName"] == "${transformed_name_11}"

    def test_task_graph(self, compiler, request_):
        artifact = compiler.compile(request_)

        assert [t.id for t in artifact.tasks] == ["10", "11", "1", "2", "4", "5"]
        assert [t.id for t in artifact.transformation_tasks] == ["10", "11"]
        assert artifact.trigger["startTasks"] == [{"taskId": "10"}, {"taskId": "11"}]
        assert artifact.trigger["triggerId"] == "api_trigger/gupy-to-erp"
        assert artifact.name == "integrations/gupy-to-erp"

        for task in artifact.transformation_tasks:
            assert [n.task_id for n in task.next_tasks] == ["1"]
        assert [n.task_id for n in artifact.task("1").next_tasks] == ["2"]

        branches = {n.task_id: n.condition for n in artifact.task("2").next_tasks}
        assert branches == {
            "5": '$`Task_2_responseStatus`$ = "200 OK"',
            "4": '$`Task_2_responseStatus`$ != "200 OK"',
        }
        assert artifact.task("2").execution_strategy == "WHEN_ANY_SUCCEED"
        assert artifact.task("4").next_tasks == []
        assert artifact.task("5").next_tasks == []

    def test_snippets(self, compiler, request_):
        artifact = compiler.compile(request_)
        cpf_snippet = artifact.task("10").parameters["template"]["value"]["stringValue"]
        unsupported = artifact.task("11").parameters["template"]["value"]["stringValue"]

        assert "transformed_identificationdocument_10:" in cpf_snippet
        assert '["data", "candidate", "identificationDocument"]' in cpf_snippet
        assert unsupported.endswith("{ transformed_name_11: inputValue }")

    def test_snippets_evaluate_to_preview(self, compiler, request_):
        """Each transformation task computes the value shown in the preview"""
        artifact = compiler.compile(request_)
        cpf_snippet = artifact.task("10").parameters["template"]["value"]["stringValue"]
        output = _jsonnet.evaluate_snippet(
            "task_10", cpf_snippet,
            ext_codes={"sourcePayload": json.dumps(request_.source_payload)},
        )

        assert json.loads(output) == {
            "transformed_identificationdocument_10": artifact.preview_payload["employee"]["documentNumber"]
        }

    def test_variables(self, compiler, request_):
        artifact = compiler.compile(request_)
        keys = [v.key for v in artifact.variables]

        assert "sourcePayload" in keys
        assert keys[-2:] == ["transformed_identificationdocument_10", "transformed_name_11"]
        assert len(keys) == len(set(keys))

    def test_config_parameters(self, compiler, request_):
        artifact = compiler.compile(request_)
        payload_param, endpoint_param, email_param = [p["parameter"] for p in artifact.config_parameters]

        assert json.loads(payload_param["defaultValue"]["jsonValue"]) == artifact.output_payload
        assert endpoint_param["defaultValue"]["stringValue"] == "https://api.example.com/employees"
        assert email_param["key"] == "`CONFIG_customerEmail`"
        assert email_param["defaultValue"]["stringValue"] == "rh@example.com"

    def test_preview(self, compiler, request_):
        preview = compiler.compile(request_).preview_payload

        assert preview == {
            "employee": {
                "contact": {"email": "erica@example.com"},
                "documentNumber": "26962277806",
                "displayName": "Erica Brugognolle",
            }
        }

    def test_low_confidence_preview_is_untransformed(self, compiler, request_):
        request_.mappings[1] = mapping(
            "data.candidate.identificationDocument", "employee.documentNumber",
            {"type": "format_document", "pattern": "cpf"}, confidence=0.7,
        )
        artifact = compiler.compile(request_)

        assert artifact.preview_payload["employee"]["documentNumber"] == "269.622.778-06"
        assert artifact.output_payload["employee"]["documentNumber"] == "${transformed_identificationdocument_10}"

    def test_unsupported_transformation_warning(self, compiler, request_):
        warnings = compiler.compile(request_).warnings
        assert any("reverse_string" in w for w in warnings)

    def test_no_transformations(self, compiler, request_):
        request_.mappings = [mapping("data.candidate.email", "employee.email")]
        artifact = compiler.compile(request_)

        assert artifact.transformation_tasks == []
        assert artifact.trigger["startTasks"] == [{"taskId": "1"}]

    def test_same_field_name_gets_distinct_variables(self, compiler, request_):
        request_.mappings = [
            mapping("data.candidate.name", "employee.firstName",
                    {"type": "name_split", "operation": "split_first_name"}),
            mapping("data.candidate.name", "employee.lastName",
                    {"type": "name_split", "operation": "split_last_name"}),
        ]
        artifact = compiler.compile(request_)

        assert artifact.output_payload["employee"] == {
            "firstName": "${transformed_name_10}",
            "lastName": "${transformed_name_11}",
        }
        assert artifact.preview_payload["employee"] == {
            "firstName": "Erica",
            "lastName": "Brugognolle",
        }

    def test_invalid_request(self, compiler):
        with pytest.raises(ValidationError) as exc_info:
            compiler.compile(IntegrationRequest("", "", [], None))

        assert len(exc_info.value.errors) == 3

    def test_target_collision_rejected(self, compiler, request_):
        request_.mappings.append(mapping("data.candidate.gender", "employee.contact.email"))

        with pytest.raises(ValidationError) as exc_info:
            compiler.compile(request_)

        assert exc_info.value.errors == ["Duplicate targetPath: employee.contact.email"]

    def test_target_collision_allowed(self, request_):
        request_.mappings.append(mapping("data.candidate.gender", "employee.contact.email"))
        compiler = IntegrationCompiler(CompilerConfig(allow_target_collisions=True))

        artifact = compiler.compile(request_)

        assert artifact.output_payload["employee"]["contact"]["email"] == "${source.data.candidate.gender}"
        assert "Duplicate targetPath: employee.contact.email" in artifact.warnings

    def test_deterministic(self, compiler, request_):
        assert compiler.compile(request_).to_dict() == compiler.compile(request_).to_dict()

    def test_runtime_document(self, compiler, request_):
        document = compiler.compile(request_).to_dict()

        assert set(document) == {
            "name", "triggerConfigs", "taskConfigs", "integrationParameters",
            "errorCatcherConfigs", "integrationConfigParameters",
        }
        assert document["taskConfigs"][0]["task"] == "JsonnetMapperTask"
        assert document["taskConfigs"][0]["position"] == {"x": "140", "y": "100"}

    def test_request_from_dict(self, source_payload):
        request = IntegrationRequest.from_dict({
            "customerEmail": "rh@example.com",
            "systemEndpoint": "https://api.example.com",
            "sourcePayload": source_payload,
            "mappings": [{"sourceField": "data.candidate.email", "targetPath": "employee.email"}],
        })

        assert request.destination_endpoint == "https://api.example.com"
        assert request.mappings[0].source_field.path == "data.candidate.email"

    def test_variable_name(self):
        assert variable_name("addressZipCode", 12) == "transformed_addresszipcode_12"
        assert variable_name("first-name", 10) == "transformed_first_name_10"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
