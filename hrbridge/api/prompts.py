"""Prompt builders for the mapping and schema generation requests."""
import json
from typing import Any, Dict

from hrbridge.schema.models import SemanticRules
from hrbridge.schema.paths import count_fields, has_concrete_values

RESPONSE_EXAMPLE = [
    {
        "sourceField": {
            "name": "identificationDocument",
            "path": "data.candidate.identificationDocument",
            "type": "string",
        },
        "targetPath": "employee.documentNumber",
        "confidence": 99,
        "reasoning": "CPF '123.456.789-00' (source) vs '12345678900' (destination): same document, formatting removed",
        "transformation": {
            "type": "format_document",
            "operation": "remove_formatting",
            "pattern": "cpf",
            "preview": {"input": "123.456.789-00", "output": "12345678900"},
        },
    },
    {
        "sourceField": {"name": "name", "path": "data.candidate.name", "type": "string"},
        "targetPath": "employee.firstName",
        "confidence": 90,
        "reasoning": "'John' (source) vs 'ERICA' (destination): both first names",
    },
]

TRANSFORMATION_HINTS = """\
AVAILABLE TRANSFORMATIONS:
- format_document (pattern: cpf | cnpj | phone | cep): strip formatting, "123.456.789-00" -> "12345678900"
- concat (separator): join a list of strings
- name_split (operation: split_first_name | split_last_name)
- phone_split (operation: extract_area_code | extract_phone_number)
- convert (operation: string_to_number | number_to_string | string_to_boolean | boolean_to_string)
- normalize (operation: upper_case | lower_case | title_case | remove_accents)
- format_date (outputFormat: dd/MM/yyyy | yyyy-MM-dd | MM/dd/yyyy | ISO)
- country_code, gender_code, code_lookup (mapping: {"from": "to"})"""


def _dump(value: Any, indent: int = 2) -> str:
    return json.dumps(value, indent=indent, ensure_ascii=False)


def build_mapping_prompt(
    source_schema: Dict[str, Any],
    source_sample: Dict[str, Any],
    destination_schema: Dict[str, Any],
    semantic_rules: SemanticRules,
) -> str:
    """Prompt for a single request covering the whole destination schema."""
    is_payload = has_concrete_values(destination_schema)
    field_count = count_fields(destination_schema)
    kind = "PAYLOAD" if is_payload else "SCHEMA"
    focus = (
        "Compare concrete VALUES first, then field names"
        if is_payload else "Compare field names and data types"
    )

    return f"""
FIELD MAPPING - {field_count} DESTINATION FIELDS

SOURCE SCHEMA (use ONLY these fields):
{_dump(source_schema)}

SOURCE EXAMPLE PAYLOAD (real values for context):
{_dump(source_sample)}

DESTINATION {kind} ({field_count} fields):
{_dump(destination_schema)}

SEMANTIC PATTERNS:
{_dump(semantic_rules.to_dict())}

TASK: map as many destination fields as possible.
- Confidence >= 70 for plain mappings, >= 80 when a transformation is proposed
- Include a "transformation" object whenever the value formats differ
- Never invent source fields that are not listed above
- {focus}

{TRANSFORMATION_HINTS}

RESPONSE FORMAT (a valid JSON array with every mapping found):
{_dump(RESPONSE_EXAMPLE)}
"""


def build_batch_prompt(
    source_schema: Dict[str, Any],
    source_sample: Dict[str, Any],
    semantic_rules: SemanticRules,
    destination_batch: Dict[str, Any],
    batch_number: int,
    field_count: int,
) -> str:
    """
    Compact prompt for one batch of destination fields.

    The source schema and semantic patterns go into every batch; the
    example payload only when there is one.
    """
    sample_section = ""
    if source_sample:
        sample_section = f"\nSOURCE EXAMPLE PAYLOAD:\n{_dump(source_sample, indent=1)}\n"

    return f"""
BATCH {batch_number} - {field_count} FIELDS

SOURCE SCHEMA (use ONLY these fields):
{_dump(source_schema, indent=1)}
{sample_section}
SEMANTIC PATTERNS:
{_dump(semantic_rules.to_dict(), indent=1)}

DESTINATION:
{_dump(destination_batch, indent=1)}

TASK: compare both payloads and identify corresponding fields.

{TRANSFORMATION_HINTS}

JSON RESPONSE - ALL MAPPINGS:
[{{"sourceField":{{"name":"field","path":"path","type":"string"}},"targetPath":"destination","confidence":99,"reasoning":"explanation","transformation":{{"type":"kind","operation":"op","preview":{{"input":"in","output":"out"}}}}}}]
"""


def build_schema_prompt(description: str, target_format: str = "detailed_payload") -> str:
    """Prompt asking for a destination schema from a plain-language description."""
    return f"""
SCHEMA GENERATOR - HR/ERP SYSTEMS

SYSTEM DESCRIPTION:
{description}

TARGET FORMAT: {target_format}

TASK: produce a realistic, detailed JSON payload for the described system.
1. Identify every field the description mentions
2. Build a logical hierarchy (person > address, company > department)
3. Use semantic, consistent field names (firstName, lastName, email, jobTitle, zipCode)
4. Fill in realistic example values, Brazilian data (CPF, CEP, states) for Brazilian systems
5. Mix data types: strings, numbers, booleans, objects, arrays
6. Aim for 15-25 fields in total; avoid generic names such as "field1"

RETURN ONLY THE JSON OBJECT (no markdown, no explanations):
"""
