"""Load source-system reference data from a directory of JSON files."""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

from hrbridge.errors import ConfigurationError
from hrbridge.schema.models import ReferenceData, SemanticRules

logger = logging.getLogger(__name__)

SCHEMA_FILE = "source-schema.json"
SAMPLE_FILE = "source-example-payload.json"
PATTERNS_FILE = "semantic-patterns.json"


def _read_json(path: Path) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Could not read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e


def load_reference_data(directory: Union[str, Path], source_system: str = "gupy") -> ReferenceData:
    """
    Load {schema, sample payload, semantic rules} for a source system.

    Layout:
        <directory>/source-schema.json           (required)
        <directory>/source-example-payload.json  (optional)
        <directory>/semantic-patterns.json       (optional)

    A schema file wrapping its fields in a top-level "schema" key is
    unwrapped.
    """
    directory = Path(directory)
    schema_path = directory / SCHEMA_FILE
    if not schema_path.exists():
        raise ConfigurationError(f"Source schema not found: {schema_path}")

    schema: Dict[str, Any] = _read_json(schema_path)
    if not isinstance(schema, dict):
        raise ConfigurationError(f"Source schema must be a JSON object: {schema_path}")
    if isinstance(schema.get("schema"), dict):
        schema = schema["schema"]

    sample: Dict[str, Any] = {}
    sample_path = directory / SAMPLE_FILE
    if sample_path.exists():
        sample = _read_json(sample_path)

    patterns_path = directory / PATTERNS_FILE
    if patterns_path.exists():
        rules = SemanticRules.from_dict(_read_json(patterns_path))
    else:
        logger.info(f"No {PATTERNS_FILE} in {directory}, using built-in semantic rules")
        rules = SemanticRules.default()

    logger.info(f"Loaded reference data for '{source_system}' from {directory}")
    return ReferenceData(
        source_schema=schema,
        source_sample=sample,
        semantic_rules=rules,
        source_system=source_system,
    )
