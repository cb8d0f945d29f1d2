"""
Integration Compiler - Turns a mapping list into a task graph artifact

Each compile call builds a fresh payload tree, variable table and task
list; nothing is shared between calls.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from config import CompilerConfig
from hrbridge.errors import ValidationError
from hrbridge.mapper.mapping import Mapping
from hrbridge.schema.paths import get_value_by_path
from hrbridge.transformer.engine import TransformationEngine
from hrbridge.transformer.registry import TransformerRegistry
from hrbridge.validator.request_validator import RequestValidator, find_target_collisions
from . import task_factory
from .models import Artifact, IntegrationRequest, IntegrationVariable, TaskNode
from .payload_builder import SOURCE_ROOT, PayloadBuilder
from .template_engine import TemplateEngine

logger = logging.getLogger(__name__)

DEFAULT_INTEGRATION_NAME = "hr-integration"


def variable_name(source_name: str, task_id: int) -> str:
    """Unique variable name for a transformed field."""
    normalized = re.sub(r"[^a-z0-9]", "_", source_name.lower()) or "field"
    return f"transformed_{normalized}_{task_id}"


def _slug(name: str) -> str:
    return re.sub(r"[^a-z0-9-]+", "-", name.lower()).strip("-") or DEFAULT_INTEGRATION_NAME


class IntegrationCompiler:
    """
    Compiles integration requests

    Usage:
    ```python
    compiler = IntegrationCompiler()
    artifact = compiler.compile(request)
    artifact.to_dict()  # runtime document
    ```
    """

    def __init__(
        self,
        config: Optional[CompilerConfig] = None,
        registry: Optional[TransformerRegistry] = None,
    ):
        self.config = config or CompilerConfig()
        self.registry = registry or TransformerRegistry()
        self.engine = TransformationEngine(self.registry)
        self.validator = RequestValidator(self.config.allow_target_collisions)

    def compile(self, request: IntegrationRequest) -> Artifact:
        """
        Compile a request into an artifact

        Raises:
            ValidationError: listing every problem with the request.
        """
        errors = self.validator.validate(request)
        if errors:
            raise ValidationError(errors)

        warnings = []
        if self.config.allow_target_collisions:
            for problem in find_target_collisions(request.mappings):
                logger.warning(f"{problem} (last writer wins)")
                warnings.append(problem)

        builder = PayloadBuilder()
        preview_context: Dict[str, Any] = {SOURCE_ROOT: request.source_payload}
        transformation_tasks: List[TaskNode] = []
        variables: List[IntegrationVariable] = []
        task_id = self.config.first_transformation_task_id

        direct = [m for m in request.mappings if m.is_direct]
        transformed = [m for m in request.mappings if not m.is_direct]
        logger.info(
            f"Compiling {len(direct)} direct and {len(transformed)} transformed mappings"
        )

        for mapping in direct:
            builder.add_direct(mapping.target_path, mapping.source_field.path)

        for index, mapping in enumerate(transformed):
            spec = mapping.transformation
            if not self.registry.is_supported(spec.kind):
                message = (
                    f"Unsupported transformation '{spec.type_name}' on "
                    f"{mapping.source_field.path}, passing value through"
                )
                logger.warning(message)
                warnings.append(message)

            var_name = variable_name(mapping.source_field.name, task_id)
            snippet = self.registry.snippet(var_name, mapping.source_field.path, spec)
            transformation_tasks.append(
                task_factory.transformation_task(
                    task_id,
                    snippet,
                    f"Transform {mapping.source_field.name} ({spec.type_name})",
                    index,
                )
            )
            variables.append(IntegrationVariable(var_name, "STRING_VALUE"))
            builder.add_variable(mapping.target_path, var_name)
            preview_context[var_name] = self._preview_value(mapping, request.source_payload)
            task_id += 1

        output_payload = builder.build()
        preview_payload = TemplateEngine(preview_context).render(output_payload)
        return self._assemble(request, transformation_tasks, variables, output_payload,
                              preview_payload, warnings)

    def _preview_value(self, mapping: Mapping, source_payload: Dict[str, Any]) -> Any:
        """
        Sample value for the preview payload

        Transformations proposed with low confidence are shown untransformed;
        hand-authored ones (no confidence) are always applied.
        """
        value = get_value_by_path(source_payload, mapping.source_field.path)
        if (mapping.confidence is not None
                and mapping.confidence < self.config.preview_min_confidence):
            return value
        return self.engine.apply(value, mapping.transformation)

    def _assemble(
        self,
        request: IntegrationRequest,
        transformation_tasks: List[TaskNode],
        variables: List[IntegrationVariable],
        output_payload: Dict[str, Any],
        preview_payload: Dict[str, Any],
        warnings: List[str],
    ) -> Artifact:
        trigger_name = _slug(request.integration_name or DEFAULT_INTEGRATION_NAME)
        start_ids = [t.id for t in transformation_tasks] or [task_factory.FIELD_MAPPING_TASK_ID]

        tasks = transformation_tasks + [
            task_factory.field_mapping_task(self.config),
            task_factory.rest_call_task(self.config),
            task_factory.dlq_task(self.config),
            task_factory.success_task(),
        ]

        artifact = Artifact(
            name=f"integrations/{trigger_name}",
            trigger=task_factory.trigger_config(trigger_name, start_ids),
            tasks=tasks,
            variables=task_factory.base_variables(request.customer_email) + variables,
            config_parameters=task_factory.config_parameters(
                output_payload, request.destination_endpoint, request.customer_email
            ),
            output_payload=output_payload,
            preview_payload=preview_payload,
            warnings=warnings,
        )
        logger.info(
            f"Compiled {artifact.name}: {len(tasks)} tasks, {len(variables)} transformed variables"
        )
        return artifact
