"""
Payload Builder - Writes template references into the output payload tree

Direct mappings reference the source payload path (${source.<path>}),
transformed mappings reference the variable their task produces
(${<variable>}).
"""

import copy
import logging
from typing import Any, Dict

from hrbridge.schema.paths import set_value_by_path
from .template_engine import TemplateEngine

logger = logging.getLogger(__name__)

SOURCE_ROOT = "source"


class PayloadBuilder:
    """
    Builds the output payload template for one compile call

    Usage:
    ```python
    builder = PayloadBuilder()
    builder.add_direct("employee.email", "data.candidate.email")
    builder.add_variable("employee.document", "transformed_cpf_10")

    builder.build()
    # Returns: {"employee": {"email": "${source.data.candidate.email}",
    #                        "document": "${transformed_cpf_10}"}}
    ```
    """

    def __init__(self):
        """Initialize PayloadBuilder with an empty tree"""
        self.payload: Dict[str, Any] = {}
        self.written: Dict[str, str] = {}

    @staticmethod
    def source_reference(source_path: str) -> str:
        return TemplateEngine.reference(f"{SOURCE_ROOT}.{source_path}")

    def add_direct(self, target_path: str, source_path: str) -> str:
        """Reference a source payload path at target_path"""
        return self._write(target_path, self.source_reference(source_path))

    def add_variable(self, target_path: str, variable: str) -> str:
        """Reference a generated variable at target_path"""
        return self._write(target_path, TemplateEngine.reference(variable))

    def _write(self, target_path: str, reference: str) -> str:
        previous = self.written.get(target_path)
        if previous is not None:
            logger.warning(
                f"Target path {target_path} written twice: {previous} replaced by {reference}"
            )

        set_value_by_path(self.payload, target_path, reference)
        self.written[target_path] = reference
        return reference

    def build(self) -> Dict[str, Any]:
        """Return a copy of the payload tree"""
        return copy.deepcopy(self.payload)
