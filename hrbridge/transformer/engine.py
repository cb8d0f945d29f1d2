"""Transformation engine: total, non-throwing value transformations."""
import logging
from typing import Any, Dict, List, Optional, Sequence

from hrbridge.mapper.mapping import TransformationKind, TransformationSpec
from hrbridge.transformer.registry import TransformerRegistry

logger = logging.getLogger(__name__)


class TransformationEngine:
    """
    Apply transformations to values.

    `apply` never raises: unsupported kinds and bad input are logged and
    the original value is returned. `None` passes through untouched.
    """

    def __init__(self, registry: Optional[TransformerRegistry] = None):
        self.registry = registry or TransformerRegistry()

    def apply(self, value: Any, spec: Optional[TransformationSpec]) -> Any:
        """Apply one transformation."""
        if spec is None or value is None:
            return value

        if spec.kind == TransformationKind.UNKNOWN:
            logger.warning(f"Unsupported transformation type: {spec.type_name}")
            return value

        try:
            return self.registry.transform(value, spec)
        except Exception as e:
            logger.error(f"Error applying transformation {spec.type_name}: {e}")
            return value

    def apply_chain(self, value: Any, specs: Sequence[TransformationSpec]) -> Any:
        """Apply transformations left to right."""
        for spec in specs:
            value = self.apply(value, spec)
        return value

    def apply_steps(self, value: Any, specs: Sequence[TransformationSpec]) -> List[Dict[str, Any]]:
        """Apply transformations left to right, recording each step."""
        steps = []
        for spec in specs:
            output = self.apply(value, spec)
            steps.append({"transformation": spec.to_dict(), "input": value, "output": output})
            value = output
        return steps

    def validate(self, value: Any, spec: TransformationSpec) -> bool:
        """True unless applying the transformation raises."""
        try:
            self.apply(value, spec)
            return True
        except Exception:
            return False

    def preview(self, value: Any, spec: TransformationSpec) -> Dict[str, str]:
        """Stringified input/output pair for display."""
        return {
            "input": _display(value),
            "output": _display(self.apply(value, spec)),
        }


def _display(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
