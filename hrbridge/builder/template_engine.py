"""
Template Engine - Resolves ${...} references in compiled payload trees

Supports:
- Dotted references into nested context (${source.data.candidate.name})
- Plain variable references (${transformed_name_10})
- Typed resolution when a leaf is a single reference
- Recursive rendering of dicts and lists
"""

import logging
import re
from typing import Any, Dict, Optional

from hrbridge.schema.paths import get_value_by_path

logger = logging.getLogger(__name__)

_MISSING = object()


class TemplateEngine:
    """Template engine for payload previews"""

    # Pattern for variable substitution: ${var_name}
    VARIABLE_PATTERN = re.compile(r'\$\{([^}]+)\}')

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        """
        Initialize TemplateEngine

        Args:
            context: Variables available for substitution. Dotted names are
                looked up as paths into nested dicts.
        """
        self.context = context or {}

    @staticmethod
    def reference(name: str) -> str:
        """Template reference for a variable or path"""
        return "${" + name + "}"

    def lookup(self, name: str, default: Any = None) -> Any:
        """Resolve a variable name or dotted path against the context"""
        name = name.strip()
        if name in self.context:
            return self.context[name]
        return get_value_by_path(self.context, name, default)

    def evaluate(self, template: Any) -> Any:
        """
        Evaluate a template string

        A template that is exactly one reference resolves to the raw value
        (numbers and objects keep their type). Mixed text is substituted
        as strings; unresolved references become empty strings.
        """
        if not isinstance(template, str):
            return template

        match = self.VARIABLE_PATTERN.fullmatch(template.strip())
        if match:
            value = self.lookup(match.group(1), _MISSING)
            if value is _MISSING:
                logger.warning(f"Variable not found in context: {match.group(1)}")
                return None
            return value

        return self._evaluate_variables(template)

    def _evaluate_variables(self, template: str) -> str:
        """Substitute variables in template"""
        def replace_var(match):
            var_name = match.group(1).strip()
            value = self.lookup(var_name)

            if value is None:
                logger.warning(f"Variable not found in context: {var_name}")
                return ""

            return str(value)

        return self.VARIABLE_PATTERN.sub(replace_var, template)

    def render(self, tree: Any) -> Any:
        """Evaluate every string leaf of a JSON tree, returning a new tree"""
        if isinstance(tree, dict):
            return {key: self.render(value) for key, value in tree.items()}
        if isinstance(tree, list):
            return [self.render(item) for item in tree]
        return self.evaluate(tree)
