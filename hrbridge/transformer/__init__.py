"""
Transformation Module

Value-level conversions keyed by transformation kind:
- In-process application with a no-throw contract (engine)
- Jsonnet snippet generation for compiled task graphs (snippets)
- One shared registry table for both
"""

from .engine import TransformationEngine
from .registry import TransformerRegistry, TransformationHandler

__all__ = [
    "TransformationEngine",
    "TransformerRegistry",
    "TransformationHandler",
]
