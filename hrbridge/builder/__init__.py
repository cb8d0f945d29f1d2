"""
Integration Builder Module

Compiles mapping lists into integration task graphs:
- Payload template construction (direct and transformed references)
- Template rendering for payload previews
- Fixed-topology task node factory
- Integration compiler (integration_compiler.IntegrationCompiler)
"""

from .models import Artifact, IntegrationRequest, IntegrationVariable, NextTask, TaskNode
from .payload_builder import PayloadBuilder
from .template_engine import TemplateEngine

__all__ = [
    "Artifact",
    "IntegrationRequest",
    "IntegrationVariable",
    "NextTask",
    "TaskNode",
    "PayloadBuilder",
    "TemplateEngine",
]
