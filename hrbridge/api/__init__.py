"""
AI Mapping Module

Mapping suggestions backed by the Gemini generative language API:
- Single-request and adaptive batch orchestration
- Recovery of truncated JSON responses
- Fallback to the heuristic matcher
- Schema generation from descriptions
"""

from .gemini_client import GeminiClient
from .orchestrator import MappingOrchestrator, RunReport
from .service import MappingService, MappingSuggestion
from .schema_generator import SchemaGenerator

__all__ = [
    "GeminiClient",
    "MappingOrchestrator",
    "RunReport",
    "MappingService",
    "MappingSuggestion",
    "SchemaGenerator",
]
