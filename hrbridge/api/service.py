"""Mapping suggestion service: AI first, heuristic matcher as fallback."""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from config import BatchConfig, GeminiConfig
from hrbridge.api.gemini_client import GeminiClient
from hrbridge.api.orchestrator import MappingOrchestrator
from hrbridge.errors import ValidationError
from hrbridge.mapper.heuristic import ConfidenceMatcher
from hrbridge.mapper.mapping import Mapping
from hrbridge.schema.models import ReferenceData
from hrbridge.validator.request_validator import validate_client_schema

logger = logging.getLogger(__name__)


@dataclass
class MappingSuggestion:
    """Mappings plus how they were produced."""

    mappings: List[Mapping]
    strategy: str
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "mappings": [m.to_dict() for m in self.mappings],
            "strategy": self.strategy,
            "warnings": self.warnings,
            "count": len(self.mappings),
        }


class MappingService:
    """Suggest mappings for a destination schema."""

    def __init__(
        self,
        gemini_config: Optional[GeminiConfig] = None,
        batch_config: Optional[BatchConfig] = None,
        orchestrator: Optional[MappingOrchestrator] = None,
        matcher: Optional[ConfidenceMatcher] = None,
    ):
        self.gemini_config = gemini_config or GeminiConfig.from_env()
        if orchestrator is None and self.gemini_config.enabled:
            orchestrator = MappingOrchestrator(GeminiClient(self.gemini_config), batch_config)
        self.orchestrator = orchestrator
        self.matcher = matcher or ConfidenceMatcher()

    async def suggest(self, reference: ReferenceData, destination_schema: Dict[str, Any]) -> MappingSuggestion:
        """
        Suggest mappings from the reference source system to destination_schema.

        Raises:
            ValidationError: if destination_schema is empty or nested too deep.
        """
        errors = validate_client_schema(destination_schema)
        if errors:
            raise ValidationError(errors, "Invalid destination schema: " + ", ".join(errors))

        warnings: List[str] = []
        if self.orchestrator is not None:
            report = await self.orchestrator.run(
                reference.source_schema,
                reference.source_sample,
                destination_schema,
                reference.semantic_rules,
            )
            if report.skipped_fields:
                warnings.append(
                    f"{report.skipped_fields} of {report.total_fields} destination fields "
                    f"were skipped after repeated AI failures"
                )
            if report.ok:
                logger.info(f"AI produced {len(report.mappings)} mappings")
                return MappingSuggestion(report.mappings, "ai", warnings)

            warnings.append(
                f"AI mapping unavailable ({report.error or 'no mappings returned'}), "
                f"using heuristic matcher"
            )
            logger.warning(warnings[-1])
        else:
            logger.info("No AI service configured, using heuristic matcher")

        mappings = self.matcher.match(
            reference.source_schema, destination_schema, reference.semantic_rules
        )
        return MappingSuggestion(mappings, "heuristic", warnings)
