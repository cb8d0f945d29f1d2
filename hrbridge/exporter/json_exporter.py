"""JSON exporter."""
import json
from pathlib import Path
from datetime import datetime
from typing import List, Optional

from hrbridge.builder.models import Artifact
from hrbridge.errors import ConfigurationError
from hrbridge.mapper.mapping import Mapping


class JsonExporter:
    """Export compiled integrations and mapping lists to JSON."""

    def export(self, output_file: Path, artifact: Artifact) -> None:
        """Export the runtime document to a JSON file."""
        output_file = Path(output_file)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        with open(output_file, "w", encoding="utf-8") as f:
            json.dump(artifact.to_dict(), f, indent=2, ensure_ascii=False, default=str)

    def export_mappings(
        self,
        output_file: Path,
        mappings: List[Mapping],
        strategy: str = "heuristic",
        warnings: Optional[List[str]] = None,
    ) -> None:
        """Export a mapping list with metadata."""
        output_file = Path(output_file)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "metadata": {
                "created_at": datetime.now().isoformat(),
                "strategy": strategy,
                "total_mappings": len(mappings),
                "transformed_mappings": sum(1 for m in mappings if not m.is_direct),
                "ai_generated": sum(1 for m in mappings if m.ai_generated),
                "warnings": warnings or [],
            },
            "mappings": [m.to_dict() for m in mappings],
        }

        with open(output_file, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False, default=str)

    @staticmethod
    def load_mappings(input_file: Path) -> List[Mapping]:
        """Read mappings written by export_mappings (or a bare list)."""
        try:
            with open(input_file, encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise ConfigurationError(f"Could not read {input_file}: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {input_file}: {e}") from e

        records = data.get("mappings", []) if isinstance(data, dict) else data
        if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
            raise ConfigurationError(f"Expected a list of mapping objects in {input_file}")
        return [Mapping.from_dict(record) for record in records]
