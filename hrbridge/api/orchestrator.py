"""AI mapping orchestrator with adaptive batching and response recovery."""
import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from config import BatchConfig
from hrbridge.api.gemini_client import GeminiClient
from hrbridge.api.prompts import build_batch_prompt, build_mapping_prompt
from hrbridge.api.recovery import extract_json_array, recover
from hrbridge.errors import AIServiceError
from hrbridge.mapper.mapping import (
    FieldRef,
    Mapping,
    TransformationSpec,
    dedupe_by_source,
    normalize_confidence,
)
from hrbridge.schema.models import SemanticRules
from hrbridge.schema.paths import count_fields, create_field_batch, extract_field_paths

logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    """Outcome of one orchestrator run."""

    mappings: List[Mapping] = field(default_factory=list)
    strategy: str = "direct"
    total_fields: int = 0
    batches: int = 0
    failures: int = 0
    skipped_fields: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return bool(self.mappings)


def finalize(mappings: List[Mapping]) -> List[Mapping]:
    """Dedupe by source path (first wins), then sort by confidence descending."""
    unique = dedupe_by_source(mappings)
    return sorted(unique, key=lambda m: m.confidence or 0.0, reverse=True)


def parse_response(text: str, label: str = "") -> List[Mapping]:
    """
    Turn a raw AI response into mappings.

    The first `[...]` region is parsed directly; when that fails the
    recoverer salvages what it can. Records without a source path or a
    target path are dropped.
    """
    if not text or not text.strip():
        return []

    try:
        records = json.loads(extract_json_array(text))
    except ValueError:
        logger.warning(f"{label}: incomplete JSON, attempting recovery")
        records = recover(text)

    if not isinstance(records, list):
        return []

    suffix = f" ({label})" if label else ""
    mappings = []
    for record in records:
        mapping = _record_to_mapping(record, suffix)
        if mapping is not None:
            mappings.append(mapping)
    return mappings


def _record_to_mapping(record: Any, reasoning_suffix: str) -> Optional[Mapping]:
    if not isinstance(record, dict):
        return None

    source = record.get("sourceField")
    if isinstance(source, dict):
        source_field = FieldRef.from_dict(source)
    elif isinstance(source, str):
        source_field = FieldRef.from_path(source)
    else:
        return None

    target_path = record.get("targetPath")
    if not source_field.path or not isinstance(target_path, str) or not target_path:
        return None

    transformation = record.get("transformation")
    reasoning = record.get("reasoning")
    return Mapping(
        source_field=source_field,
        target_path=target_path,
        transformation=(
            TransformationSpec.from_dict(transformation)
            if isinstance(transformation, dict) else None
        ),
        confidence=normalize_confidence(record.get("confidence")),
        reasoning=f"{reasoning}{reasoning_suffix}" if reasoning else None,
        ai_generated=True,
    )


class MappingOrchestrator:
    """
    Ask the generative service for field mappings.

    Small schemas go out in one request. When either side has more leaf
    fields than `large_payload_threshold`, the destination is flattened
    and sent in adaptively sized batches: the size grows after
    consecutive successes and shrinks after failures, and a range that
    still fails at the floor size is skipped. Each request is bounded by
    `batch_timeout`; the whole run by `max_failures` and
    `max_total_seconds`.

    `generate` never raises. An empty result means the caller should fall
    back to the heuristic matcher.
    """

    def __init__(self, client: GeminiClient, config: Optional[BatchConfig] = None):
        """Initialize orchestrator."""
        self.client = client
        self.config = config or BatchConfig()

    async def generate(
        self,
        source_schema: Dict[str, Any],
        source_sample: Dict[str, Any],
        destination_schema: Dict[str, Any],
        semantic_rules: Optional[SemanticRules] = None,
    ) -> List[Mapping]:
        """Generate mappings for destination_schema."""
        report = await self.run(source_schema, source_sample, destination_schema, semantic_rules)
        return report.mappings

    async def run(
        self,
        source_schema: Dict[str, Any],
        source_sample: Dict[str, Any],
        destination_schema: Dict[str, Any],
        semantic_rules: Optional[SemanticRules] = None,
    ) -> RunReport:
        """Generate mappings and report how the run went."""
        rules = semantic_rules or SemanticRules.default()
        source_sample = source_sample or {}

        try:
            source_count = count_fields(source_sample or source_schema)
            destination_count = count_fields(destination_schema)
            logger.info(
                f"Mapping request: {source_count} source fields, "
                f"{destination_count} destination fields"
            )

            threshold = self.config.large_payload_threshold
            if source_count > threshold or destination_count > threshold:
                logger.info("Large payload detected, using adaptive batch mode")
                report = await self._run_batched(
                    source_schema, source_sample, destination_schema, rules
                )
            else:
                report = await self._run_direct(
                    source_schema, source_sample, destination_schema, rules
                )
        except Exception as e:
            logger.error(f"Mapping generation failed: {e}")
            return RunReport(error=str(e))

        report.mappings = finalize(report.mappings)
        return report

    async def _request(self, prompt: str) -> str:
        return await asyncio.wait_for(
            asyncio.to_thread(self.client.complete, prompt),
            timeout=self.config.batch_timeout,
        )

    async def _run_direct(
        self,
        source_schema: Dict[str, Any],
        source_sample: Dict[str, Any],
        destination_schema: Dict[str, Any],
        rules: SemanticRules,
    ) -> RunReport:
        report = RunReport(strategy="direct", total_fields=count_fields(destination_schema))
        prompt = build_mapping_prompt(source_schema, source_sample, destination_schema, rules)
        report.batches = 1

        try:
            response = await self._request(prompt)
        except asyncio.TimeoutError:
            report.failures = 1
            report.error = f"AI request timed out after {self.config.batch_timeout}s"
            logger.warning(report.error)
            return report
        except AIServiceError as e:
            report.failures = 1
            report.error = str(e)
            logger.warning(f"AI request failed: {e}")
            return report

        report.mappings = parse_response(response, "AI")
        if not report.mappings:
            report.failures = 1
            report.error = "AI response contained no valid mappings"
        logger.info(f"Direct request produced {len(report.mappings)} mappings")
        return report

    async def _run_batched(
        self,
        source_schema: Dict[str, Any],
        source_sample: Dict[str, Any],
        destination_schema: Dict[str, Any],
        rules: SemanticRules,
    ) -> RunReport:
        config = self.config
        fields = extract_field_paths(destination_schema)
        total = len(fields)
        report = RunReport(strategy="batched", total_fields=total)

        batch_size = max(1, min(config.initial_batch_size, total // config.initial_batch_divisor))
        cursor = 0
        batch_number = 1
        consecutive_successes = 0
        started = time.monotonic()

        while cursor < total:
            if report.failures >= config.max_failures:
                report.error = f"Stopped after {report.failures} failed batches"
                logger.error(report.error)
                break
            if time.monotonic() - started > config.max_total_seconds:
                report.error = f"Stopped after {config.max_total_seconds}s"
                logger.error(report.error)
                break

            if report.batches:
                await asyncio.sleep(config.inter_batch_delay)

            current = min(batch_size, total - cursor)
            logger.info(
                f"Batch {batch_number}: fields {cursor + 1}-{cursor + current} of {total}"
            )
            report.batches += 1

            try:
                batch = create_field_batch(destination_schema, fields[cursor:cursor + current])
                prompt = build_batch_prompt(
                    source_schema, source_sample, rules, batch, batch_number, current
                )
                response = await self._request(prompt)
                mappings = parse_response(response, f"Batch {batch_number}")
                if not mappings:
                    raise AIServiceError(f"No valid mappings in batch {batch_number}")
            except Exception as e:
                reason = "timed out" if isinstance(e, asyncio.TimeoutError) else str(e)
                logger.warning(f"Batch {batch_number} failed: {reason}")
                report.failures += 1
                consecutive_successes = 0

                if batch_size > config.min_batch_size:
                    batch_size = max(int(batch_size * config.shrink_factor), config.min_batch_size)
                    logger.info(f"Shrinking batch to {batch_size} fields and retrying")
                else:
                    logger.error(f"Batch {batch_number} failed at minimum size, skipping {current} fields")
                    report.skipped_fields += current
                    cursor += current
                    batch_number += 1
                continue

            report.mappings.extend(mappings)
            cursor += current
            batch_number += 1
            consecutive_successes += 1
            logger.info(
                f"Batch ok: {len(mappings)} mappings, {cursor}/{total} fields processed"
            )

            if (consecutive_successes >= config.growth_after_successes
                    and batch_size < config.max_batch_size):
                batch_size = min(batch_size + config.growth_step, config.max_batch_size)
                logger.info(f"Growing batch to {batch_size} fields")

        logger.info(
            f"Batch mode finished: {len(report.mappings)} mappings from {total} fields, "
            f"{report.skipped_fields} skipped"
        )
        return report
