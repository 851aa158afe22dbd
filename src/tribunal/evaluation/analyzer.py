"""Recorded-interaction discovery and scenario grouping.

Recording files are named::

    {tool}_{scenario parts...}_{sdk}_{model parts...}_{timestamp}.jsonl

e.g. ``remediate_manual_analyze_vercel_claude_20250901T120000.jsonl``. The
scenario id is everything before the sdk marker (tool prefix included), so
the same scenario recorded by several models lands in one group.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from tribunal.evaluation.types import (
    ComparisonScenario,
    DatasetStats,
    FailureAnalysis,
    InteractionRecord,
    PerformanceMetrics,
    Reliability,
)
from tribunal.foundation.config import TribunalConfig
from tribunal.foundation.errors import ErrorCode, dataset_error
from tribunal.foundation.serialization import safe_json_loads

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DatasetFilename:
    """Components of a recording filename."""

    tool: str
    scenario_id: str
    sdk: str
    model: str
    timestamp: str


def parse_dataset_filename(
    path: str | Path,
    sdk_markers: tuple[str, ...] = ("vercel",),
) -> DatasetFilename | None:
    """Split a recording filename into its parts.

    Returns None when the name has too few parts or no sdk marker.
    """
    parts = Path(path).name.removesuffix(".jsonl").split("_")
    if len(parts) < 5:
        return None

    sdk_index = next((i for i, p in enumerate(parts) if i > 0 and p in sdk_markers), -1)
    if sdk_index < 2 or sdk_index >= len(parts) - 2:
        return None

    return DatasetFilename(
        tool=parts[0],
        scenario_id="_".join(parts[:sdk_index]),
        sdk=parts[sdk_index],
        model="_".join(parts[sdk_index + 1:-1]),
        timestamp=parts[-1],
    )


def parse_failure_analysis(value: Any) -> FailureAnalysis | None:
    """Read `metadata.failure_analysis`, which may be an object or a JSON string.

    Raises:
        ValueError: If the value is present but unreadable
    """
    if value is None or value == "" or value == {}:
        return None
    if isinstance(value, str):
        value = safe_json_loads(value)
    if not isinstance(value, Mapping):
        raise ValueError("failure_analysis must be an object")

    time_to_failure = value.get("time_to_failure")
    return FailureAnalysis(
        failure_type=str(value.get("failure_type", "error")),
        failure_reason=str(value.get("failure_reason", "")),
        time_to_failure=int(time_to_failure) if time_to_failure is not None else None,
    )


def reliability_from_failure(failure: FailureAnalysis | None) -> Reliability:
    if failure is None:
        return Reliability.COMPLETED
    if failure.failure_type == "timeout":
        return Reliability.TIMED_OUT
    return Reliability.ERRORED


def group_records(records: Iterable[InteractionRecord], tool: str) -> list[ComparisonScenario]:
    """Partition the records of one tool into scenarios.

    Pure and deterministic: scenarios come out in order of first appearance,
    records within a scenario keep input order.

    Raises:
        DatasetIntegrityError: If a model contributes twice to one scenario
    """
    groups: dict[str, dict[str, InteractionRecord]] = {}
    for record in records:
        if record.tool != tool:
            continue
        by_model = groups.setdefault(record.scenario_id, {})
        if record.model in by_model:
            raise dataset_error(
                ErrorCode.DATASET_DUPLICATE_MODEL,
                path=record.source_file,
                line=record.line,
                model=record.model,
                scenario=record.scenario_id,
            )
        by_model[record.model] = record

    return [
        ComparisonScenario(scenario_id=scenario_id, tool=tool, records=tuple(by_model.values()))
        for scenario_id, by_model in groups.items()
    ]


class DatasetAnalyzer:
    """Finds recorded interactions for a tool and groups them into scenarios."""

    def __init__(self, config: TribunalConfig):
        self.datasets_dir = Path(config.paths.datasets_dir)
        self.sdk_markers = config.datasets.sdk_markers

    def find_datasets(self, tool: str) -> list[Path]:
        """Recording files for `tool`, sorted by name.

        Raises:
            DatasetIntegrityError: If the datasets directory does not exist
        """
        if not self.datasets_dir.is_dir():
            raise dataset_error(ErrorCode.DATASET_NOT_FOUND, path=str(self.datasets_dir))
        return sorted(self.datasets_dir.glob(f"{tool}_*.jsonl"))

    def load_interaction_records(self, tool: str) -> list[InteractionRecord]:
        """Parse every recording of `tool` into InteractionRecords.

        Raises:
            DatasetIntegrityError: On any malformed line
        """
        records = []
        for path in self.find_datasets(tool):
            parsed = parse_dataset_filename(path, self.sdk_markers)
            if parsed is None:
                logger.debug("Skipping %s: not a recording filename", path.name)
                continue
            records.extend(self._load_file(path, parsed))
        logger.debug("Loaded %d interaction records for %s", len(records), tool)
        return records

    def group_by_scenario(self, tool: str) -> list[ComparisonScenario]:
        return group_records(self.load_interaction_records(tool), tool)

    def get_available_models(self, tool: str) -> list[str]:
        return sorted({r.model for r in self.load_interaction_records(tool)})

    def get_dataset_stats(self, tool: str) -> DatasetStats:
        files = self.find_datasets(tool)
        scenarios = self.group_by_scenario(tool)
        interaction_types = {
            parsed.scenario_id.removeprefix(f"{parsed.tool}_")
            for parsed in (parse_dataset_filename(f, self.sdk_markers) for f in files)
            if parsed is not None
        }
        return DatasetStats(
            tool=tool,
            total_datasets=len(files),
            available_models=tuple(sorted({m for s in scenarios for m in s.models})),
            scenarios=len(scenarios),
            comparable_scenarios=sum(1 for s in scenarios if s.is_comparable),
            solo_scenarios=tuple(s.scenario_id for s in scenarios if not s.is_comparable),
            interaction_types=tuple(sorted(interaction_types)),
        )

    def _load_file(self, path: Path, parsed: DatasetFilename) -> list[InteractionRecord]:
        records = []
        for line_num, raw in enumerate(path.read_bytes().splitlines(), start=1):
            if not raw.strip():
                continue
            try:
                # UnicodeDecodeError is a ValueError, reported with its line
                data = safe_json_loads(raw.decode("utf-8"))
                if not isinstance(data, Mapping):
                    raise ValueError("record must be a JSON object")
                records.append(self._to_record(data, parsed, path, line_num))
            except (ValueError, TypeError) as e:
                raise dataset_error(
                    ErrorCode.DATASET_MALFORMED_LINE,
                    path=path.name,
                    line=line_num,
                    detail=str(e),
                    cause=e,
                ) from e
        return records

    def _to_record(
        self,
        data: Mapping[str, Any],
        parsed: DatasetFilename,
        path: Path,
        line_num: int,
    ) -> InteractionRecord:
        performance_data = data.get("performance") or {}
        metadata = data.get("metadata") or {}
        if not isinstance(performance_data, Mapping) or not isinstance(metadata, Mapping):
            raise ValueError("performance and metadata must be objects")

        sdk = performance_data.get("sdk")
        version = performance_data.get("model_version")
        model = f"{sdk}_{version}" if sdk and version else f"{parsed.sdk}_{parsed.model}"

        failure = parse_failure_analysis(metadata.get("failure_analysis"))
        raw_input = data.get("input")
        output = data.get("output")

        return InteractionRecord(
            scenario_id=parsed.scenario_id,
            tool=parsed.tool,
            model=model,
            input=dict(raw_input) if isinstance(raw_input, Mapping) else {"value": raw_input},
            output=output if isinstance(output, str) else "",
            reliability=reliability_from_failure(failure),
            performance=PerformanceMetrics.from_dict(performance_data),
            failure=failure,
            source_file=path.name,
            line=line_num,
        )
