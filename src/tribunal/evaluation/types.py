"""Evaluation data types.

Core data structures for the comparative evaluation pipeline:
- Eval dataset samples and filters
- Recorded interactions and the scenarios they group into
- Comparative judgment outcomes and derived efficiency metrics
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


class Reliability(str, Enum):
    """How a recorded interaction ended."""

    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    ERRORED = "errored"

    @property
    def failed(self) -> bool:
        return self is not Reliability.COMPLETED


class Complexity(str, Enum):
    """Eval sample complexity."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# =============================================================================
# Eval Dataset Samples
# =============================================================================


@dataclass(frozen=True, slots=True)
class IssueInput:
    """Troubleshooting-style input: a problem statement to resolve."""

    issue: str


@dataclass(frozen=True, slots=True)
class IntentInput:
    """Request-style input: a user intent to fulfil."""

    intent: str


@dataclass(frozen=True, slots=True)
class UnknownInput:
    """Input of unrecognized shape, kept verbatim for inspection."""

    raw: Mapping[str, Any]


SampleInput = IssueInput | IntentInput | UnknownInput


def parse_sample_input(data: Any) -> SampleInput:
    """Pick the input variant from the fields present."""
    if isinstance(data, Mapping):
        if isinstance(data.get("issue"), str):
            return IssueInput(issue=data["issue"])
        if isinstance(data.get("intent"), str):
            return IntentInput(intent=data["intent"])
        return UnknownInput(raw=dict(data))
    return UnknownInput(raw={"value": data})


@dataclass(frozen=True, slots=True)
class SampleMetadata:
    """Required and optional metadata of an eval sample."""

    category: str
    complexity: Complexity
    tags: frozenset[str]
    source: str = ""
    phase: str | None = None
    tool: str | None = None


@dataclass(frozen=True, slots=True)
class EvalSample:
    """One line of an eval dataset."""

    input: SampleInput
    ideal: Any
    metadata: SampleMetadata
    line: int = 0


@dataclass(frozen=True, slots=True)
class DatasetFilter:
    """Conjunctive filter over eval samples.

    Every criterion that is set must match. `tags` requires ALL listed tags
    to be present on the sample.
    """

    category: str | None = None
    complexity: Complexity | None = None
    phase: str | None = None
    tool: str | None = None
    tags: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return (
            self.category is None
            and self.complexity is None
            and self.phase is None
            and self.tool is None
            and not self.tags
        )

    def matches(self, sample: EvalSample) -> bool:
        meta = sample.metadata
        if self.category is not None and meta.category != self.category:
            return False
        if self.complexity is not None and meta.complexity != self.complexity:
            return False
        if self.phase is not None and meta.phase != self.phase:
            return False
        if self.tool is not None and meta.tool != self.tool:
            return False
        return all(tag in meta.tags for tag in self.tags)


# =============================================================================
# Recorded Interactions
# =============================================================================


@dataclass(frozen=True, slots=True)
class PerformanceMetrics:
    """Resource usage of one recorded interaction."""

    duration_ms: int
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    cost_usd: float | None = None
    iterations: int | None = None
    tool_calls_executed: int | None = None
    cache_read_tokens: int | None = None
    cache_creation_tokens: int | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PerformanceMetrics:
        """Build from a recorded `performance` object.

        Raises:
            ValueError: If a numeric field holds a non-numeric value
        """
        def optional_int(key: str) -> int | None:
            value = data.get(key)
            return None if value is None else int(value)

        input_tokens = int(data.get("input_tokens", 0) or 0)
        output_tokens = int(data.get("output_tokens", 0) or 0)
        total = data.get("total_tokens")
        cost = data.get("cost_usd")
        return cls(
            duration_ms=int(data.get("duration_ms", 0) or 0),
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=int(total) if total is not None else input_tokens + output_tokens,
            cost_usd=float(cost) if cost is not None else None,
            iterations=optional_int("iterations"),
            tool_calls_executed=optional_int("tool_calls_executed"),
            cache_read_tokens=optional_int("cache_read_tokens"),
            cache_creation_tokens=optional_int("cache_creation_tokens"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "duration_ms": self.duration_ms,
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "total_tokens": self.total_tokens,
        }
        for key in (
            "cost_usd", "iterations", "tool_calls_executed",
            "cache_read_tokens", "cache_creation_tokens",
        ):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


@dataclass(frozen=True, slots=True)
class FailureAnalysis:
    """Why a recorded interaction did not complete."""

    failure_type: str          # "timeout" or "error"
    failure_reason: str
    time_to_failure: int | None = None  # ms


@dataclass(frozen=True, slots=True)
class InteractionRecord:
    """One model's recorded attempt at one scenario.

    Immutable once recorded; the pipeline only reads it.
    """

    scenario_id: str
    tool: str
    model: str
    input: Mapping[str, Any]
    output: str
    reliability: Reliability
    performance: PerformanceMetrics
    failure: FailureAnalysis | None = None
    source_file: str = ""
    line: int = 0

    @property
    def issue(self) -> str:
        """The problem statement or intent the model was given."""
        for key in ("issue", "intent"):
            value = self.input.get(key)
            if isinstance(value, str) and value:
                return value
        return ""


@dataclass(frozen=True, slots=True)
class ComparisonScenario:
    """The unit of comparative judgment: one scenario, several models."""

    scenario_id: str
    tool: str
    records: tuple[InteractionRecord, ...]

    @property
    def models(self) -> tuple[str, ...]:
        """Distinct models in order of first appearance."""
        return tuple(dict.fromkeys(r.model for r in self.records))

    @property
    def reliability_by_model(self) -> dict[str, Reliability]:
        return {r.model: r.reliability for r in self.records}

    @property
    def is_comparable(self) -> bool:
        """Comparison needs at least two distinct models."""
        return len(self.models) >= 2

    @property
    def issue(self) -> str:
        return next((r.issue for r in self.records if r.issue), "")


@dataclass(frozen=True, slots=True)
class DatasetStats:
    """Coverage summary of the recorded interactions for one tool."""

    tool: str
    total_datasets: int
    available_models: tuple[str, ...]
    scenarios: int
    comparable_scenarios: int
    solo_scenarios: tuple[str, ...]
    interaction_types: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "total_datasets": self.total_datasets,
            "available_models": list(self.available_models),
            "scenarios": self.scenarios,
            "comparable_scenarios": self.comparable_scenarios,
            "solo_scenarios": list(self.solo_scenarios),
            "interaction_types": list(self.interaction_types),
        }


# =============================================================================
# Judgment Outcomes
# =============================================================================


@dataclass(frozen=True, slots=True)
class EfficiencyMetrics:
    """Quality normalized by a resource cost.

    None means undefined (zero denominator or unknown cost), never zero.
    """

    quality_per_second: float | None
    quality_per_token: float | None
    quality_per_dollar: float | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "quality_per_second": self.quality_per_second,
            "quality_per_token": self.quality_per_token,
        }
        # Unknown cost is omitted, so it can't be mistaken for a free run
        if self.quality_per_dollar is not None:
            data["quality_per_dollar"] = self.quality_per_dollar
        return data


@dataclass(frozen=True, slots=True)
class ModelRanking:
    """One model's place in a scenario judgment."""

    rank: int
    model: str
    score: float
    rationale: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"rank": self.rank, "model": self.model, "score": self.score}
        if self.rationale:
            data["rationale"] = self.rationale
        return data


@dataclass(frozen=True, slots=True)
class ComparativeEvaluationScore:
    """Judgment outcome for one scenario."""

    key: str
    score: float
    comment: str
    confidence: float
    model_rankings: tuple[ModelRanking, ...]
    best_model: str
    model_count: int
    scenario_id: str = ""
    efficiency: Mapping[str, EfficiencyMetrics] = field(default_factory=dict)

    @classmethod
    def degraded(
        cls,
        key: str,
        comment: str,
        *,
        model_count: int = 0,
        scenario_id: str = "",
    ) -> ComparativeEvaluationScore:
        """Placeholder for an evaluation that was attempted and failed."""
        return cls(
            key=key,
            score=0.0,
            comment=comment,
            confidence=0.0,
            model_rankings=(),
            best_model="unknown",
            model_count=model_count,
            scenario_id=scenario_id,
        )

    @property
    def is_degraded(self) -> bool:
        return not self.model_rankings and self.best_model == "unknown"

    def with_efficiency(self, efficiency: Mapping[str, EfficiencyMetrics]) -> ComparativeEvaluationScore:
        return replace(self, efficiency=dict(efficiency))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "key": self.key,
            "scenario_id": self.scenario_id,
            "score": self.score,
            "comment": self.comment,
            "confidence": self.confidence,
            "modelRankings": [r.to_dict() for r in self.model_rankings],
            "bestModel": self.best_model,
            "modelCount": self.model_count,
        }
        if self.efficiency:
            data["efficiency"] = {m: e.to_dict() for m, e in self.efficiency.items()}
        return data


@dataclass(frozen=True, slots=True)
class EvaluationResult:
    """Full record for one model's run of one sample."""

    sample_id: str
    model: str
    quality_scores: Mapping[str, float]
    performance: PerformanceMetrics
    efficiency: EfficiencyMetrics
    confidence: Mapping[str, float] = field(default_factory=dict)
    """Per-evaluator agreement across repeated runs (empty for a single run)."""

    @property
    def overall_quality(self) -> float:
        if not self.quality_scores:
            return 0.0
        return sum(self.quality_scores.values()) / len(self.quality_scores)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sample_id": self.sample_id,
            "model": self.model,
            "quality_scores": dict(self.quality_scores),
            "overall_quality": self.overall_quality,
            "performance": self.performance.to_dict(),
            "efficiency": self.efficiency.to_dict(),
            "confidence": dict(self.confidence),
        }
