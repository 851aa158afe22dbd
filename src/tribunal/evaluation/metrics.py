"""Efficiency metrics derived from quality and performance.

All divisions are guarded: a zero or unknown denominator makes the metric
undefined (None), never zero or infinite.
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import replace

import numpy as np

from tribunal.evaluation.metadata import EvaluationMetadata
from tribunal.evaluation.types import (
    ComparativeEvaluationScore,
    ComparisonScenario,
    EfficiencyMetrics,
    EvaluationResult,
    PerformanceMetrics,
)

logger = logging.getLogger(__name__)


def derive_efficiency(quality: float, performance: PerformanceMetrics) -> EfficiencyMetrics:
    """Normalize a quality score by time, tokens, and cost."""
    per_second = None
    if performance.duration_ms:
        per_second = quality / (performance.duration_ms / 1000)

    per_token = None
    if performance.total_tokens:
        per_token = quality / performance.total_tokens

    per_dollar = None
    if performance.cost_usd:
        per_dollar = quality / performance.cost_usd

    return EfficiencyMetrics(
        quality_per_second=per_second,
        quality_per_token=per_token,
        quality_per_dollar=per_dollar,
    )


def overall_quality(quality_scores: Mapping[str, float]) -> float:
    """Mean of the per-evaluator scores (0.0 when there are none)."""
    if not quality_scores:
        return 0.0
    return float(np.mean(list(quality_scores.values())))


def estimate_cost(
    model: str,
    performance: PerformanceMetrics,
    metadata: EvaluationMetadata | None,
) -> float | None:
    """Recorded cost, or an estimate from per-million-token pricing."""
    if performance.cost_usd is not None:
        return performance.cost_usd
    if metadata is None:
        return None
    model_meta = metadata.find_model(model)
    if model_meta is None or model_meta.pricing is None:
        return None
    pricing = model_meta.pricing
    cost = (
        performance.input_tokens * pricing.input_cost_per_million_tokens
        + performance.output_tokens * pricing.output_cost_per_million_tokens
    ) / 1_000_000
    return cost or None


def build_evaluation_result(
    sample_id: str,
    model: str,
    quality_scores: Mapping[str, float],
    performance: PerformanceMetrics,
) -> EvaluationResult:
    return EvaluationResult(
        sample_id=sample_id,
        model=model,
        quality_scores=dict(quality_scores),
        performance=performance,
        efficiency=derive_efficiency(overall_quality(quality_scores), performance),
    )


def attach_efficiency(
    score: ComparativeEvaluationScore,
    scenario: ComparisonScenario,
    metadata: EvaluationMetadata | None = None,
) -> ComparativeEvaluationScore:
    """Add per-model efficiency, using each model's ranking score as quality."""
    records = {r.model: r for r in scenario.records}
    efficiency = {}
    for ranking in score.model_rankings:
        record = records.get(ranking.model)
        if record is None:
            continue
        performance = record.performance
        cost = estimate_cost(ranking.model, performance, metadata)
        if cost != performance.cost_usd:
            performance = replace(performance, cost_usd=cost)
        efficiency[ranking.model] = derive_efficiency(ranking.score, performance)
    return score.with_efficiency(efficiency)


def calculate_confidence(scores: Sequence[float]) -> float:
    """Agreement of repeated scores: 1 - std/mean, clamped to [0, 1]."""
    if not scores:
        return 0.0
    values = np.asarray(scores, dtype=np.float64)
    mean = float(values.mean())
    if mean == 0:
        return 0.0
    return float(np.clip(1 - values.std() / mean, 0.0, 1.0))


def aggregate_runs(runs: Sequence[EvaluationResult]) -> EvaluationResult:
    """Average repeated runs of one model on one sample.

    Raises:
        ValueError: If `runs` is empty
    """
    if not runs:
        raise ValueError("aggregate_runs needs at least one run")
    if len(runs) == 1:
        return runs[0]

    keys = list(runs[0].quality_scores)
    quality_scores = {}
    confidence = {}
    for key in keys:
        scores = [r.quality_scores.get(key, 0.0) for r in runs]
        quality_scores[key] = float(np.mean(scores))
        confidence[key] = calculate_confidence(scores)

    def mean_int(attr: str) -> int:
        return round(float(np.mean([getattr(r.performance, attr) for r in runs])))

    costs = [r.performance.cost_usd for r in runs]
    performance = PerformanceMetrics(
        duration_ms=mean_int("duration_ms"),
        input_tokens=mean_int("input_tokens"),
        output_tokens=mean_int("output_tokens"),
        total_tokens=mean_int("total_tokens"),
        # Averaging known and unknown costs would understate the cost
        cost_usd=float(np.mean(costs)) if all(c is not None for c in costs) else None,
        iterations=round(float(np.mean([r.performance.iterations or 1 for r in runs]))),
        tool_calls_executed=round(float(np.mean([r.performance.tool_calls_executed or 0 for r in runs]))),
    )

    logger.debug("Aggregated %d runs of %s", len(runs), runs[0].model)
    return EvaluationResult(
        sample_id=f"{runs[0].model}_aggregated_{len(runs)}runs",
        model=runs[0].model,
        quality_scores=quality_scores,
        performance=performance,
        efficiency=derive_efficiency(overall_quality(quality_scores), performance),
        confidence=confidence,
    )
