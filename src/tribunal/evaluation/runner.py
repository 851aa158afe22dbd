"""Run comparative evaluations end to end.

Detect which evaluators have recordings, run each one, and write its reports.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from tribunal.evaluation.comparative import EVALUATORS, EvaluationPhase
from tribunal.evaluation.metadata import EvaluationMetadata
from tribunal.evaluation.report import EvaluationReporter
from tribunal.evaluation.types import ComparativeEvaluationScore, DatasetStats
from tribunal.foundation.config import TribunalConfig
from tribunal.foundation.errors import ErrorCode, PipelineInitializationError, TribunalError
from tribunal.models.protocol import ModelProtocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EvaluationRun:
    """Outcome of one evaluator run."""

    evaluation_type: str
    stats: DatasetStats
    results: tuple[ComparativeEvaluationScore, ...]
    failed: tuple[ComparativeEvaluationScore, ...] = ()
    phases: tuple[EvaluationPhase, ...] = ()
    final_assessment: Mapping[str, Any] | None = None
    report_paths: tuple[Path, ...] = field(default=())


def detect_available_datasets(
    config: TribunalConfig,
    types: Iterable[str] | None = None,
) -> dict[str, bool]:
    """Map each evaluator type to whether recordings exist for its tool.

    Types outside `types` (when given) are reported as unavailable. An
    unreadable datasets directory makes every type unavailable.
    """
    wanted = set(types) if types is not None else set(EVALUATORS)
    unknown = wanted - set(EVALUATORS)
    if unknown:
        raise TribunalError(
            code=ErrorCode.CONFIG_INVALID,
            context={
                "key": "evaluation type",
                "detail": f"unknown {', '.join(sorted(unknown))}; choose from {', '.join(EVALUATORS)}",
            },
        )

    datasets_dir = Path(config.paths.datasets_dir)
    try:
        names = [p.name for p in datasets_dir.iterdir() if p.suffix == ".jsonl"]
    except OSError:
        logger.warning("Could not read datasets directory %s; assuming no datasets", datasets_dir)
        names = []

    return {
        eval_type: eval_type in wanted and any(
            name.startswith(f"{evaluator.tool_name}_") for name in names
        )
        for eval_type, evaluator in EVALUATORS.items()
    }


async def run_evaluation(
    eval_type: str,
    judge: ModelProtocol,
    config: TribunalConfig,
    metadata: EvaluationMetadata | None = None,
) -> EvaluationRun:
    """Judge every scenario of one evaluator, assess, and save reports.

    Raises:
        TribunalError: If the type is unknown or the reports cannot be written
    """
    if eval_type not in EVALUATORS:
        raise TribunalError(
            code=ErrorCode.CONFIG_INVALID,
            context={"key": "evaluation type", "detail": f"unknown '{eval_type}'"},
        )

    metadata = metadata or EvaluationMetadata()
    evaluator = EVALUATORS[eval_type](judge, config, metadata)
    logger.info("Starting %s evaluation", eval_type)

    try:
        stats = evaluator.get_dataset_stats()
    except TribunalError as e:
        # Discovery reports the same failure as a degraded result below
        logger.error("Dataset statistics unavailable for %s: %s", eval_type, e)
        stats = DatasetStats(
            tool=evaluator.tool_name,
            total_datasets=0,
            available_models=(),
            scenarios=0,
            comparable_scenarios=0,
            solo_scenarios=(),
            interaction_types=(),
        )
    logger.info(
        "%d datasets, %d models, %d comparable scenarios",
        stats.total_datasets, len(stats.available_models), stats.comparable_scenarios,
    )

    try:
        phases = tuple(evaluator.get_evaluation_phases())
    except PipelineInitializationError:
        phases = ()
    for phase in phases:
        logger.info("Phase %s: %s (%s)", phase.phase, phase.description, ", ".join(phase.available_models))

    results = await evaluator.evaluate_all_scenarios()
    final_assessment = await evaluator.conduct_final_assessment(results)

    reporter = EvaluationReporter(eval_type, evaluator.title, Path(config.paths.reports_dir))
    paths = reporter.save_reports(
        results,
        stats,
        metadata,
        final_assessment,
        failed=evaluator.failed_scenarios,
    )

    logger.info(
        "%s evaluation complete: %d scenarios judged, %d failed",
        eval_type, len(results), len(evaluator.failed_scenarios),
    )
    return EvaluationRun(
        evaluation_type=eval_type,
        stats=stats,
        results=tuple(results),
        failed=tuple(evaluator.failed_scenarios),
        phases=phases,
        final_assessment=final_assessment,
        report_paths=paths,
    )
