"""Comparative evaluation of recorded model interactions.

Recordings are grouped into scenarios, each scenario is ranked by a judge
model, and the per-tool results are written as markdown and JSON reports.
"""

from tribunal.evaluation.analyzer import DatasetAnalyzer, group_records
from tribunal.evaluation.comparative import (
    EVALUATORS,
    BaseComparativeEvaluator,
    CapabilityComparativeEvaluator,
    EvaluationPhase,
    PatternComparativeEvaluator,
    PolicyComparativeEvaluator,
    RecommendationComparativeEvaluator,
    RemediationComparativeEvaluator,
)
from tribunal.evaluation.judge import ParsedError, ParsedOK, parse_judge_response
from tribunal.evaluation.loader import filter_samples, load_eval_dataset, load_test_phase
from tribunal.evaluation.metadata import (
    EvaluationMetadata,
    load_evaluation_metadata,
    validate_metadata_freshness,
)
from tribunal.evaluation.metrics import (
    aggregate_runs,
    attach_efficiency,
    calculate_confidence,
    derive_efficiency,
)
from tribunal.evaluation.report import EvaluationReporter
from tribunal.evaluation.runner import EvaluationRun, detect_available_datasets, run_evaluation
from tribunal.evaluation.types import (
    ComparativeEvaluationScore,
    ComparisonScenario,
    DatasetFilter,
    DatasetStats,
    EfficiencyMetrics,
    EvalSample,
    EvaluationResult,
    InteractionRecord,
    ModelRanking,
    PerformanceMetrics,
    Reliability,
)

__all__ = [
    # Dataset access
    "DatasetAnalyzer",
    "DatasetFilter",
    "EvalSample",
    "filter_samples",
    "group_records",
    "load_eval_dataset",
    "load_test_phase",
    # Evaluators
    "EVALUATORS",
    "BaseComparativeEvaluator",
    "CapabilityComparativeEvaluator",
    "EvaluationPhase",
    "PatternComparativeEvaluator",
    "PolicyComparativeEvaluator",
    "RecommendationComparativeEvaluator",
    "RemediationComparativeEvaluator",
    # Judging
    "ParsedError",
    "ParsedOK",
    "parse_judge_response",
    # Metadata
    "EvaluationMetadata",
    "load_evaluation_metadata",
    "validate_metadata_freshness",
    # Metrics
    "aggregate_runs",
    "attach_efficiency",
    "calculate_confidence",
    "derive_efficiency",
    # Running
    "EvaluationReporter",
    "EvaluationRun",
    "detect_available_datasets",
    "run_evaluation",
    # Types
    "ComparativeEvaluationScore",
    "ComparisonScenario",
    "DatasetStats",
    "EfficiencyMetrics",
    "EvaluationResult",
    "InteractionRecord",
    "ModelRanking",
    "PerformanceMetrics",
    "Reliability",
]
