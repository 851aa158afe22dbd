"""Platform-wide synthesis of per-tool evaluation results."""

from tribunal.synthesis.graphs import AVAILABLE_GRAPHS, GraphGenerator
from tribunal.synthesis.synthesizer import PlatformSynthesizer, consistency_score
from tribunal.synthesis.types import (
    CrossToolAnalysis,
    DecisionMatrix,
    GraphResult,
    ModelPerformance,
    PlatformSynthesisReport,
    UsageRecommendation,
)

__all__ = [
    "AVAILABLE_GRAPHS",
    "CrossToolAnalysis",
    "DecisionMatrix",
    "GraphGenerator",
    "GraphResult",
    "ModelPerformance",
    "PlatformSynthesisReport",
    "PlatformSynthesizer",
    "UsageRecommendation",
    "consistency_score",
]
