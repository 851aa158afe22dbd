"""Platform synthesis data types."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from tribunal.evaluation.metadata import ModelPricing


@dataclass(frozen=True, slots=True)
class ModelPerformance:
    """One model's standing across every evaluated tool."""

    model_id: str
    provider: str
    tool_scores: Mapping[str, float]
    average_score: float
    participation_rate: float
    reliability_score: float
    consistency: float
    pricing: ModelPricing | None = None
    context_window: int | None = None
    supports_function_calling: bool = False

    @property
    def tool_count(self) -> int:
        return len(self.tool_scores)

    @property
    def average_cost(self) -> float | None:
        """Mean of input and output price per million tokens, if priced."""
        if self.pricing is None:
            return None
        return self.pricing.average_cost_per_million_tokens

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "model_id": self.model_id,
            "provider": self.provider,
            "tool_scores": dict(self.tool_scores),
            "tool_count": self.tool_count,
            "average_score": round(self.average_score, 4),
            "participation_rate": round(self.participation_rate, 4),
            "reliability_score": round(self.reliability_score, 4),
            "consistency": round(self.consistency, 4),
            "supports_function_calling": self.supports_function_calling,
        }
        if self.pricing is not None:
            data["pricing"] = self.pricing.to_dict()
        if self.context_window is not None:
            data["context_window"] = self.context_window
        return data


@dataclass(frozen=True, slots=True)
class CrossToolAnalysis:
    """Corpus-wide summary of the per-tool results."""

    tools: tuple[str, ...]
    model_performances: tuple[ModelPerformance, ...]
    cross_tool_consistency: Mapping[str, float]
    tool_specific_leaders: Mapping[str, str]
    universal_performers: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "tools": list(self.tools),
            "model_performances": [m.to_dict() for m in self.model_performances],
            "cross_tool_consistency": {k: round(v, 4) for k, v in self.cross_tool_consistency.items()},
            "tool_specific_leaders": dict(self.tool_specific_leaders),
            "universal_performers": list(self.universal_performers),
        }


@dataclass(frozen=True, slots=True)
class DecisionMatrix:
    """Top models under each selection priority (at most five each)."""

    quality_leaders: tuple[ModelPerformance, ...]
    cost_effective: tuple[ModelPerformance, ...]
    reliability_focused: tuple[ModelPerformance, ...]
    balanced: tuple[ModelPerformance, ...]

    def to_dict(self) -> dict[str, Any]:
        def summary(models: tuple[ModelPerformance, ...]) -> list[dict[str, Any]]:
            return [
                {
                    "model_id": m.model_id,
                    "average_score": round(m.average_score, 4),
                    "reliability_score": round(m.reliability_score, 4),
                    "consistency": round(m.consistency, 4),
                    "average_cost_per_million_tokens": m.average_cost,
                }
                for m in models
            ]

        return {
            "quality_leaders": summary(self.quality_leaders),
            "cost_effective": summary(self.cost_effective),
            "reliability_focused": summary(self.reliability_focused),
            "balanced": summary(self.balanced),
        }


@dataclass(frozen=True, slots=True)
class UsageRecommendation:
    """Which model to pick for one selection priority."""

    priority: str  # "quality-first", "cost-first" or "balanced"
    primary_model: str
    fallback_model: str
    reasoning: str
    cost_implications: str
    use_cases: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "priority": self.priority,
            "primary_model": self.primary_model,
            "fallback_model": self.fallback_model,
            "reasoning": self.reasoning,
            "cost_implications": self.cost_implications,
            "use_cases": list(self.use_cases),
        }


@dataclass(frozen=True, slots=True)
class GraphResult:
    """Outcome of rendering one graph."""

    name: str
    success: bool
    path: Path | None = None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class PlatformSynthesisReport:
    """Everything one synthesis run produced."""

    analysis: CrossToolAnalysis
    decision_matrix: DecisionMatrix
    recommendations: tuple[UsageRecommendation, ...]
    graphs: Mapping[str, GraphResult] = field(default_factory=dict)
    markdown: str | None = None
    report_path: Path | None = None

    @property
    def failed_graphs(self) -> list[GraphResult]:
        return [g for g in self.graphs.values() if not g.success]
