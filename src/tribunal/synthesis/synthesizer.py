"""Platform-wide synthesis across per-tool evaluation results.

Reads every ``*-results.json`` written by the evaluation runner, computes
per-model standing across tools, renders graphs, and asks the judge for the
narrative decision report.

Example:
    >>> synthesizer = PlatformSynthesizer(judge, config)
    >>> report = await synthesizer.generate_platform_wide_analysis()
    >>> report.report_path
    PosixPath('eval/analysis/platform/synthesis-report.md')
"""

import json
import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

import numpy as np

from tribunal.evaluation.metadata import (
    EvaluationMetadata,
    ModelMetadata,
    parse_model_metadata,
)
from tribunal.evaluation.prompts import load_template, render_template
from tribunal.foundation.config import TribunalConfig
from tribunal.foundation.errors import ErrorCode, SynthesisError
from tribunal.foundation.serialization import atomic_write_text
from tribunal.models.protocol import GenerateOptions, ModelProtocol
from tribunal.synthesis.graphs import GRAPH_TITLES, GraphGenerator
from tribunal.synthesis.types import (
    CrossToolAnalysis,
    DecisionMatrix,
    GraphResult,
    ModelPerformance,
    PlatformSynthesisReport,
    UsageRecommendation,
)

logger = logging.getLogger(__name__)

RESULTS_SUFFIX = "-results.json"
REPORT_FILENAME = "synthesis-report.md"
MATRIX_SIZE = 5
UNIVERSAL_MIN_TOOLS = 3
UNIVERSAL_TOP_SHARE = 0.75

_GRAPH_MARKER = re.compile(r"\[GRAPH:([A-Za-z0-9_-]+)\]")


def consistency_score(scores: Sequence[float]) -> float:
    """1 - coefficient of variation, floored at 0 (0 when the mean is 0)."""
    if not scores:
        return 0.0
    values = np.asarray(scores, dtype=np.float64)
    mean = float(values.mean())
    if mean == 0:
        return 0.0
    return max(0.0, 1.0 - float(values.std()) / mean)


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return float(value)


def tool_model_stats(report: Mapping[str, Any]) -> dict[str, dict[str, float]]:
    """Per-model average score, participation and reliability for one tool.

    Uses the final assessment's ``detailed_analysis`` when it has one;
    otherwise derives the figures from the scenario rankings.
    """
    assessment = report.get("overallAssessment")
    detailed = assessment.get("detailed_analysis") if isinstance(assessment, Mapping) else None
    if isinstance(detailed, Mapping) and detailed:
        stats = {}
        for model, analysis in detailed.items():
            if not isinstance(analysis, Mapping):
                continue
            score = _number(analysis.get("average_score"))
            if score is None:
                continue
            stats[model] = {
                "average_score": score,
                "participation_rate": _number(analysis.get("participation_rate")) or 0.0,
                "reliability_score": _number(analysis.get("reliability_score")) or 0.0,
            }
        return stats

    results = report.get("results") or []
    scores: dict[str, list[float]] = {}
    for result in results:
        for ranking in result.get("modelRankings") or []:
            score = _number(ranking.get("score"))
            if score is not None:
                scores.setdefault(ranking["model"], []).append(score)

    # Without an assessment a zero score is the only trace of a failed run
    return {
        model: {
            "average_score": float(np.mean(values)),
            "participation_rate": len(values) / len(results),
            "reliability_score": sum(1 for v in values if v > 0) / len(values),
        }
        for model, values in scores.items()
    }


def rank_in_tool(performances: Sequence[ModelPerformance], tool: str) -> list[str]:
    """Model ids of the tool's participants, best score first."""
    participants = [m for m in performances if tool in m.tool_scores]
    participants.sort(key=lambda m: m.tool_scores[tool], reverse=True)
    return [m.model_id for m in participants]


class PlatformSynthesizer:
    """Combine per-tool results into a platform-wide decision report."""

    def __init__(
        self,
        judge: ModelProtocol,
        config: TribunalConfig,
        graph_generator: GraphGenerator | None = None,
        metadata: EvaluationMetadata | None = None,
    ):
        self.judge = judge
        self.config = config
        self.reports_dir = Path(config.paths.reports_dir)
        self.platform_dir = Path(config.paths.platform_dir)
        self.metadata = metadata or EvaluationMetadata()
        self.graph_generator = graph_generator or GraphGenerator(
            self.platform_dir / "graphs", config.datasets.sdk_markers
        )

    def load_all_reports(self) -> dict[str, dict[str, Any]]:
        """Per-tool results keyed by evaluation type, in filename order.

        Raises:
            SynthesisError: If there are no results or one cannot be read
        """
        files = sorted(self.reports_dir.glob(f"*{RESULTS_SUFFIX}")) if self.reports_dir.is_dir() else []
        if not files:
            raise SynthesisError(
                code=ErrorCode.SYNTHESIS_NO_RESULTS,
                context={"path": str(self.reports_dir)},
            )

        reports = {}
        for path in files:
            try:
                report = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                raise SynthesisError(
                    code=ErrorCode.SYNTHESIS_RESULTS_INVALID,
                    context={"path": str(path), "detail": str(e)},
                    cause=e,
                ) from e
            if not isinstance(report, dict) or not isinstance(report.get("results", []), list):
                raise SynthesisError(
                    code=ErrorCode.SYNTHESIS_RESULTS_INVALID,
                    context={"path": str(path), "detail": "expected an object with a 'results' list"},
                )
            tool = path.name.removesuffix(RESULTS_SUFFIX)
            reports[tool] = report
            logger.info("Loaded %s results from %s", tool, path.name)

        return reports

    def _model_catalogue(self, reports: Mapping[str, Mapping[str, Any]]) -> EvaluationMetadata:
        """Model metadata recorded in the results, over the configured metadata."""
        models: dict[str, ModelMetadata] = dict(self.metadata.models)
        for report in reports.values():
            recorded = report.get("modelMetadata")
            if not isinstance(recorded, Mapping):
                continue
            for model_id, data in recorded.items():
                if isinstance(data, Mapping):
                    models[model_id] = parse_model_metadata(data)
        return EvaluationMetadata(models=models, tools=self.metadata.tools)

    def calculate_model_performances(
        self,
        reports: Mapping[str, Mapping[str, Any]],
    ) -> list[ModelPerformance]:
        """Every model's cross-tool figures, best average score first."""
        catalogue = self._model_catalogue(reports)
        per_model: dict[str, dict[str, dict[str, float]]] = {}
        for tool, report in reports.items():
            try:
                stats = tool_model_stats(report)
            except (AttributeError, KeyError, TypeError) as e:
                raise SynthesisError(
                    code=ErrorCode.SYNTHESIS_RESULTS_INVALID,
                    context={"path": f"{tool}{RESULTS_SUFFIX}", "detail": str(e)},
                    cause=e,
                ) from e
            for model, figures in stats.items():
                per_model.setdefault(model, {})[tool] = figures

        performances = []
        for model_id, by_tool in per_model.items():
            tool_scores = {tool: f["average_score"] for tool, f in by_tool.items()}
            meta = catalogue.find_model(model_id, self.config.datasets.sdk_markers)
            performances.append(ModelPerformance(
                model_id=model_id,
                provider=meta.provider if meta else "unknown",
                tool_scores=tool_scores,
                average_score=float(np.mean(list(tool_scores.values()))),
                participation_rate=float(np.mean([f["participation_rate"] for f in by_tool.values()])),
                reliability_score=float(np.mean([f["reliability_score"] for f in by_tool.values()])),
                consistency=consistency_score(list(tool_scores.values())),
                pricing=meta.pricing if meta else None,
                context_window=meta.context_window if meta else None,
                supports_function_calling=meta.supports_function_calling if meta else False,
            ))

        performances.sort(key=lambda m: m.average_score, reverse=True)
        return performances

    def analyze_cross_tool_performance(
        self,
        reports: Mapping[str, Mapping[str, Any]],
    ) -> CrossToolAnalysis:
        performances = self.calculate_model_performances(reports)
        tools = tuple(reports)

        leaders = {}
        rankings = {}
        for tool in tools:
            rankings[tool] = rank_in_tool(performances, tool)
            if rankings[tool]:
                leaders[tool] = rankings[tool][0]

        universal = []
        for model in performances:
            participating = list(model.tool_scores)
            if len(participating) < UNIVERSAL_MIN_TOOLS:
                continue
            top_three = sum(1 for tool in participating if model.model_id in rankings[tool][:3])
            if top_three >= len(participating) * UNIVERSAL_TOP_SHARE:
                universal.append(model.model_id)

        return CrossToolAnalysis(
            tools=tools,
            model_performances=tuple(performances),
            cross_tool_consistency={m.model_id: m.consistency for m in performances if m.tool_count > 1},
            tool_specific_leaders=leaders,
            universal_performers=tuple(universal),
        )

    def generate_decision_matrices(self, performances: Sequence[ModelPerformance]) -> DecisionMatrix:
        priced = [m for m in performances if m.average_cost]

        quality = sorted(performances, key=lambda m: m.average_score, reverse=True)
        cost_effective = sorted(priced, key=lambda m: m.average_score / m.average_cost, reverse=True)
        reliability = sorted(
            performances, key=lambda m: (m.reliability_score, m.consistency), reverse=True
        )

        def balanced_score(m: ModelPerformance) -> float:
            price = m.pricing.input_cost_per_million_tokens + m.pricing.output_cost_per_million_tokens
            return 0.4 * m.average_score + 0.3 * m.consistency + 0.3 * m.reliability_score - price / 100

        balanced = sorted(priced, key=balanced_score, reverse=True)

        return DecisionMatrix(
            quality_leaders=tuple(quality[:MATRIX_SIZE]),
            cost_effective=tuple(cost_effective[:MATRIX_SIZE]),
            reliability_focused=tuple(reliability[:MATRIX_SIZE]),
            balanced=tuple(balanced[:MATRIX_SIZE]),
        )

    def generate_usage_recommendations(self, matrix: DecisionMatrix) -> list[UsageRecommendation]:
        def pick(models: Sequence[ModelPerformance], index: int) -> str:
            return models[index].model_id if len(models) > index else ""

        def cost_note(models: Sequence[ModelPerformance]) -> str:
            if not models or models[0].average_cost is None:
                return "Pricing unavailable"
            return f"Estimated cost: ${models[0].average_cost:.2f}/1M tokens"

        plans = [
            (
                "quality-first",
                matrix.quality_leaders,
                "Highest average quality across the evaluated tools",
                ("Production deployments", "Critical troubleshooting", "Complex recommendations"),
            ),
            (
                "cost-first",
                matrix.cost_effective,
                "Best quality per dollar of token pricing",
                ("Budget-conscious deployments", "High-volume operations"),
            ),
            (
                "balanced",
                matrix.balanced,
                "Best weighting of quality, consistency, reliability and cost",
                ("General purpose usage", "Default recommendation"),
            ),
        ]
        return [
            UsageRecommendation(
                priority=priority,
                primary_model=pick(models, 0),
                fallback_model=pick(models, 1),
                reasoning=reasoning,
                cost_implications=cost_note(models),
                use_cases=use_cases,
            )
            for priority, models, reasoning, use_cases in plans
        ]

    def _tool_metadata(self) -> dict[str, Any]:
        return {
            tool_id: {
                "name": tool.name,
                "description": tool.description,
                "primary_function": tool.primary_function,
                "success_criteria": list(tool.success_criteria),
            }
            for tool_id, tool in self.metadata.tools.items()
        }

    async def generate_platform_insights(
        self,
        analysis: CrossToolAnalysis,
        matrix: DecisionMatrix,
        recommendations: Sequence[UsageRecommendation],
    ) -> str:
        """Ask the judge for the narrative report.

        Raises:
            SynthesisError: If the judge call fails or returns nothing
        """
        prompt = render_template(load_template("platform-synthesis"), {
            "cross_tool_analysis": json.dumps(analysis.to_dict(), indent=2),
            "decision_matrices": json.dumps(matrix.to_dict(), indent=2),
            "usage_recommendations": json.dumps([r.to_dict() for r in recommendations], indent=2),
            "tool_metadata": json.dumps(self._tool_metadata(), indent=2),
        })

        options = GenerateOptions(
            temperature=self.config.judge.temperature,
            max_tokens=self.config.judge.max_tokens,
        )
        try:
            result = await self.judge.generate(prompt, options=options)
        except Exception as e:
            raise SynthesisError(
                code=ErrorCode.SYNTHESIS_NARRATIVE_FAILED,
                context={"detail": str(e)},
                cause=e,
            ) from e

        if not result.text.strip():
            raise SynthesisError(
                code=ErrorCode.SYNTHESIS_NARRATIVE_FAILED,
                context={"detail": "judge returned an empty report"},
            )
        return result.text

    def insert_graphs(self, markdown: str, graphs: Mapping[str, GraphResult]) -> str:
        """Replace ``[GRAPH:name]`` markers with image links or a note."""
        def replace(match: re.Match[str]) -> str:
            name = match.group(1)
            result = graphs.get(name)
            if result is None:
                return f"*Graph unavailable: {name} was not generated*"
            if not result.success:
                return f"*Graph unavailable: {result.error}*"
            title = GRAPH_TITLES.get(name, name)
            return f"![{title}](./graphs/{name}.png)"

        return _GRAPH_MARKER.sub(replace, markdown)

    def save_synthesis_report(self, markdown: str, path: str | Path | None = None) -> Path:
        """Write the report (default ``{platform_dir}/synthesis-report.md``).

        Raises:
            SynthesisError: If the file cannot be written
        """
        target = Path(path) if path is not None else self.platform_dir / REPORT_FILENAME
        try:
            atomic_write_text(target, markdown)
        except OSError as e:
            raise SynthesisError(
                code=ErrorCode.FILE_WRITE_FAILED,
                context={"path": str(target)},
                cause=e,
            ) from e
        logger.info("Platform synthesis report saved: %s", target)
        return target

    async def generate_platform_wide_analysis(
        self,
        graph_names: Iterable[str] | None = None,
        skip_narrative: bool = False,
    ) -> PlatformSynthesisReport:
        """Run the whole synthesis.

        Graphs are rendered before the narrative, so they stay on disk
        even when the narrative fails.

        Raises:
            SynthesisError: If results are missing or invalid, or the
                narrative cannot be generated or saved
        """
        reports = self.load_all_reports()
        analysis = self.analyze_cross_tool_performance(reports)
        logger.info(
            "Analyzed %d models across %d tools", len(analysis.model_performances), len(analysis.tools)
        )

        matrix = self.generate_decision_matrices(analysis.model_performances)
        recommendations = self.generate_usage_recommendations(matrix)
        graphs = self.graph_generator.generate_graphs(analysis.model_performances, graph_names)

        if skip_narrative:
            logger.info("Skipping narrative report")
            return PlatformSynthesisReport(
                analysis=analysis,
                decision_matrix=matrix,
                recommendations=tuple(recommendations),
                graphs=graphs,
            )

        narrative = await self.generate_platform_insights(analysis, matrix, recommendations)
        markdown = self.insert_graphs(narrative, graphs)
        path = self.save_synthesis_report(markdown)
        return PlatformSynthesisReport(
            analysis=analysis,
            decision_matrix=matrix,
            recommendations=tuple(recommendations),
            graphs=graphs,
            markdown=markdown,
            report_path=path,
        )
