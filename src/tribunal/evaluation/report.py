"""Per-tool evaluation reports.

Each evaluator run produces two files in the reports directory:
- ``{type}-evaluation.md``: human-readable summary and per-scenario detail
- ``{type}-results.json``: machine-readable results, the input of the
  platform synthesis
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import numpy as np

from tribunal.evaluation.metadata import EvaluationMetadata
from tribunal.evaluation.types import ComparativeEvaluationScore, DatasetStats
from tribunal.foundation.errors import ErrorCode, TribunalError
from tribunal.foundation.serialization import atomic_write_json, atomic_write_text

logger = logging.getLogger(__name__)

REPORT_TYPE = "comparative-evaluation"


def model_average_scores(results: Sequence[ComparativeEvaluationScore]) -> dict[str, float]:
    """Average ranking score per model, best first."""
    scores: dict[str, list[float]] = {}
    for result in results:
        for ranking in result.model_rankings:
            scores.setdefault(ranking.model, []).append(ranking.score)

    averages = {model: round(float(np.mean(values)), 3) for model, values in scores.items()}
    return dict(sorted(averages.items(), key=lambda item: item[1], reverse=True))


def scenario_title(result: ComparativeEvaluationScore) -> str:
    title = result.scenario_id or result.key
    return title.replace("_", " ").upper()


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _reliability_rankings(assessment: Mapping[str, Any]) -> list[tuple[str, float, str]]:
    detailed = _as_mapping(assessment.get("detailed_analysis"))
    rows = []
    for model, analysis in detailed.items():
        analysis = _as_mapping(analysis)
        score = analysis.get("reliability_score")
        if isinstance(score, int | float) and not isinstance(score, bool):
            rows.append((model, float(score), str(analysis.get("weaknesses") or "")))
    return sorted(rows, key=lambda row: row[1], reverse=True)


@dataclass
class EvaluationReporter:
    """Render and persist the reports of one evaluator run.

    Usage:
        reporter = EvaluationReporter("policy", "Policy", reports_dir)
        paths = reporter.save_reports(results, stats, metadata, assessment)
    """

    evaluation_type: str
    title: str
    reports_dir: Path

    @property
    def markdown_path(self) -> Path:
        return self.reports_dir / f"{self.evaluation_type}-evaluation.md"

    @property
    def json_path(self) -> Path:
        return self.reports_dir / f"{self.evaluation_type}-results.json"

    def generate_markdown_report(
        self,
        results: Sequence[ComparativeEvaluationScore],
        stats: DatasetStats,
        final_assessment: Mapping[str, Any] | None = None,
        failed: Sequence[ComparativeEvaluationScore] = (),
    ) -> str:
        assessment = _as_mapping(final_assessment)
        overall = _as_mapping(assessment.get("overall_assessment"))
        recommendations = _as_mapping(assessment.get("production_recommendations"))

        lines = []
        lines.append(f"# {self.title} Comparative Evaluation")
        lines.append("")
        lines.append(f"**Generated**: {datetime.now(UTC).isoformat()}  ")
        lines.append(f"**Scenarios Analyzed**: {len(results)}  ")
        lines.append(f"**Models Evaluated**: {len(stats.available_models)}  ")
        lines.append(f"**Total Datasets**: {stats.total_datasets}")
        lines.append("")

        lines.append("## Executive Summary")
        lines.append("")
        if assessment.get("assessment_summary"):
            lines.append(str(assessment["assessment_summary"]))
            lines.append("")

        lines.append("### 🏆 Overall Winner")
        lines.append("")
        if overall.get("winner"):
            lines.append(f"**{overall['winner']}**")
            lines.append("")
            lines.append(str(overall.get("rationale", "")))
        else:
            lines.append("Overall assessment not available")
        lines.append("")

        lines.append("### 📊 Reliability Rankings")
        lines.append("")
        reliability = _reliability_rankings(assessment)
        if reliability:
            for i, (model, score, notes) in enumerate(reliability, start=1):
                suffix = f" - {notes}" if notes else ""
                lines.append(f"{i}. **{model}** ({score:.0%}){suffix}")
        else:
            lines.append("Reliability rankings not available")
        lines.append("")

        lines.append("### 📋 Production Recommendations")
        lines.append("")
        if recommendations:
            avoid = recommendations.get("avoid") or []
            secondary = recommendations.get("alternative") or recommendations.get("secondary")
            lines.append(f"- **Primary Choice**: {recommendations.get('primary', 'N/A')}")
            lines.append(f"- **Secondary Option**: {secondary or 'N/A'}")
            lines.append(f"- **Avoid for Production**: {', '.join(avoid) if avoid else 'None'}")
            specialized = _as_mapping(recommendations.get("specialized_use"))
            if specialized:
                lines.append("")
                lines.append("**Specialized Use Cases:**")
                for use_case, model in specialized.items():
                    lines.append(f"- **{use_case}**: {model}")
        else:
            lines.append("Production recommendations not available")
        lines.append("")

        lines.append("### 📊 Average Scores")
        lines.append("")
        lines.append("| Model | Avg Score | Scenarios Won |")
        lines.append("|-------|-----------|---------------|")
        wins = {}
        for result in results:
            wins[result.best_model] = wins.get(result.best_model, 0) + 1
        for model, average in model_average_scores(results).items():
            lines.append(f"| {model} | {average} | {wins.get(model, 0)} |")
        lines.append("")

        lines.append("## Detailed Scenario Results")
        lines.append("")
        for i, result in enumerate(results, start=1):
            lines.append(f"### {i}. {scenario_title(result)}")
            lines.append("")
            lines.append(f"**Winner**: {result.best_model} (Score: {result.score})  ")
            lines.append(f"**Models Compared**: {result.model_count}  ")
            lines.append(f"**Confidence**: {result.confidence:.0%}")
            lines.append("")
            lines.append("#### Rankings")
            if result.model_rankings:
                for ranking in result.model_rankings:
                    lines.append(f"{ranking.rank}. **{ranking.model}** - {ranking.score}")
            else:
                lines.append("No detailed rankings available")
            lines.append("")
            lines.append("#### Analysis")
            lines.append(result.comment)
            lines.append("")
            lines.append("---")
            lines.append("")

        if failed:
            lines.append("## Failed Scenarios")
            lines.append("")
            lines.append("These scenarios could not be judged and are not part of the results above.")
            lines.append("")
            for result in failed:
                lines.append(f"- **{result.scenario_id or result.key}**: {result.comment}")
            lines.append("")

        if stats.solo_scenarios:
            lines.append("## Coverage Gaps")
            lines.append("")
            lines.append("Recorded for a single model only, so not compared:")
            lines.append("")
            for scenario_id in stats.solo_scenarios:
                lines.append(f"- {scenario_id}")
            lines.append("")

        return "\n".join(lines)

    def generate_json_report(
        self,
        results: Sequence[ComparativeEvaluationScore],
        stats: DatasetStats,
        metadata: EvaluationMetadata,
        final_assessment: Mapping[str, Any] | None = None,
        failed: Sequence[ComparativeEvaluationScore] = (),
    ) -> dict[str, Any]:
        return {
            "metadata": {
                "reportType": REPORT_TYPE,
                "evaluationType": self.evaluation_type,
                "tool": stats.tool,
                "title": self.title,
                "generated": datetime.now(UTC).isoformat(),
                "scenariosAnalyzed": len(results),
                "modelsEvaluated": len(stats.available_models),
                "totalDatasets": stats.total_datasets,
            },
            "modelMetadata": {k: v.to_dict() for k, v in metadata.models.items()},
            "overallAssessment": dict(final_assessment) if final_assessment else None,
            "results": [r.to_dict() for r in results],
            "failedScenarios": [r.to_dict() for r in failed],
            "summary": stats.to_dict(),
        }

    def save_reports(
        self,
        results: Sequence[ComparativeEvaluationScore],
        stats: DatasetStats,
        metadata: EvaluationMetadata,
        final_assessment: Mapping[str, Any] | None = None,
        failed: Sequence[ComparativeEvaluationScore] = (),
    ) -> tuple[Path, Path]:
        """Write both reports, returning (markdown_path, json_path).

        Raises:
            TribunalError: FILE_WRITE_FAILED if either file cannot be written
        """
        markdown = self.generate_markdown_report(results, stats, final_assessment, failed)
        payload = self.generate_json_report(results, stats, metadata, final_assessment, failed)
        try:
            atomic_write_text(self.markdown_path, markdown)
            atomic_write_json(self.json_path, payload)
        except OSError as e:
            raise TribunalError(
                code=ErrorCode.FILE_WRITE_FAILED,
                context={"path": str(self.reports_dir), "detail": str(e)},
                cause=e,
            ) from e

        logger.info("Wrote %s and %s", self.markdown_path, self.json_path)
        return self.markdown_path, self.json_path
