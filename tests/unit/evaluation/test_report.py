"""Tests for per-tool Markdown and JSON reports."""

import json
from pathlib import Path

import pytest

from tribunal.evaluation.metadata import EvaluationMetadata, ModelMetadata, ModelPricing
from tribunal.evaluation.report import (
    REPORT_TYPE,
    EvaluationReporter,
    model_average_scores,
    scenario_title,
)
from tribunal.evaluation.types import (
    ComparativeEvaluationScore,
    DatasetStats,
    ModelRanking,
)
from tribunal.foundation.errors import ErrorCode, TribunalError

STATS = DatasetStats(
    tool="policy",
    total_datasets=5,
    available_models=("vercel_claude", "vercel_gpt"),
    scenarios=3,
    comparable_scenarios=2,
    solo_scenarios=("policy_solo",),
    interaction_types=("create_workflow", "solo", "validation"),
)

ASSESSMENT = {
    "assessment_summary": "Claude is the most dependable policy author.",
    "overall_assessment": {"winner": "vercel_claude", "rationale": "Won both scenarios"},
    "production_recommendations": {
        "primary": "vercel_claude",
        "secondary": "vercel_gpt",
        "avoid": ["vercel_mini"],
        "specialized_use": {"fast drafts": "vercel_gpt"},
    },
    "detailed_analysis": {
        "vercel_gpt": {"reliability_score": 0.8, "weaknesses": "timed out once"},
        "vercel_claude": {"reliability_score": 1.0},
    },
}


def score(scenario_id: str, rankings: list[tuple[str, float]]) -> ComparativeEvaluationScore:
    return ComparativeEvaluationScore(
        key=f"policy-comparative_{scenario_id}",
        score=rankings[0][1],
        comment=f"{rankings[0][0]} was clearer",
        confidence=0.85,
        model_rankings=tuple(ModelRanking(i, m, s) for i, (m, s) in enumerate(rankings, start=1)),
        best_model=rankings[0][0],
        model_count=len(rankings),
        scenario_id=scenario_id,
    )


RESULTS = [
    score("policy_create_workflow", [("vercel_claude", 0.9), ("vercel_gpt", 0.7)]),
    score("policy_validation", [("vercel_claude", 0.8), ("vercel_gpt", 0.6)]),
]


@pytest.fixture
def reporter(tmp_path: Path) -> EvaluationReporter:
    return EvaluationReporter("policy", "Policy", tmp_path / "reports")


class TestHelpers:
    def test_average_scores_best_first(self):
        averages = model_average_scores(RESULTS)
        assert list(averages) == ["vercel_claude", "vercel_gpt"]
        assert averages["vercel_claude"] == 0.85

    def test_scenario_title(self):
        assert scenario_title(RESULTS[0]) == "POLICY CREATE WORKFLOW"


class TestMarkdown:
    def test_full_report(self, reporter: EvaluationReporter):
        failed = [ComparativeEvaluationScore.degraded(
            "policy-comparative_policy_x", "Evaluation error: timeout", scenario_id="policy_x"
        )]
        markdown = reporter.generate_markdown_report(RESULTS, STATS, ASSESSMENT, failed)

        assert markdown.startswith("# Policy Comparative Evaluation")
        assert "Claude is the most dependable policy author." in markdown
        assert "**vercel_claude**\n\nWon both scenarios" in markdown
        assert "1. **vercel_claude** (100%)" in markdown
        assert "2. **vercel_gpt** (80%) - timed out once" in markdown
        assert "- **Secondary Option**: vercel_gpt" in markdown
        assert "- **Avoid for Production**: vercel_mini" in markdown
        assert "- **fast drafts**: vercel_gpt" in markdown
        assert "| vercel_claude | 0.85 | 2 |" in markdown
        assert "| vercel_gpt | 0.65 | 0 |" in markdown
        assert "### 1. POLICY CREATE WORKFLOW" in markdown
        assert "**Winner**: vercel_claude (Score: 0.9)" in markdown
        assert "## Failed Scenarios" in markdown
        assert "- **policy_x**: Evaluation error: timeout" in markdown
        assert "## Coverage Gaps" in markdown
        assert "- policy_solo" in markdown

    def test_without_assessment(self, reporter: EvaluationReporter):
        markdown = reporter.generate_markdown_report(RESULTS, STATS)
        assert "Overall assessment not available" in markdown
        assert "Production recommendations not available" in markdown
        assert "## Failed Scenarios" not in markdown


class TestJson:
    def test_structure(self, reporter: EvaluationReporter):
        metadata = EvaluationMetadata(
            models={"claude": ModelMetadata(provider="anthropic", pricing=ModelPricing(3.0, 15.0))}
        )
        report = reporter.generate_json_report(RESULTS, STATS, metadata, ASSESSMENT)

        assert report["metadata"]["reportType"] == REPORT_TYPE
        assert report["metadata"]["evaluationType"] == "policy"
        assert report["metadata"]["tool"] == "policy"
        assert report["metadata"]["scenariosAnalyzed"] == 2
        assert report["metadata"]["modelsEvaluated"] == 2
        assert report["modelMetadata"]["claude"]["pricing"]["input_cost_per_million_tokens"] == 3.0
        assert report["overallAssessment"]["overall_assessment"]["winner"] == "vercel_claude"
        assert report["results"][0]["modelRankings"][0] == {"rank": 1, "model": "vercel_claude", "score": 0.9}
        assert report["failedScenarios"] == []
        assert report["summary"]["solo_scenarios"] == ["policy_solo"]

    def test_no_assessment_is_null(self, reporter: EvaluationReporter):
        report = reporter.generate_json_report(RESULTS, STATS, EvaluationMetadata())
        assert report["overallAssessment"] is None


class TestSave:
    def test_writes_both_files(self, reporter: EvaluationReporter):
        md_path, json_path = reporter.save_reports(RESULTS, STATS, EvaluationMetadata(), ASSESSMENT)

        assert md_path.name == "policy-evaluation.md"
        assert json_path.name == "policy-results.json"
        assert md_path.read_text().startswith("# Policy")
        assert json.loads(json_path.read_text())["metadata"]["title"] == "Policy"

    def test_unwritable_directory(self, tmp_path: Path):
        blocker = tmp_path / "reports"
        blocker.write_text("a file where the directory should be")
        reporter = EvaluationReporter("policy", "Policy", blocker)

        with pytest.raises(TribunalError) as exc_info:
            reporter.save_reports(RESULTS, STATS, EvaluationMetadata())
        assert exc_info.value.code == ErrorCode.FILE_WRITE_FAILED
