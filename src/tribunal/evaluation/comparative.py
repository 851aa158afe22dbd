"""Comparative evaluators.

Each evaluator owns one tool: it groups that tool's recorded interactions
into scenarios, asks the judge to rank the models of each scenario, and
turns the judge's answer into a ComparativeEvaluationScore.

Scenarios are judged one at a time. A failure while judging one scenario is
logged and that scenario is left out; the others still get results.
"""

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, ClassVar

from tribunal.evaluation.analyzer import DatasetAnalyzer
from tribunal.evaluation.judge import ParsedError, parse_judge_response
from tribunal.evaluation.metadata import (
    EvaluationMetadata,
    build_model_pricing_context,
    build_tool_context,
)
from tribunal.evaluation.metrics import attach_efficiency
from tribunal.evaluation.prompts import (
    format_model_list,
    load_template,
    render_model_responses,
    render_template,
)
from tribunal.evaluation.types import (
    ComparativeEvaluationScore,
    ComparisonScenario,
    DatasetStats,
)
from tribunal.foundation.config import TribunalConfig
from tribunal.foundation.errors import (
    ErrorCode,
    PipelineInitializationError,
    ScenarioEvaluationError,
    TribunalError,
    scenario_error,
)
from tribunal.foundation.serialization import extract_json_object
from tribunal.models.protocol import GenerateOptions, ModelProtocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EvaluationPhase:
    """A workflow phase present in the recordings."""

    phase: str
    description: str
    available_models: tuple[str, ...]


class BaseComparativeEvaluator:
    """Judge every multi-model scenario of one tool.

    Subclasses declare which tool they cover, which template they render,
    and what the tool's workflow phases mean.
    """

    name: ClassVar[str]
    description: ClassVar[str]
    title: ClassVar[str]
    tool_name: ClassVar[str]
    template_name: ClassVar[str]
    phases: ClassVar[dict[str, str]] = {}

    def __init__(
        self,
        judge: ModelProtocol,
        config: TribunalConfig,
        metadata: EvaluationMetadata | None = None,
        analyzer: DatasetAnalyzer | None = None,
    ):
        self.judge = judge
        self.config = config
        self.metadata = metadata or EvaluationMetadata()
        self.analyzer = analyzer or DatasetAnalyzer(config)
        self.failed_scenarios: list[ComparativeEvaluationScore] = []

    @property
    def template(self) -> str:
        return load_template(self.template_name)

    @property
    def _options(self) -> GenerateOptions:
        return GenerateOptions(
            temperature=self.config.judge.temperature,
            max_tokens=self.config.judge.max_tokens,
        )

    def prompt_values(self, scenario: ComparisonScenario) -> dict[str, str]:
        """Placeholder values for the evaluator template."""
        model_list = format_model_list(scenario.models)
        return {
            "scenario_name": scenario.scenario_id,
            "phase": scenario.scenario_id.removeprefix(f"{self.tool_name}_"),
            "issue": scenario.issue or scenario.scenario_id,
            "model_responses": render_model_responses(scenario.records),
            "model_list": model_list,
            "models": model_list,
            "pricing_context": build_model_pricing_context(self.metadata.models),
            "tool_context": build_tool_context(self.tool_name, self.metadata.tools),
        }

    def build_prompt(self, scenario: ComparisonScenario) -> str:
        return render_template(self.template, self.prompt_values(scenario))

    async def evaluate_scenario(self, scenario: ComparisonScenario) -> ComparativeEvaluationScore:
        """Judge one scenario.

        Raises:
            ScenarioEvaluationError: If the judge call fails or its answer is
                unusable; the error carries a degraded score for the scenario
        """
        key = f"{self.name}_{scenario.scenario_id}"

        def failure(code: ErrorCode, detail: str, cause: Exception | None = None) -> ScenarioEvaluationError:
            degraded = ComparativeEvaluationScore.degraded(
                key,
                f"Evaluation error: {detail}",
                model_count=len(scenario.models),
                scenario_id=scenario.scenario_id,
            )
            return scenario_error(code, scenario.scenario_id, detail=detail, cause=cause, degraded=degraded)

        prompt = self.build_prompt(scenario)
        try:
            result = await self.judge.generate(prompt, options=self._options)
        except Exception as e:
            raise failure(ErrorCode.SCENARIO_JUDGE_FAILED, str(e), e) from e

        try:
            parsed = parse_judge_response(
                result.text,
                scenario.models,
                default_confidence=self.config.evaluation.default_confidence,
            )
        except Exception as e:
            raise failure(ErrorCode.SCENARIO_PARSE_FAILED, f"unusable judge answer: {e}", e) from e
        if isinstance(parsed, ParsedError):
            raise failure(ErrorCode.SCENARIO_PARSE_FAILED, parsed.reason)

        score = ComparativeEvaluationScore(
            key=key,
            score=parsed.score,
            comment=parsed.comment,
            confidence=parsed.confidence,
            model_rankings=parsed.rankings,
            best_model=parsed.best_model,
            model_count=len(scenario.models),
            scenario_id=scenario.scenario_id,
        )
        try:
            return attach_efficiency(score, scenario, self.metadata)
        except Exception as e:
            raise failure(ErrorCode.SCENARIO_PARSE_FAILED, f"efficiency metrics failed: {e}", e) from e

    def discover_scenarios(self) -> list[ComparisonScenario]:
        """Group this tool's recordings and keep the comparable scenarios.

        Raises:
            PipelineInitializationError: If the recordings cannot be read or grouped
        """
        try:
            scenarios = self.analyzer.group_by_scenario(self.tool_name)
        except (TribunalError, OSError) as e:
            raise PipelineInitializationError(
                code=ErrorCode.DISCOVERY_FAILED,
                context={"tool": self.tool_name, "detail": str(e)},
                cause=e,
            ) from e

        solo = [s.scenario_id for s in scenarios if not s.is_comparable]
        if solo:
            logger.info(
                "Skipping %d single-model scenario(s) for %s: %s",
                len(solo), self.tool_name, ", ".join(solo),
            )
        return [s for s in scenarios if s.is_comparable]

    async def evaluate_all_scenarios(self) -> list[ComparativeEvaluationScore]:
        """Judge every comparable scenario, in discovery order.

        Failed scenarios are logged and left out of the returned list (their
        degraded scores are kept in `failed_scenarios`). If discovery itself
        fails, a single degraded `{name}_error` entry is returned instead.
        """
        self.failed_scenarios = []

        try:
            scenarios = self.discover_scenarios()
        except PipelineInitializationError as e:
            logger.error("Scenario discovery failed for %s: %s", self.name, e)
            return [ComparativeEvaluationScore.degraded(f"{self.name}_error", f"Evaluation failed: {e}")]

        logger.info("Evaluating %d scenario(s) for %s", len(scenarios), self.tool_name)

        results: list[ComparativeEvaluationScore] = []
        for scenario in scenarios:
            logger.info("Evaluating %s (%d models)...", scenario.scenario_id, len(scenario.models))
            try:
                results.append(await self.evaluate_scenario(scenario))
            except ScenarioEvaluationError as e:
                logger.exception("Comparative evaluation failed for %s", scenario.scenario_id)
                if e.degraded is not None:
                    self.failed_scenarios.append(e.degraded)

        return results

    async def conduct_final_assessment(
        self,
        results: Sequence[ComparativeEvaluationScore],
    ) -> dict[str, Any] | None:
        """Ask the judge for a verdict across all scenarios of this tool.

        Returns the judge's assessment mapping, or None when there is nothing
        to assess or the judge's answer is unusable.
        """
        judged = [r for r in results if not r.is_degraded]
        if not judged:
            return None

        expected_models = sorted({r.model for s in judged for r in s.model_rankings})
        prompt = render_template(load_template("final-assessment"), {
            "tool_type": self.tool_name,
            "total_scenarios": str(len(judged)),
            "expected_models": format_model_list(expected_models),
            "scenario_results": json.dumps([r.to_dict() for r in judged], indent=2),
        })

        logger.info("Conducting final assessment across %d scenarios for %s", len(judged), self.tool_name)
        try:
            result = await self.judge.generate(prompt, options=self._options)
            assessment = extract_json_object(result.text)
        except Exception:
            logger.exception("Final assessment failed for %s", self.tool_name)
            return None

        detailed = assessment.get("detailed_analysis")
        if detailed is not None and not isinstance(detailed, dict):
            logger.warning("Ignoring malformed detailed_analysis in final assessment for %s", self.tool_name)
            assessment["detailed_analysis"] = {}
        return assessment

    def describe_phase(self, scenario_id: str) -> str:
        return (
            self.phases.get(scenario_id)
            or self.phases.get(scenario_id.removeprefix(f"{self.tool_name}_"))
            or f"{scenario_id} phase evaluation"
        )

    def get_evaluation_phases(self) -> list[EvaluationPhase]:
        """Phases found in the recordings, with the models seen in each.

        Raises:
            PipelineInitializationError: If the recordings cannot be read or grouped
        """
        return [
            EvaluationPhase(
                phase=s.scenario_id,
                description=self.describe_phase(s.scenario_id),
                available_models=tuple(sorted(s.models)),
            )
            for s in self.discover_scenarios()
        ]

    def get_dataset_stats(self) -> DatasetStats:
        return self.analyzer.get_dataset_stats(self.tool_name)


class RemediationComparativeEvaluator(BaseComparativeEvaluator):
    name = "remediation_comparative"
    description = "Compares AI models on Kubernetes troubleshooting scenarios"
    title = "Remediation"
    tool_name = "remediate"
    template_name = "remediation-comparative"
    phases = {
        "manual_analyze": "Manual Investigation Phase - How well each model investigates and diagnoses issues",
        "manual_execute": "Manual Execution Phase - How well each model validates and confirms fixes worked",
        "automatic_analyze_execute": "Automatic Full Workflow - End-to-end troubleshooting in single automated workflow",
    }


class RecommendationComparativeEvaluator(BaseComparativeEvaluator):
    name = "recommendation_comparative"
    description = "Compares AI models on Kubernetes deployment recommendation scenarios"
    title = "Recommendation"
    tool_name = "recommend"
    template_name = "recommendation-comparative"
    phases = {
        "clarification_phase": "Intent Analysis Phase - How well each model analyzes user intents and identifies missing context",
        "question_generation": "Question Generation Phase - How well each model generates clarifying questions",
        "solution_assembly": "Solution Assembly Phase - How well each model selects Kubernetes resources and deployment patterns",
        "generate_manifests_phase": "Manifest Generation Phase - How well each model generates production-ready manifests",
    }


class CapabilityComparativeEvaluator(BaseComparativeEvaluator):
    name = "capability-comparative"
    description = "Compares AI models on Kubernetes capability inference quality"
    title = "Capability"
    tool_name = "capability"
    template_name = "capability-comparative"
    phases = {
        "auto_scan": "Auto Scan Phase - How well each model analyzes cluster resource capabilities",
        "crud_auto_scan": "CRUD Auto Scan Phase - How well each model handles capability analysis with CRUD operations",
        "list_auto_scan": "List Auto Scan Phase - How well each model handles capability listing and organization",
        "search_auto_scan": "Search Auto Scan Phase - How well each model handles capability search and filtering",
    }


class PatternComparativeEvaluator(BaseComparativeEvaluator):
    name = "pattern-comparative"
    description = "Compares AI models on Kubernetes organizational pattern management quality"
    title = "Pattern"
    tool_name = "pattern"
    template_name = "pattern-comparative"
    phases = {
        "pattern_create_workflow": "Pattern Creation Workflow - How well each model guides users through creating patterns",
        "trigger_expansion": "Trigger Expansion Phase - How well each model expands infrastructure triggers",
        "pattern_validation": "Pattern Validation Phase - How well each model validates organizational patterns",
        "pattern_matching": "Pattern Matching Phase - How well each model matches requirements to existing patterns",
    }


class PolicyComparativeEvaluator(BaseComparativeEvaluator):
    name = "policy-comparative"
    description = "Compares AI models on Kubernetes organizational policy intent management quality"
    title = "Policy"
    tool_name = "policy"
    template_name = "policy-comparative"
    phases = {
        "policy_create_workflow": "Policy Creation Workflow - How well each model guides users through creating organizational policies",
        "policy_validation": "Policy Validation Phase - How well each model validates policy intent correctness and enforceability",
        "policy_enforcement_recommendations": "Policy Enforcement Recommendations - How well each model provides enforcement strategies",
        "policy_compliance_analysis": "Policy Compliance Analysis - How well each model analyzes compliance with existing policies",
    }


EVALUATORS: dict[str, type[BaseComparativeEvaluator]] = {
    "remediation": RemediationComparativeEvaluator,
    "recommendation": RecommendationComparativeEvaluator,
    "capability": CapabilityComparativeEvaluator,
    "pattern": PatternComparativeEvaluator,
    "policy": PolicyComparativeEvaluator,
}
