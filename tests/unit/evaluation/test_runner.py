"""Tests for dataset detection and end-to-end evaluator runs."""

import json
from collections.abc import Callable
from pathlib import Path

import pytest

from tribunal.evaluation.runner import detect_available_datasets, run_evaluation
from tribunal.foundation.config import TribunalConfig
from tribunal.foundation.errors import ErrorCode, TribunalError
from tribunal.models.mock import MockModel


class TestDetectAvailableDatasets:
    def test_detects_by_tool_prefix(self, config: TribunalConfig, write_recording: Callable, make_line: Callable):
        write_recording("remediate_manual_analyze", "claude", make_line("claude"))
        write_recording("policy_create_workflow", "gpt", make_line("gpt"))

        available = detect_available_datasets(config)

        assert available == {
            "remediation": True,
            "recommendation": False,
            "capability": False,
            "pattern": False,
            "policy": True,
        }

    def test_restricted_to_requested_types(
        self, config: TribunalConfig, write_recording: Callable, make_line: Callable
    ):
        write_recording("remediate_manual_analyze", "claude", make_line("claude"))
        write_recording("policy_create_workflow", "gpt", make_line("gpt"))

        available = detect_available_datasets(config, ["policy"])
        assert available["policy"] is True
        assert available["remediation"] is False

    def test_missing_directory_means_nothing(self, config: TribunalConfig):
        assert not any(detect_available_datasets(config).values())

    def test_unknown_type(self, config: TribunalConfig):
        with pytest.raises(TribunalError) as exc_info:
            detect_available_datasets(config, ["security"])
        assert exc_info.value.code == ErrorCode.CONFIG_INVALID


class TestRunEvaluation:
    @pytest.mark.asyncio
    async def test_end_to_end(
        self,
        config: TribunalConfig,
        write_recording: Callable,
        make_line: Callable,
        make_response: Callable,
    ):
        write_recording("policy_create_workflow", "claude", make_line("claude"))
        write_recording("policy_create_workflow", "gpt", make_line("gpt"))
        write_recording("policy_solo", "claude", make_line("claude"))
        assessment = {"overall_assessment": {"winner": "vercel_claude", "rationale": "best"}}
        judge = MockModel(responses=[
            make_response([("vercel_claude", 0.9), ("vercel_gpt", 0.7)]),
            json.dumps(assessment),
        ])

        run = await run_evaluation("policy", judge, config)

        assert run.evaluation_type == "policy"
        assert len(run.results) == 1
        assert run.stats.solo_scenarios == ("policy_solo",)
        assert [p.phase for p in run.phases] == ["policy_create_workflow"]
        assert run.final_assessment == assessment
        md_path, json_path = run.report_paths
        assert md_path == Path(config.paths.reports_dir) / "policy-evaluation.md"
        report = json.loads(json_path.read_text())
        assert report["metadata"]["evaluationType"] == "policy"
        assert len(report["results"]) == 1

    @pytest.mark.asyncio
    async def test_missing_datasets_still_writes_report(self, config: TribunalConfig, mock_judge: MockModel):
        run = await run_evaluation("policy", mock_judge, config)

        assert run.stats.total_datasets == 0
        assert run.results[0].key == "policy-comparative_error"
        assert run.final_assessment is None
        assert run.report_paths[1].exists()

    @pytest.mark.asyncio
    async def test_unknown_type(self, config: TribunalConfig, mock_judge: MockModel):
        with pytest.raises(TribunalError) as exc_info:
            await run_evaluation("security", mock_judge, config)
        assert exc_info.value.code == ErrorCode.CONFIG_INVALID
