"""Tests for the tribunal command-line interface."""

import json
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import pytest
from click.testing import CliRunner
from rich.console import Console

from tribunal import __version__
from tribunal.cli import main
from tribunal.foundation.config import TribunalConfig
from tribunal.models.mock import MockModel


@pytest.fixture(autouse=True)
def restore_root_logger(monkeypatch: pytest.MonkeyPatch):
    """The CLI reconfigures root logging; undo it after each test."""
    monkeypatch.delenv("TRIBUNAL_LOG_LEVEL", raising=False)
    monkeypatch.delenv("TRIBUNAL_DEBUG", raising=False)
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def runner(monkeypatch: pytest.MonkeyPatch) -> CliRunner:
    # Wide consoles so rich never wraps table cells or paths
    monkeypatch.setattr("tribunal.cli.console", Console(width=200))
    monkeypatch.setattr("tribunal.cli.stderr_console", Console(stderr=True, width=200))
    return CliRunner()


@pytest.fixture
def config_file(tmp_path: Path, config: TribunalConfig) -> Path:
    """A config file pointing every path under tmp_path, judged by the mock."""
    path = tmp_path / "tribunal.yaml"
    path.write_text(
        "judge:\n"
        "  provider: mock\n"
        "paths:\n"
        f"  datasets_dir: {config.paths.datasets_dir}\n"
        f"  reports_dir: {config.paths.reports_dir}\n"
        f"  platform_dir: {config.paths.platform_dir}\n"
        f"  metadata_file: {config.paths.metadata_file}\n"
    )
    return path


@pytest.fixture
def fresh_metadata(config: TribunalConfig) -> Path:
    path = Path(config.paths.metadata_file)
    path.write_text(json.dumps({"last_updated": datetime.now(UTC).isoformat(), "models": {}}))
    return path


@pytest.fixture
def policy_recordings(write_recording: Callable, make_line: Callable) -> None:
    write_recording("policy_create_workflow", "claude", make_line("claude"))
    write_recording("policy_create_workflow", "gpt", make_line("gpt"))
    write_recording("policy_solo", "claude", make_line("claude"))


@pytest.fixture
def scripted_judge(monkeypatch: pytest.MonkeyPatch, make_response: Callable) -> MockModel:
    judge = MockModel(responses=[
        make_response([("vercel_claude", 0.9), ("vercel_gpt", 0.7)]),
        json.dumps({"overall_assessment": {"winner": "vercel_claude", "rationale": "best"}}),
    ])
    monkeypatch.setattr("tribunal.cli.create_judge", lambda judge_config: judge)
    return judge


class TestGlobalOptions:
    def test_version(self, runner: CliRunner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_invalid_config_file(self, runner: CliRunner, tmp_path: Path):
        path = tmp_path / "broken.yaml"
        path.write_text("judge: [unclosed\n")
        result = runner.invoke(main, ["--config", str(path), "datasets"])
        assert result.exit_code == 1
        assert "Error:" in result.output


class TestDatasetsCommand:
    def test_table(self, runner: CliRunner, config_file: Path, policy_recordings):
        result = runner.invoke(main, ["--config", str(config_file), "datasets", "policy"])
        assert result.exit_code == 0, result.output
        assert "policy" in result.output
        assert "vercel_claude" in result.output

    def test_tool_name_accepted(self, runner: CliRunner, config_file: Path, datasets_dir: Path):
        result = runner.invoke(main, ["--config", str(config_file), "datasets", "remediate"])
        assert result.exit_code == 0, result.output
        assert "remediate" in result.output

    def test_unknown_tool(self, runner: CliRunner, config_file: Path):
        result = runner.invoke(main, ["--config", str(config_file), "datasets", "security"])
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "Unknown tool" in result.output

    def test_missing_datasets_directory(self, runner: CliRunner, config_file: Path):
        result = runner.invoke(main, ["--config", str(config_file), "datasets"])
        assert result.exit_code == 1
        assert "Error:" in result.output


class TestEvaluateCommand:
    def test_runs_available_evaluators(
        self,
        runner: CliRunner,
        config_file: Path,
        config: TribunalConfig,
        fresh_metadata: Path,
        policy_recordings,
        scripted_judge: MockModel,
    ):
        result = runner.invoke(main, ["--config", str(config_file), "evaluate"])

        assert result.exit_code == 0, result.output
        assert "policy" in result.output
        assert scripted_judge.call_count == 2
        reports_dir = Path(config.paths.reports_dir)
        assert (reports_dir / "policy-results.json").exists()
        assert (reports_dir / "policy-evaluation.md").exists()
        assert not (reports_dir / "remediation-results.json").exists()

    def test_no_datasets(self, runner: CliRunner, config_file: Path, fresh_metadata: Path, datasets_dir: Path):
        result = runner.invoke(main, ["--config", str(config_file), "evaluate"])
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "No datasets found" in result.output

    def test_requested_type_without_data_warns(
        self,
        runner: CliRunner,
        config_file: Path,
        fresh_metadata: Path,
        policy_recordings,
        scripted_judge: MockModel,
    ):
        result = runner.invoke(main, ["--config", str(config_file), "evaluate", "policy", "pattern"])
        assert result.exit_code == 0, result.output
        assert "no datasets for pattern" in result.output

    def test_unknown_type_rejected_by_click(self, runner: CliRunner, config_file: Path):
        result = runner.invoke(main, ["--config", str(config_file), "evaluate", "security"])
        assert result.exit_code == 2

    def test_undated_metadata_fails(self, runner: CliRunner, config_file: Path, policy_recordings):
        result = runner.invoke(main, ["--config", str(config_file), "evaluate"])
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_allow_stale_metadata(
        self, runner: CliRunner, config_file: Path, policy_recordings, scripted_judge: MockModel
    ):
        result = runner.invoke(main, ["--config", str(config_file), "evaluate", "--allow-stale-metadata"])
        assert result.exit_code == 0, result.output
        assert "Warning:" in result.output


class TestSynthesizeCommand:
    def test_no_results(self, runner: CliRunner, config_file: Path):
        result = runner.invoke(main, ["--config", str(config_file), "synthesize"])
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_graphs_only(self, runner: CliRunner, config_file: Path, config: TribunalConfig):
        reports_dir = Path(config.paths.reports_dir)
        reports_dir.mkdir(parents=True)
        (reports_dir / "policy-results.json").write_text(json.dumps({
            "results": [{"modelRankings": [
                {"model": "vercel_claude", "score": 0.9},
                {"model": "vercel_gpt", "score": 0.7},
            ]}],
        }))

        result = runner.invoke(
            main,
            ["--config", str(config_file), "synthesize", "--graphs", "performance-tiers", "--skip-report"],
        )

        assert result.exit_code == 0, result.output
        assert (Path(config.paths.platform_dir) / "graphs" / "performance-tiers.png").exists()
        assert not (Path(config.paths.platform_dir) / "synthesis-report.md").exists()
