"""Pytest fixtures for Tribunal tests."""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from tribunal.foundation.config import PathsConfig, TribunalConfig, reset_config
from tribunal.models.mock import MockModel


def recording_line(
    model_version: str,
    output: str = "Diagnosis and fix",
    *,
    issue: str = "Pod is crash looping",
    duration_ms: int = 12000,
    input_tokens: int = 1000,
    output_tokens: int = 500,
    failure: dict[str, Any] | str | None = None,
    sdk: str = "vercel",
) -> dict[str, Any]:
    """One recorded interaction, as written by the recording harness."""
    metadata: dict[str, Any] = {"timestamp": "2025-09-01T12:00:00Z"}
    if failure is not None:
        metadata["failure_analysis"] = failure
    return {
        "input": {"issue": issue},
        "output": output,
        "performance": {
            "duration_ms": duration_ms,
            "input_tokens": input_tokens,
            "output_tokens": output_tokens,
            "total_tokens": input_tokens + output_tokens,
            "sdk": sdk,
            "model_version": model_version,
            "iterations": 3,
            "tool_calls_executed": 5,
        },
        "metadata": metadata,
    }


def judge_response(
    rankings: list[tuple[str, float]],
    *,
    best_model: str | None = None,
    insights: str = "First model was more thorough",
    fenced: bool = True,
) -> str:
    """A well-formed judge answer ranking models in the given order."""
    payload: dict[str, Any] = {
        "scenario_summary": "Compared responses",
        "ranking": [
            {"rank": i, "model": model, "score": score, "rationale": f"{model} rationale"}
            for i, (model, score) in enumerate(rankings, start=1)
        ],
        "confidence": 0.85,
        "overall_insights": insights,
    }
    if best_model is not None:
        payload["best_model"] = best_model
    body = json.dumps(payload, indent=2)
    return f"Here is my evaluation:\n```json\n{body}\n```" if fenced else body


@pytest.fixture(autouse=True)
def _isolated_config():
    """Never let one test's global config leak into another."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def config(tmp_path: Path) -> TribunalConfig:
    """Config whose every path lives under tmp_path."""
    return TribunalConfig(
        paths=PathsConfig(
            datasets_dir=str(tmp_path / "datasets"),
            reports_dir=str(tmp_path / "reports"),
            platform_dir=str(tmp_path / "platform"),
            metadata_file=str(tmp_path / "model-metadata.json"),
        )
    )


@pytest.fixture
def datasets_dir(config: TribunalConfig) -> Path:
    path = Path(config.paths.datasets_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


@pytest.fixture
def write_recording(datasets_dir: Path) -> Callable[..., Path]:
    """Write a recording file: write_recording("remediate_manual_analyze", "claude", line, ...)."""

    def _write(scenario: str, model: str, *lines: dict[str, Any], timestamp: str = "20250901") -> Path:
        path = datasets_dir / f"{scenario}_vercel_{model}_{timestamp}.jsonl"
        path.write_text("\n".join(json.dumps(line) for line in lines) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_jsonl(tmp_path: Path) -> Callable[[str, list[Any]], Path]:
    """Write an eval dataset under tmp_path/eval; entries may be dicts or raw strings."""

    def _write(name: str, entries: list[Any]) -> Path:
        directory = tmp_path / "eval"
        directory.mkdir(exist_ok=True)
        path = directory / f"{name}.jsonl"
        lines = [e if isinstance(e, str) else json.dumps(e) for e in entries]
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def mock_judge() -> MockModel:
    return MockModel(responses=[judge_response([("vercel_claude", 0.9), ("vercel_gpt", 0.7)])])


@pytest.fixture
def make_line() -> Callable[..., dict[str, Any]]:
    return recording_line


@pytest.fixture
def make_response() -> Callable[..., str]:
    return judge_response
