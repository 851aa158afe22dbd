"""Tests for the model and tool metadata catalogue."""

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from tribunal.evaluation.metadata import (
    EvaluationMetadata,
    ModelMetadata,
    ModelPricing,
    ToolMetadata,
    build_model_pricing_context,
    build_tool_context,
    clean_model_name,
    load_evaluation_metadata,
    validate_metadata_freshness,
)
from tribunal.foundation.errors import ErrorCode, PipelineInitializationError

METADATA = {
    "last_updated": "2025-09-01T00:00:00Z",
    "models": {
        "claude-sonnet-4": {
            "provider": "anthropic",
            "pricing": {"input_cost_per_million_tokens": 3.0, "output_cost_per_million_tokens": 15.0},
            "context_window": 200000,
            "supports_function_calling": True,
        },
        "mystery": {"provider": "unknown"},
    },
    "tools": {
        "remediate": {
            "description": "Kubernetes troubleshooting",
            "primaryFunction": "Diagnose and fix cluster issues",
            "testTimeout": "30 minutes",
            "successCriteria": ["Root cause found", "Fix verified"],
            "modelRequirements": {"reasoning": "multi-step"},
        }
    },
}


@pytest.fixture
def metadata_file(tmp_path: Path) -> Path:
    path = tmp_path / "model-metadata.json"
    path.write_text(json.dumps(METADATA))
    return path


class TestLoad:
    def test_parses_models_and_tools(self, metadata_file: Path):
        metadata = load_evaluation_metadata(metadata_file)

        claude = metadata.models["claude-sonnet-4"]
        assert claude.pricing == ModelPricing(3.0, 15.0)
        assert claude.pricing.average_cost_per_million_tokens == 9.0
        assert claude.context_window == 200000
        assert claude.supports_function_calling
        assert metadata.models["mystery"].pricing is None

        tool = metadata.tools["remediate"]
        assert tool.name == "remediate"
        assert tool.primary_function == "Diagnose and fix cluster issues"
        assert tool.success_criteria == ("Root cause found", "Fix verified")
        assert metadata.last_updated == datetime(2025, 9, 1, tzinfo=UTC)

    def test_missing_file_is_empty(self, tmp_path: Path):
        metadata = load_evaluation_metadata(tmp_path / "absent.json")
        assert metadata.models == {}
        assert metadata.last_updated is None

    def test_unreadable_file(self, tmp_path: Path):
        path = tmp_path / "bad.json"
        path.write_text("{nope")
        with pytest.raises(PipelineInitializationError) as exc_info:
            load_evaluation_metadata(path)
        assert exc_info.value.code == ErrorCode.METADATA_INVALID

    def test_find_model_strips_sdk_prefix(self, metadata_file: Path):
        metadata = load_evaluation_metadata(metadata_file)
        assert metadata.find_model("vercel_claude-sonnet-4") is metadata.models["claude-sonnet-4"]
        assert metadata.find_model("vercel_gpt-4o") is None

    def test_to_dict(self):
        data = ModelMetadata(provider="openai", pricing=ModelPricing(1.0, 2.0)).to_dict()
        assert data == {
            "provider": "openai",
            "supports_function_calling": False,
            "pricing": {"input_cost_per_million_tokens": 1.0, "output_cost_per_million_tokens": 2.0},
        }


class TestFreshness:
    def test_fresh(self):
        now = datetime(2025, 9, 10, tzinfo=UTC)
        validate_metadata_freshness(EvaluationMetadata(last_updated=now - timedelta(days=9)), 30, now=now)

    def test_stale(self):
        now = datetime(2025, 12, 1, tzinfo=UTC)
        with pytest.raises(PipelineInitializationError) as exc_info:
            validate_metadata_freshness(
                EvaluationMetadata(last_updated=now - timedelta(days=45), source="m.json"), 30, now=now
            )
        assert exc_info.value.code == ErrorCode.METADATA_STALE
        assert exc_info.value.context["age_days"] == 45

    def test_undated(self):
        with pytest.raises(PipelineInitializationError) as exc_info:
            validate_metadata_freshness(EvaluationMetadata(), 30)
        assert exc_info.value.code == ErrorCode.METADATA_INVALID


class TestPromptContext:
    def test_pricing_context(self):
        context = build_model_pricing_context({
            "claude-sonnet-4": ModelMetadata("anthropic", ModelPricing(3.0, 15.0), 200000),
            "mystery": ModelMetadata("unknown"),
        })
        assert "- **claude-sonnet-4** (anthropic): $9.00/1M tokens ($3.00 input, $15.00 output)" in context
        assert "Context: 200K tokens" in context
        assert "- **mystery** (unknown): pricing N/A | Context: N/A tokens" in context

    def test_no_pricing(self):
        assert build_model_pricing_context({}) == "No pricing information available."

    def test_tool_context(self):
        tool = ToolMetadata(
            name="remediate",
            description="Troubleshooting",
            test_timeout="30 minutes",
            success_criteria=("Root cause found",),
        )
        context = build_tool_context("remediate", {"remediate": tool})
        assert "**remediate**: Troubleshooting" in context
        assert "**Primary Function**: N/A" in context
        assert "**Test Timeout Constraint**: 30 minutes" in context
        assert "- Root cause found" in context

    def test_unknown_tool(self):
        assert build_tool_context("policy", {}) == "No metadata available for tool: policy"


def test_clean_model_name():
    assert clean_model_name("vercel_gpt-4o") == "gpt-4o"
    assert clean_model_name("gpt-4o") == "gpt-4o"
    assert clean_model_name("native_x", ("vercel", "native")) == "x"
