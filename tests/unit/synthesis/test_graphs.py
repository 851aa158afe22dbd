"""Tests for synthesis graph rendering."""

import logging
from pathlib import Path

import pytest

from tribunal.evaluation.metadata import ModelPricing
from tribunal.synthesis.graphs import AVAILABLE_GRAPHS, GraphGenerator
from tribunal.synthesis.types import ModelPerformance


def performances(priced: bool = True) -> list[ModelPerformance]:
    return [
        ModelPerformance(
            model_id="vercel_claude-sonnet-4_2025-05-14",
            provider="anthropic",
            tool_scores={"remediation": 0.9, "policy": 0.8},
            average_score=0.85,
            participation_rate=1.0,
            reliability_score=1.0,
            consistency=0.94,
            pricing=ModelPricing(3.0, 15.0) if priced else None,
            context_window=200000 if priced else None,
        ),
        ModelPerformance(
            model_id="vercel_gpt-4o",
            provider="openai",
            tool_scores={"remediation": 0.7},
            average_score=0.7,
            participation_rate=0.5,
            reliability_score=0.8,
            consistency=1.0,
            pricing=ModelPricing(2.5, 10.0) if priced else None,
            context_window=128000 if priced else None,
        ),
    ]


@pytest.fixture
def generator(tmp_path: Path) -> GraphGenerator:
    return GraphGenerator(tmp_path / "graphs")


class TestGraphGenerator:
    def test_display_name(self, generator: GraphGenerator):
        assert generator.display_name("vercel_claude-sonnet-4_2025-05-14") == "claude-sonnet-4"
        assert generator.display_name("gpt-4o") == "gpt-4o"

    def test_all_graphs_rendered(self, generator: GraphGenerator):
        results = generator.generate_graphs(performances())

        assert list(results) == list(AVAILABLE_GRAPHS)
        for name, result in results.items():
            assert result.success, result.error
            assert result.path == generator.output_dir / f"{name}.png"
            assert result.path.stat().st_size > 0

    def test_missing_pricing_fails_only_dependent_graphs(self, generator: GraphGenerator):
        results = generator.generate_graphs(performances(priced=False))

        assert not results["cost-vs-quality"].success
        assert results["cost-vs-quality"].error.startswith("[TB-4004] Graph 'cost-vs-quality' failed:")
        assert "pricing" in results["cost-vs-quality"].error
        assert not results["context-window-correlation"].success
        assert results["performance-tiers"].success
        assert results["tool-performance-heatmap"].success

    def test_no_data(self, generator: GraphGenerator):
        result = generator.generate_graph("performance-tiers", [])
        assert not result.success
        assert result.error == "[TB-4004] Graph 'performance-tiers' failed: no model performance data"

    def test_selected_graphs_deduplicated(self, generator: GraphGenerator, caplog: pytest.LogCaptureFixture):
        with caplog.at_level(logging.WARNING):
            results = generator.generate_graphs(
                performances(), ["reliability-comparison", "pie-chart", "reliability-comparison"]
            )

        assert list(results) == ["reliability-comparison"]
        assert "Unknown graph 'pie-chart'" in caplog.text

    def test_nothing_requested_writes_nothing(self, generator: GraphGenerator):
        assert generator.generate_graphs(performances(), []) == {}
        assert not generator.output_dir.exists()
