"""Graphs for the platform synthesis report.

Every graph is rendered to ``{output_dir}/{name}.png``. A graph that cannot
be drawn (no data, plotting error) is reported as a failed GraphResult and
does not stop the others.
"""

import logging
import re
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402
import seaborn as sns  # noqa: E402

from tribunal.evaluation.metadata import clean_model_name  # noqa: E402
from tribunal.foundation.errors import ErrorCode, SynthesisError  # noqa: E402
from tribunal.synthesis.types import GraphResult, ModelPerformance  # noqa: E402

logger = logging.getLogger(__name__)

AVAILABLE_GRAPHS: tuple[str, ...] = (
    "performance-tiers",
    "cost-vs-quality",
    "reliability-comparison",
    "tool-performance-heatmap",
    "context-window-correlation",
)

GRAPH_TITLES = {
    "performance-tiers": "Performance Tiers",
    "cost-vs-quality": "Cost vs Quality",
    "reliability-comparison": "Reliability Comparison",
    "tool-performance-heatmap": "Tool Performance Heatmap",
    "context-window-correlation": "Context Window Correlation",
}

_DATE_SUFFIX = re.compile(r"_\d{4}-\d{2}-\d{2}$")
_TOP_N = 10


class GraphGenerator:
    """Render synthesis graphs with matplotlib and seaborn."""

    def __init__(self, output_dir: str | Path, sdk_markers: tuple[str, ...] = ("vercel",)):
        self.output_dir = Path(output_dir)
        self.sdk_markers = sdk_markers
        self._renderers: dict[str, Callable[[Sequence[ModelPerformance], Path], None]] = {
            "performance-tiers": self._plot_performance_tiers,
            "cost-vs-quality": self._plot_cost_vs_quality,
            "reliability-comparison": self._plot_reliability_comparison,
            "tool-performance-heatmap": self._plot_tool_heatmap,
            "context-window-correlation": self._plot_context_window,
        }

    def display_name(self, model_id: str) -> str:
        """'vercel_claude-sonnet-4_2025-10-15' -> 'claude-sonnet-4'."""
        return _DATE_SUFFIX.sub("", clean_model_name(model_id, self.sdk_markers))

    def generate_graphs(
        self,
        performances: Sequence[ModelPerformance],
        graph_names: Iterable[str] | None = None,
    ) -> dict[str, GraphResult]:
        """Render the requested graphs (all of them when None).

        Unknown names are logged and skipped.
        """
        if graph_names is None:
            requested = list(AVAILABLE_GRAPHS)
        else:
            requested = []
            for name in graph_names:
                if name in self._renderers:
                    if name not in requested:
                        requested.append(name)
                else:
                    logger.warning(
                        "Unknown graph '%s' ignored (available: %s)", name, ", ".join(AVAILABLE_GRAPHS)
                    )

        if requested:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            sns.set_theme(style="whitegrid")

        return {name: self.generate_graph(name, performances) for name in requested}

    def generate_graph(self, name: str, performances: Sequence[ModelPerformance]) -> GraphResult:
        path = self.output_dir / f"{name}.png"
        try:
            if not performances:
                raise ValueError("no model performance data")
            self._renderers[name](performances, path)
        except Exception as e:
            plt.close("all")
            error = SynthesisError(
                code=ErrorCode.SYNTHESIS_GRAPH_FAILED,
                context={"graph": name, "detail": str(e)},
                cause=e,
            )
            logger.warning("%s", error)
            return GraphResult(name=name, success=False, error=str(error))

        logger.info("Generated graph %s", path)
        return GraphResult(name=name, success=True, path=path)

    def _save(self, fig: plt.Figure, path: Path) -> None:
        fig.tight_layout()
        fig.savefig(path, dpi=300, bbox_inches="tight")
        plt.close(fig)

    def _plot_performance_tiers(self, performances: Sequence[ModelPerformance], path: Path) -> None:
        """Grouped bars of score, reliability and consistency for the top models."""
        top = sorted(performances, key=lambda m: m.average_score, reverse=True)[:_TOP_N]
        metrics = [
            ("Overall Score", [m.average_score for m in top], "#3498db"),
            ("Reliability", [m.reliability_score for m in top], "#27ae60"),
            ("Consistency", [m.consistency for m in top], "#9b59b6"),
        ]

        fig, ax = plt.subplots(figsize=(14, 8))
        x = np.arange(len(top))
        width = 0.25
        for i, (label, values, color) in enumerate(metrics):
            ax.bar(x + i * width, values, width, label=label, color=color, alpha=0.85)

        ax.set_xticks(x + width)
        ax.set_xticklabels([self.display_name(m.model_id) for m in top], rotation=30, ha="right")
        ax.set_ylabel("Score (0-1)", fontweight="bold")
        ax.set_ylim(0, 1.05)
        ax.set_title("Model Performance Tiers: Score, Reliability, and Consistency", fontweight="bold", pad=20)
        ax.legend(bbox_to_anchor=(1.02, 1), loc="upper left")
        self._save(fig, path)

    def _plot_cost_vs_quality(self, performances: Sequence[ModelPerformance], path: Path) -> None:
        """Score against price; each line spans input to output price."""
        priced = [m for m in performances if m.average_cost]
        if not priced:
            raise ValueError("no models with pricing metadata")

        fig, ax = plt.subplots(figsize=(14, 8))
        palette = sns.color_palette("husl", len(priced))
        for model, color in zip(priced, palette, strict=True):
            pricing = model.pricing
            ax.hlines(
                model.average_score,
                pricing.input_cost_per_million_tokens,
                pricing.output_cost_per_million_tokens,
                colors=[color],
                linewidth=3,
            )
            ax.scatter(model.average_cost, model.average_score, color=color, s=80, zorder=3,
                       label=self.display_name(model.model_id))

        ax.set_xlabel("Cost per million tokens (USD, input to output)", fontweight="bold")
        ax.set_ylabel("Average score", fontweight="bold")
        ax.set_title("Cost vs Quality", fontweight="bold", pad=20)
        ax.legend(bbox_to_anchor=(1.02, 1), loc="upper left")
        self._save(fig, path)

    def _plot_reliability_comparison(self, performances: Sequence[ModelPerformance], path: Path) -> None:
        ordered = sorted(performances, key=lambda m: m.reliability_score, reverse=True)
        df = pd.DataFrame(
            {
                "model": [self.display_name(m.model_id) for m in ordered] * 2,
                "metric": ["Reliability"] * len(ordered) + ["Consistency"] * len(ordered),
                "value": [m.reliability_score for m in ordered] + [m.consistency for m in ordered],
            }
        )

        fig, ax = plt.subplots(figsize=(12, max(4, 0.6 * len(ordered) + 2)))
        sns.barplot(data=df, x="value", y="model", hue="metric", orient="h", ax=ax)
        ax.axvline(0.9, color="#27ae60", linestyle="--", alpha=0.6)
        ax.axvline(0.7, color="#e67e22", linestyle="--", alpha=0.6)
        ax.set_xlim(0, 1.05)
        ax.set_xlabel("Score (0-1)", fontweight="bold")
        ax.set_ylabel("")
        ax.set_title("Reliability and Consistency by Model", fontweight="bold", pad=20)
        self._save(fig, path)

    def _plot_tool_heatmap(self, performances: Sequence[ModelPerformance], path: Path) -> None:
        top = sorted(performances, key=lambda m: m.average_score, reverse=True)[:_TOP_N]
        tools = sorted({tool for m in top for tool in m.tool_scores})
        df = pd.DataFrame(
            [[m.tool_scores.get(tool, np.nan) for tool in tools] for m in top],
            index=[self.display_name(m.model_id) for m in top],
            columns=[tool.title() for tool in tools],
        )

        fig, ax = plt.subplots(figsize=(max(8, 1.6 * len(tools) + 4), max(4, 0.6 * len(top) + 2)))
        sns.heatmap(df, annot=True, cmap="RdYlGn", vmin=0.0, vmax=1.0, linewidths=0.5,
                    cbar_kws={"shrink": 0.8}, fmt=".3f", ax=ax)
        ax.set_title("Model Performance by Tool\nGreen = better, red = worse, blank = not evaluated",
                     fontweight="bold", pad=20)
        self._save(fig, path)

    def _plot_context_window(self, performances: Sequence[ModelPerformance], path: Path) -> None:
        known = [m for m in performances if m.context_window]
        if not known:
            raise ValueError("no models with context window metadata")

        fig, ax = plt.subplots(figsize=(14, 8))
        xs = [m.context_window / 1000 for m in known]
        ys = [m.average_score for m in known]
        ax.scatter(xs, ys, s=120, color="#9b59b6", alpha=0.8, edgecolors="black")
        for model, x, y in zip(known, xs, ys, strict=True):
            ax.annotate(self.display_name(model.model_id), (x, y), xytext=(8, 0),
                        textcoords="offset points", va="center", fontsize=9)

        ax.set_xlabel("Context window (thousands of tokens)", fontweight="bold")
        ax.set_ylabel("Average score", fontweight="bold")
        ax.set_title("Context Window vs Quality", fontweight="bold", pad=20)
        self._save(fig, path)
