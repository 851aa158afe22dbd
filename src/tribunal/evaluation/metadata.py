"""Model and tool metadata catalogue.

``model-metadata.json`` describes pricing and capabilities of each model and
what each evaluated tool is for. It feeds the judge prompt context and the
cost figures of the platform synthesis.
"""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from tribunal.foundation.errors import ErrorCode, PipelineInitializationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ModelPricing:
    input_cost_per_million_tokens: float
    output_cost_per_million_tokens: float

    @property
    def average_cost_per_million_tokens(self) -> float:
        return (self.input_cost_per_million_tokens + self.output_cost_per_million_tokens) / 2

    def to_dict(self) -> dict[str, float]:
        return {
            "input_cost_per_million_tokens": self.input_cost_per_million_tokens,
            "output_cost_per_million_tokens": self.output_cost_per_million_tokens,
        }


@dataclass(frozen=True, slots=True)
class ModelMetadata:
    provider: str
    pricing: ModelPricing | None = None
    context_window: int | None = None
    supports_function_calling: bool = False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "provider": self.provider,
            "supports_function_calling": self.supports_function_calling,
        }
        if self.pricing is not None:
            data["pricing"] = self.pricing.to_dict()
        if self.context_window is not None:
            data["context_window"] = self.context_window
        return data


@dataclass(frozen=True, slots=True)
class ToolMetadata:
    name: str
    description: str = ""
    primary_function: str = ""
    test_timeout: str = ""
    success_criteria: tuple[str, ...] = ()
    model_requirements: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class EvaluationMetadata:
    models: Mapping[str, ModelMetadata] = field(default_factory=dict)
    tools: Mapping[str, ToolMetadata] = field(default_factory=dict)
    last_updated: datetime | None = None
    source: str = ""

    def find_model(self, model_id: str, sdk_markers: tuple[str, ...] = ("vercel",)) -> ModelMetadata | None:
        """Look a model up by its recorded id, with or without the sdk prefix."""
        if model_id in self.models:
            return self.models[model_id]
        return self.models.get(clean_model_name(model_id, sdk_markers))


def clean_model_name(model_id: str, sdk_markers: tuple[str, ...] = ("vercel",)) -> str:
    """Strip the recording sdk prefix: 'vercel_gpt-4o' -> 'gpt-4o'."""
    for marker in sdk_markers:
        if model_id.startswith(f"{marker}_"):
            return model_id[len(marker) + 1:]
    return model_id


def _parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def parse_model_metadata(data: Mapping[str, Any]) -> ModelMetadata:
    pricing_data = data.get("pricing")
    pricing = None
    if isinstance(pricing_data, Mapping):
        pricing = ModelPricing(
            input_cost_per_million_tokens=float(pricing_data.get("input_cost_per_million_tokens", 0)),
            output_cost_per_million_tokens=float(pricing_data.get("output_cost_per_million_tokens", 0)),
        )
    context_window = data.get("context_window")
    return ModelMetadata(
        provider=str(data.get("provider", "unknown")),
        pricing=pricing,
        context_window=int(context_window) if context_window else None,
        supports_function_calling=bool(data.get("supports_function_calling", False)),
    )


def _parse_tool(tool_id: str, data: Mapping[str, Any]) -> ToolMetadata:
    return ToolMetadata(
        name=str(data.get("name", tool_id)),
        description=str(data.get("description", "")),
        primary_function=str(data.get("primary_function", data.get("primaryFunction", ""))),
        test_timeout=str(data.get("test_timeout", data.get("testTimeout", ""))),
        success_criteria=tuple(data.get("success_criteria", data.get("successCriteria", ())) or ()),
        model_requirements=dict(data.get("model_requirements", data.get("modelRequirements", {})) or {}),
    )


def load_evaluation_metadata(path: str | Path) -> EvaluationMetadata:
    """Load model and tool metadata.

    A missing file yields empty metadata (prompts then say no pricing is
    available); a present but unreadable file is an error.

    Raises:
        PipelineInitializationError: If the file exists but cannot be parsed
    """
    path = Path(path)
    if not path.exists():
        logger.warning("Model metadata not found at %s; prompts will omit pricing", path)
        return EvaluationMetadata(source=str(path))

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        models = {k: parse_model_metadata(v) for k, v in (data.get("models") or {}).items()}
        tools = {k: _parse_tool(k, v) for k, v in (data.get("tools") or {}).items()}
    except (OSError, ValueError, TypeError, AttributeError) as e:
        raise PipelineInitializationError(
            code=ErrorCode.METADATA_INVALID,
            context={"path": str(path), "detail": str(e)},
            cause=e,
        ) from e

    logger.info("Loaded metadata for %d models and %d tools", len(models), len(tools))
    return EvaluationMetadata(
        models=models,
        tools=tools,
        last_updated=_parse_timestamp(data.get("last_updated", data.get("lastUpdated"))),
        source=str(path),
    )


def validate_metadata_freshness(
    metadata: EvaluationMetadata,
    max_age_days: int,
    now: datetime | None = None,
) -> None:
    """Reject metadata whose pricing is too old to trust.

    Raises:
        PipelineInitializationError: If the metadata is undated or stale
    """
    if metadata.last_updated is None:
        raise PipelineInitializationError(
            code=ErrorCode.METADATA_INVALID,
            context={"path": metadata.source, "detail": "missing last_updated"},
        )
    age = (now or datetime.now(UTC)) - metadata.last_updated
    if age.days > max_age_days:
        raise PipelineInitializationError(
            code=ErrorCode.METADATA_STALE,
            context={"age_days": age.days, "max_age_days": max_age_days, "path": metadata.source},
        )


def build_model_pricing_context(models: Mapping[str, ModelMetadata]) -> str:
    """Pricing section of the judge prompt."""
    if not models:
        return "No pricing information available."

    lines = []
    for model_id, model in models.items():
        if model.pricing:
            p = model.pricing
            cost = (
                f"${p.average_cost_per_million_tokens:.2f}/1M tokens "
                f"(${p.input_cost_per_million_tokens:.2f} input, "
                f"${p.output_cost_per_million_tokens:.2f} output)"
            )
        else:
            cost = "pricing N/A"
        window = f"{model.context_window // 1000}K" if model.context_window else "N/A"
        lines.append(f"- **{model_id}** ({model.provider}): {cost} | Context: {window} tokens")
    return "\n".join(lines)


def build_tool_context(tool_name: str, tools: Mapping[str, ToolMetadata]) -> str:
    """Tool description section of the judge prompt."""
    tool = tools.get(tool_name)
    if tool is None:
        return f"No metadata available for tool: {tool_name}"

    parts = [
        f"**{tool.name}**: {tool.description}",
        f"**Primary Function**: {tool.primary_function or 'N/A'}",
    ]
    if tool.test_timeout:
        parts.append(f"**Test Timeout Constraint**: {tool.test_timeout}")
    if tool.success_criteria:
        parts.append("**Success Criteria**:\n" + "\n".join(f"- {c}" for c in tool.success_criteria))
    if tool.model_requirements:
        parts.append(
            "**Model Requirements**:\n"
            + "\n".join(f"- **{k}**: {v}" for k, v in tool.model_requirements.items())
        )
    parts.append(
        "When a model failed, judge whether it hit the timeout constraint; a timeout "
        "is a reliability failure, not evidence about answer quality."
    )
    return "\n\n".join(parts)
