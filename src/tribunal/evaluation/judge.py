"""Strict parsing of judge responses.

The judge returns free-form text that should contain one JSON object. This
module is the trust boundary: it either produces a fully validated
ParsedOK or a ParsedError naming what was wrong. Nothing downstream looks at
the raw text.
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from tribunal.evaluation.types import ModelRanking
from tribunal.foundation.serialization import extract_json_object

logger = logging.getLogger(__name__)

DEFAULT_COMMENT = "Comparative evaluation completed"


@dataclass(frozen=True, slots=True)
class ParsedOK:
    """A judge response that passed validation."""

    rankings: tuple[ModelRanking, ...]
    best_model: str
    score: float
    confidence: float
    comment: str


@dataclass(frozen=True, slots=True)
class ParsedError:
    """A judge response that could not be used."""

    reason: str


ParsedJudgment = ParsedOK | ParsedError


class _Invalid(Exception):
    pass


def _unit_interval(value: Any, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise _Invalid(f"{field_name} must be a number, got {value!r}")
    if not 0.0 <= float(value) <= 1.0:
        raise _Invalid(f"{field_name} must be between 0 and 1, got {value}")
    return float(value)


def _parse_rankings(entries: Any, scenario_models: Sequence[str]) -> tuple[ModelRanking, ...]:
    if not isinstance(entries, list) or not entries:
        raise _Invalid("ranking must be a non-empty list")

    order = {model: i for i, model in enumerate(scenario_models)}
    parsed: list[tuple[int | None, float, str, str]] = []
    seen: set[str] = set()

    for i, entry in enumerate(entries):
        if not isinstance(entry, Mapping):
            raise _Invalid(f"ranking[{i}] must be an object")
        model = entry.get("model")
        if not isinstance(model, str) or model not in order:
            raise _Invalid(f"ranking[{i}] names unknown model {model!r}")
        if model in seen:
            raise _Invalid(f"model {model!r} ranked more than once")
        seen.add(model)

        rank = entry.get("rank")
        if rank is not None and (isinstance(rank, bool) or not isinstance(rank, int)):
            raise _Invalid(f"ranking[{i}].rank must be an integer")
        score = _unit_interval(entry.get("score"), f"ranking[{i}].score")
        rationale = entry.get("rationale") or ""
        parsed.append((rank, score, model, str(rationale)))

    # Undistinguished models keep their order of appearance in the scenario
    if all(rank is not None for rank, _, _, _ in parsed):
        parsed.sort(key=lambda p: (p[0], order[p[2]]))
    else:
        parsed.sort(key=lambda p: (-p[1], order[p[2]]))

    return tuple(
        ModelRanking(rank=position, model=model, score=score, rationale=rationale)
        for position, (_, score, model, rationale) in enumerate(parsed, start=1)
    )


def parse_judge_response(
    text: str,
    scenario_models: Sequence[str],
    *,
    default_confidence: float = 0.9,
) -> ParsedJudgment:
    """Validate a judge response against the models of its scenario.

    Accepts the ranking under ``ranking`` or ``model_rankings``. The overall
    score defaults to the top-ranked model's score; best_model defaults to
    the top-ranked model.
    """
    try:
        data = extract_json_object(text)
    except ValueError as e:
        return ParsedError(reason=f"no usable JSON: {e}")

    try:
        entries = data.get("ranking", data.get("model_rankings"))
        rankings = _parse_rankings(entries, scenario_models)

        score = rankings[0].score
        if data.get("score") is not None:
            score = _unit_interval(data["score"], "score")

        confidence = default_confidence
        if data.get("confidence") is not None:
            confidence = _unit_interval(data["confidence"], "confidence")

        best_model = rankings[0].model
        if data.get("best_model") is not None:
            best_model = data["best_model"]
            if not isinstance(best_model, str):
                raise _Invalid(f"best_model must be a model id string, got {best_model!r}")
            if best_model not in {r.model for r in rankings}:
                raise _Invalid(f"best_model {best_model!r} is not among the ranked models")

        comment = data.get("overall_insights")
        if not isinstance(comment, str) or not comment.strip():
            comment = DEFAULT_COMMENT
    except _Invalid as e:
        return ParsedError(reason=str(e))

    return ParsedOK(
        rankings=rankings,
        best_model=best_model,
        score=score,
        confidence=confidence,
        comment=comment,
    )
