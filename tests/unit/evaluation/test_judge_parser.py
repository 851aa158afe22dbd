"""Tests for strict judge response parsing."""

import json
from collections.abc import Callable

import pytest

from tribunal.evaluation.judge import (
    DEFAULT_COMMENT,
    ParsedError,
    ParsedOK,
    parse_judge_response,
)

MODELS = ("vercel_claude", "vercel_gpt", "vercel_gemini")


def payload(**overrides) -> str:
    data = {
        "ranking": [
            {"rank": 1, "model": "vercel_claude", "score": 0.9, "rationale": "thorough"},
            {"rank": 2, "model": "vercel_gpt", "score": 0.7},
        ],
        "confidence": 0.8,
        "overall_insights": "Claude found the root cause",
    }
    data.update(overrides)
    return json.dumps(data)


class TestParseOK:
    def test_fenced_response(self, make_response: Callable):
        text = make_response([("vercel_gpt", 0.8), ("vercel_claude", 0.6)])
        parsed = parse_judge_response(text, MODELS)

        assert isinstance(parsed, ParsedOK)
        assert [r.model for r in parsed.rankings] == ["vercel_gpt", "vercel_claude"]
        assert parsed.best_model == "vercel_gpt"
        assert parsed.score == 0.8
        assert parsed.confidence == 0.85

    def test_defaults(self):
        text = payload(confidence=None, overall_insights="")
        parsed = parse_judge_response(text, MODELS, default_confidence=0.9)

        assert isinstance(parsed, ParsedOK)
        assert parsed.confidence == 0.9
        assert parsed.comment == DEFAULT_COMMENT
        assert parsed.rankings[0].rationale == "thorough"
        assert parsed.rankings[1].rationale == ""

    def test_model_rankings_alias(self):
        data = json.loads(payload())
        data["model_rankings"] = data.pop("ranking")
        assert isinstance(parse_judge_response(json.dumps(data), MODELS), ParsedOK)

    def test_explicit_score_and_best_model(self):
        parsed = parse_judge_response(payload(score=0.75, best_model="vercel_gpt"), MODELS)
        assert isinstance(parsed, ParsedOK)
        assert parsed.score == 0.75
        assert parsed.best_model == "vercel_gpt"

    def test_ranks_are_renumbered_by_rank_order(self):
        ranking = [
            {"rank": 5, "model": "vercel_gpt", "score": 0.7},
            {"rank": 2, "model": "vercel_claude", "score": 0.9},
        ]
        parsed = parse_judge_response(payload(ranking=ranking), MODELS)
        assert isinstance(parsed, ParsedOK)
        assert [(r.rank, r.model) for r in parsed.rankings] == [(1, "vercel_claude"), (2, "vercel_gpt")]

    def test_missing_ranks_sort_by_score_then_scenario_order(self):
        ranking = [
            {"model": "vercel_gemini", "score": 0.5},
            {"model": "vercel_gpt", "score": 0.8},
            {"model": "vercel_claude", "score": 0.8},
        ]
        parsed = parse_judge_response(payload(ranking=ranking), MODELS)
        assert isinstance(parsed, ParsedOK)
        assert [r.model for r in parsed.rankings] == ["vercel_claude", "vercel_gpt", "vercel_gemini"]


class TestParseError:
    @pytest.mark.parametrize(
        ("text", "reason"),
        [
            ("The first model was better.", "no usable JSON"),
            (payload(ranking=[]), "non-empty list"),
            (payload(ranking=[{"model": "vercel_llama", "score": 0.5}]), "unknown model"),
            (payload(ranking=[{"model": "vercel_claude", "score": 1.5}]), "between 0 and 1"),
            (payload(ranking=[{"model": "vercel_claude", "score": "high"}]), "must be a number"),
            (payload(ranking=[{"model": "vercel_claude", "score": True}]), "must be a number"),
            (payload(confidence=2), "confidence"),
            (payload(best_model="vercel_gemini"), "best_model"),
            (payload(best_model=["vercel_claude"]), "model id string"),
            (payload(best_model={"model": "vercel_claude"}), "model id string"),
            (
                payload(ranking=[
                    {"model": "vercel_claude", "score": 0.5},
                    {"model": "vercel_claude", "score": 0.4},
                ]),
                "more than once",
            ),
            (payload(ranking=[{"rank": "first", "model": "vercel_claude", "score": 0.5}]), "integer"),
        ],
    )
    def test_rejected(self, text: str, reason: str):
        parsed = parse_judge_response(text, MODELS)
        assert isinstance(parsed, ParsedError)
        assert reason in parsed.reason
