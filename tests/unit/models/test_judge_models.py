"""Tests for the judge protocol, mock judge, and factory."""

import pytest

from tribunal.foundation.config import JudgeConfig
from tribunal.foundation.errors import ErrorCode, TribunalError
from tribunal.models.anthropic import AnthropicModel
from tribunal.models.factory import create_judge
from tribunal.models.mock import MockModel
from tribunal.models.openai import OpenAIModel
from tribunal.models.protocol import ModelProtocol, sanitize_llm_content


class TestSanitize:
    def test_strips_control_characters(self):
        assert sanitize_llm_content("ok\x00\x07 fine\n\ttab") == "ok fine\n\ttab"

    def test_none_passthrough(self):
        assert sanitize_llm_content(None) is None


class TestMockModel:
    def test_satisfies_protocol(self):
        assert isinstance(MockModel(), ModelProtocol)

    @pytest.mark.asyncio
    async def test_responses_cycle(self):
        model = MockModel(responses=["first", "second"])
        texts = [(await model.generate(f"prompt {i}")).text for i in range(3)]

        assert texts == ["first", "second", "first"]
        assert model.call_count == 3
        assert model.prompts == ["prompt 0", "prompt 1", "prompt 2"]

    @pytest.mark.asyncio
    async def test_scripted_exception_is_raised(self):
        model = MockModel(responses=[TribunalError(code=ErrorCode.MODEL_TIMEOUT)])
        with pytest.raises(TribunalError) as exc_info:
            await model.generate("anything")
        assert exc_info.value.code == ErrorCode.MODEL_TIMEOUT

    @pytest.mark.asyncio
    async def test_default_response_echoes_prompt(self):
        result = await MockModel().generate("Compare these two answers")
        assert "Compare these two answers" in result.text


class TestCreateJudge:
    def test_mock(self):
        assert isinstance(create_judge(JudgeConfig(provider="mock")), MockModel)

    def test_anthropic(self):
        judge = create_judge(JudgeConfig(provider="anthropic", model="claude-x", max_tokens=1234))
        assert isinstance(judge, AnthropicModel)
        assert judge.model_id == "claude-x"
        assert judge.max_tokens == 1234

    def test_openai(self):
        judge = create_judge(JudgeConfig(provider="openai", model="gpt-4o"))
        assert isinstance(judge, OpenAIModel)
        assert judge.model_id == "gpt-4o"

    def test_unknown_provider(self):
        with pytest.raises(TribunalError) as exc_info:
            create_judge(JudgeConfig(provider="ollama"))
        assert exc_info.value.code == ErrorCode.CONFIG_INVALID
        assert "ollama" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_missing_api_key_is_reported_on_first_use(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        judge = create_judge(JudgeConfig(provider="anthropic", api_key_env="ANTHROPIC_API_KEY"))
        with pytest.raises(TribunalError) as exc_info:
            await judge.generate("hello")
        assert exc_info.value.code == ErrorCode.CONFIG_ENV_MISSING
