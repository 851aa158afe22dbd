"""Judge creation from explicit configuration."""

from tribunal.foundation.config import JudgeConfig
from tribunal.foundation.errors import ErrorCode, config_error
from tribunal.models.protocol import ModelProtocol


def create_judge(config: JudgeConfig) -> ModelProtocol:
    """Create the judge model named by `config`.

    Raises:
        TribunalError: If the provider is unknown
    """
    if config.provider == "mock":
        from tribunal.models.mock import MockModel

        return MockModel()

    elif config.provider == "anthropic":
        from tribunal.models.anthropic import AnthropicModel

        return AnthropicModel(
            model=config.model,
            api_key=config.api_key,
            max_tokens=config.max_tokens,
        )

    elif config.provider == "openai":
        from tribunal.models.openai import OpenAIModel

        return OpenAIModel(model=config.model, api_key=config.api_key)

    raise config_error(
        ErrorCode.CONFIG_INVALID,
        key="judge.provider",
        detail=f"unknown provider '{config.provider}' (available: anthropic, openai, mock)",
    )
