"""Judge model adapters.

Provider SDKs are imported lazily by each adapter, so only the provider
actually configured needs to be installed.
"""

from tribunal.models.anthropic import AnthropicModel
from tribunal.models.factory import create_judge
from tribunal.models.mock import MockModel
from tribunal.models.openai import OpenAIModel
from tribunal.models.protocol import (
    GenerateOptions,
    GenerateResult,
    ModelProtocol,
    TokenUsage,
    sanitize_llm_content,
)

__all__ = [
    "AnthropicModel",
    "GenerateOptions",
    "GenerateResult",
    "MockModel",
    "ModelProtocol",
    "OpenAIModel",
    "TokenUsage",
    "create_judge",
    "sanitize_llm_content",
]
