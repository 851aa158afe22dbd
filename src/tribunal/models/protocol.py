"""Model protocol - provider-agnostic judge interface.

The pipeline treats the judge as a black box `prompt -> text`. Adapters
translate provider exceptions into TribunalError so callers can catch a
single error family.
"""

import logging
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


def sanitize_llm_content(text: str | None) -> str | None:
    """Remove control characters from LLM output.

    Preserves newlines, carriage returns, and tabs which are valid
    in JSON strings.
    """
    if text is None:
        return None

    sanitized = "".join(c for c in text if not (ord(c) < 32 and c not in "\n\r\t"))

    if len(sanitized) != len(text):
        logger.debug(
            "Sanitized %d control chars from LLM output", len(text) - len(sanitized)
        )

    return sanitized


# =============================================================================
# Generation Options & Results
# =============================================================================


@dataclass(frozen=True, slots=True)
class GenerateOptions:
    """Options for model generation."""

    temperature: float = 0.7
    max_tokens: int | None = None
    system_prompt: str | None = None


@dataclass(frozen=True, slots=True)
class TokenUsage:
    """Token usage statistics."""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass(frozen=True, slots=True)
class GenerateResult:
    """Result from model generation."""

    content: str | None
    model: str
    usage: TokenUsage | None = None
    finish_reason: str | None = None

    @property
    def text(self) -> str:
        """Get content as string, defaulting to empty string."""
        return self.content or ""


# =============================================================================
# Model Protocol
# =============================================================================


@runtime_checkable
class ModelProtocol(Protocol):
    """Protocol for judge providers.

    Implementations: AnthropicModel, OpenAIModel, MockModel.
    """

    @property
    def model_id(self) -> str:
        """The model identifier (e.g., 'gpt-4o', 'claude-sonnet-4-20250514')."""
        ...

    async def generate(
        self,
        prompt: str,
        *,
        options: GenerateOptions | None = None,
    ) -> GenerateResult:
        """Generate a response for a single rendered prompt.

        Raises:
            TribunalError: On any provider failure (auth, rate limit, timeout...)
        """
        ...
