"""Anthropic (Claude) judge adapter."""


from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tribunal.foundation.errors import ErrorCode, TribunalError, from_anthropic_error
from tribunal.models.protocol import (
    GenerateOptions,
    GenerateResult,
    TokenUsage,
    sanitize_llm_content,
)

if TYPE_CHECKING:
    from anthropic import AsyncAnthropic


@dataclass
class AnthropicModel:
    """Anthropic Claude model adapter.

    Requires: pip install anthropic
    """

    model: str = "claude-sonnet-4-20250514"
    api_key: str | None = None
    max_tokens: int = 4096
    _client: "AsyncAnthropic | None" = field(default=None, init=False)

    @property
    def model_id(self) -> str:
        return self.model

    def _get_client(self) -> "AsyncAnthropic":
        """Get or create the Anthropic client."""
        if self._client is None:
            try:
                from anthropic import AsyncAnthropic
            except ImportError as e:
                raise ImportError(
                    "Anthropic not installed. Run: pip install anthropic"
                ) from e

            if not self.api_key:
                raise TribunalError(
                    code=ErrorCode.CONFIG_ENV_MISSING,
                    context={"var": "ANTHROPIC_API_KEY", "provider": "anthropic"},
                )

            self._client = AsyncAnthropic(api_key=self.api_key)
        return self._client

    async def generate(
        self,
        prompt: str,
        *,
        options: GenerateOptions | None = None,
    ) -> GenerateResult:
        """Generate a response using Claude."""
        client = self._get_client()
        opts = options or GenerateOptions()

        kwargs: dict = {
            "model": self.model,
            "max_tokens": opts.max_tokens or self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": opts.temperature,
        }
        if opts.system_prompt:
            kwargs["system"] = opts.system_prompt

        try:
            response = await client.messages.create(**kwargs)
        except Exception as e:
            raise from_anthropic_error(e, self.model) from e

        text_parts = [block.text for block in response.content if block.type == "text"]

        return GenerateResult(
            content=sanitize_llm_content("".join(text_parts)),
            model=response.model,
            usage=TokenUsage(
                prompt_tokens=response.usage.input_tokens,
                completion_tokens=response.usage.output_tokens,
                total_tokens=response.usage.input_tokens + response.usage.output_tokens,
            ),
            finish_reason=response.stop_reason,
        )
