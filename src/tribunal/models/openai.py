"""OpenAI judge adapter."""


from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tribunal.foundation.errors import ErrorCode, TribunalError, from_openai_error
from tribunal.models.protocol import (
    GenerateOptions,
    GenerateResult,
    TokenUsage,
    sanitize_llm_content,
)

if TYPE_CHECKING:
    from openai import AsyncOpenAI


@dataclass(slots=True)
class OpenAIModel:
    """OpenAI GPT model adapter.

    Requires: pip install openai
    """

    model: str = "gpt-4o"
    api_key: str | None = None
    _client: "AsyncOpenAI | None" = field(default=None, init=False)

    @property
    def model_id(self) -> str:
        return self.model

    def _get_client(self) -> "AsyncOpenAI":
        """Get or create the OpenAI client."""
        if self._client is None:
            try:
                from openai import AsyncOpenAI
            except ImportError as e:
                raise ImportError(
                    "OpenAI not installed. Run: pip install openai"
                ) from e

            # Check for API key before creating the client (gives a clear error)
            if not self.api_key:
                raise TribunalError(
                    code=ErrorCode.CONFIG_ENV_MISSING,
                    context={"var": "OPENAI_API_KEY", "provider": "openai"},
                )

            try:
                self._client = AsyncOpenAI(api_key=self.api_key)
            except Exception as e:
                raise from_openai_error(e, self.model) from e

        return self._client

    async def generate(
        self,
        prompt: str,
        *,
        options: GenerateOptions | None = None,
    ) -> GenerateResult:
        """Generate a response using the chat completions API."""
        client = self._get_client()
        opts = options or GenerateOptions()

        messages = []
        if opts.system_prompt:
            messages.append({"role": "system", "content": opts.system_prompt})
        messages.append({"role": "user", "content": prompt})

        kwargs: dict = {
            "model": self.model,
            "messages": messages,
            "temperature": opts.temperature,
        }
        if opts.max_tokens:
            kwargs["max_tokens"] = opts.max_tokens

        try:
            response = await client.chat.completions.create(**kwargs)
        except Exception as e:
            raise from_openai_error(e, self.model) from e

        choice = response.choices[0]
        usage = None
        if response.usage:
            usage = TokenUsage(
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            )

        return GenerateResult(
            content=sanitize_llm_content(choice.message.content),
            model=response.model,
            usage=usage,
            finish_reason=choice.finish_reason,
        )
