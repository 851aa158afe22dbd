"""Mock judge for testing and dry runs."""


from dataclasses import dataclass, field

from tribunal.models.protocol import (
    GenerateOptions,
    GenerateResult,
    TokenUsage,
    sanitize_llm_content,
)


@dataclass(slots=True)
class MockModel:
    """Mock judge returning scripted responses.

    Each entry in `responses` is either a string (returned as the judge's
    text) or an exception instance (raised from generate). Responses cycle
    when exhausted.
    """

    responses: list[str | Exception] = field(default_factory=list)
    _call_count: int = field(default=0, init=False)
    _prompts: list[str] = field(default_factory=list, init=False)

    @property
    def model_id(self) -> str:
        return "mock-model"

    @property
    def call_count(self) -> int:
        """Number of times generate was called."""
        return self._call_count

    @property
    def prompts(self) -> list[str]:
        """All prompts received."""
        return self._prompts

    async def generate(
        self,
        prompt: str,
        *,
        options: GenerateOptions | None = None,
    ) -> GenerateResult:
        """Generate a mock response."""
        self._prompts.append(prompt)
        self._call_count += 1

        if self.responses:
            response = self.responses[(self._call_count - 1) % len(self.responses)]
        else:
            response = f"Mock response to: {prompt[:50]}..."

        if isinstance(response, Exception):
            raise response

        return GenerateResult(
            content=sanitize_llm_content(response),
            model=self.model_id,
            usage=TokenUsage(
                prompt_tokens=len(prompt.split()),
                completion_tokens=len(response.split()),
                total_tokens=len(prompt.split()) + len(response.split()),
            ),
            finish_reason="stop",
        )
