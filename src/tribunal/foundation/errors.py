"""Tribunal Error System.

Provides structured error handling with:
- Numeric error codes for programmatic handling
- User-friendly messages
- Recovery hints for operators
- Context for debugging

The four pipeline failure modes each get their own subclass so callers can
decide locally whether a failure is fatal (dataset integrity), recoverable
per scenario (scenario evaluation), or degraded into a placeholder result
(pipeline initialization).
"""


from enum import IntEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from tribunal.evaluation.types import ComparativeEvaluationScore


class ErrorCode(IntEnum):
    """Numeric error codes organized by category.

    Format: XYYY where X = category, YYY = specific error

    Categories:
        1xxx - Judge/Model errors
        2xxx - Dataset errors
        3xxx - Evaluation errors
        4xxx - Synthesis errors
        5xxx - Configuration errors
        7xxx - IO errors
    """

    # 1xxx - Judge/Model Errors
    MODEL_AUTH_FAILED = 1002
    MODEL_RATE_LIMITED = 1003
    MODEL_CONTEXT_EXCEEDED = 1004
    MODEL_TIMEOUT = 1005
    MODEL_API_ERROR = 1006
    MODEL_PROVIDER_UNAVAILABLE = 1009
    MODEL_RESPONSE_INVALID = 1010

    # 2xxx - Dataset Errors
    DATASET_NOT_FOUND = 2001
    DATASET_MALFORMED_LINE = 2002
    DATASET_DUPLICATE_MODEL = 2003
    DATASET_INVALID_FIELD = 2004

    # 3xxx - Evaluation Errors
    SCENARIO_JUDGE_FAILED = 3001
    SCENARIO_PARSE_FAILED = 3002
    DISCOVERY_FAILED = 3101
    METADATA_STALE = 3102
    METADATA_INVALID = 3103

    # 4xxx - Synthesis Errors
    SYNTHESIS_NO_RESULTS = 4001
    SYNTHESIS_RESULTS_INVALID = 4002
    SYNTHESIS_NARRATIVE_FAILED = 4003
    SYNTHESIS_GRAPH_FAILED = 4004

    # 5xxx - Configuration Errors
    CONFIG_INVALID = 5002
    CONFIG_ENV_MISSING = 5003

    # 7xxx - IO Errors
    FILE_NOT_FOUND = 7003
    FILE_WRITE_FAILED = 7005

    @property
    def category(self) -> str:
        """Get the error category name."""
        prefix = self.value // 1000
        return {
            1: "model",
            2: "dataset",
            3: "evaluation",
            4: "synthesis",
            5: "config",
            7: "io",
        }.get(prefix, "unknown")

    @property
    def is_recoverable(self) -> bool:
        """Whether this error type is typically recoverable."""
        non_recoverable = {
            ErrorCode.MODEL_AUTH_FAILED,
            ErrorCode.CONFIG_INVALID,
            ErrorCode.CONFIG_ENV_MISSING,
            ErrorCode.DATASET_MALFORMED_LINE,
            ErrorCode.DATASET_DUPLICATE_MODEL,
        }
        return self not in non_recoverable


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    # Model errors
    ErrorCode.MODEL_AUTH_FAILED: "Authentication failed for {provider}. Check your API key.",
    ErrorCode.MODEL_RATE_LIMITED: "Rate limited by {provider}. Retry after {retry_after}s.",
    ErrorCode.MODEL_CONTEXT_EXCEEDED: "Judge prompt exceeds the context window of '{model}'.",
    ErrorCode.MODEL_TIMEOUT: "Request to {provider} timed out.",
    ErrorCode.MODEL_API_ERROR: "API error from {provider}: {detail}",
    ErrorCode.MODEL_PROVIDER_UNAVAILABLE: "Provider '{provider}' is unavailable.",
    ErrorCode.MODEL_RESPONSE_INVALID: "Invalid response from judge: {detail}",

    # Dataset errors
    ErrorCode.DATASET_NOT_FOUND: "Dataset not found: {path}",
    ErrorCode.DATASET_MALFORMED_LINE: "{path}:{line}: {detail}",
    ErrorCode.DATASET_DUPLICATE_MODEL: (
        "Model '{model}' appears more than once in scenario '{scenario}' ({path}:{line})"
    ),
    ErrorCode.DATASET_INVALID_FIELD: "{path}:{line}: invalid field '{field}': {detail}",

    # Evaluation errors
    ErrorCode.SCENARIO_JUDGE_FAILED: "Judge call failed for scenario '{scenario}': {detail}",
    ErrorCode.SCENARIO_PARSE_FAILED: "Unusable judge response for scenario '{scenario}': {detail}",
    ErrorCode.DISCOVERY_FAILED: "Scenario discovery failed for tool '{tool}': {detail}",
    ErrorCode.METADATA_STALE: "Model metadata is {age_days} days old (limit {max_age_days}).",
    ErrorCode.METADATA_INVALID: "Invalid model metadata at {path}: {detail}",

    # Synthesis errors
    ErrorCode.SYNTHESIS_NO_RESULTS: "No evaluation results found in {path}",
    ErrorCode.SYNTHESIS_RESULTS_INVALID: "Invalid evaluation results in {path}: {detail}",
    ErrorCode.SYNTHESIS_NARRATIVE_FAILED: "Narrative synthesis failed: {detail}",
    ErrorCode.SYNTHESIS_GRAPH_FAILED: "Graph '{graph}' failed: {detail}",

    # Config errors
    ErrorCode.CONFIG_INVALID: "Invalid configuration for '{key}': {detail}",
    ErrorCode.CONFIG_ENV_MISSING: "Environment variable '{var}' not set.",

    # IO errors
    ErrorCode.FILE_NOT_FOUND: "File not found: {path}",
    ErrorCode.FILE_WRITE_FAILED: "Failed to write file: {path}",
}


RECOVERY_HINTS: dict[ErrorCode, list[str]] = {
    ErrorCode.MODEL_AUTH_FAILED: [
        "Set the API key environment variable ({env_var})",
        "Check that the key is valid and has access to the judge model",
    ],
    ErrorCode.MODEL_RATE_LIMITED: [
        "Wait {retry_after} seconds before retrying",
        "Run fewer evaluation types per invocation",
    ],
    ErrorCode.DATASET_MALFORMED_LINE: [
        "Fix or remove the offending line, then rerun",
    ],
    ErrorCode.DATASET_DUPLICATE_MODEL: [
        "Remove the stale recording for this model and scenario",
        "Re-record the scenario so each model contributes exactly once",
    ],
    ErrorCode.METADATA_STALE: [
        "Refresh model pricing and capabilities in {path}",
        "Pass --allow-stale-metadata to continue anyway",
    ],
    ErrorCode.SYNTHESIS_NO_RESULTS: [
        "Run 'tribunal evaluate' first to produce per-tool results",
    ],
    ErrorCode.CONFIG_ENV_MISSING: [
        "Set the environment variable: export {var}=<value>",
        "Add it to .tribunal/config.yaml under judge",
    ],
}


class TribunalError(Exception):
    """Base error type for all Tribunal errors.

    Example:
        >>> err = TribunalError(
        ...     code=ErrorCode.DATASET_NOT_FOUND,
        ...     context={"path": "eval/datasets/remediate.jsonl"},
        ... )
        >>> print(err)
        [TB-2001] Dataset not found: eval/datasets/remediate.jsonl
    """

    def __init__(
        self,
        code: ErrorCode,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        self.code = code
        self.context = context or {}
        self.cause = cause
        super().__init__(str(self))

    @property
    def message(self) -> str:
        """Get the formatted user-friendly message."""
        template = ERROR_MESSAGES.get(self.code, "An error occurred: {detail}")
        try:
            return template.format(**self.context)
        except KeyError:
            return template

    @property
    def recovery_hints(self) -> list[str]:
        """Get recovery suggestions for this error."""
        formatted = []
        for hint in RECOVERY_HINTS.get(self.code, []):
            try:
                formatted.append(hint.format(**self.context))
            except KeyError:
                formatted.append(hint)
        return formatted

    @property
    def is_recoverable(self) -> bool:
        return self.code.is_recoverable

    @property
    def category(self) -> str:
        return self.code.category

    @property
    def error_id(self) -> str:
        """Get the error ID string (e.g., 'TB-2002')."""
        return f"TB-{self.code.value}"

    def __str__(self) -> str:
        return f"[{self.error_id}] {self.message}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, context={self.context!r})"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dict for logging and JSON reports."""
        return {
            "error_id": self.error_id,
            "code": self.code.value,
            "category": self.category,
            "message": self.message,
            "recoverable": self.is_recoverable,
            "recovery_hints": self.recovery_hints,
            "context": self.context,
        }


class DatasetIntegrityError(TribunalError):
    """A dataset line is malformed or a scenario holds a duplicate model.

    Never repaired silently: fatal to the load or grouping step.
    """


class ScenarioEvaluationError(TribunalError):
    """Judging a single scenario failed.

    Carries the degraded score that stands in for the scenario so callers
    that report every attempted scenario can still do so.
    """

    def __init__(
        self,
        code: ErrorCode,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
        degraded: "ComparativeEvaluationScore | None" = None,
    ):
        self.degraded = degraded
        super().__init__(code, context, cause)

    @property
    def scenario_id(self) -> str:
        return str(self.context.get("scenario", ""))


class PipelineInitializationError(TribunalError):
    """Scenario discovery or metadata validation failed before evaluation."""


class SynthesisError(TribunalError):
    """Graph generation or narrative synthesis failed."""


# Convenience factory functions

def dataset_error(
    code: ErrorCode,
    path: str,
    line: int | None = None,
    detail: str = "",
    cause: Exception | None = None,
    **extra: Any,
) -> DatasetIntegrityError:
    """Create a dataset integrity error with line position."""
    return DatasetIntegrityError(
        code=code,
        context={"path": path, "line": line, "detail": detail, **extra},
        cause=cause,
    )


def scenario_error(
    code: ErrorCode,
    scenario: str,
    detail: str = "",
    cause: Exception | None = None,
    degraded: "ComparativeEvaluationScore | None" = None,
) -> ScenarioEvaluationError:
    """Create a per-scenario evaluation error."""
    return ScenarioEvaluationError(
        code=code,
        context={"scenario": scenario, "detail": detail},
        cause=cause,
        degraded=degraded,
    )


def config_error(
    code: ErrorCode,
    key: str = "",
    var: str = "",
    detail: str = "",
) -> TribunalError:
    """Create a configuration error."""
    return TribunalError(
        code=code,
        context={"key": key, "var": var, "detail": detail},
    )


# Error translation from external exceptions

def from_openai_error(exc: Exception, model: str, provider: str = "openai") -> TribunalError:
    """Translate OpenAI client exceptions to TribunalError."""
    exc_type = type(exc).__name__
    message = str(exc)

    if "rate_limit" in exc_type.lower() or "rate limit" in message.lower():
        return TribunalError(
            code=ErrorCode.MODEL_RATE_LIMITED,
            context={"model": model, "provider": provider, "retry_after": 60},
            cause=exc,
        )

    if "auth" in exc_type.lower() or "401" in message:
        return TribunalError(
            code=ErrorCode.MODEL_AUTH_FAILED,
            context={"model": model, "provider": provider, "env_var": f"{provider.upper()}_API_KEY"},
            cause=exc,
        )

    if "context" in message.lower() and ("exceeded" in message.lower() or "too long" in message.lower()):
        return TribunalError(
            code=ErrorCode.MODEL_CONTEXT_EXCEEDED,
            context={"model": model, "provider": provider},
            cause=exc,
        )

    if "timeout" in exc_type.lower() or "timeout" in message.lower():
        return TribunalError(
            code=ErrorCode.MODEL_TIMEOUT,
            context={"model": model, "provider": provider},
            cause=exc,
        )

    if "connection" in message.lower() or "unreachable" in message.lower():
        return TribunalError(
            code=ErrorCode.MODEL_PROVIDER_UNAVAILABLE,
            context={"model": model, "provider": provider},
            cause=exc,
        )

    return TribunalError(
        code=ErrorCode.MODEL_API_ERROR,
        context={"model": model, "provider": provider, "detail": message},
        cause=exc,
    )


def from_anthropic_error(exc: Exception, model: str) -> TribunalError:
    """Translate Anthropic client exceptions to TribunalError."""
    exc_type = type(exc).__name__
    message = str(exc)
    provider = "anthropic"

    if "rate" in exc_type.lower() or "rate limit" in message.lower():
        return TribunalError(
            code=ErrorCode.MODEL_RATE_LIMITED,
            context={"model": model, "provider": provider, "retry_after": 60},
            cause=exc,
        )

    if "auth" in exc_type.lower() or "401" in message or "invalid api key" in message.lower():
        return TribunalError(
            code=ErrorCode.MODEL_AUTH_FAILED,
            context={"model": model, "provider": provider, "env_var": "ANTHROPIC_API_KEY"},
            cause=exc,
        )

    if "overloaded" in message.lower():
        return TribunalError(
            code=ErrorCode.MODEL_PROVIDER_UNAVAILABLE,
            context={"model": model, "provider": provider},
            cause=exc,
        )

    if "context" in message.lower() or "too many tokens" in message.lower():
        return TribunalError(
            code=ErrorCode.MODEL_CONTEXT_EXCEEDED,
            context={"model": model, "provider": provider},
            cause=exc,
        )

    if "timeout" in exc_type.lower() or "timeout" in message.lower():
        return TribunalError(
            code=ErrorCode.MODEL_TIMEOUT,
            context={"model": model, "provider": provider},
            cause=exc,
        )

    return TribunalError(
        code=ErrorCode.MODEL_API_ERROR,
        context={"model": model, "provider": provider, "detail": message},
        cause=exc,
    )
