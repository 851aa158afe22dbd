"""Foundation - config, errors, logging, and serialization.

Everything else in tribunal imports from here; nothing here imports from
the evaluation or synthesis packages at runtime.
"""

from tribunal.foundation.config import (
    DatasetConfig,
    EvaluationConfig,
    JudgeConfig,
    PathsConfig,
    TribunalConfig,
    get_config,
    load_config,
    reset_config,
)
from tribunal.foundation.errors import (
    DatasetIntegrityError,
    ErrorCode,
    PipelineInitializationError,
    ScenarioEvaluationError,
    SynthesisError,
    TribunalError,
    from_anthropic_error,
    from_openai_error,
)
from tribunal.foundation.logging import configure_logging

__all__ = [
    # Config
    "DatasetConfig",
    "EvaluationConfig",
    "JudgeConfig",
    "PathsConfig",
    "TribunalConfig",
    "get_config",
    "load_config",
    "reset_config",
    # Errors
    "DatasetIntegrityError",
    "ErrorCode",
    "PipelineInitializationError",
    "ScenarioEvaluationError",
    "SynthesisError",
    "TribunalError",
    "from_anthropic_error",
    "from_openai_error",
    # Logging
    "configure_logging",
]
