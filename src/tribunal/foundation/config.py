"""Tribunal configuration management.

Loads configuration from .tribunal/config.yaml with sensible defaults.
All settings can be overridden via environment variables (TRIBUNAL_*).

Config locations (in priority order):
1. Explicit path passed to load_config()
2. .tribunal/config.yaml (project-local)
3. ~/.tribunal/config.yaml (user-global)
4. Built-in defaults

Only the CLI reads the process-wide config. Pipeline components receive a
TribunalConfig value at construction.
"""


import logging
import os
import threading
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from tribunal.foundation.errors import ErrorCode, config_error

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class JudgeConfig:
    """Which model grades the comparisons, and how."""

    provider: str = "anthropic"
    """Judge provider: 'anthropic' or 'openai'."""

    model: str = "claude-sonnet-4-20250514"

    api_key_env: str = "ANTHROPIC_API_KEY"
    """Name of the environment variable holding the judge API key."""

    temperature: float = 0.1

    max_tokens: int = 4000

    @property
    def api_key(self) -> str | None:
        return os.environ.get(self.api_key_env)


@dataclass(frozen=True, slots=True)
class PathsConfig:
    """Where datasets are read from and reports are written to."""

    datasets_dir: str = "eval/datasets"
    reports_dir: str = "eval/analysis/individual"
    platform_dir: str = "eval/analysis/platform"
    metadata_file: str = "eval/model-metadata.json"


@dataclass(frozen=True, slots=True)
class DatasetConfig:
    sdk_markers: tuple[str, ...] = ("vercel",)
    """Filename tokens separating the scenario id from the model id."""


@dataclass(frozen=True, slots=True)
class EvaluationConfig:
    metadata_max_age_days: int = 30
    default_confidence: float = 0.9


@dataclass(frozen=True, slots=True)
class TribunalConfig:
    """Root configuration for Tribunal."""

    judge: JudgeConfig = field(default_factory=JudgeConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)
    datasets: DatasetConfig = field(default_factory=DatasetConfig)
    evaluation: EvaluationConfig = field(default_factory=EvaluationConfig)


# Global config instance (lazy-loaded, thread-safe)
_config: TribunalConfig | None = None
_config_lock = threading.Lock()

_SECTIONS = ("judge", "paths", "datasets", "evaluation")


def _deep_update(base: dict, updates: dict) -> dict:
    """Recursively update a dict with another dict."""
    for key, value in updates.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_update(base[key], value)
        else:
            base[key] = value
    return base


def _coerce(value: str) -> Any:
    """Coerce an environment string to bool, int, float, or leave as str."""
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    if value.isdigit() or (value.startswith("-") and value[1:].isdigit()):
        return int(value)
    try:
        return float(value)
    except ValueError:
        return value


def _apply_env_overrides(config_dict: dict, environ: dict[str, str] | None = None) -> dict:
    """Apply environment variable overrides.

    Environment variables follow pattern: TRIBUNAL_SECTION_KEY

    Examples:
        TRIBUNAL_JUDGE_MODEL=gpt-4o
        TRIBUNAL_JUDGE_PROVIDER=openai
        TRIBUNAL_PATHS_DATASETS_DIR=/data/eval
        TRIBUNAL_DATASETS_SDK_MARKERS=vercel,native
    """
    prefix = "TRIBUNAL_"
    env = os.environ if environ is None else environ

    for key, value in env.items():
        if not key.startswith(prefix):
            continue

        path_str = key[len(prefix):].lower()
        section = next((s for s in _SECTIONS if path_str.startswith(s + "_")), None)
        if section is None:
            continue

        option = path_str[len(section) + 1:]
        if option not in config_dict[section]:
            logger.debug("Ignoring unknown config override %s", key)
            continue

        if option == "sdk_markers":
            config_dict[section][option] = [m.strip() for m in value.split(",") if m.strip()]
        else:
            config_dict[section][option] = _coerce(value)

    return config_dict


def _dict_to_config(data: dict) -> TribunalConfig:
    """Convert a dict to TribunalConfig."""
    try:
        datasets_data = dict(data.get("datasets", {}))
        if "sdk_markers" in datasets_data:
            datasets_data["sdk_markers"] = tuple(datasets_data["sdk_markers"])

        return TribunalConfig(
            judge=JudgeConfig(**data.get("judge", {})),
            paths=PathsConfig(**data.get("paths", {})),
            datasets=DatasetConfig(**datasets_data),
            evaluation=EvaluationConfig(**data.get("evaluation", {})),
        )
    except TypeError as e:
        raise config_error(ErrorCode.CONFIG_INVALID, key="config", detail=str(e)) from e


def load_config(path: str | Path | None = None) -> TribunalConfig:
    """Load configuration from file with defaults and env overrides.

    Priority (highest to lowest):
    1. Environment variables (TRIBUNAL_*)
    2. Explicit path if provided
    3. .tribunal/config.yaml (project-local)
    4. ~/.tribunal/config.yaml (user-global)
    5. Built-in defaults
    """
    global _config

    defaults = TribunalConfig()
    config_dict: dict[str, Any] = {
        section: asdict(getattr(defaults, section)) for section in _SECTIONS
    }

    config_paths = []
    if path:
        config_paths.append(Path(path))
    config_paths.extend([
        Path(".tribunal/config.yaml"),
        Path.home() / ".tribunal" / "config.yaml",
    ])

    for config_path in config_paths:
        if config_path.exists():
            try:
                with open(config_path) as f:
                    file_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise config_error(
                    ErrorCode.CONFIG_INVALID, key=str(config_path), detail=str(e)
                ) from e
            _deep_update(config_dict, file_config)
            logger.debug("Loaded config from %s", config_path)
            break

    config_dict = _apply_env_overrides(config_dict)

    _config = _dict_to_config(config_dict)
    return _config


def get_config() -> TribunalConfig:
    """Get the current configuration, loading if needed.

    Thread-safe with double-check locking.
    """
    global _config

    if _config is not None:
        return _config

    with _config_lock:
        if _config is None:
            _config = load_config()
        return _config


def reset_config() -> None:
    """Reset the global config (useful for testing)."""
    global _config
    with _config_lock:
        _config = None
