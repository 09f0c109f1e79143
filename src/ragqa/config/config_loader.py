"""
Configuration loader for the question-answering pipeline.

Precedence (lowest to highest): dataclass defaults, YAML file, environment
variables. Command-line flags are applied on top by the CLI.

Example YAML:

    pipeline:
      embedding_model: text-embedding-ada-002
      completion_model: gpt-3.5-turbo
      token_budget: 4000
      min_passage_length: 128
      batch_size: 1000
      corpus_name: Forthright
    provider:
      provider: openai
      timeout_seconds: 120
    retry:
      max_attempts: 3
"""

import logging
import os
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from ..core.exceptions import ConfigError
from ..core.types import SUPPORTED_PROVIDERS, ProviderConfig, RagConfig
from ..utils.retry import RetryConfig


logger = logging.getLogger(__name__)

# Environment variable -> (section, key, type)
ENV_OVERRIDES = {
    "RAGQA_EMBEDDING_MODEL": ("pipeline", "embedding_model", str),
    "RAGQA_COMPLETION_MODEL": ("pipeline", "completion_model", str),
    "RAGQA_TOKEN_BUDGET": ("pipeline", "token_budget", int),
    "RAGQA_MIN_PASSAGE_LENGTH": ("pipeline", "min_passage_length", int),
    "RAGQA_MIN_LINE_LENGTH": ("pipeline", "min_line_length", int),
    "RAGQA_BATCH_SIZE": ("pipeline", "batch_size", int),
    "RAGQA_EMBEDDING_DIMENSION": ("pipeline", "embedding_dimension", "optional_int"),
    "RAGQA_CORPUS_NAME": ("pipeline", "corpus_name", str),
    "RAGQA_EMBED_CONCURRENCY": ("pipeline", "embed_concurrency", int),
    "RAGQA_PROVIDER": ("provider", "provider", str),
    "RAGQA_BASE_URL": ("provider", "base_url", str),
    "RAGQA_TIMEOUT_SECONDS": ("provider", "timeout_seconds", int),
    "RAGQA_MAX_ATTEMPTS": ("retry", "max_attempts", int),
}


class ConfigLoader:
    """
    Loads pipeline configuration from YAML and the environment.
    """

    def __init__(
        self,
        config_path: Optional[Union[str, Path]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        """
        Initialize configuration.

        Args:
            config_path: Path to YAML config file (optional)
            environ: Environment mapping (defaults to os.environ)
        """
        self.config_path = Path(config_path) if config_path else None
        self.environ = os.environ if environ is None else environ
        self.config = self._load_config() if self.config_path else {}
        self._apply_env_overrides()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            raise ConfigError(f"Config file not found: {self.config_path}")

        logger.info(f"Loading config from: {self.config_path}")

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {self.config_path}: {e}") from e

        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ConfigError(f"Config file {self.config_path} must contain a mapping")
        return config

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides to loaded config."""
        for name, (section, key, kind) in ENV_OVERRIDES.items():
            raw = self.environ.get(name)
            if raw is None or raw == "":
                continue
            self.config.setdefault(section, {})[key] = _convert(name, raw, kind)

        provider = self.config.setdefault("provider", {})
        api_key = self.environ.get("OPENAI_API_KEY") or self.environ.get("OPENAI_KEY")
        if api_key and not provider.get("api_key"):
            provider["api_key"] = api_key

        ollama_url = self.environ.get("OLLAMA_BASE_URL")
        if ollama_url and provider.get("provider") == "ollama" and not provider.get("base_url"):
            provider["base_url"] = ollama_url

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dotted key (e.g. 'pipeline.token_budget')."""
        keys = key.split(".")
        value = self.config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default

        return value if value is not None else default

    def build(self) -> RagConfig:
        """
        Create a validated RagConfig.

        Raises:
            ConfigError: If a section has unknown keys or values are out of range
        """
        pipeline = _section(self.config, "pipeline")
        provider = _section(self.config, "provider")
        retry = _section(self.config, "retry")

        try:
            config = RagConfig(
                **_known(pipeline, RagConfig, "pipeline", exclude=("retry", "provider")),
                retry=RetryConfig(**_known(retry, RetryConfig, "retry")),
                provider=ProviderConfig(**_known(provider, ProviderConfig, "provider")),
            )
        except TypeError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

        validate_config(config)
        return config


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> RagConfig:
    """Load and validate configuration from an optional YAML file and the environment."""
    return ConfigLoader(config_path, environ).build()


def validate_config(config: RagConfig) -> None:
    """
    Check configuration values are in range.

    Raises:
        ConfigError: On the first invalid value
    """
    if config.token_budget <= 0:
        raise ConfigError("token_budget must be positive")
    if config.batch_size <= 0:
        raise ConfigError("batch_size must be positive")
    if config.embed_concurrency <= 0:
        raise ConfigError("embed_concurrency must be positive")
    if config.min_passage_length < 0:
        raise ConfigError("min_passage_length must be non-negative")
    if config.min_line_length < 0:
        raise ConfigError("min_line_length must be non-negative")
    if config.embedding_dimension is not None and config.embedding_dimension <= 0:
        raise ConfigError("embedding_dimension must be positive")
    if config.retry.max_attempts < 1:
        raise ConfigError("retry.max_attempts must be at least 1")
    if config.provider.provider not in SUPPORTED_PROVIDERS:
        raise ConfigError(
            f"Unknown provider '{config.provider.provider}' "
            f"(expected one of: {', '.join(SUPPORTED_PROVIDERS)})"
        )


def _convert(name: str, raw: str, kind: Any) -> Any:
    if kind == "optional_int":
        if raw.strip().lower() in ("none", "null", "auto"):
            return None
        kind = int
    try:
        return kind(raw)
    except ValueError as e:
        raise ConfigError(f"Invalid value for {name}: {raw!r}") from e


def _section(config: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = config.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"Config section '{name}' must be a mapping")
    return section


def _known(section: Dict[str, Any], cls: type, name: str, exclude: tuple = ()) -> Dict[str, Any]:
    allowed = {f.name for f in fields(cls)} - set(exclude)
    unknown = sorted(set(section) - allowed)
    if unknown:
        raise ConfigError(f"Unknown key(s) in '{name}' section: {', '.join(unknown)}")
    return dict(section)
