"""
Unit tests for configuration loading.

Tests for:
- Defaults
- YAML sections
- Environment overrides and precedence
- Validation
"""

import pytest

from ragqa.config.config_loader import ConfigLoader, load_config, validate_config
from ragqa.core.exceptions import ConfigError
from ragqa.core.types import RagConfig


def write_yaml(tmp_path, content: str):
    path = tmp_path / "ragqa.yaml"
    path.write_text(content, encoding="utf-8")
    return path


class TestDefaults:
    """Tests for default configuration."""

    def test_defaults(self):
        config = load_config(environ={})

        assert config.embedding_model == "text-embedding-ada-002"
        assert config.completion_model == "gpt-3.5-turbo"
        assert config.token_budget == 4000
        assert config.min_passage_length == 128
        assert config.batch_size == 1000
        assert config.provider.provider == "openai"
        assert config.provider.api_key is None
        assert config.retry.max_attempts == 3


class TestYamlConfig:
    """Tests for YAML configuration files."""

    def test_sections(self, tmp_path):
        path = write_yaml(tmp_path, """
pipeline:
  completion_model: gpt-4o-mini
  token_budget: 2000
  corpus_name: Forthright
  embedding_dimension: null
provider:
  provider: ollama
  base_url: http://ollama:11434
  extra_params:
    api_mode: openai
retry:
  max_attempts: 5
""")
        config = load_config(path, environ={})

        assert config.completion_model == "gpt-4o-mini"
        assert config.token_budget == 2000
        assert config.corpus_name == "Forthright"
        assert config.embedding_dimension is None
        assert config.provider.provider == "ollama"
        assert config.provider.extra_params == {"api_mode": "openai"}
        assert config.retry.max_attempts == 5

    def test_empty_file(self, tmp_path):
        config = load_config(write_yaml(tmp_path, ""), environ={})

        assert config == RagConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(tmp_path / "absent.yaml", environ={})

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(write_yaml(tmp_path, "pipeline: [unclosed"), environ={})

    def test_unknown_key(self, tmp_path):
        with pytest.raises(ConfigError) as exc_info:
            load_config(write_yaml(tmp_path, "pipeline:\n  token_budjet: 10\n"), environ={})

        assert "token_budjet" in str(exc_info.value)

    def test_temperature_not_configurable(self, tmp_path):
        """Completion sampling is always deterministic."""
        with pytest.raises(ConfigError) as exc_info:
            load_config(write_yaml(tmp_path, "pipeline:\n  temperature: 0.7\n"), environ={})

        assert "temperature" in str(exc_info.value)

    def test_get_dotted_key(self, tmp_path):
        loader = ConfigLoader(write_yaml(tmp_path, "pipeline:\n  batch_size: 50\n"), environ={})

        assert loader.get("pipeline.batch_size") == 50
        assert loader.get("pipeline.missing", "x") == "x"


class TestEnvironmentOverrides:
    """Tests for environment variable overrides."""

    def test_env_overrides_yaml(self, tmp_path):
        path = write_yaml(tmp_path, "pipeline:\n  token_budget: 2000\n  batch_size: 10\n")
        config = load_config(path, environ={"RAGQA_TOKEN_BUDGET": "3000"})

        assert config.token_budget == 3000
        assert config.batch_size == 10

    def test_api_key(self):
        assert load_config(environ={"OPENAI_API_KEY": "sk-1"}).provider.api_key == "sk-1"
        assert load_config(environ={"OPENAI_KEY": "sk-2"}).provider.api_key == "sk-2"

    def test_ollama_base_url(self):
        config = load_config(environ={
            "RAGQA_PROVIDER": "ollama",
            "OLLAMA_BASE_URL": "http://gpu-box:11434",
        })

        assert config.provider.base_url == "http://gpu-box:11434"

    def test_ollama_url_ignored_for_openai(self):
        config = load_config(environ={"OLLAMA_BASE_URL": "http://gpu-box:11434"})

        assert config.provider.base_url is None

    def test_dimension_auto(self):
        assert load_config(environ={"RAGQA_EMBEDDING_DIMENSION": "auto"}).embedding_dimension is None
        assert load_config(environ={"RAGQA_EMBEDDING_DIMENSION": "768"}).embedding_dimension == 768

    def test_invalid_integer(self):
        with pytest.raises(ConfigError):
            load_config(environ={"RAGQA_BATCH_SIZE": "lots"})


class TestValidateConfig:
    """Tests for validate_config."""

    @pytest.mark.parametrize("field,value", [
        ("token_budget", 0),
        ("batch_size", 0),
        ("embed_concurrency", 0),
        ("min_passage_length", -1),
        ("embedding_dimension", 0),
    ])
    def test_out_of_range(self, field, value):
        config = RagConfig()
        setattr(config, field, value)

        with pytest.raises(ConfigError):
            validate_config(config)

    def test_unknown_provider(self):
        with pytest.raises(ConfigError):
            load_config(environ={"RAGQA_PROVIDER": "acme"})

    def test_valid_default(self):
        validate_config(RagConfig())
