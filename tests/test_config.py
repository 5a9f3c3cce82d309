"""
Unit tests for configuration loading and validation.

Tests strict validation and error handling for catalog and gateway configs.
"""

import os
import tempfile
from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from agent_academy.config.loader import (
    AppConfig,
    config_from_env,
    db_path_from_env,
    load_app_config,
)
from agent_academy.core.catalog import DEFAULT_CATALOG, Provider
from agent_academy.core.gateway import DEFAULT_SYSTEM_PROMPT

EXAMPLE_CONFIG = Path(__file__).resolve().parent.parent / "config.example.yaml"


def _model(**overrides):
    data = {
        "id": "gpt-4o-mini",
        "name": "GPT-4o Mini",
        "provider": "openai",
        "cost_per_1k_tokens": 0.00015,
        "max_tokens": 128000,
    }
    data.update(overrides)
    return data


class TestConfigLoading:
    """Test configuration loading and validation."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()

    def teardown_method(self):
        """Clean up test environment."""
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write_config(self, config_data, filename: str = "config.yaml") -> str:
        """Write configuration data to temporary file."""
        config_path = os.path.join(self.temp_dir, filename)
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(config_data, f)
        return config_path

    def test_valid_config_loads_correctly(self):
        """Test that a valid configuration loads correctly."""
        config_data = {
            "defaults": {
                "system": "Be helpful",
                "max_tokens": 500,
                "temperature": 0.2,
                "timeout": 30
            },
            "models": [
                _model(strengths=["Fast"], best_for=["Learning"], supports_images=True),
                _model(id="qwen2.5-14b-instruct", name="Qwen 14B", provider="qwen",
                       cost_per_1k_tokens=0.0002, max_tokens=32768)
            ]
        }

        config = load_app_config(self._write_config(config_data))

        assert config.defaults.system == "Be helpful"
        assert config.defaults.max_tokens == 500
        assert config.defaults.temperature == 0.2
        assert config.defaults.timeout == 30.0

        assert config.catalog.ids() == ["gpt-4o-mini", "qwen2.5-14b-instruct"]
        mini = config.catalog.require("gpt-4o-mini")
        assert mini.provider == Provider.OPENAI
        assert mini.cost_per_1k_tokens == Decimal("0.00015")
        assert mini.strengths == ("Fast",)
        assert mini.best_for == ("Learning",)
        assert mini.supports_images is True
        assert mini.supports_code is False

    def test_sections_optional(self):
        """Test omitted sections keep built-in values."""
        config = load_app_config(self._write_config({"defaults": {"max_tokens": 200}}))
        assert config.catalog is DEFAULT_CATALOG
        assert config.defaults.max_tokens == 200
        assert config.defaults.system == DEFAULT_SYSTEM_PROMPT

        config = load_app_config(self._write_config({"models": [_model()]}))
        assert config.defaults.max_tokens == 1000
        assert len(config.catalog) == 1

    def test_example_config_loads(self):
        config = load_app_config(str(EXAMPLE_CONFIG))
        assert config.catalog.require("qwen2.5-14b-instruct").cost_per_1k_tokens == Decimal("0.0002")
        assert config.defaults.timeout == 60.0

    def test_missing_file(self):
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            load_app_config(os.path.join(self.temp_dir, "nope.yaml"))

    def test_empty_file(self):
        path = os.path.join(self.temp_dir, "empty.yaml")
        Path(path).write_text("", encoding="utf-8")
        with pytest.raises(ValueError, match="Configuration file is empty"):
            load_app_config(path)

    def test_invalid_yaml(self):
        path = os.path.join(self.temp_dir, "bad.yaml")
        Path(path).write_text("models: [unclosed", encoding="utf-8")
        with pytest.raises(yaml.YAMLError, match="Invalid YAML"):
            load_app_config(path)

    def test_unknown_top_level_key(self):
        with pytest.raises(ValueError, match="Unknown configuration keys"):
            load_app_config(self._write_config({"budget": {"daily": 1}}))

    def test_unknown_defaults_key(self):
        with pytest.raises(ValueError, match="Unknown keys in defaults"):
            load_app_config(self._write_config({"defaults": {"top_p": 0.9}}))

    @pytest.mark.parametrize("defaults,message", [
        ({"max_tokens": 0}, "'max_tokens' in defaults must be an integer > 0"),
        ({"max_tokens": "many"}, "'max_tokens' in defaults must be an integer > 0"),
        ({"temperature": "hot"}, "'temperature' in defaults must be a number"),
        ({"temperature": 5}, "temperature must be between"),
        ({"timeout": -1}, "'timeout' in defaults must be > 0"),
        ({"system": ""}, "'system' in defaults must be a non-empty string"),
    ])
    def test_invalid_defaults(self, defaults, message):
        with pytest.raises(ValueError, match=message):
            load_app_config(self._write_config({"defaults": defaults}))

    def test_models_must_be_list(self):
        with pytest.raises(ValueError, match="'models' must be a non-empty list"):
            load_app_config(self._write_config({"models": {"id": "x"}}))

    def test_missing_model_keys(self):
        data = _model()
        del data["cost_per_1k_tokens"]
        with pytest.raises(ValueError, match=r"Missing required keys in models\[0\]"):
            load_app_config(self._write_config({"models": [data]}))

    def test_unknown_model_key(self):
        with pytest.raises(ValueError, match=r"Unknown keys in models\[0\]"):
            load_app_config(self._write_config({"models": [_model(context_window=8)]}))

    def test_invalid_provider(self):
        with pytest.raises(ValueError, match="'provider' in models\\[0\\] must be one of"):
            load_app_config(self._write_config({"models": [_model(provider="mistral")]}))

    def test_provider_case_insensitive(self):
        config = load_app_config(self._write_config({"models": [_model(provider="OpenAI")]}))
        assert config.catalog.require("gpt-4o-mini").provider == Provider.OPENAI

    def test_negative_cost(self):
        with pytest.raises(ValueError, match="'cost_per_1k_tokens' in models\\[0\\] must be >= 0"):
            load_app_config(self._write_config({"models": [_model(cost_per_1k_tokens=-1)]}))

    def test_non_numeric_cost(self):
        with pytest.raises(ValueError, match="must be a number"):
            load_app_config(self._write_config({"models": [_model(cost_per_1k_tokens="cheap")]}))

    def test_invalid_max_tokens(self):
        with pytest.raises(ValueError, match="'max_tokens' in models\\[0\\] must be an integer > 0"):
            load_app_config(self._write_config({"models": [_model(max_tokens=0)]}))

    def test_tags_must_be_strings(self):
        with pytest.raises(ValueError, match="strengths must be a list of strings"):
            load_app_config(self._write_config({"models": [_model(strengths="fast")]}))

    def test_flags_must_be_boolean(self):
        with pytest.raises(ValueError, match="supports_code must be true or false"):
            load_app_config(self._write_config({"models": [_model(supports_code="yes")]}))

    def test_duplicate_model_ids(self):
        with pytest.raises(ValueError, match="Duplicate model id"):
            load_app_config(self._write_config({"models": [_model(), _model()]}))


class TestEnvironment:
    """Test environment-driven settings."""

    def test_no_config_env_uses_builtin(self):
        config = config_from_env({})
        assert config == AppConfig()
        assert config.catalog is DEFAULT_CATALOG

    def test_config_env_loads_file(self):
        config = config_from_env({"AGENT_ACADEMY_CONFIG": str(EXAMPLE_CONFIG)})
        assert "claude-3-haiku-20240307" not in config.catalog.ids()

    def test_db_path(self):
        assert db_path_from_env({}) == "agent_academy.db"
        assert db_path_from_env({"AGENT_ACADEMY_DB": "/tmp/progress.db"}) == "/tmp/progress.db"
