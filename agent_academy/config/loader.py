"""
Configuration management and loading.

Handles the model catalog and gateway defaults from YAML, plus environment
settings.
"""

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..core.catalog import DEFAULT_CATALOG, ModelCatalog, ModelDescriptor, Provider
from ..core.gateway import GatewayDefaults
from ..storage.db import DEFAULT_DB_PATH

CONFIG_ENV_VAR = "AGENT_ACADEMY_CONFIG"
DB_ENV_VAR = "AGENT_ACADEMY_DB"


@dataclass(frozen=True)
class AppConfig:
    """Complete application configuration."""
    catalog: ModelCatalog = DEFAULT_CATALOG
    defaults: GatewayDefaults = GatewayDefaults()


def load_app_config(path: str) -> AppConfig:
    """Load and validate application configuration from a YAML file.

    Both sections are optional; an omitted section keeps the built-in value.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated AppConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    allowed_top_keys = {'defaults', 'models'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    defaults = GatewayDefaults()
    if 'defaults' in raw_config:
        defaults_data = raw_config['defaults']
        if not isinstance(defaults_data, dict):
            raise ValueError("'defaults' must be a dictionary")
        defaults = _parse_defaults(defaults_data)

    catalog = DEFAULT_CATALOG
    if 'models' in raw_config:
        models_data = raw_config['models']
        if not isinstance(models_data, list) or not models_data:
            raise ValueError("'models' must be a non-empty list")
        catalog = ModelCatalog(tuple(
            _parse_model(model_data, f"models[{index}]")
            for index, model_data in enumerate(models_data)
        ))

    return AppConfig(catalog=catalog, defaults=defaults)


def config_from_env(env: Optional[Dict[str, str]] = None) -> AppConfig:
    """Load the config file named by AGENT_ACADEMY_CONFIG, or built-in values."""
    env = os.environ if env is None else env
    path = env.get(CONFIG_ENV_VAR)
    if not path:
        return AppConfig()
    return load_app_config(path)


def db_path_from_env(env: Optional[Dict[str, str]] = None) -> str:
    """Progress database path from AGENT_ACADEMY_DB."""
    env = os.environ if env is None else env
    return env.get(DB_ENV_VAR) or DEFAULT_DB_PATH


def _parse_defaults(data: Dict) -> GatewayDefaults:
    """Parse and validate gateway defaults.

    Raises:
        ValueError: If configuration is invalid
    """
    allowed_keys = {'system', 'max_tokens', 'temperature', 'timeout'}
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in defaults: {unknown_keys}")

    kwargs: Dict[str, Any] = {}

    if 'system' in data:
        if not isinstance(data['system'], str) or not data['system'].strip():
            raise ValueError("'system' in defaults must be a non-empty string")
        kwargs['system'] = data['system']

    if 'max_tokens' in data:
        max_tokens = data['max_tokens']
        if isinstance(max_tokens, bool) or not isinstance(max_tokens, int) or max_tokens <= 0:
            raise ValueError("'max_tokens' in defaults must be an integer > 0")
        kwargs['max_tokens'] = max_tokens

    if 'temperature' in data:
        temperature = data['temperature']
        if isinstance(temperature, bool) or not isinstance(temperature, (int, float)):
            raise ValueError("'temperature' in defaults must be a number")
        kwargs['temperature'] = float(temperature)

    if 'timeout' in data:
        timeout = data['timeout']
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ValueError("'timeout' in defaults must be > 0")
        kwargs['timeout'] = float(timeout)

    return GatewayDefaults(**kwargs)


def _parse_model(data: Any, path: str) -> ModelDescriptor:
    """Parse and validate one catalog entry.

    Args:
        data: Model configuration data
        path: Path for error messages

    Returns:
        Validated ModelDescriptor

    Raises:
        ValueError: If configuration is invalid
    """
    if not isinstance(data, dict):
        raise ValueError(f"{path} must be a dictionary")

    required_keys = {'id', 'name', 'provider', 'cost_per_1k_tokens', 'max_tokens'}
    optional_keys = {'strengths', 'best_for', 'supports_images', 'supports_code'}
    unknown_keys = set(data.keys()) - required_keys - optional_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")
    missing_keys = required_keys - set(data.keys())
    if missing_keys:
        raise ValueError(f"Missing required keys in {path}: {sorted(missing_keys)}")

    for key in ('id', 'name'):
        if not isinstance(data[key], str) or not data[key].strip():
            raise ValueError(f"'{key}' in {path} must be a non-empty string")

    provider_str = data['provider']
    if not isinstance(provider_str, str):
        raise ValueError(f"'provider' in {path} must be a string")
    try:
        provider = Provider(provider_str.lower())
    except ValueError:
        valid_providers = [provider.value for provider in Provider]
        raise ValueError(f"'provider' in {path} must be one of: {valid_providers}")

    raw_cost = data['cost_per_1k_tokens']
    if isinstance(raw_cost, bool) or not isinstance(raw_cost, (int, float, str)):
        raise ValueError(f"'cost_per_1k_tokens' in {path} must be a number")
    try:
        # str() keeps the YAML literal exact instead of the binary float
        cost = Decimal(str(raw_cost))
    except InvalidOperation:
        raise ValueError(f"'cost_per_1k_tokens' in {path} must be a number")
    if not cost.is_finite() or cost < 0:
        raise ValueError(f"'cost_per_1k_tokens' in {path} must be >= 0")

    max_tokens = data['max_tokens']
    if isinstance(max_tokens, bool) or not isinstance(max_tokens, int) or max_tokens <= 0:
        raise ValueError(f"'max_tokens' in {path} must be an integer > 0")

    return ModelDescriptor(
        id=data['id'],
        name=data['name'],
        provider=provider,
        cost_per_1k_tokens=cost,
        max_tokens=max_tokens,
        strengths=_parse_tags(data.get('strengths', []), f"{path}.strengths"),
        best_for=_parse_tags(data.get('best_for', []), f"{path}.best_for"),
        supports_images=_parse_flag(data.get('supports_images', False), f"{path}.supports_images"),
        supports_code=_parse_flag(data.get('supports_code', False), f"{path}.supports_code"),
    )


def _parse_tags(value: Any, path: str) -> tuple:
    if not isinstance(value, list) or not all(isinstance(tag, str) for tag in value):
        raise ValueError(f"{path} must be a list of strings")
    return tuple(value)


def _parse_flag(value: Any, path: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{path} must be true or false")
    return value
