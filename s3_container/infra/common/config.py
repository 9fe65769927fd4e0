"""Centralized configuration loading."""
import os
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from s3_container.domain.entities.adapter_config import AdapterConfig, canonical_policy_name
from s3_container.infra.common.errors import ConfigError

ENV_PREFIX = "S3_CONTAINER_"
IO_POLICY_ENV = f"{ENV_PREFIX}IO_POLICY"
DEFAULT_IO_POLICY = "atomic"

_ENV_FIELDS = {
    "region": "REGION",
    "endpoint_url": "ENDPOINT_URL",
    "anonymous": "ANONYMOUS",
    "create_bucket": "CREATE_BUCKET",
    "list_page_size": "LIST_PAGE_SIZE",
    "verify_ssl": "VERIFY_SSL",
}

_io_policy_name: Optional[str] = None


def load_env_file() -> None:
    """
    Load environment variables from .env file if it exists.
    
    Managed runtimes set their environment directly, so .env files are only
    read for local development.
    """
    if os.getenv("AWS_LAMBDA_FUNCTION_NAME") or os.getenv("ECS_CONTAINER_METADATA_URI"):
        return
    
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=False)
    else:
        load_dotenv(override=False)


def _env_values() -> dict:
    values = {}
    for field, suffix in _ENV_FIELDS.items():
        raw = os.getenv(ENV_PREFIX + suffix)
        if raw is not None and raw.strip():
            values[field] = raw.strip()
    return values


def load_adapter_config(config_path: Optional[str] = None) -> AdapterConfig:
    """
    Load adapter configuration.
    
    Values come from an optional YAML file, overridden by S3_CONTAINER_*
    environment variables. The io policy is not read here: when the file
    does not set it, adapters use the process-wide selector
    (see get_io_policy_name).
    
    Args:
        config_path: Optional path to a YAML file with AdapterConfig fields
    
    Returns:
        AdapterConfig instance
    
    Raises:
        ConfigError: If the file is missing or any value is invalid
    """
    load_env_file()
    
    data: dict = {}
    if config_path is not None:
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError as e:
            raise ConfigError(f"Config file not found: {config_path}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in config file: {config_path}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file must contain a mapping: {config_path}")
    
    data.update(_env_values())
    
    try:
        return AdapterConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid adapter config: {e}") from e


def get_io_policy_name() -> str:
    """
    Get the process-wide io policy selector.
    
    Read once from S3_CONTAINER_IO_POLICY and memoized; defaults to "atomic".
    
    Raises:
        ConfigError: If the configured value is unknown
    """
    global _io_policy_name
    if _io_policy_name is None:
        load_env_file()
        raw = os.getenv(IO_POLICY_ENV, DEFAULT_IO_POLICY)
        try:
            _io_policy_name = canonical_policy_name(raw)
        except ValueError as e:
            raise ConfigError(str(e)) from e
    return _io_policy_name


def set_io_policy_name(name: Optional[str]) -> None:
    """Override the process-wide io policy (None re-reads the environment)."""
    global _io_policy_name
    if name is None:
        _io_policy_name = None
        return
    try:
        _io_policy_name = canonical_policy_name(name)
    except ValueError as e:
        raise ConfigError(str(e)) from e
