"""Tests for configuration loading."""
import pytest

from s3_container.domain.entities.adapter_config import AdapterConfig
from s3_container.infra.common.config import (
    get_io_policy_name,
    load_adapter_config,
    set_io_policy_name,
)
from s3_container.infra.common.errors import ConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for suffix in ["REGION", "ENDPOINT_URL", "ANONYMOUS", "CREATE_BUCKET", "LIST_PAGE_SIZE", "VERIFY_SSL"]:
        monkeypatch.delenv(f"S3_CONTAINER_{suffix}", raising=False)


def test_defaults():
    """Test configuration without file or environment."""
    config = load_adapter_config()
    assert config == AdapterConfig()
    assert config.io_policy is None
    assert not config.create_bucket
    assert config.verify_ssl


def test_environment(monkeypatch):
    """Test reading S3_CONTAINER_* variables."""
    monkeypatch.setenv("S3_CONTAINER_REGION", "eu-west-1")
    monkeypatch.setenv("S3_CONTAINER_ENDPOINT_URL", "http://localhost:9000")
    monkeypatch.setenv("S3_CONTAINER_ANONYMOUS", "true")
    monkeypatch.setenv("S3_CONTAINER_CREATE_BUCKET", "1")
    monkeypatch.setenv("S3_CONTAINER_LIST_PAGE_SIZE", "250")
    monkeypatch.setenv("S3_CONTAINER_VERIFY_SSL", "false")
    
    config = load_adapter_config()
    
    assert config.region == "eu-west-1"
    assert config.endpoint_url == "http://localhost:9000"
    assert config.anonymous
    assert config.create_bucket
    assert config.list_page_size == 250
    assert not config.verify_ssl


def test_yaml_file(tmp_path, monkeypatch):
    """Test reading a YAML file, with environment overrides."""
    config_file = tmp_path / "s3_container.yaml"
    config_file.write_text(
        "io_policy: etag-match\n"
        "region: us-west-2\n"
        "list_page_size: 100\n"
    )
    monkeypatch.setenv("S3_CONTAINER_REGION", "eu-central-1")
    
    config = load_adapter_config(str(config_file))
    
    assert config.io_policy == "atomic"
    assert config.region == "eu-central-1"
    assert config.list_page_size == 100


@pytest.mark.parametrize(
    "suffix, value",
    [
        ("LIST_PAGE_SIZE", "0"),
        ("LIST_PAGE_SIZE", "5000"),
        ("LIST_PAGE_SIZE", "many"),
        ("ANONYMOUS", "maybe"),
    ],
)
def test_invalid_environment(monkeypatch, suffix, value):
    """Test that invalid values raise ConfigError."""
    monkeypatch.setenv(f"S3_CONTAINER_{suffix}", value)
    with pytest.raises(ConfigError):
        load_adapter_config()


def test_missing_file():
    """Test that a missing config file raises ConfigError."""
    with pytest.raises(ConfigError):
        load_adapter_config("/nonexistent/s3_container.yaml")


def test_invalid_yaml(tmp_path):
    """Test that malformed files raise ConfigError."""
    broken = tmp_path / "broken.yaml"
    broken.write_text("io_policy: [unclosed\n")
    with pytest.raises(ConfigError):
        load_adapter_config(str(broken))
    
    scalar = tmp_path / "scalar.yaml"
    scalar.write_text("just a string\n")
    with pytest.raises(ConfigError):
        load_adapter_config(str(scalar))


def test_invalid_policy_in_file(tmp_path):
    """Test that unknown policies in a file raise ConfigError."""
    config_file = tmp_path / "policy.yaml"
    config_file.write_text("io_policy: optimistic\n")
    with pytest.raises(ConfigError):
        load_adapter_config(str(config_file))


def test_io_policy_selector_is_memoized(monkeypatch):
    """Test that the process-wide selector is read once."""
    monkeypatch.setenv("S3_CONTAINER_IO_POLICY", "unsafe")
    assert get_io_policy_name() == "unsafe"
    
    monkeypatch.setenv("S3_CONTAINER_IO_POLICY", "atomic")
    assert get_io_policy_name() == "unsafe"
    
    set_io_policy_name(None)
    assert get_io_policy_name() == "atomic"


def test_io_policy_selector_default():
    """Test the selector default."""
    assert get_io_policy_name() == "atomic"


def test_io_policy_selector_invalid(monkeypatch):
    """Test that unknown selectors raise ConfigError."""
    monkeypatch.setenv("S3_CONTAINER_IO_POLICY", "optimistic")
    with pytest.raises(ConfigError):
        get_io_policy_name()
    with pytest.raises(ConfigError):
        set_io_policy_name("optimistic")
