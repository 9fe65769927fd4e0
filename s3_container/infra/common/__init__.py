"""Common infrastructure utilities."""
from s3_container.infra.common.config import (
    load_env_file,
    load_adapter_config,
    get_io_policy_name,
    set_io_policy_name,
)
from s3_container.infra.common.logger import setup_logging, get_logger
from s3_container.infra.common.errors import (
    ErrorKind,
    S3ContainerError,
    ConfigError,
    StorageError,
    NotFoundError,
    ConcurrentModificationError,
    IOFailureError,
    OperationNotPermittedError,
    classify_client_error,
    classify_error,
    translate_client_errors,
)
from s3_container.infra.common.paths import (
    ContainerKeys,
    normalize,
    components,
    compose,
    parent,
    relativize,
)

__all__ = [
    "load_env_file",
    "load_adapter_config",
    "get_io_policy_name",
    "set_io_policy_name",
    "setup_logging",
    "get_logger",
    "ErrorKind",
    "S3ContainerError",
    "ConfigError",
    "StorageError",
    "NotFoundError",
    "ConcurrentModificationError",
    "IOFailureError",
    "OperationNotPermittedError",
    "classify_client_error",
    "classify_error",
    "translate_client_errors",
    "ContainerKeys",
    "normalize",
    "components",
    "compose",
    "parent",
    "relativize",
]
