"""Hierarchical container storage on S3-compatible object stores."""
from s3_container.domain.entities.adapter_config import AdapterConfig
from s3_container.domain.entities.locator import Locator
from s3_container.infra.common.errors import (
    ErrorKind,
    StorageError,
    NotFoundError,
    ConcurrentModificationError,
    IOFailureError,
    OperationNotPermittedError,
)
from s3_container.infra.common.uri import to_locator
from s3_container.infra.io_policy import UnsafePolicy, EtagMatchPolicy
from s3_container.infra.key_value_access import S3KeyValueAccess, open_key_value_access
from s3_container.infra.lazy_read import S3LazyRead, S3ObjectChannel
from s3_container.infra.s3_storage import S3Storage

__all__ = [
    "AdapterConfig",
    "Locator",
    "ErrorKind",
    "StorageError",
    "NotFoundError",
    "ConcurrentModificationError",
    "IOFailureError",
    "OperationNotPermittedError",
    "to_locator",
    "UnsafePolicy",
    "EtagMatchPolicy",
    "S3KeyValueAccess",
    "open_key_value_access",
    "S3LazyRead",
    "S3ObjectChannel",
    "S3Storage",
]
