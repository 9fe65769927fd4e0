"""Key-value access facade over an S3 bucket."""
from __future__ import annotations

from typing import Optional

from s3_container.domain.entities.adapter_config import AdapterConfig
from s3_container.domain.entities.locator import Locator
from s3_container.domain.ports.object_client import ObjectClient
from s3_container.infra.bucket import BucketLifecycle
from s3_container.infra.client_factory import create_s3_client, resolve_region
from s3_container.infra.common import paths
from s3_container.infra.common.config import get_io_policy_name, load_adapter_config
from s3_container.infra.common.errors import (
    NotFoundError,
    OperationNotPermittedError,
    TRANSPORT_ERRORS,
    classify_error,
)
from s3_container.infra.common.logger import get_logger
from s3_container.infra.common.paths import ContainerKeys
from s3_container.infra.common.uri import locator_uri, to_locator
from s3_container.infra.io_policy import create_io_policy
from s3_container.infra.lazy_read import S3LazyRead, S3ObjectChannel
from s3_container.infra.listing import ListingEngine
from s3_container.infra.s3_storage import S3Storage

logger = get_logger(__name__)


class S3KeyValueAccess:
    """
    Container storage on an S3 bucket.
    
    This class provides the interface used by container readers and writers
    (path algebra, existence, listing, reads, writes, deletes) while
    delegating to the listing engine, the io policy and the bucket lifecycle.
    All paths are relative to the container root named by the locator.
    """
    
    def __init__(
        self,
        client: ObjectClient,
        locator: Locator,
        create_bucket: bool = False,
        io_policy: Optional[str] = None,
        page_size: Optional[int] = None,
        read_only: bool = False,
    ):
        """
        Open a container.
        
        Args:
            client: Object client bound to the locator's bucket
            locator: Container root
            create_bucket: Whether the bucket may be created when absent
            io_policy: "unsafe" or "atomic"; None uses the process-wide selector
            page_size: Listing page cap (store default if None)
            read_only: Whether every mutation is refused
        
        Raises:
            NotFoundError: If the bucket does not exist and may not be created
        """
        self.client = client
        self.locator = locator
        self.keys = ContainerKeys(locator.root_key)
        self.read_only = read_only
        self.policy = create_io_policy(io_policy or get_io_policy_name(), client, page_size=page_size)
        self.bucket = BucketLifecycle(client, allow_create=create_bucket and not read_only, page_size=page_size)
        self.listing = ListingEngine(client, self.keys, self.bucket, self.policy, page_size=page_size)
        
        if not self.bucket.bucket_exists():
            if not self.bucket.allow_create:
                raise NotFoundError(
                    f"Bucket {locator.bucket} does not exist and creation is disabled",
                    operation="open",
                    key=locator.bucket,
                )
            self.bucket.create_bucket()
        
        logger.debug("Opened %s with %s policy", locator_uri(locator), self.policy.name)
    
    def _require_writable(self, operation: str, path: str) -> None:
        if self.read_only:
            raise OperationNotPermittedError(
                "Container is read-only", operation=operation, key=self.keys.key(path)
            )
    
    # ============================================================================
    # Path algebra
    # ============================================================================
    
    @staticmethod
    def normalize(path: str) -> str:
        """Normalize a container path."""
        return paths.normalize(path)
    
    @staticmethod
    def components(path: str) -> list[str]:
        """Split a container path into its components."""
        return paths.components(path)
    
    @staticmethod
    def compose(*parts: str) -> str:
        """Join container path parts."""
        return paths.compose(*parts)
    
    @staticmethod
    def parent(path: str) -> Optional[str]:
        """Parent of a container path (None for the root)."""
        return paths.parent(path)
    
    @staticmethod
    def relativize(path: str, base: str) -> str:
        """Express `path` relative to `base`."""
        return paths.relativize(path, base)
    
    def uri(self, path: str = "") -> str:
        """URI of a container path."""
        return locator_uri(self.locator, path)
    
    def key(self, path: str) -> str:
        """Object key of a container path."""
        return self.keys.key(path)
    
    # ============================================================================
    # Existence and listing (delegated to ListingEngine)
    # ============================================================================
    
    def exists(self, path: str) -> bool:
        """Check whether `path` is a file or a directory."""
        return self.listing.exists(path)
    
    def is_file(self, path: str) -> bool:
        """Check whether an object exists at `path` (403 reads as absent)."""
        return self.listing.is_file(path)
    
    def is_directory(self, path: str) -> bool:
        """Check whether `path` is the root or a prefix of any object (403 reads as absent)."""
        return self.listing.is_directory(path)
    
    def list(self, path: str) -> list[str]:
        """List child directories; raises NotFoundError if `path` is not a directory."""
        return self.listing.list(path)
    
    def list_directories(self, path: str) -> list[str]:
        """List child directories without trailing delimiters; raises NotFoundError if `path` is not a directory."""
        return self.listing.list_directories(path)
    
    def create_directories(self, path: str) -> None:
        """
        Create every missing directory along `path`.
        
        Raises:
            OperationNotPermittedError: If the container is read-only
        """
        self._require_writable("create_directories", path)
        self.listing.create_directories(path)
    
    # ============================================================================
    # Data (delegated to the io policy)
    # ============================================================================
    
    def size(self, path: str) -> int:
        """
        Size of the object at `path`.
        
        Raises:
            NotFoundError: If no such key exists
        """
        key = self.keys.key(path)
        try:
            return self.client.head(key).size
        except TRANSPORT_ERRORS as e:
            error = classify_error(e, "HeadObject", key)
            if isinstance(error, NotFoundError):
                raise NotFoundError("No such key", operation="size", key=key) from e
            raise error from e
    
    def create_read_data(self, path: str) -> S3LazyRead:
        """Deferred read handle; no request is made until it is used."""
        return self.policy.read(self.keys.key(path))
    
    def read(self, path: str) -> bytes:
        """Read a whole object."""
        with self.create_read_data(path) as read_data:
            return read_data.materialize()
    
    def write(self, path: str, data: bytes) -> None:
        """
        Replace the object at `path`.
        
        Raises:
            OperationNotPermittedError: If the container is read-only
        """
        self._require_writable("write", path)
        self.policy.write(self.keys.key(path), data)
    
    def delete(self, path: str) -> None:
        """Delete the object at `path` and everything below it."""
        self._require_writable("delete", path)
        self.policy.delete(self.keys.key(path))
    
    def lock_for_reading(self, path: str) -> S3ObjectChannel:
        """Read-only channel for `path`."""
        return S3ObjectChannel(self.client, self.keys.key(path), read_only=True)
    
    def lock_for_writing(self, path: str) -> S3ObjectChannel:
        """
        Read-write channel for `path`; output streams replace the object on close.
        
        Raises:
            OperationNotPermittedError: If the container is read-only
        """
        self._require_writable("lock_for_writing", path)
        return S3ObjectChannel(self.client, self.keys.key(path), read_only=False, writer=self.policy.write)
    
    # ============================================================================
    # Bucket lifecycle (delegated to BucketLifecycle)
    # ============================================================================
    
    def bucket_exists(self) -> bool:
        """Check whether the bucket exists (memoized)."""
        return self.bucket.bucket_exists()
    
    def create_bucket(self) -> None:
        """
        Create the bucket if it is missing.
        
        Raises:
            OperationNotPermittedError: If the container is read-only or may not provision buckets
        """
        self._require_writable("create_bucket", "")
        self.bucket.create_bucket()
    
    def delete_bucket(self) -> None:
        """
        Delete every object and then the bucket.
        
        Raises:
            OperationNotPermittedError: If the container is read-only or may not provision buckets
        """
        self._require_writable("delete_bucket", "")
        self.bucket.delete_bucket()


def open_key_value_access(
    uri: str,
    config: Optional[AdapterConfig] = None,
    s3_client=None,
    read_only: bool = False,
) -> S3KeyValueAccess:
    """
    Open a container from a URI.
    
    Args:
        uri: Container URI (native, virtual-hosted or path-style)
        config: Adapter configuration (loaded from the environment if None)
        s3_client: Preconfigured boto3 S3 client (built from the URI if None)
        read_only: Whether every mutation is refused
    
    Returns:
        S3KeyValueAccess
    """
    config = config or load_adapter_config()
    locator = to_locator(uri)
    if s3_client is None:
        s3_client = create_s3_client(
            locator,
            endpoint_url=config.endpoint_url,
            region=config.region,
            anonymous=config.anonymous,
            verify_ssl=config.verify_ssl,
        )
    storage = S3Storage(locator.bucket, region=resolve_region(locator, config.region), s3_client=s3_client)
    return S3KeyValueAccess(
        storage,
        locator,
        create_bucket=config.create_bucket,
        io_policy=config.io_policy,
        page_size=config.list_page_size,
        read_only=read_only,
    )
