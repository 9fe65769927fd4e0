"""Consistency policies governing reads, writes and deletes."""
from typing import Optional

from s3_container.domain.ports.object_client import ObjectClient
from s3_container.infra.common.errors import ConfigError, translate_client_errors
from s3_container.infra.common.logger import get_logger
from s3_container.infra.common.paths import SEPARATOR, add_trailing_slash
from s3_container.infra.lazy_read import S3LazyRead

logger = get_logger(__name__)


class UnsafePolicy:
    """
    Last writer wins.
    
    Writes are unconditional PUTs; deletes remove the object and then every
    key below it, one listing page at a time. Recursive deletes are not
    atomic: a failure leaves the pages already deleted removed.
    """
    
    name = "unsafe"
    
    def __init__(self, client: ObjectClient, page_size: Optional[int] = None):
        """
        Initialize policy.
        
        Args:
            client: Object client
            page_size: Listing page cap for recursive deletes (store default if None)
        """
        self.client = client
        self.page_size = page_size
    
    def write(self, key: str, data: bytes) -> str:
        """
        Write an object unconditionally.
        
        Returns:
            ETag of the written object
        """
        with translate_client_errors("PutObject", key):
            return self.client.put(key, bytes(data))
    
    def read(self, key: str) -> S3LazyRead:
        """Deferred read handle for a key."""
        return S3LazyRead(self.client, key, verify_etag=False)
    
    def delete(self, key: str) -> None:
        """Delete the object at `key` and everything under `key/`."""
        if key and not key.endswith(SEPARATOR):
            with translate_client_errors("DeleteObject", key):
                self.client.delete(key)
        
        prefix = add_trailing_slash(key) if key else ""
        token = None
        deleted = 0
        while True:
            with translate_client_errors("ListObjectsV2", prefix):
                page = self.client.list_page(prefix, max_keys=self.page_size, continuation_token=token)
            if page.keys:
                with translate_client_errors("DeleteObjects", prefix):
                    self.client.delete_many(page.keys)
                deleted += len(page.keys)
            if not page.is_truncated:
                break
            token = page.next_token
        
        if deleted:
            logger.info("Deleted %d objects under %r", deleted, prefix)


class EtagMatchPolicy(UnsafePolicy):
    """
    Reads pinned to the ETag of their first probe.
    
    Writes and deletes are inherited unchanged: write races are accepted,
    torn reads are not.
    """
    
    name = "atomic"
    
    def read(self, key: str) -> S3LazyRead:
        return S3LazyRead(self.client, key, verify_etag=True)


_POLICIES = {
    "unsafe": UnsafePolicy,
    "atomic": EtagMatchPolicy,
    "etag-match": EtagMatchPolicy,
}


def create_io_policy(name: str, client: ObjectClient, page_size: Optional[int] = None) -> UnsafePolicy:
    """
    Create an io policy by name.
    
    Args:
        name: "unsafe", "atomic" or "etag-match"
        client: Object client
        page_size: Listing page cap for recursive deletes
    
    Raises:
        ConfigError: If the name is unknown
    """
    policy_class = _POLICIES.get((name or "").strip().lower())
    if policy_class is None:
        raise ConfigError(f"Invalid io policy: {name!r}. Must be one of: {', '.join(_POLICIES)}")
    return policy_class(client, page_size=page_size)
