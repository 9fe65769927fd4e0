"""Existence checks and hierarchical listing over a flat key namespace."""
from __future__ import annotations

from typing import Iterator, Optional

from s3_container.domain.entities.listing import ListingPage
from s3_container.domain.ports.object_client import ObjectClient
from s3_container.infra.bucket import BucketLifecycle
from s3_container.infra.common.errors import (
    NotFoundError,
    TRANSPORT_ERRORS,
    classify_error,
    is_absent_or_forbidden,
    translate_client_errors,
)
from s3_container.infra.common.logger import get_logger
from s3_container.infra.common.paths import (
    SEPARATOR,
    ContainerKeys,
    add_trailing_slash,
    components,
    is_root,
    relativize,
)
from s3_container.infra.io_policy import UnsafePolicy

logger = get_logger(__name__)


class ListingEngine:
    """
    Simulates directories over object keys.
    
    A path is a file if an object exists at its exact key, and a directory
    if any key starts with its key plus the delimiter. Directory markers
    (zero-length objects ending in the delimiter) only make empty
    directories visible; they are not required for existence.
    
    Probes read both 404 and 403 as "absent": the store answers 403 to
    callers lacking list permission, so a restricted bucket looks empty.
    """
    
    def __init__(
        self,
        client: ObjectClient,
        keys: ContainerKeys,
        bucket: BucketLifecycle,
        policy: UnsafePolicy,
        page_size: Optional[int] = None,
    ):
        """
        Initialize listing engine.
        
        Args:
            client: Object client
            keys: Key builder for the container root
            bucket: Bucket lifecycle (root existence)
            policy: Io policy used to write directory markers
            page_size: Listing page cap (store default if None)
        """
        self.client = client
        self.keys = keys
        self.bucket = bucket
        self.policy = policy
        self.page_size = page_size
    
    def _pages(self, prefix: str, delimiter: Optional[str] = None) -> Iterator[ListingPage]:
        """Yield listing pages until the continuation tokens run out."""
        token = None
        while True:
            with translate_client_errors("ListObjectsV2", prefix):
                page = self.client.list_page(
                    prefix,
                    delimiter=delimiter,
                    max_keys=self.page_size,
                    continuation_token=token,
                )
            logger.debug("Listed %d entries under %r", page.key_count, prefix)
            yield page
            if not page.is_truncated:
                return
            token = page.next_token
    
    def is_file(self, path: str) -> bool:
        """Check whether an object exists at the exact key of `path`."""
        key = self.keys.key(path)
        if not key or key.endswith(SEPARATOR):
            return False
        try:
            self.client.head(key)
            return True
        except TRANSPORT_ERRORS as e:
            error = classify_error(e, "HeadObject", key)
            if is_absent_or_forbidden(error):
                return False
            raise error from e
    
    def is_directory(self, path: str) -> bool:
        """Check whether `path` is the container root or a prefix of any key."""
        if is_root(path):
            return self.bucket.bucket_exists()
        prefix = self.keys.prefix(path)
        try:
            page = self.client.list_page(prefix, max_keys=1)
        except TRANSPORT_ERRORS as e:
            error = classify_error(e, "ListObjectsV2", prefix)
            if is_absent_or_forbidden(error):
                return False
            raise error from e
        return page.key_count > 0
    
    def exists(self, path: str) -> bool:
        """Check whether `path` is a file or a directory."""
        return self.is_file(path) or self.is_directory(path)
    
    def _children(self, path: str) -> Iterator[tuple[str, str]]:
        """Yield (raw common prefix, relative name) for each child directory of `path`."""
        if not self.is_directory(path):
            raise NotFoundError(f"{path!r} is not a valid group", operation="list", key=self.keys.key(path))
        prefix = self.keys.prefix(path)
        for page in self._pages(prefix, delimiter=SEPARATOR):
            for common_prefix in page.common_prefixes:
                relative = relativize(common_prefix, prefix)
                if relative:
                    yield common_prefix, relative
    
    def list(self, path: str) -> list[str]:
        """
        List the immediate children of a directory.
        
        Raises:
            NotFoundError: If `path` is not a directory
        """
        return [relative for _, relative in self._children(path)]
    
    def list_directories(self, path: str) -> list[str]:
        """
        List the immediate child directories, without trailing delimiters.
        
        Raises:
            NotFoundError: If `path` is not a directory
        """
        return [
            relative
            for common_prefix, relative in self._children(path)
            if common_prefix.endswith(SEPARATOR)
        ]
    
    def list_keys(self, path: str = "") -> list[str]:
        """Recursively list every object under `path`, as container paths."""
        prefix = self.keys.prefix(path)
        paths = []
        for page in self._pages(prefix):
            for key in page.keys:
                relative = self.keys.path(key)
                if relative:
                    paths.append(relative)
        return paths
    
    def create_directories(self, path: str) -> None:
        """
        Write a directory marker for every missing directory along `path`.
        
        Existing directories are left untouched, so running it again is a
        no-op. Not atomic: markers written before a failure remain.
        """
        nodes = components(path)
        for depth in range(1, len(nodes) + 1):
            sub_path = SEPARATOR.join(nodes[:depth])
            key = self.keys.key(sub_path)
            if not key or self.is_directory(sub_path):
                continue
            self.policy.write(add_trailing_slash(key), b"")
            logger.debug("Created directory marker %s", add_trailing_slash(key))
