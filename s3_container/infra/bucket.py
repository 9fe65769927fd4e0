"""Bucket lifecycle operations."""
import threading
from typing import Optional

from s3_container.domain.ports.object_client import ObjectClient
from s3_container.infra.common.errors import (
    OperationNotPermittedError,
    TRANSPORT_ERRORS,
    classify_error,
    error_code,
    is_absent_or_forbidden,
    translate_client_errors,
)
from s3_container.infra.common.logger import get_logger

logger = get_logger(__name__)

_ALREADY_EXISTS_CODES = {"BucketAlreadyOwnedByYou", "BucketAlreadyExists"}


class BucketLifecycle:
    """
    Existence check, creation and destruction of the bucket.
    
    The existence check is memoized per instance; `create_bucket` and
    `delete_bucket` invalidate it.
    """
    
    def __init__(self, client: ObjectClient, allow_create: bool = False, page_size: Optional[int] = None):
        """
        Initialize bucket lifecycle.
        
        Args:
            client: Object client bound to the bucket
            allow_create: Whether the adapter may create and delete its bucket
            page_size: Listing page cap while emptying the bucket
        """
        self.client = client
        self.allow_create = allow_create
        self.page_size = page_size
        self._exists: Optional[bool] = None
        self._lock = threading.Lock()
    
    @property
    def bucket(self) -> str:
        return self.client.bucket
    
    def invalidate(self) -> None:
        """Forget the memoized existence flag."""
        with self._lock:
            self._exists = None
    
    def bucket_exists(self) -> bool:
        """
        Check whether the bucket exists (memoized after the first probe).
        
        A 403 counts as absent: without permission the two cannot be told apart.
        """
        with self._lock:
            if self._exists is not None:
                return self._exists
        try:
            self.client.head_bucket()
            exists = True
        except TRANSPORT_ERRORS as e:
            error = classify_error(e, "HeadBucket", self.bucket)
            if not is_absent_or_forbidden(error):
                raise error from e
            exists = False
        with self._lock:
            self._exists = exists
        logger.debug("Bucket %s exists: %s", self.bucket, exists)
        return exists
    
    def create_bucket(self) -> None:
        """
        Create the bucket if it does not exist.
        
        Raises:
            OperationNotPermittedError: If bucket provisioning is disabled
        """
        if self.bucket_exists():
            return
        if not self.allow_create:
            raise OperationNotPermittedError(
                "Bucket creation is disabled", operation="CreateBucket", key=self.bucket
            )
        try:
            self.client.create_bucket()
            logger.info("Created bucket %s", self.bucket)
        except TRANSPORT_ERRORS as e:
            if error_code(e) not in _ALREADY_EXISTS_CODES:
                raise classify_error(e, "CreateBucket", self.bucket) from e
        finally:
            self.invalidate()
    
    def delete_bucket(self) -> None:
        """
        Delete every object, then the bucket itself.
        
        The store refuses to delete a non-empty bucket, so listing restarts
        from the beginning until a page comes back empty.
        
        Raises:
            OperationNotPermittedError: If bucket provisioning is disabled
        """
        if not self.allow_create:
            raise OperationNotPermittedError(
                "Bucket deletion is disabled", operation="DeleteBucket", key=self.bucket
            )
        if not self.bucket_exists():
            return
        
        deleted = 0
        try:
            while True:
                with translate_client_errors("ListObjectsV2", self.bucket):
                    page = self.client.list_page("", max_keys=self.page_size)
                if not page.keys:
                    break
                with translate_client_errors("DeleteObjects", self.bucket):
                    self.client.delete_many(page.keys)
                deleted += len(page.keys)
            
            with translate_client_errors("DeleteBucket", self.bucket):
                self.client.delete_bucket()
        finally:
            self.invalidate()
        logger.info("Deleted bucket %s (%d objects)", self.bucket, deleted)
