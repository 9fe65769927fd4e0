"""Object client port."""
from abc import ABC, abstractmethod
from typing import BinaryIO, Iterable, Optional

from s3_container.domain.entities.listing import ListingPage, ObjectMetadata


class ObjectClient(ABC):
    """
    Minimal capability interface of a bucket-bound object store.
    
    Implementations raise botocore ClientError for every service failure and
    let BotoCoreError (connection, timeout, credentials) propagate;
    translation into StorageError happens in the adapter.
    """
    
    bucket: str
    
    @abstractmethod
    def head_bucket(self) -> None:
        """Probe the bucket; raises ClientError (404/403) when not reachable."""
        raise NotImplementedError
    
    @abstractmethod
    def create_bucket(self) -> None:
        """Create the bucket."""
        raise NotImplementedError
    
    @abstractmethod
    def delete_bucket(self) -> None:
        """Delete the (empty) bucket."""
        raise NotImplementedError
    
    @abstractmethod
    def head(self, key: str, if_match: Optional[str] = None) -> ObjectMetadata:
        """Probe an object's metadata."""
        raise NotImplementedError
    
    @abstractmethod
    def get(
        self,
        key: str,
        byte_range: Optional[str] = None,
        if_match: Optional[str] = None,
    ) -> bytes:
        """
        Read an object.
        
        Args:
            key: Object key
            byte_range: HTTP Range header value (e.g. "bytes=0-9"), or None for all
            if_match: ETag precondition; a mismatch raises a 412 ClientError
        """
        raise NotImplementedError
    
    @abstractmethod
    def open_stream(self, key: str) -> BinaryIO:
        """Open the object body as a readable binary stream."""
        raise NotImplementedError
    
    @abstractmethod
    def put(self, key: str, data: bytes) -> str:
        """Write an object and return its ETag."""
        raise NotImplementedError
    
    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete a single object (absent keys are not an error)."""
        raise NotImplementedError
    
    @abstractmethod
    def delete_many(self, keys: Iterable[str]) -> None:
        """Delete a batch of objects."""
        raise NotImplementedError
    
    @abstractmethod
    def list_page(
        self,
        prefix: str,
        delimiter: Optional[str] = None,
        max_keys: Optional[int] = None,
        continuation_token: Optional[str] = None,
    ) -> ListingPage:
        """Fetch one page of keys and common prefixes under a prefix."""
        raise NotImplementedError
