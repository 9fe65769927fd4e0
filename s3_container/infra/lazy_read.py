"""Deferred ranged reads and locked object channels."""
import io
import threading
from typing import BinaryIO, Callable, Optional

from s3_container.domain.ports.object_client import ObjectClient
from s3_container.infra.common.errors import OperationNotPermittedError, translate_client_errors
from s3_container.infra.common.logger import get_logger

logger = get_logger(__name__)

_DRAIN_CHUNK_SIZE = 64 * 1024


def byte_range(offset: int, length: int) -> Optional[str]:
    """
    Build an HTTP Range header value.
    
    Args:
        offset: First byte to read
        length: Number of bytes; <= 0 means "to the end of the object"
    
    Returns:
        "bytes=a-b" (inclusive), "bytes=a-", or None for the whole object
    """
    if offset < 0:
        raise ValueError(f"Negative offset: {offset}")
    if length > 0:
        return f"bytes={offset}-{offset + length - 1}"
    if offset > 0:
        return f"bytes={offset}-"
    return None


class S3LazyRead:
    """
    Re-entrant read handle over one object key.
    
    Constructing a handle performs no I/O. Each `materialize` call issues one
    independent GET. With `verify_etag`, the first metadata probe pins the
    object's ETag and every later request carries it as an If-Match
    precondition, so a change in between raises ConcurrentModificationError
    instead of mixing two object states. `close` forgets the pinned ETag.
    """
    
    def __init__(self, client: ObjectClient, key: str, verify_etag: bool = False):
        self.client = client
        self.key = key
        self.verify_etag = verify_etag
        self._etag: Optional[str] = None
        self._lock = threading.Lock()
    
    @property
    def etag(self) -> Optional[str]:
        """ETag pinned by the first probe, if any."""
        return self._etag
    
    def _probe(self) -> int:
        with translate_client_errors("HeadObject", self.key):
            metadata = self.client.head(self.key, if_match=self._etag)
        if self.verify_etag:
            with self._lock:
                if self._etag is None:
                    self._etag = metadata.etag
        return metadata.size
    
    def size(self) -> int:
        """
        Object size in bytes.
        
        Raises:
            NotFoundError: If the key does not exist
            ConcurrentModificationError: If the object changed since the pinned probe
        """
        return self._probe()
    
    def materialize(self, offset: int = 0, length: int = 0) -> bytes:
        """
        Read the whole object (offset=0, length=0) or a byte range of it.
        
        Raises:
            NotFoundError: If the key does not exist
            ConcurrentModificationError: If the object changed since the pinned probe
        """
        if self.verify_etag and self._etag is None:
            self._probe()
        requested = byte_range(offset, length)
        with translate_client_errors("GetObject", self.key):
            return self.client.get(self.key, byte_range=requested, if_match=self._etag)
    
    def close(self) -> None:
        with self._lock:
            self._etag = None
    
    def __enter__(self) -> "S3LazyRead":
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class _DrainingStream(io.RawIOBase):
    """
    Binary stream over a GET body that drains the remainder on close.
    
    Closing a partially read body makes the HTTP client abort the
    connection; draining it lets the connection be reused.
    """
    
    def __init__(self, body: BinaryIO, key: str):
        self._body = body
        self._key = key
    
    def readable(self) -> bool:
        return True
    
    def readinto(self, buffer) -> int:
        with translate_client_errors("GetObject", self._key):
            data = self._body.read(len(buffer))
        size = len(data)
        buffer[:size] = data
        return size
    
    def close(self) -> None:
        if self.closed:
            return
        try:
            with translate_client_errors("GetObject", self._key):
                while self._body.read(_DRAIN_CHUNK_SIZE):
                    pass
        finally:
            try:
                self._body.close()
            finally:
                super().close()


class _BufferedUpload(io.BytesIO):
    """In-memory output stream uploaded as one object when closed."""
    
    def __init__(self, upload: Callable[[bytes], None]):
        super().__init__()
        self._upload = upload
    
    def close(self) -> None:
        if self.closed:
            return
        try:
            self._upload(self.getvalue())
        finally:
            super().close()


class S3ObjectChannel:
    """
    Locked channel for a single key.
    
    Owns every stream, reader and writer it hands out and closes them all
    when the channel closes. `close` is idempotent and safe to call from
    several threads.
    """
    
    def __init__(
        self,
        client: ObjectClient,
        key: str,
        read_only: bool = True,
        writer: Optional[Callable[[str, bytes], None]] = None,
    ):
        """
        Initialize channel.
        
        Args:
            client: Object client
            key: Object key
            read_only: Whether output streams are refused
            writer: Callable performing the upload on close (defaults to client.put)
        """
        self.client = client
        self.key = key
        self.read_only = read_only
        self._writer = writer or (lambda key, data: self.client.put(key, data))
        self._resources: list = []
        self._closed = False
        self._lock = threading.Lock()
    
    def _register(self, resource):
        with self._lock:
            if self._closed:
                resource.close()
                raise ValueError(f"Channel for {self.key!r} is closed")
            self._resources.append(resource)
        return resource
    
    def new_input_stream(self) -> io.RawIOBase:
        """Open the object for binary reading."""
        with translate_client_errors("GetObject", self.key):
            body = self.client.open_stream(self.key)
        return self._register(_DrainingStream(body, self.key))
    
    def new_reader(self) -> io.TextIOWrapper:
        """Open the object for UTF-8 text reading."""
        stream = self.new_input_stream()
        return self._register(io.TextIOWrapper(io.BufferedReader(stream), encoding="utf-8"))
    
    def new_output_stream(self) -> io.BytesIO:
        """Open a binary stream whose content replaces the object on close."""
        if self.read_only:
            raise OperationNotPermittedError("Channel is read-only", operation="write", key=self.key)
        return self._register(_BufferedUpload(lambda data: self._writer(self.key, data)))
    
    def new_writer(self) -> io.TextIOWrapper:
        """Open a UTF-8 text writer whose content replaces the object on close."""
        stream = self.new_output_stream()
        return self._register(io.TextIOWrapper(stream, encoding="utf-8"))
    
    @property
    def closed(self) -> bool:
        return self._closed
    
    def close(self) -> None:
        """Close every resource opened through this channel, once."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            resources, self._resources = self._resources, []
        
        first_error: Optional[BaseException] = None
        # wrappers were registered after the streams they wrap
        for resource in reversed(resources):
            try:
                resource.close()
            except Exception as e:
                logger.warning("Failed to close resource for %s: %s", self.key, e)
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error
    
    def __enter__(self) -> "S3ObjectChannel":
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
