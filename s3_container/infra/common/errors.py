"""Centralized error types and transport error classification."""
from contextlib import contextmanager
from enum import Enum
from typing import Iterator, Optional

from botocore.exceptions import BotoCoreError, ClientError


class ErrorKind(str, Enum):
    """Failure taxonomy surfaced to callers."""
    NOT_FOUND = "not_found"
    CONCURRENT_MODIFICATION = "concurrent_modification"
    IO_FAILURE = "io_failure"
    OPERATION_NOT_PERMITTED = "operation_not_permitted"


class S3ContainerError(Exception):
    """Base exception for s3_container errors."""
    pass


class ConfigError(S3ContainerError):
    """Configuration error."""
    pass


class StorageError(S3ContainerError):
    """
    Storage operation error tagged with its kind.
    
    Attributes:
        kind: Failure kind
        operation: Operation that failed (e.g. "GetObject", "list")
        key: Object key or path involved, if any
        status_code: HTTP status returned by the store, if any
        code: Protocol error code returned by the store, if any
    """
    
    kind: ErrorKind = ErrorKind.IO_FAILURE
    
    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        key: Optional[str] = None,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ):
        self.message = message
        self.operation = operation
        self.key = key
        self.status_code = status_code
        self.code = code
        super().__init__(self._format())
    
    def _format(self) -> str:
        context = []
        if self.operation:
            context.append(f"operation={self.operation}")
        if self.key is not None:
            context.append(f"key={self.key!r}")
        if self.code:
            context.append(f"code={self.code}")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class NotFoundError(StorageError):
    """Key or bucket does not exist."""
    kind = ErrorKind.NOT_FOUND


class ConcurrentModificationError(StorageError):
    """Object changed between two observations bound to the same ETag."""
    kind = ErrorKind.CONCURRENT_MODIFICATION


class IOFailureError(StorageError):
    """Any other transport or protocol failure, including 403 Forbidden."""
    kind = ErrorKind.IO_FAILURE


class OperationNotPermittedError(StorageError):
    """Mutation attempted on a read-only or non-provisioning adapter."""
    kind = ErrorKind.OPERATION_NOT_PERMITTED


_NOT_FOUND_CODES = {"404", "NoSuchKey", "NoSuchBucket", "NotFound"}
_PRECONDITION_CODES = {"412", "PreconditionFailed"}
_FORBIDDEN_CODES = {"403", "AccessDenied", "Forbidden"}

# Everything the object client may raise: service responses and transport failures
TRANSPORT_ERRORS = (ClientError, BotoCoreError)


def error_code(error: Exception) -> str:
    """Get the protocol error code of a ClientError ("" if missing or not a ClientError)."""
    response = getattr(error, "response", None) or {}
    return str(response.get("Error", {}).get("Code", "") or "")


def status_code(error: Exception) -> Optional[int]:
    """Get the HTTP status of a ClientError, falling back to numeric codes."""
    response = getattr(error, "response", None) or {}
    status = response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    if status is not None:
        return int(status)
    code = error_code(error)
    return int(code) if code.isdigit() else None


def classify_client_error(
    error: ClientError,
    operation: Optional[str] = None,
    key: Optional[str] = None,
) -> StorageError:
    """
    Map a botocore ClientError onto the StorageError taxonomy.
    
    This is the only place where status codes and protocol error codes
    are interpreted.
    
    Args:
        error: Error raised by the object client
        operation: Operation name for context (defaults to the boto3 operation)
        key: Object key for context
    
    Returns:
        StorageError subclass instance (not raised)
    """
    code = error_code(error)
    status = status_code(error)
    message = error.response.get("Error", {}).get("Message") or str(error)
    operation = operation or getattr(error, "operation_name", None)
    
    if code in _NOT_FOUND_CODES or status == 404:
        error_type = NotFoundError
    elif code in _PRECONDITION_CODES or status == 412:
        error_type = ConcurrentModificationError
    else:
        error_type = IOFailureError
    
    return error_type(message, operation=operation, key=key, status_code=status, code=code or None)


def classify_error(
    error: Exception,
    operation: Optional[str] = None,
    key: Optional[str] = None,
) -> StorageError:
    """
    Map any object client failure onto the StorageError taxonomy.
    
    Service responses are classified by status and error code; connection,
    timeout and credential failures carry neither and are IO failures.
    
    Args:
        error: ClientError or BotoCoreError raised by the object client
        operation: Operation name for context
        key: Object key for context
    
    Returns:
        StorageError subclass instance (not raised)
    """
    if isinstance(error, ClientError):
        return classify_client_error(error, operation, key)
    return IOFailureError(str(error), operation=operation, key=key)


def is_forbidden(error: StorageError) -> bool:
    """Check if a classified error is a 403/AccessDenied response."""
    return error.status_code == 403 or (error.code or "") in _FORBIDDEN_CODES


def is_absent_or_forbidden(error: StorageError) -> bool:
    """
    Check if an existence probe should read the error as "absent".
    
    The store answers 403 instead of 404 to callers without list permission,
    so the two cannot be told apart and both count as absent.
    """
    return isinstance(error, NotFoundError) or is_forbidden(error)


@contextmanager
def translate_client_errors(operation: str, key: Optional[str] = None) -> Iterator[None]:
    """Re-raise object client failures from the wrapped block as classified StorageErrors."""
    try:
        yield
    except TRANSPORT_ERRORS as e:
        raise classify_error(e, operation, key) from e
