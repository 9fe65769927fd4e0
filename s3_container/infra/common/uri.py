"""Locator parsing for native, virtual-hosted and path-style URIs."""
import re
from typing import Optional
from urllib.parse import unquote, urlparse

from s3_container.domain.entities.locator import Locator
from s3_container.infra.common.errors import ConfigError
from s3_container.infra.common.paths import ContainerKeys, compose, components, normalize, remove_leading_slash

AWS_ENDPOINT_PATTERN = re.compile(r"^(.+\.)?(s3[.\-].*amazonaws\.com)$", re.IGNORECASE)
S3_SCHEME = re.compile(r"^s3a?$", re.IGNORECASE)
_HTTP_SCHEMES = ("http", "https")

# s3.amazonaws.com, s3-eu-west-1.amazonaws.com, s3.eu-west-1.amazonaws.com,
# s3.dualstack.eu-west-1.amazonaws.com
_AWS_REGION_PATTERN = re.compile(
    r"^s3(?:[.\-]dualstack)?[.\-]([a-z]{2}(?:-gov)?-[a-z]+-\d)\.amazonaws\.com$",
    re.IGNORECASE,
)


class _NotVendorUri(ValueError):
    """Raised when a URI does not follow the vendor's addressing rules."""
    pass


def is_aws_endpoint(host: Optional[str]) -> bool:
    """Check if a host name belongs to the vendor's S3 endpoints."""
    return bool(host) and AWS_ENDPOINT_PATTERN.match(host) is not None


def _region_from_service_host(service_host: str) -> Optional[str]:
    match = _AWS_REGION_PATTERN.match(service_host)
    if match is None:
        return None
    return match.group(1).lower()


def _split_bucket_and_key(path: str) -> tuple[str, str]:
    """Manually split "/bucket/key..." into its bucket and key."""
    trimmed = remove_leading_slash(path)
    if not trimmed:
        return "", ""
    bucket, _, key = trimmed.partition("/")
    return bucket, key


def _parse_vendor_uri(uri: str) -> Locator:
    """
    Parse a native or vendor HTTP(S) URI.
    
    Raises:
        _NotVendorUri: If the URI does not follow vendor addressing rules
    """
    parsed = urlparse(uri)
    scheme = (parsed.scheme or "").lower()
    path = unquote(parsed.path or "")
    
    if S3_SCHEME.match(scheme):
        if not parsed.netloc:
            raise _NotVendorUri(f"Missing bucket in URI: {uri}")
        return Locator(scheme="s3", bucket=parsed.netloc, root_key=normalize(path).rstrip("/"))
    
    if scheme not in _HTTP_SCHEMES:
        raise _NotVendorUri(f"Unsupported scheme in URI: {uri}")
    
    host = parsed.hostname or ""
    match = AWS_ENDPOINT_PATTERN.match(host)
    if match is None:
        raise _NotVendorUri(f"Not a vendor endpoint: {host}")
    
    bucket_part, service_host = match.group(1), match.group(2)
    region = _region_from_service_host(service_host)
    
    if bucket_part:
        # virtual-hosted: https://bucket.s3.region.amazonaws.com/key
        bucket = bucket_part[:-1]
        key = normalize(path).rstrip("/")
    else:
        # path-style: https://s3.region.amazonaws.com/bucket/key
        bucket, key = _split_bucket_and_key(path)
        key = normalize(key).rstrip("/")
    
    if not bucket:
        raise _NotVendorUri(f"Missing bucket in URI: {uri}")
    
    return Locator(
        scheme=scheme,
        endpoint=parsed.netloc,
        bucket=bucket,
        root_key=key,
        region=region,
        is_aws=True,
    )


def to_locator(uri: str) -> Locator:
    """
    Parse a container URI into a Locator.
    
    Accepts `s3://bucket/key`, virtual-hosted and path-style vendor URLs,
    and falls back to manual path splitting (`scheme://host[:port]/bucket/key`)
    for self-hosted services the vendor rules reject.
    
    Args:
        uri: Container URI
    
    Returns:
        Locator
    
    Raises:
        ConfigError: If no bucket can be recovered
    """
    if not uri or not uri.strip():
        raise ConfigError("Container URI is required")
    uri = uri.strip()
    
    try:
        return _parse_vendor_uri(uri)
    except _NotVendorUri:
        pass
    
    parsed = urlparse(uri)
    scheme = (parsed.scheme or "").lower()
    if scheme not in _HTTP_SCHEMES or not parsed.netloc:
        raise ConfigError(f"Could not parse container URI: {uri}")
    
    bucket, key = _split_bucket_and_key(unquote(parsed.path or ""))
    if not bucket:
        raise ConfigError(f"Container URI has no bucket: {uri}")
    
    return Locator(
        scheme=scheme,
        endpoint=parsed.netloc,
        bucket=bucket,
        root_key=normalize(key).rstrip("/"),
        is_aws=False,
    )


def get_bucket(uri: str) -> str:
    """Bucket name addressed by a URI."""
    return to_locator(uri).bucket


def get_key(uri: str) -> str:
    """Root key addressed by a URI ("" for a bucket root)."""
    return to_locator(uri).root_key


def resolve_key(locator: Locator, path: str) -> str:
    """Resolve a container-relative path to its object key."""
    return ContainerKeys(locator.root_key).key(path)


def locator_uri(locator: Locator, path: str = "") -> str:
    """
    Render a container path as a URI.
    
    Vendor endpoints use the native scheme; self-hosted endpoints use
    path-style HTTP(S) so the URI can be parsed back without guessing.
    
    Args:
        locator: Container root
        path: Container-relative path
    
    Returns:
        URI of the path
    """
    key = resolve_key(locator, path)
    if locator.is_aws or locator.endpoint is None:
        return f"s3://{locator.bucket}/{key}"
    return f"{locator.scheme}://{locator.endpoint}/{locator.bucket}/{key}"


def with_root(locator: Locator, path: str) -> Locator:
    """Locator of a sub-container rooted at `path` below `locator`."""
    return locator.model_copy(update={"root_key": compose(locator.root_key, "/".join(components(path)))})
