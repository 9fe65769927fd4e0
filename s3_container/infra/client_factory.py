"""boto3 S3 client construction from container locators."""
from typing import Optional

import boto3
from botocore import UNSIGNED
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from s3_container.domain.entities.locator import Locator
from s3_container.infra.common.logger import get_logger
from s3_container.infra.common.uri import is_aws_endpoint

logger = get_logger(__name__)

DEFAULT_REGION = "us-east-1"


def _endpoint_host(endpoint_url: str) -> str:
    return endpoint_url.split("://", 1)[-1].split("/", 1)[0].split(":", 1)[0]


def resolve_endpoint_url(locator: Locator, endpoint_url: Optional[str] = None) -> Optional[str]:
    """
    Endpoint a client should talk to.
    
    An explicit endpoint wins; self-hosted locators use their own endpoint;
    vendor locators use the SDK default for their region.
    """
    if endpoint_url:
        return endpoint_url
    if not locator.is_aws:
        return locator.endpoint_url
    return None


def resolve_region(locator: Locator, region: Optional[str] = None) -> str:
    """Region from the locator, then the argument, then us-east-1."""
    return locator.region or region or DEFAULT_REGION


def _build_client(
    endpoint_url: Optional[str],
    region: str,
    anonymous: bool,
    verify_ssl: bool,
):
    path_style = endpoint_url is not None and not is_aws_endpoint(_endpoint_host(endpoint_url))
    config_kwargs = {"s3": {"addressing_style": "path" if path_style else "auto"}}
    if anonymous:
        config_kwargs["signature_version"] = UNSIGNED
    return boto3.client(
        "s3",
        endpoint_url=endpoint_url,
        region_name=region,
        verify=verify_ssl,
        config=Config(**config_kwargs),
    )


def can_list_bucket(s3_client, bucket: str) -> bool:
    """Check whether a client may list a bucket (any refusal or transport failure reads as False)."""
    try:
        s3_client.list_objects_v2(Bucket=bucket, MaxKeys=1)
        return True
    except (ClientError, BotoCoreError) as e:
        logger.debug("Cannot list bucket %s: %s", bucket, e)
        return False


def create_s3_client(
    locator: Locator,
    endpoint_url: Optional[str] = None,
    region: Optional[str] = None,
    anonymous: bool = False,
    verify_ssl: bool = True,
):
    """
    Create a boto3 S3 client for a container.
    
    Self-hosted endpoints get path-style addressing. An anonymous client
    that cannot list the bucket is replaced by one using the default
    credential chain; it is returned even if that one cannot list either.
    
    Args:
        locator: Container locator
        endpoint_url: Explicit endpoint URL (overrides the locator)
        region: Fallback region when the locator does not name one
        anonymous: Whether to send unsigned requests
        verify_ssl: Whether to verify TLS certificates
    
    Returns:
        boto3 S3 client
    """
    endpoint = resolve_endpoint_url(locator, endpoint_url)
    region_name = resolve_region(locator, region)
    s3_client = _build_client(endpoint, region_name, anonymous, verify_ssl)
    
    if anonymous and not can_list_bucket(s3_client, locator.bucket):
        logger.warning(
            "Anonymous access cannot list bucket %s, retrying with default credentials",
            locator.bucket,
        )
        s3_client = _build_client(endpoint, region_name, False, verify_ssl)
    
    return s3_client
