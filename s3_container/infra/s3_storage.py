"""S3 object client backed by boto3."""
from typing import BinaryIO, Iterable, Optional

import boto3
from botocore.exceptions import ClientError

from s3_container.domain.entities.listing import ListingPage, ObjectMetadata
from s3_container.domain.ports.object_client import ObjectClient
from s3_container.infra.common.logger import get_logger

logger = get_logger(__name__)

DELETE_BATCH_SIZE = 1000


def _quote_etag(etag: str) -> str:
    return etag if etag.startswith('"') else f'"{etag}"'


class S3Storage(ObjectClient):
    """S3 storage adapter for a single bucket."""
    
    def __init__(self, bucket: str, region: Optional[str] = None, s3_client=None):
        """
        Initialize S3 storage.
        
        Args:
            bucket: S3 bucket name
            region: AWS region (defaults to boto3 default)
            s3_client: Preconfigured boto3 S3 client (built from region if None)
        """
        self.bucket = bucket
        self.region = region
        self.s3_client = s3_client or boto3.client("s3", region_name=region)
    
    def head_bucket(self) -> None:
        """Probe bucket; raises ClientError if missing or forbidden."""
        self.s3_client.head_bucket(Bucket=self.bucket)
    
    def create_bucket(self) -> None:
        """Create bucket, with a location constraint outside us-east-1."""
        kwargs = {"Bucket": self.bucket}
        region = self.region or self.s3_client.meta.region_name
        if region and region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": region}
        self.s3_client.create_bucket(**kwargs)
    
    def delete_bucket(self) -> None:
        """Delete bucket (must be empty)."""
        self.s3_client.delete_bucket(Bucket=self.bucket)
    
    def head(self, key: str, if_match: Optional[str] = None) -> ObjectMetadata:
        """Head object to get size and ETag."""
        kwargs = {"Bucket": self.bucket, "Key": key}
        if if_match:
            kwargs["IfMatch"] = _quote_etag(if_match)
        response = self.s3_client.head_object(**kwargs)
        return ObjectMetadata(
            key=key,
            size=response["ContentLength"],
            etag=response["ETag"].strip('"'),
        )
    
    def get(
        self,
        key: str,
        byte_range: Optional[str] = None,
        if_match: Optional[str] = None,
    ) -> bytes:
        """Get object (or a byte range of it) from S3."""
        kwargs = {"Bucket": self.bucket, "Key": key}
        if byte_range:
            kwargs["Range"] = byte_range
        if if_match:
            kwargs["IfMatch"] = _quote_etag(if_match)
        response = self.s3_client.get_object(**kwargs)
        body = response["Body"]
        try:
            return body.read()
        finally:
            body.close()
    
    def open_stream(self, key: str) -> BinaryIO:
        """Open the object body as a streaming response."""
        response = self.s3_client.get_object(Bucket=self.bucket, Key=key)
        return response["Body"]
    
    def put(self, key: str, data: bytes) -> str:
        """
        Put object to S3.
        
        Returns:
            ETag of uploaded object
        """
        response = self.s3_client.put_object(Bucket=self.bucket, Key=key, Body=data)
        return response["ETag"].strip('"')
    
    def delete(self, key: str) -> None:
        """Delete a single object."""
        self.s3_client.delete_object(Bucket=self.bucket, Key=key)
    
    def delete_many(self, keys: Iterable[str]) -> None:
        """
        Delete objects in batches of at most 1000 keys.
        
        Raises:
            ClientError: For the first key the store refused to delete
        """
        keys = list(keys)
        for start in range(0, len(keys), DELETE_BATCH_SIZE):
            chunk = keys[start:start + DELETE_BATCH_SIZE]
            response = self.s3_client.delete_objects(
                Bucket=self.bucket,
                Delete={"Objects": [{"Key": key} for key in chunk], "Quiet": True},
            )
            errors = response.get("Errors") or []
            if errors:
                first = errors[0]
                logger.warning("Batch delete refused %d of %d keys", len(errors), len(chunk))
                raise ClientError(
                    {"Error": {"Code": first.get("Code", ""), "Message": first.get("Message", ""), "Key": first.get("Key")}},
                    "DeleteObjects",
                )
    
    def list_page(
        self,
        prefix: str,
        delimiter: Optional[str] = None,
        max_keys: Optional[int] = None,
        continuation_token: Optional[str] = None,
    ) -> ListingPage:
        """List one page of objects and common prefixes under a prefix."""
        kwargs = {"Bucket": self.bucket, "Prefix": prefix}
        if delimiter:
            kwargs["Delimiter"] = delimiter
        if max_keys:
            kwargs["MaxKeys"] = max_keys
        if continuation_token:
            kwargs["ContinuationToken"] = continuation_token
        response = self.s3_client.list_objects_v2(**kwargs)
        return ListingPage(
            prefix=prefix,
            keys=[obj["Key"] for obj in response.get("Contents", []) or []],
            common_prefixes=[cp["Prefix"] for cp in response.get("CommonPrefixes", []) or []],
            next_token=response.get("NextContinuationToken") if response.get("IsTruncated") else None,
        )
