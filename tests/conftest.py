"""Shared fixtures."""
import boto3
import pytest
from moto import mock_aws

from s3_container.domain.entities.locator import Locator
from s3_container.infra.common.config import set_io_policy_name
from s3_container.infra.key_value_access import S3KeyValueAccess
from s3_container.infra.s3_storage import S3Storage
from s3_container.testing.memory_store import InMemoryObjectClient


@pytest.fixture(autouse=True)
def aws_env(monkeypatch):
    """Fake credentials and a clean process-wide io policy for every test."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.delenv("S3_CONTAINER_IO_POLICY", raising=False)
    set_io_policy_name(None)
    yield
    set_io_policy_name(None)


@pytest.fixture
def memory_client():
    """In-memory object client with an existing bucket."""
    return InMemoryObjectClient(bucket="test-bucket")


@pytest.fixture
def memory_kva(memory_client):
    """Container at the root of an in-memory bucket."""
    return S3KeyValueAccess(memory_client, Locator(bucket="test-bucket"), io_policy="atomic")


@pytest.fixture
def s3_bucket():
    """Create an S3 bucket for testing."""
    with mock_aws():
        s3_client = boto3.client("s3", region_name="us-east-1")
        s3_client.create_bucket(Bucket="test-bucket")
        yield s3_client


@pytest.fixture
def s3_storage(s3_bucket):
    """S3Storage bound to the mocked bucket."""
    return S3Storage(bucket="test-bucket", region="us-east-1", s3_client=s3_bucket)


@pytest.fixture(params=["", "container/root"], ids=["bucket-root", "container-path"])
def kva(request, s3_storage):
    """Container on mocked S3, at the bucket root and below a key prefix."""
    locator = Locator(bucket="test-bucket", root_key=request.param)
    return S3KeyValueAccess(s3_storage, locator, io_policy="atomic")
