"""Tests for the in-memory object client."""
import pytest
from botocore.exceptions import ClientError

from s3_container.testing.memory_store import InMemoryObjectClient

KEYS = [
    "a/",
    "a/b/",
    "a/b/c/",
    "a/b/data.bin",
    "a/c/x",
    "a/d",
    "a/e/f/g",
    "b",
    "c/",
    "c/z",
]


@pytest.fixture
def populated():
    client = InMemoryObjectClient(max_keys=2)
    for key in KEYS:
        client.put(key, key.encode())
    return client


def _drain(client, prefix, delimiter=None):
    keys, common_prefixes, calls = [], [], 0
    token = None
    while True:
        page = client.list_page(prefix, delimiter=delimiter, continuation_token=token)
        calls += 1
        keys.extend(page.keys)
        common_prefixes.extend(page.common_prefixes)
        if not page.is_truncated:
            return keys, common_prefixes, calls
        token = page.next_token


@pytest.mark.parametrize("prefix", ["", "a/", "a/b/", "c/", "missing/"])
@pytest.mark.parametrize("delimiter", [None, "/"])
def test_paged_listing_matches_single_page(populated, prefix, delimiter):
    """Test that draining small pages yields the same result as one large page."""
    keys, common_prefixes, _ = _drain(populated, prefix, delimiter)
    
    populated.max_keys = 1000
    page = populated.list_page(prefix, delimiter=delimiter)
    assert not page.is_truncated
    assert page.next_token is None
    assert keys == page.keys
    assert common_prefixes == page.common_prefixes


def test_listing_with_delimiter(populated):
    """Test common prefix grouping."""
    populated.max_keys = 1000
    page = populated.list_page("a/", delimiter="/")
    assert page.keys == ["a/", "a/d"]
    assert page.common_prefixes == ["a/b/", "a/c/", "a/e/"]


def test_listing_is_paged(populated):
    """Test that a small cap produces several pages."""
    _, _, calls = _drain(populated, "")
    assert calls == 5


def test_ranges(populated):
    """Test ranged gets."""
    populated.put("obj", b"0123456789")
    assert populated.get("obj", byte_range="bytes=2-4") == b"234"
    assert populated.get("obj", byte_range="bytes=7-") == b"789"
    assert populated.get("obj", byte_range="bytes=8-20") == b"89"
    with pytest.raises(ClientError) as exc_info:
        populated.get("obj", byte_range="bytes=10-")
    assert exc_info.value.response["Error"]["Code"] == "InvalidRange"


def test_if_match(populated):
    """Test ETag preconditions."""
    etag = populated.put("obj", b"one")
    assert populated.head("obj", if_match=f'"{etag}"').size == 3
    populated.put("obj", b"two")
    with pytest.raises(ClientError) as exc_info:
        populated.get("obj", if_match=etag)
    assert exc_info.value.response["ResponseMetadata"]["HTTPStatusCode"] == 412


def test_missing_bucket():
    """Test that every data operation fails on a missing bucket."""
    client = InMemoryObjectClient(create=False)
    with pytest.raises(ClientError):
        client.head_bucket()
    with pytest.raises(ClientError):
        client.put("k", b"")
    with pytest.raises(ClientError):
        client.list_page("")


def test_bucket_not_empty(populated):
    """Test that a non-empty bucket cannot be deleted."""
    with pytest.raises(ClientError) as exc_info:
        populated.delete_bucket()
    assert exc_info.value.response["Error"]["Code"] == "BucketNotEmpty"


def test_truncated_pages_carry_a_token(populated):
    """Test that only truncated pages carry a continuation token."""
    first = populated.list_page("")
    assert first.is_truncated
    assert first.next_token is not None
    assert first.key_count == 2
    
    populated.max_keys = 1000
    assert not populated.list_page("").is_truncated
