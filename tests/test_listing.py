"""Tests for existence checks and hierarchical listing."""
import typing
from unittest.mock import Mock

import pytest
from botocore.exceptions import ClientError

from s3_container.domain.entities.locator import Locator
from s3_container.domain.ports.object_client import ObjectClient
from s3_container.infra.bucket import BucketLifecycle
from s3_container.infra.common.errors import IOFailureError, NotFoundError
from s3_container.infra.common.paths import ContainerKeys
from s3_container.infra.io_policy import UnsafePolicy
from s3_container.infra.key_value_access import S3KeyValueAccess
from s3_container.infra.listing import ListingEngine
from s3_container.testing.memory_store import InMemoryObjectClient


def test_create_directories_writes_markers(memory_kva, memory_client):
    """Test that every missing directory along the path gets a marker."""
    memory_kva.create_directories("/a/b/c")
    
    assert set(memory_client.objects) == {"a/", "a/b/", "a/b/c/"}
    assert all(data == b"" for data in memory_client.objects.values())
    assert memory_kva.is_directory("/a/b/c")
    assert not memory_kva.is_file("/a/b/c")


def test_create_directories_is_idempotent(memory_kva, memory_client):
    """Test that existing directories are not written again."""
    memory_kva.create_directories("a/b")
    puts_before = [op for op in memory_client.ops if op.name == "put"]
    
    memory_kva.create_directories("a/b")
    
    puts_after = [op for op in memory_client.ops if op.name == "put"]
    assert puts_after == puts_before


def test_create_directories_skips_implied_directories(memory_kva, memory_client):
    """Test that a directory implied by a deeper key gets no marker."""
    memory_kva.write("a/b/data.bin", b"x")
    memory_kva.create_directories("a/b/c")
    assert set(memory_client.objects) == {"a/b/data.bin", "a/b/c/"}


def test_list_children(memory_kva):
    """Test listing immediate child directories."""
    memory_kva.create_directories("/a/b/c")
    
    assert memory_kva.list("/a") == ["b"]
    assert memory_kva.list("/a/b") == ["c"]
    assert memory_kva.list("/a/b/c") == []
    assert memory_kva.list("/") == ["a"]


def test_list_missing_directory(memory_kva):
    """Test that listing a non-directory raises NotFoundError."""
    memory_kva.create_directories("/a/b/c")
    with pytest.raises(NotFoundError):
        memory_kva.list("/a/x")


def test_list_directories_ignores_files(memory_kva):
    """Test that plain objects are not reported as child directories."""
    memory_kva.write("g/attributes.json", b"{}")
    memory_kva.write("g/s0/0/0", b"block")
    memory_kva.create_directories("g/s1")
    
    assert memory_kva.list_directories("g") == ["s0", "s1"]
    assert memory_kva.list("g") == ["s0", "s1"]


def test_file_and_directory_at_same_path(memory_kva):
    """Test that an object and a prefix may share a path."""
    memory_kva.write("x", b"data")
    memory_kva.write("x/y", b"data")
    
    assert memory_kva.is_file("x")
    assert memory_kva.is_directory("x")
    assert memory_kva.exists("x")
    assert not memory_kva.exists("z")


def test_delete_keeps_parent(memory_kva):
    """Test that deleting a directory leaves its parent in place."""
    memory_kva.create_directories("/a/b/c")
    memory_kva.delete("/a/b/c")
    
    assert not memory_kva.exists("/a/b/c")
    assert memory_kva.exists("/a/b")
    assert memory_kva.list("/a/b") == []


def test_delete_removes_whole_subtree(memory_kva, memory_client):
    """Test that deleting a top-level directory removes it and everything below."""
    memory_kva.create_directories("/a/b/c")
    memory_kva.write("/a/b/c/data.bin", b"x")
    memory_kva.create_directories("/ab")
    
    memory_kva.delete("/a")
    
    assert not memory_kva.exists("/a/b")
    assert not memory_kva.exists("/a")
    assert memory_kva.exists("/ab")
    assert set(memory_client.objects) == {"ab/"}


def test_paged_listing_matches_unpaged():
    """Test that a small store page cap gives the same listing."""
    paged_client = InMemoryObjectClient(max_keys=2)
    unpaged_client = InMemoryObjectClient()
    paged = S3KeyValueAccess(paged_client, Locator(bucket="test-bucket"))
    unpaged = S3KeyValueAccess(unpaged_client, Locator(bucket="test-bucket"))
    
    for kva in (paged, unpaged):
        for name in ["d0", "d1", "d2", "d3", "d4"]:
            kva.create_directories(f"root/{name}/s0")
            kva.write(f"root/{name}/attributes.json", b"{}")
        kva.write("root/attributes.json", b"{}")
    
    assert paged.list("root") == unpaged.list("root") == ["d0", "d1", "d2", "d3", "d4"]
    assert paged.listing.list_keys("root") == unpaged.listing.list_keys("root")
    list_calls = [op for op in paged_client.ops if op.name == "list_page" and op.key == "root/"]
    assert len(list_calls) > 2


def test_list_keys_returns_container_paths():
    """Test recursive listing below a root key."""
    client = InMemoryObjectClient()
    kva = S3KeyValueAccess(client, Locator(bucket="test-bucket", root_key="data/sample"))
    kva.write("g/attributes.json", b"{}")
    kva.write("g/0/0", b"x")
    client.put("other/key", b"y")
    
    assert kva.listing.list_keys() == ["g/0/0", "g/attributes.json"]


def test_forbidden_object_reads_as_absent(memory_kva, memory_client):
    """Test that 403 on an existence check reads as absent rather than failing."""
    memory_client.put("secret", b"x")
    memory_client.forbidden_keys.add("secret")
    
    assert not memory_kva.is_file("secret")


def _engine(client):
    return ListingEngine(
        client,
        ContainerKeys(""),
        BucketLifecycle(client),
        UnsafePolicy(client),
    )


def test_forbidden_listing_reads_as_absent():
    """Test that a 403 on a prefix check reads as 'not a directory'."""
    client = Mock(spec=ObjectClient)
    client.bucket = "test-bucket"
    client.list_page.side_effect = ClientError(
        {"Error": {"Code": "AccessDenied"}, "ResponseMetadata": {"HTTPStatusCode": 403}},
        "ListObjectsV2",
    )
    
    engine = _engine(client)
    
    assert not engine.is_directory("a")
    with pytest.raises(NotFoundError):
        engine.list("a")


def test_existence_check_propagates_other_failures():
    """Test that non-absence errors are not swallowed by existence checks."""
    client = Mock(spec=ObjectClient)
    client.bucket = "test-bucket"
    client.head.side_effect = ClientError(
        {"Error": {"Code": "InternalError"}, "ResponseMetadata": {"HTTPStatusCode": 500}},
        "HeadObject",
    )
    
    with pytest.raises(IOFailureError):
        _engine(client).is_file("a")


@pytest.mark.parametrize(
    "method",
    [ListingEngine.list_directories, ListingEngine.list_keys, S3KeyValueAccess.list_directories],
)
def test_return_annotations_use_builtin_list(method):
    """Test that methods declared after `list` still annotate with the builtin."""
    assert typing.get_type_hints(method)["return"] == list[str]
