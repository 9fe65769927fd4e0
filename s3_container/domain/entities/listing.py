"""Object metadata and listing page entities."""
from pydantic import BaseModel, ConfigDict


class ObjectMetadata(BaseModel):
    """Result of a metadata probe."""
    model_config = ConfigDict(frozen=True)
    
    key: str
    size: int
    etag: str
    """Version token, without surrounding quotes."""


class ListingPage(BaseModel):
    """One continuation-token-addressed batch of a prefix listing."""
    model_config = ConfigDict(frozen=True)
    
    prefix: str
    keys: list[str] = []
    common_prefixes: list[str] = []
    next_token: str | None = None
    
    @property
    def is_truncated(self) -> bool:
        """Whether more pages remain."""
        return self.next_token is not None
    
    @property
    def key_count(self) -> int:
        """Number of entries (keys and common prefixes) on this page."""
        return len(self.keys) + len(self.common_prefixes)
