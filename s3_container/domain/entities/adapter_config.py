"""Adapter configuration entity."""
from typing import Literal

from pydantic import BaseModel, Field, field_validator

IoPolicyName = Literal["unsafe", "atomic"]

_POLICY_ALIASES = {
    "unsafe": "unsafe",
    "atomic": "atomic",
    "etag-match": "atomic",
    "etag_match": "atomic",
    "etagmatch": "atomic",
}


def canonical_policy_name(value: str) -> str:
    """
    Map a policy selector to its canonical name.
    
    Raises:
        ValueError: If the selector is unknown
    """
    name = _POLICY_ALIASES.get((value or "").strip().lower())
    if name is None:
        raise ValueError(f"Invalid io policy: {value!r}. Must be one of: unsafe, atomic, etag-match")
    return name


class AdapterConfig(BaseModel):
    """Runtime configuration for the storage adapter."""
    io_policy: IoPolicyName | None = None
    """Consistency policy; None uses the process-wide S3_CONTAINER_IO_POLICY selector."""
    region: str | None = None
    endpoint_url: str | None = None
    anonymous: bool = False
    create_bucket: bool = False
    """Whether the adapter may create its bucket when absent."""
    list_page_size: int | None = Field(default=None, gt=0, le=1000)
    verify_ssl: bool = True
    
    @field_validator("io_policy", mode="before")
    @classmethod
    def _canonical_policy(cls, value):
        if isinstance(value, str):
            return canonical_policy_name(value)
        return value
