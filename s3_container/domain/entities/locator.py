"""Container locator entity."""
from pydantic import BaseModel, ConfigDict


class Locator(BaseModel):
    """
    Absolute address of a container root.
    
    The same (bucket, root_key) pair is recovered whichever addressing style
    the locator was parsed from; `scheme` and `endpoint` only record how to
    reach the store.
    """
    model_config = ConfigDict(frozen=True)
    
    scheme: str = "s3"
    endpoint: str | None = None
    """Host[:port] of a non-native endpoint; None for the native scheme."""
    bucket: str
    root_key: str = ""
    region: str | None = None
    is_aws: bool = True
    """Whether the endpoint belongs to the vendor service (virtual-hosted capable)."""
    
    @property
    def endpoint_url(self) -> str | None:
        """Endpoint URL for a client, or None when the default endpoint applies."""
        if self.endpoint is None:
            return None
        return f"{self.scheme}://{self.endpoint}"
