"""HTTP transport configuration model."""

from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator


class HttpConfig(BaseModel):
    """Configuration for the HTTP executor and request builder.

    Attributes:
        base_url: Base address requests are resolved against
        timeout: Per-attempt timeout in seconds (None = wait forever)
        headers: Default headers sent with every request
        verify: Verify TLS certificates
        debug: Dump every request and response
    """

    base_url: Optional[str] = None
    timeout: Optional[float] = Field(30.0, gt=0.0)
    headers: Dict[str, str] = Field(default_factory=dict)
    verify: bool = True
    debug: bool = False

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return value
