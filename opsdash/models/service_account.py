"""Parsed service-account key material."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"


class ServiceAccountInfo(BaseModel):
    """Subset of a service-account key file needed to sign assertions."""

    model_config = ConfigDict(extra="ignore")

    client_email: str = Field(..., min_length=1)
    private_key: str = Field(..., min_length=1)
    private_key_id: str | None = None
    token_uri: str = DEFAULT_TOKEN_URI


__all__ = ["DEFAULT_TOKEN_URI", "ServiceAccountInfo"]
