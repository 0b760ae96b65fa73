"""Metadata resolver response model."""

from typing import Any

from pydantic import BaseModel, Field


class MetadataResponse(BaseModel):
    """A resolved evidence document.

    Attributes:
        cid: Content identifier.
        kind: "request", "result", "profile" or "unknown".
        gateway_url: Public gateway URL.
        summary: Flat, defaulted fields for display.
        document: The raw document.
    """

    cid: str
    kind: str
    gateway_url: str
    summary: dict[str, Any] = Field(default_factory=dict)
    document: dict[str, Any] = Field(default_factory=dict)
