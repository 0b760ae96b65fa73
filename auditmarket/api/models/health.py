"""Health check response models."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response model.

    Attributes:
        status: Health status string (e.g., "healthy").
        backend: Wired backend ("memory" or "production").
        network: Ledger network certificates are minted on.
    """

    status: str
    backend: str
    network: str
