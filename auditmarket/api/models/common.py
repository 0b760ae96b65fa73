"""Shared API model types."""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, Field, PlainSerializer

# Custom datetime serializer for ISO 8601 with Z suffix (Pydantic v2)
DateTimeWithZ = Annotated[
    datetime,
    PlainSerializer(
        lambda v: v.isoformat().replace("+00:00", "Z") if v else None, return_type=str
    ),
]

# Money travels as a decimal string so no float rounding creeps in
Money = Annotated[Decimal, PlainSerializer(lambda v: str(v), return_type=str)]


class ProblemDetail(BaseModel):
    """RFC 7807 error body.

    Attributes:
        type: URI identifying the problem type.
        title: Short summary.
        status: HTTP status code.
        detail: Explanation specific to this occurrence.
        instance: Request URL.
    """

    type: str
    title: str
    status: int
    detail: str
    instance: str | None = None
    extensions: dict[str, Any] = Field(default_factory=dict)


class PaymentBreakdownModel(BaseModel):
    """Settlement figures for a price and reviewer count."""

    base_price: Money
    reviewer_count: int
    initial_engagement_fee: Money
    reviewer_payout: Money
    platform_fee: Money
    total_price: Money
