"""Payment breakdown model and money rounding."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

CENTS = Decimal("0.01")


def to_cents(amount: Decimal) -> Decimal:
    """Round an amount half-up to the two decimal places prices are stored with."""
    return amount.quantize(CENTS, ROUND_HALF_UP)


def limit_to_cents(amount: Decimal) -> Decimal:
    """Round sub-cent amounts to cents; coarser amounts keep their exponent."""
    if amount.is_finite() and amount.as_tuple().exponent < -2:
        return to_cents(amount)
    return amount


@dataclass(frozen=True)
class PaymentBreakdown:
    """Settlement figures derived from a base price.

    Attributes:
        base_price: Price before reviewer surcharges.
        reviewer_count: Number of reviewers, 1 to 3.
        initial_engagement_fee: Fixed fee paid when the request is posted.
        reviewer_payout: Base price with reviewer surcharges applied.
        platform_fee: 15% of the reviewer payout.
        total_price: Reviewer payout plus platform fee.
    """

    base_price: Decimal
    reviewer_count: int
    initial_engagement_fee: Decimal
    reviewer_payout: Decimal
    platform_fee: Decimal
    total_price: Decimal
