"""Pricing and settlement calculator.

Pure arithmetic over Decimal. Every additional reviewer beyond the first
adds a fixed 25% of the base price before the split; the platform fee is
15% of the reviewer payout and is charged on top of it.

Example:
    calculate_payment(Decimal("1000"), 1)
    -> payout 1000.00, fee 150.00, total 1150.00
    calculate_payment(Decimal("1000"), 3)
    -> payout 1500.00, fee 225.00, total 1725.00
"""

from __future__ import annotations

from decimal import Decimal

from auditmarket.domain.errors import ValidationError
from auditmarket.domain.models.pricing import PaymentBreakdown, to_cents

PLATFORM_FEE_RATE = Decimal("0.15")
ADDITIONAL_REVIEWER_SURCHARGE = Decimal("0.25")
INITIAL_ENGAGEMENT_FEE = Decimal("0.000055")
MIN_REVIEWERS = 1
MAX_REVIEWERS = 3


def _to_decimal(value: Decimal | int | float | str) -> Decimal:
    try:
        return value if isinstance(value, Decimal) else Decimal(str(value))
    except ArithmeticError:
        raise ValidationError("base_price", f"not a number: {value!r}") from None


def reviewer_multiplier(reviewer_count: int) -> Decimal:
    """Additive surcharge multiplier: 1.00, 1.25 or 1.50."""
    return Decimal(1) + ADDITIONAL_REVIEWER_SURCHARGE * (reviewer_count - 1)


def calculate_payment(
    base_price: Decimal | int | float | str,
    reviewer_count: int,
) -> PaymentBreakdown:
    """Derive the settlement breakdown for a base price.

    Args:
        base_price: Price before surcharges, positive.
        reviewer_count: Number of reviewers, 1 to 3.

    Returns:
        PaymentBreakdown with amounts rounded to cents.

    Raises:
        ValidationError: If reviewer_count is outside [1, 3] or the price
            is not a positive number.
    """
    if isinstance(reviewer_count, bool) or not isinstance(reviewer_count, int):
        raise ValidationError("reviewer_count", "must be an integer")
    if not MIN_REVIEWERS <= reviewer_count <= MAX_REVIEWERS:
        raise ValidationError(
            "reviewer_count",
            f"must be between {MIN_REVIEWERS} and {MAX_REVIEWERS}, got {reviewer_count}",
        )
    base = _to_decimal(base_price)
    if not base.is_finite() or base <= 0:
        raise ValidationError("base_price", f"must be positive, got {base_price}")

    payout = to_cents(base * reviewer_multiplier(reviewer_count))
    platform_fee = to_cents(payout * PLATFORM_FEE_RATE)
    return PaymentBreakdown(
        base_price=base,
        reviewer_count=reviewer_count,
        initial_engagement_fee=INITIAL_ENGAGEMENT_FEE,
        reviewer_payout=payout,
        platform_fee=platform_fee,
        total_price=payout + platform_fee,
    )
