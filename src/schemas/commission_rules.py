from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import Field, model_validator

from src.shared.base import BaseSchema

BookingType = Literal["domestic", "international", "b2b", "group", "corporate"]
CalculationType = Literal["percentage", "fixed", "tiered"]


class CommissionTier(BaseSchema):
    min_amount: float = Field(..., ge=0, allow_inf_nan=False)
    # None means the tier is open-ended.
    max_amount: Optional[float] = None
    rate: float = Field(..., ge=0, le=1)

    @model_validator(mode="after")
    def _check_bounds(self) -> "CommissionTier":
        if self.max_amount is not None and self.max_amount < self.min_amount:
            raise ValueError("Tier max_amount must not be below min_amount")
        return self

    def contains(self, amount: float) -> bool:
        if amount < self.min_amount:
            return False
        return self.max_amount is None or amount <= self.max_amount


class CommissionRule(BaseSchema):
    """A commission rule for one booking category.

    Tiers start at 0, end with an open-ended tier and never overlap. Gaps
    between neighbouring tiers are allowed (0-5000, 5001-15000); an amount
    inside a gap is charged at base_rate.
    """

    id: str
    name: str
    booking_type: BookingType
    calculation_type: CalculationType
    # Fraction for percentage/tiered rules, flat currency amount for fixed rules.
    base_rate: float = Field(..., ge=0, allow_inf_nan=False)
    markup_rate: Optional[float] = Field(default=None, ge=0, le=1)
    platform_fee_rate: float = Field(default=0.0, ge=0, le=1)
    partner_commission_rate: Optional[float] = Field(default=None, ge=0, le=1)
    tiers: Optional[List[CommissionTier]] = None
    is_active: bool = True

    @model_validator(mode="after")
    def _check_mode(self) -> "CommissionRule":
        if self.calculation_type != "fixed" and self.base_rate > 1:
            raise ValueError("base_rate must be a fraction for percentage and tiered rules")
        if self.calculation_type == "tiered":
            if not self.tiers:
                raise ValueError("Tiered rules require at least one tier")
            ordered = sorted(self.tiers, key=lambda tier: tier.min_amount)
            if ordered[0].min_amount != 0:
                raise ValueError("The lowest commission tier must start at 0")
            if ordered[-1].max_amount is not None:
                raise ValueError("The highest commission tier must be open-ended")
            for previous, current in zip(ordered, ordered[1:]):
                if previous.max_amount is None or previous.max_amount >= current.min_amount:
                    raise ValueError("Commission tiers must not overlap")
            self.tiers = ordered
        elif self.tiers:
            raise ValueError("Only tiered rules may define tiers")
        return self
