from __future__ import annotations

from typing import Dict, Iterable, List

from src.analytics.commission_rules import CommissionRuleSet
from src.models.finance import BookingRecord
from src.schemas.commission_rules import CommissionRule
from src.schemas.finance import FinancialCalculation


def _base_commission(rule: CommissionRule, gross_amount: float) -> float:
    if rule.calculation_type == "fixed":
        return rule.base_rate
    if rule.calculation_type == "tiered":
        for tier in rule.tiers or []:
            if tier.contains(gross_amount):
                return gross_amount * tier.rate
        # Amount falls in a gap between configured tiers.
        return gross_amount * rule.base_rate
    return gross_amount * rule.base_rate


def _margin(net_profit: float, gross_amount: float) -> float:
    return net_profit / gross_amount * 100 if gross_amount > 0 else 0.0


def calculate_commission(booking: BookingRecord, rule_set: CommissionRuleSet) -> FinancialCalculation:
    rule = rule_set.resolve(booking.booking_type)
    gross_amount = booking.total_amount

    base_commission = _base_commission(rule, gross_amount)
    # Markup compounds on the base commission, not on gross.
    markup_commission = base_commission * rule.markup_rate if rule.markup_rate else 0.0
    platform_fee = gross_amount * rule.platform_fee_rate
    partner_commission = (
        gross_amount * rule.partner_commission_rate if rule.partner_commission_rate else 0.0
    )

    total_commissions = base_commission + markup_commission + platform_fee + partner_commission
    net_profit = gross_amount - total_commissions
    margin_percentage = _margin(net_profit, gross_amount)

    breakdown: Dict[str, float] = {
        "Gross Amount": gross_amount,
        "Base Commission": base_commission,
        "Markup Commission": markup_commission,
        "Platform Fee": platform_fee,
        "Partner Commission": partner_commission,
        "Total Commissions": total_commissions,
        "Net Profit": net_profit,
        "Margin %": margin_percentage,
    }

    return FinancialCalculation(
        booking_id=booking.id,
        booking_type=booking.booking_type,
        rule_id=rule.id,
        gross_amount=gross_amount,
        base_commission=base_commission,
        markup_commission=markup_commission,
        platform_fee=platform_fee,
        partner_commission=partner_commission,
        net_profit=net_profit,
        margin_percentage=margin_percentage,
        breakdown=breakdown,
    )


def calculate_commissions(
    bookings: Iterable[BookingRecord], rule_set: CommissionRuleSet
) -> List[FinancialCalculation]:
    return [calculate_commission(booking, rule_set) for booking in bookings]
