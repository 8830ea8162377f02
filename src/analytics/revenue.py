from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, Sequence

from src.analytics.commission import calculate_commissions
from src.analytics.commission_rules import CommissionRuleSet
from src.models.finance import BookingRecord
from src.schemas.finance import FinancialCalculation, RevenueMetrics


def _month_key(booking: BookingRecord) -> str:
    # created_at is already in the caller's timezone; no conversion here.
    return booking.created_at.strftime("%Y-%m")


def summarize_calculations(
    bookings: Sequence[BookingRecord], calculations: Sequence[FinancialCalculation]
) -> RevenueMetrics:
    total_revenue = sum(calc.gross_amount for calc in calculations)
    total_commissions = sum(calc.total_commissions for calc in calculations)
    total_net_profit = sum(calc.net_profit for calc in calculations)
    average_margin = total_net_profit / total_revenue * 100 if total_revenue > 0 else 0.0

    revenue_by_type: Dict[str, float] = defaultdict(float)
    revenue_by_month: Dict[str, float] = defaultdict(float)
    for booking in bookings:
        revenue_by_type[booking.booking_type] += booking.total_amount
        revenue_by_month[_month_key(booking)] += booking.total_amount

    booking_count = len(bookings)
    return RevenueMetrics(
        total_revenue=total_revenue,
        total_commissions=total_commissions,
        total_net_profit=total_net_profit,
        average_margin=average_margin,
        revenue_by_type=dict(revenue_by_type),
        revenue_by_month={month: revenue_by_month[month] for month in sorted(revenue_by_month)},
        booking_count=booking_count,
        average_booking_value=total_revenue / booking_count if booking_count else 0.0,
    )


def calculate_revenue_metrics(
    bookings: Iterable[BookingRecord], rule_set: CommissionRuleSet
) -> RevenueMetrics:
    booking_list = list(bookings)
    return summarize_calculations(booking_list, calculate_commissions(booking_list, rule_set))
