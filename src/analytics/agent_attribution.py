from __future__ import annotations

from typing import Iterable, List, Optional

from src.analytics.commission import calculate_commissions
from src.analytics.commission_rules import CommissionRuleSet
from src.models.finance import BookingRecord
from src.schemas.finance import AgentConversionMetrics, AgentMetrics


def resolve_booking_agent(booking: BookingRecord) -> Optional[str]:
    """Return the agent credited with a booking.

    The agent may be recorded on the booking itself or on the lead it was
    converted from. The booking-level assignment takes precedence.
    """
    if booking.assigned_agent_id:
        return booking.assigned_agent_id
    if booking.lead is not None and booking.lead.assigned_agent_id:
        return booking.lead.assigned_agent_id
    return None


def filter_agent_bookings(bookings: Iterable[BookingRecord], agent_id: str) -> List[BookingRecord]:
    return [booking for booking in bookings if resolve_booking_agent(booking) == agent_id]


def calculate_agent_metrics(
    bookings: Iterable[BookingRecord], agent_id: str, rule_set: CommissionRuleSet
) -> AgentMetrics:
    agent_bookings = filter_agent_bookings(bookings, agent_id)
    calculations = calculate_commissions(agent_bookings, rule_set)

    total_sales = sum(calc.gross_amount for calc in calculations)
    # Platform and partner cuts are not the agent's earnings.
    total_commission_earned = sum(calc.agent_commission for calc in calculations)
    total_net_profit = sum(calc.net_profit for calc in calculations)
    booking_count = len(agent_bookings)

    return AgentMetrics(
        agent_id=agent_id,
        total_sales=total_sales,
        total_commission_earned=total_commission_earned,
        total_net_profit=total_net_profit,
        booking_count=booking_count,
        average_deal_size=total_sales / booking_count if booking_count else 0.0,
        conversion_metrics=AgentConversionMetrics(
            sales_volume=total_sales,
            profit_contribution=total_net_profit,
            margin_percentage=total_net_profit / total_sales * 100 if total_sales > 0 else 0.0,
        ),
    )
