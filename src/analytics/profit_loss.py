from __future__ import annotations

import math
from collections import defaultdict
from typing import Dict, Iterable, Mapping, Optional

from src.analytics.commission_rules import CommissionRuleSet
from src.analytics.revenue import calculate_revenue_metrics
from src.core.errors import ConfigurationError
from src.models.finance import BookingRecord
from src.schemas.finance import (
    ExpenseRecord,
    ProfitLossExpenses,
    ProfitLossKpis,
    ProfitLossMargins,
    ProfitLossProfit,
    ProfitLossRevenue,
    ProfitLossStatement,
)

# Illustrative split of total expenses for the dashboard, not accounting data.
DEFAULT_COST_ALLOCATION: Dict[str, float] = {
    "salaries": 0.60,
    "marketing": 0.15,
    "technology": 0.10,
    "operations": 0.10,
    "other": 0.05,
}

ALLOCATION_TOLERANCE = 1e-6


def validate_cost_allocation(allocation: Mapping[str, float]) -> Dict[str, float]:
    if not allocation:
        raise ConfigurationError("Cost allocation must define at least one category")
    for category, fraction in allocation.items():
        if fraction < 0:
            raise ConfigurationError(f"Cost allocation for '{category}' is negative")
    total = sum(allocation.values())
    if not math.isclose(total, 1.0, abs_tol=ALLOCATION_TOLERANCE):
        raise ConfigurationError(f"Cost allocation fractions sum to {total}, expected 1.0")
    return dict(allocation)


def _percent(value: float, base: float) -> float:
    return value / base * 100 if base > 0 else 0.0


def build_profit_loss_statement(
    bookings: Iterable[BookingRecord],
    expenses: Iterable[ExpenseRecord],
    rule_set: CommissionRuleSet,
    cost_allocation: Optional[Mapping[str, float]] = None,
) -> ProfitLossStatement:
    allocation = validate_cost_allocation(
        cost_allocation if cost_allocation is not None else DEFAULT_COST_ALLOCATION
    )
    metrics = calculate_revenue_metrics(bookings, rule_set)

    expense_list = list(expenses)
    total_expenses = sum(expense.amount for expense in expense_list)
    by_category: Dict[str, float] = defaultdict(float)
    for expense in expense_list:
        by_category[expense.category] += expense.amount

    gross_profit = metrics.total_net_profit
    operating_profit = gross_profit - total_expenses
    # No tax or interest modelling.
    net_profit = operating_profit
    total_revenue = metrics.total_revenue

    return ProfitLossStatement(
        revenue=ProfitLossRevenue(
            gross_revenue=total_revenue,
            commissions_paid=metrics.total_commissions,
            net_revenue=metrics.total_net_profit,
        ),
        expenses=ProfitLossExpenses(
            total=total_expenses,
            breakdown={category: total_expenses * fraction for category, fraction in allocation.items()},
            by_category=dict(by_category),
        ),
        profit=ProfitLossProfit(
            gross_profit=gross_profit,
            operating_profit=operating_profit,
            net_profit=net_profit,
            margins=ProfitLossMargins(
                gross=_percent(gross_profit, total_revenue),
                operating=_percent(operating_profit, total_revenue),
                net=_percent(net_profit, total_revenue),
            ),
        ),
        kpis=ProfitLossKpis(
            revenue_per_booking=metrics.average_booking_value,
            profit_per_booking=net_profit / metrics.booking_count if metrics.booking_count else 0.0,
            commission_rate=_percent(metrics.total_commissions, total_revenue),
        ),
    )
