from __future__ import annotations

import pytest

from src.analytics.profit_loss import (
    DEFAULT_COST_ALLOCATION,
    build_profit_loss_statement,
    validate_cost_allocation,
)
from src.core.errors import ConfigurationError
from src.schemas.finance import ExpenseRecord


def test_expenses_above_gross_profit_give_negative_operating_profit(rule_set, booking_factory):
    bookings = [booking_factory("b-1", "domestic", 75000)]
    expenses = [
        ExpenseRecord(category="payroll", amount=25000, description="January payroll"),
        ExpenseRecord(category="ads", amount=5000),
    ]
    statement = build_profit_loss_statement(bookings, expenses, rule_set)

    assert statement.revenue.gross_revenue == pytest.approx(75000)
    assert statement.revenue.commissions_paid == pytest.approx(54375)
    assert statement.revenue.net_revenue == pytest.approx(20625)
    assert statement.expenses.total == pytest.approx(30000)
    assert statement.profit.gross_profit == pytest.approx(20625)
    assert statement.profit.operating_profit == pytest.approx(-9375)
    assert statement.profit.net_profit == pytest.approx(-9375)
    assert statement.profit.margins.gross == pytest.approx(27.5)
    assert statement.profit.margins.operating == pytest.approx(-12.5)
    assert statement.profit.margins.net == pytest.approx(-12.5)
    assert statement.kpis.revenue_per_booking == pytest.approx(75000)
    assert statement.kpis.profit_per_booking == pytest.approx(-9375)
    assert statement.kpis.commission_rate == pytest.approx(72.5)


def test_default_allocation_splits_total_expenses(rule_set):
    statement = build_profit_loss_statement([], [ExpenseRecord(category="misc", amount=1000)], rule_set)
    assert statement.expenses.breakdown == pytest.approx(
        {"salaries": 600, "marketing": 150, "technology": 100, "operations": 100, "other": 50}
    )


def test_expenses_grouped_by_supplied_category(rule_set):
    expenses = [
        ExpenseRecord(category="rent", amount=1200),
        ExpenseRecord(category="software", amount=300),
        ExpenseRecord(category="rent", amount=1200),
    ]
    statement = build_profit_loss_statement([], expenses, rule_set)
    assert statement.expenses.by_category == {"rent": 2400, "software": 300}


def test_custom_allocation_is_applied(rule_set):
    allocation = {"people": 0.5, "tooling": 0.5}
    statement = build_profit_loss_statement(
        [], [ExpenseRecord(category="misc", amount=800)], rule_set, cost_allocation=allocation
    )
    assert statement.expenses.breakdown == {"people": 400, "tooling": 400}


def test_no_revenue_keeps_ratios_at_zero(rule_set):
    statement = build_profit_loss_statement([], [ExpenseRecord(category="misc", amount=500)], rule_set)
    assert statement.profit.operating_profit == -500
    assert statement.profit.margins.gross == 0
    assert statement.profit.margins.operating == 0
    assert statement.profit.margins.net == 0
    assert statement.kpis.profit_per_booking == 0
    assert statement.kpis.commission_rate == 0
    assert statement.kpis.revenue_per_booking == 0


def test_default_allocation_sums_to_one():
    assert validate_cost_allocation(DEFAULT_COST_ALLOCATION) == DEFAULT_COST_ALLOCATION


@pytest.mark.parametrize(
    "allocation",
    [
        {},
        {"salaries": 0.6, "marketing": 0.3},
        {"salaries": 1.2, "refunds": -0.2},
    ],
)
def test_invalid_allocation_raises(rule_set, allocation):
    with pytest.raises(ConfigurationError):
        build_profit_loss_statement([], [], rule_set, cost_allocation=allocation)
