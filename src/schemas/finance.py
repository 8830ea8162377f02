from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional

from pydantic import ConfigDict, Field

from src.models.finance import BookingRecord
from src.shared.base import BaseSchema


class FinancialCalculation(BaseSchema):
    booking_id: str
    booking_type: str
    rule_id: str
    gross_amount: float
    base_commission: float
    markup_commission: float
    platform_fee: float
    partner_commission: float
    net_profit: float
    margin_percentage: float
    breakdown: Dict[str, float]

    @property
    def total_commissions(self) -> float:
        return self.base_commission + self.markup_commission + self.platform_fee + self.partner_commission

    @property
    def agent_commission(self) -> float:
        return self.base_commission + self.markup_commission


class RevenueMetrics(BaseSchema):
    """Revenue totals for a set of bookings.

    revenue_by_type is the per-category revenue split (revenueByType on the
    wire), keyed by booking type.
    """

    total_revenue: float = 0.0
    total_commissions: float = 0.0
    total_net_profit: float = 0.0
    average_margin: float = 0.0
    revenue_by_type: Dict[str, float] = Field(default_factory=dict)
    revenue_by_month: Dict[str, float] = Field(default_factory=dict)
    booking_count: int = 0
    average_booking_value: float = 0.0


class AgentConversionMetrics(BaseSchema):
    sales_volume: float = 0.0
    profit_contribution: float = 0.0
    margin_percentage: float = 0.0


class AgentMetrics(BaseSchema):
    agent_id: str
    total_sales: float = 0.0
    total_commission_earned: float = 0.0
    total_net_profit: float = 0.0
    booking_count: int = 0
    average_deal_size: float = 0.0
    conversion_metrics: AgentConversionMetrics = Field(default_factory=AgentConversionMetrics)


class ExpenseRecord(BaseSchema):
    category: str
    amount: float = Field(..., allow_inf_nan=False)
    description: str = ""


class ProfitLossRevenue(BaseSchema):
    gross_revenue: float
    commissions_paid: float
    net_revenue: float


class ProfitLossExpenses(BaseSchema):
    total: float
    breakdown: Dict[str, float]
    by_category: Dict[str, float]


class ProfitLossMargins(BaseSchema):
    gross: float
    operating: float
    net: float


class ProfitLossProfit(BaseSchema):
    gross_profit: float
    operating_profit: float
    net_profit: float
    margins: ProfitLossMargins


class ProfitLossKpis(BaseSchema):
    revenue_per_booking: float
    profit_per_booking: float
    commission_rate: float


class ProfitLossStatement(BaseSchema):
    revenue: ProfitLossRevenue
    expenses: ProfitLossExpenses
    profit: ProfitLossProfit
    kpis: ProfitLossKpis


class BookingFinancialDetail(BaseSchema):
    booking_id: str
    customer_name: Optional[str] = None
    destination: Optional[str] = None
    booking_date: date
    total_amount: float
    paid_amount: float
    outstanding_amount: float
    payment_status: str
    payment_due_date: Optional[date] = None
    currency: Optional[str] = None


class PaymentSummary(BaseSchema):
    total_revenue: float = 0.0
    paid_amount: float = 0.0
    outstanding_amount: float = 0.0
    overdue_amount: float = 0.0


class PaymentReport(BaseSchema):
    period_start: date
    period_end: date
    total_revenue: float
    total_transactions: int
    payment_methods: Dict[str, int]
    daily_revenue: Dict[str, float]


class FinanceFilters(BaseSchema):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    tenant_id: Optional[str] = None
    time_window: str = "12m"
    booking_type: Optional[str] = None


class CalculationListFilters(FinanceFilters):
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=50, ge=1, le=500)


class PaymentReportFilters(BaseSchema):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    tenant_id: Optional[str] = None
    start_date: date
    end_date: date


class CalculateRequest(BaseSchema):
    bookings: List[BookingRecord]


class CalculateResponse(BaseSchema):
    calculations: List[FinancialCalculation]
    metrics: RevenueMetrics


class ProfitLossRequest(BaseSchema):
    tenant_id: Optional[str] = None
    time_window: str = "12m"
    expenses: List[ExpenseRecord] = Field(default_factory=list)
    cost_allocation: Optional[Dict[str, float]] = None
