from __future__ import annotations

import logging
from datetime import date
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from src.analytics.agent_attribution import calculate_agent_metrics
from src.analytics.commission import calculate_commission, calculate_commissions
from src.analytics.commission_rules import CommissionRuleSet
from src.analytics.payments import (
    build_financial_details,
    build_payment_report,
    calculate_payment_summary,
)
from src.analytics.profit_loss import build_profit_loss_statement
from src.analytics.revenue import calculate_revenue_metrics, summarize_calculations
from src.core.errors import BadRequestError, ConfigurationError, NotFoundError
from src.models.finance import BookingRecord
from src.repositories.finance_repository import FinanceRepository
from src.schemas.commission_rules import CommissionRule
from src.schemas.finance import (
    AgentMetrics,
    BookingFinancialDetail,
    CalculateResponse,
    ExpenseRecord,
    FinancialCalculation,
    PaymentReport,
    PaymentSummary,
    ProfitLossStatement,
    RevenueMetrics,
)

logger = logging.getLogger(__name__)

MAX_REPORT_DAYS = 366


class FinanceService:
    def __init__(
        self,
        repository: FinanceRepository,
        rule_set: CommissionRuleSet,
        cost_allocation: Optional[Mapping[str, float]] = None,
    ) -> None:
        self.repository = repository
        self.rule_set = rule_set
        self.cost_allocation = cost_allocation

    def list_commission_rules(self) -> List[CommissionRule]:
        return list(self.rule_set.rules)

    def list_calculations(
        self,
        tenant_id: Optional[str],
        start_date: date,
        end_date: date,
        booking_type: Optional[str],
        page: int,
        page_size: int,
    ) -> Tuple[List[FinancialCalculation], int]:
        records, total = self.repository.list_bookings_page(
            tenant_id=tenant_id,
            start_date=start_date,
            end_date=end_date,
            booking_type=booking_type,
            page=page,
            page_size=page_size,
        )
        return calculate_commissions(records, self.rule_set), total

    def get_calculation(self, booking_id: str) -> FinancialCalculation:
        record = self.repository.get_booking_by_id(booking_id)
        if not record:
            raise NotFoundError("Booking not found")
        return calculate_commission(record, self.rule_set)

    def calculate_for_bookings(self, bookings: Sequence[BookingRecord]) -> CalculateResponse:
        calculations = calculate_commissions(bookings, self.rule_set)
        return CalculateResponse(
            calculations=calculations,
            metrics=summarize_calculations(bookings, calculations),
        )

    def get_revenue_metrics(
        self,
        tenant_id: Optional[str],
        start_date: date,
        end_date: date,
        booking_type: Optional[str],
    ) -> RevenueMetrics:
        bookings = self.repository.list_bookings(tenant_id, start_date, end_date, booking_type)
        logger.info("revenue metrics tenant=%s bookings=%d", tenant_id, len(bookings))
        return calculate_revenue_metrics(bookings, self.rule_set)

    def get_agent_metrics(
        self,
        agent_id: str,
        tenant_id: Optional[str],
        start_date: date,
        end_date: date,
        booking_type: Optional[str] = None,
    ) -> AgentMetrics:
        bookings = self.repository.list_bookings(tenant_id, start_date, end_date, booking_type)
        return calculate_agent_metrics(bookings, agent_id, self.rule_set)

    def get_profit_loss(
        self,
        tenant_id: Optional[str],
        start_date: date,
        end_date: date,
        expenses: Sequence[ExpenseRecord],
        cost_allocation: Optional[Dict[str, float]] = None,
    ) -> ProfitLossStatement:
        bookings = self.repository.list_bookings(tenant_id, start_date, end_date)
        try:
            return build_profit_loss_statement(
                bookings,
                expenses,
                self.rule_set,
                cost_allocation=cost_allocation if cost_allocation is not None else self.cost_allocation,
            )
        except ConfigurationError as exc:
            # A caller-supplied split is bad input, not a deployment defect.
            if cost_allocation is not None:
                raise BadRequestError(exc.message) from exc
            raise

    def get_payment_summary(self, tenant_id: Optional[str]) -> PaymentSummary:
        payments = self.repository.list_payments(tenant_id)
        return calculate_payment_summary(payments, date.today())

    def list_financial_details(
        self,
        tenant_id: Optional[str],
        start_date: date,
        end_date: date,
        booking_type: Optional[str] = None,
    ) -> List[BookingFinancialDetail]:
        bookings = self.repository.list_bookings(tenant_id, start_date, end_date, booking_type)
        payments = self.repository.list_payments(tenant_id)
        return build_financial_details(bookings, payments, date.today())

    def get_payment_report(
        self, tenant_id: Optional[str], start_date: date, end_date: date
    ) -> PaymentReport:
        if end_date < start_date:
            raise BadRequestError("end_date must not be before start_date")
        if (end_date - start_date).days >= MAX_REPORT_DAYS:
            raise BadRequestError(f"Payment reports cover at most {MAX_REPORT_DAYS} days")
        payments = self.repository.list_payments(tenant_id, start_date, end_date)
        return build_payment_report(payments, start_date, end_date)
