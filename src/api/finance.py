from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_finance_service
from src.core.config import get_settings
from src.schemas.commission_rules import CommissionRule
from src.schemas.finance import (
    AgentMetrics,
    BookingFinancialDetail,
    CalculateRequest,
    CalculateResponse,
    CalculationListFilters,
    FinanceFilters,
    FinancialCalculation,
    PaymentReport,
    PaymentReportFilters,
    PaymentSummary,
    ProfitLossRequest,
    ProfitLossStatement,
    RevenueMetrics,
)
from src.services.finance_service import FinanceService
from src.shared.response import Meta, ResponseEnvelope, build_pagination, paginate_list
from src.shared.time import parse_time_window


router = APIRouter(prefix="/finance", tags=["finance"])

BOOKING_TYPE_PATTERN = "^(domestic|international|b2b|group|corporate)$"


def get_finance_filters(
    tenant_id: str | None = Query(default=None),
    time_window: str = Query(default="12m"),
    booking_type: str | None = Query(default=None, pattern=BOOKING_TYPE_PATTERN),
) -> FinanceFilters:
    return FinanceFilters(tenant_id=tenant_id, time_window=time_window, booking_type=booking_type)


def get_calculation_list_filters(
    tenant_id: str | None = Query(default=None),
    time_window: str = Query(default="12m"),
    booking_type: str | None = Query(default=None, pattern=BOOKING_TYPE_PATTERN),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=50, ge=1, le=500),
) -> CalculationListFilters:
    return CalculationListFilters(
        tenant_id=tenant_id,
        time_window=time_window,
        booking_type=booking_type,
        page=page,
        page_size=page_size,
    )


def get_payment_report_filters(
    start_date: date = Query(...),
    end_date: date = Query(...),
    tenant_id: str | None = Query(default=None),
) -> PaymentReportFilters:
    return PaymentReportFilters(tenant_id=tenant_id, start_date=start_date, end_date=end_date)


def _tenant(tenant_id: Optional[str]) -> Optional[str]:
    return tenant_id or get_settings().default_tenant_id


def _meta(
    source: str,
    time_window: str,
    tenant_id: Optional[str] = None,
    service: Optional[FinanceService] = None,
) -> Meta:
    return Meta(
        as_of_date=date.today().isoformat(),
        source=source,
        time_window=time_window,
        calculation_version=get_settings().calculation_version,
        tenant_id=tenant_id,
        default_rule_id=service.rule_set.default_rule_id if service else None,
    )


@router.get("/commission-rules")
def commission_rules(
    service: FinanceService = Depends(get_finance_service),
) -> ResponseEnvelope[List[CommissionRule]]:
    return ResponseEnvelope(
        data=service.list_commission_rules(), meta=_meta("configuration", "na", service=service)
    )


@router.get("/calculations")
def list_calculations(
    filters: CalculationListFilters = Depends(get_calculation_list_filters),
    service: FinanceService = Depends(get_finance_service),
) -> ResponseEnvelope[List[FinancialCalculation]]:
    start_date, end_date = parse_time_window(filters.time_window)
    tenant_id = _tenant(filters.tenant_id)
    data, total = service.list_calculations(
        tenant_id=tenant_id,
        start_date=start_date,
        end_date=end_date,
        booking_type=filters.booking_type,
        page=filters.page,
        page_size=filters.page_size,
    )
    pagination = build_pagination(filters.page, filters.page_size, total)
    return ResponseEnvelope(
        data=data, pagination=pagination, meta=_meta("bookings", filters.time_window, tenant_id, service)
    )


@router.get("/calculations/{booking_id}")
def get_calculation(
    booking_id: str,
    service: FinanceService = Depends(get_finance_service),
) -> ResponseEnvelope[FinancialCalculation]:
    data = service.get_calculation(booking_id)
    return ResponseEnvelope(data=data, meta=_meta("bookings", "na", service=service))


@router.post("/calculate")
def calculate(
    request: CalculateRequest,
    service: FinanceService = Depends(get_finance_service),
) -> ResponseEnvelope[CalculateResponse]:
    data = service.calculate_for_bookings(request.bookings)
    return ResponseEnvelope(data=data, meta=_meta("request", "na", service=service))


@router.get("/revenue-metrics")
def revenue_metrics(
    filters: FinanceFilters = Depends(get_finance_filters),
    service: FinanceService = Depends(get_finance_service),
) -> ResponseEnvelope[RevenueMetrics]:
    start_date, end_date = parse_time_window(filters.time_window)
    tenant_id = _tenant(filters.tenant_id)
    data = service.get_revenue_metrics(tenant_id, start_date, end_date, filters.booking_type)
    return ResponseEnvelope(data=data, meta=_meta("bookings", filters.time_window, tenant_id, service))


@router.get("/agents/{agent_id}/commissions")
def agent_commissions(
    agent_id: str,
    filters: FinanceFilters = Depends(get_finance_filters),
    service: FinanceService = Depends(get_finance_service),
) -> ResponseEnvelope[AgentMetrics]:
    start_date, end_date = parse_time_window(filters.time_window)
    tenant_id = _tenant(filters.tenant_id)
    data = service.get_agent_metrics(
        agent_id, tenant_id, start_date, end_date, filters.booking_type
    )
    return ResponseEnvelope(
        data=data, meta=_meta("bookings,leads", filters.time_window, tenant_id, service)
    )


@router.post("/profit-loss")
def profit_loss(
    request: ProfitLossRequest,
    service: FinanceService = Depends(get_finance_service),
) -> ResponseEnvelope[ProfitLossStatement]:
    start_date, end_date = parse_time_window(request.time_window)
    tenant_id = _tenant(request.tenant_id)
    data = service.get_profit_loss(
        tenant_id,
        start_date,
        end_date,
        request.expenses,
        cost_allocation=request.cost_allocation,
    )
    return ResponseEnvelope(
        data=data, meta=_meta("bookings,request", request.time_window, tenant_id, service)
    )


@router.get("/payments/summary")
def payments_summary(
    tenant_id: str | None = Query(default=None),
    service: FinanceService = Depends(get_finance_service),
) -> ResponseEnvelope[PaymentSummary]:
    tenant_id = _tenant(tenant_id)
    data = service.get_payment_summary(tenant_id)
    return ResponseEnvelope(data=data, meta=_meta("payments", "all", tenant_id))


@router.get("/payments/details")
def payments_details(
    filters: CalculationListFilters = Depends(get_calculation_list_filters),
    service: FinanceService = Depends(get_finance_service),
) -> ResponseEnvelope[List[BookingFinancialDetail]]:
    start_date, end_date = parse_time_window(filters.time_window)
    tenant_id = _tenant(filters.tenant_id)
    data = service.list_financial_details(
        tenant_id, start_date, end_date, filters.booking_type
    )
    paged_data, pagination = paginate_list(data, filters.page, filters.page_size)
    return ResponseEnvelope(
        data=paged_data,
        pagination=pagination,
        meta=_meta("bookings,payments", filters.time_window, tenant_id),
    )


@router.get("/payments/report")
def payments_report(
    filters: PaymentReportFilters = Depends(get_payment_report_filters),
    service: FinanceService = Depends(get_finance_service),
) -> ResponseEnvelope[PaymentReport]:
    tenant_id = _tenant(filters.tenant_id)
    data = service.get_payment_report(tenant_id, filters.start_date, filters.end_date)
    time_window = f"{filters.start_date.isoformat()}..{filters.end_date.isoformat()}"
    return ResponseEnvelope(data=data, meta=_meta("payments", time_window, tenant_id))
