from __future__ import annotations

import os
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from src.analytics.commission_rules import CommissionRuleSet  # noqa: E402
from src.api.dependencies import get_finance_service  # noqa: E402
from src.main import create_app  # noqa: E402
from src.models.finance import BookingRecord, PaymentRecord  # noqa: E402
from src.services.finance_service import FinanceService  # noqa: E402


def make_booking(
    booking_id: str,
    booking_type: str,
    total_amount: float,
    created_at: str = "2026-01-15T10:00:00",
    assigned_agent_id: Optional[str] = None,
    lead_agent_id: Optional[str] = None,
    **extra: Any,
) -> BookingRecord:
    payload: Dict[str, Any] = {
        "id": booking_id,
        "booking_type": booking_type,
        "total_amount": total_amount,
        "created_at": created_at,
        "assigned_agent_id": assigned_agent_id,
        **extra,
    }
    if lead_agent_id is not None:
        payload["lead"] = {"id": f"lead-{booking_id}", "assigned_agent_id": lead_agent_id}
    return BookingRecord.model_validate(payload)


def make_payment(
    payment_id: str,
    booking_id: str,
    amount: float,
    status: str,
    due_date: Optional[date] = None,
    paid_date: Optional[date] = None,
    payment_method: Optional[str] = None,
) -> PaymentRecord:
    return PaymentRecord(
        id=payment_id,
        booking_id=booking_id,
        amount=amount,
        status=status,
        due_date=due_date,
        paid_date=paid_date,
        payment_method=payment_method,
    )


class StubFinanceRepository:
    def __init__(
        self,
        bookings: Optional[List[BookingRecord]] = None,
        payments: Optional[List[PaymentRecord]] = None,
    ) -> None:
        self.bookings = bookings if bookings is not None else []
        self.payments = payments if payments is not None else []
        self.last_booking_query: Optional[Dict[str, Any]] = None

    def _filter(self, booking_type: Optional[str]) -> List[BookingRecord]:
        if not booking_type:
            return list(self.bookings)
        return [booking for booking in self.bookings if booking.booking_type == booking_type]

    def list_bookings(
        self,
        tenant_id: Optional[str],
        start_date: Optional[date],
        end_date: Optional[date],
        booking_type: Optional[str] = None,
    ) -> List[BookingRecord]:
        self.last_booking_query = {
            "tenant_id": tenant_id,
            "start_date": start_date,
            "end_date": end_date,
            "booking_type": booking_type,
        }
        return self._filter(booking_type)

    def list_bookings_page(
        self,
        tenant_id: Optional[str],
        start_date: Optional[date],
        end_date: Optional[date],
        booking_type: Optional[str],
        page: int,
        page_size: int,
    ) -> Tuple[List[BookingRecord], int]:
        records = self._filter(booking_type)
        start_index = (page - 1) * page_size
        return records[start_index : start_index + page_size], len(records)

    def get_booking_by_id(self, booking_id: str) -> Optional[BookingRecord]:
        return next((booking for booking in self.bookings if booking.id == booking_id), None)

    def list_payments(
        self,
        tenant_id: Optional[str],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[PaymentRecord]:
        return list(self.payments)


@pytest.fixture()
def rule_set() -> CommissionRuleSet:
    return CommissionRuleSet.default()


@pytest.fixture()
def sample_bookings() -> List[BookingRecord]:
    return [
        make_booking("booking-1", "domestic", 75000, "2026-01-10T09:00:00", assigned_agent_id="agent-1"),
        make_booking("booking-2", "international", 92000, "2026-02-03T12:30:00", lead_agent_id="agent-1"),
        make_booking(
            "booking-3",
            "b2b",
            10000,
            "2026-02-20T08:00:00",
            assigned_agent_id="agent-2",
            lead_agent_id="agent-1",
        ),
    ]


@pytest.fixture()
def stub_repository(sample_bookings: List[BookingRecord]) -> StubFinanceRepository:
    today = date.today()
    payments = [
        make_payment("payment-1", "booking-1", 75000, "paid", paid_date=today, payment_method="card"),
        make_payment("payment-2", "booking-2", 40000, "pending", due_date=date(2000, 1, 1)),
    ]
    return StubFinanceRepository(bookings=sample_bookings, payments=payments)


@pytest.fixture()
def client(stub_repository: StubFinanceRepository) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_finance_service] = lambda: FinanceService(
        repository=stub_repository, rule_set=CommissionRuleSet.default()
    )
    return TestClient(app)


@pytest.fixture()
def booking_factory():
    return make_booking


@pytest.fixture()
def payment_factory():
    return make_payment
