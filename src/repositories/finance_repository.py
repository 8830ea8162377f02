from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Dict, List, Optional, Tuple

from src.core.supabase import SupabaseClient
from src.models.finance import BookingRecord, PaymentRecord

# Matches the default PostgREST max-rows on Supabase projects.
QUERY_PAGE_SIZE = 1000

BOOKING_SELECT = (
    "id,tenant_id,lead_id,booking_reference,customer_name,destination,booking_type,"
    "total_amount,currency,status,created_at,lead:leads(id,assigned_agent_id,status)"
)
PAYMENT_SELECT = "id,booking_id,amount,currency,payment_method,status,due_date,paid_date,created_at"


def _created_at_filters(start_date: Optional[date], end_date: Optional[date]) -> List[Tuple[str, str]]:
    filters: List[Tuple[str, str]] = []
    if start_date:
        filters.append(("created_at", f"gte.{start_date.isoformat()}"))
    if end_date:
        # created_at is a timestamp; include the whole end day.
        filters.append(("created_at", f"lte.{datetime.combine(end_date, time.max).isoformat()}"))
    return filters


class FinanceRepository:
    def __init__(self) -> None:
        self.client = SupabaseClient()

    def _booking_filters(
        self,
        tenant_id: Optional[str],
        start_date: Optional[date],
        end_date: Optional[date],
        booking_type: Optional[str],
    ) -> List[Tuple[str, str]]:
        filters: List[Tuple[str, str]] = []
        if tenant_id:
            filters.append(("tenant_id", f"eq.{tenant_id}"))
        filters.extend(_created_at_filters(start_date, end_date))
        if booking_type:
            filters.append(("booking_type", f"eq.{booking_type}"))
        return filters

    def _select_all(
        self, table: str, select: str, filters: List[Tuple[str, str]], order: str
    ) -> List[Dict[str, Any]]:
        """Read every matching row, one page at a time.

        The exact count from the first page bounds the loop, so a server-side
        row cap smaller than QUERY_PAGE_SIZE still yields the full result.
        """
        rows: List[Dict[str, Any]] = []
        total: Optional[int] = None
        while True:
            page, count = self.client.select(
                table=table,
                select=select,
                filters=filters,
                limit=QUERY_PAGE_SIZE,
                offset=len(rows),
                order=order,
                count=total is None,
            )
            if total is None:
                total = count
            rows.extend(page)
            if not page:
                break
            if total is not None and len(rows) >= total:
                break
            if total is None and len(page) < QUERY_PAGE_SIZE:
                break
        return rows

    def list_bookings(
        self,
        tenant_id: Optional[str],
        start_date: Optional[date],
        end_date: Optional[date],
        booking_type: Optional[str] = None,
    ) -> List[BookingRecord]:
        rows = self._select_all(
            table="bookings",
            select=BOOKING_SELECT,
            filters=self._booking_filters(tenant_id, start_date, end_date, booking_type),
            order="created_at.desc,id.asc",
        )
        return [BookingRecord.model_validate(row) for row in rows]

    def list_bookings_page(
        self,
        tenant_id: Optional[str],
        start_date: Optional[date],
        end_date: Optional[date],
        booking_type: Optional[str],
        page: int,
        page_size: int,
    ) -> Tuple[List[BookingRecord], int]:
        offset = (page - 1) * page_size
        rows, total = self.client.select(
            table="bookings",
            select=BOOKING_SELECT,
            filters=self._booking_filters(tenant_id, start_date, end_date, booking_type),
            limit=page_size,
            offset=offset,
            order="created_at.desc,id.asc",
            count=True,
        )
        return [BookingRecord.model_validate(row) for row in rows], total or 0

    def get_booking_by_id(self, booking_id: str) -> Optional[BookingRecord]:
        rows, _ = self.client.select(
            table="bookings",
            select=BOOKING_SELECT,
            filters=[("id", f"eq.{booking_id}")],
            limit=1,
        )
        if not rows:
            return None
        return BookingRecord.model_validate(rows[0])

    def list_payments(
        self,
        tenant_id: Optional[str],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[PaymentRecord]:
        filters: List[Tuple[str, str]] = []
        if tenant_id:
            filters.append(("tenant_id", f"eq.{tenant_id}"))
        filters.extend(_created_at_filters(start_date, end_date))
        rows = self._select_all(
            table="payments",
            select=PAYMENT_SELECT,
            filters=filters,
            order="created_at.desc,id.asc",
        )
        return [PaymentRecord.model_validate(row) for row in rows]
