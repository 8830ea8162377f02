from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, Iterable, List

from src.models.finance import BookingRecord, PaymentRecord
from src.schemas.finance import BookingFinancialDetail, PaymentReport, PaymentSummary

OPEN_STATUSES = ("pending", "partial")


def _is_overdue(payment: PaymentRecord, today: date) -> bool:
    return payment.status in OPEN_STATUSES and payment.due_date is not None and payment.due_date < today


def calculate_payment_summary(payments: Iterable[PaymentRecord], today: date) -> PaymentSummary:
    paid_amount = 0.0
    outstanding_amount = 0.0
    overdue_amount = 0.0
    for payment in payments:
        if payment.status == "paid":
            paid_amount += payment.amount
        if payment.status in OPEN_STATUSES:
            outstanding_amount += payment.amount
        if _is_overdue(payment, today):
            overdue_amount += payment.amount
    return PaymentSummary(
        total_revenue=paid_amount,
        paid_amount=paid_amount,
        outstanding_amount=outstanding_amount,
        overdue_amount=overdue_amount,
    )


def _payment_status(paid_amount: float, total_amount: float, has_overdue: bool) -> str:
    if has_overdue:
        return "overdue"
    if paid_amount == 0:
        return "pending"
    if paid_amount >= total_amount:
        return "paid"
    return "partial"


def build_financial_details(
    bookings: Iterable[BookingRecord], payments: Iterable[PaymentRecord], today: date
) -> List[BookingFinancialDetail]:
    by_booking: Dict[str, List[PaymentRecord]] = defaultdict(list)
    for payment in payments:
        by_booking[payment.booking_id].append(payment)

    details: List[BookingFinancialDetail] = []
    for booking in bookings:
        booking_payments = by_booking.get(booking.id, [])
        paid_amount = sum(p.amount for p in booking_payments if p.status == "paid")
        has_overdue = any(_is_overdue(p, today) for p in booking_payments)
        due_date = next((p.due_date for p in booking_payments if p.due_date), None)
        details.append(
            BookingFinancialDetail(
                booking_id=booking.id,
                customer_name=booking.customer_name,
                destination=booking.destination,
                booking_date=booking.created_at.date(),
                total_amount=booking.total_amount,
                paid_amount=paid_amount,
                outstanding_amount=booking.total_amount - paid_amount,
                payment_status=_payment_status(paid_amount, booking.total_amount, has_overdue),
                payment_due_date=due_date,
                currency=booking.currency,
            )
        )
    return details


def build_payment_report(
    payments: Iterable[PaymentRecord], start_date: date, end_date: date
) -> PaymentReport:
    payment_list = list(payments)

    daily_revenue: Dict[str, float] = {
        (start_date + timedelta(days=offset)).isoformat(): 0.0
        for offset in range((end_date - start_date).days + 1)
    }

    payment_methods: Dict[str, int] = defaultdict(int)
    total_revenue = 0.0
    for payment in payment_list:
        payment_methods[payment.payment_method or "unknown"] += 1
        if payment.status != "paid":
            continue
        total_revenue += payment.amount
        if payment.paid_date is not None:
            key = payment.paid_date.isoformat()
            if key in daily_revenue:
                daily_revenue[key] += payment.amount

    return PaymentReport(
        period_start=start_date,
        period_end=end_date,
        total_revenue=total_revenue,
        total_transactions=len(payment_list),
        payment_methods=dict(payment_methods),
        daily_revenue=daily_revenue,
    )
