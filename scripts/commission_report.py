from __future__ import annotations

import argparse
import csv
import json
import os
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional

SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(SCRIPT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from src.analytics.agent_attribution import calculate_agent_metrics  # noqa: E402
from src.analytics.commission_rules import CommissionRuleSet  # noqa: E402
from src.analytics.profit_loss import build_profit_loss_statement  # noqa: E402
from src.analytics.revenue import calculate_revenue_metrics  # noqa: E402
from src.models.finance import BookingRecord  # noqa: E402
from src.schemas.finance import ExpenseRecord  # noqa: E402


def normalize_datetime(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    value = value.strip()
    if not value:
        return None
    for fmt in ("%Y-%m-%d", "%m/%d/%y", "%m/%d/%Y"):
        try:
            return datetime.strptime(value, fmt).isoformat()
        except ValueError:
            continue
    return value


def normalize_float(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def build_booking(row: Dict[str, str]) -> Optional[BookingRecord]:
    booking_id = (row.get("id") or "").strip()
    amount = normalize_float(row.get("total_amount"))
    created_at = normalize_datetime(row.get("created_at"))
    if not booking_id or amount is None or created_at is None:
        return None
    payload: Dict[str, Any] = {
        "id": booking_id,
        "booking_type": (row.get("booking_type") or "").strip(),
        "total_amount": amount,
        "created_at": created_at,
        "currency": row.get("currency") or None,
        "assigned_agent_id": (row.get("assigned_agent_id") or "").strip() or None,
    }
    lead_agent = (row.get("lead_assigned_agent_id") or "").strip()
    if lead_agent:
        payload["lead"] = {"id": row.get("lead_id") or booking_id, "assigned_agent_id": lead_agent}
    return BookingRecord.model_validate(payload)


def read_bookings(path: str) -> List[BookingRecord]:
    with open(path, "r", encoding="utf-8", newline="") as csv_file:
        reader = csv.DictReader(csv_file)
        bookings = (build_booking(row) for row in reader)
        return [booking for booking in bookings if booking is not None]


def read_expenses(path: str) -> List[ExpenseRecord]:
    expenses: List[ExpenseRecord] = []
    with open(path, "r", encoding="utf-8", newline="") as csv_file:
        for row in csv.DictReader(csv_file):
            amount = normalize_float(row.get("amount"))
            if amount is None:
                continue
            expenses.append(
                ExpenseRecord(
                    category=(row.get("category") or "other").strip(),
                    amount=amount,
                    description=row.get("description") or "",
                )
            )
    return expenses


def load_rule_set(path: Optional[str]) -> CommissionRuleSet:
    if not path:
        return CommissionRuleSet.default()
    with open(path, "r", encoding="utf-8") as rules_file:
        config = json.load(rules_file)
    if isinstance(config, list):
        return CommissionRuleSet.from_config(config)
    return CommissionRuleSet.from_config(config.get("rules"), config.get("default_rule_id"))


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compute commission and P&L figures from a bookings CSV export.")
    parser.add_argument("bookings_csv", help="Path to bookings CSV file")
    parser.add_argument("--expenses-csv", default=None, help="Optional expenses CSV (category,amount,description)")
    parser.add_argument("--rules", default=None, help="Optional JSON file with commission rules")
    parser.add_argument("--agent-id", default=None, help="Also report figures for this agent")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    rule_set = load_rule_set(args.rules)
    bookings = read_bookings(args.bookings_csv)
    expenses = read_expenses(args.expenses_csv) if args.expenses_csv else []

    report: Dict[str, Any] = {
        "revenue": calculate_revenue_metrics(bookings, rule_set).model_dump(by_alias=True),
        "profitLoss": build_profit_loss_statement(bookings, expenses, rule_set).model_dump(by_alias=True),
    }
    if args.agent_id:
        report["agent"] = calculate_agent_metrics(bookings, args.agent_id, rule_set).model_dump(by_alias=True)
    print(json.dumps(report, indent=2))


if __name__ == "__main__":
    main()
