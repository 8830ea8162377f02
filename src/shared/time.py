from __future__ import annotations

from datetime import date, timedelta
from typing import Tuple

from src.core.errors import BadRequestError


def parse_time_window(window: str) -> Tuple[date, date]:
    today = date.today()
    try:
        if window.endswith("d"):
            days = int(window[:-1])
            if days <= 0:
                raise BadRequestError("Unsupported time window format")
            return today - timedelta(days=days), today
        if window.endswith("m"):
            months = int(window[:-1])
            if months <= 0:
                raise BadRequestError("Unsupported time window format")
            return today - timedelta(days=30 * months), today
    except ValueError as exc:
        raise BadRequestError("Unsupported time window format") from exc
    raise BadRequestError("Unsupported time window format")
