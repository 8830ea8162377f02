from __future__ import annotations

import logging
from functools import lru_cache
from typing import Dict, Optional

from src.analytics.commission_rules import CommissionRuleSet
from src.analytics.profit_loss import validate_cost_allocation
from src.core.config import get_settings
from src.repositories.finance_repository import FinanceRepository
from src.services.finance_service import FinanceService

logger = logging.getLogger(__name__)


@lru_cache
def get_commission_rule_set() -> CommissionRuleSet:
    rule_set = CommissionRuleSet.from_settings(get_settings())
    logger.info("Loaded %d commission rules (default=%s)", len(rule_set), rule_set.default_rule_id)
    return rule_set


@lru_cache
def get_cost_allocation() -> Optional[Dict[str, float]]:
    allocation = get_settings().cost_allocation
    if allocation is None:
        return None
    return validate_cost_allocation(allocation)


@lru_cache
def get_finance_repository() -> FinanceRepository:
    return FinanceRepository()


def get_finance_service() -> FinanceService:
    return FinanceService(
        repository=get_finance_repository(),
        rule_set=get_commission_rule_set(),
        cost_allocation=get_cost_allocation(),
    )
