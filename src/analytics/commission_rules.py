from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from pydantic import ValidationError

from src.core.config import Settings
from src.core.errors import ConfigurationError
from src.schemas.commission_rules import CommissionRule, CommissionTier

logger = logging.getLogger(__name__)

DEFAULT_RULE_ID = "standard-55-10"

DEFAULT_COMMISSION_RULES: Tuple[CommissionRule, ...] = (
    CommissionRule(
        id="standard-55-10",
        name="Standard 55% + 10%",
        booking_type="domestic",
        calculation_type="percentage",
        base_rate=0.55,
        markup_rate=0.10,
        platform_fee_rate=0.12,
    ),
    CommissionRule(
        id="flat-45",
        name="Flat 45%",
        booking_type="international",
        calculation_type="percentage",
        base_rate=0.45,
        platform_fee_rate=0.12,
    ),
    CommissionRule(
        id="b2b-custom",
        name="B2B Custom Rate",
        booking_type="b2b",
        calculation_type="percentage",
        base_rate=0.35,
        markup_rate=0.15,
        platform_fee_rate=0.12,
        partner_commission_rate=0.05,
    ),
    CommissionRule(
        id="group-tiered",
        name="Group Booking Tiered",
        booking_type="group",
        calculation_type="tiered",
        base_rate=0.40,
        markup_rate=0.12,
        platform_fee_rate=0.12,
        tiers=[
            CommissionTier(min_amount=0, max_amount=5000, rate=0.40),
            CommissionTier(min_amount=5001, max_amount=15000, rate=0.45),
            CommissionTier(min_amount=15001, max_amount=None, rate=0.50),
        ],
    ),
)


class CommissionRuleSet:
    """Ordered, read-only table of commission rules for one tenant.

    ``resolve`` picks the first active rule for a booking type. Unmatched
    types fall back to ``default_rule_id`` when one is configured, otherwise
    to the first rule in the table.
    """

    def __init__(
        self, rules: Iterable[CommissionRule], default_rule_id: Optional[str] = None
    ) -> None:
        self._rules: Tuple[CommissionRule, ...] = tuple(rules)
        self._default: Optional[CommissionRule] = None
        if default_rule_id is not None:
            self._default = self.get(default_rule_id)
            if self._default is None:
                raise ConfigurationError(f"Default commission rule '{default_rule_id}' is not defined")
        self.default_rule_id = default_rule_id

    @classmethod
    def default(cls) -> "CommissionRuleSet":
        return cls(DEFAULT_COMMISSION_RULES, default_rule_id=DEFAULT_RULE_ID)

    @classmethod
    def from_config(
        cls, rules: Optional[List[Dict[str, Any]]], default_rule_id: Optional[str] = None
    ) -> "CommissionRuleSet":
        if rules is None:
            return cls(DEFAULT_COMMISSION_RULES, default_rule_id=default_rule_id or DEFAULT_RULE_ID)
        try:
            parsed = [CommissionRule.model_validate(rule) for rule in rules]
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid commission rule configuration: {exc}") from exc
        return cls(parsed, default_rule_id=default_rule_id)

    @classmethod
    def from_settings(cls, settings: Settings) -> "CommissionRuleSet":
        return cls.from_config(settings.commission_rules, settings.default_commission_rule_id)

    @property
    def rules(self) -> Tuple[CommissionRule, ...]:
        return self._rules

    def __iter__(self) -> Iterator[CommissionRule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def get(self, rule_id: str) -> Optional[CommissionRule]:
        for rule in self._rules:
            if rule.id == rule_id:
                return rule
        return None

    def resolve(self, booking_type: str) -> CommissionRule:
        if not self._rules:
            raise ConfigurationError("Commission rule set is empty")
        for rule in self._rules:
            if rule.is_active and rule.booking_type == booking_type:
                return rule
        fallback = self._default or self._rules[0]
        logger.debug("No active commission rule for %s, using %s", booking_type, fallback.id)
        return fallback
