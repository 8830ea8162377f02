from __future__ import annotations

import pytest
from pydantic import ValidationError

from src.analytics.commission_rules import DEFAULT_RULE_ID, CommissionRuleSet
from src.core.errors import ConfigurationError
from src.schemas.commission_rules import CommissionRule, CommissionTier


def _rule(rule_id: str, booking_type: str, is_active: bool = True) -> CommissionRule:
    return CommissionRule(
        id=rule_id,
        name=rule_id,
        booking_type=booking_type,
        calculation_type="percentage",
        base_rate=0.5,
        platform_fee_rate=0.1,
        is_active=is_active,
    )


def test_resolve_matches_booking_type(rule_set):
    assert rule_set.resolve("international").id == "flat-45"
    assert rule_set.resolve("group").id == "group-tiered"


def test_resolve_unmapped_type_uses_default_rule(rule_set):
    assert rule_set.resolve("corporate").id == DEFAULT_RULE_ID


def test_resolve_skips_inactive_rules():
    rule_set = CommissionRuleSet(
        [_rule("old-b2b", "b2b", is_active=False), _rule("new-b2b", "b2b"), _rule("dom", "domestic")]
    )
    assert rule_set.resolve("b2b").id == "new-b2b"


def test_resolve_first_active_match_wins():
    rule_set = CommissionRuleSet([_rule("first", "group"), _rule("second", "group")])
    assert rule_set.resolve("group").id == "first"


def test_resolve_without_default_falls_back_to_first_rule():
    rule_set = CommissionRuleSet([_rule("dom", "domestic"), _rule("intl", "international")])
    assert rule_set.resolve("corporate").id == "dom"


def test_resolve_with_explicit_default():
    rule_set = CommissionRuleSet(
        [_rule("dom", "domestic"), _rule("intl", "international")], default_rule_id="intl"
    )
    assert rule_set.resolve("corporate").id == "intl"


def test_resolve_empty_rule_set_raises():
    with pytest.raises(ConfigurationError):
        CommissionRuleSet([]).resolve("domestic")


def test_unknown_default_rule_id_raises():
    with pytest.raises(ConfigurationError):
        CommissionRuleSet([_rule("dom", "domestic")], default_rule_id="missing")


def test_from_config_parses_camel_case_rules():
    rule_set = CommissionRuleSet.from_config(
        [
            {
                "id": "corp",
                "name": "Corporate",
                "bookingType": "corporate",
                "calculationType": "fixed",
                "baseRate": 250,
                "platformFeeRate": 0.05,
            }
        ]
    )
    rule = rule_set.resolve("corporate")
    assert rule.calculation_type == "fixed"
    assert rule.base_rate == 250


def test_from_config_without_rules_uses_defaults():
    rule_set = CommissionRuleSet.from_config(None)
    assert len(rule_set) == 4
    assert rule_set.default_rule_id == DEFAULT_RULE_ID


def test_from_config_invalid_rule_raises_configuration_error():
    with pytest.raises(ConfigurationError):
        CommissionRuleSet.from_config(
            [{"id": "bad", "name": "Bad", "booking_type": "domestic", "calculation_type": "percentage", "base_rate": 1.5}]
        )


def test_tiered_rule_requires_tiers():
    with pytest.raises(ValidationError):
        CommissionRule(id="t", name="t", booking_type="group", calculation_type="tiered", base_rate=0.4)


def test_overlapping_tiers_are_rejected():
    with pytest.raises(ValidationError):
        CommissionRule(
            id="t",
            name="t",
            booking_type="group",
            calculation_type="tiered",
            base_rate=0.4,
            tiers=[
                CommissionTier(min_amount=0, max_amount=5000, rate=0.4),
                CommissionTier(min_amount=5000, max_amount=None, rate=0.5),
            ],
        )


def test_tiers_are_sorted_by_lower_bound():
    rule = CommissionRule(
        id="t",
        name="t",
        booking_type="group",
        calculation_type="tiered",
        base_rate=0.4,
        tiers=[
            CommissionTier(min_amount=1001, max_amount=None, rate=0.5),
            CommissionTier(min_amount=0, max_amount=1000, rate=0.4),
        ],
    )
    assert [tier.min_amount for tier in rule.tiers] == [0, 1001]


def test_percentage_rule_rejects_tiers():
    with pytest.raises(ValidationError):
        CommissionRule(
            id="p",
            name="p",
            booking_type="domestic",
            calculation_type="percentage",
            base_rate=0.4,
            tiers=[CommissionTier(min_amount=0, max_amount=None, rate=0.4)],
        )


def test_tiers_must_start_at_zero():
    with pytest.raises(ValidationError):
        CommissionRule(
            id="t",
            name="t",
            booking_type="group",
            calculation_type="tiered",
            base_rate=0.4,
            tiers=[
                CommissionTier(min_amount=100, max_amount=5000, rate=0.4),
                CommissionTier(min_amount=5001, max_amount=None, rate=0.5),
            ],
        )


def test_highest_tier_must_be_open_ended():
    with pytest.raises(ValidationError):
        CommissionRule(
            id="t",
            name="t",
            booking_type="group",
            calculation_type="tiered",
            base_rate=0.4,
            tiers=[
                CommissionTier(min_amount=0, max_amount=5000, rate=0.4),
                CommissionTier(min_amount=5001, max_amount=15000, rate=0.5),
            ],
        )


def test_fixed_rule_rejects_infinite_amount():
    with pytest.raises(ValidationError):
        CommissionRule(id="f", name="f", booking_type="corporate", calculation_type="fixed", base_rate=float("inf"))
