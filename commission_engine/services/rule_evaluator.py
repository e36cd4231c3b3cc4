"""Commission rule evaluation.

Pure functions: decide whether a rule applies to a deal/payee context and
compute the payout it produces. Nothing here touches the database.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional

from pydantic import ValidationError

from commission_engine.core.exceptions import InvalidRuleConditionsError
from commission_engine.models.deal import Deal
from commission_engine.models.pay_plan import CalcMethod, CommissionRule, OverrideSource
from commission_engine.schemas.commission import RuleConditions

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0")

_KNOWN_METHODS = frozenset(method.value for method in CalcMethod)


@dataclass(frozen=True)
class RuleEvaluationContext:
    """Deal facts plus the payee attributes a rule can be conditioned on."""
    deal_type: str
    system_size_kw: Decimal
    deal_value: Decimal
    ppw: Decimal
    setter_tier: Optional[str] = None
    person_role_id: Optional[str] = None

    @classmethod
    def from_deal(
        cls,
        deal: Deal,
        setter_tier: Optional[str] = None,
        person_role_id: Optional[str] = None,
    ) -> "RuleEvaluationContext":
        return cls(
            deal_type=deal.deal_type or "",
            system_size_kw=_to_decimal(deal.system_size_kw),
            deal_value=_to_decimal(deal.deal_value),
            ppw=_to_decimal(deal.ppw),
            setter_tier=setter_tier,
            person_role_id=person_role_id,
        )


def parse_rule_conditions(rule: CommissionRule) -> RuleConditions:
    """Validate a rule's conditions JSON into RuleConditions."""
    try:
        return RuleConditions.model_validate(rule.conditions or {})
    except ValidationError as e:
        raise InvalidRuleConditionsError(rule.id, str(e)) from e


def evaluate_rule(rule: CommissionRule, context: RuleEvaluationContext) -> bool:
    """Return True if every condition on the rule is satisfied by the context."""
    conditions = parse_rule_conditions(rule)

    if conditions.setter_tier:
        if not context.setter_tier or context.setter_tier not in conditions.setter_tier:
            return False

    if conditions.deal_types:
        if context.deal_type.lower() not in conditions.deal_types:
            return False

    if conditions.min_kw is not None and context.system_size_kw < conditions.min_kw:
        return False

    if conditions.ppw_floor is not None and context.ppw < conditions.ppw_floor:
        return False

    if rule.applies_to_role_id and context.person_role_id != rule.applies_to_role_id:
        return False

    return True


def override_rule_matches(rule: CommissionRule, source: OverrideSource, level: int) -> bool:
    """Check override source, and level where null or 0 means any level."""
    if rule.override_source != source:
        return False
    if rule.override_level and rule.override_level != level:
        return False
    return True


def has_known_calc_method(rule: CommissionRule) -> bool:
    return calc_method_name(rule) in _KNOWN_METHODS


def calculate_commission_amount(rule: CommissionRule, context: RuleEvaluationContext) -> Decimal:
    """Payout for a matching rule, rounded to cents."""
    amount = _raw_amount(rule, context)
    if amount is None:
        logger.warning(
            "Unknown calculation method %r on commission rule %s; paying zero",
            calc_method_name(rule),
            rule.id,
        )
        return ZERO.quantize(CENT)
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def get_applicable_rules(
    rules: Iterable[CommissionRule],
    context: RuleEvaluationContext,
) -> List[CommissionRule]:
    """Active rules that apply, sorted by (sort_order, created_at). First one wins."""
    applicable = [rule for rule in rules if rule.is_active and evaluate_rule(rule, context)]
    return sorted(applicable, key=_rule_sort_key)


def build_formula(rule: CommissionRule, context: RuleEvaluationContext) -> str:
    """Human-readable formula, e.g. "$0.25/kW × 9.8 kW = $2.45"."""
    rate = _to_decimal(rule.amount)
    amount = _raw_amount(rule, context)
    if amount is None:
        return f"Unknown calculation method: {calc_method_name(rule)}"
    amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)

    method = calc_method_name(rule)
    if method == CalcMethod.FLAT_PER_KW.value:
        return f"${_plain(rate)}/kW × {_plain(context.system_size_kw)} kW = {_money(amount)}"
    if method == CalcMethod.PERCENTAGE_OF_DEAL.value:
        return f"{_plain(rate)}% × {_money(context.deal_value)} = {_money(amount)}"
    return _money(rate)


# =========================================================================
# Helpers
# =========================================================================

def _raw_amount(rule: CommissionRule, context: RuleEvaluationContext) -> Optional[Decimal]:
    rate = _to_decimal(rule.amount)
    method = calc_method_name(rule)

    if method == CalcMethod.FLAT_PER_KW.value:
        return rate * context.system_size_kw
    if method == CalcMethod.PERCENTAGE_OF_DEAL.value:
        return rate / Decimal("100") * context.deal_value
    if method == CalcMethod.FLAT_FEE.value:
        return rate
    return None


def calc_method_name(rule: CommissionRule) -> str:
    method = rule.calc_method
    return method.value if isinstance(method, CalcMethod) else str(method)


def _rule_sort_key(rule: CommissionRule):
    return (rule.sort_order or 0, rule.created_at or datetime.min)


def _to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _plain(value: Decimal) -> str:
    """Decimal without trailing zeros or exponent: 0.2500 -> 0.25, 10.0000 -> 10."""
    return format(value.normalize(), "f")


def _money(value: Decimal) -> str:
    return f"${value:,.2f}"
