"""Structured payloads stored as JSON on commission rules and commissions."""

from decimal import Decimal
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator

from commission_engine.models.organization import SetterTier


# ============================================================================
# Rule Conditions
# ============================================================================

class RuleConditions(BaseModel):
    """Optional applicability conditions of a commission rule.

    An unset (or empty) condition is always satisfied.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    setter_tier: Optional[List[SetterTier]] = None
    deal_types: Optional[List[str]] = None
    min_kw: Optional[Decimal] = Field(default=None, ge=0)
    ppw_floor: Optional[Decimal] = Field(default=None, ge=0)

    @field_validator("setter_tier", mode="before")
    @classmethod
    def _coerce_tier_list(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value or None

    @field_validator("deal_types", mode="before")
    @classmethod
    def _normalize_deal_types(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = [value]
        if not value:
            return None
        return [str(v).strip().lower() for v in value]


# ============================================================================
# Calculation Audit Payload
# ============================================================================

# Audit amounts are stored as JSON numbers.
JsonDecimal = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class PayPlanRef(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None


class RuleSnapshot(BaseModel):
    id: str
    name: Optional[str] = None
    rule_type: str
    calc_method: str
    amount: JsonDecimal


class DealFacts(BaseModel):
    id: str
    deal_type: str
    deal_value: JsonDecimal
    system_size_kw: Optional[JsonDecimal] = None
    ppw: Optional[JsonDecimal] = None


class CalcDetails(BaseModel):
    """Audit breakdown attached to every commission (stored in calc_details).

    Denormalized from the referenced rule, pay plan and org snapshot rows.
    """

    formula: str
    result: JsonDecimal
    pay_plan: PayPlanRef
    commission_rule: RuleSnapshot
    org_snapshot_id: str
    setter_tier: Optional[str] = None
    deal: DealFacts
    charges: JsonDecimal = Decimal("0")  # future deductions
    adders: JsonDecimal = Decimal("0")   # future bonuses
    override_level: Optional[int] = None

    def to_payload(self) -> Dict[str, Any]:
        exclude = {"override_level"} if self.override_level is None else None
        return self.model_dump(mode="json", exclude=exclude)
