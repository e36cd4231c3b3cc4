"""Pay plan, pay plan assignment and commission rule models."""

from sqlalchemy import Boolean, Column, Date, DateTime, Enum, ForeignKey, Integer, JSON, Numeric, String, Text, func
from sqlalchemy.orm import relationship
import enum

from commission_engine.models.base import Base


class RuleType(str, enum.Enum):
    """Payout scenario a commission rule is written for."""
    SETTER_COMMISSION = "setter_commission"
    CLOSER_COMMISSION = "closer_commission"
    SELF_GEN_COMMISSION = "self_gen_commission"
    OVERRIDE = "override"
    RECRUITING_BONUS = "recruiting_bonus"
    DRAW = "draw"


class CalcMethod(str, enum.Enum):
    FLAT_PER_KW = "flat_per_kw"                # rate x system size
    PERCENTAGE_OF_DEAL = "percentage_of_deal"  # rate / 100 x deal value
    FLAT_FEE = "flat_fee"                      # rate


class OverrideSource(str, enum.Enum):
    """Relationship chain an override rule traverses."""
    REPORTS_TO = "reports_to"
    RECRUITED_BY = "recruited_by"
    OFFICE_HIERARCHY = "office_hierarchy"


class PayPlan(Base):
    """Named bundle of commission rules."""

    __tablename__ = "pay_plan"

    id = Column(String, primary_key=True)
    name = Column(String(100), nullable=False, index=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    rules = relationship(
        "CommissionRule",
        back_populates="pay_plan",
        order_by=lambda: [CommissionRule.sort_order, CommissionRule.created_at],
    )


class PersonPayPlan(Base):
    """Assignment of a pay plan to a person for [effective_date, end_date]."""

    __tablename__ = "person_pay_plan"

    id = Column(String, primary_key=True)
    person_id = Column(String, ForeignKey("person.id"), nullable=False, index=True)
    pay_plan_id = Column(String, ForeignKey("pay_plan.id"), nullable=False, index=True)
    effective_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)  # null = current
    notes = Column(Text, nullable=True)  # special deal documentation

    created_at = Column(DateTime, nullable=False, server_default=func.now())

    # Relationships
    pay_plan = relationship("PayPlan")


class CommissionRule(Base):
    """
    How one payout is computed within a pay plan.

    conditions JSON (all keys optional, validated into RuleConditions):
        setter_tier: "Rookie" | ["Rookie", "Veteran"]
        deal_types: ["solar", "hvac"]
        min_kw: 5.0
        ppw_floor: 2.85

    override_level: 1 = direct, 2 = skip-level, ...; null or 0 = any level.
    For office_hierarchy: 1 AD, 2 Regional, 3 Divisional, 4 VP.
    """

    __tablename__ = "commission_rule"

    id = Column(String, primary_key=True)
    pay_plan_id = Column(String, ForeignKey("pay_plan.id"), nullable=False, index=True)
    name = Column(String(100), nullable=True)

    rule_type = Column(
        Enum(RuleType, values_callable=lambda enum_class: [e.value for e in enum_class]),
        nullable=False,
        index=True
    )
    # Plain string so an unrecognized method can be loaded and reported instead of failing the row
    calc_method = Column(String(50), nullable=False)
    amount = Column(Numeric(10, 4), nullable=False)

    applies_to_role_id = Column(String, ForeignKey("role.id"), nullable=True)
    override_source = Column(
        Enum(OverrideSource, values_callable=lambda enum_class: [e.value for e in enum_class]),
        nullable=True
    )
    override_level = Column(Integer, nullable=True)

    conditions = Column(JSON, nullable=True, default=dict)

    is_active = Column(Boolean, nullable=False, default=True, index=True)
    sort_order = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    pay_plan = relationship("PayPlan", back_populates="rules")
