"""Commission model: one calculated payout per deal per payee."""

from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, JSON, Numeric, String, Text, func
from sqlalchemy.orm import relationship
import enum

from commission_engine.models.base import Base


class CommissionStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"
    HELD = "held"
    VOID = "void"


class CommissionType(str, enum.Enum):
    """Fixed commission type tags. Chain overrides use override_tag()."""
    SETTER = "setter"
    CLOSER = "closer"
    SELF_GEN = "self_gen"
    OVERRIDE_OFFICE_AD = "override_office_ad"
    OVERRIDE_OFFICE_REGIONAL = "override_office_regional"
    OVERRIDE_OFFICE_DIVISIONAL = "override_office_divisional"
    OVERRIDE_OFFICE_VP = "override_office_vp"


def override_tag(source: str, level: int) -> str:
    """Commission type for a chain override, e.g. override_reports_to_l2."""
    return f"override_{source}_l{level}"


def office_override_tag(role_type: str) -> str:
    return f"override_office_{role_type}"


class Commission(Base):
    """
    Derived payout record. Deleted and regenerated whenever its deal is
    recalculated; calc_details carries the full audit breakdown.
    """

    __tablename__ = "commission"

    id = Column(String, primary_key=True)

    # Links
    deal_id = Column(String, ForeignKey("deal.id"), nullable=False, index=True)
    person_id = Column(String, ForeignKey("person.id"), nullable=False, index=True)

    commission_type = Column(String(50), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)

    # Calculation audit trail
    commission_rule_id = Column(String, ForeignKey("commission_rule.id"), nullable=True)
    pay_plan_id = Column(String, ForeignKey("pay_plan.id"), nullable=True)
    calc_details = Column(JSON, nullable=False)

    status = Column(
        Enum(CommissionStatus, values_callable=lambda enum_class: [e.value for e in enum_class]),
        nullable=False,
        default=CommissionStatus.PENDING,
        index=True
    )
    status_reason = Column(Text, nullable=True)  # reason for hold/void

    # Payroll
    pay_period_date = Column(Date, nullable=True, index=True)
    paid_at = Column(DateTime, nullable=True)

    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    deal = relationship("Deal")
    person = relationship("Person")
    commission_rule = relationship("CommissionRule")
    pay_plan = relationship("PayPlan")
