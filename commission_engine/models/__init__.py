"""SQLAlchemy models for the commission engine."""

from commission_engine.models.base import Base  # noqa: F401
from commission_engine.models.organization import (  # noqa: F401
    Division,
    LeadershipRole,
    Office,
    OfficeLeadership,
    Person,
    PersonStatus,
    PersonTeam,
    Region,
    Role,
    SetterTier,
    Team,
)
from commission_engine.models.pay_plan import (  # noqa: F401
    CalcMethod,
    CommissionRule,
    OverrideSource,
    PayPlan,
    PersonPayPlan,
    RuleType,
)
from commission_engine.models.deal import Deal, DealStatus  # noqa: F401
from commission_engine.models.org_snapshot import OrgSnapshot  # noqa: F401
from commission_engine.models.commission import (  # noqa: F401
    Commission,
    CommissionStatus,
    CommissionType,
)
