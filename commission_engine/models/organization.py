"""Organization models: roles, offices, teams, people and office leadership."""

from sqlalchemy import Boolean, Column, Date, DateTime, Enum, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship
import enum

from commission_engine.models.base import Base


class SetterTier(str, enum.Enum):
    """Setter experience tier, used by direct-seller and override rule conditions."""
    ROOKIE = "Rookie"
    VETERAN = "Veteran"
    TEAM_LEAD = "Team Lead"


class PersonStatus(str, enum.Enum):
    ONBOARDING = "onboarding"
    ACTIVE = "active"
    INACTIVE = "inactive"
    TERMINATED = "terminated"


class LeadershipRole(str, enum.Enum):
    """Office leadership role types and the override level each one pays at."""
    AREA_DIRECTOR = "ad"
    REGIONAL = "regional"
    DIVISIONAL = "divisional"
    VP = "vp"

    @property
    def override_level(self) -> int:
        return _LEADERSHIP_LEVELS[self]


_LEADERSHIP_LEVELS = {
    LeadershipRole.AREA_DIRECTOR: 1,
    LeadershipRole.REGIONAL: 2,
    LeadershipRole.DIVISIONAL: 3,
    LeadershipRole.VP: 4,
}


class Role(Base):
    __tablename__ = "role"

    id = Column(String, primary_key=True)
    name = Column(String(100), nullable=False)
    level = Column(Integer, nullable=False)  # hierarchy level (1 = lowest)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())


class Division(Base):
    __tablename__ = "division"

    id = Column(String, primary_key=True)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())


class Region(Base):
    __tablename__ = "region"

    id = Column(String, primary_key=True)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())


class Office(Base):
    __tablename__ = "office"

    id = Column(String, primary_key=True)
    name = Column(String(100), nullable=False)
    region_id = Column(String, ForeignKey("region.id"), nullable=True, index=True)
    division_id = Column(String, ForeignKey("division.id"), nullable=True, index=True)
    address = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    region = relationship("Region")
    division = relationship("Division")


class Team(Base):
    __tablename__ = "team"

    id = Column(String, primary_key=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    office_id = Column(String, ForeignKey("office.id"), nullable=True, index=True)
    team_lead_id = Column(String, ForeignKey("person.id"), nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())


class Person(Base):
    """A rep, manager or leader. Live organizational state; snapshots copy it."""

    __tablename__ = "person"

    id = Column(String, primary_key=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    phone = Column(String(20), nullable=True)

    # Current state
    role_id = Column(String, ForeignKey("role.id"), nullable=True, index=True)
    status = Column(
        Enum(PersonStatus, values_callable=lambda enum_class: [e.value for e in enum_class]),
        nullable=False,
        default=PersonStatus.ACTIVE,
        index=True
    )
    office_id = Column(String, ForeignKey("office.id"), nullable=True, index=True)
    reports_to_id = Column(String, ForeignKey("person.id"), nullable=True, index=True)
    recruited_by_id = Column(String, ForeignKey("person.id"), nullable=True, index=True)

    setter_tier = Column(
        Enum(SetterTier, values_callable=lambda enum_class: [e.value for e in enum_class]),
        nullable=True
    )

    hire_date = Column(Date, nullable=True)
    termination_date = Column(Date, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    role = relationship("Role")
    office = relationship("Office")
    reports_to = relationship("Person", remote_side=[id], foreign_keys=[reports_to_id])
    recruited_by = relationship("Person", remote_side=[id], foreign_keys=[recruited_by_id])

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class PersonTeam(Base):
    """Team membership over an effective date range (end_date null = current)."""

    __tablename__ = "person_team"

    id = Column(String, primary_key=True)
    person_id = Column(String, ForeignKey("person.id"), nullable=False, index=True)
    team_id = Column(String, ForeignKey("team.id"), nullable=False, index=True)
    role_in_team = Column(String(50), nullable=False, default="member")  # member, lead, co-lead
    effective_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())

    # Relationships
    team = relationship("Team")


class OfficeLeadership(Base):
    """
    Who receives office-hierarchy overrides on deals in an office/region/division.

    - ad: scoped to one office (office_id set)
    - regional: scoped to a region (region_id set)
    - divisional: scoped to a division (division_id set)
    - vp: scoped to a division, or company-wide when division_id is null

    An assignment applies to deals dated within [effective_from, effective_to];
    a null effective_to means still active.
    """

    __tablename__ = "office_leadership"

    id = Column(String, primary_key=True)
    office_id = Column(String, ForeignKey("office.id"), nullable=True, index=True)
    region_id = Column(String, ForeignKey("region.id"), nullable=True, index=True)
    division_id = Column(String, ForeignKey("division.id"), nullable=True, index=True)
    role_type = Column(
        Enum(LeadershipRole, values_callable=lambda enum_class: [e.value for e in enum_class]),
        nullable=False,
        index=True
    )
    person_id = Column(String, ForeignKey("person.id", ondelete="CASCADE"), nullable=False, index=True)
    effective_from = Column(Date, nullable=False)
    effective_to = Column(Date, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    person = relationship("Person")
