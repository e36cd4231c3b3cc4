"""Org snapshot model: a person's organizational position as of a date."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, JSON, String, UniqueConstraint, func

from commission_engine.models.base import Base


class OrgSnapshot(Base):
    """
    Write-once, denormalized copy of a person's org state on snapshot_date.

    Commission audits reference these rows so that a later change to a
    person's manager, office or pay plan never alters a past calculation.
    One row per (person_id, snapshot_date), enforced by the unique constraint.
    """

    __tablename__ = "org_snapshot"

    id = Column(String, primary_key=True)
    person_id = Column(String, ForeignKey("person.id"), nullable=False, index=True)
    snapshot_date = Column(Date, nullable=False, index=True)

    # Org state at this date
    role_id = Column(String, ForeignKey("role.id"), nullable=True)
    role_name = Column(String(100), nullable=True)
    office_id = Column(String, ForeignKey("office.id"), nullable=True)
    office_name = Column(String(100), nullable=True)
    reports_to_id = Column(String, ForeignKey("person.id"), nullable=True)
    reports_to_name = Column(String(200), nullable=True)
    recruited_by_id = Column(String, ForeignKey("person.id"), nullable=True)
    recruited_by_name = Column(String(200), nullable=True)
    pay_plan_id = Column(String, ForeignKey("pay_plan.id"), nullable=True)
    pay_plan_name = Column(String(100), nullable=True)
    setter_tier = Column(String(50), nullable=True)

    team_ids = Column(JSON, nullable=True)
    team_names = Column(JSON, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("person_id", "snapshot_date", name="uq_org_snapshot_person_date"),
    )
