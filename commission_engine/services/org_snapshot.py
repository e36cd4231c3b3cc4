"""Org snapshot provider.

Captures a person's organizational position (role, office, manager,
recruiter, pay plan, tier, teams) as of a date. A snapshot is written once
per (person, date) and never updated, so commission audits stay
reproducible after the live org chart changes.
"""

import logging
import uuid
from datetime import date
from typing import Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.core.exceptions import PersonNotFoundError
from commission_engine.models.org_snapshot import OrgSnapshot
from commission_engine.models.organization import Office, Person, PersonTeam, Role, SetterTier, Team
from commission_engine.services.pay_plan import PayPlanService

logger = logging.getLogger(__name__)


class OrgSnapshotService:
    """Get-or-create access to org snapshots."""

    def __init__(self, db: AsyncSession, pay_plans: Optional[PayPlanService] = None):
        self.db = db
        self.pay_plans = pay_plans or PayPlanService(db)

    async def get_snapshot(self, person_id: str, snapshot_date: date) -> Optional[OrgSnapshot]:
        result = await self.db.execute(
            select(OrgSnapshot).where(
                and_(
                    OrgSnapshot.person_id == person_id,
                    OrgSnapshot.snapshot_date == snapshot_date,
                )
            )
        )
        return result.scalar_one_or_none()

    async def get_or_create_snapshot(self, person_id: str, snapshot_date: date) -> OrgSnapshot:
        """
        Existing snapshot for (person, date), or a new one from live org data.

        Concurrent first use is resolved by the unique (person_id,
        snapshot_date) constraint: the loser re-reads the winner's row.
        """
        existing = await self.get_snapshot(person_id, snapshot_date)
        if existing:
            return existing

        try:
            return await self.create_snapshot(person_id, snapshot_date)
        except IntegrityError:
            logger.info(
                "Org snapshot for person %s on %s created concurrently; re-reading",
                person_id, snapshot_date.isoformat(),
            )
            winner = await self.get_snapshot(person_id, snapshot_date)
            if winner is None:
                raise
            return winner

    async def create_snapshot(self, person_id: str, snapshot_date: date) -> OrgSnapshot:
        """
        Insert a snapshot of the person's live org state.

        Runs in a SAVEPOINT so a unique-constraint violation only discards
        this insert, not the caller's transaction.
        """
        person = await self.db.get(Person, person_id)
        if not person:
            raise PersonNotFoundError(person_id)

        role = await self.db.get(Role, person.role_id) if person.role_id else None
        office = await self.db.get(Office, person.office_id) if person.office_id else None
        manager = await self.db.get(Person, person.reports_to_id) if person.reports_to_id else None
        recruiter = await self.db.get(Person, person.recruited_by_id) if person.recruited_by_id else None
        if person.reports_to_id and not manager:
            logger.warning("Person %s reports to missing person %s", person_id, person.reports_to_id)
        if person.recruited_by_id and not recruiter:
            logger.warning("Person %s was recruited by missing person %s", person_id, person.recruited_by_id)

        assignment = await self.pay_plans.get_person_current_pay_plan(person_id, snapshot_date)
        pay_plan = assignment.pay_plan if assignment else None

        teams_result = await self.db.execute(
            select(Team.id, Team.name)
            .join(PersonTeam, PersonTeam.team_id == Team.id)
            .where(
                and_(
                    PersonTeam.person_id == person_id,
                    PersonTeam.effective_date <= snapshot_date,
                    or_(PersonTeam.end_date.is_(None), PersonTeam.end_date >= snapshot_date),
                )
            )
            .order_by(PersonTeam.effective_date, Team.name)
        )
        teams = teams_result.all()

        snapshot = OrgSnapshot(
            id=str(uuid.uuid4()),
            person_id=person_id,
            snapshot_date=snapshot_date,
            role_id=role.id if role else None,
            role_name=role.name if role else None,
            office_id=office.id if office else None,
            office_name=office.name if office else None,
            reports_to_id=manager.id if manager else None,
            reports_to_name=manager.full_name if manager else None,
            recruited_by_id=recruiter.id if recruiter else None,
            recruited_by_name=recruiter.full_name if recruiter else None,
            pay_plan_id=pay_plan.id if pay_plan else None,
            pay_plan_name=pay_plan.name if pay_plan else None,
            setter_tier=SetterTier(person.setter_tier).value if person.setter_tier else None,
            team_ids=[team_id for team_id, _ in teams],
            team_names=[name for _, name in teams],
        )

        async with self.db.begin_nested():
            self.db.add(snapshot)

        logger.debug("Created org snapshot %s for person %s on %s", snapshot.id, person_id, snapshot_date)
        return snapshot
