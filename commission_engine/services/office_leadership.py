"""Office leadership lookups for office-hierarchy overrides."""

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.models.organization import LeadershipRole, Office, OfficeLeadership

logger = logging.getLogger(__name__)


@dataclass
class OfficeLeader:
    """A leader entitled to an office-hierarchy override on a deal."""
    person_id: str
    role_type: LeadershipRole
    assignment_id: str

    @property
    def override_level(self) -> int:
        return self.role_type.override_level


class OfficeLeadershipService:
    """Resolves which leaders are effective for an office on a date."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_effective_leader(
        self,
        role_type: LeadershipRole,
        as_of: date,
        office_id: Optional[str] = None,
        region_id: Optional[str] = None,
        division_id: Optional[str] = None,
    ) -> Optional[OfficeLeadership]:
        """
        The assignment of role_type for the given scope effective on as_of.

        Each scope column is matched exactly, so a null division_id selects
        company-wide assignments.
        """
        query = select(OfficeLeadership).where(
            and_(
                OfficeLeadership.role_type == role_type,
                OfficeLeadership.effective_from <= as_of,
                or_(OfficeLeadership.effective_to.is_(None), OfficeLeadership.effective_to >= as_of),
            )
        )

        if role_type == LeadershipRole.AREA_DIRECTOR:
            query = query.where(OfficeLeadership.office_id == office_id)
        elif role_type == LeadershipRole.REGIONAL:
            query = query.where(OfficeLeadership.region_id == region_id)
        elif division_id is None:
            query = query.where(OfficeLeadership.division_id.is_(None))
        else:
            query = query.where(OfficeLeadership.division_id == division_id)

        query = query.order_by(
            OfficeLeadership.effective_from.desc(),
            OfficeLeadership.created_at.desc(),
        ).limit(1)

        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_office_leaders(self, office_id: Optional[str], as_of: date) -> List[OfficeLeader]:
        """
        AD, Regional, Divisional and VP effective for an office on as_of.

        The VP is the one scoped to the office's division when there is one,
        otherwise the company-wide VP. Missing roles are simply absent.
        """
        if not office_id:
            return []

        office = await self.db.get(Office, office_id)
        if not office:
            logger.warning("Office %s not found; no office-hierarchy overrides", office_id)
            return []

        assignments: List[OfficeLeadership] = []

        ad = await self.get_effective_leader(LeadershipRole.AREA_DIRECTOR, as_of, office_id=office.id)
        if ad:
            assignments.append(ad)

        if office.region_id:
            regional = await self.get_effective_leader(LeadershipRole.REGIONAL, as_of, region_id=office.region_id)
            if regional:
                assignments.append(regional)

        if office.division_id:
            divisional = await self.get_effective_leader(
                LeadershipRole.DIVISIONAL, as_of, division_id=office.division_id
            )
            if divisional:
                assignments.append(divisional)

        vp = None
        if office.division_id:
            vp = await self.get_effective_leader(LeadershipRole.VP, as_of, division_id=office.division_id)
        if not vp:
            vp = await self.get_effective_leader(LeadershipRole.VP, as_of)
        if vp:
            assignments.append(vp)

        return [
            OfficeLeader(
                person_id=a.person_id,
                role_type=LeadershipRole(a.role_type),
                assignment_id=a.id,
            )
            for a in assignments
        ]
