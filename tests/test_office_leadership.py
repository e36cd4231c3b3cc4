from datetime import date

from commission_engine.models import LeadershipRole
from commission_engine.services.office_leadership import OfficeLeadershipService

from conftest import make_division, make_leader, make_office, make_person, make_region

AS_OF = date(2025, 3, 15)


async def _org(db):
    region = await make_region(db)
    division = await make_division(db)
    office = await make_office(db, "Tempe", region=region, division=division)
    return office, region, division


class TestOfficeLeaders:
    async def test_full_hierarchy_in_level_order(self, db):
        office, region, division = await _org(db)
        ad = await make_person(db, "Ada")
        rm = await make_person(db, "Reg")
        dm = await make_person(db, "Dee")
        vp = await make_person(db, "Vic")
        await make_leader(db, vp, LeadershipRole.VP, division=division)
        await make_leader(db, dm, LeadershipRole.DIVISIONAL, division=division)
        await make_leader(db, rm, LeadershipRole.REGIONAL, region=region)
        await make_leader(db, ad, LeadershipRole.AREA_DIRECTOR, office=office)

        leaders = await OfficeLeadershipService(db).get_office_leaders(office.id, AS_OF)

        assert [(l.person_id, l.role_type, l.override_level) for l in leaders] == [
            (ad.id, LeadershipRole.AREA_DIRECTOR, 1),
            (rm.id, LeadershipRole.REGIONAL, 2),
            (dm.id, LeadershipRole.DIVISIONAL, 3),
            (vp.id, LeadershipRole.VP, 4),
        ]

    async def test_vp_falls_back_to_company_wide(self, db):
        office, _, _ = await _org(db)
        company_vp = await make_person(db, "Cora")
        await make_leader(db, company_vp, LeadershipRole.VP)

        leaders = await OfficeLeadershipService(db).get_office_leaders(office.id, AS_OF)

        assert [(l.person_id, l.role_type) for l in leaders] == [(company_vp.id, LeadershipRole.VP)]

    async def test_division_vp_preferred_over_company_vp(self, db):
        office, _, division = await _org(db)
        company_vp = await make_person(db, "Cora")
        division_vp = await make_person(db, "Dana")
        await make_leader(db, company_vp, LeadershipRole.VP)
        await make_leader(db, division_vp, LeadershipRole.VP, division=division)

        leaders = await OfficeLeadershipService(db).get_office_leaders(office.id, AS_OF)

        assert [l.person_id for l in leaders] == [division_vp.id]

    async def test_effective_range_is_inclusive(self, db):
        office, _, _ = await _org(db)
        ad = await make_person(db)
        await make_leader(
            db, ad, LeadershipRole.AREA_DIRECTOR, office=office,
            effective_from=date(2025, 1, 1), effective_to=AS_OF,
        )
        service = OfficeLeadershipService(db)

        assert [l.person_id for l in await service.get_office_leaders(office.id, AS_OF)] == [ad.id]
        assert await service.get_office_leaders(office.id, date(2025, 3, 16)) == []
        assert await service.get_office_leaders(office.id, date(2024, 12, 31)) == []

    async def test_latest_assignment_wins(self, db):
        office, _, _ = await _org(db)
        outgoing = await make_person(db, "Out")
        incoming = await make_person(db, "In")
        await make_leader(db, outgoing, LeadershipRole.AREA_DIRECTOR, office=office, effective_from=date(2024, 1, 1))
        await make_leader(db, incoming, LeadershipRole.AREA_DIRECTOR, office=office, effective_from=date(2025, 3, 1))

        leaders = await OfficeLeadershipService(db).get_office_leaders(office.id, AS_OF)

        assert [l.person_id for l in leaders] == [incoming.id]

    async def test_other_office_ad_ignored(self, db):
        office, region, division = await _org(db)
        other_office = await make_office(db, "Chandler", region=region, division=division)
        ad = await make_person(db)
        await make_leader(db, ad, LeadershipRole.AREA_DIRECTOR, office=other_office)

        assert await OfficeLeadershipService(db).get_office_leaders(office.id, AS_OF) == []

    async def test_office_without_region_or_division(self, db):
        office = await make_office(db, "Remote")
        regional = await make_person(db)
        await make_leader(db, regional, LeadershipRole.REGIONAL, region=await make_region(db, "Elsewhere"))

        assert await OfficeLeadershipService(db).get_office_leaders(office.id, AS_OF) == []

    async def test_missing_or_empty_office(self, db):
        service = OfficeLeadershipService(db)

        assert await service.get_office_leaders(None, AS_OF) == []
        assert await service.get_office_leaders("ghost", AS_OF) == []
