from datetime import date, datetime

import pytest
from sqlalchemy import select

from commission_engine.core.exceptions import InvalidPayPlanAssignmentError
from commission_engine.models import CalcMethod, OverrideSource, PersonPayPlan, RuleType
from commission_engine.services.pay_plan import PayPlanService

from conftest import assign_plan, make_pay_plan, make_person, make_rule


class TestPersonCurrentPayPlan:
    async def test_returns_plan_covering_date(self, db):
        person = await make_person(db)
        old_plan = await make_pay_plan(db, "2024 Plan")
        new_plan = await make_pay_plan(db, "2025 Plan")
        await assign_plan(db, person, old_plan, date(2024, 1, 1), date(2024, 12, 31))
        await assign_plan(db, person, new_plan, date(2025, 1, 1))

        service = PayPlanService(db)

        assert (await service.get_person_current_pay_plan(person.id, date(2024, 6, 1))).pay_plan.id == old_plan.id
        assert (await service.get_person_current_pay_plan(person.id, date(2024, 12, 31))).pay_plan.id == old_plan.id
        assert (await service.get_person_current_pay_plan(person.id, date(2025, 1, 1))).pay_plan.id == new_plan.id

    async def test_none_before_first_assignment(self, db):
        person = await make_person(db)
        await assign_plan(db, person, await make_pay_plan(db), date(2025, 1, 1))

        assert await PayPlanService(db).get_person_current_pay_plan(person.id, date(2024, 12, 31)) is None

    async def test_without_date_returns_open_assignment(self, db):
        person = await make_person(db)
        old_plan = await make_pay_plan(db, "Old")
        current = await make_pay_plan(db, "Current")
        await assign_plan(db, person, old_plan, date(2023, 1, 1), date(2023, 12, 31))
        await assign_plan(db, person, current, date(2024, 1, 1))

        assignment = await PayPlanService(db).get_person_current_pay_plan(person.id)

        assert assignment.pay_plan.id == current.id
        assert assignment.end_date is None

    async def test_latest_assignment_wins_on_overlap(self, db):
        person = await make_person(db)
        first = await make_pay_plan(db, "First")
        second = await make_pay_plan(db, "Second")
        await assign_plan(db, person, first, date(2025, 1, 1), date(2025, 3, 1))
        await assign_plan(db, person, second, date(2025, 3, 1))

        assignment = await PayPlanService(db).get_person_current_pay_plan(person.id, date(2025, 3, 1))

        assert assignment.pay_plan.id == second.id


class TestAssignPayPlan:
    async def test_ends_previous_assignment_day_before(self, db):
        person = await make_person(db)
        old_plan = await make_pay_plan(db, "Old")
        new_plan = await make_pay_plan(db, "New")
        service = PayPlanService(db)

        await service.assign_pay_plan_to_person(person.id, old_plan.id, date(2024, 1, 1))
        await service.assign_pay_plan_to_person(person.id, new_plan.id, date(2025, 2, 1), notes="promotion")

        result = await db.execute(
            select(PersonPayPlan)
            .where(PersonPayPlan.person_id == person.id)
            .order_by(PersonPayPlan.effective_date)
            .execution_options(populate_existing=True)
        )
        rows = result.scalars().all()

        assert [(r.pay_plan_id, r.effective_date, r.end_date) for r in rows] == [
            (old_plan.id, date(2024, 1, 1), date(2025, 1, 31)),
            (new_plan.id, date(2025, 2, 1), None),
        ]
        assert rows[1].notes == "promotion"
        assert (await service.get_person_current_pay_plan(person.id, date(2025, 1, 31))).pay_plan.id == old_plan.id
        assert (await service.get_person_current_pay_plan(person.id, date(2025, 2, 1))).pay_plan.id == new_plan.id

    @pytest.mark.parametrize("effective_date", [date(2024, 12, 31), date(2025, 1, 1)])
    async def test_rejects_start_not_after_open_assignment(self, db, effective_date):
        person = await make_person(db)
        current = await make_pay_plan(db, "Current")
        backdated = await make_pay_plan(db, "Backdated")
        service = PayPlanService(db)
        await service.assign_pay_plan_to_person(person.id, current.id, date(2025, 1, 1))

        with pytest.raises(InvalidPayPlanAssignmentError) as exc_info:
            await service.assign_pay_plan_to_person(person.id, backdated.id, effective_date)
        await db.rollback()

        assert exc_info.value.current_start == date(2025, 1, 1)
        result = await db.execute(
            select(PersonPayPlan)
            .where(PersonPayPlan.person_id == person.id)
            .execution_options(populate_existing=True)
        )
        rows = result.scalars().all()
        assert [(r.pay_plan_id, r.effective_date, r.end_date) for r in rows] == [
            (current.id, date(2025, 1, 1), None),
        ]


class TestRules:
    async def test_filters_by_type_and_active(self, db):
        plan = await make_pay_plan(db)
        setter_rule = await make_rule(db, plan, RuleType.SETTER_COMMISSION, CalcMethod.FLAT_PER_KW, "0.25")
        await make_rule(db, plan, RuleType.CLOSER_COMMISSION, CalcMethod.PERCENTAGE_OF_DEAL, "3")
        await make_rule(db, plan, RuleType.SETTER_COMMISSION, CalcMethod.FLAT_FEE, "100", is_active=False)

        rules = await PayPlanService(db).get_rules_for_pay_plan(plan.id, RuleType.SETTER_COMMISSION)

        assert [r.id for r in rules] == [setter_rule.id]

    async def test_ordered_by_sort_order_then_created_at(self, db):
        plan = await make_pay_plan(db)
        third = await make_rule(
            db, plan, RuleType.SETTER_COMMISSION, CalcMethod.FLAT_FEE, "1",
            sort_order=2, created_at=datetime(2024, 1, 1),
        )
        second = await make_rule(
            db, plan, RuleType.SETTER_COMMISSION, CalcMethod.FLAT_FEE, "2",
            sort_order=1, created_at=datetime(2024, 6, 1),
        )
        first = await make_rule(
            db, plan, RuleType.SETTER_COMMISSION, CalcMethod.FLAT_FEE, "3",
            sort_order=1, created_at=datetime(2024, 1, 1),
        )

        rules = await PayPlanService(db).get_rules_for_pay_plan(plan.id)

        assert [r.id for r in rules] == [first.id, second.id, third.id]

    async def test_malformed_conditions_are_skipped(self, db, caplog):
        plan = await make_pay_plan(db)
        negative_floor = await make_rule(
            db, plan, RuleType.SETTER_COMMISSION, CalcMethod.FLAT_FEE, "1",
            conditions={"min_kw": -5}, sort_order=0,
        )
        unknown_tier = await make_rule(
            db, plan, RuleType.SETTER_COMMISSION, CalcMethod.FLAT_FEE, "2",
            conditions={"setter_tier": "rookie"}, sort_order=1,
        )
        valid = await make_rule(
            db, plan, RuleType.SETTER_COMMISSION, CalcMethod.FLAT_FEE, "3", sort_order=2,
        )

        with caplog.at_level("WARNING"):
            rules = await PayPlanService(db).get_rules_for_pay_plan(plan.id)

        assert [r.id for r in rules] == [valid.id]
        assert negative_floor.id in caplog.text
        assert unknown_tier.id in caplog.text

    async def test_override_rules_exact_level(self, db):
        plan = await make_pay_plan(db)
        level_one = await make_rule(
            db, plan, RuleType.OVERRIDE, CalcMethod.FLAT_PER_KW, "0.10",
            override_source=OverrideSource.REPORTS_TO, override_level=1,
        )
        await make_rule(
            db, plan, RuleType.OVERRIDE, CalcMethod.FLAT_PER_KW, "0.05",
            override_source=OverrideSource.REPORTS_TO, override_level=2,
        )
        await make_rule(
            db, plan, RuleType.OVERRIDE, CalcMethod.FLAT_PER_KW, "0.05",
            override_source=OverrideSource.RECRUITED_BY, override_level=1,
        )

        rules = await PayPlanService(db).get_override_rules(plan.id, OverrideSource.REPORTS_TO, 1)

        assert [r.id for r in rules] == [level_one.id]

    async def test_pay_plan_with_rules_includes_inactive(self, db):
        plan = await make_pay_plan(db)
        await make_rule(db, plan, RuleType.SETTER_COMMISSION, CalcMethod.FLAT_FEE, "1", sort_order=0)
        await make_rule(db, plan, RuleType.SETTER_COMMISSION, CalcMethod.FLAT_FEE, "2", sort_order=1, is_active=False)

        loaded_plan, rules = await PayPlanService(db).get_pay_plan_with_rules(plan.id)

        assert loaded_plan.id == plan.id
        assert len(rules) == 2

    async def test_missing_pay_plan(self, db):
        assert await PayPlanService(db).get_pay_plan_with_rules("nope") is None

    async def test_active_pay_plans(self, db):
        active = await make_pay_plan(db, "Active")
        await make_pay_plan(db, "Retired", is_active=False)

        plans = await PayPlanService(db).get_active_pay_plans()

        assert [p.id for p in plans] == [active.id]
