"""Pay plan and commission rule repository."""

import logging
import uuid
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.core.exceptions import InvalidPayPlanAssignmentError, InvalidRuleConditionsError
from commission_engine.models.pay_plan import (
    CommissionRule,
    OverrideSource,
    PayPlan,
    PersonPayPlan,
    RuleType,
)
from commission_engine.services.rule_evaluator import parse_rule_conditions

logger = logging.getLogger(__name__)


@dataclass
class PayPlanAssignment:
    """The pay plan a person is on, and since when."""
    pay_plan: PayPlan
    effective_date: date
    end_date: Optional[date] = None
    notes: Optional[str] = None


class PayPlanService:
    """Reads pay plans, their rules, and person-to-plan assignments."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # Commission Rules
    # =========================================================================

    async def get_rules_for_pay_plan(
        self,
        pay_plan_id: str,
        rule_type: Optional[RuleType] = None,
    ) -> List[CommissionRule]:
        """
        Active commission rules for a pay plan, optionally of one rule type.

        Ordered by (sort_order, created_at) since rule selection is first-match.
        Conditions are validated here; a rule whose conditions do not
        validate is logged and left out, since it can never apply.
        """
        query = select(CommissionRule).where(
            and_(
                CommissionRule.pay_plan_id == pay_plan_id,
                CommissionRule.is_active == True,  # noqa: E712
            )
        )
        if rule_type:
            query = query.where(CommissionRule.rule_type == rule_type)

        query = query.order_by(
            CommissionRule.sort_order,
            CommissionRule.created_at,
            CommissionRule.id,
        )
        result = await self.db.execute(query)
        rules = []
        for rule in result.scalars().all():
            try:
                parse_rule_conditions(rule)
            except InvalidRuleConditionsError as e:
                logger.warning(
                    "Skipping commission rule %s on pay plan %s: %s", rule.id, pay_plan_id, e.detail
                )
                continue
            rules.append(rule)

        return rules

    async def get_override_rules(
        self,
        pay_plan_id: str,
        override_source: OverrideSource,
        override_level: int,
    ) -> List[CommissionRule]:
        """Active override rules for an exact source and level."""
        result = await self.db.execute(
            select(CommissionRule)
            .where(
                and_(
                    CommissionRule.pay_plan_id == pay_plan_id,
                    CommissionRule.rule_type == RuleType.OVERRIDE,
                    CommissionRule.override_source == override_source,
                    CommissionRule.override_level == override_level,
                    CommissionRule.is_active == True,  # noqa: E712
                )
            )
            .order_by(CommissionRule.sort_order, CommissionRule.created_at, CommissionRule.id)
        )
        return list(result.scalars().all())

    # =========================================================================
    # Pay Plans
    # =========================================================================

    async def get_pay_plan_with_rules(
        self,
        pay_plan_id: str,
    ) -> Optional[Tuple[PayPlan, List[CommissionRule]]]:
        """A pay plan and all of its rules, inactive ones included."""
        plan_result = await self.db.execute(
            select(PayPlan).where(PayPlan.id == pay_plan_id)
        )
        pay_plan = plan_result.scalar_one_or_none()
        if not pay_plan:
            return None

        rules_result = await self.db.execute(
            select(CommissionRule)
            .where(CommissionRule.pay_plan_id == pay_plan_id)
            .order_by(CommissionRule.sort_order, CommissionRule.created_at, CommissionRule.id)
        )
        return pay_plan, list(rules_result.scalars().all())

    async def get_active_pay_plans(self) -> List[PayPlan]:
        result = await self.db.execute(
            select(PayPlan)
            .where(PayPlan.is_active == True)  # noqa: E712
            .order_by(PayPlan.name)
        )
        return list(result.scalars().all())

    # =========================================================================
    # Person Assignments
    # =========================================================================

    async def get_person_current_pay_plan(
        self,
        person_id: str,
        as_of: Optional[date] = None,
    ) -> Optional[PayPlanAssignment]:
        """
        The pay plan a person is on as of a date.

        With a date, returns the assignment whose inclusive range contains it;
        without one, the open-ended assignment. None is a normal outcome.
        """
        query = (
            select(PersonPayPlan, PayPlan)
            .join(PayPlan, PersonPayPlan.pay_plan_id == PayPlan.id)
            .where(PersonPayPlan.person_id == person_id)
        )

        if as_of:
            query = query.where(
                and_(
                    PersonPayPlan.effective_date <= as_of,
                    or_(PersonPayPlan.end_date.is_(None), PersonPayPlan.end_date >= as_of),
                )
            )
        else:
            query = query.where(PersonPayPlan.end_date.is_(None))

        # Latest assignment wins if ranges ever touch on a boundary day
        query = query.order_by(PersonPayPlan.effective_date.desc()).limit(1)

        result = await self.db.execute(query)
        row = result.first()
        if not row:
            return None

        assignment, pay_plan = row
        return PayPlanAssignment(
            pay_plan=pay_plan,
            effective_date=assignment.effective_date,
            end_date=assignment.end_date,
            notes=assignment.notes,
        )

    async def assign_pay_plan_to_person(
        self,
        person_id: str,
        pay_plan_id: str,
        effective_date: date,
        notes: Optional[str] = None,
    ) -> PersonPayPlan:
        """
        Put a person on a new pay plan from effective_date onward.

        The open assignment is ended the day before, so exactly one plan is
        current on any date.

        Raises:
            InvalidPayPlanAssignmentError: effective_date is not after the
                open assignment's start
        """
        result = await self.db.execute(
            select(func.max(PersonPayPlan.effective_date)).where(
                and_(
                    PersonPayPlan.person_id == person_id,
                    PersonPayPlan.end_date.is_(None),
                )
            )
        )
        current_start = result.scalar_one_or_none()
        if current_start is not None and effective_date <= current_start:
            raise InvalidPayPlanAssignmentError(person_id, effective_date, current_start)

        await self.db.execute(
            update(PersonPayPlan)
            .where(
                and_(
                    PersonPayPlan.person_id == person_id,
                    PersonPayPlan.end_date.is_(None),
                )
            )
            .values(end_date=effective_date - timedelta(days=1))
        )

        assignment = PersonPayPlan(
            id=str(uuid.uuid4()),
            person_id=person_id,
            pay_plan_id=pay_plan_id,
            effective_date=effective_date,
            notes=notes,
        )
        self.db.add(assignment)
        await self.db.commit()

        logger.info(
            "Assigned pay plan %s to person %s effective %s",
            pay_plan_id, person_id, effective_date.isoformat(),
        )
        return assignment
