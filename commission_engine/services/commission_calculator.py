"""Commission calculator: turns one deal into its full set of commission rows.

Flow for recalculate(deal_id):
    1. Lock the deal row and drop every commission previously written for it.
    2. Resolve the effective date (close date, else sale date, else today).
    3. Direct payout: self-gen, or setter and closer independently.
    4. Manager-chain overrides up the setter's reports_to lineage.
    5. Recruiter-chain overrides up the setter's recruited_by lineage.
    6. Office-hierarchy overrides for the deal office's AD/Regional/Divisional/VP.

Everything runs in one transaction, so a fatal error leaves the previous
commission set untouched.
"""

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Callable, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.core.config import Settings, get_settings
from commission_engine.core.exceptions import DealNotFoundError, PersonNotFoundError
from commission_engine.models.commission import (
    Commission,
    CommissionStatus,
    CommissionType,
    office_override_tag,
    override_tag,
)
from commission_engine.models.deal import Deal
from commission_engine.models.org_snapshot import OrgSnapshot
from commission_engine.models.organization import Person
from commission_engine.models.pay_plan import CommissionRule, OverrideSource, PayPlan, RuleType
from commission_engine.schemas.commission import CalcDetails, DealFacts, PayPlanRef, RuleSnapshot
from commission_engine.services.office_leadership import OfficeLeadershipService
from commission_engine.services.org_snapshot import OrgSnapshotService
from commission_engine.services.pay_plan import PayPlanService
from commission_engine.services.rule_evaluator import (
    RuleEvaluationContext,
    build_formula,
    calc_method_name,
    calculate_commission_amount,
    get_applicable_rules,
    has_known_calc_method,
    override_rule_matches,
)

logger = logging.getLogger(__name__)

# Which snapshot attribute leads to the next person up each chain
_CHAIN_LINKS = {
    OverrideSource.REPORTS_TO: "reports_to_id",
    OverrideSource.RECRUITED_BY: "recruited_by_id",
}


class CommissionCalculator:
    """Computes and writes the commissions for a deal."""

    def __init__(
        self,
        db: AsyncSession,
        settings: Optional[Settings] = None,
        today: Callable[[], date] = date.today,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.today = today
        self.pay_plans = PayPlanService(db)
        self.snapshots = OrgSnapshotService(db, self.pay_plans)
        self.leadership = OfficeLeadershipService(db)

    async def recalculate(self, deal_id: str) -> int:
        """
        Delete and regenerate every commission for a deal.

        Returns the number of commission rows written.

        Raises:
            DealNotFoundError: the deal does not exist
            PersonNotFoundError: the setter or closer does not exist
        """
        logger.info("Recalculating commissions for deal %s", deal_id)
        try:
            count = await self._recalculate(deal_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Recalculated deal %s: %d commission(s) written", deal_id, count)
        return count

    def effective_date(self, deal: Deal) -> date:
        return deal.close_date or deal.sale_date or self.today()

    async def _recalculate(self, deal_id: str) -> int:
        deal = await self._lock_deal(deal_id)
        if not deal:
            raise DealNotFoundError(deal_id)
        if not await self.db.get(Person, deal.setter_id):
            raise PersonNotFoundError(deal.setter_id, role="setter")
        if not await self.db.get(Person, deal.closer_id):
            raise PersonNotFoundError(deal.closer_id, role="closer")

        await self.db.execute(delete(Commission).where(Commission.deal_id == deal.id))

        snapshot_date = self.effective_date(deal)
        setter_snapshot = await self.snapshots.get_or_create_snapshot(deal.setter_id, snapshot_date)

        count = 0
        if deal.self_generated:
            count += await self._direct_commission(
                deal, setter_snapshot, snapshot_date,
                RuleType.SELF_GEN_COMMISSION, CommissionType.SELF_GEN,
                setter_tier=setter_snapshot.setter_tier,
            )
        else:
            count += await self._direct_commission(
                deal, setter_snapshot, snapshot_date,
                RuleType.SETTER_COMMISSION, CommissionType.SETTER,
                setter_tier=setter_snapshot.setter_tier,
            )
            closer_snapshot = await self.snapshots.get_or_create_snapshot(deal.closer_id, snapshot_date)
            # Closer rules are not tier-conditioned
            count += await self._direct_commission(
                deal, closer_snapshot, snapshot_date,
                RuleType.CLOSER_COMMISSION, CommissionType.CLOSER,
                setter_tier=None,
            )

        count += await self._chain_overrides(
            deal, setter_snapshot, snapshot_date,
            OverrideSource.REPORTS_TO, self.settings.manager_override_max_depth,
        )
        count += await self._chain_overrides(
            deal, setter_snapshot, snapshot_date,
            OverrideSource.RECRUITED_BY, self.settings.recruiter_override_max_depth,
        )
        count += await self._office_overrides(deal, setter_snapshot, snapshot_date)

        await self.db.flush()
        return count

    async def _lock_deal(self, deal_id: str) -> Optional[Deal]:
        """Load the deal FOR UPDATE; serializes recalculations of the same deal."""
        result = await self.db.execute(
            select(Deal)
            .where(Deal.id == deal_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    # =========================================================================
    # Direct Payouts
    # =========================================================================

    async def _direct_commission(
        self,
        deal: Deal,
        snapshot: OrgSnapshot,
        snapshot_date: date,
        rule_type: RuleType,
        commission_type: CommissionType,
        setter_tier: Optional[str],
    ) -> int:
        """Setter, closer or self-gen commission for the snapshot's person. Returns 0 or 1."""
        assignment = await self.pay_plans.get_person_current_pay_plan(snapshot.person_id, snapshot_date)
        if not assignment:
            logger.warning(
                "No pay plan for person %s on %s; skipping %s commission for deal %s",
                snapshot.person_id, snapshot_date.isoformat(), commission_type.value, deal.id,
            )
            return 0

        rules = await self.pay_plans.get_rules_for_pay_plan(assignment.pay_plan.id, rule_type)
        if not rules:
            logger.warning(
                "No %s rules found for pay plan %s", rule_type.value, assignment.pay_plan.id
            )
            return 0

        context = RuleEvaluationContext.from_deal(deal, setter_tier, snapshot.role_id)
        applicable = get_applicable_rules(rules, context)
        if not applicable:
            logger.warning(
                "No applicable %s rules for deal %s (pay plan %s)",
                rule_type.value, deal.id, assignment.pay_plan.id,
            )
            return 0

        return self._add_commission(
            deal=deal,
            payee_snapshot=snapshot,
            commission_type=commission_type.value,
            rule=applicable[0],
            pay_plan=assignment.pay_plan,
            context=context,
        )

    # =========================================================================
    # Overrides
    # =========================================================================

    async def _chain_overrides(
        self,
        deal: Deal,
        setter_snapshot: OrgSnapshot,
        snapshot_date: date,
        source: OverrideSource,
        max_depth: int,
    ) -> int:
        """
        Walk the setter's manager or recruiter chain, one override per level.

        A level without a pay plan or matching rule pays nothing but the walk
        continues through that person's own snapshot.
        """
        link = _CHAIN_LINKS[source]
        current_id: Optional[str] = getattr(setter_snapshot, link)
        level = 1
        count = 0

        while current_id and level <= max_depth:
            try:
                snapshot = await self.snapshots.get_or_create_snapshot(current_id, snapshot_date)
            except PersonNotFoundError:
                logger.warning(
                    "%s chain for deal %s references missing person %s at level %d; stopping",
                    source.value, deal.id, current_id, level,
                )
                break

            logger.debug("Deal %s: %s level %d is person %s", deal.id, source.value, level, current_id)
            count += await self._override_commission(
                deal, snapshot, snapshot_date,
                source=source,
                level=level,
                setter_tier=setter_snapshot.setter_tier,
                commission_type=override_tag(source.value, level),
            )

            current_id = getattr(snapshot, link)
            level += 1

        return count

    async def _office_overrides(
        self,
        deal: Deal,
        setter_snapshot: OrgSnapshot,
        snapshot_date: date,
    ) -> int:
        """One independent override per effective office leader."""
        leaders = await self.leadership.get_office_leaders(deal.office_id, snapshot_date)

        count = 0
        for leader in leaders:
            try:
                snapshot = await self.snapshots.get_or_create_snapshot(leader.person_id, snapshot_date)
            except PersonNotFoundError:
                logger.warning(
                    "Office %s %s assignment for deal %s references missing person %s; skipping",
                    deal.office_id, leader.role_type.value, deal.id, leader.person_id,
                )
                continue

            count += await self._override_commission(
                deal, snapshot, snapshot_date,
                source=OverrideSource.OFFICE_HIERARCHY,
                level=leader.override_level,
                setter_tier=setter_snapshot.setter_tier,
                commission_type=office_override_tag(leader.role_type.value),
            )
        return count

    async def _override_commission(
        self,
        deal: Deal,
        payee_snapshot: OrgSnapshot,
        snapshot_date: date,
        source: OverrideSource,
        level: int,
        setter_tier: Optional[str],
        commission_type: str,
    ) -> int:
        """
        Override for one payee at one level. Returns 0 or 1.

        Conditions are checked against the setter's tier and the deal; the
        role restriction against the payee's own role.
        """
        assignment = await self.pay_plans.get_person_current_pay_plan(payee_snapshot.person_id, snapshot_date)
        if not assignment:
            logger.warning(
                "No pay plan for person %s on %s; skipping %s for deal %s",
                payee_snapshot.person_id, snapshot_date.isoformat(), commission_type, deal.id,
            )
            return 0

        rules = await self.pay_plans.get_rules_for_pay_plan(assignment.pay_plan.id, RuleType.OVERRIDE)
        candidates = [rule for rule in rules if override_rule_matches(rule, source, level)]

        context = RuleEvaluationContext.from_deal(deal, setter_tier, payee_snapshot.role_id)
        applicable = get_applicable_rules(candidates, context)
        if not applicable:
            logger.warning(
                "No applicable %s override rules at level %d for person %s on deal %s",
                source.value, level, payee_snapshot.person_id, deal.id,
            )
            return 0

        return self._add_commission(
            deal=deal,
            payee_snapshot=payee_snapshot,
            commission_type=commission_type,
            rule=applicable[0],
            pay_plan=assignment.pay_plan,
            context=context,
            override_level=level,
        )

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def _add_commission(
        self,
        deal: Deal,
        payee_snapshot: OrgSnapshot,
        commission_type: str,
        rule: CommissionRule,
        pay_plan: PayPlan,
        context: RuleEvaluationContext,
        override_level: Optional[int] = None,
    ) -> int:
        """Stage one commission row. Returns 1, or 0 when the rule cannot be priced."""
        if not has_known_calc_method(rule):
            logger.warning(
                "Unknown calculation method %r on commission rule %s; skipping %s for deal %s",
                calc_method_name(rule), rule.id, commission_type, deal.id,
            )
            return 0

        amount = calculate_commission_amount(rule, context)
        details = self._build_calc_details(
            rule, deal, pay_plan, payee_snapshot, context, amount, override_level
        )

        commission = Commission(
            id=str(uuid.uuid4()),
            deal_id=deal.id,
            person_id=payee_snapshot.person_id,
            commission_type=commission_type,
            amount=amount,
            commission_rule_id=rule.id,
            pay_plan_id=pay_plan.id,
            calc_details=details.to_payload(),
            status=CommissionStatus.PENDING,
        )
        self.db.add(commission)

        logger.debug(
            "Deal %s: %s %s to person %s via rule %s",
            deal.id, commission_type, amount, payee_snapshot.person_id, rule.id,
        )
        return 1

    def _build_calc_details(
        self,
        rule: CommissionRule,
        deal: Deal,
        pay_plan: PayPlan,
        snapshot: OrgSnapshot,
        context: RuleEvaluationContext,
        amount: Decimal,
        override_level: Optional[int],
    ) -> CalcDetails:
        """Audit payload; every field is derivable from the referenced rows."""
        return CalcDetails(
            formula=build_formula(rule, context),
            result=amount,
            pay_plan=PayPlanRef(id=pay_plan.id, name=pay_plan.name),
            commission_rule=RuleSnapshot(
                id=rule.id,
                name=rule.name,
                rule_type=RuleType(rule.rule_type).value,
                calc_method=calc_method_name(rule),
                amount=rule.amount,
            ),
            org_snapshot_id=snapshot.id,
            setter_tier=context.setter_tier,
            deal=DealFacts(
                id=deal.id,
                deal_type=deal.deal_type,
                deal_value=deal.deal_value,
                system_size_kw=deal.system_size_kw,
                ppw=deal.ppw,
            ),
            override_level=override_level,
        )


async def recalculate_deal(deal_id: str, today: Callable[[], date] = date.today) -> int:
    """Recalculate a deal's commissions in a session of its own."""
    from commission_engine.core.db import AsyncSessionFactory

    async with AsyncSessionFactory() as session:
        return await CommissionCalculator(session, today=today).recalculate(deal_id)
