"""Shared fixtures: a throwaway SQLite database per test plus row factories."""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

import commission_engine.models  # noqa: F401
from commission_engine.core.config import Settings
from commission_engine.models import (
    CommissionRule,
    Deal,
    Division,
    Office,
    OfficeLeadership,
    PayPlan,
    Person,
    PersonPayPlan,
    PersonTeam,
    Region,
    Role,
    Team,
)
from commission_engine.models.base import Base


def _id() -> str:
    return str(uuid.uuid4())


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'commissions.db'}")

    # pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy emit BEGIN
    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def settings():
    return Settings(_env_file=None)


# ============================================================================
# Factories
# ============================================================================

async def make_role(db, name: str = "Setter", level: int = 1) -> Role:
    role = Role(id=_id(), name=name, level=level)
    db.add(role)
    await db.flush()
    return role


async def make_office(
    db,
    name: str = "Phoenix",
    region: Optional[Region] = None,
    division: Optional[Division] = None,
) -> Office:
    office = Office(
        id=_id(),
        name=name,
        region_id=region.id if region else None,
        division_id=division.id if division else None,
    )
    db.add(office)
    await db.flush()
    return office


async def make_region(db, name: str = "Southwest") -> Region:
    region = Region(id=_id(), name=name)
    db.add(region)
    await db.flush()
    return region


async def make_division(db, name: str = "Solar") -> Division:
    division = Division(id=_id(), name=name)
    db.add(division)
    await db.flush()
    return division


async def make_person(
    db,
    first_name: str = "Pat",
    last_name: Optional[str] = None,
    role: Optional[Role] = None,
    office: Optional[Office] = None,
    reports_to: Optional[Person] = None,
    recruited_by: Optional[Person] = None,
    setter_tier: Optional[str] = None,
) -> Person:
    person_id = _id()
    person = Person(
        id=person_id,
        first_name=first_name,
        last_name=last_name or person_id[:8],
        email=f"{person_id}@example.com",
        role_id=role.id if role else None,
        office_id=office.id if office else None,
        reports_to_id=reports_to.id if reports_to else None,
        recruited_by_id=recruited_by.id if recruited_by else None,
        setter_tier=setter_tier,
    )
    db.add(person)
    await db.flush()
    return person


async def make_team(db, name: str = "Closers", office: Optional[Office] = None) -> Team:
    team = Team(id=_id(), name=name, office_id=office.id if office else None)
    db.add(team)
    await db.flush()
    return team


async def add_to_team(
    db,
    person: Person,
    team: Team,
    effective_date: date,
    end_date: Optional[date] = None,
) -> PersonTeam:
    membership = PersonTeam(
        id=_id(),
        person_id=person.id,
        team_id=team.id,
        effective_date=effective_date,
        end_date=end_date,
    )
    db.add(membership)
    await db.flush()
    return membership


async def make_pay_plan(db, name: str = "Standard", is_active: bool = True) -> PayPlan:
    plan = PayPlan(id=_id(), name=name, is_active=is_active)
    db.add(plan)
    await db.flush()
    return plan


async def make_rule(
    db,
    pay_plan: PayPlan,
    rule_type,
    calc_method,
    amount,
    name: Optional[str] = None,
    conditions: Optional[dict] = None,
    applies_to_role: Optional[Role] = None,
    override_source=None,
    override_level: Optional[int] = None,
    sort_order: int = 0,
    is_active: bool = True,
    created_at: Optional[datetime] = None,
) -> CommissionRule:
    rule = CommissionRule(
        id=_id(),
        pay_plan_id=pay_plan.id,
        name=name,
        rule_type=rule_type,
        calc_method=getattr(calc_method, "value", calc_method),
        amount=Decimal(str(amount)),
        conditions=conditions or {},
        applies_to_role_id=applies_to_role.id if applies_to_role else None,
        override_source=override_source,
        override_level=override_level,
        sort_order=sort_order,
        is_active=is_active,
    )
    if created_at is not None:
        rule.created_at = created_at
    db.add(rule)
    await db.flush()
    return rule


async def assign_plan(
    db,
    person: Person,
    pay_plan: PayPlan,
    effective_date: date = date(2024, 1, 1),
    end_date: Optional[date] = None,
) -> PersonPayPlan:
    assignment = PersonPayPlan(
        id=_id(),
        person_id=person.id,
        pay_plan_id=pay_plan.id,
        effective_date=effective_date,
        end_date=end_date,
    )
    db.add(assignment)
    await db.flush()
    return assignment


async def make_deal(
    db,
    setter: Person,
    closer: Person,
    office: Optional[Office] = None,
    deal_type: str = "solar",
    system_size_kw="9.8",
    ppw="2.55",
    deal_value="25000",
    sale_date: Optional[date] = date(2025, 3, 10),
    close_date: Optional[date] = date(2025, 3, 15),
    is_self_gen: bool = False,
) -> Deal:
    deal = Deal(
        id=_id(),
        setter_id=setter.id,
        closer_id=closer.id,
        office_id=office.id if office else None,
        is_self_gen=is_self_gen,
        deal_type=deal_type,
        system_size_kw=Decimal(system_size_kw) if system_size_kw is not None else None,
        ppw=Decimal(ppw) if ppw is not None else None,
        deal_value=Decimal(deal_value),
        sale_date=sale_date,
        close_date=close_date,
    )
    db.add(deal)
    await db.flush()
    return deal


async def make_leader(
    db,
    person: Person,
    role_type,
    effective_from: date = date(2024, 1, 1),
    effective_to: Optional[date] = None,
    office: Optional[Office] = None,
    region: Optional[Region] = None,
    division: Optional[Division] = None,
) -> OfficeLeadership:
    assignment = OfficeLeadership(
        id=_id(),
        person_id=person.id,
        role_type=role_type,
        office_id=office.id if office else None,
        region_id=region.id if region else None,
        division_id=division.id if division else None,
        effective_from=effective_from,
        effective_to=effective_to,
    )
    db.add(assignment)
    await db.flush()
    return assignment
