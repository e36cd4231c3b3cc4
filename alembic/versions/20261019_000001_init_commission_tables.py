"""Initial commission engine tables

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261019_000001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


setter_tier_enum = sa.Enum("Rookie", "Veteran", "Team Lead", name="settertier")
person_status_enum = sa.Enum("onboarding", "active", "inactive", "terminated", name="personstatus")
leadership_role_enum = sa.Enum("ad", "regional", "divisional", "vp", name="leadershiprole")
rule_type_enum = sa.Enum(
    "setter_commission",
    "closer_commission",
    "self_gen_commission",
    "override",
    "recruiting_bonus",
    "draw",
    name="ruletype",
)
override_source_enum = sa.Enum("reports_to", "recruited_by", "office_hierarchy", name="overridesource")
commission_status_enum = sa.Enum("pending", "approved", "paid", "held", "void", name="commissionstatus")


def _timestamps(with_updated: bool = True):
    columns = [sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now())]
    if with_updated:
        columns.append(
            sa.Column(
                "updated_at",
                sa.DateTime(),
                nullable=False,
                server_default=sa.func.now(),
                onupdate=sa.func.now(),
            )
        )
    return columns


def upgrade() -> None:
    op.create_table(
        "role",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("level", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )

    op.create_table(
        "division",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )

    op.create_table(
        "region",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )

    op.create_table(
        "office",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("region_id", sa.String(), sa.ForeignKey("region.id"), nullable=True),
        sa.Column("division_id", sa.String(), sa.ForeignKey("division.id"), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )
    op.create_index("ix_office_region_id", "office", ["region_id"])
    op.create_index("ix_office_division_id", "office", ["division_id"])

    op.create_table(
        "person",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("role_id", sa.String(), sa.ForeignKey("role.id"), nullable=True),
        sa.Column("status", person_status_enum, nullable=False, server_default="active"),
        sa.Column("office_id", sa.String(), sa.ForeignKey("office.id"), nullable=True),
        sa.Column("reports_to_id", sa.String(), sa.ForeignKey("person.id"), nullable=True),
        sa.Column("recruited_by_id", sa.String(), sa.ForeignKey("person.id"), nullable=True),
        sa.Column("setter_tier", setter_tier_enum, nullable=True),
        sa.Column("hire_date", sa.Date(), nullable=True),
        sa.Column("termination_date", sa.Date(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_person_email", "person", ["email"], unique=True)
    op.create_index("ix_person_role_id", "person", ["role_id"])
    op.create_index("ix_person_status", "person", ["status"])
    op.create_index("ix_person_office_id", "person", ["office_id"])
    op.create_index("ix_person_reports_to_id", "person", ["reports_to_id"])
    op.create_index("ix_person_recruited_by_id", "person", ["recruited_by_id"])

    op.create_table(
        "team",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("office_id", sa.String(), sa.ForeignKey("office.id"), nullable=True),
        sa.Column("team_lead_id", sa.String(), sa.ForeignKey("person.id"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )
    op.create_index("ix_team_office_id", "team", ["office_id"])
    op.create_index("ix_team_team_lead_id", "team", ["team_lead_id"])

    op.create_table(
        "person_team",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("person_id", sa.String(), sa.ForeignKey("person.id"), nullable=False),
        sa.Column("team_id", sa.String(), sa.ForeignKey("team.id"), nullable=False),
        sa.Column("role_in_team", sa.String(length=50), nullable=False, server_default="member"),
        sa.Column("effective_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        *_timestamps(with_updated=False),
    )
    op.create_index("ix_person_team_person_id", "person_team", ["person_id"])
    op.create_index("ix_person_team_team_id", "person_team", ["team_id"])

    op.create_table(
        "pay_plan",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )
    op.create_index("ix_pay_plan_name", "pay_plan", ["name"])

    op.create_table(
        "person_pay_plan",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("person_id", sa.String(), sa.ForeignKey("person.id"), nullable=False),
        sa.Column("pay_plan_id", sa.String(), sa.ForeignKey("pay_plan.id"), nullable=False),
        sa.Column("effective_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(with_updated=False),
    )
    op.create_index("ix_person_pay_plan_person_id", "person_pay_plan", ["person_id"])
    op.create_index("ix_person_pay_plan_pay_plan_id", "person_pay_plan", ["pay_plan_id"])

    op.create_table(
        "commission_rule",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("pay_plan_id", sa.String(), sa.ForeignKey("pay_plan.id"), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=True),
        sa.Column("rule_type", rule_type_enum, nullable=False),
        sa.Column("calc_method", sa.String(length=50), nullable=False),
        sa.Column("amount", sa.Numeric(10, 4), nullable=False),
        sa.Column("applies_to_role_id", sa.String(), sa.ForeignKey("role.id"), nullable=True),
        sa.Column("override_source", override_source_enum, nullable=True),
        sa.Column("override_level", sa.Integer(), nullable=True),
        sa.Column("conditions", sa.JSON(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_commission_rule_pay_plan_id", "commission_rule", ["pay_plan_id"])
    op.create_index("ix_commission_rule_rule_type", "commission_rule", ["rule_type"])
    op.create_index("ix_commission_rule_is_active", "commission_rule", ["is_active"])

    op.create_table(
        "deal",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("external_id", sa.String(length=100), nullable=True, unique=True),
        sa.Column("setter_id", sa.String(), sa.ForeignKey("person.id"), nullable=False),
        sa.Column("closer_id", sa.String(), sa.ForeignKey("person.id"), nullable=False),
        sa.Column("is_self_gen", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("office_id", sa.String(), sa.ForeignKey("office.id"), nullable=True),
        sa.Column("customer_name", sa.String(length=200), nullable=True),
        sa.Column("customer_address", sa.Text(), nullable=True),
        sa.Column("deal_type", sa.String(length=50), nullable=False),
        sa.Column("system_size_kw", sa.Numeric(10, 3), nullable=True),
        sa.Column("ppw", sa.Numeric(10, 4), nullable=True),
        sa.Column("deal_value", sa.Numeric(12, 2), nullable=False),
        sa.Column("sale_date", sa.Date(), nullable=True),
        sa.Column("close_date", sa.Date(), nullable=True),
        sa.Column("install_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(length=50), nullable=False, server_default="sold"),
        sa.Column("metadata", sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_deal_setter_id", "deal", ["setter_id"])
    op.create_index("ix_deal_closer_id", "deal", ["closer_id"])
    op.create_index("ix_deal_is_self_gen", "deal", ["is_self_gen"])
    op.create_index("ix_deal_office_id", "deal", ["office_id"])
    op.create_index("ix_deal_deal_type", "deal", ["deal_type"])
    op.create_index("ix_deal_close_date", "deal", ["close_date"])
    op.create_index("ix_deal_status", "deal", ["status"])

    op.create_table(
        "org_snapshot",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("person_id", sa.String(), sa.ForeignKey("person.id"), nullable=False),
        sa.Column("snapshot_date", sa.Date(), nullable=False),
        sa.Column("role_id", sa.String(), sa.ForeignKey("role.id"), nullable=True),
        sa.Column("role_name", sa.String(length=100), nullable=True),
        sa.Column("office_id", sa.String(), sa.ForeignKey("office.id"), nullable=True),
        sa.Column("office_name", sa.String(length=100), nullable=True),
        sa.Column("reports_to_id", sa.String(), sa.ForeignKey("person.id"), nullable=True),
        sa.Column("reports_to_name", sa.String(length=200), nullable=True),
        sa.Column("recruited_by_id", sa.String(), sa.ForeignKey("person.id"), nullable=True),
        sa.Column("recruited_by_name", sa.String(length=200), nullable=True),
        sa.Column("pay_plan_id", sa.String(), sa.ForeignKey("pay_plan.id"), nullable=True),
        sa.Column("pay_plan_name", sa.String(length=100), nullable=True),
        sa.Column("setter_tier", sa.String(length=50), nullable=True),
        sa.Column("team_ids", sa.JSON(), nullable=True),
        sa.Column("team_names", sa.JSON(), nullable=True),
        *_timestamps(with_updated=False),
        sa.UniqueConstraint("person_id", "snapshot_date", name="uq_org_snapshot_person_date"),
    )
    op.create_index("ix_org_snapshot_person_id", "org_snapshot", ["person_id"])
    op.create_index("ix_org_snapshot_snapshot_date", "org_snapshot", ["snapshot_date"])

    op.create_table(
        "office_leadership",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("office_id", sa.String(), sa.ForeignKey("office.id"), nullable=True),
        sa.Column("region_id", sa.String(), sa.ForeignKey("region.id"), nullable=True),
        sa.Column("division_id", sa.String(), sa.ForeignKey("division.id"), nullable=True),
        sa.Column("role_type", leadership_role_enum, nullable=False),
        sa.Column(
            "person_id",
            sa.String(),
            sa.ForeignKey("person.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("effective_from", sa.Date(), nullable=False),
        sa.Column("effective_to", sa.Date(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_office_leadership_office_id", "office_leadership", ["office_id"])
    op.create_index("ix_office_leadership_region_id", "office_leadership", ["region_id"])
    op.create_index("ix_office_leadership_division_id", "office_leadership", ["division_id"])
    op.create_index("ix_office_leadership_role_type", "office_leadership", ["role_type"])
    op.create_index("ix_office_leadership_person_id", "office_leadership", ["person_id"])

    op.create_table(
        "commission",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("deal_id", sa.String(), sa.ForeignKey("deal.id"), nullable=False),
        sa.Column("person_id", sa.String(), sa.ForeignKey("person.id"), nullable=False),
        sa.Column("commission_type", sa.String(length=50), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("commission_rule_id", sa.String(), sa.ForeignKey("commission_rule.id"), nullable=True),
        sa.Column("pay_plan_id", sa.String(), sa.ForeignKey("pay_plan.id"), nullable=True),
        sa.Column("calc_details", sa.JSON(), nullable=False),
        sa.Column("status", commission_status_enum, nullable=False, server_default="pending"),
        sa.Column("status_reason", sa.Text(), nullable=True),
        sa.Column("pay_period_date", sa.Date(), nullable=True),
        sa.Column("paid_at", sa.DateTime(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_commission_deal_id", "commission", ["deal_id"])
    op.create_index("ix_commission_person_id", "commission", ["person_id"])
    op.create_index("ix_commission_commission_type", "commission", ["commission_type"])
    op.create_index("ix_commission_status", "commission", ["status"])
    op.create_index("ix_commission_pay_period_date", "commission", ["pay_period_date"])


def downgrade() -> None:
    op.drop_table("commission")
    op.drop_table("office_leadership")
    op.drop_table("org_snapshot")
    op.drop_table("deal")
    op.drop_table("commission_rule")
    op.drop_table("person_pay_plan")
    op.drop_table("pay_plan")
    op.drop_table("person_team")
    op.drop_table("team")
    op.drop_table("person")
    op.drop_table("office")
    op.drop_table("region")
    op.drop_table("division")
    op.drop_table("role")

    bind = op.get_bind()
    for enum_type in (
        commission_status_enum,
        override_source_enum,
        rule_type_enum,
        leadership_role_enum,
        person_status_enum,
        setter_tier_enum,
    ):
        enum_type.drop(bind, checkfirst=True)
