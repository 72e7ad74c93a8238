"""Create the plan catalog and seed the default price brackets."""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "001_create_plan_catalog"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "plans",
        sa.Column("id", sa.String(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("audience", sa.String(), nullable=False),
        sa.Column(
            "min_specialists", sa.Integer(), nullable=False, server_default=sa.text("0")
        ),
        sa.Column(
            "max_specialists", sa.Integer(), nullable=False, server_default=sa.text("0")
        ),
        sa.Column(
            "monthly_price", sa.Float(), nullable=False, server_default=sa.text("0")
        ),
        sa.Column("quarterly_price", sa.Float(), nullable=True),
        sa.Column("annual_price", sa.Float(), nullable=True),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column(
            "is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")
        ),
    )
    op.create_index("ix_plans_audience", "plans", ["audience"])

    plan_table = sa.table(
        "plans",
        sa.column("id", sa.String()),
        sa.column("name", sa.String()),
        sa.column("audience", sa.String()),
        sa.column("min_specialists", sa.Integer()),
        sa.column("max_specialists", sa.Integer()),
        sa.column("monthly_price", sa.Float()),
        sa.column("annual_price", sa.Float()),
        sa.column("description", sa.String()),
        sa.column("is_active", sa.Boolean()),
    )

    def _plan(slug, name, audience, low, high, monthly, annual=None, description=None):
        return {
            "id": slug,
            "name": name,
            "audience": audience,
            "min_specialists": low,
            "max_specialists": high,
            "monthly_price": monthly,
            "annual_price": annual,
            "description": description,
            "is_active": True,
        }

    op.bulk_insert(
        plan_table,
        [
            _plan("medico", "Plan Médico - Usuario individual", "physician", 1, 1, 70.00),
            _plan("enfermero", "Plan Enfermería - Usuario individual", "nurse", 1, 1, 20.00),
            _plan("paciente-gratis", "Plan Gratuito", "patient", 0, 0, 0.00, 0.00),
            _plan("paciente-individual", "Paciente - Individual", "patient", 0, 0, 0.00, 12.99),
            _plan("paciente-family", "Paciente - Plan Familiar", "patient", 0, 0, 0.00, 29.99),
            _plan("starter", "Starter", "organization", 1, 10, 56.00, None, "Grupos pequeños"),
            _plan("clinica", "Clínica", "organization", 11, 30, 49.00, None, "Centros medianos"),
            _plan("pro", "Pro", "organization", 31, 80, 42.00, None, "Clínicas tipo B"),
            _plan("enterprise", "Enterprise", "organization", 81, 199, 35.00, None, "Grandes instituciones"),
        ],
    )


def downgrade() -> None:
    op.drop_index("ix_plans_audience", table_name="plans")
    op.drop_table("plans")
