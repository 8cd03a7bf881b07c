"""purchases and monthly budgets

Revision ID: 202610010900
Revises:
Create Date: 2026-10-01 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


revision = "202610010900"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "purchases",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("occurred_at", sa.DateTime(), nullable=False),
        sa.Column("note", sa.Text()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("amount_cents > 0", name="ck_purchases_amount_positive"),
    )
    op.create_index("ix_purchases_occurred_at", "purchases", ["occurred_at"])
    op.create_index(
        "ix_purchases_category_occurred_at",
        "purchases",
        ["category", "occurred_at"],
    )

    op.create_table(
        "monthly_budgets",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "amount_cents >= 0", name="ck_monthly_budgets_amount_non_negative"
        ),
        sa.CheckConstraint("month BETWEEN 1 AND 12", name="ck_monthly_budgets_month"),
        sa.UniqueConstraint(
            "category", "year", "month", name="uq_monthly_budget_category_month"
        ),
    )
    op.create_index(
        "ix_monthly_budgets_year_month", "monthly_budgets", ["year", "month"]
    )


def downgrade():
    op.drop_index("ix_monthly_budgets_year_month", table_name="monthly_budgets")
    op.drop_table("monthly_budgets")
    op.drop_index("ix_purchases_category_occurred_at", table_name="purchases")
    op.drop_index("ix_purchases_occurred_at", table_name="purchases")
    op.drop_table("purchases")
