"""initial_schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000 UTC

Creates users and esg_responses.
One esg_responses row per (user_id, year); rows are removed with their user.
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), nullable=False, comment="UUID primary key — also the JWT subject"),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password", sa.String(255), nullable=False, comment="bcrypt hash"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "esg_responses",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False, comment="Financial year key, unique per user"),
        # Environmental
        sa.Column("total_electricity_consumption", sa.Float(), nullable=True, comment="kWh"),
        sa.Column("renewable_electricity_consumption", sa.Float(), nullable=True, comment="kWh"),
        sa.Column("total_fuel_consumption", sa.Float(), nullable=True, comment="liters"),
        sa.Column("carbon_emissions", sa.Float(), nullable=True, comment="T CO2e"),
        # Social
        sa.Column("total_employees", sa.Integer(), nullable=True),
        sa.Column("female_employees", sa.Integer(), nullable=True),
        sa.Column(
            "average_training_hours", sa.Float(), nullable=True,
            comment="hours per employee per year",
        ),
        sa.Column("community_investment", sa.Float(), nullable=True),
        # Governance
        sa.Column("independent_board_members", sa.Float(), nullable=True, comment="percent, 0-100"),
        sa.Column("has_data_privacy_policy", sa.Boolean(), nullable=True),
        sa.Column("total_revenue", sa.Float(), nullable=True),
        # Derived
        sa.Column("carbon_intensity", sa.Float(), nullable=True, comment="T CO2e per unit revenue"),
        sa.Column("renewable_electricity_ratio", sa.Float(), nullable=True, comment="percent"),
        sa.Column("diversity_ratio", sa.Float(), nullable=True, comment="percent"),
        sa.Column("community_spend_ratio", sa.Float(), nullable=True, comment="percent"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"],
            name="fk_esg_responses_user_id",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("user_id", "year", name="uq_esg_responses_user_id_year"),
    )
    op.create_index("ix_esg_responses_user_id", "esg_responses", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_esg_responses_user_id", table_name="esg_responses")
    op.drop_table("esg_responses")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
