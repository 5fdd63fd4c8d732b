"""Initial schema — demand_predictions, network_optimizations.

Revision ID: 0001
Revises:
Create Date: 2026-03-01 00:00:00
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── 1. demand_predictions ─────────────────────────────────────────────────
    op.create_table(
        "demand_predictions",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("run_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("prediction_timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("predicted_demand", sa.Float, nullable=False),
        sa.Column("confidence_lower", sa.Float, nullable=False),
        sa.Column("confidence_upper", sa.Float, nullable=False),
        sa.Column("model_name", sa.String(100), nullable=False),
        sa.Column("model_version", sa.String(20), nullable=False),
        sa.Column("actual_demand", sa.Float, nullable=True),
        sa.Column("accuracy", sa.Float, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_demand_predictions"),
    )
    op.create_index(
        "ix_demand_predictions_run_id", "demand_predictions", ["run_id"]
    )
    op.create_index(
        "ix_demand_predictions_prediction_timestamp",
        "demand_predictions",
        ["prediction_timestamp"],
    )

    # ── 2. network_optimizations ──────────────────────────────────────────────
    op.create_table(
        "network_optimizations",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "optimization_type",
            sa.Enum("power_flow", "topology", "voltage", name="optimizationtype"),
            nullable=False,
        ),
        sa.Column("input_parameters", postgresql.JSON, nullable=False),
        sa.Column("output_results", postgresql.JSON, nullable=False),
        sa.Column("recommendation_count", sa.Integer, nullable=False),
        sa.Column("savings_estimated", sa.Integer, nullable=False),
        sa.Column("execution_time_ms", sa.Float, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_network_optimizations"),
    )


def downgrade() -> None:
    op.drop_table("network_optimizations")
    op.drop_index("ix_demand_predictions_prediction_timestamp", table_name="demand_predictions")
    op.drop_index("ix_demand_predictions_run_id", table_name="demand_predictions")
    op.drop_table("demand_predictions")
    sa.Enum(name="optimizationtype").drop(op.get_bind(), checkfirst=True)
