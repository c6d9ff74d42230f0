"""Initial schema - tenants, stores, forms, responses, tasks, task audit logs.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_json = sa.JSON().with_variant(JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "tenants",
        sa.Column("tenant_id", sa.String(36), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("owner_email", sa.String(255), nullable=False),
        sa.Column("owner_phone", sa.String(32), nullable=False),
        sa.Column("webhook_url", sa.Text(), nullable=True),
        sa.Column("alert_threshold", sa.Integer(), nullable=False, server_default="5"),
        sa.Column("require_resolution_note", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("require_resolution_proof", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("allow_reassignment", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("api_key_hash", sa.String(255), unique=True, nullable=False),
        sa.Column("created_at", sa.String(50), nullable=True),
    )

    op.create_table(
        "stores",
        sa.Column("store_id", sa.String(36), primary_key=True),
        sa.Column("tenant_id", sa.String(36), sa.ForeignKey("tenants.tenant_id"), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("manager_email", sa.String(255), nullable=True),
        sa.Column("manager_phone", sa.String(32), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_stores_tenant_id", "stores", ["tenant_id"])

    op.create_table(
        "forms",
        sa.Column("form_id", sa.String(36), primary_key=True),
        sa.Column("tenant_id", sa.String(36), sa.ForeignKey("tenants.tenant_id"), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("fields", _json, nullable=False),
    )
    op.create_index("ix_forms_tenant_id", "forms", ["tenant_id"])

    op.create_table(
        "responses",
        sa.Column("response_id", sa.String(36), primary_key=True),
        sa.Column("tenant_id", sa.String(36), sa.ForeignKey("tenants.tenant_id"), nullable=False),
        sa.Column("form_id", sa.String(36), sa.ForeignKey("forms.form_id"), nullable=False),
        sa.Column("answers", _json, nullable=False),
        sa.Column("nps_score", sa.Integer(), nullable=True),
        sa.Column("csat_score", sa.Integer(), nullable=True),
        sa.Column("customer_phone", sa.String(32), nullable=True),
        sa.Column("order_id", sa.Text(), nullable=True),
        sa.Column("store_id", sa.String(36), nullable=True),
        sa.Column("source", sa.String(20), nullable=False),
        sa.Column("submitted_at", sa.TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index("ix_responses_tenant_id", "responses", ["tenant_id"])
    op.create_index("ix_responses_submitted_at", "responses", ["submitted_at"])

    op.create_table(
        "tasks",
        sa.Column("task_id", sa.String(36), primary_key=True),
        sa.Column("tenant_id", sa.String(36), sa.ForeignKey("tenants.tenant_id"), nullable=False),
        sa.Column("location_id", sa.String(36), sa.ForeignKey("stores.store_id"), nullable=True),
        sa.Column(
            "response_id",
            sa.String(36),
            sa.ForeignKey("responses.response_id"),
            nullable=False,
            unique=True,
        ),
        sa.Column("status", sa.String(20), nullable=False, server_default="OPEN"),
        sa.Column("priority", sa.String(10), nullable=False, server_default="MEDIUM"),
        sa.Column("assigned_to", sa.String(255), nullable=True),
        sa.Column("resolution_note", sa.Text(), nullable=True),
        sa.Column("resolution_proof_url", sa.Text(), nullable=True),
        sa.Column("due_date", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("sla_breach_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index("ix_tasks_tenant_id", "tasks", ["tenant_id"])
    op.create_index("ix_tasks_location_id", "tasks", ["location_id"])
    op.create_index("ix_tasks_status", "tasks", ["status"])
    op.create_index("ix_tasks_tenant_status", "tasks", ["tenant_id", "status"])
    op.create_index("ix_tasks_assigned_status", "tasks", ["assigned_to", "status"])

    op.create_table(
        "task_history",
        sa.Column("entry_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("task_id", sa.String(36), sa.ForeignKey("tasks.task_id"), nullable=False),
        sa.Column("action", sa.String(20), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("timestamp", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("actor", sa.String(255), nullable=False),
    )
    op.create_index("ix_task_history_task_id", "task_history", ["task_id"])

    op.create_table(
        "task_assignments",
        sa.Column("entry_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("task_id", sa.String(36), sa.ForeignKey("tasks.task_id"), nullable=False),
        sa.Column("assigned_to", sa.String(255), nullable=False),
        sa.Column("assigned_by", sa.String(255), nullable=False),
        sa.Column("assigned_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
    )
    op.create_index("ix_task_assignments_task_id", "task_assignments", ["task_id"])


def downgrade() -> None:
    op.drop_table("task_assignments")
    op.drop_table("task_history")
    op.drop_table("tasks")
    op.drop_table("responses")
    op.drop_table("forms")
    op.drop_table("stores")
    op.drop_table("tenants")
