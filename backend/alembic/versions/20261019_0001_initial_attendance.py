"""initial: businesses, users, attendance_policies, work_schedules, attendances

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- businesses ---
    op.create_table(
        "businesses",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("business_id", sa.Uuid(), nullable=True),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column(
            "role",
            sa.Enum("admin", "manager", "employee", name="user_role"),
            nullable=False,
            server_default="employee",
        ),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
    )

    # --- attendance_policies ---
    op.create_table(
        "attendance_policies",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("business_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("shift_start", sa.Time(), nullable=False),
        sa.Column("shift_end", sa.Time(), nullable=False),
        sa.Column("late_threshold_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("half_day_threshold_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("break_start", sa.Time(), nullable=True),
        sa.Column("break_end", sa.Time(), nullable=True),
        sa.Column("require_location_check", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("office_latitude", sa.Float(), nullable=True),
        sa.Column("office_longitude", sa.Float(), nullable=True),
        sa.Column("allowed_radius_meters", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("late_threshold_minutes >= 0", name="ck_policy_late_threshold"),
        sa.CheckConstraint("half_day_threshold_minutes >= 0", name="ck_policy_half_day_threshold"),
    )

    # --- work_schedules ---
    op.create_table(
        "work_schedules",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("employee_id", sa.Uuid(), nullable=False),
        sa.Column("policy_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("schedule_type", sa.String(50), nullable=True),
        sa.Column("work_days", sa.JSON(), nullable=False),
        sa.Column("custom_start_time", sa.Time(), nullable=True),
        sa.Column("custom_end_time", sa.Time(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["employee_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["policy_id"], ["attendance_policies.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_work_schedules_employee", "work_schedules", ["employee_id"])

    # --- attendances ---
    op.create_table(
        "attendances",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("employee_id", sa.Uuid(), nullable=False),
        sa.Column("work_schedule_id", sa.Integer(), nullable=False),
        sa.Column("attendance_date", sa.Date(), nullable=False),
        sa.Column("check_in_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("check_in_latitude", sa.Float(), nullable=True),
        sa.Column("check_in_longitude", sa.Float(), nullable=True),
        sa.Column("check_in_address", sa.String(500), nullable=True),
        sa.Column("check_in_note", sa.Text(), nullable=True),
        sa.Column("late_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "status",
            sa.Enum("PRESENT", "LATE", "HALF_DAY", name="attendance_status"),
            nullable=False,
        ),
        sa.Column("check_out_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("check_out_latitude", sa.Float(), nullable=True),
        sa.Column("check_out_longitude", sa.Float(), nullable=True),
        sa.Column("check_out_address", sa.String(500), nullable=True),
        sa.Column("check_out_note", sa.Text(), nullable=True),
        sa.Column("total_work_minutes", sa.Integer(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["employee_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["work_schedule_id"], ["work_schedules.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("employee_id", "attendance_date", name="uq_attendance_employee_date"),
        sa.CheckConstraint(
            "check_out_time IS NULL OR check_out_time > check_in_time",
            name="ck_attendance_checkout_after_checkin",
        ),
    )
    op.create_index("ix_attendance_date", "attendances", ["attendance_date"])
    op.create_index("ix_attendance_status", "attendances", ["status"])


def downgrade() -> None:
    op.drop_index("ix_attendance_status", table_name="attendances")
    op.drop_index("ix_attendance_date", table_name="attendances")
    op.drop_table("attendances")
    op.drop_index("ix_work_schedules_employee", table_name="work_schedules")
    op.drop_table("work_schedules")
    op.drop_table("attendance_policies")
    op.drop_table("users")
    op.drop_table("businesses")
    op.execute("DROP TYPE IF EXISTS attendance_status")
    op.execute("DROP TYPE IF EXISTS user_role")
