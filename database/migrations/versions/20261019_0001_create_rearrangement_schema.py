"""create rearrangement schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


subject_type = sa.Enum("Theory", "Lab", name="subject_type")
rearrangement_status = sa.Enum("pending", "accepted", "rejected", name="rearrangement_status")
rearrangement_resolution = sa.Enum(
    "accepted",
    "declined",
    "cancelled",
    "superseded",
    "expired",
    name="rearrangement_resolution",
)
leave_type = sa.Enum("sick", "casual", "academic", "personal", name="leave_type")
leave_status = sa.Enum("pending", "approved", "rejected", name="leave_status")
attendance_status = sa.Enum("Present", "Absent", name="attendance_status")
notification_type = sa.Enum("rearrangement", "leave", "timetable", "system", name="notification_type")

LIVE_STATUS_CLAUSE = sa.text("status IN ('pending', 'accepted')")
ACCEPTED_STATUS_CLAUSE = sa.text("status = 'accepted'")


def upgrade() -> None:
    op.create_table(
        "departments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("code", sa.String(length=20), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_departments_code", "departments", ["code"], unique=True)

    op.create_table(
        "faculty",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("designation", sa.String(length=200), nullable=False, server_default="Faculty"),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("department_id", sa.String(length=36), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_faculty_email", "faculty", ["email"], unique=True)
    op.create_index("ix_faculty_department_id", "faculty", ["department_id"], unique=False)

    op.create_table(
        "weekly_schedule_entries",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("department_id", sa.String(length=36), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("semester", sa.Integer(), nullable=False),
        sa.Column("section", sa.String(length=20), nullable=False),
        sa.Column("weekday", sa.String(length=10), nullable=False),
        sa.Column("period_id", sa.String(length=20), nullable=False),
        sa.Column("is_break", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("span", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("subject_id", sa.String(length=36), nullable=True),
        sa.Column("subject_name", sa.String(length=200), nullable=True),
        sa.Column("subject_type", subject_type, nullable=True),
        sa.Column("faculty_id", sa.String(length=36), nullable=True),
        sa.Column("faculty_name", sa.String(length=200), nullable=True),
        sa.Column("secondary_faculty_id", sa.String(length=36), nullable=True),
        sa.Column("secondary_faculty_name", sa.String(length=200), nullable=True),
        sa.Column("room", sa.String(length=100), nullable=True),
        sa.Column("published_by_id", sa.String(length=36), nullable=True),
        sa.Column("published_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint(
            "department_id",
            "year",
            "semester",
            "section",
            "weekday",
            "period_id",
            name="uq_weekly_schedule_entry_slot",
        ),
    )
    op.create_index(
        "ix_weekly_schedule_entries_department_weekday",
        "weekly_schedule_entries",
        ["department_id", "weekday"],
        unique=False,
    )
    op.create_index(
        "ix_weekly_schedule_entries_faculty_weekday",
        "weekly_schedule_entries",
        ["faculty_id", "weekday"],
        unique=False,
    )
    op.create_index(
        "ix_weekly_schedule_entries_secondary_faculty_id",
        "weekly_schedule_entries",
        ["secondary_faculty_id"],
        unique=False,
    )

    op.create_table(
        "rearrangement_requests",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("request_date", sa.Date(), nullable=False),
        sa.Column("period_id", sa.String(length=20), nullable=False),
        sa.Column("department_id", sa.String(length=36), nullable=False),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("semester", sa.Integer(), nullable=True),
        sa.Column("section", sa.String(length=20), nullable=True),
        sa.Column("class_label", sa.String(length=100), nullable=False),
        sa.Column("subject_name", sa.String(length=200), nullable=False),
        sa.Column("room", sa.String(length=100), nullable=True),
        sa.Column("original_faculty_id", sa.String(length=36), nullable=False),
        sa.Column("original_faculty_name", sa.String(length=200), nullable=False),
        sa.Column("substitute_faculty_id", sa.String(length=36), nullable=False),
        sa.Column("substitute_faculty_name", sa.String(length=200), nullable=False),
        sa.Column("status", rearrangement_status, nullable=False, server_default="pending"),
        sa.Column("resolution", rearrangement_resolution, nullable=True),
        sa.Column("response_note", sa.Text(), nullable=True),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("hidden_by_original", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("hidden_by_substitute", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_by_id", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "uq_rearrangement_live_per_original",
        "rearrangement_requests",
        ["request_date", "period_id", "original_faculty_id"],
        unique=True,
        sqlite_where=LIVE_STATUS_CLAUSE,
        postgresql_where=LIVE_STATUS_CLAUSE,
    )
    op.create_index(
        "uq_rearrangement_accepted_per_substitute",
        "rearrangement_requests",
        ["request_date", "period_id", "substitute_faculty_id"],
        unique=True,
        sqlite_where=ACCEPTED_STATUS_CLAUSE,
        postgresql_where=ACCEPTED_STATUS_CLAUSE,
    )
    op.create_index(
        "ix_rearrangement_requests_date_period",
        "rearrangement_requests",
        ["request_date", "period_id"],
        unique=False,
    )
    op.create_index("ix_rearrangement_requests_department_id", "rearrangement_requests", ["department_id"])
    op.create_index("ix_rearrangement_requests_original_faculty_id", "rearrangement_requests", ["original_faculty_id"])
    op.create_index(
        "ix_rearrangement_requests_substitute_faculty_id",
        "rearrangement_requests",
        ["substitute_faculty_id"],
    )
    op.create_index("ix_rearrangement_requests_status", "rearrangement_requests", ["status"])

    op.create_table(
        "leave_requests",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("faculty_id", sa.String(length=36), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("leave_type", leave_type, nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("status", leave_status, nullable=False, server_default="pending"),
        sa.Column("admin_comment", sa.Text(), nullable=True),
        sa.Column("reviewed_by_id", sa.String(length=36), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_leave_requests_faculty_id", "leave_requests", ["faculty_id"], unique=False)
    op.create_index("ix_leave_requests_status", "leave_requests", ["status"], unique=False)

    op.create_table(
        "faculty_attendance",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("faculty_id", sa.String(length=36), nullable=False),
        sa.Column("attendance_date", sa.Date(), nullable=False),
        sa.Column("status", attendance_status, nullable=False),
        sa.Column("recorded_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("faculty_id", "attendance_date", name="uq_faculty_attendance_day"),
    )
    op.create_index("ix_faculty_attendance_faculty_id", "faculty_attendance", ["faculty_id"], unique=False)
    op.create_index("ix_faculty_attendance_attendance_date", "faculty_attendance", ["attendance_date"], unique=False)

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("recipient_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("notification_type", notification_type, nullable=False),
        sa.Column("rearrangement_id", sa.String(length=36), nullable=True),
        sa.Column("request_date", sa.Date(), nullable=True),
        sa.Column("period_id", sa.String(length=20), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_notifications_recipient_id", "notifications", ["recipient_id"], unique=False)
    op.create_index("ix_notifications_rearrangement_id", "notifications", ["rearrangement_id"], unique=False)

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("actor_id", sa.String(length=36), nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=True),
        sa.Column("entity_id", sa.String(length=100), nullable=True),
        sa.Column("department_id", sa.String(length=36), nullable=True),
        sa.Column("occurred_on", sa.Date(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_activity_logs_entity_id", "activity_logs", ["entity_id"], unique=False)
    op.create_index("ix_activity_logs_department_id", "activity_logs", ["department_id"], unique=False)
    op.create_index("ix_activity_logs_occurred_on", "activity_logs", ["occurred_on"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_activity_logs_occurred_on", table_name="activity_logs")
    op.drop_index("ix_activity_logs_department_id", table_name="activity_logs")
    op.drop_index("ix_activity_logs_entity_id", table_name="activity_logs")
    op.drop_table("activity_logs")
    op.drop_index("ix_notifications_rearrangement_id", table_name="notifications")
    op.drop_index("ix_notifications_recipient_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_faculty_attendance_attendance_date", table_name="faculty_attendance")
    op.drop_index("ix_faculty_attendance_faculty_id", table_name="faculty_attendance")
    op.drop_table("faculty_attendance")
    op.drop_index("ix_leave_requests_status", table_name="leave_requests")
    op.drop_index("ix_leave_requests_faculty_id", table_name="leave_requests")
    op.drop_table("leave_requests")
    for index_name in (
        "ix_rearrangement_requests_status",
        "ix_rearrangement_requests_substitute_faculty_id",
        "ix_rearrangement_requests_original_faculty_id",
        "ix_rearrangement_requests_department_id",
        "ix_rearrangement_requests_date_period",
        "uq_rearrangement_accepted_per_substitute",
        "uq_rearrangement_live_per_original",
    ):
        op.drop_index(index_name, table_name="rearrangement_requests")
    op.drop_table("rearrangement_requests")
    op.drop_index("ix_weekly_schedule_entries_secondary_faculty_id", table_name="weekly_schedule_entries")
    op.drop_index("ix_weekly_schedule_entries_faculty_weekday", table_name="weekly_schedule_entries")
    op.drop_index("ix_weekly_schedule_entries_department_weekday", table_name="weekly_schedule_entries")
    op.drop_table("weekly_schedule_entries")
    op.drop_index("ix_faculty_department_id", table_name="faculty")
    op.drop_index("ix_faculty_email", table_name="faculty")
    op.drop_table("faculty")
    op.drop_index("ix_departments_code", table_name="departments")
    op.drop_table("departments")
    for enum_type in (
        notification_type,
        attendance_status,
        leave_status,
        leave_type,
        rearrangement_resolution,
        rearrangement_status,
        subject_type,
    ):
        enum_type.drop(op.get_bind(), checkfirst=True)
