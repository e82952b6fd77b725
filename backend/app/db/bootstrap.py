from __future__ import annotations

import logging

from sqlalchemy import inspect

import app.models  # noqa: F401
from app.db.base import Base
from app.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "departments": {"id", "code", "name"},
    "faculty": {"id", "name", "designation", "email", "department_id", "is_active"},
    "weekly_schedule_entries": {
        "id",
        "department_id",
        "year",
        "semester",
        "section",
        "weekday",
        "period_id",
        "is_break",
        "span",
        "faculty_id",
        "secondary_faculty_id",
    },
    "rearrangement_requests": {
        "id",
        "request_date",
        "period_id",
        "original_faculty_id",
        "substitute_faculty_id",
        "status",
        "resolution",
        "hidden_by_original",
        "hidden_by_substitute",
    },
    "leave_requests": {"id", "faculty_id", "start_date", "end_date", "status"},
    "faculty_attendance": {"id", "faculty_id", "attendance_date", "status"},
    "notifications": {"id", "recipient_id", "rearrangement_id", "request_date", "period_id", "is_read", "read_at"},
    "activity_logs": {"id", "action", "entity_type", "entity_id", "department_id", "occurred_on"},
}


def _assert_required_columns() -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = [name for name in REQUIRED_COLUMNS if name not in table_names]
        if missing_tables:
            raise RuntimeError(f"Missing required tables: {', '.join(sorted(missing_tables))}")

        missing_columns: list[str] = []
        for table_name, required in REQUIRED_COLUMNS.items():
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            for column_name in sorted(required - existing):
                missing_columns.append(f"{table_name}.{column_name}")
        if missing_columns:
            raise RuntimeError(f"Missing required columns: {', '.join(missing_columns)}")


def ensure_runtime_schema_compatibility() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        _assert_required_columns()
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
