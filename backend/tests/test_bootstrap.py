import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from app.db import bootstrap


def _raise_error(message: str):
    raise RuntimeError(message)


def test_runtime_schema_bootstrap_raises_on_validation_failure(monkeypatch):
    monkeypatch.setattr(bootstrap.Base.metadata, "create_all", lambda bind: None)
    monkeypatch.setattr(
        bootstrap,
        "_assert_required_columns",
        lambda: _raise_error("missing required schema"),
    )

    with pytest.raises(RuntimeError, match="Runtime schema compatibility bootstrap failed"):
        bootstrap.ensure_runtime_schema_compatibility()


def test_required_columns_cover_rearrangement_tables():
    assert "rearrangement_requests" in bootstrap.REQUIRED_COLUMNS
    assert {"status", "hidden_by_original", "hidden_by_substitute"} <= bootstrap.REQUIRED_COLUMNS["rearrangement_requests"]
    assert "span" in bootstrap.REQUIRED_COLUMNS["weekly_schedule_entries"]


def test_bootstrap_creates_schema_on_empty_database(monkeypatch):
    empty = create_engine("sqlite+pysqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    monkeypatch.setattr(bootstrap, "engine", empty)

    with pytest.raises(RuntimeError, match="Missing required tables"):
        bootstrap._assert_required_columns()

    bootstrap.ensure_runtime_schema_compatibility()
    bootstrap._assert_required_columns()
    empty.dispose()
