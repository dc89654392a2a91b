"""
Shared fixtures for DataBridge tests.
"""

import pytest

from databridge.contracts import (
    MigrationJobStatus,
    MigrationJobStatusResponse,
    MigrationLog,
    MigrationTableStatus,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep developer environment out of config resolution."""
    monkeypatch.delenv("DATABRIDGE_API_URL", raising=False)
    monkeypatch.delenv("DATABRIDGE_TOKEN", raising=False)


@pytest.fixture
def make_job():
    """Factory for job status records."""
    def factory(job_id="job-1", status="RUNNING", **overrides):
        data = {
            "job_id": job_id,
            "source_connection_id": "src-1",
            "destination_connection_id": "dst-1",
            "application_ids": ["app-1"],
            "status": status,
            "progress_percentage": 0,
            "created_at": "2024-01-01T10:00:00",
            "updated_at": "2024-01-01T10:00:00",
        }
        data.update(overrides)
        return MigrationJobStatus(**data)
    return factory


@pytest.fixture
def make_status_response(make_job):
    def factory(status="RUNNING", progress=0.0, **overrides):
        job = make_job(status=status, progress_percentage=progress, **overrides)
        return MigrationJobStatusResponse(job_status=job)
    return factory


@pytest.fixture
def make_log():
    def factory(message="Copying rows", level="INFO", timestamp="2024-01-01T10:00:00", details=None):
        return MigrationLog(timestamp=timestamp, level=level, message=message, details=details)
    return factory


@pytest.fixture
def table_statuses():
    return [
        MigrationTableStatus(
            table_name="Users",
            records_total=100,
            records_processed=100,
            records_succeeded=98,
            records_failed=2,
            status="COMPLETED",
        ),
        MigrationTableStatus(
            table_name="Orders",
            records_total=50,
            records_processed=20,
            records_succeeded=10,
            records_failed=10,
            status="FAILED",
            error_message="FK violation",
        ),
        MigrationTableStatus(table_name="Items", records_total=10, status="RUNNING"),
    ]
