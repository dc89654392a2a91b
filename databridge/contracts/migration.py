"""
Migration Contracts

Job requests, job and table status, and job logs.
"""

from typing import Any

from pydantic import BaseModel, Field


# ============================================================================
# Job Request
# ============================================================================

class MigrationTableMapping(BaseModel):
    """Correspondence between a source and a destination table."""
    source_table: str
    source_columns: list[str]
    destination_table: str
    destination_columns: list[str]
    transformation_rules: dict[str, str] | None = None


class MigrationJobRequest(BaseModel):
    """Request to start a migration job."""
    source_connection_id: str
    destination_connection_id: str
    application_ids: list[str]
    table_mappings: list[MigrationTableMapping]
    run_validations: bool = True
    batch_size: int = 1000
    timeout_seconds: int = 3600
    description: str | None = None


class MigrationJobResponse(BaseModel):
    """Response from start and cancel."""
    job_id: str
    status: str
    message: str


# ============================================================================
# Job Status
# ============================================================================

class MigrationTableStatus(BaseModel):
    """Progress of a single table inside a job."""
    table_name: str
    records_total: int = 0
    records_processed: int = 0
    records_succeeded: int = 0
    records_failed: int = 0
    start_time: str | None = None
    end_time: str | None = None
    status: str = "PENDING"
    error_message: str | None = None


class MigrationJobStatus(BaseModel):
    """Status of a whole migration job."""
    job_id: str
    source_connection_id: str
    destination_connection_id: str
    application_ids: list[str]
    status: str
    progress_percentage: float = 0
    start_time: str | None = None
    end_time: str | None = None
    estimated_completion_time: str | None = None
    table_statuses: list[MigrationTableStatus] = Field(default_factory=list)
    error_message: str | None = None
    created_at: str
    updated_at: str


class MigrationJobStatusResponse(BaseModel):
    job_status: MigrationJobStatus
    success: bool = True
    message: str | None = None


class MigrationJobListResponse(BaseModel):
    jobs: list[MigrationJobStatus]
    total_count: int
    success: bool = True
    message: str | None = None


# ============================================================================
# Logs
# ============================================================================

class MigrationLog(BaseModel):
    """A single server-side log line for a job."""
    timestamp: str
    level: str
    message: str
    details: dict[str, Any] | None = None


class MigrationLogsRequest(BaseModel):
    """Request for a window of job logs."""
    job_id: str
    limit: int = 100
    offset: int = 0
    level: str | None = None
    from_timestamp: str | None = None
    to_timestamp: str | None = None


class MigrationLogsResponse(BaseModel):
    job_id: str
    logs: list[MigrationLog]
    total_count: int
    success: bool = True
    message: str | None = None
