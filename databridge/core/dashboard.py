"""
Migration Dashboard

Filtering, sorting and statistics over the job list.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Literal
from dataclasses import dataclass, field, replace

import pandas as pd

from databridge.contracts import MigrationJobStatus
from databridge.core.status import MigrationStatus

SortField = Literal["created_at", "status", "progress_percentage"]
SortDirection = Literal["asc", "desc"]

SORT_FIELDS: tuple[str, ...] = ("created_at", "status", "progress_percentage")


@dataclass(frozen=True)
class JobFilter:
    """Filter and sort options for the job list."""

    status: str | None = None
    application_id: str | None = None
    search_term: str = ""
    sort_by: SortField = "created_at"
    sort_direction: SortDirection = "desc"

    def __post_init__(self) -> None:
        if self.sort_by not in SORT_FIELDS:
            raise ValueError(
                f"Invalid sort field: {self.sort_by}. Use one of: {', '.join(SORT_FIELDS)}"
            )
        if self.sort_direction not in ("asc", "desc"):
            raise ValueError(f"Invalid sort direction: {self.sort_direction}")

    def matches(self, job: MigrationJobStatus) -> bool:
        if self.status and job.status != self.status:
            return False

        if self.application_id and self.application_id not in job.application_ids:
            return False

        if self.search_term:
            needle = self.search_term.lower()
            return (
                needle in job.job_id.lower()
                or needle in job.source_connection_id.lower()
                or needle in job.destination_connection_id.lower()
            )

        return True


def toggle_sort(job_filter: JobFilter, column: SortField) -> JobFilter:
    """Same column flips direction; a new column starts ascending."""
    if job_filter.sort_by == column:
        direction: SortDirection = "desc" if job_filter.sort_direction == "asc" else "asc"
        return replace(job_filter, sort_direction=direction)
    return replace(job_filter, sort_by=column, sort_direction="asc")


def _parse_timestamp(value: str) -> datetime:
    """Parse an ISO timestamp; unparseable values sort first."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return datetime.min
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


_SORT_KEYS = {
    "created_at": lambda job: _parse_timestamp(job.created_at),
    "status": lambda job: job.status,
    "progress_percentage": lambda job: job.progress_percentage,
}


def filter_jobs(
    jobs: list[MigrationJobStatus],
    job_filter: JobFilter,
) -> list[MigrationJobStatus]:
    """Apply a filter and sort order to the job list."""
    selected = [job for job in jobs if job_filter.matches(job)]
    reverse = job_filter.sort_direction == "desc"
    return sorted(selected, key=_SORT_KEYS[job_filter.sort_by], reverse=reverse)


@dataclass
class DashboardStats:
    """Job counts by status group."""

    total_jobs: int = 0
    running_jobs: int = 0
    completed_jobs: int = 0
    failed_jobs: int = 0
    pending_jobs: int = 0

    @classmethod
    def from_jobs(cls, jobs: list[MigrationJobStatus]) -> "DashboardStats":
        stats = cls(total_jobs=len(jobs))
        for job in jobs:
            if job.status == MigrationStatus.RUNNING.value:
                stats.running_jobs += 1
            elif job.status == MigrationStatus.COMPLETED.value:
                stats.completed_jobs += 1
            elif job.status in (MigrationStatus.FAILED.value, MigrationStatus.CANCELLED.value):
                stats.failed_jobs += 1
            elif job.status in (MigrationStatus.PENDING.value, MigrationStatus.VALIDATING.value):
                stats.pending_jobs += 1
        return stats


def application_ids(jobs: list[MigrationJobStatus]) -> list[str]:
    """Sorted unique application IDs across all jobs."""
    return sorted({app_id for job in jobs for app_id in job.application_ids})


@dataclass
class TableSummary:
    """Aggregated table progress of one job."""

    tables_total: int = 0
    tables_completed: int = 0
    tables_failed: int = 0
    tables_running: int = 0
    records_total: int = 0
    records_processed: int = 0
    records_succeeded: int = 0
    records_failed: int = 0
    failed_tables: list[str] = field(default_factory=list)

    @classmethod
    def from_job(cls, job: MigrationJobStatus) -> "TableSummary":
        summary = cls(tables_total=len(job.table_statuses))
        for table in job.table_statuses:
            if table.status == MigrationStatus.COMPLETED.value:
                summary.tables_completed += 1
            elif table.status == MigrationStatus.FAILED.value:
                summary.tables_failed += 1
                summary.failed_tables.append(table.table_name)
            elif table.status == MigrationStatus.RUNNING.value:
                summary.tables_running += 1
            summary.records_total += table.records_total
            summary.records_processed += table.records_processed
            summary.records_succeeded += table.records_succeeded
            summary.records_failed += table.records_failed
        return summary


EXPORT_COLUMNS = [
    "job_id",
    "status",
    "progress_percentage",
    "source_connection_id",
    "destination_connection_id",
    "application_ids",
    "tables_total",
    "tables_completed",
    "tables_failed",
    "records_total",
    "records_processed",
    "records_succeeded",
    "records_failed",
    "start_time",
    "end_time",
    "created_at",
    "updated_at",
    "error_message",
]


def jobs_to_dataframe(jobs: list[MigrationJobStatus]) -> pd.DataFrame:
    """One row per job with its table totals."""
    rows = []
    for job in jobs:
        tables = TableSummary.from_job(job)
        rows.append({
            "job_id": job.job_id,
            "status": job.status,
            "progress_percentage": job.progress_percentage,
            "source_connection_id": job.source_connection_id,
            "destination_connection_id": job.destination_connection_id,
            "application_ids": ", ".join(job.application_ids),
            "tables_total": tables.tables_total,
            "tables_completed": tables.tables_completed,
            "tables_failed": tables.tables_failed,
            "records_total": tables.records_total,
            "records_processed": tables.records_processed,
            "records_succeeded": tables.records_succeeded,
            "records_failed": tables.records_failed,
            "start_time": job.start_time,
            "end_time": job.end_time,
            "created_at": job.created_at,
            "updated_at": job.updated_at,
            "error_message": job.error_message,
        })
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


def export_jobs(jobs: list[MigrationJobStatus], output_path: str | Path) -> Path:
    """
    Write the job list to CSV or Excel, chosen by file extension.

    Raises:
        ValueError: If the extension is not .csv or .xlsx
    """
    path = Path(output_path)
    suffix = path.suffix.lower()
    if suffix not in (".csv", ".xlsx"):
        raise ValueError(f"Unsupported export format: {suffix or '(none)'}. Use .csv or .xlsx")

    df = jobs_to_dataframe(jobs)
    path.parent.mkdir(parents=True, exist_ok=True)

    if suffix == ".csv":
        df.to_csv(path, index=False, encoding="utf-8")
    else:
        df.to_excel(path, index=False, sheet_name="Jobs", engine="openpyxl")
    return path
