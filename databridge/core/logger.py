"""
Migration Logger

Console rendering and audit export of migration job logs.
"""

import json
import csv
import re
from pathlib import Path
from typing import Any
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from rich.console import Console
from rich.markup import escape

from databridge.contracts import MigrationJobStatus, MigrationLog
from databridge.core.dashboard import TableSummary
from databridge.core.status import status_color


class LogLevel(Enum):
    """Log level for client-side messages."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    SUCCESS = "SUCCESS"


LEVEL_ORDER = {
    LogLevel.DEBUG: 10,
    LogLevel.INFO: 20,
    LogLevel.SUCCESS: 20,
    LogLevel.WARNING: 30,
    LogLevel.ERROR: 40,
}

LEVEL_COLORS = {
    "DEBUG": "dim",
    "INFO": "blue",
    "WARNING": "yellow",
    "ERROR": "red bold",
    "SUCCESS": "green bold",
}


def _parse_time(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def file_safe(job_id: str) -> str:
    """Job ID usable as part of a file name."""
    return re.sub(r"[^\w.-]", "_", job_id)


@dataclass
class JobSummary:
    """Summary of a monitored migration job."""

    job_id: str
    status: str
    progress_percentage: float = 0.0
    start_time: str | None = None
    end_time: str | None = None
    error_message: str | None = None
    application_ids: list[str] = field(default_factory=list)
    tables: TableSummary = field(default_factory=TableSummary)
    log_count: int = 0
    error_log_count: int = 0

    @classmethod
    def from_job(cls, job: MigrationJobStatus, logs: list[MigrationLog] | None = None) -> "JobSummary":
        logs = logs or []
        return cls(
            job_id=job.job_id,
            status=job.status,
            progress_percentage=job.progress_percentage,
            start_time=job.start_time,
            end_time=job.end_time,
            error_message=job.error_message,
            application_ids=list(job.application_ids),
            tables=TableSummary.from_job(job),
            log_count=len(logs),
            error_log_count=sum(1 for log in logs if log.level.upper() == "ERROR"),
        )

    @property
    def duration(self) -> str:
        start = _parse_time(self.start_time)
        end = _parse_time(self.end_time)
        if not start:
            return "Not started"
        if not end:
            return "In progress"
        delta = end - start
        minutes = int(delta.total_seconds() // 60)
        seconds = int(delta.total_seconds() % 60)
        return f"{minutes}m {seconds}s"

    @property
    def success_rate(self) -> float:
        if self.tables.records_processed == 0:
            return 0.0
        return self.tables.records_succeeded / self.tables.records_processed * 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "status": self.status,
            "progress_percentage": self.progress_percentage,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration": self.duration,
            "error_message": self.error_message,
            "application_ids": self.application_ids,
            "tables_total": self.tables.tables_total,
            "tables_completed": self.tables.tables_completed,
            "tables_failed": self.tables.tables_failed,
            "records_total": self.tables.records_total,
            "records_processed": self.tables.records_processed,
            "records_succeeded": self.tables.records_succeeded,
            "records_failed": self.tables.records_failed,
            "log_count": self.log_count,
            "error_log_count": self.error_log_count,
        }

    def to_text(self) -> str:
        """Generate human-readable summary."""
        lines = [
            "=" * 60,
            f"MIGRATION JOB SUMMARY: {self.job_id}",
            "=" * 60,
            f"{'Status:':<20} {self.status}",
            f"{'Progress:':<20} {self.progress_percentage:.1f}%",
            f"{'Started:':<20} {self.start_time or '-'}",
            f"{'Duration:':<20} {self.duration}",
            f"{'Applications:':<20} {', '.join(self.application_ids) or '-'}",
            "",
            "TABLE STATISTICS",
            "-" * 40,
            f"{'Tables:':<20} {self.tables.tables_completed}/{self.tables.tables_total} completed",
            f"{'Failed tables:':<20} {self.tables.tables_failed}",
            f"{'Records total:':<20} {self.tables.records_total:,}",
            f"{'Processed:':<20} {self.tables.records_processed:,}",
            f"{'Succeeded:':<20} {self.tables.records_succeeded:,} ({self.success_rate:.1f}%)",
            f"{'Failed:':<20} {self.tables.records_failed:,}",
        ]

        if self.tables.failed_tables:
            lines.extend(["", "FAILED TABLES", "-" * 40])
            for name in self.tables.failed_tables:
                lines.append(f"  • {name}")

        if self.error_message:
            lines.extend(["", "ERROR", "-" * 40, f"  {self.error_message}"])

        lines.append(f"{'Log lines:':<20} {self.log_count} ({self.error_log_count} errors)")
        lines.append("=" * 60)
        return "\n".join(lines)


class MigrationLogger:
    """
    Logger for job monitoring sessions.

    Features:
    - Timestamped, level-coloured console output with Rich
    - Incremental display of server job logs
    - JSON and CSV export of job logs
    - Human-readable job summary

    Example:
        >>> logger = MigrationLogger("./logs")
        >>> logger.log_job_logs(response.logs)
        >>> logger.export_json(job_status, response.logs)
    """

    def __init__(
        self,
        output_dir: str | Path = "./logs",
        console_output: bool = True,
        level: str = "INFO",
        console: Console | None = None,
    ):
        """
        Initialize logger.

        Args:
            output_dir: Directory for exported files
            console_output: Whether to print to console
            level: Minimum level printed for client messages
            console: Rich console to print to
        """
        self.output_dir = Path(output_dir)
        self.console_output = console_output
        self.level = LogLevel(level.upper())
        self._console = console or Console()
        self._seen: set[tuple[str, str, str]] = set()

    # -------------------------------------------------------------------------
    # Client messages
    # -------------------------------------------------------------------------

    def log_debug(self, message: str) -> None:
        self._log_message(LogLevel.DEBUG, message)

    def log_info(self, message: str) -> None:
        self._log_message(LogLevel.INFO, message)

    def log_warning(self, message: str) -> None:
        self._log_message(LogLevel.WARNING, message)

    def log_error(self, message: str) -> None:
        self._log_message(LogLevel.ERROR, message)

    def log_success(self, message: str) -> None:
        self._log_message(LogLevel.SUCCESS, message)

    def log_status(self, job: MigrationJobStatus) -> None:
        """One-line progress update for a job."""
        color = status_color(job.status)
        self._log_message(
            LogLevel.INFO,
            f"Job {job.job_id}: [{color}]{job.status}[/] {job.progress_percentage:.1f}%",
        )

    def _log_message(self, level: LogLevel, message: str) -> None:
        """Log a message to console."""
        if not self.console_output:
            return
        if LEVEL_ORDER[level] < LEVEL_ORDER[self.level]:
            return

        timestamp = datetime.now().strftime("%H:%M:%S")
        color = LEVEL_COLORS.get(level.value, "white")
        self._console.print(f"[dim]{timestamp}[/] [{color}]{level.value}[/] {message}")

    # -------------------------------------------------------------------------
    # Server job logs
    # -------------------------------------------------------------------------

    def log_job_logs(self, logs: list[MigrationLog]) -> list[MigrationLog]:
        """
        Print job log lines not shown before.

        Returns:
            The newly printed entries, oldest first
        """
        fresh: list[MigrationLog] = []
        for log in sorted(logs, key=lambda entry: entry.timestamp):
            key = (log.timestamp, log.level, log.message)
            if key in self._seen:
                continue
            self._seen.add(key)
            fresh.append(log)

        if self.console_output:
            for log in fresh:
                color = LEVEL_COLORS.get(log.level.upper(), "white")
                self._console.print(
                    f"[dim]{log.timestamp}[/] [{color}]{log.level.upper():<7}[/] {escape(log.message)}",
                    markup=True,
                    highlight=False,
                )
        return fresh

    def reset(self) -> None:
        """Forget which job log lines were shown."""
        self._seen.clear()

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    def _default_path(self, job_id: str, suffix: str) -> Path:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return self.output_dir / f"job_{file_safe(job_id)}_{timestamp}.{suffix}"

    def export_json(
        self,
        job: MigrationJobStatus,
        logs: list[MigrationLog],
        filepath: Path | None = None,
    ) -> Path:
        """
        Export job status, summary and logs to a JSON file.

        Returns:
            Path to exported file
        """
        output_path = filepath or self._default_path(job.job_id, "json")
        output_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "job_id": job.job_id,
            "exported_at": datetime.now().isoformat(),
            "summary": JobSummary.from_job(job, logs).to_dict(),
            "job_status": job.model_dump(mode="json"),
            "logs": [log.model_dump(mode="json") for log in logs],
        }

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        return output_path

    def export_csv(
        self,
        job_id: str,
        logs: list[MigrationLog],
        filepath: Path | None = None,
    ) -> Path:
        """
        Export job logs to a CSV file.

        Returns:
            Path to exported file (not written when there are no logs)
        """
        output_path = filepath or self._default_path(job_id, "csv")

        if not logs:
            return output_path

        output_path.parent.mkdir(parents=True, exist_ok=True)
        fieldnames = ["timestamp", "level", "message", "details"]

        with open(output_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            for log in logs:
                writer.writerow({
                    "timestamp": log.timestamp,
                    "level": log.level,
                    "message": log.message,
                    "details": json.dumps(log.details, ensure_ascii=False) if log.details else "",
                })

        return output_path

    def end_job(
        self,
        job: MigrationJobStatus,
        logs: list[MigrationLog],
        export_json: bool = True,
        export_csv: bool = True,
    ) -> JobSummary:
        """
        Close a monitoring session: export logs and print the summary.

        Returns:
            Job summary
        """
        summary = JobSummary.from_job(job, logs)

        if export_json:
            self.export_json(job, logs)
        if export_csv:
            self.export_csv(job.job_id, logs)

        if self.console_output:
            self._console.print(summary.to_text(), markup=False, highlight=False)

        self.output_dir.mkdir(parents=True, exist_ok=True)
        summary_file = self.output_dir / f"job_{file_safe(job.job_id)}_summary.txt"
        with open(summary_file, "w", encoding="utf-8") as f:
            f.write(summary.to_text())

        return summary
