"""
Job Monitor

Fixed-interval polling of a migration job's status and logs.
Polling stops once the job reaches a terminal status, or when the
backend reports a failure or cannot be reached.
"""

import time
from typing import Any, Callable
from dataclasses import dataclass, field

from databridge.client import BrainError, GENERIC_CONNECTION_MESSAGE
from databridge.contracts import (
    MigrationJobResponse,
    MigrationJobStatus,
    MigrationLog,
    MigrationLogsRequest,
)
from databridge.core.status import MigrationStatus, is_success, is_terminal


@dataclass
class MonitorResult:
    """Outcome of monitoring a job."""

    job_id: str
    job_status: MigrationJobStatus | None = None
    logs: list[MigrationLog] = field(default_factory=list)
    error: str | None = None
    error_detail: str | None = None
    log_errors: list[str] = field(default_factory=list)
    status_polls: int = 0
    log_polls: int = 0

    @property
    def finished(self) -> bool:
        return self.job_status is not None and is_terminal(self.job_status.status)

    @property
    def succeeded(self) -> bool:
        return (
            self.job_status is not None
            and self.job_status.status == MigrationStatus.COMPLETED.value
        )


class JobMonitor:
    """
    Polls a migration job until it finishes.

    Status is fetched every ``status_interval`` seconds and logs every
    ``logs_interval_factor`` status polls. A final log fetch follows a
    terminal status.

    Example:
        >>> monitor = JobMonitor(client, "job-42", on_status=print)
        >>> result = monitor.run()
        >>> result.succeeded
        True
    """

    def __init__(
        self,
        client: Any,
        job_id: str,
        status_interval: float = 3.0,
        logs_interval_factor: int = 2,
        log_limit: int = 100,
        auto_refresh: bool = True,
        max_polls: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
        on_status: Callable[[MigrationJobStatus], None] | None = None,
        on_logs: Callable[[list[MigrationLog]], None] | None = None,
        on_terminal: Callable[[MigrationJobStatus], None] | None = None,
        on_complete: Callable[[MigrationJobStatus], None] | None = None,
        on_error: Callable[[str], None] | None = None,
    ):
        """
        Initialize the monitor.

        Args:
            client: BrainClient (or compatible) used for requests
            job_id: Job to monitor
            status_interval: Seconds between status polls
            logs_interval_factor: Logs are fetched every N status polls
            log_limit: Log lines requested per fetch
            auto_refresh: If False, fetch once and stop
            max_polls: Optional cap on status polls after the first fetch
            sleep: Sleep function (injectable for tests)
        """
        if status_interval <= 0:
            raise ValueError("status_interval must be positive")
        if logs_interval_factor < 1:
            raise ValueError("logs_interval_factor must be at least 1")

        self.client = client
        self.job_id = job_id
        self.status_interval = status_interval
        self.logs_interval_factor = logs_interval_factor
        self.log_limit = log_limit
        self.auto_refresh = auto_refresh
        self.max_polls = max_polls
        self._sleep = sleep

        self._on_status = on_status
        self._on_logs = on_logs
        self._on_terminal = on_terminal
        self._on_complete = on_complete
        self._on_error = on_error

        self._polling = False
        self.result = MonitorResult(job_id=job_id)

    @property
    def is_polling(self) -> bool:
        return self._polling

    def stop(self) -> None:
        """Stop after the current poll."""
        self._polling = False

    def run(self) -> MonitorResult:
        """
        Fetch once, then poll until the job is finished.

        Returns:
            MonitorResult with the last status and logs seen
        """
        self._polling = self.auto_refresh

        self.fetch_status()
        self.fetch_logs()

        polls = 0
        while self._polling:
            if self.max_polls is not None and polls >= self.max_polls:
                self._polling = False
                break

            self._sleep(self.status_interval)
            polls += 1

            self.fetch_status()

            if not self._polling:
                if self.result.finished:
                    self.fetch_logs()
                break

            if polls % self.logs_interval_factor == 0:
                self.fetch_logs()

        return self.result

    def fetch_status(self) -> MigrationJobStatus | None:
        """Fetch the job status once and update polling state."""
        self.result.status_polls += 1

        try:
            response = self.client.get_migration_status(self.job_id)
        except BrainError as e:
            self._fail(GENERIC_CONNECTION_MESSAGE, str(e))
            return None

        if not response.success:
            self._fail(response.message or "Failed to fetch job status")
            return None

        job_status = response.job_status
        self.result.job_status = job_status
        self.result.error = None
        self.result.error_detail = None

        if self._on_status:
            self._on_status(job_status)

        if is_terminal(job_status.status):
            self._polling = False
            if self._on_terminal:
                self._on_terminal(job_status)
            if job_status.status == MigrationStatus.COMPLETED.value and self._on_complete:
                self._on_complete(job_status)

        return job_status

    def fetch_logs(self) -> list[MigrationLog]:
        """Fetch the latest log window. Failures do not stop polling."""
        self.result.log_polls += 1
        request = MigrationLogsRequest(job_id=self.job_id, limit=self.log_limit, offset=0)

        try:
            response = self.client.get_migration_logs(request)
        except BrainError as e:
            self.result.log_errors.append(f"Error fetching job logs: {e}")
            return self.result.logs

        if not response.success:
            self.result.log_errors.append(
                f"Failed to fetch logs: {response.message or 'unknown error'}"
            )
            return self.result.logs

        self.result.logs = list(response.logs)
        if self._on_logs:
            self._on_logs(self.result.logs)
        return self.result.logs

    def cancel(self) -> MigrationJobResponse:
        """
        Request cancellation and refresh status if accepted.

        Raises:
            BrainError: If the cancel request itself fails
        """
        response = self.client.cancel_migration_job(self.job_id)
        if is_success(response):
            self.fetch_status()
        return response

    def _fail(self, message: str, detail: str | None = None) -> None:
        self._polling = False
        self.result.error = message
        self.result.error_detail = detail
        if self._on_error:
            self._on_error(message)
