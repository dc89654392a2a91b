"""
Tests for the JobMonitor polling loop.
"""

from types import SimpleNamespace

import pytest

from databridge.client import BrainAPIError, BrainConnectionError, GENERIC_CONNECTION_MESSAGE
from databridge.contracts import MigrationJobResponse, MigrationLogsResponse
from databridge.core.monitor import JobMonitor


class FakeClient:
    """Scripted stand-in for BrainClient."""

    def __init__(self, statuses, logs=None, log_error=None):
        self.statuses = list(statuses)
        self.logs = logs or []
        self.log_error = log_error
        self.status_calls = 0
        self.log_requests = []
        self.cancel_response = MigrationJobResponse(job_id="job-1", status="success", message="ok")
        self.cancelled = []

    def get_migration_status(self, job_id):
        self.status_calls += 1
        item = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if isinstance(item, Exception):
            raise item
        return item

    def get_migration_logs(self, request):
        self.log_requests.append(request)
        if self.log_error:
            raise self.log_error
        return MigrationLogsResponse(job_id=request.job_id, logs=self.logs, total_count=len(self.logs))

    def cancel_migration_job(self, job_id):
        self.cancelled.append(job_id)
        return self.cancel_response


class TestJobMonitor:
    """Tests for JobMonitor class."""

    @pytest.fixture
    def sleeps(self):
        return []

    def test_polls_until_completed(self, make_status_response, make_log, sleeps):
        client = FakeClient(
            [
                make_status_response("RUNNING", 10),
                make_status_response("RUNNING", 40),
                make_status_response("RUNNING", 80),
                make_status_response("COMPLETED", 100),
            ],
            logs=[make_log()],
        )
        completed = []

        monitor = JobMonitor(
            client,
            "job-1",
            status_interval=3.0,
            sleep=sleeps.append,
            on_complete=completed.append,
        )
        result = monitor.run()

        assert result.succeeded
        assert result.finished
        assert sleeps == [3.0, 3.0, 3.0]
        assert result.status_polls == 4
        # initial, every second poll, and one after the terminal status
        assert result.log_polls == 3
        assert len(completed) == 1
        assert not monitor.is_polling

    def test_log_request_window(self, make_status_response, sleeps):
        client = FakeClient([make_status_response("COMPLETED", 100)])

        JobMonitor(client, "job-1", log_limit=25, sleep=sleeps.append).run()

        request = client.log_requests[0]
        assert request.job_id == "job-1"
        assert request.limit == 25
        assert request.offset == 0

    def test_already_terminal(self, make_status_response, sleeps):
        client = FakeClient([make_status_response("FAILED", 30)])
        terminal = []

        result = JobMonitor(
            client, "job-1", sleep=sleeps.append, on_terminal=terminal.append,
        ).run()

        assert sleeps == []
        assert result.finished
        assert not result.succeeded
        assert result.status_polls == 1
        assert result.log_polls == 1
        assert terminal[0].status == "FAILED"

    def test_connection_error_stops_polling(self, make_status_response, sleeps):
        client = FakeClient([
            make_status_response("RUNNING", 10),
            BrainConnectionError("Error connecting to server (http://x): refused"),
        ])
        errors = []

        result = JobMonitor(client, "job-1", sleep=sleeps.append, on_error=errors.append).run()

        assert result.error == GENERIC_CONNECTION_MESSAGE
        assert "refused" in result.error_detail
        assert errors == [GENERIC_CONNECTION_MESSAGE]
        assert not result.finished
        assert result.status_polls == 2
        assert result.log_polls == 1

    def test_api_error_uses_generic_message(self, sleeps):
        client = FakeClient([BrainAPIError("GET /x failed with HTTP 500: boom", status_code=500)])

        result = JobMonitor(client, "job-1", sleep=sleeps.append).run()

        assert result.error == GENERIC_CONNECTION_MESSAGE
        assert sleeps == []

    def test_unsuccessful_body_stops_polling(self, sleeps):
        client = FakeClient([SimpleNamespace(success=False, message="Job not found", job_status=None)])

        result = JobMonitor(client, "job-1", sleep=sleeps.append).run()

        assert result.error == "Job not found"
        assert result.job_status is None
        assert sleeps == []

    def test_log_failure_keeps_polling(self, make_status_response, sleeps):
        client = FakeClient(
            [make_status_response("RUNNING", 50), make_status_response("COMPLETED", 100)],
            log_error=BrainConnectionError("refused"),
        )

        result = JobMonitor(client, "job-1", sleep=sleeps.append).run()

        assert result.succeeded
        assert result.error is None
        assert len(result.log_errors) == 2
        assert result.log_errors[0].startswith("Error fetching job logs")

    def test_no_auto_refresh(self, make_status_response, sleeps):
        client = FakeClient([make_status_response("RUNNING", 10)])

        result = JobMonitor(client, "job-1", auto_refresh=False, sleep=sleeps.append).run()

        assert sleeps == []
        assert result.status_polls == 1
        assert result.log_polls == 1
        assert result.job_status.status == "RUNNING"

    def test_max_polls(self, make_status_response, sleeps):
        client = FakeClient([make_status_response("RUNNING", 10)])

        result = JobMonitor(client, "job-1", max_polls=2, sleep=sleeps.append).run()

        assert len(sleeps) == 2
        assert result.status_polls == 3
        assert not result.finished

    def test_logs_every_third_poll(self, make_status_response, sleeps):
        client = FakeClient([make_status_response("RUNNING", 10)])

        result = JobMonitor(
            client, "job-1", logs_interval_factor=3, max_polls=6, sleep=sleeps.append,
        ).run()

        # initial fetch plus polls 3 and 6
        assert result.log_polls == 3

    def test_logs_replaced_each_fetch(self, make_status_response, make_log, sleeps):
        client = FakeClient([make_status_response("COMPLETED", 100)], logs=[make_log("a"), make_log("b")])
        received = []

        result = JobMonitor(client, "job-1", sleep=sleeps.append, on_logs=received.append).run()

        assert [log.message for log in result.logs] == ["a", "b"]
        assert len(received) == 1

    def test_invalid_interval(self):
        with pytest.raises(ValueError):
            JobMonitor(FakeClient([]), "job-1", status_interval=0)
        with pytest.raises(ValueError):
            JobMonitor(FakeClient([]), "job-1", logs_interval_factor=0)


class TestJobMonitorCancel:
    """Tests for cancellation."""

    def test_cancel_refreshes_status(self, make_status_response):
        client = FakeClient([make_status_response("CANCELLED", 40)])
        monitor = JobMonitor(client, "job-1", sleep=lambda _: None)

        response = monitor.cancel()

        assert response.status == "success"
        assert client.cancelled == ["job-1"]
        assert monitor.result.job_status.status == "CANCELLED"

    def test_rejected_cancel_does_not_refresh(self, make_status_response):
        client = FakeClient([make_status_response("RUNNING", 40)])
        client.cancel_response = MigrationJobResponse(job_id="job-1", status="error", message="Too late")
        monitor = JobMonitor(client, "job-1", sleep=lambda _: None)

        response = monitor.cancel()

        assert response.message == "Too late"
        assert client.status_calls == 0
