"""
Job Status

Status and log level vocabularies used by the backend, and the
predicates that decide when polling stops and whether a response
body reports success.
"""

from enum import Enum
from typing import Any


class MigrationStatus(str, Enum):
    """Status of a migration job or table."""
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    VALIDATING = "VALIDATING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    PAUSED = "PAUSED"


class MigrationLogLevel(str, Enum):
    """Level of a server-side job log line."""
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    DEBUG = "DEBUG"


TERMINAL_STATUSES = frozenset({
    MigrationStatus.COMPLETED.value,
    MigrationStatus.FAILED.value,
    MigrationStatus.CANCELLED.value,
})

# Display colours shared by the CLI tables and the logger
STATUS_COLORS = {
    MigrationStatus.PENDING.value: "yellow",
    MigrationStatus.VALIDATING.value: "yellow",
    MigrationStatus.RUNNING.value: "blue",
    MigrationStatus.PAUSED.value: "magenta",
    MigrationStatus.COMPLETED.value: "green",
    MigrationStatus.FAILED.value: "red",
    MigrationStatus.CANCELLED.value: "dim",
}


def is_terminal(status: str | MigrationStatus) -> bool:
    """True once a job can no longer change state."""
    value = status.value if isinstance(status, MigrationStatus) else status
    return value in TERMINAL_STATUSES


def status_color(status: str) -> str:
    return STATUS_COLORS.get(status, "white")


def is_success(response: Any) -> bool:
    """
    Check whether a response body reports success.

    Bodies with a ``success`` flag must have it set; start and cancel
    responses carry ``status`` instead and must equal ``"success"``.
    """
    success = getattr(response, "success", None)
    if success is not None:
        return bool(success)

    status = getattr(response, "status", None)
    if status is not None:
        return status == "success"

    if isinstance(response, dict):
        if "success" in response:
            return bool(response["success"])
        if "status" in response:
            return response["status"] == "success"

    return True


def response_message(response: Any, default: str) -> str:
    """Server message of a response, or ``default`` when absent."""
    message = getattr(response, "message", None)
    if message is None and isinstance(response, dict):
        message = response.get("message")
    return message or default
