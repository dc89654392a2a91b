"""
DataBridge REST Client

Provides a typed interface to the DataBridge Pro backend ("Brain").
One method per route; requests and responses are pydantic contracts.
"""

import time
from typing import Any, TypeVar
from urllib.parse import quote
from dataclasses import dataclass, field

import requests
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from databridge.contracts import (
    ApplicationBulkSelectionRequest,
    ApplicationDetailsRequest,
    ApplicationDetailsResponse,
    ApplicationListRequest,
    ApplicationListResponse,
    ApplicationSelectionResponse,
    ConnectionCapabilities,
    ConnectionProfileRequest,
    ConnectionProfileResponse,
    ConnectionProfilesResponse,
    ConnectionTestRequest,
    ConnectionTestResponse,
    HealthResponse,
    HTTPValidationError,
    MigrationJobListResponse,
    MigrationJobRequest,
    MigrationJobResponse,
    MigrationJobStatusResponse,
    MigrationLogsRequest,
    MigrationLogsResponse,
    SchemaRequest,
    SchemaResponse,
    ValidateConnectionRequest,
    ValidateConnectionResponse,
    ValidationError,
)


ResponseT = TypeVar("ResponseT", bound=BaseModel)

GENERIC_CONNECTION_MESSAGE = "Error connecting to server"


class BrainError(Exception):
    """Base class for client errors."""
    pass


class BrainConnectionError(BrainError):
    """Raised when the backend cannot be reached."""
    pass


class BrainAPIError(BrainError):
    """Raised when the backend answers with a non-2xx status."""

    def __init__(
        self,
        message: str,
        status_code: int,
        detail: list[ValidationError] | str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class BrainResponseError(BrainError):
    """Raised when a 2xx body does not match the declared contract."""
    pass


def format_validation_detail(detail: list[ValidationError]) -> str:
    """Flatten validation errors to ``loc: msg`` lines."""
    return "\n".join(f"{err.location}: {err.msg}" for err in detail)


@dataclass
class BrainClient:
    """
    HTTP client for the DataBridge Pro REST API.

    Example:
        >>> client = BrainClient(base_url="http://localhost:8000")
        >>> client.check_health().status
        'ok'
        >>> profiles = client.list_connection_profiles().profiles
    """

    base_url: str
    token: str | None = None
    timeout: float = 30.0
    retry_attempts: int = 1
    retry_delay: float = 1.0
    headers: dict[str, str] = field(default_factory=dict)
    session: requests.Session | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        """Normalize URL and prepare the session."""
        self.base_url = self.base_url.rstrip("/")
        if self.session is None:
            self.session = requests.Session()
        self.session.headers["Accept"] = "application/json"
        if self.token:
            self.session.headers["Authorization"] = f"Bearer {self.token}"
        self.session.headers.update(self.headers)

    def close(self) -> None:
        if self.session is not None:
            self.session.close()

    def __enter__(self) -> "BrainClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def request(
        self,
        method: str,
        path: str,
        body: BaseModel | None = None,
    ) -> Any:
        """
        Send a request and return the decoded JSON body.

        Args:
            method: HTTP method
            path: Route path beginning with ``/``
            body: Request contract, serialized without unset fields

        Returns:
            Decoded JSON (``None`` for an empty body)

        Raises:
            BrainConnectionError: If the backend is unreachable
            BrainAPIError: If the backend returns an error status
        """
        url = f"{self.base_url}{path}"
        payload = None
        if body is not None:
            payload = body.model_dump(mode="json", by_alias=True, exclude_unset=True)

        response = self._send_with_retry(method, url, payload)

        if not response.ok:
            raise self._api_error(method, path, response)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise BrainResponseError(f"Invalid JSON from {method} {path}: {e}") from e

    def _send_with_retry(
        self,
        method: str,
        url: str,
        payload: dict[str, Any] | None,
    ) -> requests.Response:
        """Send with retry on transport failures only."""
        last_error: Exception | None = None
        attempts = max(1, self.retry_attempts)

        for attempt in range(attempts):
            try:
                return self.session.request(  # type: ignore[union-attr]
                    method,
                    url,
                    json=payload,
                    timeout=self.timeout,
                )
            except (requests.ConnectionError, requests.Timeout) as e:
                last_error = e
                if attempt < attempts - 1:
                    time.sleep(self.retry_delay * (attempt + 1))
                continue

        raise BrainConnectionError(
            f"{GENERIC_CONNECTION_MESSAGE} ({url}): {last_error}"
        ) from last_error

    def _api_error(
        self,
        method: str,
        path: str,
        response: requests.Response,
    ) -> BrainAPIError:
        """Build an error from a non-2xx response."""
        detail: list[ValidationError] | str | None = None
        try:
            data = response.json()
        except ValueError:
            data = None

        if isinstance(data, dict) and "detail" in data:
            raw = data["detail"]
            if isinstance(raw, list):
                try:
                    detail = HTTPValidationError.model_validate(data).detail
                except PydanticValidationError:
                    detail = str(raw)
            elif raw is not None:
                detail = str(raw)

        if isinstance(detail, list) and detail:
            reason = format_validation_detail(detail)
        elif isinstance(detail, str):
            reason = detail
        else:
            reason = response.text.strip() or response.reason or "no details"

        return BrainAPIError(
            f"{method} {path} failed with HTTP {response.status_code}: {reason}",
            status_code=response.status_code,
            detail=detail,
        )

    def _call(
        self,
        response_model: type[ResponseT],
        method: str,
        path: str,
        body: BaseModel | None = None,
    ) -> ResponseT:
        """Send a request and parse the body into ``response_model``."""
        data = self.request(method, path, body)
        try:
            return response_model.model_validate(data)
        except PydanticValidationError as e:
            raise BrainResponseError(
                f"Unexpected response from {method} {path}: {e}"
            ) from e

    def _call_dict(self, method: str, path: str) -> dict[str, Any]:
        data = self.request(method, path)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise BrainResponseError(f"Expected an object from {method} {path}")
        return data

    @staticmethod
    def _segment(value: str) -> str:
        """Quote a path parameter."""
        return quote(str(value), safe="")

    # -------------------------------------------------------------------------
    # Health
    # -------------------------------------------------------------------------

    def check_health(self) -> HealthResponse:
        """Liveness check. The backend returns 200 when healthy."""
        return self._call(HealthResponse, "GET", "/_healthz")

    # -------------------------------------------------------------------------
    # Connections
    # -------------------------------------------------------------------------

    def test_connection(self, request: ConnectionTestRequest) -> ConnectionTestResponse:
        """Test a database connection."""
        return self._call(ConnectionTestResponse, "POST", "/routes/test", request)

    def validate_connection(
        self,
        request: ValidateConnectionRequest,
    ) -> ValidateConnectionResponse:
        """Validate a connection with detailed diagnostics."""
        return self._call(ValidateConnectionResponse, "POST", "/routes/validate", request)

    def ping_server(self, request: ValidateConnectionRequest) -> ValidateConnectionResponse:
        """Quick reachability test."""
        return self._call(ValidateConnectionResponse, "POST", "/routes/ping", request)

    def get_connection_capabilities(self) -> ConnectionCapabilities:
        return self._call(ConnectionCapabilities, "GET", "/routes/connection-capabilities")

    def list_connection_profiles(self) -> ConnectionProfilesResponse:
        return self._call(ConnectionProfilesResponse, "GET", "/routes/profiles")

    def create_connection_profile(
        self,
        request: ConnectionProfileRequest,
    ) -> ConnectionProfileResponse:
        return self._call(ConnectionProfileResponse, "POST", "/routes/profiles", request)

    def get_connection_profile(self, profile_id: str) -> ConnectionProfileResponse:
        return self._call(
            ConnectionProfileResponse,
            "GET",
            f"/routes/profiles/{self._segment(profile_id)}",
        )

    def update_connection_profile(
        self,
        profile_id: str,
        request: ConnectionProfileRequest,
    ) -> ConnectionProfileResponse:
        return self._call(
            ConnectionProfileResponse,
            "PUT",
            f"/routes/profiles/{self._segment(profile_id)}",
            request,
        )

    def delete_connection_profile(self, profile_id: str) -> dict[str, Any]:
        return self._call_dict("DELETE", f"/routes/profiles/{self._segment(profile_id)}")

    # -------------------------------------------------------------------------
    # Applications
    # -------------------------------------------------------------------------

    def list_applications(self, request: ApplicationListRequest) -> ApplicationListResponse:
        """List one page of applications from the source database."""
        return self._call(ApplicationListResponse, "POST", "/routes/list", request)

    def get_application_details(
        self,
        request: ApplicationDetailsRequest,
    ) -> ApplicationDetailsResponse:
        return self._call(ApplicationDetailsResponse, "POST", "/routes/details", request)

    def select_applications(
        self,
        request: ApplicationBulkSelectionRequest,
    ) -> ApplicationSelectionResponse:
        """Mark applications for migration."""
        return self._call(ApplicationSelectionResponse, "POST", "/routes/select", request)

    def get_selected_applications(self, connection_profile_id: str) -> dict[str, Any]:
        return self._call_dict(
            "GET", f"/routes/selected/{self._segment(connection_profile_id)}"
        )

    def clear_selected_applications(self, connection_profile_id: str) -> dict[str, Any]:
        return self._call_dict(
            "DELETE", f"/routes/selected/{self._segment(connection_profile_id)}"
        )

    # -------------------------------------------------------------------------
    # Schema
    # -------------------------------------------------------------------------

    def get_database_schema(self, request: SchemaRequest) -> SchemaResponse:
        return self._call(
            SchemaResponse, "POST", "/routes/schema/get-database-schema", request
        )

    # -------------------------------------------------------------------------
    # Migration Jobs
    # -------------------------------------------------------------------------

    def start_migration_job(self, request: MigrationJobRequest) -> MigrationJobResponse:
        return self._call(MigrationJobResponse, "POST", "/routes/migration/start", request)

    def get_migration_status(self, job_id: str) -> MigrationJobStatusResponse:
        return self._call(
            MigrationJobStatusResponse,
            "GET",
            f"/routes/migration/status/{self._segment(job_id)}",
        )

    def get_migration_logs(self, request: MigrationLogsRequest) -> MigrationLogsResponse:
        return self._call(MigrationLogsResponse, "POST", "/routes/migration/logs", request)

    def list_migration_jobs(self) -> MigrationJobListResponse:
        return self._call(MigrationJobListResponse, "GET", "/routes/migration/list")

    def cancel_migration_job(self, job_id: str) -> MigrationJobResponse:
        """Request cancellation. Best effort; the backend decides."""
        return self._call(
            MigrationJobResponse,
            "POST",
            f"/routes/migration/cancel/{self._segment(job_id)}",
        )
