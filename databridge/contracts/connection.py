"""
Connection Contracts

Requests and responses for testing, validating and saving
SQL Server connection profiles.
"""

from typing import Any

from pydantic import BaseModel, Field


# ============================================================================
# Testing & Validation
# ============================================================================

class ConnectionTestRequest(BaseModel):
    """Request to test a database connection."""
    server: str
    database: str
    auth_type: str
    username: str | None = None
    password: str | None = None
    port: int | None = None
    trust_certificate: bool = False


class ConnectionTestResponse(BaseModel):
    """Result of a connection test."""
    success: bool
    message: str


class ValidateConnectionRequest(ConnectionTestRequest):
    """Request for a detailed connection diagnosis (also used by ping)."""
    timeout: int | None = 30
    test_query: str | None = None


class ValidateConnectionResponse(BaseModel):
    """Detailed connection diagnosis."""
    success: bool
    message: str
    error_type: str | None = None
    details: dict[str, Any] | None = None
    server_info: dict[str, str] | None = None
    connection_time_ms: float | None = None


class ConnectionCapabilities(BaseModel):
    """Authentication modes and ODBC drivers the backend supports."""
    supports_windows_auth: bool = False
    supports_sql_auth: bool = True
    available_drivers: list[str] = Field(default_factory=list)
    preferred_driver: str | None = None


# ============================================================================
# Profiles
# ============================================================================

class ConnectionProfileRequest(BaseModel):
    """Payload to create or update a saved connection profile."""
    name: str
    description: str | None = None
    server: str
    database: str
    auth_type: str
    username: str | None = None
    password: str | None = None
    port: int | None = None
    trust_certificate: bool = False
    type: str


class ConnectionProfile(ConnectionProfileRequest):
    """A saved connection profile."""
    id: str
    created_at: str
    updated_at: str


class ConnectionProfileResponse(BaseModel):
    """Single profile response."""
    profile: ConnectionProfile


class ConnectionProfilesResponse(BaseModel):
    """List of saved profiles."""
    profiles: list[ConnectionProfile]
