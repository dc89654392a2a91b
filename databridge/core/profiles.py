"""
Connection Profiles

Client-side checks and request building for connection forms.
"""

from typing import Literal

from databridge.contracts import (
    ConnectionProfile,
    ConnectionProfileRequest,
    ConnectionTestRequest,
    ValidateConnectionRequest,
)

AUTH_TYPES = ("windows", "sql")
PROFILE_TYPES = ("source", "destination")

ProfileType = Literal["source", "destination"]


class ProfileValidationError(ValueError):
    """Raised when a connection form is incomplete."""
    pass


def build_test_request(
    server: str,
    database: str,
    auth_type: str = "windows",
    username: str | None = None,
    password: str | None = None,
    port: int | None = None,
    trust_certificate: bool = True,
    timeout: int | None = None,
    test_query: str | None = None,
) -> ConnectionTestRequest:
    """
    Build a connection test request with only the fields in use.

    Credentials are sent only for SQL authentication and the port only
    when set. Passing ``timeout`` or ``test_query`` yields a
    ValidateConnectionRequest for the validate and ping routes.
    """
    if auth_type not in AUTH_TYPES:
        raise ProfileValidationError(
            f"Invalid auth type: {auth_type}. Use one of: {', '.join(AUTH_TYPES)}"
        )

    data: dict = {
        "server": server,
        "database": database,
        "auth_type": auth_type,
        "trust_certificate": trust_certificate,
    }
    if auth_type == "sql":
        data["username"] = username
        data["password"] = password
    if port:
        data["port"] = port

    if timeout is not None or test_query is not None:
        if timeout is not None:
            data["timeout"] = timeout
        if test_query:
            data["test_query"] = test_query
        return ValidateConnectionRequest(**data)

    return ConnectionTestRequest(**data)


def to_validate_request(
    request: ConnectionTestRequest,
    timeout: int | None = None,
    test_query: str | None = None,
) -> ValidateConnectionRequest:
    """
    Reuse a test request on the validate and ping routes.

    ``timeout`` and ``test_query`` override what the request carries.
    """
    data = request.model_dump(exclude_unset=True)
    if timeout is not None:
        data["timeout"] = timeout
    if test_query:
        data["test_query"] = test_query
    return ValidateConnectionRequest(**data)


def profile_to_test_request(profile: ConnectionProfile) -> ConnectionTestRequest:
    """Test request for a saved profile."""
    return build_test_request(
        server=profile.server,
        database=profile.database,
        auth_type=profile.auth_type,
        username=profile.username,
        password=profile.password,
        port=profile.port,
        trust_certificate=profile.trust_certificate,
    )


def validate_profile(request: ConnectionProfileRequest) -> None:
    """
    Check a profile before saving.

    Raises:
        ProfileValidationError: If required fields are missing
    """
    if not request.name or not request.server or not request.database:
        raise ProfileValidationError("Please fill in all required fields")

    if request.auth_type == "sql" and (not request.username or not request.password):
        raise ProfileValidationError(
            "Username and password are required for SQL Server authentication"
        )

    if request.type not in PROFILE_TYPES:
        raise ProfileValidationError(
            f"Invalid profile type: {request.type}. Use one of: {', '.join(PROFILE_TYPES)}"
        )


def profiles_by_type(
    profiles: list[ConnectionProfile],
    profile_type: ProfileType,
) -> list[ConnectionProfile]:
    if profile_type not in PROFILE_TYPES:
        raise ProfileValidationError(
            f"Invalid profile type: {profile_type}. Use one of: {', '.join(PROFILE_TYPES)}"
        )
    return [p for p in profiles if p.type == profile_type]


def connection_name(profiles: list[ConnectionProfile], profile_id: str) -> str:
    """Profile name for an ID, or the ID itself if unknown."""
    for profile in profiles:
        if profile.id == profile_id:
            return profile.name
    return profile_id
