"""
Tests for connection profile helpers.
"""

import pytest

from databridge.contracts import (
    ConnectionProfile,
    ConnectionProfileRequest,
    ConnectionTestRequest,
    ValidateConnectionRequest,
)
from databridge.core.profiles import (
    ProfileValidationError,
    build_test_request,
    connection_name,
    profile_to_test_request,
    profiles_by_type,
    to_validate_request,
    validate_profile,
)


def make_profile(profile_id="p1", name="CRM", profile_type="source", **overrides):
    data = {
        "id": profile_id,
        "name": name,
        "server": "sql01",
        "database": "crm",
        "auth_type": "windows",
        "type": profile_type,
        "created_at": "2024-01-01",
        "updated_at": "2024-01-01",
    }
    data.update(overrides)
    return ConnectionProfile(**data)


class TestBuildTestRequest:
    """Tests for build_test_request function."""

    def test_windows_auth_omits_credentials(self):
        request = build_test_request("sql01", "crm", "windows", username="u", password="p")

        payload = request.model_dump(exclude_unset=True)
        assert payload == {
            "server": "sql01",
            "database": "crm",
            "auth_type": "windows",
            "trust_certificate": True,
        }
        assert type(request) is ConnectionTestRequest

    def test_sql_auth_with_port(self):
        request = build_test_request("sql01", "crm", "sql", username="sa", password="pw", port=1433)

        assert request.username == "sa"
        assert request.password == "pw"
        assert request.port == 1433

    def test_zero_port_omitted(self):
        request = build_test_request("sql01", "crm", port=0)
        assert "port" not in request.model_dump(exclude_unset=True)

    def test_validate_request_with_timeout(self):
        request = build_test_request("sql01", "crm", timeout=10, test_query="SELECT 1")

        assert isinstance(request, ValidateConnectionRequest)
        assert request.timeout == 10
        assert request.test_query == "SELECT 1"

    def test_invalid_auth_type(self):
        with pytest.raises(ProfileValidationError):
            build_test_request("sql01", "crm", "kerberos")

    def test_to_validate_request(self):
        request = to_validate_request(build_test_request("sql01", "crm"))

        assert isinstance(request, ValidateConnectionRequest)
        assert "timeout" not in request.model_dump(exclude_unset=True)

    def test_to_validate_request_overrides(self):
        base = build_test_request("sql01", "crm", timeout=5)

        request = to_validate_request(base, timeout=60, test_query="SELECT 1")

        assert request.timeout == 60
        assert request.test_query == "SELECT 1"
        assert request.server == "sql01"

    def test_profile_to_test_request(self):
        profile = make_profile(auth_type="sql", username="sa", password="pw", trust_certificate=False)

        request = profile_to_test_request(profile)

        assert request.username == "sa"
        assert request.trust_certificate is False


class TestValidateProfile:
    """Tests for validate_profile function."""

    def make_request(self, **overrides):
        data = {
            "name": "CRM",
            "server": "sql01",
            "database": "crm",
            "auth_type": "windows",
            "type": "source",
        }
        data.update(overrides)
        return ConnectionProfileRequest(**data)

    def test_valid(self):
        validate_profile(self.make_request())

    def test_missing_required(self):
        with pytest.raises(ProfileValidationError, match="Please fill in all required fields"):
            validate_profile(self.make_request(server=""))

    def test_sql_auth_needs_credentials(self):
        with pytest.raises(ProfileValidationError, match="Username and password are required"):
            validate_profile(self.make_request(auth_type="sql", username="sa"))

    def test_invalid_type(self):
        with pytest.raises(ProfileValidationError, match="Invalid profile type"):
            validate_profile(self.make_request(type="archive"))


class TestProfileLookups:
    """Tests for profile list helpers."""

    def test_profiles_by_type(self):
        profiles = [make_profile("p1"), make_profile("p2", profile_type="destination")]

        assert [p.id for p in profiles_by_type(profiles, "destination")] == ["p2"]

    def test_profiles_by_type_invalid(self):
        with pytest.raises(ProfileValidationError, match="Invalid profile type"):
            profiles_by_type([make_profile("p1")], "archive")

    def test_connection_name(self):
        profiles = [make_profile("p1", name="CRM Prod")]

        assert connection_name(profiles, "p1") == "CRM Prod"
        assert connection_name(profiles, "unknown") == "unknown"
