"""
Tests for the command line interface.
"""

from unittest.mock import MagicMock

import pandas as pd
import pytest
from rich.console import Console
from typer.testing import CliRunner

from databridge import cli
from databridge.cli import app
from databridge.client import BrainConnectionError
from databridge.contracts import (
    ApplicationDetails,
    ApplicationListResponse,
    ApplicationSelectionResponse,
    ConnectionProfile,
    ConnectionProfilesResponse,
    ConnectionTestResponse,
    DatabaseSchema,
    HealthResponse,
    MigrationJobListResponse,
    MigrationJobResponse,
    MigrationLogsResponse,
    SchemaResponse,
    ValidateConnectionResponse,
)


def make_profile(profile_id, name, profile_type):
    return ConnectionProfile(
        id=profile_id,
        name=name,
        server="sql01",
        database="crm",
        auth_type="windows",
        type=profile_type,
        created_at="2024-01-01",
        updated_at="2024-01-01",
    )


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def client(monkeypatch):
    """Replace BrainClient with a mock and record how it was built."""
    fake = MagicMock()
    fake.__enter__.return_value = fake
    fake.created_with = []

    def factory(**kwargs):
        fake.created_with.append(kwargs)
        return fake

    monkeypatch.setattr(cli, "BrainClient", factory)
    return fake


@pytest.fixture
def plan_file(tmp_path):
    path = tmp_path / "plan.yaml"
    path.write_text(
        "source_connection_id: src-1\n"
        "destination_connection_id: dst-1\n"
        "application_ids: [app-1]\n"
        "description: Nightly CRM\n"
        "table_mappings:\n"
        "  - source_table: Users\n"
        "    source_columns: [id, name]\n"
        "    destination_table: Users\n"
        "    destination_columns: [id, full_name]\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "databridge.yaml"
    path.write_text(
        "api:\n"
        "  base_url: http://brain.test\n"
        "  token: secret\n"
        "polling:\n"
        "  status_interval: 0.01\n"
        "logging:\n"
        f"  output_dir: {(tmp_path / 'logs').as_posix()}\n",
        encoding="utf-8",
    )
    return path


class TestGeneralCommands:
    """Tests for health, version and init commands."""

    def test_version(self, runner):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "v1.0.0" in result.output

    def test_health(self, runner, client):
        client.check_health.return_value = HealthResponse(status="ok")

        result = runner.invoke(app, ["--base-url", "http://brain.test", "health"])

        assert result.exit_code == 0
        assert "ok" in result.output
        assert client.created_with[0]["base_url"] == "http://brain.test"

    def test_config_file_used(self, runner, client, config_file):
        client.check_health.return_value = HealthResponse(status="ok")

        result = runner.invoke(app, ["-c", str(config_file), "health"])

        assert result.exit_code == 0
        assert client.created_with[0]["token"] == "secret"

    def test_missing_config(self, runner, client, tmp_path):
        result = runner.invoke(app, ["-c", str(tmp_path / "nope.yaml"), "health"])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_connection_error(self, runner, client):
        client.check_health.side_effect = BrainConnectionError("refused")

        result = runner.invoke(app, ["health"])

        assert result.exit_code == 1
        assert "Error connecting to server" in result.output

    def test_init_plan(self, runner, tmp_path):
        output = tmp_path / "plan.yaml"

        result = runner.invoke(app, ["init-plan", str(output)])

        assert result.exit_code == 0
        assert output.exists()


class TestConnectionCommands:
    """Tests for connection testing commands."""

    def test_requires_server(self, runner, client):
        result = runner.invoke(app, ["test-connection"])

        assert result.exit_code == 1
        assert "required" in result.output
        client.test_connection.assert_not_called()

    def test_success(self, runner, client):
        client.test_connection.return_value = ConnectionTestResponse(success=True, message="Connected")

        result = runner.invoke(app, ["test-connection", "-s", "sql01", "-d", "crm"])

        assert result.exit_code == 0
        assert "Connected" in result.output
        request = client.test_connection.call_args.args[0]
        assert request.server == "sql01"
        assert request.auth_type == "windows"
        assert "username" not in request.model_dump(exclude_unset=True)

    def test_failure_exit_code(self, runner, client):
        client.test_connection.return_value = ConnectionTestResponse(success=False, message="Login failed")

        result = runner.invoke(app, ["test-connection", "-s", "sql01", "-d", "crm"])

        assert result.exit_code == 1
        assert "Login failed" in result.output

    def test_validate_sends_timeout_and_query(self, runner, client):
        client.validate_connection.return_value = ValidateConnectionResponse(
            success=True, message="Valid", connection_time_ms=12.0,
        )

        result = runner.invoke(app, [
            "validate-connection", "-s", "sql01", "-d", "crm", "-t", "10", "-q", "SELECT 1",
        ])

        assert result.exit_code == 0
        request = client.validate_connection.call_args.args[0]
        assert request.timeout == 10
        assert request.test_query == "SELECT 1"
        assert request.server == "sql01"


class TestProfileCommands:
    """Tests for profile commands."""

    def test_list_by_type(self, runner, client):
        client.list_connection_profiles.return_value = ConnectionProfilesResponse(profiles=[
            make_profile("p1", "CRM Source", "source"),
            make_profile("p2", "Warehouse", "destination"),
        ])

        result = runner.invoke(app, ["profiles", "list", "--type", "destination"])

        assert result.exit_code == 0
        assert "Warehouse" in result.output
        assert "CRM Source" not in result.output

    def test_list_invalid_type(self, runner, client):
        client.list_connection_profiles.return_value = ConnectionProfilesResponse(profiles=[])

        result = runner.invoke(app, ["profiles", "list", "--type", "foo"])

        assert result.exit_code == 1
        assert "Invalid profile type" in result.output

    def test_create_requires_sql_credentials(self, runner, client):
        result = runner.invoke(app, [
            "profiles", "create",
            "--name", "CRM", "--type", "source",
            "-s", "sql01", "-d", "crm", "--auth", "sql", "-u", "sa",
        ])

        assert result.exit_code == 1
        assert "Username and password are required" in result.output
        client.create_connection_profile.assert_not_called()

    def test_delete_with_yes(self, runner, client):
        client.delete_connection_profile.return_value = {"success": True, "message": "Profile deleted"}

        result = runner.invoke(app, ["profiles", "delete", "p1", "--yes"])

        assert result.exit_code == 0
        assert "Profile deleted" in result.output
        client.delete_connection_profile.assert_called_once_with("p1")

    def test_delete_aborted(self, runner, client):
        result = runner.invoke(app, ["profiles", "delete", "p1"], input="n\n")

        assert result.exit_code == 0
        client.delete_connection_profile.assert_not_called()


class TestApplicationCommands:
    """Tests for application commands."""

    def test_list_shows_page_links(self, runner, client):
        client.list_applications.return_value = ApplicationListResponse(
            applications=[ApplicationDetails(application_id="a1", application_name="CRM")],
            total_count=500,
            page=5,
            page_size=50,
            total_pages=10,
        )

        result = runner.invoke(app, ["apps", "list", "p1", "--page", "5", "--search", "crm"])

        assert result.exit_code == 0
        assert "Page 5 of 10" in result.output
        assert "1 … 4 [5] 6 … 10" in result.output
        request = client.list_applications.call_args.args[0]
        assert request.page == 5
        assert request.search_term == "crm"

    @pytest.mark.parametrize("page", ["0", "-2"])
    def test_list_rejects_page_below_one(self, runner, client, page):
        result = runner.invoke(app, ["apps", "list", "p1", "--page", page])

        assert result.exit_code == 1
        assert "Invalid page" in result.output
        client.list_applications.assert_not_called()

    def test_list_page_out_of_range(self, runner, client):
        client.list_applications.return_value = ApplicationListResponse(
            applications=[], total_count=100, page=12, page_size=50, total_pages=2,
        )

        result = runner.invoke(app, ["apps", "list", "p1", "--page", "12"])

        assert result.exit_code == 1
        assert "Page 12 is out of range (1-2)" in result.output

    def test_select(self, runner, client):
        client.select_applications.return_value = ApplicationSelectionResponse(
            selected_count=2, success=True, message="Selected",
        )

        result = runner.invoke(app, ["apps", "select", "p1", "a1", "a2"])

        assert result.exit_code == 0
        request = client.select_applications.call_args.args[0]
        assert request.application_ids == ["a1", "a2"]
        assert request.select_all is False

    def test_select_failure(self, runner, client):
        client.select_applications.return_value = ApplicationSelectionResponse(
            selected_count=0, success=False, message="Profile locked",
        )

        result = runner.invoke(app, ["apps", "select", "p1", "a1"])

        assert result.exit_code == 1
        assert "Profile locked" in result.output


class TestSchemaCommands:
    """Tests for schema commands."""

    @pytest.fixture
    def schema_response(self):
        return SchemaResponse(db_schema=DatabaseSchema.model_validate({
            "tables": [
                {"name": "Users", "columns": [{"name": "id", "data_type": "int"}]},
                {"name": "Orders", "columns": [{"name": "id", "data_type": "int"}]},
            ],
        }))

    def test_unknown_table(self, runner, client, schema_response):
        client.get_database_schema.return_value = schema_response

        result = runner.invoke(app, ["schema", "show", "p1", "--table", "Missing"])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_schema_failure(self, runner, client):
        client.get_database_schema.return_value = SchemaResponse(success=False, message="Cannot connect")

        result = runner.invoke(app, ["schema", "show", "p1"])

        assert result.exit_code == 1
        assert "Cannot connect" in result.output

    def test_table_keys_listed(self, runner, client):
        client.get_database_schema.return_value = SchemaResponse(db_schema=DatabaseSchema.model_validate({
            "tables": [{"name": "Orders", "columns": [
                {"name": "id", "data_type": "int", "is_primary_key": True},
                {"name": "note", "data_type": "nvarchar"},
                {"name": "user_id", "data_type": "int", "is_foreign_key": True},
            ]}],
        }))

        result = runner.invoke(app, ["schema", "show", "p1", "--table", "Orders"])

        assert result.exit_code == 0
        assert "Keys: id, user_id" in result.output

    def test_mappings_written(self, runner, client, schema_response, tmp_path):
        client.get_database_schema.return_value = schema_response
        output = tmp_path / "mappings.yaml"

        result = runner.invoke(app, ["schema", "mappings", "p1", "-t", "Users", "-o", str(output)])

        assert result.exit_code == 0
        assert "source_table: Users" in output.read_text(encoding="utf-8")


class TestMigrationCommands:
    """Tests for migration job commands."""

    def test_start(self, runner, client, plan_file):
        client.start_migration_job.return_value = MigrationJobResponse(
            job_id="job-42", status="success", message="Started",
        )

        result = runner.invoke(app, ["migrate", "start", str(plan_file), "--yes"])

        assert result.exit_code == 0
        assert "job-42" in result.output
        request = client.start_migration_job.call_args.args[0]
        assert request.description == "Nightly CRM"
        assert request.table_mappings[0].destination_columns == ["id", "full_name"]

    def test_start_rejected(self, runner, client, plan_file):
        client.start_migration_job.return_value = MigrationJobResponse(
            job_id="", status="error", message="Source offline",
        )

        result = runner.invoke(app, ["migrate", "start", str(plan_file), "--yes"])

        assert result.exit_code == 1
        assert "Source offline" in result.output

    def test_start_empty_mapping_sheet(self, runner, client, tmp_path):
        sheet = tmp_path / "mappings.csv"
        sheet.write_text("", encoding="utf-8")
        plan = tmp_path / "plan.yaml"
        plan.write_text(
            "source_connection_id: src-1\n"
            "destination_connection_id: dst-1\n"
            "application_ids: [app-1]\n"
            f"mappings_file: {sheet.as_posix()}\n",
            encoding="utf-8",
        )

        result = runner.invoke(app, ["migrate", "start", str(plan), "--yes"])

        assert result.exit_code == 1
        assert "Mapping file is empty" in result.output
        client.start_migration_job.assert_not_called()

    def test_start_missing_plan(self, runner, client, tmp_path):
        result = runner.invoke(app, ["migrate", "start", str(tmp_path / "nope.yaml"), "--yes"])

        assert result.exit_code == 1
        client.start_migration_job.assert_not_called()

    def test_status(self, runner, client, make_status_response, table_statuses):
        client.get_migration_status.return_value = make_status_response(
            "RUNNING", 55.0, table_statuses=table_statuses,
        )

        result = runner.invoke(app, ["migrate", "status", "job-1"])

        assert result.exit_code == 0
        assert "55.0%" in result.output
        assert "Orders" in result.output

    def test_list_filters(self, runner, client, make_job):
        client.list_migration_jobs.return_value = MigrationJobListResponse(
            jobs=[make_job("job-a", "RUNNING"), make_job("job-b", "FAILED")],
            total_count=2,
        )

        result = runner.invoke(app, ["migrate", "list", "--status", "failed"])

        assert result.exit_code == 0
        assert "job-b" in result.output
        assert "job-a" not in result.output

    def test_list_shows_profile_names(self, runner, client, make_job, monkeypatch):
        monkeypatch.setattr(cli, "console", Console(width=200))
        client.list_connection_profiles.return_value = ConnectionProfilesResponse(profiles=[
            make_profile("src-1", "CRM Source", "source"),
        ])
        client.list_migration_jobs.return_value = MigrationJobListResponse(
            jobs=[make_job("job-a", source_connection_id="src-1", destination_connection_id="dst-9")],
            total_count=1,
        )

        result = runner.invoke(app, ["migrate", "list"])

        assert result.exit_code == 0
        assert "CRM Source" in result.output
        assert "dst-9" in result.output

    def test_list_invalid_sort(self, runner, client):
        result = runner.invoke(app, ["migrate", "list", "--sort-by", "owner"])

        assert result.exit_code == 1

    def test_export(self, runner, client, make_job, tmp_path):
        client.list_migration_jobs.return_value = MigrationJobListResponse(
            jobs=[make_job("job-a"), make_job("job-b")], total_count=2,
        )
        output = tmp_path / "jobs.csv"

        result = runner.invoke(app, ["migrate", "export", str(output)])

        assert result.exit_code == 0
        assert len(pd.read_csv(output)) == 2

    def test_cancel(self, runner, client):
        client.cancel_migration_job.return_value = MigrationJobResponse(
            job_id="job-1", status="success", message="Cancellation requested",
        )

        result = runner.invoke(app, ["migrate", "cancel", "job-1", "--yes"])

        assert result.exit_code == 0
        client.cancel_migration_job.assert_called_once_with("job-1")

    def test_watch_completed(self, runner, client, config_file, tmp_path, make_status_response, make_log):
        client.get_migration_status.return_value = make_status_response("COMPLETED", 100.0)
        client.get_migration_logs.return_value = MigrationLogsResponse(
            job_id="job-1", logs=[make_log("Done")], total_count=1,
        )

        result = runner.invoke(app, ["-c", str(config_file), "migrate", "watch", "job-1"])

        assert result.exit_code == 0
        assert "Migration completed" in result.output
        assert (tmp_path / "logs" / "job_job-1_summary.txt").exists()
        assert list((tmp_path / "logs").glob("job_job-1_*.json"))

    def test_watch_failed_exit_code(self, runner, client, config_file, make_status_response):
        client.get_migration_status.return_value = make_status_response("FAILED", 20.0)
        client.get_migration_logs.return_value = MigrationLogsResponse(
            job_id="job-1", logs=[], total_count=0,
        )

        result = runner.invoke(app, ["-c", str(config_file), "migrate", "watch", "job-1", "--no-export"])

        assert result.exit_code == 1
        assert "Migration failed" in result.output

    def test_watch_connection_error(self, runner, client, config_file):
        client.get_migration_status.side_effect = BrainConnectionError("refused")
        client.get_migration_logs.side_effect = BrainConnectionError("refused")

        result = runner.invoke(app, ["-c", str(config_file), "migrate", "watch", "job-1"])

        assert result.exit_code == 1
        assert "Error connecting to server" in result.output
