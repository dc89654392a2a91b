"""
CLI Entry Point

Typer-based command line interface for the DataBridge Pro backend.
"""

import time
from typing import Any, Iterator, List, Optional
from contextlib import contextmanager

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.panel import Panel

from databridge.client import (
    BrainAPIError,
    BrainClient,
    BrainConnectionError,
    BrainResponseError,
    GENERIC_CONNECTION_MESSAGE,
)
from databridge.config import ConfigLoader, DataBridgeConfig
from databridge.contracts import (
    ApplicationDetailsRequest,
    ConnectionProfileRequest,
    ConnectionProfile,
    ConnectionTestRequest,
    MigrationJobStatus,
    MigrationLogsRequest,
    SchemaRequest,
    SortOrder,
)
from databridge.core.dashboard import (
    DashboardStats,
    JobFilter,
    export_jobs,
    filter_jobs,
)
from databridge.core.logger import MigrationLogger
from databridge.core.mapping import MappingError, MappingReader, mappings_from_schema
from databridge.core.monitor import JobMonitor
from databridge.core.pagination import Page, can_change_page, render_links
from databridge.core.profiles import (
    ProfileValidationError,
    build_test_request,
    connection_name,
    profile_to_test_request,
    profiles_by_type,
    to_validate_request,
    validate_profile,
)
from databridge.core.schema_view import (
    filter_tables,
    find_table,
    format_size,
    key_columns,
    schema_summary,
    table_relations,
)
from databridge.core.selection import ApplicationSelection, SortState
from databridge.core.status import (
    MigrationStatus,
    is_success,
    response_message,
    status_color,
)


# Initialize Typer app
app = typer.Typer(
    name="databridge",
    help="DataBridge Pro client - manage connections, applications and SQL Server migration jobs",
    add_completion=False,
)
profiles_app = typer.Typer(help="Manage saved connection profiles", no_args_is_help=True)
apps_app = typer.Typer(help="Browse and select source applications", no_args_is_help=True)
schema_app = typer.Typer(help="Inspect database schemas", no_args_is_help=True)
migrate_app = typer.Typer(help="Start, monitor and manage migration jobs", no_args_is_help=True)

app.add_typer(profiles_app, name="profiles")
app.add_typer(apps_app, name="apps")
app.add_typer(schema_app, name="schema")
app.add_typer(migrate_app, name="migrate")

console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="Path to configuration file (YAML or JSON)"),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Backend URL (overrides config and DATABRIDGE_API_URL)"),
):
    """
    DataBridge Pro client.
    """
    ctx.obj = {"config_path": config_path, "base_url": base_url}


# =============================================================================
# Helpers
# =============================================================================

def fail(message: str) -> None:
    """Print an error and exit with status 1."""
    console.print(f"[red]Error:[/] {escape(message)}")
    raise typer.Exit(1)


def load_settings(ctx: typer.Context) -> DataBridgeConfig:
    """Load configuration once per invocation."""
    state = ctx.ensure_object(dict)
    if "settings" not in state:
        loader = ConfigLoader()
        try:
            state["settings"] = loader.load_or_default(
                state.get("config_path"),
                base_url=state.get("base_url"),
            )
        except FileNotFoundError:
            console.print(f"[red]Error:[/] Configuration file not found: {state.get('config_path')}")
            raise typer.Exit(1)
        except ValueError as e:
            console.print(f"[red]Configuration error:[/] {escape(str(e))}")
            raise typer.Exit(1)
    return state["settings"]


def create_client(ctx: typer.Context) -> BrainClient:
    """Create a backend client from configuration."""
    settings = load_settings(ctx)
    return BrainClient(
        base_url=settings.api.base_url,
        token=settings.api.token,
        timeout=settings.api.timeout,
        retry_attempts=settings.api.retry_attempts,
        retry_delay=settings.api.retry_delay,
        headers=settings.api.headers,
    )


@contextmanager
def api_errors() -> Iterator[None]:
    """Turn client errors into a red message and exit code 1."""
    try:
        yield
    except BrainConnectionError as e:
        console.print(f"[red]{GENERIC_CONNECTION_MESSAGE}[/]")
        console.print(f"[dim]{escape(str(e))}[/]")
        raise typer.Exit(1)
    except BrainAPIError as e:
        console.print(f"[red]Request failed:[/] {escape(str(e))}")
        raise typer.Exit(1)
    except BrainResponseError as e:
        console.print(f"[red]Unexpected response:[/] {escape(str(e))}")
        raise typer.Exit(1)


def require_success(response: Any, default: str) -> None:
    """Exit with the server message when a body reports failure."""
    if not is_success(response):
        fail(response_message(response, default))


def colored_status(status: str) -> str:
    color = status_color(status)
    return f"[{color}]{status}[/]"


def print_job(job: MigrationJobStatus) -> None:
    """Render a job with its table progress."""
    lines = [
        f"[bold]Job:[/] {job.job_id}",
        f"Status: {colored_status(job.status)}",
        f"Progress: {job.progress_percentage:.1f}%",
        f"Source: {job.source_connection_id}",
        f"Destination: {job.destination_connection_id}",
        f"Applications: {', '.join(job.application_ids) or '-'}",
        f"Started: {job.start_time or '-'}",
        f"Ended: {job.end_time or '-'}",
    ]
    if job.estimated_completion_time:
        lines.append(f"Estimated completion: {job.estimated_completion_time}")
    if job.error_message:
        lines.append(f"[red]Error:[/] {escape(job.error_message)}")
    console.print(Panel("\n".join(lines), title="Migration Job"))

    if not job.table_statuses:
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Table", style="cyan")
    table.add_column("Status")
    table.add_column("Total", justify="right")
    table.add_column("Processed", justify="right")
    table.add_column("Succeeded", justify="right", style="green")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Error")

    for ts in job.table_statuses:
        table.add_row(
            ts.table_name,
            colored_status(ts.status),
            f"{ts.records_total:,}",
            f"{ts.records_processed:,}",
            f"{ts.records_succeeded:,}",
            f"{ts.records_failed:,}",
            escape(ts.error_message or ""),
        )
    console.print(table)


# =============================================================================
# General
# =============================================================================

@app.command()
def health(ctx: typer.Context):
    """
    Check that the backend is alive.
    """
    settings = load_settings(ctx)
    with api_errors(), create_client(ctx) as client:
        result = client.check_health()
    console.print(f"[green]✓[/] {settings.api.base_url} is {escape(result.status)}")


@app.command()
def capabilities(ctx: typer.Context):
    """
    Show authentication modes and ODBC drivers supported by the backend.
    """
    with api_errors(), create_client(ctx) as client:
        caps = client.get_connection_capabilities()

    def yes_no(value: bool) -> str:
        return "[green]yes[/]" if value else "[red]no[/]"

    console.print(f"\n[bold]Connection capabilities[/]")
    console.print(f"  Windows authentication: {yes_no(caps.supports_windows_auth)}")
    console.print(f"  SQL Server authentication: {yes_no(caps.supports_sql_auth)}")
    console.print(f"  Preferred driver: {caps.preferred_driver or '-'}")

    if caps.available_drivers:
        console.print(f"\n  [bold]Available drivers:[/]")
        for driver in caps.available_drivers:
            marker = " [green](preferred)[/]" if driver == caps.preferred_driver else ""
            console.print(f"    • {driver}{marker}")


@app.command("init-config")
def init_config(
    output: str = typer.Argument("databridge.yaml", help="Output configuration file path"),
):
    """
    Create an example configuration file.
    """
    ConfigLoader.create_example_config(output)
    console.print(f"[green]Example configuration created:[/] {output}")
    console.print("\nEdit this file and set the following environment variables:")
    console.print("  - DATABRIDGE_API_URL")
    console.print("  - DATABRIDGE_TOKEN (optional)")


@app.command("init-plan")
def init_plan(
    output: str = typer.Argument("migration-plan.yaml", help="Output plan file path"),
):
    """
    Create an example migration plan.
    """
    ConfigLoader.create_example_plan(output)
    console.print(f"[green]Example migration plan created:[/] {output}")
    console.print("\nFill in the profile and application IDs, then run:")
    console.print(f"  databridge migrate start {output}")


@app.command()
def version():
    """Show version information."""
    from databridge import __version__
    console.print(f"DataBridge Pro client v{__version__}")


# =============================================================================
# Connections
# =============================================================================

def connection_request(
    ctx: typer.Context,
    profile_id: Optional[str],
    server: Optional[str],
    database: Optional[str],
    auth_type: str,
    username: Optional[str],
    password: Optional[str],
    port: Optional[int],
    trust_certificate: bool,
) -> ConnectionTestRequest:
    """Build a test request from a saved profile or from options."""
    if profile_id:
        with api_errors(), create_client(ctx) as client:
            profile = client.get_connection_profile(profile_id).profile
        console.print(f"Using profile [cyan]{escape(profile.name)}[/] ({profile.server}/{profile.database})")
        return profile_to_test_request(profile)

    if not server or not database:
        fail("--server and --database are required unless --profile is given")

    try:
        return build_test_request(
            server=server,
            database=database,
            auth_type=auth_type,
            username=username,
            password=password,
            port=port,
            trust_certificate=trust_certificate,
        )
    except ProfileValidationError as e:
        fail(str(e))


@app.command("test-connection")
def test_connection(
    ctx: typer.Context,
    profile_id: Optional[str] = typer.Option(None, "--profile", help="Test a saved connection profile"),
    server: Optional[str] = typer.Option(None, "--server", "-s", help="SQL Server host"),
    database: Optional[str] = typer.Option(None, "--database", "-d", help="Database name"),
    auth_type: str = typer.Option("windows", "--auth", "-a", help="Authentication: windows or sql"),
    username: Optional[str] = typer.Option(None, "--username", "-u", help="SQL login"),
    password: Optional[str] = typer.Option(None, "--password", "-p", envvar="DATABRIDGE_DB_PASSWORD", help="SQL password"),
    port: Optional[int] = typer.Option(None, "--port", help="Server port"),
    trust_certificate: bool = typer.Option(True, "--trust-certificate/--no-trust-certificate", help="Trust the server certificate"),
):
    """
    Test a SQL Server connection through the backend.
    """
    request = connection_request(
        ctx, profile_id, server, database, auth_type, username, password, port, trust_certificate,
    )
    with api_errors(), create_client(ctx) as client:
        result = client.test_connection(request)

    if result.success:
        console.print(f"[green]✓ {escape(result.message)}[/]")
    else:
        console.print(f"[red]✗ {escape(result.message)}[/]")
        raise typer.Exit(1)


def print_validation(result: Any) -> None:
    """Render a validate or ping result."""
    if result.success:
        console.print(f"[green]✓ {escape(result.message)}[/]")
    else:
        console.print(f"[red]✗ {escape(result.message)}[/]")
        if result.error_type:
            console.print(f"  Error type: [yellow]{escape(result.error_type)}[/]")

    if result.connection_time_ms is not None:
        console.print(f"  Connection time: {result.connection_time_ms:.0f} ms")

    if result.server_info:
        console.print(f"\n  [bold]Server info:[/]")
        for key, value in result.server_info.items():
            console.print(f"    {key}: {escape(str(value))}")

    if result.details:
        console.print(f"\n  [bold]Details:[/]")
        for key, value in result.details.items():
            console.print(f"    {key}: {escape(str(value))}")

    if not result.success:
        raise typer.Exit(1)


@app.command("validate-connection")
def validate_connection(
    ctx: typer.Context,
    profile_id: Optional[str] = typer.Option(None, "--profile", help="Validate a saved connection profile"),
    server: Optional[str] = typer.Option(None, "--server", "-s", help="SQL Server host"),
    database: Optional[str] = typer.Option(None, "--database", "-d", help="Database name"),
    auth_type: str = typer.Option("windows", "--auth", "-a", help="Authentication: windows or sql"),
    username: Optional[str] = typer.Option(None, "--username", "-u", help="SQL login"),
    password: Optional[str] = typer.Option(None, "--password", "-p", envvar="DATABRIDGE_DB_PASSWORD", help="SQL password"),
    port: Optional[int] = typer.Option(None, "--port", help="Server port"),
    trust_certificate: bool = typer.Option(True, "--trust-certificate/--no-trust-certificate", help="Trust the server certificate"),
    timeout: int = typer.Option(30, "--timeout", "-t", help="Connection timeout in seconds"),
    test_query: Optional[str] = typer.Option(None, "--query", "-q", help="Query to run after connecting"),
):
    """
    Run a detailed connection diagnosis.
    """
    request = connection_request(
        ctx, profile_id, server, database, auth_type, username, password, port, trust_certificate,
    )
    with api_errors(), create_client(ctx) as client:
        result = client.validate_connection(to_validate_request(request, timeout, test_query))
    print_validation(result)


@app.command()
def ping(
    ctx: typer.Context,
    profile_id: Optional[str] = typer.Option(None, "--profile", help="Ping the server of a saved profile"),
    server: Optional[str] = typer.Option(None, "--server", "-s", help="SQL Server host"),
    database: Optional[str] = typer.Option(None, "--database", "-d", help="Database name"),
    auth_type: str = typer.Option("windows", "--auth", "-a", help="Authentication: windows or sql"),
    username: Optional[str] = typer.Option(None, "--username", "-u", help="SQL login"),
    password: Optional[str] = typer.Option(None, "--password", "-p", envvar="DATABRIDGE_DB_PASSWORD", help="SQL password"),
    port: Optional[int] = typer.Option(None, "--port", help="Server port"),
    trust_certificate: bool = typer.Option(True, "--trust-certificate/--no-trust-certificate", help="Trust the server certificate"),
    timeout: int = typer.Option(30, "--timeout", "-t", help="Connection timeout in seconds"),
):
    """
    Check that a SQL Server answers.
    """
    request = connection_request(
        ctx, profile_id, server, database, auth_type, username, password, port, trust_certificate,
    )
    with api_errors(), create_client(ctx) as client:
        result = client.ping_server(to_validate_request(request, timeout))
    print_validation(result)


# =============================================================================
# Profiles
# =============================================================================

@profiles_app.command("list")
def profiles_list(
    ctx: typer.Context,
    profile_type: Optional[str] = typer.Option(None, "--type", help="Only source or destination profiles"),
):
    """
    List saved connection profiles.
    """
    with api_errors(), create_client(ctx) as client:
        profiles = client.list_connection_profiles().profiles

    if profile_type:
        try:
            profiles = profiles_by_type(profiles, profile_type)
        except ProfileValidationError as e:
            fail(str(e))

    if not profiles:
        console.print("[yellow]No connection profiles found[/]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Server")
    table.add_column("Database")
    table.add_column("Auth")
    table.add_column("Updated")

    for profile in profiles:
        table.add_row(
            profile.id,
            escape(profile.name),
            profile.type,
            profile.server + (f":{profile.port}" if profile.port else ""),
            profile.database,
            profile.auth_type,
            profile.updated_at,
        )

    console.print(table)
    console.print(f"\n{len(profiles)} profile(s)")


@profiles_app.command("show")
def profiles_show(
    ctx: typer.Context,
    profile_id: str = typer.Argument(..., help="Profile ID"),
):
    """
    Show a saved connection profile.
    """
    with api_errors(), create_client(ctx) as client:
        profile = client.get_connection_profile(profile_id).profile

    console.print(Panel(
        f"[bold]{escape(profile.name)}[/]\n"
        f"ID: {profile.id}\n"
        f"Type: {profile.type}\n"
        f"Server: {profile.server}\n"
        f"Port: {profile.port or 'default'}\n"
        f"Database: {profile.database}\n"
        f"Authentication: {profile.auth_type}\n"
        f"Username: {profile.username or '-'}\n"
        f"Trust certificate: {'yes' if profile.trust_certificate else 'no'}\n"
        f"Description: {escape(profile.description or '-')}\n"
        f"Created: {profile.created_at}\n"
        f"Updated: {profile.updated_at}",
        title="Connection Profile",
    ))


@profiles_app.command("create")
def profiles_create(
    ctx: typer.Context,
    name: str = typer.Option(..., "--name", "-n", help="Profile name"),
    profile_type: str = typer.Option(..., "--type", help="source or destination"),
    server: str = typer.Option(..., "--server", "-s", help="SQL Server host"),
    database: str = typer.Option(..., "--database", "-d", help="Database name"),
    auth_type: str = typer.Option("windows", "--auth", "-a", help="Authentication: windows or sql"),
    username: Optional[str] = typer.Option(None, "--username", "-u", help="SQL login"),
    password: Optional[str] = typer.Option(None, "--password", "-p", envvar="DATABRIDGE_DB_PASSWORD", help="SQL password"),
    port: Optional[int] = typer.Option(None, "--port", help="Server port"),
    trust_certificate: bool = typer.Option(True, "--trust-certificate/--no-trust-certificate", help="Trust the server certificate"),
    description: Optional[str] = typer.Option(None, "--description", help="Free-text description"),
):
    """
    Save a new connection profile.
    """
    data: dict[str, Any] = {
        "name": name,
        "server": server,
        "database": database,
        "auth_type": auth_type,
        "trust_certificate": trust_certificate,
        "type": profile_type,
    }
    if description:
        data["description"] = description
    if auth_type == "sql":
        data["username"] = username
        data["password"] = password
    if port:
        data["port"] = port

    request = ConnectionProfileRequest(**data)
    try:
        validate_profile(request)
    except ProfileValidationError as e:
        fail(str(e))

    with api_errors(), create_client(ctx) as client:
        profile = client.create_connection_profile(request).profile

    console.print(f"[green]✓ Profile created:[/] {escape(profile.name)} ({profile.id})")


@profiles_app.command("update")
def profiles_update(
    ctx: typer.Context,
    profile_id: str = typer.Argument(..., help="Profile ID"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Profile name"),
    profile_type: Optional[str] = typer.Option(None, "--type", help="source or destination"),
    server: Optional[str] = typer.Option(None, "--server", "-s", help="SQL Server host"),
    database: Optional[str] = typer.Option(None, "--database", "-d", help="Database name"),
    auth_type: Optional[str] = typer.Option(None, "--auth", "-a", help="Authentication: windows or sql"),
    username: Optional[str] = typer.Option(None, "--username", "-u", help="SQL login"),
    password: Optional[str] = typer.Option(None, "--password", "-p", envvar="DATABRIDGE_DB_PASSWORD", help="SQL password"),
    port: Optional[int] = typer.Option(None, "--port", help="Server port"),
    description: Optional[str] = typer.Option(None, "--description", help="Free-text description"),
):
    """
    Update a saved connection profile. Options not given keep their value.
    """
    changes = {
        "name": name,
        "type": profile_type,
        "server": server,
        "database": database,
        "auth_type": auth_type,
        "username": username,
        "password": password,
        "port": port,
        "description": description,
    }
    changes = {key: value for key, value in changes.items() if value is not None}

    with api_errors(), create_client(ctx) as client:
        current = client.get_connection_profile(profile_id).profile

        data = current.model_dump(include=set(ConnectionProfileRequest.model_fields), exclude_none=True)
        data.update(changes)
        request = ConnectionProfileRequest(**data)
        try:
            validate_profile(request)
        except ProfileValidationError as e:
            fail(str(e))

        profile = client.update_connection_profile(profile_id, request).profile

    console.print(f"[green]✓ Profile updated:[/] {escape(profile.name)} ({profile.id})")


@profiles_app.command("delete")
def profiles_delete(
    ctx: typer.Context,
    profile_id: str = typer.Argument(..., help="Profile ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """
    Delete a saved connection profile.
    """
    if not yes:
        confirm = typer.confirm(f"Delete profile {profile_id}?", default=False)
        if not confirm:
            console.print("[yellow]Aborted by user[/]")
            raise typer.Exit(0)

    with api_errors(), create_client(ctx) as client:
        result = client.delete_connection_profile(profile_id)

    require_success(result, "Failed to delete profile")
    console.print(f"[green]✓ {escape(response_message(result, f'Profile {profile_id} deleted'))}[/]")


# =============================================================================
# Applications
# =============================================================================

@apps_app.command("list")
def apps_list(
    ctx: typer.Context,
    profile_id: str = typer.Argument(..., help="Source connection profile ID"),
    page: int = typer.Option(1, "--page", help="Page number"),
    page_size: Optional[int] = typer.Option(None, "--page-size", help="Applications per page"),
    search: Optional[str] = typer.Option(None, "--search", help="Search term"),
    sort_by: Optional[str] = typer.Option(None, "--sort-by", help="Sort column"),
    order: Optional[str] = typer.Option(None, "--order", help="asc or desc"),
):
    """
    List applications found in a source database.
    """
    settings = load_settings(ctx)

    if page < 1:
        fail(f"Invalid page: {page}. Pages start at 1")

    try:
        sort = SortState(
            sort_by=sort_by or settings.applications.sort_by,
            sort_order=SortOrder(order or settings.applications.sort_order),
        )
    except ValueError:
        fail(f"Invalid sort order: {order}. Use asc or desc")

    request = sort.to_request(
        profile_id,
        page=page,
        page_size=page_size or settings.applications.page_size,
        search_term=search,
    )

    with api_errors(), create_client(ctx) as client:
        response = client.list_applications(request)

    if response.total_pages > 0 and not can_change_page(page, response.total_pages):
        fail(f"Page {page} is out of range (1-{response.total_pages})")

    if not response.applications:
        console.print("[yellow]No applications found[/]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Version")
    table.add_column("Status")
    table.add_column("Owner")
    table.add_column("Environment")
    table.add_column("Critical")

    for application in response.applications:
        table.add_row(
            application.application_id,
            escape(application.application_name),
            application.version or "-",
            application.status or "-",
            escape(application.owner or "-"),
            application.environment or "-",
            "[red]yes[/]" if application.is_critical else "",
        )

    console.print(table)

    position = Page.from_response(response)
    console.print(
        f"\nPage {position.page} of {position.total_pages} "
        f"({position.total_count} applications)"
    )
    if position.total_pages > 1:
        console.print(escape(render_links(position.page, position.total_pages)))


@apps_app.command("details")
def apps_details(
    ctx: typer.Context,
    profile_id: str = typer.Argument(..., help="Source connection profile ID"),
    application_id: str = typer.Argument(..., help="Application ID"),
):
    """
    Show an application with its dependencies and database objects.
    """
    request = ApplicationDetailsRequest(connection_profile_id=profile_id, application_id=application_id)
    with api_errors(), create_client(ctx) as client:
        response = client.get_application_details(request)

    application = response.application
    console.print(Panel(
        f"[bold]{escape(application.application_name)}[/]\n"
        f"ID: {application.application_id}\n"
        f"Version: {application.version or '-'}\n"
        f"Status: {application.status or '-'}\n"
        f"Owner: {escape(application.owner or '-')}\n"
        f"Environment: {application.environment or '-'}\n"
        f"Critical: {'yes' if application.is_critical else 'no'}\n"
        f"Created: {application.creation_date or '-'}\n"
        f"Modified: {application.last_modified_date or '-'}\n"
        f"Description: {escape(application.description or '-')}",
        title="Application",
    ))

    if response.dependencies:
        console.print(f"\n[bold]Dependencies ({len(response.dependencies)}):[/]")
        for dependency in response.dependencies:
            console.print(f"  • {escape(dependency)}")

    if response.database_objects:
        console.print(f"\n[bold]Database objects:[/]")
        for kind, objects in response.database_objects.items():
            if isinstance(objects, list):
                console.print(f"  {kind}: {len(objects)}")
                for name in objects:
                    console.print(f"    - {escape(str(name))}")
            else:
                console.print(f"  {kind}: {escape(str(objects))}")


@apps_app.command("select")
def apps_select(
    ctx: typer.Context,
    profile_id: str = typer.Argument(..., help="Source connection profile ID"),
    application_ids: List[str] = typer.Argument(..., help="Application IDs to select"),
):
    """
    Select applications for migration.
    """
    try:
        request = ApplicationSelection(application_ids).to_request(profile_id)
    except ValueError as e:
        fail(str(e))

    with api_errors(), create_client(ctx) as client:
        response = client.select_applications(request)

    require_success(response, "Failed to select applications")
    console.print(f"[green]✓ {response.selected_count} application(s) selected[/]")
    if response.message:
        console.print(f"  {escape(response.message)}")


@apps_app.command("selected")
def apps_selected(
    ctx: typer.Context,
    profile_id: str = typer.Argument(..., help="Source connection profile ID"),
):
    """
    Show the current application selection.
    """
    with api_errors(), create_client(ctx) as client:
        result = client.get_selected_applications(profile_id)

    require_success(result, "Failed to load selected applications")
    console.print_json(data=result)


@apps_app.command("clear")
def apps_clear(
    ctx: typer.Context,
    profile_id: str = typer.Argument(..., help="Source connection profile ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """
    Clear the application selection.
    """
    if not yes:
        confirm = typer.confirm(f"Clear selected applications for {profile_id}?", default=False)
        if not confirm:
            console.print("[yellow]Aborted by user[/]")
            raise typer.Exit(0)

    with api_errors(), create_client(ctx) as client:
        result = client.clear_selected_applications(profile_id)

    require_success(result, "Failed to clear selection")
    console.print(f"[green]✓ {escape(response_message(result, 'Selection cleared'))}[/]")


# =============================================================================
# Schema
# =============================================================================

def fetch_schema(ctx: typer.Context, profile_id: str):
    with api_errors(), create_client(ctx) as client:
        response = client.get_database_schema(SchemaRequest(connection_profile_id=profile_id))

    if not response.success or response.db_schema is None:
        fail(response_message(response, "Failed to load schema"))
    return response.db_schema


@schema_app.command("show")
def schema_show(
    ctx: typer.Context,
    profile_id: str = typer.Argument(..., help="Connection profile ID"),
    text: str = typer.Option("", "--filter", "-f", help="Only tables whose name or description matches"),
    table_name: Optional[str] = typer.Option(None, "--table", "-t", help="Show columns and relations of one table"),
):
    """
    Show the tables of a database, or the columns of one table.
    """
    schema = fetch_schema(ctx, profile_id)

    if table_name:
        show_table(schema, table_name)
        return

    tables = filter_tables(schema, text)
    if not tables:
        console.print("[yellow]No tables match[/]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Table", style="cyan")
    table.add_column("Columns", justify="right")
    table.add_column("Rows", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Description")

    for t in tables:
        table.add_row(
            t.name,
            str(len(t.columns)),
            f"{t.row_count:,}" if t.row_count is not None else "-",
            format_size(t.size_kb * 1024 if t.size_kb is not None else None),
            escape(t.description or ""),
        )

    console.print(table)

    summary = schema_summary(schema)
    console.print(f"\n[bold]Summary:[/]")
    console.print(f"  Tables: {summary['tables']} ({summary['tables_with_data']} with data)")
    console.print(f"  Columns: {summary['columns']}")
    console.print(f"  Relations: {summary['relations']}")


def show_table(schema, table_name: str) -> None:
    t = find_table(schema, table_name)
    if t is None:
        fail(f"Table '{table_name}' not found")

    console.print(f"\n[bold]{t.name}[/]")
    if t.description:
        console.print(f"  {escape(t.description)}")
    console.print(f"  Rows: {t.row_count if t.row_count is not None else '-'}")
    key_names = [c.name for c in key_columns(t)]
    if key_names:
        console.print(f"  Keys: {', '.join(key_names)}")

    table = Table(show_header=True, header_style="bold")
    table.add_column("Column", style="cyan")
    table.add_column("Type")
    table.add_column("Key")
    table.add_column("Nullable")
    table.add_column("Indexed")
    table.add_column("References")

    for column in t.columns:
        keys = []
        if column.is_primary_key:
            keys.append("[yellow]PK[/]")
        if column.is_foreign_key:
            keys.append("[magenta]FK[/]")
        reference = ""
        if column.foreign_key_table:
            reference = f"{column.foreign_key_table}.{column.foreign_key_column or ''}"
        table.add_row(
            column.name,
            column.data_type,
            " ".join(keys),
            "yes" if column.is_nullable else "no",
            "yes" if column.is_indexed else "",
            reference,
        )
    console.print(table)

    incoming, outgoing = table_relations(schema, t.name)
    if outgoing:
        console.print(f"\n[bold]References ({len(outgoing)}):[/]")
        for rel in outgoing:
            console.print(
                f"  {rel.get('source_column', '?')} → "
                f"{rel.get('target_table', '?')}.{rel.get('target_column', '?')}"
            )
    if incoming:
        console.print(f"\n[bold]Referenced by ({len(incoming)}):[/]")
        for rel in incoming:
            console.print(
                f"  {rel.get('source_table', '?')}.{rel.get('source_column', '?')} → "
                f"{rel.get('target_column', '?')}"
            )


@schema_app.command("mappings")
def schema_mappings(
    ctx: typer.Context,
    profile_id: str = typer.Argument(..., help="Source connection profile ID"),
    tables: Optional[List[str]] = typer.Option(None, "--table", "-t", help="Tables to map (all if omitted)"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write YAML to file"),
):
    """
    Generate same-name table mappings from a schema for a migration plan.
    """
    schema = fetch_schema(ctx, profile_id)

    try:
        mappings = mappings_from_schema(schema, tables or None)
    except MappingError as e:
        fail(str(e))

    data = {
        "table_mappings": [m.model_dump(exclude_none=True) for m in mappings],
    }
    text = yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)

    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(text)
        console.print(f"[green]✓ {len(mappings)} table mapping(s) written to[/] {output}")
    else:
        console.print(text, markup=False, highlight=False)


# =============================================================================
# Migration jobs
# =============================================================================

def watch_job(
    ctx: typer.Context,
    job_id: str,
    interval: Optional[float] = None,
    export: bool = True,
) -> None:
    """Poll a job until it finishes, then export its logs."""
    settings = load_settings(ctx)
    logger = MigrationLogger(
        output_dir=settings.logging.output_dir,
        console_output=settings.logging.console_progress,
        level=settings.logging.level,
        console=console,
    )

    last_seen: dict[str, Any] = {}

    def on_status(job: MigrationJobStatus) -> None:
        progress = (job.status, job.progress_percentage)
        if last_seen.get("progress") != progress:
            last_seen["progress"] = progress
            logger.log_status(job)

    with create_client(ctx) as client:
        monitor = JobMonitor(
            client,
            job_id,
            status_interval=interval or settings.polling.status_interval,
            logs_interval_factor=settings.polling.logs_interval_factor,
            log_limit=settings.polling.log_limit,
            on_status=on_status,
            on_logs=logger.log_job_logs,
        )
        console.print(f"[bold]Watching job {job_id}[/] (Ctrl+C to stop)")
        try:
            result = monitor.run()
        except KeyboardInterrupt:
            monitor.stop()
            console.print("\n[yellow]Stopped watching.[/] The job keeps running on the server.")
            raise typer.Exit(0)

    for message in dict.fromkeys(result.log_errors):
        logger.log_warning(escape(message))

    if result.error:
        console.print(f"[red]{escape(result.error)}[/]")
        if result.error_detail:
            console.print(f"[dim]{escape(result.error_detail)}[/]")
        raise typer.Exit(1)

    job = result.job_status
    if job is None or not result.finished:
        return

    logger.end_job(
        job,
        result.logs,
        export_json=export and settings.logging.export_json,
        export_csv=export and settings.logging.export_csv,
    )

    if job.status == MigrationStatus.COMPLETED.value:
        console.print(f"\n[green]✓ Migration completed[/]")
    elif job.status == MigrationStatus.CANCELLED.value:
        console.print(f"\n[yellow]Migration cancelled[/]")
    else:
        console.print(f"\n[red]✗ Migration failed[/]")
        raise typer.Exit(1)


@migrate_app.command("start")
def migrate_start(
    ctx: typer.Context,
    plan_path: str = typer.Argument(..., help="Path to migration plan (YAML or JSON)"),
    watch: bool = typer.Option(False, "--watch", "-w", help="Monitor the job until it finishes"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """
    Start a migration job from a plan file.

    Example:
        databridge migrate start plans/crm.yaml --watch
    """
    loader = ConfigLoader()
    try:
        plan = loader.load_plan(plan_path)
    except FileNotFoundError:
        fail(f"Plan file not found: {plan_path}")
    except ValueError as e:
        fail(str(e))

    mappings = None
    if plan.mappings_file:
        try:
            mappings = MappingReader().read_file(plan.mappings_file, sheet=plan.mappings_sheet)
        except MappingError as e:
            fail(str(e))

    request = plan.to_request(mappings)

    console.print(Panel(
        f"[bold]{escape(request.description or 'Migration job')}[/]\n"
        f"Source: {request.source_connection_id}\n"
        f"Destination: {request.destination_connection_id}\n"
        f"Applications: {', '.join(request.application_ids)}\n"
        f"Tables: {', '.join(m.source_table for m in request.table_mappings)}\n"
        f"Batch size: {request.batch_size} | Timeout: {request.timeout_seconds}s | "
        f"Validations: {'on' if request.run_validations else 'off'}",
        title="Migration Plan",
    ))

    if not yes:
        confirm = typer.confirm("Start migration?", default=False)
        if not confirm:
            console.print("[yellow]Aborted by user[/]")
            raise typer.Exit(0)

    with api_errors(), create_client(ctx) as client:
        response = client.start_migration_job(request)

    require_success(response, "Failed to start migration")
    console.print(f"[green]✓ Migration started:[/] {response.job_id}")
    if response.message:
        console.print(f"  {escape(response.message)}")

    if watch:
        watch_job(ctx, response.job_id)


@migrate_app.command("status")
def migrate_status(
    ctx: typer.Context,
    job_id: str = typer.Argument(..., help="Job ID"),
):
    """
    Show the status of a migration job.
    """
    with api_errors(), create_client(ctx) as client:
        response = client.get_migration_status(job_id)

    require_success(response, "Failed to fetch job status")
    print_job(response.job_status)


@migrate_app.command("logs")
def migrate_logs(
    ctx: typer.Context,
    job_id: str = typer.Argument(..., help="Job ID"),
    limit: int = typer.Option(100, "--limit", "-l", help="Maximum log lines"),
    offset: int = typer.Option(0, "--offset", help="Lines to skip"),
    level: Optional[str] = typer.Option(None, "--level", help="Only this level (INFO, WARNING, ERROR, DEBUG)"),
    since: Optional[str] = typer.Option(None, "--from", help="Only lines at or after this ISO timestamp"),
    until: Optional[str] = typer.Option(None, "--to", help="Only lines at or before this ISO timestamp"),
):
    """
    Show the logs of a migration job.
    """
    data: dict[str, Any] = {"job_id": job_id, "limit": limit, "offset": offset}
    if level:
        data["level"] = level.upper()
    if since:
        data["from_timestamp"] = since
    if until:
        data["to_timestamp"] = until

    with api_errors(), create_client(ctx) as client:
        response = client.get_migration_logs(MigrationLogsRequest(**data))

    require_success(response, "Failed to fetch logs")

    if not response.logs:
        console.print("[yellow]No log entries[/]")
        return

    logger = MigrationLogger(console=console)
    logger.log_job_logs(response.logs)
    console.print(f"\nShowing {len(response.logs)} of {response.total_count} log entries")


def print_dashboard(
    jobs: list[MigrationJobStatus],
    job_filter: JobFilter,
    profiles: Optional[list[ConnectionProfile]] = None,
) -> None:
    profiles = profiles or []
    stats = DashboardStats.from_jobs(jobs)
    console.print(
        f"[bold]Jobs:[/] {stats.total_jobs}  "
        f"[blue]Running:[/] {stats.running_jobs}  "
        f"[green]Completed:[/] {stats.completed_jobs}  "
        f"[red]Failed:[/] {stats.failed_jobs}  "
        f"[yellow]Pending:[/] {stats.pending_jobs}"
    )

    shown = filter_jobs(jobs, job_filter)
    if not shown:
        console.print("[yellow]No jobs match[/]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Job", style="cyan")
    table.add_column("Status")
    table.add_column("Progress", justify="right")
    table.add_column("Source")
    table.add_column("Destination")
    table.add_column("Applications")
    table.add_column("Created")

    for job in shown:
        table.add_row(
            job.job_id,
            colored_status(job.status),
            f"{job.progress_percentage:.1f}%",
            escape(connection_name(profiles, job.source_connection_id)),
            escape(connection_name(profiles, job.destination_connection_id)),
            ", ".join(job.application_ids),
            job.created_at,
        )
    console.print(table)


def job_filter_from_options(
    status: Optional[str],
    application_id: Optional[str],
    search: str,
    sort_by: str = "created_at",
    direction: str = "desc",
) -> JobFilter:
    try:
        return JobFilter(
            status=status.upper() if status else None,
            application_id=application_id,
            search_term=search,
            sort_by=sort_by,  # type: ignore[arg-type]
            sort_direction=direction,  # type: ignore[arg-type]
        )
    except ValueError as e:
        fail(str(e))


@migrate_app.command("list")
def migrate_list(
    ctx: typer.Context,
    status: Optional[str] = typer.Option(None, "--status", help="Only jobs with this status"),
    application_id: Optional[str] = typer.Option(None, "--app", help="Only jobs including this application"),
    search: str = typer.Option("", "--search", help="Match job, source or destination ID"),
    sort_by: str = typer.Option("created_at", "--sort-by", help="created_at, status or progress_percentage"),
    direction: str = typer.Option("desc", "--direction", help="asc or desc"),
    watch: bool = typer.Option(False, "--watch", "-w", help="Refresh until interrupted"),
):
    """
    List migration jobs with status counts.
    """
    settings = load_settings(ctx)
    job_filter = job_filter_from_options(status, application_id, search, sort_by, direction)

    with create_client(ctx) as client:
        with api_errors():
            profiles = client.list_connection_profiles().profiles

        while True:
            with api_errors():
                response = client.list_migration_jobs()
            require_success(response, "Failed to load jobs")

            if watch:
                console.clear()
            print_dashboard(response.jobs, job_filter, profiles)

            if not watch:
                break
            try:
                time.sleep(settings.polling.dashboard_interval)
            except KeyboardInterrupt:
                break


@migrate_app.command("cancel")
def migrate_cancel(
    ctx: typer.Context,
    job_id: str = typer.Argument(..., help="Job ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """
    Cancel a running migration job.
    """
    if not yes:
        confirm = typer.confirm(f"Cancel migration job {job_id}?", default=False)
        if not confirm:
            console.print("[yellow]Aborted by user[/]")
            raise typer.Exit(0)

    with api_errors(), create_client(ctx) as client:
        response = client.cancel_migration_job(job_id)

    require_success(response, "Failed to cancel job")
    console.print(f"[green]✓ {escape(response_message(response, 'Cancellation requested'))}[/]")


@migrate_app.command("watch")
def migrate_watch(
    ctx: typer.Context,
    job_id: str = typer.Argument(..., help="Job ID"),
    interval: Optional[float] = typer.Option(None, "--interval", "-i", help="Seconds between status polls"),
    export: bool = typer.Option(True, "--export/--no-export", help="Export logs when the job finishes"),
):
    """
    Follow a migration job until it finishes.
    """
    watch_job(ctx, job_id, interval=interval, export=export)


@migrate_app.command("export")
def migrate_export(
    ctx: typer.Context,
    output: str = typer.Argument(..., help="Output file (.csv or .xlsx)"),
    status: Optional[str] = typer.Option(None, "--status", help="Only jobs with this status"),
    application_id: Optional[str] = typer.Option(None, "--app", help="Only jobs including this application"),
    search: str = typer.Option("", "--search", help="Match job, source or destination ID"),
):
    """
    Export the job list to CSV or Excel.
    """
    job_filter = job_filter_from_options(status, application_id, search)

    with api_errors(), create_client(ctx) as client:
        response = client.list_migration_jobs()
    require_success(response, "Failed to load jobs")

    jobs = filter_jobs(response.jobs, job_filter)
    try:
        path = export_jobs(jobs, output)
    except ValueError as e:
        fail(str(e))

    console.print(f"[green]✓ {len(jobs)} job(s) exported to[/] {path}")


if __name__ == "__main__":
    app()
