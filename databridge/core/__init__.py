"""
Client-side behaviour layered on the REST contract.
"""

from databridge.core.status import (
    MigrationStatus,
    MigrationLogLevel,
    TERMINAL_STATUSES,
    is_terminal,
    is_success,
)
from databridge.core.pagination import ELLIPSIS, Page, page_links, can_change_page
from databridge.core.monitor import JobMonitor, MonitorResult
from databridge.core.dashboard import (
    JobFilter,
    DashboardStats,
    TableSummary,
    filter_jobs,
    toggle_sort,
    application_ids,
    export_jobs,
)
from databridge.core.selection import ApplicationSelection, SortState
from databridge.core.profiles import (
    ProfileValidationError,
    build_test_request,
    validate_profile,
)
from databridge.core.schema_view import filter_tables, table_relations, format_size
from databridge.core.mapping import MappingError, MappingReader, mappings_from_schema
from databridge.core.logger import MigrationLogger, JobSummary


__all__ = [
    "MigrationStatus",
    "MigrationLogLevel",
    "TERMINAL_STATUSES",
    "is_terminal",
    "is_success",
    "ELLIPSIS",
    "Page",
    "page_links",
    "can_change_page",
    "JobMonitor",
    "MonitorResult",
    "JobFilter",
    "DashboardStats",
    "TableSummary",
    "filter_jobs",
    "toggle_sort",
    "application_ids",
    "export_jobs",
    "ApplicationSelection",
    "SortState",
    "ProfileValidationError",
    "build_test_request",
    "validate_profile",
    "filter_tables",
    "table_relations",
    "format_size",
    "MappingError",
    "MappingReader",
    "mappings_from_schema",
    "MigrationLogger",
    "JobSummary",
]
