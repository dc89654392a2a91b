"""
Typed wire contracts for the DataBridge Pro REST API.
"""

from databridge.contracts.common import (
    HealthResponse,
    HTTPValidationError,
    SortOrder,
    ValidationError,
)
from databridge.contracts.connection import (
    ConnectionCapabilities,
    ConnectionProfile,
    ConnectionProfileRequest,
    ConnectionProfileResponse,
    ConnectionProfilesResponse,
    ConnectionTestRequest,
    ConnectionTestResponse,
    ValidateConnectionRequest,
    ValidateConnectionResponse,
)
from databridge.contracts.application import (
    ApplicationBulkSelectionRequest,
    ApplicationDetails,
    ApplicationDetailsRequest,
    ApplicationDetailsResponse,
    ApplicationListRequest,
    ApplicationListResponse,
    ApplicationSelectionResponse,
)
from databridge.contracts.schema import (
    DatabaseSchema,
    SchemaRequest,
    SchemaResponse,
    TableColumn,
    TableSchema,
)
from databridge.contracts.migration import (
    MigrationJobListResponse,
    MigrationJobRequest,
    MigrationJobResponse,
    MigrationJobStatus,
    MigrationJobStatusResponse,
    MigrationLog,
    MigrationLogsRequest,
    MigrationLogsResponse,
    MigrationTableMapping,
    MigrationTableStatus,
)

__all__ = [
    "HealthResponse",
    "HTTPValidationError",
    "SortOrder",
    "ValidationError",
    "ConnectionCapabilities",
    "ConnectionProfile",
    "ConnectionProfileRequest",
    "ConnectionProfileResponse",
    "ConnectionProfilesResponse",
    "ConnectionTestRequest",
    "ConnectionTestResponse",
    "ValidateConnectionRequest",
    "ValidateConnectionResponse",
    "ApplicationBulkSelectionRequest",
    "ApplicationDetails",
    "ApplicationDetailsRequest",
    "ApplicationDetailsResponse",
    "ApplicationListRequest",
    "ApplicationListResponse",
    "ApplicationSelectionResponse",
    "DatabaseSchema",
    "SchemaRequest",
    "SchemaResponse",
    "TableColumn",
    "TableSchema",
    "MigrationJobListResponse",
    "MigrationJobRequest",
    "MigrationJobResponse",
    "MigrationJobStatus",
    "MigrationJobStatusResponse",
    "MigrationLog",
    "MigrationLogsRequest",
    "MigrationLogsResponse",
    "MigrationTableMapping",
    "MigrationTableStatus",
]
