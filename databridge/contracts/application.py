"""
Application Contracts

Discovery, detail and selection of source applications.
"""

from typing import Any

from pydantic import BaseModel

from databridge.contracts.common import SortOrder


class ApplicationDetails(BaseModel):
    """An application discovered in the source database."""
    application_id: str
    application_name: str
    description: str | None = None
    version: str | None = None
    creation_date: str | None = None
    last_modified_date: str | None = None
    status: str | None = None
    size: float | None = None
    owner: str | None = None
    environment: str | None = None
    is_critical: bool = False
    additional_metadata: dict[str, Any] | None = None


class ApplicationListRequest(BaseModel):
    """Request for one page of applications."""
    connection_profile_id: str
    page: int = 1
    page_size: int = 50
    search_term: str | None = None
    sort_by: str = "application_name"
    sort_order: SortOrder = SortOrder.ASC


class ApplicationListResponse(BaseModel):
    """One page of applications."""
    applications: list[ApplicationDetails]
    total_count: int
    page: int
    page_size: int
    total_pages: int


class ApplicationDetailsRequest(BaseModel):
    connection_profile_id: str
    application_id: str


class ApplicationDetailsResponse(BaseModel):
    application: ApplicationDetails
    database_objects: dict[str, Any] | None = None
    dependencies: list[str] | None = None


class ApplicationBulkSelectionRequest(BaseModel):
    """Request to mark applications for migration."""
    connection_profile_id: str
    application_ids: list[str]
    select_all: bool = False
    filters: dict[str, Any] | None = None


class ApplicationSelectionResponse(BaseModel):
    selected_count: int
    success: bool
    message: str
