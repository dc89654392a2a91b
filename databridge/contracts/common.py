"""
Common Wire Contracts

Shapes shared by every route: health, sort order and the
FastAPI-style validation error body returned on HTTP 422.
"""

from enum import Enum

from pydantic import BaseModel


class SortOrder(str, Enum):
    """Sort direction accepted by list endpoints."""
    ASC = "asc"
    DESC = "desc"


class HealthResponse(BaseModel):
    """Response from the liveness check."""
    status: str


class ValidationError(BaseModel):
    """A single request validation failure."""
    loc: list[str | int]
    msg: str
    type: str

    @property
    def location(self) -> str:
        """Dotted location, e.g. ``body.server``."""
        return ".".join(str(part) for part in self.loc)


class HTTPValidationError(BaseModel):
    """Body of a 422 response."""
    detail: list[ValidationError] | None = None
