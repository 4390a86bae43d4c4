"""
This module defines the Pydantic models for API responses.

These models are used by FastAPI to serialize the output of API endpoints into
consistent JSON structures for both successful and error responses.
"""

from typing import Any

from pydantic import BaseModel, Field


class QuerySummaryModel(BaseModel):
    """One entry of a user's query listing."""

    query_string: str
    timestamp: str | None = Field(None, description="Timestamp of the most recent instance")
    id: str
    counter: int = Field(..., description="Number of recorded instances")


class InstanceModel(BaseModel):
    """A single recorded run inside a query entry."""

    instance_id: str
    output_metrics: Any = None
    timestamp: str


class QueryEntryModel(BaseModel):
    """
    The full history of one query string.

    The per-instance lists are index-aligned views of `instances`.
    """

    id: str
    query_string: str
    counter: int
    instance_ids: list[str]
    output_metrics: list[Any]
    timestamps: list[str]
    instances: list[InstanceModel]


class InstanceDetailModel(BaseModel):
    """The data stored for one instance."""

    query_string: str
    output_metrics: Any = None
    timestamp: str


class UserResponse(BaseModel):
    """Response for the find-or-create user endpoint."""

    success: bool = True
    username: str
    query_count: int = Field(..., description="Number of distinct queries recorded for the user")


class AppendResponse(BaseModel):
    """Response for recording a query run."""

    success: bool = True
    instance_id: str
    timestamp: str


class QueryListResponse(BaseModel):
    """Response for listing a user's queries."""

    success: bool = True
    queries: list[QuerySummaryModel] = Field(default_factory=list)
    message: str | None = Field(None, description="Set to 'No results found' when the user has no history")


class QueryDetailResponse(BaseModel):
    """Response for fetching one query entry. `query` is null when nothing matches."""

    success: bool = True
    query: QueryEntryModel | None = None


class InstanceDetailResponse(BaseModel):
    """Response for fetching one instance. `instance` is an empty object when nothing matches."""

    success: bool = True
    instance: InstanceDetailModel | dict[str, Any] = Field(default_factory=dict)


class DeleteInstanceResponse(BaseModel):
    """Response for deleting an instance."""

    success: bool = True
    deleted: bool = Field(..., description="False when no matching instance existed")


class MetricsResponse(BaseModel):
    """Response for raw metrics operations."""

    success: bool = True
    metrics_id: str
    message: str | None = None


class HealthResponse(BaseModel):
    """
    Represents the response model for the server health check endpoint.

    Attributes:
        status: The health status of the server (e.g., 'healthy').
        version: The version number of the querylog application.
        uptime: The uptime of the server in seconds.
        storage: Information about the persistence backend.
    """

    status: str = Field(..., description="Server health status")
    version: str = Field(..., description="querylog version")
    uptime: float | None = Field(None, description="Server uptime in seconds")
    storage: dict[str, Any] | None = Field(None, description="Persistence backend information")

    model_config = {"json_schema_extra": {"examples": [{"status": "healthy", "version": "0.1.0", "uptime": 3600.5, "storage": {"type": "duckdb"}}]}}


class ErrorResponse(BaseModel):
    """
    Represents the standard response model for API errors.

    Attributes:
        success: Always False.
        error: A high-level category for the error.
        detail: A detailed message describing the error.
    """

    success: bool = Field(False, description="Always false for error responses")
    error: str = Field(..., description="Error type or category")
    detail: str | None = Field(None, description="Detailed error message")

    model_config = {"json_schema_extra": {"examples": [{"success": False, "error": "INVALID_PARAMS", "detail": "Missing required parameter(s): query_string"}]}}
