"""
This module defines the API endpoints for a user's query history.

The routes are a thin façade over `QueryHistory`: they take the username and
identifiers from the path, call one history operation and shape its result.
Error kinds raised by the history are mapped onto HTTP status codes here.
"""

from fastapi import APIRouter, Depends, HTTPException

from ...query_history import (
    DataIntegrityError,
    InvalidInputError,
    PersistenceError,
    QueryEntry,
    QueryHistory,
    QueryLogError,
    UserNotFoundError,
)
from ..dependencies import get_query_history
from ..models.request import AppendQueryRequest, RecordMetricsRequest
from ..models.response import (
    AppendResponse,
    DeleteInstanceResponse,
    ErrorResponse,
    InstanceDetailResponse,
    InstanceModel,
    MetricsResponse,
    QueryDetailResponse,
    QueryEntryModel,
    QueryListResponse,
    QuerySummaryModel,
    UserResponse,
)

router = APIRouter(tags=["history"], responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}})

_STATUS_BY_ERROR: list[tuple[type[QueryLogError], int]] = [
    (InvalidInputError, 400),
    (UserNotFoundError, 404),
    (DataIntegrityError, 409),
    (PersistenceError, 503),
]


def http_error(error: QueryLogError) -> HTTPException:
    """Translate a history error into an HTTPException with a stable error code."""
    status_code = next((status for kind, status in _STATUS_BY_ERROR if isinstance(error, kind)), 500)
    return HTTPException(status_code=status_code, detail={"error": error.code, "detail": str(error)})


def _entry_model(entry: QueryEntry) -> QueryEntryModel:
    return QueryEntryModel(
        id=entry.id,
        query_string=entry.query_string,
        counter=entry.counter,
        instance_ids=entry.instance_ids,
        output_metrics=entry.output_metrics,
        timestamps=entry.timestamps,
        instances=[InstanceModel(**instance.to_dict()) for instance in entry.instances],
    )


@router.post("/users/{username}", response_model=UserResponse)
async def find_or_create_user(username: str, history: QueryHistory = Depends(get_query_history)) -> UserResponse:
    """
    Looks up a user's history record, creating an empty one on first contact.
    """
    try:
        record = await history.find_or_create_user(username)
    except QueryLogError as e:
        raise http_error(e) from e
    return UserResponse(username=record.username, query_count=len(record.query_history))


@router.post("/users/{username}/queries", response_model=AppendResponse, status_code=201)
async def append_query(username: str, request: AppendQueryRequest, history: QueryHistory = Depends(get_query_history)) -> AppendResponse:
    """
    Records one run of a query for a user.

    The user's record is created first if this is their first contact. A query
    string seen before gains a new instance; a new one gets its own entry.
    """
    try:
        await history.find_or_create_user(username)
        instance = await history.append_instance(username, request.query_string, request.output_metrics)
    except QueryLogError as e:
        raise http_error(e) from e
    return AppendResponse(instance_id=instance.instance_id, timestamp=instance.timestamp)


@router.get("/users/{username}/queries", response_model=QueryListResponse)
async def list_queries(username: str, history: QueryHistory = Depends(get_query_history)) -> QueryListResponse:
    """
    Lists a user's distinct queries with their latest timestamp and instance count.
    """
    try:
        summaries = await history.list_queries(username)
    except QueryLogError as e:
        raise http_error(e) from e

    if summaries is None:
        return QueryListResponse(queries=[], message="No results found")
    return QueryListResponse(queries=[QuerySummaryModel(**summary.to_dict()) for summary in summaries])


@router.get("/users/{username}/queries/{query_id}", response_model=QueryDetailResponse)
async def get_query(username: str, query_id: str, history: QueryHistory = Depends(get_query_history)) -> QueryDetailResponse:
    """
    Returns every recorded instance of one query entry.
    """
    try:
        entry = await history.get_query(username, query_id)
    except QueryLogError as e:
        raise http_error(e) from e
    return QueryDetailResponse(query=_entry_model(entry) if entry else None)


@router.get("/users/{username}/queries/{query_id}/instances/{instance_id}", response_model=InstanceDetailResponse)
async def get_instance(username: str, query_id: str, instance_id: str, history: QueryHistory = Depends(get_query_history)) -> InstanceDetailResponse:
    """
    Returns the query string, metrics and timestamp of a single instance.
    """
    try:
        detail = await history.get_instance(username, query_id, instance_id)
    except QueryLogError as e:
        raise http_error(e) from e
    return InstanceDetailResponse(instance=detail.to_dict() if detail else {})


@router.delete("/users/{username}/queries/{query_id}/instances/{instance_id}", response_model=DeleteInstanceResponse)
async def delete_instance(username: str, query_id: str, instance_id: str, history: QueryHistory = Depends(get_query_history)) -> DeleteInstanceResponse:
    """
    Deletes one instance from a query entry.

    Deleting an instance that does not exist succeeds with `deleted: false`.
    """
    try:
        deleted = await history.delete_instance(username, query_id, instance_id)
    except QueryLogError as e:
        raise http_error(e) from e
    return DeleteInstanceResponse(deleted=deleted)


@router.post("/metrics", response_model=MetricsResponse, status_code=201)
async def record_metrics(request: RecordMetricsRequest, history: QueryHistory = Depends(get_query_history)) -> MetricsResponse:
    """
    Stores a standalone raw metrics record.
    """
    try:
        metrics_id = await history.record_metrics(request.output_metrics)
    except QueryLogError as e:
        raise http_error(e) from e
    return MetricsResponse(metrics_id=metrics_id, message="Metrics record stored")


@router.delete("/metrics/{metrics_id}", response_model=MetricsResponse)
async def delete_metrics(metrics_id: str, history: QueryHistory = Depends(get_query_history)) -> MetricsResponse:
    """
    Deletes a standalone raw metrics record.

    A missing record is reported like any other storage failure.
    """
    try:
        await history.delete_metrics_record(metrics_id)
    except QueryLogError as e:
        raise http_error(e) from e
    return MetricsResponse(metrics_id=metrics_id, message=f"Metrics record {metrics_id} deleted")
