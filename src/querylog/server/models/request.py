"""
This module defines the Pydantic models for incoming API requests.

These models are used by FastAPI to validate and parse the JSON body of
incoming HTTP requests.
"""

from typing import Any

from pydantic import BaseModel, Field


class AppendQueryRequest(BaseModel):
    """
    Represents the request model for recording a query run.

    Attributes:
        query_string: The query text that was run.
        output_metrics: The metrics produced by the run. Opaque to the server.
    """

    query_string: str | None = Field(None, description="Query text that was run")
    output_metrics: Any = Field(None, description="Metrics produced by the run")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"query_string": "SELECT * FROM orders", "output_metrics": {"execution_time_ms": 42, "rows": 120}},
                {"query_string": "{ user(id: 1) { name } }", "output_metrics": "resolver timings"},
            ]
        }
    }


class RecordMetricsRequest(BaseModel):
    """
    Represents the request model for storing a standalone raw metrics record.

    Attributes:
        output_metrics: The metrics payload to store.
    """

    output_metrics: Any = Field(None, description="Metrics payload to store")
