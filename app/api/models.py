"""Request and response models for FastAPI endpoints.

These Pydantic models define the API contract between clients and the server.
Record and listing shapes come from stringbank itself (AnalysisRecord,
FilterResult, NaturalLanguageResult); only API-specific envelopes live here.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class CreateStringRequest(BaseModel):
    """Request to POST /strings.

    ``value`` is typed as Any: a missing value (400) and a non-string value
    (422) are told apart in the endpoint, not in validation.

    Attributes:
        value: The string to analyze and store
    """

    value: Any = Field(None, description="String to analyze and store")


class ErrorResponse(BaseModel):
    """Body of every error response.

    Attributes:
        error: Human-readable message
        details: Per-field messages for invalid filters
        id: Existing record id for conflicts
        requested_id: Id that was looked up for not-found errors
        interpreted_query: Original text and parsed filters for conflicting
            natural-language queries
    """

    error: str = Field(..., description="Error message")
    details: Optional[List[str]] = None
    id: Optional[str] = None
    requested_id: Optional[str] = None
    interpreted_query: Optional[Dict[str, Any]] = None


class HealthResponse(BaseModel):
    """Response from /health endpoint.

    Attributes:
        status: Health status
        record_count: Number of records currently stored
        nl_mode: Active natural-language mode (deterministic or llm)
    """

    status: str = Field(..., description="Overall health status")
    record_count: int = Field(..., description="Records currently stored")
    nl_mode: str = Field(..., description="Natural-language interpretation mode")
