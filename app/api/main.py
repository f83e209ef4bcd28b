"""FastAPI application for the string analysis service.

This module provides the HTTP API layer that:
- Stores analyzed strings (POST /strings) and serves them by id
- Lists stored strings with structured filters (GET /strings)
- Translates natural-language filter requests (GET /strings/filter-by-natural-language)
- Deletes strings by value (DELETE /strings/{value})

The record store, query service and rate limiter are created per application
by `create_app` and reached through FastAPI dependencies or `app.state`, so
tests can build isolated apps. No app is built at import time; uvicorn runs
`create_app` as a factory.
"""

from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from app.api.models import CreateStringRequest, ErrorResponse, HealthResponse
from stringbank import __version__
from stringbank.exceptions import (
    ConflictingFiltersError,
    InvalidFilterError,
    InvalidInputError,
    RecordConflictError,
    RecordNotFoundError,
    UpstreamEmptyError,
    UpstreamError,
    UpstreamUnparseableError,
)
from stringbank.query import (
    FilterResult,
    NaturalLanguageInterpreter,
    NaturalLanguageResult,
    QueryService,
    build_interpreter,
)
from stringbank.schemas import AnalysisRecord
from stringbank.store import RecordStore
from stringbank.utils.config_loader import Settings, load_settings
from stringbank.utils.logger import LoggerManager

# Initialize logger
logger = LoggerManager.get_logger(__name__)

router = APIRouter()


# =============================================================================
# Dependencies
# =============================================================================

def get_store(request: Request) -> RecordStore:
    """Get the record store owned by this application.

    Raises:
        HTTPException: If the store was not initialized
    """
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Record store not initialized",
        )
    return store


def get_query_service(request: Request) -> QueryService:
    """Get the query service owned by this application.

    Raises:
        HTTPException: If the service was not initialized
    """
    service = getattr(request.app.state, "query_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Query service not initialized",
        )
    return service


# =============================================================================
# Routes
# =============================================================================

@router.get("/health", response_model=HealthResponse)
def health_check(request: Request, store: RecordStore = Depends(get_store)):
    """Health check endpoint."""
    service: QueryService = request.app.state.query_service
    return HealthResponse(
        status="healthy",
        record_count=len(store),
        nl_mode=service.interpreter.mode.value,
    )


@router.post(
    "/strings",
    response_model=AnalysisRecord,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse},
               422: {"model": ErrorResponse}},
)
def create_string(
    payload: Optional[CreateStringRequest] = None,
    store: RecordStore = Depends(get_store),
):
    """Analyze a string and store it under its content address.

    Returns:
        The new AnalysisRecord (201)
    """
    if payload is None or payload.value is None:
        raise InvalidInputError.missing_value()
    if not isinstance(payload.value, str):
        return error_response(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            InvalidInputError.value_not_string(payload.value).message,
        )
    return store.insert(payload.value)


@router.get(
    "/strings",
    response_model=FilterResult,
    responses={400: {"model": ErrorResponse}},
)
def list_strings(request: Request, service: QueryService = Depends(get_query_service)):
    """List stored strings, filtered by query parameters.

    Supported parameters: is_palindrome, min_length, max_length,
    word_count, contains_character. Unknown parameters are ignored.
    """
    return service.list_records(dict(request.query_params))


def build_nl_router(limiter: Limiter, rate_limit: str) -> APIRouter:
    """Router for the natural-language endpoint, rate limited per app.

    Natural-language requests may hit a paid upstream, so each application
    decorates this route with its own Limiter and limit string.

    Args:
        limiter: The application's slowapi Limiter
        rate_limit: Limit string such as "30/minute"

    Returns:
        Router to include before the main router, so the literal path wins
        over /strings/{string_id}
    """
    nl_router = APIRouter()

    @nl_router.get(
        "/strings/filter-by-natural-language",
        response_model=NaturalLanguageResult,
        responses={400: {"model": ErrorResponse}, 422: {"model": ErrorResponse},
                   502: {"model": ErrorResponse}},
    )
    @limiter.limit(rate_limit)
    def filter_by_natural_language(
        request: Request,
        query: Optional[str] = None,
        service: QueryService = Depends(get_query_service),
    ):
        """Filter stored strings with a natural-language request.

        Example: ``?query=all single word palindromic strings``
        """
        return service.filter_by_natural_language(query)

    return nl_router


@router.get(
    "/strings/{string_id}",
    response_model=AnalysisRecord,
    responses={404: {"model": ErrorResponse}},
)
def get_string(string_id: str, store: RecordStore = Depends(get_store)):
    """Get one stored string by its SHA-256 id."""
    return store.get(string_id)


@router.delete(
    "/strings/{string_value:path}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
def delete_string(string_value: str, store: RecordStore = Depends(get_store)):
    """Delete a stored string by its value (already URL-decoded)."""
    store.delete_by_value(string_value)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Error handling
# =============================================================================

def error_response(status_code: int, message: str, **fields) -> JSONResponse:
    body = ErrorResponse(error=message, **fields)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


async def handle_invalid_input(request: Request, exc: InvalidInputError):
    return error_response(status.HTTP_400_BAD_REQUEST, f"Bad Request: {exc.message}")


async def handle_conflict(request: Request, exc: RecordConflictError):
    return error_response(status.HTTP_409_CONFLICT, f"Conflict: {exc.message}", id=exc.record_id)


async def handle_not_found(request: Request, exc: RecordNotFoundError):
    return error_response(
        status.HTTP_404_NOT_FOUND, f"Not Found: {exc.message}", requested_id=exc.record_id
    )


async def handle_invalid_filter(request: Request, exc: InvalidFilterError):
    return error_response(status.HTTP_400_BAD_REQUEST, exc.message, details=exc.details)


async def handle_conflicting_filters(request: Request, exc: ConflictingFiltersError):
    return error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        f"Unprocessable Entity: {exc.message}",
        interpreted_query={"original": exc.original, "parsed_filters": exc.parsed_filters},
    )


async def handle_upstream_unusable(request: Request, exc: UpstreamError):
    return error_response(status.HTTP_400_BAD_REQUEST, exc.message)


async def handle_upstream_unavailable(request: Request, exc: UpstreamError):
    logger.error(
        "Natural language service unavailable",
        extra={"extra_data": {"error": exc.message}},
        exc_info=exc.original_error is not None,
    )
    return error_response(
        status.HTTP_502_BAD_GATEWAY,
        "Bad Gateway: natural language service is unavailable",
    )


EXCEPTION_HANDLERS = {
    InvalidInputError: handle_invalid_input,
    RecordConflictError: handle_conflict,
    RecordNotFoundError: handle_not_found,
    InvalidFilterError: handle_invalid_filter,
    ConflictingFiltersError: handle_conflicting_filters,
    UpstreamUnparseableError: handle_upstream_unusable,
    UpstreamEmptyError: handle_upstream_unusable,
    UpstreamError: handle_upstream_unavailable,
}


# =============================================================================
# Application factory
# =============================================================================

def create_app(
    settings: Optional[Settings] = None,
    store: Optional[RecordStore] = None,
    interpreter: Optional[NaturalLanguageInterpreter] = None,
) -> FastAPI:
    """Build a FastAPI app with its own store, query service and limiter.

    Used by uvicorn as an application factory
    (``uvicorn app.api.main:create_app --factory``).

    Args:
        settings: Runtime settings (loaded from config/env when omitted)
        store: Record store to serve (a fresh empty one when omitted)
        interpreter: Natural-language interpreter (built from settings when
            omitted)

    Returns:
        Configured FastAPI application
    """
    settings = settings or load_settings()
    LoggerManager.set_level(settings.log_level)

    store = store if store is not None else RecordStore()
    interpreter = interpreter or build_interpreter(settings)

    app = FastAPI(
        title="String Analyzer API",
        description="Content-addressed string analysis with structured and natural-language filters",
        version=__version__,
    )

    app.state.settings = settings
    app.state.store = store
    app.state.query_service = QueryService(store, interpreter)

    # Each app owns its limiter (storage, enabled flag and limit)
    limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    for exc_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exc_class, handler)

    # Add CORS middleware (allow all origins for development)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(build_nl_router(limiter, settings.nl_rate_limit))
    app.include_router(router)

    logger.info(
        "API started",
        extra={"extra_data": {"nl_mode": interpreter.mode.value, "version": __version__}},
    )
    return app
