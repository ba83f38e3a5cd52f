"""
Exception handlers.

Domain errors become JSON responses with a stable `code`. None of them is ever
answered with content: a failure to decide is a refusal.
"""

from typing import Callable, Dict, List, Tuple, Type

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from storyquest.engines.progression.errors import (
    CurriculumIntegrityError,
    LedgerUnavailableError,
    PersistenceWriteError,
    ProgressionError,
    UnknownNodeError,
)
from storyquest.logging_config import get_logger

logger = get_logger(__name__)

# error class -> (status, code, client message); the first matching entry wins
DOMAIN_ERRORS: List[Tuple[Type[ProgressionError], int, str, str]] = [
    (UnknownNodeError, status.HTTP_404_NOT_FOUND, "unknown_node", ""),
    (LedgerUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE, "ledger_unavailable",
     "Progress is temporarily unavailable, please retry"),
    (PersistenceWriteError, status.HTTP_503_SERVICE_UNAVAILABLE, "completion_not_saved",
     "Completion could not be saved, please retry"),
    (CurriculumIntegrityError, status.HTTP_500_INTERNAL_SERVER_ERROR, "curriculum_integrity",
     "Curriculum is misconfigured"),
]

RETRY_AFTER_SECONDS = "5"


def _json(request: Request, cors_headers: Callable[[Request], Dict[str, str]], status_code: int, body: dict) -> JSONResponse:
    headers = cors_headers(request)
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        headers["X-Request-ID"] = request_id
        if status_code >= 500:
            body["request_id"] = request_id
    if status_code == status.HTTP_503_SERVICE_UNAVAILABLE:
        headers["Retry-After"] = RETRY_AFTER_SECONDS
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def register_exception_handlers(
    app: FastAPI,
    cors_headers: Callable[[Request], Dict[str, str]],
    debug: bool = False,
) -> None:
    """Attach every handler; error responses carry CORS headers themselves."""

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return _json(request, cors_headers, exc.status_code, {"detail": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in err["loc"]),
                "message": err["msg"],
                "type": err["type"],
            }
            for err in exc.errors()
        ]
        return _json(
            request,
            cors_headers,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            {"detail": "Validation error", "errors": errors},
        )

    @app.exception_handler(ProgressionError)
    async def progression_error(request: Request, exc: ProgressionError):
        for error_class, status_code, code, message in DOMAIN_ERRORS:
            if isinstance(exc, error_class):
                break
        else:
            status_code, code, message = status.HTTP_500_INTERNAL_SERVER_ERROR, "progression_error", ""

        if isinstance(exc, UnknownNodeError):
            code = f"unknown_{exc.kind}"
        if status_code >= 500:
            logger.error("%s: %s", type(exc).__name__, exc)
        return _json(request, cors_headers, status_code, {"detail": message or str(exc), "code": code})

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        body = {"detail": str(exc), "type": type(exc).__name__} if debug else {"detail": "Internal server error"}
        return _json(request, cors_headers, status.HTTP_500_INTERNAL_SERVER_ERROR, body)
