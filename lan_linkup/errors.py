"""HTTP error shaping.

Every error response is JSON with a human-readable ``message``.
"""
import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from lan_linkup.services.geocoding import GeocodingError, GeocodingUnavailableError
from lan_linkup.services.result import Failure, Result

logger = logging.getLogger(__name__)

FAILURE_STATUS = {
    Failure.not_found: status.HTTP_404_NOT_FOUND,
    Failure.forbidden: status.HTTP_403_FORBIDDEN,
    Failure.conflict: status.HTTP_409_CONFLICT,
    Failure.party_full: status.HTTP_409_CONFLICT,
    Failure.invalid: status.HTTP_400_BAD_REQUEST,
}


def http_error(result: Result) -> HTTPException:
    """Translate a failed service Result into the matching HTTPException."""
    return HTTPException(status_code=FAILURE_STATUS[result.failure], detail=result.message)


def unwrap(result: Result):
    """Return the Result's value, or raise the HTTP error for its failure."""
    if not result.ok:
        raise http_error(result)
    return result.value


def _describe(error: dict) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    return f"{location}: {error['msg']}" if location else error["msg"]


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": message},
        headers=getattr(exc, "headers", None),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(p) for p in e.get("loc", ())), "message": e["msg"]}
        for e in exc.errors()
    ]
    message = _describe(exc.errors()[0]) if exc.errors() else "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": message, "errors": errors},
    )


async def _geocoding_error_handler(request: Request, exc: GeocodingError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": f"Invalid party data: {exc}"},
    )


async def _geocoding_unavailable_handler(request: Request, exc: GeocodingUnavailableError) -> JSONResponse:
    logger.error("Geocoding unavailable on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"message": "Address lookup is temporarily unavailable"},
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(GeocodingError, _geocoding_error_handler)
    app.add_exception_handler(GeocodingUnavailableError, _geocoding_unavailable_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
