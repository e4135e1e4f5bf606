# catalog/responses.py

"""
JSON envelopes and the mapping from catalog errors to HTTP responses.

Every error response is logged first, with the request method and URI as
extra attributes. Client errors are logged at INFO, server errors at ERROR
with the traceback; raw database messages never reach the client.
"""

import json
import logging

from fastapi import FastAPI, Request, Response, status
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException

from .errors import (
    CatalogError,
    DecodeError,
    EditConflictError,
    FailedValidationError,
    InvalidCategoryIDError,
    InvalidIDParamError,
    InvalidVersionHeaderError,
    QueryParamError,
    RecordNotFoundError,
)

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "the requested resource could not be found"
EDIT_CONFLICT_MESSAGE = "unable to update the record due to an edit conflict, please try again"
INVALID_CATEGORY_MESSAGE = "invalid category_id"
SERVER_ERROR_MESSAGE = "the server encountered a problem and could not process your request"

# Starlette has renamed the 422 constant between releases.
UNPROCESSABLE_ENTITY = 422


def request_uri(request: Request) -> str:
    uri = request.url.path
    if request.url.query:
        uri = f"{uri}?{request.url.query}"
    return uri


def log_error(request: Request, message: str, level=logging.ERROR, exc_info=None):
    logger.log(
        level,
        message,
        extra={"method": request.method, "uri": request_uri(request)},
        exc_info=exc_info,
    )


def write_json(request: Request, status_code: int, data: dict, headers=None) -> Response:
    """
    Render ``data`` as tab-indented JSON. If it cannot be serialized the
    failure is logged and the client gets an empty 500 instead.
    """
    try:
        body = json.dumps(jsonable_encoder(data), indent="\t", allow_nan=False) + "\n"
    except (TypeError, ValueError) as exc:
        log_error(request, f"failed to serialize response: {exc}", exc_info=exc)
        return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return Response(
        content=body,
        status_code=status_code,
        headers=headers,
        media_type="application/json",
    )


def error_response(request: Request, status_code: int, message, exc: Exception) -> Response:
    if status_code >= 500:
        log_error(request, str(exc), logging.ERROR, exc_info=exc)
    else:
        log_error(request, str(exc), logging.INFO)
    return write_json(request, status_code, {"error": message})


def status_for(exc: CatalogError):
    """HTTP status and client-facing message for a catalog error."""
    if isinstance(exc, (DecodeError, InvalidIDParamError, InvalidVersionHeaderError)):
        return status.HTTP_400_BAD_REQUEST, str(exc)
    if isinstance(exc, QueryParamError):
        return status.HTTP_400_BAD_REQUEST, exc.errors
    if isinstance(exc, FailedValidationError):
        return UNPROCESSABLE_ENTITY, exc.errors
    if isinstance(exc, RecordNotFoundError):
        return status.HTTP_404_NOT_FOUND, NOT_FOUND_MESSAGE
    if isinstance(exc, EditConflictError):
        return status.HTTP_409_CONFLICT, EDIT_CONFLICT_MESSAGE
    if isinstance(exc, InvalidCategoryIDError):
        return status.HTTP_400_BAD_REQUEST, INVALID_CATEGORY_MESSAGE
    return status.HTTP_500_INTERNAL_SERVER_ERROR, SERVER_ERROR_MESSAGE


async def catalog_error_handler(request: Request, exc: CatalogError) -> Response:
    status_code, message = status_for(exc)
    return error_response(request, status_code, message, exc)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> Response:
    # Unmatched routes and unsupported methods from the router.
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        message = NOT_FOUND_MESSAGE
    elif exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        message = f"the {request.method} method is not supported for this resource"
    else:
        message = exc.detail
    response = error_response(request, exc.status_code, message, exc)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def server_error_handler(request: Request, exc: Exception) -> Response:
    return error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, SERVER_ERROR_MESSAGE, exc)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CatalogError, catalog_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, server_error_handler)
