"""
Error handling shared by all routes.

Every error leaves the API as ``{"msg": <str>, "success": false}``.
Services raise built‑in exceptions and endpoints wrap their calls in
``service_errors()`` to turn them into HTTP errors:

* ``PermissionError`` -> 403
* ``LookupError`` (except ``KeyError``) -> 404
* ``ValueError`` (including pydantic validation errors) -> 400
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


def error_body(msg: str) -> dict:
    return {"msg": msg, "success": False}


def format_validation_errors(errors) -> str:
    """Render pydantic error dicts as ``"Validation error: field: reason, ..."``."""
    parts = []
    for error in errors:
        location = [str(item) for item in error.get("loc", ()) if item not in ("body", "query", "path")]
        reason = error.get("msg", "invalid value")
        parts.append(f"{'.'.join(location)}: {reason}" if location else reason)
    return "Validation error: " + ", ".join(parts)


@contextmanager
def service_errors() -> Iterator[None]:
    """Translate service exceptions raised inside the block into ``HTTPException``."""
    try:
        yield
    except PermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    except KeyError:
        raise
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=format_validation_errors(exc.errors()),
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = format_validation_errors(exc.errors())
    logger.info("Rejected %s %s: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error_body(message))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
