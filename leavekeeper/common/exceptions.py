"""Errors raised by the leave services and their RFC 7807 rendering.

Each exception class carries its own status, problem ``type`` slug and
title; ``register_exception_handlers`` turns them (and FastAPI request
validation failures) into ``application/problem+json`` responses.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

BASE_ERROR_URI = "https://leavekeeper.dev/errors"
PROBLEM_JSON = "application/problem+json"

FieldErrors = dict[str, list[str]]


# ── Exception hierarchy ─────────────────────────────────────────────

class AppException(Exception):
    """Base for errors rendered as a problem response."""

    status_code: int = 500
    error_type: str = "internal-error"
    title: str = "Internal Error"

    def __init__(self, detail: str, errors: Optional[FieldErrors] = None) -> None:
        self.detail = detail
        self.errors = errors
        super().__init__(detail)


class NotFoundException(AppException):
    """Unknown user, extended absence or bonus grant."""

    status_code = 404
    error_type = "not-found"

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        self.entity_type = entity_type
        self.title = f"{entity_type} Not Found"
        super().__init__(f"{entity_type} with id '{entity_id}' does not exist.")


class ForbiddenException(AppException):
    status_code = 403
    error_type = "forbidden"
    title = "Forbidden"

    def __init__(
        self,
        detail: str = "You do not have permission to perform this action.",
    ) -> None:
        super().__init__(detail)


class InvalidDateRangeException(AppException):
    """An extended absence whose end date falls before its start date."""

    status_code = 422
    error_type = "invalid-date-range"
    title = "Invalid Date Range"

    def __init__(self, start_date: date, end_date: date) -> None:
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(
            f"end_date {end_date.isoformat()} is before start_date {start_date.isoformat()}.",
            errors={"end_date": ["end_date must be on or after start_date."]},
        )


# ── Problem responses ───────────────────────────────────────────────

def _problem_response(
    request: Request,
    *,
    status_code: int,
    error_type: str,
    title: str,
    detail: str,
    errors: Optional[FieldErrors] = None,
) -> JSONResponse:
    body: dict[str, Any] = {
        "type": f"{BASE_ERROR_URI}/{error_type}",
        "title": title,
        "status": status_code,
        "detail": detail,
        "instance": str(request.url.path),
    }
    if errors:
        body["errors"] = errors
    return JSONResponse(status_code=status_code, content=body, media_type=PROBLEM_JSON)


async def _handle_app_exception(request: Request, exc: AppException) -> JSONResponse:
    return _problem_response(
        request,
        status_code=exc.status_code,
        error_type=exc.error_type,
        title=exc.title,
        detail=exc.detail,
        errors=exc.errors,
    )


async def _handle_request_validation(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Group pydantic errors by field, dropping the body/query/path prefix."""
    field_errors: FieldErrors = {}
    for err in exc.errors():
        parts = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        field = ".".join(parts) or "body"
        field_errors.setdefault(field, []).append(err.get("msg", "Invalid value"))

    return _problem_response(
        request,
        status_code=422,
        error_type="request-validation",
        title="Invalid Request",
        detail="Request validation failed.",
        errors=field_errors,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppException, _handle_app_exception)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_request_validation)  # type: ignore[arg-type]
