"""Error envelope shared by every estimating endpoint.

Body shape (under FastAPI's ``detail`` key):
{
  "error": {
    "code": "project.not_found",
    "message": "project 42 not found",
    "http_status": 404,
    "resource_kind": "project",
    "details": {"id": "42"}
  }
}
"""
from __future__ import annotations

from typing import Any, Dict, Literal, NoReturn, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

ResourceKind = Literal["project", "line_item", "cost_component", "cost_item", "category", None]


class ErrorDetail(BaseModel):
    code: str
    message: str
    http_status: int
    resource_kind: Optional[ResourceKind] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class ErrorEnvelope(BaseModel):
    error: ErrorDetail


def build_error_envelope(
    code: str,
    message: str,
    status_code: int = 400,
    resource_kind: Optional[ResourceKind] = None,
    details: Optional[Dict[str, Any]] = None,
) -> ErrorEnvelope:
    return ErrorEnvelope(
        error=ErrorDetail(
            code=code,
            message=message,
            http_status=status_code,
            resource_kind=resource_kind,
            details=details or {},
        )
    )


def error_response(
    code: str,
    message: str,
    status_code: int = 400,
    resource_kind: Optional[ResourceKind] = None,
    details: Optional[Dict[str, Any]] = None,
) -> NoReturn:
    """Raise an HTTPException whose detail is the canonical envelope.

    Args:
        code: Machine-readable code, ``<resource>.<reason>`` (e.g. "line_item.invalid")
        message: Human-readable message
        status_code: HTTP status (default 400)
        resource_kind: project, line_item, cost_component, cost_item or category
        details: Extra context (ids, offending values)
    """
    envelope = build_error_envelope(code, message, status_code, resource_kind, details)
    raise HTTPException(status_code=status_code, detail=envelope.model_dump())


def not_found_error(resource_kind: ResourceKind, resource_id: Any) -> NoReturn:
    error_response(
        code=f"{resource_kind}.not_found",
        message=f"{resource_kind} {resource_id} not found",
        status_code=404,
        resource_kind=resource_kind,
        details={"id": resource_id},
    )


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # pydantic field errors (quantity <= 0, waste factor out of range, ...)
    envelope = build_error_envelope(
        code="request.invalid",
        message="request failed validation",
        status_code=422,
        details={"errors": jsonable_encoder(exc.errors())},
    )
    return JSONResponse(status_code=422, content={"detail": envelope.model_dump()})


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
