"""FastAPI wrapper for the formbind binding engine.

Every endpoint is stateless: the caller sends the document text and value
map it holds and gets the updated pair back.
"""

from __future__ import annotations

import json
import logging
import os
import time
import uuid
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field

from formbind import __version__
from formbind.binding.document import Submission
from formbind.binding.session import EditSession
from formbind.config.loader import load_settings
from formbind.config.models import EngineSettings
from formbind.orchestrator.export import export_document_async
from formbind.render.diff import changed_line_count, diff
from formbind.schema.models import FieldDefinition
from formbind.schema.registry import fields_for, list_template_kinds, resolve_kind
from formbind.schema.roster import Roster
from formbind.templates.classifier import classify
from formbind.utils.errors import (
    ExportFailedError,
    UnknownFieldError,
    UnknownRosterEntryError,
    UnknownTemplateKindError,
)
from formbind.validate.validator import validate

app = FastAPI(title="formbind API", version=__version__)
logger = logging.getLogger("formbind.api")

REQUEST_ID_HEADER = "X-Formbind-Request-Id"


class ApiRequestError(Exception):
    def __init__(
        self,
        *,
        status_code: int,
        error_code: str,
        message: str,
        detail: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        self.detail = detail or {}


class ClassifyRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    text: str


class FieldsRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: str
    roster: Roster | None = None


class BindRequest(BaseModel):
    """Apply ``values`` to a document the caller already holds."""

    model_config = ConfigDict(extra="forbid")

    document_text: str
    value_map: dict[str, Any] = Field(default_factory=dict)
    template_text: str | None = None
    values: dict[str, Any] = Field(default_factory=dict)
    roster: Roster | None = None
    submission_id: str | None = None


class ValidateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    document_text: str
    value_map: dict[str, Any] = Field(default_factory=dict)


class DiffRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    original_text: str
    current_text: str


class ExportRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    document_text: str
    format: Literal["pdf", "docx"] = "pdf"
    filename_stem: str | None = None


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Ensure every response has a request id header."""

    started = time.perf_counter()
    request_id = uuid.uuid4().hex
    request.state.request_id = request_id
    _log_event(logging.INFO, "start", request_id, method=request.method, path=request.url.path)
    try:
        response = await call_next(request)
    except Exception:  # noqa: BLE001
        _log_event(
            logging.ERROR,
            "error",
            request_id,
            error_code="INTERNAL_ERROR",
            status_code=500,
            failure_stage="middleware",
        )
        response = _error_response(
            status_code=500,
            error_code="INTERNAL_ERROR",
            message="internal server error",
            request_id=request_id,
            detail={"path": request.url.path},
        )
    response.headers.setdefault(REQUEST_ID_HEADER, request_id)
    _log_event(
        logging.INFO,
        "done",
        request_id,
        status_code=response.status_code,
        total_ms=_elapsed_ms(started),
    )
    return response


@app.exception_handler(ApiRequestError)
async def api_request_error_handler(request: Request, exc: ApiRequestError) -> JSONResponse:
    request_id = _request_id_from_request(request)
    _log_event(
        logging.ERROR,
        "error",
        request_id,
        error_code=exc.error_code,
        status_code=exc.status_code,
        path=request.url.path,
    )
    return _error_response(
        status_code=exc.status_code,
        error_code=exc.error_code,
        message=exc.message,
        request_id=request_id,
        detail=exc.detail,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    request_id = _request_id_from_request(request)
    _log_event(
        logging.ERROR,
        "error",
        request_id,
        error_code="INVALID_REQUEST",
        status_code=422,
        path=request.url.path,
    )
    return _error_response(
        status_code=422,
        error_code="INVALID_REQUEST",
        message="request body failed validation",
        request_id=request_id,
        detail={"errors": json.loads(json.dumps(exc.errors(), default=str))},
    )


@app.get("/healthz")
async def healthz() -> dict[str, str]:
    """Liveness endpoint."""

    return {"status": "ok"}


@app.get("/v1/meta")
async def meta_v1(request: Request) -> JSONResponse:
    """Supported template kinds and their field counts."""

    request_id = _request_id_from_request(request)
    payload = {
        "template_kinds": [kind.value for kind in list_template_kinds()],
        "field_counts": {kind.value: len(fields_for(kind)) for kind in list_template_kinds()},
        "export_formats": ["pdf", "docx"],
        "version": app.version,
    }
    return JSONResponse(status_code=200, headers={REQUEST_ID_HEADER: request_id}, content=payload)


@app.post("/v1/classify")
async def classify_v1(body: ClassifyRequest) -> dict[str, str]:
    return {"kind": classify(body.text).value}


@app.post("/v1/fields")
async def fields_v1(body: FieldsRequest) -> dict[str, Any]:
    try:
        kind = resolve_kind(body.kind.upper())
    except UnknownTemplateKindError as exc:
        raise _engine_error(exc) from exc
    return {
        "kind": kind.value,
        "fields": [_field_payload(field) for field in fields_for(kind, body.roster)],
    }


@app.post("/v1/bind")
async def bind_v1(body: BindRequest) -> dict[str, Any]:
    """Bind ``values`` in registry order and return the new text/value-map pair."""

    submission = Submission(
        document_text=body.document_text,
        value_map=body.value_map,
        submission_id=body.submission_id,
    )
    session = EditSession.open(submission, body.roster, template_text=body.template_text)
    try:
        session.bind_many(body.values)
    except (UnknownFieldError, UnknownRosterEntryError, TypeError, ValueError) as exc:
        raise _engine_error(exc) from exc

    saved = session.save()
    return {
        "kind": session.kind.value,
        "document_text": saved.document_text,
        "value_map": saved.value_map,
        "validation": session.validate().model_dump(mode="json"),
        "changed_lines": changed_line_count(session.diff()),
    }


@app.post("/v1/validate")
async def validate_v1(body: ValidateRequest) -> dict[str, Any]:
    kind = classify(body.document_text)
    report = validate(fields_for(kind), body.value_map)
    return {"kind": kind.value, **report.model_dump(mode="json")}


@app.post("/v1/diff")
async def diff_v1(body: DiffRequest) -> dict[str, Any]:
    lines = diff(body.original_text, body.current_text)
    return {
        "changed_line_count": changed_line_count(lines),
        "lines": [
            {"index": line.index, "kind": line.kind, "content": line.content} for line in lines
        ],
    }


@app.post("/v1/export", response_model=None)
async def export_v1(request: Request, body: ExportRequest) -> Response:
    """Render the document and return the artifact bytes."""

    request_id = _request_id_from_request(request)
    try:
        artifact = await export_document_async(
            body.document_text,
            _engine_settings().export,
            body.format,
            body.filename_stem,
        )
    except ExportFailedError as exc:
        raise _engine_error(exc) from exc

    return Response(
        content=artifact.content,
        media_type=artifact.media_type,
        headers={
            REQUEST_ID_HEADER: request_id,
            "Content-Disposition": f'attachment; filename="{artifact.filename}"',
            "X-Formbind-Page-Count": str(artifact.page_count),
        },
    )


@lru_cache(maxsize=1)
def _engine_settings() -> EngineSettings:
    raw = os.getenv("FORMBIND_SETTINGS_PATH")
    return load_settings(Path(raw) if raw else None)


def _engine_error(exc: Exception) -> ApiRequestError:
    if isinstance(exc, UnknownTemplateKindError):
        return ApiRequestError(
            status_code=422,
            error_code="UNKNOWN_TEMPLATE_KIND",
            message=str(exc),
            detail={"kind": str(exc.kind)},
        )
    if isinstance(exc, UnknownFieldError):
        return ApiRequestError(
            status_code=422,
            error_code="UNKNOWN_FIELD",
            message=str(exc),
            detail={"field_key": exc.key, "kind": exc.kind},
        )
    if isinstance(exc, UnknownRosterEntryError):
        return ApiRequestError(
            status_code=422,
            error_code="UNKNOWN_ROSTER_ENTRY",
            message=str(exc),
            detail={"entry_id": exc.entry_id},
        )
    if isinstance(exc, ExportFailedError):
        return ApiRequestError(
            status_code=500,
            error_code="EXPORT_FAILED",
            message=str(exc),
            detail={"stage": exc.stage},
        )
    return ApiRequestError(
        status_code=422,
        error_code="INVALID_VALUE",
        message=str(exc),
        detail={"error_type": type(exc).__name__},
    )


def _field_payload(field: FieldDefinition) -> dict[str, Any]:
    return {
        "key": field.key,
        "label": field.label,
        "value_type": field.value_type.value,
        "required": field.required,
        "options": [{"value": option.value, "label": option.label} for option in field.options],
    }


def _request_id_from_request(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if isinstance(request_id, str) and request_id:
        return request_id
    generated = uuid.uuid4().hex
    request.state.request_id = generated
    return generated


def _error_response(
    *,
    status_code: int,
    error_code: str,
    message: str,
    request_id: str,
    detail: dict[str, Any] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        headers={REQUEST_ID_HEADER: request_id},
        content={
            "error_code": error_code,
            "message": message,
            "request_id": request_id,
            "detail": dict(detail or {}),
        },
    )


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def _dump_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, separators=(",", ":"))


def _log_event(level: int, event: str, request_id: str, **fields: Any) -> None:
    payload = {
        "event": event,
        "request_id": request_id,
        **fields,
    }
    logger.log(level, _dump_json(payload))
