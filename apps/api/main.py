"""FastAPI wrapper for the label evaluation and print pipeline."""

from __future__ import annotations

import importlib.metadata
import json
import logging
import os
import time
import uuid
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import Field, ValidationError
from starlette.background import BackgroundTask

from core.catalog.loader import load_catalog
from core.catalog.store import CatalogStore
from core.labels.models import (
    ELEMENT_TYPES,
    WEBHOOK_METHODS,
    Catalog,
    CatalogModel,
    DataSource,
    VariableMapping,
)
from core.mapping.evaluator import StaticCaptureSource, evaluate_mappings
from core.mapping.preview import build_preview_context
from core.mapping.url_pattern import find_matching_data_source
from core.notify.webhook import send_print_webhook
from core.orchestrator.pipeline import (
    PrintContext,
    resolve_data_source,
    resolve_print_context,
    run_print,
)
from core.render.payload_builder import payload_to_dict
from core.utils.errors import CatalogLookupError

app = FastAPI(title="labelsorcerer API", version="0.1.0")
logger = logging.getLogger("labelsorcerer.api")

REQUEST_ID_HEADER = "X-Labelsorcerer-Request-Id"


class EvaluateRequest(CatalogModel):
    data_source_id: int | None = None
    url: str | None = None
    mappings: list[VariableMapping] | None = None
    captures: dict[str, list[str | None]] = Field(default_factory=dict)


class PreviewRequest(CatalogModel):
    data_source_id: int | None = None
    url: str | None = None
    layout_id: int | None = None
    captures: dict[str, list[str | None]] | None = None


class PrintRequest(CatalogModel):
    data_source_id: int | None = None
    url: str | None = None
    layout_id: int | None = None
    captures: dict[str, list[str | None]] = Field(default_factory=dict)
    notify: bool = True


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


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Ensure every response has a request id header."""

    request_id = uuid.uuid4().hex
    request.state.request_id = request_id
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
    return response


@app.get("/healthz")
async def healthz() -> dict[str, str]:
    """Liveness endpoint."""

    return {"status": "ok"}


@app.get("/v1/meta")
async def meta_v1(request: Request) -> JSONResponse:
    """Metadata endpoint for editor clients."""

    request_id = _request_id_from_request(request)
    if not _meta_enabled():
        return _error_response(
            status_code=404,
            error_code="NOT_FOUND",
            message="meta endpoint is disabled",
            request_id=request_id,
            detail={"path": request.url.path},
        )

    payload = {
        "element_types": list(ELEMENT_TYPES),
        "webhook_methods": list(WEBHOOK_METHODS),
        "version": _package_version(),
    }
    return JSONResponse(status_code=200, headers={REQUEST_ID_HEADER: request_id}, content=payload)


@app.post("/v1/evaluate")
async def evaluate_v1(request: Request) -> JSONResponse:
    """Resolve mappings of a data source (or inline mappings) against captures."""

    request_id = _request_id_from_request(request)
    failure_stage = "validate_request"
    try:
        body = await _parse_body(request, EvaluateRequest)
        capture_source = StaticCaptureSource(body.captures)

        if body.mappings is not None:
            mappings = body.mappings
            data_source_id = body.data_source_id
        else:
            failure_stage = "load_catalog"
            catalog = _load_catalog_with_api_error()
            failure_stage = "resolve_context"
            source = _resolve_data_source(catalog, body.data_source_id, body.url)
            mappings = source.variable_mappings
            data_source_id = source.id

        failure_stage = "evaluate"
        resolved = evaluate_mappings(mappings, capture_source)
    except ApiRequestError as exc:
        return _api_error(exc, request_id, failure_stage)

    _log_event(
        logging.INFO,
        "evaluate",
        request_id,
        data_source_id=data_source_id,
        mapped=sum(1 for item in resolved if item.status == "mapped"),
        missing=sum(1 for item in resolved if item.status == "missing"),
    )
    return JSONResponse(
        status_code=200,
        headers={REQUEST_ID_HEADER: request_id},
        content={
            "data_source_id": data_source_id,
            "resolved": [item.model_dump(mode="json", by_alias=True) for item in resolved],
        },
    )


@app.post("/v1/preview")
async def preview_v1(request: Request) -> JSONResponse:
    """Preview how a data source fills a layout's variables."""

    request_id = _request_id_from_request(request)
    failure_stage = "validate_request"
    try:
        body = await _parse_body(request, PreviewRequest)
        failure_stage = "load_catalog"
        catalog = _load_catalog_with_api_error()
        failure_stage = "resolve_context"
        context = _resolve_context(catalog, body.data_source_id, body.url, body.layout_id)
    except ApiRequestError as exc:
        return _api_error(exc, request_id, failure_stage)

    live = None
    if body.captures is not None:
        resolved = evaluate_mappings(
            context.data_source.variable_mappings, StaticCaptureSource(body.captures)
        )
        live = {item.key: item for item in resolved}

    preview = build_preview_context(context.layout, context.data_source, live)
    return JSONResponse(
        status_code=200,
        headers={REQUEST_ID_HEADER: request_id},
        content={"variables": [item.model_dump(mode="json", by_alias=True) for item in preview]},
    )


@app.post("/v1/print")
async def print_v1(request: Request) -> JSONResponse:
    """Build the label payload; the post-print webhook is sent after the response."""

    request_started = time.perf_counter()
    request_id = _request_id_from_request(request)
    failure_stage = "validate_request"
    try:
        body = await _parse_body(request, PrintRequest)
        failure_stage = "load_catalog"
        catalog = _load_catalog_with_api_error()
        failure_stage = "resolve_context"
        context = _resolve_context(catalog, body.data_source_id, body.url, body.layout_id)
        failure_stage = "pipeline"
        result = run_print(context, StaticCaptureSource(body.captures), sender=None)
    except ApiRequestError as exc:
        return _api_error(exc, request_id, failure_stage)

    webhook = catalog.post_print_webhook
    notify = body.notify and webhook is not None and webhook.is_enabled
    background = BackgroundTask(send_print_webhook, webhook, result.payload) if notify else None

    _log_event(
        logging.INFO,
        "print",
        request_id,
        data_source_id=context.data_source.id,
        layout_id=context.layout.id,
        element_count=len(result.payload.elements),
        missing=[item.key for item in result.resolved if item.status == "missing"],
        notify_scheduled=notify,
        total_ms=_elapsed_ms(request_started),
    )
    return JSONResponse(
        status_code=200,
        headers={REQUEST_ID_HEADER: request_id},
        content={
            "payload": payload_to_dict(result.payload),
            "resolved": [item.model_dump(mode="json", by_alias=True) for item in result.resolved],
            "notify_scheduled": notify,
        },
        background=background,
    )


@app.get("/v1/match")
async def match_v1(request: Request, url: str = "") -> JSONResponse:
    """Return the data source whose URL pattern matches ``url``."""

    request_id = _request_id_from_request(request)
    try:
        catalog = _load_catalog_with_api_error()
    except ApiRequestError as exc:
        return _api_error(exc, request_id, "load_catalog")

    match = find_matching_data_source(url, catalog.data_sources)
    if match is None:
        return _error_response(
            status_code=404,
            error_code="NO_MATCHING_DATA_SOURCE",
            message="no data source matches url",
            request_id=request_id,
            detail={"url": url},
        )
    return JSONResponse(
        status_code=200,
        headers={REQUEST_ID_HEADER: request_id},
        content={"id": match.id, "name": match.name, "urlPattern": match.url_pattern},
    )


def _request_id_from_request(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if isinstance(request_id, str) and request_id:
        return request_id
    generated = uuid.uuid4().hex
    request.state.request_id = generated
    return generated


async def _parse_body(request: Request, model: type[CatalogModel]) -> Any:
    raw_body = await request.body()
    try:
        raw = json.loads(raw_body or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ApiRequestError(
            status_code=400,
            error_code="INVALID_JSON",
            message="request body must be valid JSON",
            detail={"error": str(exc)},
        ) from exc

    if not isinstance(raw, dict):
        raise ApiRequestError(
            status_code=400,
            error_code="INVALID_JSON",
            message="request body must be a JSON object",
        )

    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise ApiRequestError(
            status_code=400,
            error_code="INVALID_ARGUMENT",
            message="request schema validation failed",
            detail={"error": str(exc)},
        ) from exc


def _load_catalog_with_api_error() -> Catalog:
    path = _catalog_path()
    try:
        if path is not None and path.suffix.lower() == ".json":
            return CatalogStore(path).load()
        return load_catalog(path)
    except ValueError as exc:
        raise ApiRequestError(
            status_code=500,
            error_code="CATALOG_INVALID",
            message="catalog could not be loaded",
            detail={"error": str(exc)},
        ) from exc


def _resolve_data_source(
    catalog: Catalog, data_source_id: int | None, url: str | None
) -> DataSource:
    _require_locator(data_source_id, url)
    try:
        return resolve_data_source(catalog, data_source_id=data_source_id, url=url)
    except CatalogLookupError as exc:
        raise _not_found(exc) from exc


def _resolve_context(
    catalog: Catalog,
    data_source_id: int | None,
    url: str | None,
    layout_id: int | None,
) -> PrintContext:
    _require_locator(data_source_id, url)
    try:
        return resolve_print_context(
            catalog, data_source_id=data_source_id, url=url, layout_id=layout_id
        )
    except CatalogLookupError as exc:
        raise _not_found(exc) from exc


def _require_locator(data_source_id: int | None, url: str | None) -> None:
    if data_source_id is None and not url:
        raise ApiRequestError(
            status_code=400,
            error_code="INVALID_ARGUMENT",
            message="dataSourceId or url is required",
            detail={"fields": ["dataSourceId", "url"]},
        )


def _not_found(exc: CatalogLookupError) -> ApiRequestError:
    return ApiRequestError(
        status_code=404,
        error_code="NOT_FOUND",
        message=str(exc),
        detail={"kind": exc.kind, "identifier": exc.identifier},
    )


def _catalog_path() -> Path | None:
    raw = os.getenv("LABELSORCERER_CATALOG_PATH")
    if raw is None or not raw.strip():
        return None
    return Path(raw.strip())


def _meta_enabled() -> bool:
    raw = os.getenv("LABELSORCERER_ENABLE_META", "1").strip().lower()
    return raw not in {"0", "false", "off", "no"}


def _package_version() -> str:
    try:
        return importlib.metadata.version("labelsorcerer")
    except importlib.metadata.PackageNotFoundError:
        return app.version


def _api_error(exc: ApiRequestError, request_id: str, failure_stage: str) -> JSONResponse:
    _log_event(
        logging.ERROR,
        "error",
        request_id,
        error_code=exc.error_code,
        status_code=exc.status_code,
        failure_stage=failure_stage,
    )
    return _error_response(
        status_code=exc.status_code,
        error_code=exc.error_code,
        message=exc.message,
        request_id=request_id,
        detail=exc.detail,
    )


def _error_response(
    *,
    status_code: int,
    error_code: str,
    message: str,
    request_id: str,
    detail: dict[str, Any] | None = None,
) -> JSONResponse:
    payload_detail = dict(detail or {})
    payload_detail["request_id"] = request_id

    return JSONResponse(
        status_code=status_code,
        headers={REQUEST_ID_HEADER: request_id},
        content={
            "error_code": error_code,
            "message": message,
            "detail": payload_detail,
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
