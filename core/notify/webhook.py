"""Fire-and-forget delivery of post-print notifications."""

from __future__ import annotations

import json
import logging
import os
from typing import Any

import httpx

from core.labels.models import WebhookConfig
from core.render.models import LabelPayload
from core.templates.interpolator import build_notification_request

logger = logging.getLogger("labelsorcerer.notify")

_DEFAULT_TIMEOUT_SECONDS = 10.0


def send_print_webhook(
    config: WebhookConfig | None,
    payload: LabelPayload,
    *,
    client: httpx.Client | None = None,
    timeout: float | None = None,
) -> int | None:
    """Send the configured notification for a printed label.

    Returns the response status code, or ``None`` when nothing was sent or
    the attempt failed. Failures are logged and never raised.
    """

    if config is None or not config.is_enabled:
        return None

    try:
        request = build_notification_request(config, payload)
    except Exception as exc:  # noqa: BLE001
        _log_event(logging.ERROR, "build_failed", error=f"{type(exc).__name__}: {exc}")
        return None
    if request is None:
        return None

    effective_timeout = timeout if timeout is not None else _timeout_seconds()
    owns_client = client is None
    http = client if client is not None else httpx.Client(timeout=effective_timeout)
    try:
        response = http.request(
            request.method,
            request.url,
            content=request.body.encode("utf-8") if request.body is not None else None,
            headers=request.headers,
        )
    except Exception as exc:  # noqa: BLE001
        _log_event(
            logging.WARNING,
            "send_failed",
            method=request.method,
            url=request.url,
            error=f"{type(exc).__name__}: {exc}",
        )
        return None
    finally:
        if owns_client:
            http.close()

    if response.is_success:
        _log_event(
            logging.INFO,
            "sent",
            method=request.method,
            url=request.url,
            status_code=response.status_code,
        )
    else:
        _log_event(
            logging.WARNING,
            "rejected",
            method=request.method,
            url=request.url,
            status_code=response.status_code,
        )
    return response.status_code


def _timeout_seconds() -> float:
    raw = os.getenv("LABELSORCERER_WEBHOOK_TIMEOUT_SECONDS")
    if raw is None:
        return _DEFAULT_TIMEOUT_SECONDS
    try:
        parsed = float(raw)
    except ValueError:
        return _DEFAULT_TIMEOUT_SECONDS
    return parsed if parsed > 0 else _DEFAULT_TIMEOUT_SECONDS


def _log_event(level: int, event: str, **fields: Any) -> None:
    payload = {"event": f"webhook_{event}", **fields}
    message = json.dumps(payload, ensure_ascii=False, sort_keys=True, separators=(",", ":"))
    logger.log(level, message)
