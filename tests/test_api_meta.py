from __future__ import annotations

import httpx
import pytest

from apps.api.main import REQUEST_ID_HEADER, app


@pytest.mark.anyio
async def test_meta_returns_supported_capabilities_and_request_id(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.delenv("LABELSORCERER_ENABLE_META", raising=False)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.get("/v1/meta")

    assert response.status_code == 200
    assert response.headers[REQUEST_ID_HEADER]
    payload = response.json()
    assert payload["version"]
    assert payload["element_types"] == ["text", "qrcode", "image", "shape"]
    assert payload["webhook_methods"] == ["GET", "POST"]


@pytest.mark.anyio
async def test_meta_can_be_disabled(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LABELSORCERER_ENABLE_META", "off")
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.get("/v1/meta")

    assert response.status_code == 404
    body = response.json()
    assert body["error_code"] == "NOT_FOUND"
    assert body["detail"]["request_id"] == response.headers[REQUEST_ID_HEADER]
