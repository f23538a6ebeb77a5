# -*- coding: utf-8 -*-
"""
Tests de rutas de servicio: /health, espejo /api y manejo de excepciones.

Autor: Naturinex Billing
Fecha: 2026-09-24
"""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from app.shared.middleware import JSONExceptionMiddleware


class TestHealth:
    @pytest.mark.asyncio
    async def test_health_reports_database(self, async_client):
        response = await async_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["database"]["reachable"] is True
        assert data["environment"] == "test"
        assert data["service"]["name"] == "naturinex-billing-engine"

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, async_client):
        response = await async_client.get("/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"


class TestApiMirror:
    @pytest.mark.asyncio
    async def test_affiliate_routes_under_api(self, async_client, service_token):
        response = await async_client.get("/api/affiliates/999/fraud-check", headers=service_token)
        assert response.status_code == 404
        assert response.json()["detail"] == "Affiliate not found"


class TestJSONExceptionMiddleware:
    @pytest.mark.asyncio
    async def test_unhandled_error_is_json_500(self):
        app = FastAPI()
        app.add_middleware(JSONExceptionMiddleware)

        @app.get("/boom")
        async def boom():
            raise RuntimeError("kaput")

        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            response = await client.get("/boom", headers={"X-Correlation-ID": "corr-1"})

        assert response.status_code == 500
        detail = response.json()["detail"]
        assert detail["error_code"] == "INTERNAL_SERVER_ERROR"
        assert detail["request_id"] == "corr-1"
        assert "kaput" not in response.text
