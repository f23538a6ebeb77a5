# -*- coding: utf-8 -*-
"""
backend/app/observability/prom.py

Observabilidad Prometheus del motor de facturación.

Incluye:
- Middleware HTTP: conteo y latencia por método/ruta/estado. La ruta es
  la plantilla registrada (/affiliates/{affiliate_id}/payouts), no la
  URL concreta, para no disparar la cardinalidad de labels.
- Endpoint /metrics (pull model) sobre el REGISTRY por defecto, donde
  también viven las métricas de billing y affiliates.
- Soporte multiproceso si PROMETHEUS_MULTIPROC_DIR está definido.

Autor: Naturinex Billing
Fecha: 2026-09-20
"""
from __future__ import annotations

import os
from time import perf_counter
from typing import Optional

from fastapi import FastAPI, Request
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
    multiprocess,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "http_request_latency_seconds",
    "Latency per request (s)",
    ["method", "path", "status"],
)


def _route_template(request: Request) -> str:
    route = request.scope.get("route")
    template = getattr(route, "path", None)
    return template or "unmatched"


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Instrumenta cada petición HTTP (excepto el propio /metrics)."""

    async def dispatch(self, request, call_next):
        if request.url.path == "/metrics":
            return await call_next(request)

        start = perf_counter()
        resp = await call_next(request)
        elapsed = perf_counter() - start

        method = request.method
        path = _route_template(request)
        status = str(resp.status_code)
        REQUEST_LATENCY.labels(method, path, status).observe(elapsed)
        REQUEST_COUNT.labels(method, path, status).inc()
        return resp


def _build_registry() -> Optional[CollectorRegistry]:
    """CollectorRegistry multiproceso (gunicorn/uvicorn workers) si aplica."""
    if os.environ.get("PROMETHEUS_MULTIPROC_DIR"):
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        return registry
    return None


def mount_metrics(app: FastAPI, path: str = "/metrics") -> None:
    registry = _build_registry()

    @app.get(path, include_in_schema=False)
    def metrics():
        data = generate_latest(registry) if registry else generate_latest()
        return Response(content=data, media_type=CONTENT_TYPE_LATEST)


def setup_observability(app: FastAPI) -> None:
    """Agrega el middleware de Prometheus y monta /metrics."""
    app.add_middleware(PrometheusMiddleware)
    mount_metrics(app)


__all__ = ["PrometheusMiddleware", "mount_metrics", "setup_observability"]

# Fin del archivo backend/app/observability/prom.py
