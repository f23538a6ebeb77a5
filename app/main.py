# -*- coding: utf-8 -*-
"""
backend/app/main.py

Punto de entrada del motor de facturación y payouts de Naturinex.

Ajustes clave:
- .env se carga ANTES de leer settings (python-dotenv)
- Logging vía dictConfig (plain en dev, JSON en producción)
- Lifespan: cola de notificaciones, caché de entitlements, cliente del
  gateway, codec de datos de pago, dispatcher de webhooks y orquestador
  de payouts se construyen una vez y quedan en app.state
- Scheduler (APScheduler) con payouts programados, reintentos de
  dunning y limpieza de caché
- Observabilidad Prometheus (/metrics) y middleware de excepciones JSON
- CORS desde CORS_ORIGINS

Autor: Naturinex Billing
Fecha: 2026-09-20
"""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

# ---------------------------------------------------------------------------
# Cargar .env ANTES de cualquier import que lea settings
# En producción no se pisan variables del entorno
# ---------------------------------------------------------------------------
from dotenv import load_dotenv

_ENV_PATH = Path(__file__).resolve().parents[1] / ".env"
_PYTHON_ENV = os.getenv("PYTHON_ENV", "development").strip().lower()
load_dotenv(dotenv_path=_ENV_PATH, override=_PYTHON_ENV == "development")

import anyio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.settings import get_billing_settings, get_payout_settings, get_settings
from app.core.logging import setup_logging
from app.observability.prom import setup_observability
from app.shared.middleware import JSONExceptionMiddleware

_settings = get_settings()
setup_logging(_settings.log_level, _settings.log_format)
logger = logging.getLogger(__name__)
logger.info(f"[dotenv] {_ENV_PATH} (PYTHON_ENV={_PYTHON_ENV})")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ────────── STARTUP ──────────
    from app.core.db import create_all_tables
    from app.modules.affiliates.adapters import build_transfer_provider
    from app.modules.affiliates.facades.payouts import PayoutDependencies, PayoutOrchestrator
    from app.modules.affiliates.jobs import register_scheduled_payouts_job
    from app.modules.billing.adapters import build_gateway_client
    from app.modules.billing.facades.webhooks import BillingDependencies, EventDispatcher
    from app.modules.billing.jobs import register_dunning_retry_job
    from app.modules.billing.services import EntitlementCache
    from app.shared.integrations import LoggingNotificationSender, NotificationQueue
    from app.shared.scheduler import get_scheduler
    from app.shared.scheduler.jobs import register_cache_cleanup_job
    from app.shared.security import PaymentDetailsCodec

    settings = get_settings()
    billing_settings = get_billing_settings()
    payout_settings = get_payout_settings()

    if settings.is_dev:
        await create_all_tables()
        logger.info("🗄️ Tablas creadas/verificadas (solo desarrollo)")

    notifications = NotificationQueue(
        LoggingNotificationSender(),
        maxsize=billing_settings.notification_queue_size,
        workers=billing_settings.notification_workers,
        send_timeout=billing_settings.notification_send_timeout_seconds,
    )
    await notifications.start()

    entitlements = EntitlementCache.from_settings(billing_settings)
    gateway = build_gateway_client(billing_settings)
    billing_deps = BillingDependencies.build(billing_settings, gateway=gateway, entitlements=entitlements)
    app.state.billing_dispatcher = EventDispatcher(billing_settings, billing_deps, notifications=notifications)

    codec = PaymentDetailsCodec.from_settings(payout_settings)
    provider = build_transfer_provider(payout_settings)
    payout_deps = PayoutDependencies.build(payout_settings, codec, provider=provider)
    app.state.payout_orchestrator = PayoutOrchestrator(payout_deps, notifications=notifications)
    app.state.notifications = notifications

    scheduler = None
    if settings.scheduler_enabled:
        scheduler = get_scheduler()
        register_scheduled_payouts_job(scheduler, app.state.payout_orchestrator, payout_settings.payout_cron)
        register_dunning_retry_job(
            scheduler,
            billing_deps.dunning_service,
            minutes=billing_settings.dunning_retry_job_interval_minutes,
        )
        register_cache_cleanup_job(scheduler, entitlements.backend)
        scheduler.start()
        logger.info("⏰ Scheduler iniciado con jobs programados")
    else:
        logger.info("⏰ Scheduler deshabilitado (SCHEDULER_ENABLED=false)")

    logger.info(f"🟢 {settings.app_name} iniciado ({settings.python_env}).")
    try:
        yield
    finally:
        # ────────── SHUTDOWN ──────────
        logger.info("🔴 Iniciando shutdown ordenado...")
        with anyio.CancelScope(shield=True):
            if scheduler is not None:
                scheduler.shutdown(wait=True)
                logger.info("⏰ Scheduler detenido")

            await notifications.stop(timeout=billing_settings.notification_send_timeout_seconds)

            for client in (gateway, provider):
                aclose = getattr(client, "aclose", None)
                if aclose is not None:
                    await aclose()

        logger.info(f"🔴 {settings.app_name} apagado.")


openapi_tags = [
    {"name": "billing:webhooks", "description": "Ingesta de eventos del gateway de pagos"},
    {"name": "billing:admin", "description": "Eventos estacionados y replay manual"},
    {"name": "affiliates:payouts", "description": "Payouts a afiliados y screening de fraude"},
]

app = FastAPI(
    title=_settings.app_name,
    description="Webhooks de facturación, dunning y payouts a afiliados",
    version=_settings.app_version,
    lifespan=lifespan,
    openapi_tags=openapi_tags,
)

# Orden real de ejecución en Starlette = inverso al registro:
# CORS (outermost) → JSONException → Prometheus → rutas
if _settings.metrics_enabled:
    setup_observability(app)
app.add_middleware(JSONExceptionMiddleware)

_cors_origins = _settings.get_cors_origins()
_cors_wildcard = _cors_origins == ["*"]
if _cors_wildcard and _settings.is_prod:
    logger.warning("⚠️ CORS wildcard en producción; define CORS_ORIGINS explícito")
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=not _cors_wildcard,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    max_age=600,
)

from app.routes import router as main_router  # noqa: E402

app.include_router(main_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=_settings.app_host,
        port=_settings.app_port,
        reload=_settings.is_dev,
    )

# Fin del archivo backend/app/main.py
