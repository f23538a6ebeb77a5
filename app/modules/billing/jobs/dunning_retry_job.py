# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/jobs/dunning_retry_job.py

Job programado que pide al gateway cobrar las facturas cuyo
next_retry_at ya venció. El resultado llega como webhook
(invoice.payment_succeeded / invoice.payment_failed) y es ese evento
el que avanza la máquina de estados de dunning.

Autor: Naturinex Billing
Fecha: 2026-09-12
"""

import logging
from typing import Any, Callable, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.database import SessionLocal
from ..services import DunningService

logger = logging.getLogger(__name__)

JOB_ID = "dunning_retry"


async def run_dunning_retries(
    dunning_service: DunningService,
    session_factory: Optional[Callable[[], AsyncSession]] = None,
) -> Dict[str, Any]:
    """
    Ejecuta una pasada del job.

    Returns:
        Dict con due/requested/failed/skipped
    """
    factory = session_factory or SessionLocal
    async with factory() as session:
        try:
            summary = await dunning_service.request_due_retries(session)
        finally:
            if session.in_transaction():
                await session.rollback()
    logger.info("[dunning_retry] %s", summary)
    return summary


def register_dunning_retry_job(scheduler, dunning_service: DunningService, minutes: int = 60) -> str:
    """
    Registra el job en el scheduler.

    Args:
        scheduler: Instancia de SchedulerService
        dunning_service: Servicio con el cliente del gateway ya inyectado
        minutes: Intervalo entre pasadas

    Returns:
        ID del job registrado
    """
    scheduler.add_interval_job(
        func=run_dunning_retries,
        job_id=JOB_ID,
        minutes=minutes,
        dunning_service=dunning_service,
    )
    logger.info("[dunning_retry] Job '%s' registered: every %d min", JOB_ID, minutes)
    return JOB_ID


__all__ = ["JOB_ID", "run_dunning_retries", "register_dunning_retry_job"]

# Fin del archivo backend/app/modules/billing/jobs/dunning_retry_job.py
