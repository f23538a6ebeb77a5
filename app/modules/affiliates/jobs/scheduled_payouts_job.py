# -*- coding: utf-8 -*-
"""
backend/app/modules/affiliates/jobs/scheduled_payouts_job.py

Job programado de payouts a afiliados (cron, por defecto viernes
14:00 UTC). max_instances=1 en el scheduler evita dos corridas
solapadas en el mismo proceso; entre instancias la protección es la
vinculación condicional de comisiones.

Autor: Naturinex Billing
Fecha: 2026-09-19
"""

import logging
from typing import Any, Callable, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.database import SessionLocal
from ..facades.payouts import PayoutOrchestrator

logger = logging.getLogger(__name__)

JOB_ID = "scheduled_payouts"


async def run_scheduled_payouts_job(
    orchestrator: PayoutOrchestrator,
    session_factory: Optional[Callable[[], AsyncSession]] = None,
) -> Dict[str, Any]:
    factory = session_factory or SessionLocal
    async with factory() as session:
        try:
            summary = await orchestrator.run_scheduled_payouts(session)
        finally:
            if session.in_transaction():
                await session.rollback()
    result = summary.as_dict()
    logger.info(
        "[scheduled_payouts] processed=%s failed=%s skipped=%s total=%s errors=%d",
        result["processed"],
        result["failed"],
        result["skipped"],
        result["total_amount"],
        len(result["errors"]),
    )
    return result


def register_scheduled_payouts_job(scheduler, orchestrator: PayoutOrchestrator, cron_expression: str) -> str:
    """
    Registra la corrida de payouts.

    Args:
        scheduler: Instancia de SchedulerService
        orchestrator: Orquestador con proveedor y codec ya inyectados
        cron_expression: Expresión cron de 5 campos (UTC)

    Returns:
        ID del job registrado
    """
    scheduler.add_cron_job(
        func=run_scheduled_payouts_job,
        job_id=JOB_ID,
        cron_expression=cron_expression,
        orchestrator=orchestrator,
    )
    logger.info("[scheduled_payouts] Job '%s' registered: cron='%s'", JOB_ID, cron_expression)
    return JOB_ID


__all__ = ["JOB_ID", "run_scheduled_payouts_job", "register_scheduled_payouts_job"]

# Fin del archivo backend/app/modules/affiliates/jobs/scheduled_payouts_job.py
