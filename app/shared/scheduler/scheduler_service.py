# -*- coding: utf-8 -*-
"""
backend/app/shared/scheduler/scheduler_service.py

Servicio de programación de tareas periódicas usando APScheduler.

Jobs registrados por el lifespan:
- scheduled_payouts (cron, viernes 14:00 UTC por defecto)
- dunning_retry (intervalo)
- entitlement_cache_cleanup (intervalo)

Autor: Naturinex Billing
Fecha: 2026-09-06
"""

import logging
from typing import Any, Callable, Optional

from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.jobstores.base import JobLookupError
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)


class SchedulerService:
    """
    Servicio de programación de tareas periódicas.

    Cada job corre como máximo en una instancia a la vez y las ejecuciones
    perdidas se combinan (coalesce); la coordinación entre réplicas del
    servicio la dan las transiciones de estado persistidas, no el scheduler.
    """

    def __init__(self, misfire_grace_time: int = 300):
        self._scheduler = AsyncIOScheduler(
            jobstores={"default": MemoryJobStore()},
            executors={"default": AsyncIOExecutor()},
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": misfire_grace_time,
            },
            timezone="UTC",
        )
        self._started = False
        logger.info("SchedulerService inicializado")

    def start(self) -> None:
        if not self._started:
            self._scheduler.start()
            self._started = True
            logger.info("SchedulerService iniciado")

    def shutdown(self, wait: bool = True) -> None:
        """
        Detiene el scheduler.

        Args:
            wait: Si True, espera a que terminen los jobs en ejecución
        """
        if self._started:
            self._scheduler.shutdown(wait=wait)
            self._started = False
            logger.info("SchedulerService detenido")

    def add_interval_job(
        self,
        func: Callable[..., Any],
        job_id: str,
        hours: int = 0,
        minutes: int = 0,
        seconds: int = 0,
        **kwargs: Any,
    ) -> str:
        """
        Agrega un job que se ejecuta a intervalos regulares.

        Args:
            func: Función (sync o async) a ejecutar
            job_id: ID único del job
            hours/minutes/seconds: Intervalo
            **kwargs: Argumentos para func

        Returns:
            ID del job agregado
        """
        self._scheduler.add_job(
            func=func,
            trigger=IntervalTrigger(hours=hours, minutes=minutes, seconds=seconds),
            id=job_id,
            name=job_id,
            replace_existing=True,
            kwargs=kwargs,
        )
        logger.info(f"Job '{job_id}' agregado: cada {hours}h {minutes}m {seconds}s")
        return job_id

    def add_cron_job(
        self,
        func: Callable[..., Any],
        job_id: str,
        cron_expression: str,
        **kwargs: Any,
    ) -> str:
        """
        Agrega un job según expresión cron de 5 campos
        (minuto hora día mes día_semana), evaluada en UTC.

        Raises:
            ValueError: si la expresión no tiene 5 campos
        """
        if len(cron_expression.split()) != 5:
            raise ValueError("Expresión cron inválida (requiere 5 campos)")
        trigger = CronTrigger.from_crontab(cron_expression, timezone="UTC")

        self._scheduler.add_job(
            func=func,
            trigger=trigger,
            id=job_id,
            name=job_id,
            replace_existing=True,
            kwargs=kwargs,
        )
        logger.info(f"Job '{job_id}' agregado: cron '{cron_expression}'")
        return job_id

    def remove_job(self, job_id: str) -> bool:
        try:
            self._scheduler.remove_job(job_id)
            logger.info(f"Job '{job_id}' eliminado")
            return True
        except JobLookupError:
            logger.warning(f"No se pudo eliminar job '{job_id}': no existe")
            return False

    def get_jobs(self) -> list[dict]:
        return [
            {
                "id": job.id,
                "name": job.name,
                "next_run": getattr(job, "next_run_time", None),
                "trigger": str(job.trigger),
            }
            for job in self._scheduler.get_jobs()
        ]

    def get_job_status(self, job_id: str) -> Optional[dict]:
        job = self._scheduler.get_job(job_id)
        if job is None:
            return None
        return {
            "id": job.id,
            "name": job.name,
            "next_run": getattr(job, "next_run_time", None),
            "trigger": str(job.trigger),
        }

    @property
    def is_running(self) -> bool:
        """Retorna True si el scheduler está activo."""
        return self._started and self._scheduler.running


# Singleton global del scheduler
_scheduler_instance: Optional[SchedulerService] = None


def get_scheduler() -> SchedulerService:
    """Obtiene la instancia global del scheduler (singleton)."""
    global _scheduler_instance
    if _scheduler_instance is None:
        _scheduler_instance = SchedulerService()
    return _scheduler_instance


# Fin del archivo backend/app/shared/scheduler/scheduler_service.py
