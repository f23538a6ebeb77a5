# -*- coding: utf-8 -*-
"""
backend/app/shared/scheduler/jobs/cache_cleanup_job.py

Job programado para limpieza de entradas expiradas de cachés en memoria
(hoy: caché de entitlements).

Autor: Naturinex Billing
Fecha: 2026-09-06
"""

import logging
from typing import Any, Dict

from app.shared.cache import CacheBackend

logger = logging.getLogger(__name__)

JOB_ID = "entitlement_cache_cleanup"


async def cleanup_cache(cache: CacheBackend, cache_name: str) -> Dict[str, Any]:
    """
    Limpia entradas expiradas de un caché y loguea métricas clave.

    Returns:
        Dict con estadísticas de la limpieza
    """
    removed = cache.cleanup()
    stats = cache.get_stats()

    logger.info(
        "[cache_cleanup] cache=%s size=%d removed_expired=%d hit_rate=%.1f%% evictions=%d",
        cache_name,
        stats.get("size", 0),
        removed,
        stats.get("hit_rate_percent", 0.0),
        stats.get("evictions", 0),
    )

    max_size = cache.max_size
    if max_size and stats.get("size", 0) > max_size * 0.9:
        logger.warning(
            "[cache_cleanup] cache=%s at %d/%d entries; considera subir max_size o bajar TTL",
            cache_name,
            stats.get("size", 0),
            max_size,
        )

    return {"cache_name": cache_name, "removed_expired": removed, **stats}


def register_cache_cleanup_job(scheduler, cache: CacheBackend, cache_name: str = "entitlements") -> str:
    """
    Registra la limpieza horaria del caché en el scheduler.

    Args:
        scheduler: Instancia de SchedulerService
        cache: Caché a limpiar

    Returns:
        ID del job registrado
    """
    scheduler.add_interval_job(
        func=cleanup_cache,
        job_id=JOB_ID,
        hours=1,
        cache=cache,
        cache_name=cache_name,
    )
    logger.info("[cache_cleanup] Job '%s' registered: hourly cleanup", JOB_ID)
    return JOB_ID


# Fin del archivo backend/app/shared/scheduler/jobs/cache_cleanup_job.py
