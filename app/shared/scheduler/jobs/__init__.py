# -*- coding: utf-8 -*-
"""
backend/app/shared/scheduler/jobs/__init__.py

Jobs programados compartidos.

Autor: Naturinex Billing
Fecha: 2026-09-06
"""

from .cache_cleanup_job import cleanup_cache, register_cache_cleanup_job

__all__ = [
    "cleanup_cache",
    "register_cache_cleanup_job",
]
