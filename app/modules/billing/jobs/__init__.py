# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/jobs/__init__.py

Jobs programados del módulo Billing.
"""

from .dunning_retry_job import JOB_ID as DUNNING_RETRY_JOB_ID, register_dunning_retry_job, run_dunning_retries

__all__ = ["DUNNING_RETRY_JOB_ID", "register_dunning_retry_job", "run_dunning_retries"]
