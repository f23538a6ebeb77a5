# -*- coding: utf-8 -*-
"""
backend/app/modules/affiliates/jobs/__init__.py
"""

from .scheduled_payouts_job import JOB_ID, register_scheduled_payouts_job, run_scheduled_payouts_job

__all__ = ["JOB_ID", "register_scheduled_payouts_job", "run_scheduled_payouts_job"]
