# -*- coding: utf-8 -*-
"""
backend/app/modules/affiliates/facades/payouts/__init__.py

Autor: Naturinex Billing
Fecha: 2026-09-18
"""

from .eligibility import EligibilityResult, effective_threshold, evaluate_eligibility
from .orchestrator import BatchSummary, PayoutDependencies, PayoutOrchestrator, PayoutOutcome

__all__ = [
    "EligibilityResult",
    "effective_threshold",
    "evaluate_eligibility",
    "BatchSummary",
    "PayoutDependencies",
    "PayoutOrchestrator",
    "PayoutOutcome",
]
