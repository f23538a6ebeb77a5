# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/facades/__init__.py

Facades del módulo Billing: orquestan servicios y deciden la frontera
transaccional (commit/rollback).
"""
