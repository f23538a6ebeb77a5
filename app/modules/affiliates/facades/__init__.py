# -*- coding: utf-8 -*-
"""
backend/app/modules/affiliates/facades/__init__.py

Facades del módulo Affiliates (dueñas de commit/rollback).
"""
