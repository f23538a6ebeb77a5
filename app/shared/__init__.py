# -*- coding: utf-8 -*-
"""
backend/app/shared/__init__.py

Infraestructura compartida: configuración, base de datos, scheduler,
cachés, notificaciones, seguridad y middlewares.
"""
