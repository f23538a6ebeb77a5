# -*- coding: utf-8 -*-
"""
backend/app/shared/security/__init__.py

Utilidades de seguridad compartidas.
"""

from .payment_details_codec import PaymentDetailsCodec, PaymentDetailsError

__all__ = [
    "PaymentDetailsCodec",
    "PaymentDetailsError",
]
