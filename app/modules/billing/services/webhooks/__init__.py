# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/services/webhooks/__init__.py

Servicios de verificación de webhooks.
"""

from .signature_verification import (
    SIGNATURE_HEADER,
    VerifiedEvent,
    build_signature_header,
    compute_signature,
    parse_signature_header,
    should_skip_verification,
    verify,
)

__all__ = [
    "SIGNATURE_HEADER",
    "VerifiedEvent",
    "build_signature_header",
    "compute_signature",
    "parse_signature_header",
    "should_skip_verification",
    "verify",
]
