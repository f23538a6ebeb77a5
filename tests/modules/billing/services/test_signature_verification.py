# -*- coding: utf-8 -*-
"""
Tests de verificación de firmas de webhooks.

Cubre:
- Firma válida dentro de la tolerancia
- Cualquier bit alterado en el cuerpo → InvalidSignature
- Timestamp fuera de ±300s → StaleSignature (pasado y futuro)
- Header ausente o sin t=/v1= → MalformedSignature
- Múltiples v1 (rotación de secreto)
- Bypass inseguro solo en desarrollo

Autor: Naturinex Billing
Fecha: 2026-09-21
"""

import json

import pytest

from app.modules.billing.errors import InvalidSignature, MalformedSignature, StaleSignature
from app.modules.billing.services.webhooks import (
    build_signature_header,
    compute_signature,
    parse_signature_header,
    should_skip_verification,
    verify,
)

SECRET = "whsec_unit"
NOW = 1_790_000_000
BODY = json.dumps({"id": "evt_1", "type": "invoice.payment_failed"}).encode("utf-8")


class TestValidSignature:
    """Firmas auténticas y frescas."""

    def test_accepts_signature_at_same_second(self):
        header = build_signature_header(BODY, SECRET, timestamp=NOW)
        verified = verify(BODY, header, SECRET, now=NOW)
        assert verified.timestamp == NOW
        assert verified.raw_body == BODY

    @pytest.mark.parametrize("skew", [-300, -299, 299, 300])
    def test_accepts_skew_within_tolerance(self, skew):
        header = build_signature_header(BODY, SECRET, timestamp=NOW + skew)
        verify(BODY, header, SECRET, now=NOW)

    def test_accepts_when_any_v1_matches(self):
        good = compute_signature(BODY, NOW, SECRET)
        header = f"t={NOW},v1={'0' * 64},v1={good}"
        verify(BODY, header, SECRET, now=NOW)


class TestTamperedBody:
    """Un solo bit cambiado invalida la firma."""

    @pytest.mark.parametrize("position", [0, 5, len(BODY) // 2, len(BODY) - 1])
    def test_single_bit_flip_rejected(self, position):
        header = build_signature_header(BODY, SECRET, timestamp=NOW)
        tampered = bytearray(BODY)
        tampered[position] ^= 0x01
        with pytest.raises(InvalidSignature):
            verify(bytes(tampered), header, SECRET, now=NOW)

    def test_wrong_secret_rejected(self):
        header = build_signature_header(BODY, "otro_secreto", timestamp=NOW)
        with pytest.raises(InvalidSignature):
            verify(BODY, header, SECRET, now=NOW)

    def test_timestamp_is_part_of_signed_payload(self):
        signature = compute_signature(BODY, NOW, SECRET)
        header = f"t={NOW + 1},v1={signature}"
        with pytest.raises(InvalidSignature):
            verify(BODY, header, SECRET, now=NOW)

    def test_missing_secret_rejects_everything(self):
        header = build_signature_header(BODY, SECRET, timestamp=NOW)
        with pytest.raises(InvalidSignature):
            verify(BODY, header, "", now=NOW)


class TestStaleSignature:
    """Timestamps fuera de la ventana de 5 minutos."""

    @pytest.mark.parametrize("skew", [-301, 301, -3600])
    def test_rejects_skew_outside_tolerance(self, skew):
        header = build_signature_header(BODY, SECRET, timestamp=NOW + skew)
        with pytest.raises(StaleSignature):
            verify(BODY, header, SECRET, now=NOW)

    def test_custom_tolerance(self):
        header = build_signature_header(BODY, SECRET, timestamp=NOW - 61)
        with pytest.raises(StaleSignature):
            verify(BODY, header, SECRET, tolerance_seconds=60, now=NOW)


class TestMalformedHeader:
    """Headers que no se pueden interpretar."""

    @pytest.mark.parametrize(
        "header",
        [None, "", "   ", f"v1={'a' * 64}", f"t={NOW}", f"t=abc,v1={'a' * 64}", f"t={NOW},v1="],
    )
    def test_rejects_malformed(self, header):
        with pytest.raises(MalformedSignature):
            verify(BODY, header, SECRET, now=NOW)

    def test_parse_collects_all_signatures(self):
        timestamp, signatures = parse_signature_header(f"t={NOW}, v1=aaa, v0=zzz, v1=bbb")
        assert timestamp == NOW
        assert signatures == ["aaa", "bbb"]

    def test_signature_error_reasons(self):
        assert MalformedSignature.reason == "malformed"
        assert StaleSignature.reason == "stale"
        assert InvalidSignature.reason == "invalid"


class TestInsecureBypass:
    """ALLOW_INSECURE_WEBHOOKS solo tiene efecto en desarrollo."""

    def test_bypass_only_in_dev(self):
        assert should_skip_verification(True, is_dev=True) is True

    def test_bypass_ignored_outside_dev(self):
        assert should_skip_verification(True, is_dev=False) is False

    def test_no_bypass_by_default(self):
        assert should_skip_verification(False, is_dev=True) is False
