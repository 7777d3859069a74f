"""Unit tests for the verify and delegate request handlers."""

from __future__ import annotations

import json

import pytest

from zk_balance_gate.network.verifyhttp.constants import MISSING_DELEGATE_FIELDS
from zk_balance_gate.network.verifyhttp.handler import (
    handle_delegate_request_bytes,
    handle_verify_request_bytes,
)
from zk_balance_gate.verification.engine import DelegateVerdict, VerificationEngine
from zk_balance_gate.verification.exceptions import DelegateUnreachableError
from zk_balance_gate.verification.tests.groth16_fixtures import (
    COMMITMENT,
    THRESHOLD,
    request_payload,
    valid_triple,
)


class _FixedBackend:
    def __init__(self, result: bool = True, error: Exception | None = None) -> None:
        self.result = result
        self.error = error

    def verify(self, vk, signals, proof) -> bool:
        if self.error is not None:
            raise self.error
        return self.result


class _UnreachableDelegate:
    async def verify(self, endpoint, proof, public_signals, vkey) -> DelegateVerdict:
        raise DelegateUnreachableError("connection refused")


def _body(payload: dict) -> bytes:
    return json.dumps(payload).encode("utf-8")


# ============================================================================
# /verify-zk-proof
# ============================================================================


@pytest.mark.trio
async def test_verified_request_returns_200() -> None:
    engine = VerificationEngine(backend=_FixedBackend(True))
    status, blob = await handle_verify_request_bytes(_body(request_payload()), engine)
    body = json.loads(blob)

    assert status == 200
    assert body["verified"] is True
    assert body["mode"] == "cryptographic"
    assert body["publicSignals"] == {"threshold": THRESHOLD, "commitment": COMMITMENT}


@pytest.mark.trio
async def test_cryptographic_rejection_returns_200() -> None:
    engine = VerificationEngine(backend=_FixedBackend(False))
    status, blob = await handle_verify_request_bytes(_body(request_payload()), engine)
    body = json.loads(blob)

    assert status == 200
    assert body["verified"] is False
    assert body["error"] == "Invalid zero-knowledge proof"
    assert body["errorKind"] == "cryptographically_invalid"
    assert body["retryable"] is False


@pytest.mark.trio
async def test_empty_proof_returns_400() -> None:
    engine = VerificationEngine()
    status, blob = await handle_verify_request_bytes(
        _body({"proof": {"pi_a": [], "pi_b": [], "pi_c": []}, "publicSignals": ["1", "2"]}),
        engine,
    )
    body = json.loads(blob)

    assert status == 400
    assert body["verified"] is False
    assert body["error"] == "Invalid proof structure"


@pytest.mark.trio
async def test_undecodable_body_returns_400() -> None:
    status, blob = await handle_verify_request_bytes(b"not json", VerificationEngine())
    assert status == 400
    assert json.loads(blob)["errorKind"] == "invalid_input"


@pytest.mark.trio
async def test_oversized_body_returns_413() -> None:
    status, _ = await handle_verify_request_bytes(b"{}" + b" " * 64, VerificationEngine(), max_bytes=16)
    assert status == 413


@pytest.mark.trio
async def test_structural_only_returns_200_with_note() -> None:
    _, proof, signals = valid_triple()
    status, blob = await handle_verify_request_bytes(
        _body({"proof": proof, "publicSignals": signals}), VerificationEngine()
    )
    body = json.loads(blob)

    assert status == 200
    assert body["verified"] is True
    assert body["mode"] == "structural_only"
    assert "unverified cryptographically" in body["note"]


@pytest.mark.trio
async def test_delegate_unreachable_returns_502() -> None:
    _, proof, signals = valid_triple()
    engine = VerificationEngine(
        delegate=_UnreachableDelegate(), delegate_endpoint="https://verifier.example/api/verify"
    )
    status, blob = await handle_verify_request_bytes(
        _body({"proof": proof, "publicSignals": signals}), engine
    )
    body = json.loads(blob)

    assert status == 502
    assert body["verified"] is False
    assert body["retryable"] is True


@pytest.mark.trio
async def test_internal_failure_returns_500_without_traceback() -> None:
    engine = VerificationEngine(backend=_FixedBackend(error=ZeroDivisionError("secret detail")))
    status, blob = await handle_verify_request_bytes(_body(request_payload()), engine)
    body = json.loads(blob)

    assert status == 500
    assert body["errorKind"] == "internal_error"
    assert "secret detail" not in blob.decode()


# ============================================================================
# /api/verify (delegate verifier)
# ============================================================================


@pytest.mark.parametrize("missing", ["proof", "publicSignals", "vkey"])
def test_delegate_missing_field_returns_400(missing: str) -> None:
    payload = request_payload()
    del payload[missing]
    status, blob = handle_delegate_request_bytes(_body(payload), _FixedBackend())
    assert status == 400
    assert json.loads(blob) == {"error": MISSING_DELEGATE_FIELDS}


def test_delegate_proof_without_points_returns_400() -> None:
    payload = request_payload(proof={"protocol": "groth16"})
    status, blob = handle_delegate_request_bytes(_body(payload), _FixedBackend())
    assert status == 400
    assert json.loads(blob) == {"error": "Invalid proof structure"}


def test_delegate_verdict_shape() -> None:
    status, blob = handle_delegate_request_bytes(_body(request_payload()), _FixedBackend(False))
    body = json.loads(blob)

    assert status == 200
    assert body["verified"] is False
    assert body["publicSignals"] == {"threshold": THRESHOLD, "commitment": COMMITMENT}
    assert body["timestamp"].endswith("Z")


def test_delegate_internal_failure_returns_500() -> None:
    status, blob = handle_delegate_request_bytes(
        _body(request_payload()), _FixedBackend(error=RuntimeError("boom"))
    )
    assert status == 500
    assert json.loads(blob) == {"verified": False, "error": "Verification failed"}


@pytest.mark.slow
def test_delegate_real_pairing_accepts_valid_proof() -> None:
    status, blob = handle_delegate_request_bytes(_body(request_payload()))
    assert status == 200
    assert json.loads(blob)["verified"] is True
