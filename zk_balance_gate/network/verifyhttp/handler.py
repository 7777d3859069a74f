"""Pure request/response handlers for the verification endpoints."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from ...verification.circuit import get_circuit
from ...verification.engine import VerificationEngine
from ...verification.exceptions import InternalVerificationError, InvalidInputError
from ...verification.groth16.backend import Groth16Backend
from ...verification.types import (
    ErrorKind,
    Proof,
    PublicSignals,
    VerificationKey,
    VerificationOutcome,
    utc_timestamp,
)
from .constants import (
    BODY_TOO_LARGE,
    INTERNAL_ERROR,
    INVALID_JSON,
    MAX_BODY_BYTES,
    MISSING_DELEGATE_FIELDS,
)
from .errors import ProtocolError, SizeLimitError
from .messages import decode_request, encode_error, encode_response

logger = logging.getLogger(__name__)

HandlerResult = Tuple[int, bytes]


def status_for(outcome: VerificationOutcome) -> int:
    if outcome.error_kind is ErrorKind.INVALID_INPUT:
        return 400
    if outcome.error_kind is ErrorKind.DELEGATE_UNREACHABLE:
        return 502
    return 200


def _invalid(message: str) -> bytes:
    return encode_error(
        message, errorKind=ErrorKind.INVALID_INPUT.value, retryable=False
    )


async def handle_verify_request_bytes(
    body: bytes, engine: VerificationEngine, max_bytes: int = MAX_BODY_BYTES
) -> HandlerResult:
    try:
        payload = decode_request(body, max_bytes)
    except SizeLimitError:
        return 413, _invalid(BODY_TOO_LARGE)
    except ProtocolError as exc:
        logger.info("undecodable verify request: %s", exc)
        return 400, _invalid(INVALID_JSON)

    try:
        outcome = await engine.verify_payload(payload)
    except InternalVerificationError as exc:
        logger.error("verification failed internally: %s", exc)
        return 500, encode_error(
            INTERNAL_ERROR, errorKind=ErrorKind.INTERNAL_ERROR.value, retryable=True
        )

    return status_for(outcome), encode_response(outcome.to_json())


def handle_delegate_request_bytes(
    body: bytes,
    backend: Optional[Groth16Backend] = None,
    max_bytes: int = MAX_BODY_BYTES,
) -> HandlerResult:
    """
    Standalone verifier: every request carries its own key.

    Pairing runs inline, so async callers should push this onto a worker
    thread.
    """
    try:
        payload = decode_request(body, max_bytes)
    except SizeLimitError:
        return 413, encode_response({"error": BODY_TOO_LARGE})
    except ProtocolError:
        return 400, encode_response({"error": INVALID_JSON})

    if not payload.get("proof") or not payload.get("publicSignals") or not payload.get("vkey"):
        return 400, encode_response({"error": MISSING_DELEGATE_FIELDS})

    try:
        circuit = get_circuit(payload.get("circuitId"))
        proof = Proof.parse(payload["proof"])
        signals = PublicSignals.parse(payload["publicSignals"], circuit)
        vkey = VerificationKey.parse(payload["vkey"])
    except InvalidInputError as exc:
        logger.info("delegate request rejected: %s", exc.detail)
        return 400, encode_response({"error": str(exc)})

    verifier = backend if backend is not None else Groth16Backend()
    try:
        verified = verifier.verify(vkey, signals, proof)
    except Exception:
        logger.exception("delegate verification failed")
        return 500, encode_response({"verified": False, "error": "Verification failed"})

    logger.info("delegate verification result: %s", "valid" if verified else "invalid")
    return 200, encode_response(
        {
            "verified": verified,
            "timestamp": utc_timestamp(),
            "publicSignals": signals.labelled(),
        }
    )
