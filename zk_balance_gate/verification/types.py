"""
⚠️ DRAFT — requires crypto review before production use

Typed proof, public-signal, key and outcome structures.

This module provides:
1. Proof - Groth16 proof in snarkjs layout, parsed and structurally checked
2. PublicSignals - ordered public signals of the circuit
3. VerificationKey - snarkjs verification key with on-curve checks
4. VerificationRequest - one verify() call's input
5. VerificationOutcome - one verify() call's result

Parsing happens once, at the boundary. Anything past ``parse`` is well-formed,
so the pairing backend only ever answers "valid" or "invalid".
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from .circuit import DEFAULT_CIRCUIT, CircuitContract, get_circuit
from .config import CURVE_NAME, FIELD_MODULUS, MAX_PUBLIC_SIGNALS, PROTOCOL
from .exceptions import InvalidInputError
from .groth16.pairing import G1Affine, G2Affine, is_on_curve_g1, is_on_curve_g2

INVALID_PROOF_STRUCTURE = "Invalid proof structure"
INVALID_PUBLIC_SIGNALS = "Invalid public signals"
INVALID_VERIFICATION_KEY = "Invalid verification key"
INVALID_VERIFIER_URL = "Invalid verifier URL"


# ============================================================================
# FIELD ELEMENT PARSING
# ============================================================================


def parse_field_int(value: Any, label: str) -> int:
    """
    Parse a decimal string, 0x-prefixed hex string or int into an int >= 0.

    Raises:
        ValueError: If the value is not a non-negative integer encoding
    """
    if isinstance(value, bool):
        raise ValueError(f"{label} must be an integer string, not bool")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text[:2].lower() == "0x":
            digits = text[2:]
            if not digits or not all(c in "0123456789abcdefABCDEF" for c in digits):
                raise ValueError(f"{label} is not a hex integer")
            parsed = int(digits, 16)
        else:
            if not text or not (text.isascii() and text.isdigit()):
                raise ValueError(f"{label} is not a decimal integer")
            parsed = int(text, 10)
    else:
        raise ValueError(f"{label} must be a string or int")
    if parsed < 0:
        raise ValueError(f"{label} must be non-negative")
    return parsed


def _coordinate(value: Any, label: str) -> int:
    parsed = parse_field_int(value, label)
    if parsed >= FIELD_MODULUS:
        raise ValueError(f"{label} is not reduced modulo the base field")
    return parsed


def _require_list(value: Any, label: str, min_len: int, max_len: int) -> Sequence[Any]:
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"{label} must be a list")
    if not min_len <= len(value) <= max_len:
        raise ValueError(f"{label} must have {min_len}..{max_len} entries")
    return value


def _parse_g1(value: Any, label: str) -> Optional[G1Affine]:
    coords = _require_list(value, label, 2, 3)
    x = _coordinate(coords[0], f"{label}[0]")
    y = _coordinate(coords[1], f"{label}[1]")
    if len(coords) == 3:
        z = parse_field_int(coords[2], f"{label}[2]")
        if z == 0:
            return None
        if z != 1:
            raise ValueError(f"{label} must be affine (z == 1)")
    return (x, y)


def _parse_fq2(value: Any, label: str) -> Tuple[int, int]:
    coeffs = _require_list(value, label, 2, 2)
    return (
        _coordinate(coeffs[0], f"{label}[0]"),
        _coordinate(coeffs[1], f"{label}[1]"),
    )


def _parse_g2(value: Any, label: str) -> Optional[G2Affine]:
    rows = _require_list(value, label, 2, 3)
    x = _parse_fq2(rows[0], f"{label}[0]")
    y = _parse_fq2(rows[1], f"{label}[1]")
    if len(rows) == 3:
        z = _parse_fq2(rows[2], f"{label}[2]")
        if z == (0, 0):
            return None
        if z != (1, 0):
            raise ValueError(f"{label} must be affine (z == [1, 0])")
    return (x, y)


def _g1_json(point: Optional[G1Affine]) -> list[str]:
    if point is None:
        return ["0", "1", "0"]
    return [str(point[0]), str(point[1]), "1"]


def _g2_json(point: Optional[G2Affine]) -> list[list[str]]:
    if point is None:
        return [["0", "0"], ["1", "0"], ["0", "0"]]
    (x0, x1), (y0, y1) = point
    return [[str(x0), str(x1)], [str(y0), str(y1)], ["1", "0"]]


# ============================================================================
# PROOF
# ============================================================================


@dataclass(frozen=True)
class Proof:
    """
    Groth16 proof over BN254.

    Attributes:
        a: pi_a as an affine G1 point (None = infinity)
        b: pi_b as an affine G2 point, Fq2 coefficients ordered (c0, c1)
        c: pi_c as an affine G1 point
        protocol: Always "groth16"
        curve: Always "bn128"
    """

    a: Optional[G1Affine]
    b: Optional[G2Affine]
    c: Optional[G1Affine]
    protocol: str = PROTOCOL
    curve: str = CURVE_NAME

    @classmethod
    def parse(cls, obj: Any) -> "Proof":
        """
        Build a Proof from snarkjs JSON.

        Checks that pi_a, pi_b and pi_c are present and non-empty, nested
        correctly, and hold reduced field elements. Curve membership is left
        to the pairing backend, where a bad point is a failed proof rather
        than a malformed request.

        Raises:
            InvalidInputError: If the structure is malformed
        """
        if not isinstance(obj, Mapping):
            raise InvalidInputError(INVALID_PROOF_STRUCTURE, "proof must be an object")
        for name in ("pi_a", "pi_b", "pi_c"):
            if not obj.get(name):
                raise InvalidInputError(INVALID_PROOF_STRUCTURE, f"{name} missing or empty")

        protocol = obj.get("protocol", PROTOCOL)
        curve = obj.get("curve", CURVE_NAME)
        if protocol != PROTOCOL:
            raise InvalidInputError(
                INVALID_PROOF_STRUCTURE, f"unsupported protocol {protocol!r}"
            )
        if curve != CURVE_NAME:
            raise InvalidInputError(INVALID_PROOF_STRUCTURE, f"unsupported curve {curve!r}")

        try:
            return cls(
                a=_parse_g1(obj["pi_a"], "pi_a"),
                b=_parse_g2(obj["pi_b"], "pi_b"),
                c=_parse_g1(obj["pi_c"], "pi_c"),
                protocol=protocol,
                curve=curve,
            )
        except ValueError as exc:
            raise InvalidInputError(INVALID_PROOF_STRUCTURE, str(exc)) from exc

    def to_json(self) -> Dict[str, Any]:
        return {
            "pi_a": _g1_json(self.a),
            "pi_b": _g2_json(self.b),
            "pi_c": _g1_json(self.c),
            "protocol": self.protocol,
            "curve": self.curve,
        }


# ============================================================================
# PUBLIC SIGNALS
# ============================================================================


@dataclass(frozen=True)
class PublicSignals:
    """
    Ordered public signals.

    ``values`` holds decimal strings for the pairing check and the delegate;
    ``raw`` keeps the strings as the caller sent them, for echoing back.
    """

    values: Tuple[str, ...]
    circuit: CircuitContract = DEFAULT_CIRCUIT
    raw: Tuple[str, ...] = ()

    @classmethod
    def parse(cls, seq: Any, circuit: CircuitContract = DEFAULT_CIRCUIT) -> "PublicSignals":
        """
        Raises:
            InvalidInputError: If not a list of at least the circuit's
                signal count of non-negative integers
        """
        if not isinstance(seq, (list, tuple)):
            raise InvalidInputError(INVALID_PUBLIC_SIGNALS, "publicSignals must be a list")
        if len(seq) < circuit.min_signal_count:
            raise InvalidInputError(
                INVALID_PUBLIC_SIGNALS,
                f"expected at least {circuit.min_signal_count} public signals, got {len(seq)}",
            )
        if len(seq) > MAX_PUBLIC_SIGNALS:
            raise InvalidInputError(INVALID_PUBLIC_SIGNALS, "too many public signals")
        try:
            values = tuple(
                str(parse_field_int(v, f"publicSignals[{i}]")) for i, v in enumerate(seq)
            )
        except ValueError as exc:
            raise InvalidInputError(INVALID_PUBLIC_SIGNALS, str(exc)) from exc
        raw = tuple(v if isinstance(v, str) else str(v) for v in seq)
        return cls(values=values, circuit=circuit, raw=raw)

    def __len__(self) -> int:
        return len(self.values)

    @property
    def _echoed(self) -> Tuple[str, ...]:
        return self.raw or self.values

    @property
    def threshold(self) -> str:
        return self._echoed[self.circuit.signal_index("threshold")]

    @property
    def commitment(self) -> str:
        return self._echoed[self.circuit.signal_index("commitment")]

    def labelled(self) -> Dict[str, str]:
        return self.circuit.label(self._echoed)

    def as_ints(self) -> list[int]:
        return [int(v) for v in self.values]


# ============================================================================
# VERIFICATION KEY
# ============================================================================


@dataclass(frozen=True)
class VerificationKey:
    """
    snarkjs Groth16 verification key.

    ``raw`` keeps the original JSON (read-only) so it can be forwarded to a
    delegate verifier unchanged.
    """

    alpha_1: Optional[G1Affine]
    beta_2: Optional[G2Affine]
    gamma_2: Optional[G2Affine]
    delta_2: Optional[G2Affine]
    ic: Tuple[Optional[G1Affine], ...]
    raw: Mapping[str, Any] = field(compare=False, repr=False, default_factory=dict)

    @classmethod
    def parse(cls, obj: Any) -> "VerificationKey":
        """
        Build a key from snarkjs ``verification_key.json`` content.

        Raises:
            InvalidInputError: If the key is malformed or a point is off-curve
        """
        if not isinstance(obj, Mapping):
            raise InvalidInputError(INVALID_VERIFICATION_KEY, "vkey must be an object")
        protocol = obj.get("protocol", PROTOCOL)
        curve = obj.get("curve", CURVE_NAME)
        if protocol != PROTOCOL or curve != CURVE_NAME:
            raise InvalidInputError(
                INVALID_VERIFICATION_KEY, f"unsupported key {protocol!r}/{curve!r}"
            )
        try:
            alpha_1 = _parse_g1(obj["vk_alpha_1"], "vk_alpha_1")
            beta_2 = _parse_g2(obj["vk_beta_2"], "vk_beta_2")
            gamma_2 = _parse_g2(obj["vk_gamma_2"], "vk_gamma_2")
            delta_2 = _parse_g2(obj["vk_delta_2"], "vk_delta_2")
            ic_raw = _require_list(obj["IC"], "IC", 1, MAX_PUBLIC_SIGNALS + 1)
            ic = tuple(_parse_g1(p, f"IC[{i}]") for i, p in enumerate(ic_raw))
        except KeyError as exc:
            raise InvalidInputError(
                INVALID_VERIFICATION_KEY, f"missing field {exc.args[0]}"
            ) from exc
        except ValueError as exc:
            raise InvalidInputError(INVALID_VERIFICATION_KEY, str(exc)) from exc

        n_public = obj.get("nPublic")
        if n_public is not None and n_public != len(ic) - 1:
            raise InvalidInputError(
                INVALID_VERIFICATION_KEY,
                f"nPublic={n_public!r} does not match {len(ic)} IC points",
            )

        if not is_on_curve_g1(alpha_1) or not all(is_on_curve_g1(p) for p in ic):
            raise InvalidInputError(INVALID_VERIFICATION_KEY, "G1 point not on curve")
        if not all(is_on_curve_g2(p) for p in (beta_2, gamma_2, delta_2)):
            raise InvalidInputError(INVALID_VERIFICATION_KEY, "G2 point not on curve")

        return cls(
            alpha_1=alpha_1,
            beta_2=beta_2,
            gamma_2=gamma_2,
            delta_2=delta_2,
            ic=ic,
            raw=MappingProxyType(json.loads(json.dumps(obj))),
        )

    @property
    def n_public(self) -> int:
        return len(self.ic) - 1

    @property
    def fingerprint(self) -> str:
        canonical = json.dumps(dict(self.raw), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    def to_json(self) -> Dict[str, Any]:
        return json.loads(json.dumps(dict(self.raw)))


# ============================================================================
# REQUEST / OUTCOME
# ============================================================================


class VerificationMode(Enum):
    """How a decision was reached."""

    CRYPTOGRAPHIC = "cryptographic"
    STRUCTURAL_ONLY = "structural_only"
    DELEGATED_FAILED = "delegated_failed"


class ErrorKind(Enum):
    """
    Error taxonomy for verification outcomes.

    - INVALID_INPUT: malformed proof or signals, fix the input before retrying
    - DELEGATE_UNREACHABLE: external verifier gave no answer, retry later
    - CRYPTOGRAPHICALLY_INVALID: the proof will never verify
    - INTERNAL_ERROR: verifier fault, says nothing about the proof
    """

    INVALID_INPUT = "invalid_input"
    DELEGATE_UNREACHABLE = "delegate_unreachable"
    CRYPTOGRAPHICALLY_INVALID = "cryptographically_invalid"
    INTERNAL_ERROR = "internal_error"

    @property
    def retryable(self) -> bool:
        return self in (ErrorKind.DELEGATE_UNREACHABLE, ErrorKind.INTERNAL_ERROR)


@dataclass(frozen=True)
class VerificationRequest:
    proof: Proof
    public_signals: PublicSignals
    verification_key: Optional[VerificationKey] = None
    delegate_endpoint: Optional[str] = None
    circuit: CircuitContract = DEFAULT_CIRCUIT

    @classmethod
    def from_json(cls, payload: Any) -> "VerificationRequest":
        """
        Parse the wire request ``{proof, publicSignals, vkey?, verifierUrl?, circuitId?}``.

        Raises:
            InvalidInputError: On any structural problem
        """
        if not isinstance(payload, Mapping):
            raise InvalidInputError(INVALID_PROOF_STRUCTURE, "request must be an object")

        circuit = get_circuit(payload.get("circuitId"))
        if "proof" not in payload or payload["proof"] is None:
            raise InvalidInputError(INVALID_PROOF_STRUCTURE, "proof missing")
        proof = Proof.parse(payload["proof"])
        if payload.get("publicSignals") is None:
            raise InvalidInputError(INVALID_PUBLIC_SIGNALS, "publicSignals missing")
        signals = PublicSignals.parse(payload["publicSignals"], circuit)

        vkey = payload.get("vkey")
        key = VerificationKey.parse(vkey) if vkey is not None else None

        endpoint = payload.get("verifierUrl") or None
        if endpoint is not None and not _is_http_url(endpoint):
            raise InvalidInputError(INVALID_VERIFIER_URL, f"unsupported URL {endpoint!r}")

        return cls(
            proof=proof,
            public_signals=signals,
            verification_key=key,
            delegate_endpoint=endpoint,
            circuit=circuit,
        )


def _is_http_url(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(("http://", "https://"))


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


@dataclass(frozen=True)
class VerificationOutcome:
    """
    Result of a single verification.

    ``mode`` is None only for error outcomes that never reached a decision
    (invalid input, delegate unreachable, internal error).
    """

    verified: bool
    mode: Optional[VerificationMode]
    public_signals: Optional[Dict[str, str]] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    note: Optional[str] = None
    timestamp: Optional[str] = None
    key_source: Optional[str] = None
    delegate_rejected: bool = False

    @classmethod
    def invalid_input(cls, message: str) -> "VerificationOutcome":
        return cls(
            verified=False,
            mode=None,
            error=message,
            error_kind=ErrorKind.INVALID_INPUT,
        )

    @property
    def retryable(self) -> bool:
        return self.error_kind is not None and self.error_kind.retryable

    @property
    def degraded(self) -> bool:
        """Accepted without a cryptographic check."""
        return self.verified and self.mode is VerificationMode.STRUCTURAL_ONLY

    def to_json(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"verified": self.verified}
        if self.mode is not None:
            body["mode"] = self.mode.value
        if self.timestamp is not None:
            body["timestamp"] = self.timestamp
        if self.public_signals is not None:
            body["publicSignals"] = dict(self.public_signals)
        if self.note is not None:
            body["note"] = self.note
        if self.key_source is not None:
            body["keySource"] = self.key_source
        if self.error is not None:
            body["error"] = self.error
        if self.error_kind is not None:
            body["errorKind"] = self.error_kind.value
            body["retryable"] = self.retryable
        return body
