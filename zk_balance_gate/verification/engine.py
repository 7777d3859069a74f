"""
⚠️ DRAFT — requires crypto review before production use

Verification engine: the decision authority for submitted proofs.

One pass per request:

    Received -> StructurallyValidated -> KeyResolved | KeyAbsent
             -> CryptoChecked | DelegateChecked | Unchecked -> Terminal

Expected conditions (no key, delegate down, delegate rejection under the
lenient policy) are reported in the outcome. Only unexpected faults escape,
as InternalVerificationError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, FrozenSet, Iterable, Mapping, Optional, Protocol, Sequence

import trio

from .exceptions import DelegateUnreachableError, InternalVerificationError, InvalidInputError
from .feature_flags import STRICT, get_policy
from .groth16.backend import Groth16Backend
from .key_store import VerificationKeyStore
from .types import (
    ErrorKind,
    Proof,
    PublicSignals,
    VerificationKey,
    VerificationMode,
    VerificationOutcome,
    VerificationRequest,
    utc_timestamp,
)

logger = logging.getLogger(__name__)

INVALID_PROOF = "Invalid zero-knowledge proof"
DELEGATE_UNREACHABLE = "External verifier unreachable"
STRUCTURAL_NOTE = "Proof structure is valid but unverified cryptographically"
LENIENT_NOTE = (
    "External verifier rejected the proof; accepted on structural validation only"
)
VERIFIER_URL_NOT_ALLOWED = "Verifier URL not allowed"

KEY_SOURCE_REQUEST = "request"


@dataclass(frozen=True)
class DelegateVerdict:
    """Definitive answer from an external verifier."""

    verified: bool
    timestamp: Optional[str] = None


class DelegateVerifier(Protocol):
    async def verify(
        self,
        endpoint: str,
        proof: Mapping[str, Any],
        public_signals: Sequence[str],
        vkey: Optional[Mapping[str, Any]],
    ) -> DelegateVerdict:
        """
        Raises:
            DelegateUnreachableError: On timeout, transport failure, non-2xx
                status or an unparseable reply
        """
        ...


class ProofBackend(Protocol):
    def verify(self, vk: VerificationKey, signals: PublicSignals, proof: Proof) -> bool:
        ...


class VerificationEngine:
    """
    Decides whether a proof is accepted.

    Args:
        key_store: Store consulted when the request carries no key
        delegate: Client for external verifiers; without one, delegate
            endpoints are ignored
        delegate_endpoint: Default delegate URL, overridden per request by
            ``verifierUrl``
        allowed_endpoints: Further URLs a request may name in ``verifierUrl``.
            The default endpoint is always allowed; any other URL is
            rejected as invalid input.
        policy: ``strict`` or ``lenient``; None resolves through feature flags
            on every call
        local_pairing: Run the pairing check in-process when a key is known.
            When off, a known key is forwarded to the delegate instead.
        backend: Pairing implementation
    """

    def __init__(
        self,
        *,
        key_store: Optional[VerificationKeyStore] = None,
        delegate: Optional[DelegateVerifier] = None,
        delegate_endpoint: Optional[str] = None,
        allowed_endpoints: Optional[Iterable[str]] = None,
        policy: Optional[str] = None,
        local_pairing: bool = True,
        backend: Optional[ProofBackend] = None,
    ) -> None:
        # Fail fast on a bad explicit policy.
        get_policy(policy)
        self._policy = policy
        self._key_store = key_store
        self._delegate = delegate
        self._delegate_endpoint = delegate_endpoint
        self._allowed_endpoints = _endpoint_set(delegate_endpoint, allowed_endpoints)
        self._local_pairing = local_pairing
        self._backend = backend if backend is not None else Groth16Backend()

    @property
    def policy(self) -> str:
        return get_policy(self._policy)

    @property
    def key_store(self) -> Optional[VerificationKeyStore]:
        return self._key_store

    @property
    def local_pairing(self) -> bool:
        return self._local_pairing

    @property
    def allowed_endpoints(self) -> FrozenSet[str]:
        return self._allowed_endpoints

    async def verify_payload(self, payload: Any) -> VerificationOutcome:
        """Parse a wire request and verify it; malformed input yields INVALID_INPUT."""
        try:
            request = VerificationRequest.from_json(payload)
        except InvalidInputError as exc:
            logger.info("rejected malformed request: %s", exc.detail)
            return VerificationOutcome.invalid_input(str(exc))
        return await self.verify(request)

    async def verify(self, request: VerificationRequest) -> VerificationOutcome:
        """
        Verify one request.

        Raises:
            InternalVerificationError: On any unexpected fault. Never used to
                report an invalid proof.
        """
        try:
            return await self._decide(request)
        except InternalVerificationError:
            raise
        except Exception as exc:
            logger.exception("internal failure during verification")
            raise InternalVerificationError(f"{type(exc).__name__}: {exc}") from exc

    async def _decide(self, request: VerificationRequest) -> VerificationOutcome:
        _trace("Received", request.circuit.key_id)
        if (
            request.delegate_endpoint is not None
            and request.delegate_endpoint not in self._allowed_endpoints
        ):
            logger.warning("rejected request naming verifier %s", request.delegate_endpoint)
            return VerificationOutcome.invalid_input(VERIFIER_URL_NOT_ALLOWED)
        _trace("StructurallyValidated", request.circuit.key_id)

        labelled = request.public_signals.labelled()

        key, key_source = await self._resolve_key(request)
        _trace("KeyResolved" if key is not None else "KeyAbsent", key_source)

        if key is not None and self._local_pairing:
            return await self._check_locally(request, key, key_source, labelled)

        endpoint = request.delegate_endpoint or self._delegate_endpoint
        if endpoint is not None and self._delegate is not None:
            return await self._check_delegated(
                self._delegate, request, endpoint, key, key_source, labelled
            )
        if endpoint is not None:
            logger.warning("delegate endpoint %s ignored: no delegate client configured", endpoint)

        _trace("Unchecked", key_source)
        logger.warning(
            "accepting %s proof on structure only (threshold=%s)",
            request.circuit.key_id,
            labelled.get("threshold"),
        )
        return _finish(
            VerificationOutcome(
                verified=True,
                mode=VerificationMode.STRUCTURAL_ONLY,
                public_signals=labelled,
                note=STRUCTURAL_NOTE,
                key_source=key_source,
            )
        )

    async def _resolve_key(
        self, request: VerificationRequest
    ) -> tuple[Optional[VerificationKey], Optional[str]]:
        if request.verification_key is not None:
            return request.verification_key, KEY_SOURCE_REQUEST
        if self._key_store is None:
            return None, None
        key = await self._key_store.load(request.circuit.key_id)
        if key is None:
            return None, None
        return key, self._key_store.source_name

    async def _check_locally(
        self,
        request: VerificationRequest,
        key: VerificationKey,
        key_source: Optional[str],
        labelled: Mapping[str, str],
    ) -> VerificationOutcome:
        verified = await trio.to_thread.run_sync(
            self._backend.verify, key, request.public_signals, request.proof
        )
        _trace("CryptoChecked", key_source)
        logger.info(
            "pairing check for %s: %s (key sha256=%s)",
            request.circuit.key_id,
            "valid" if verified else "invalid",
            key.fingerprint[:16],
        )
        return _finish(
            VerificationOutcome(
                verified=verified,
                mode=VerificationMode.CRYPTOGRAPHIC,
                public_signals=dict(labelled),
                error=None if verified else INVALID_PROOF,
                error_kind=None if verified else ErrorKind.CRYPTOGRAPHICALLY_INVALID,
                key_source=key_source,
            )
        )

    async def _check_delegated(
        self,
        delegate: DelegateVerifier,
        request: VerificationRequest,
        endpoint: str,
        key: Optional[VerificationKey],
        key_source: Optional[str],
        labelled: Mapping[str, str],
    ) -> VerificationOutcome:
        try:
            verdict = await delegate.verify(
                endpoint,
                request.proof.to_json(),
                list(request.public_signals.values),
                key.to_json() if key is not None else None,
            )
        except DelegateUnreachableError as exc:
            logger.warning("delegate verifier %s unreachable: %s", endpoint, exc)
            return _finish(
                VerificationOutcome(
                    verified=False,
                    mode=None,
                    public_signals=dict(labelled),
                    error=DELEGATE_UNREACHABLE,
                    error_kind=ErrorKind.DELEGATE_UNREACHABLE,
                    key_source=key_source,
                )
            )
        _trace("DelegateChecked", key_source)

        if verdict.verified:
            logger.info("delegate verifier accepted %s proof", request.circuit.key_id)
            return _finish(
                VerificationOutcome(
                    verified=True,
                    mode=VerificationMode.CRYPTOGRAPHIC,
                    public_signals=dict(labelled),
                    timestamp=verdict.timestamp or utc_timestamp(),
                    key_source=key_source,
                )
            )

        if self.policy == STRICT:
            logger.info("delegate verifier rejected %s proof (strict)", request.circuit.key_id)
            return _finish(
                VerificationOutcome(
                    verified=False,
                    mode=VerificationMode.DELEGATED_FAILED,
                    public_signals=dict(labelled),
                    error=INVALID_PROOF,
                    error_kind=ErrorKind.CRYPTOGRAPHICALLY_INVALID,
                    timestamp=verdict.timestamp,
                    key_source=key_source,
                    delegate_rejected=True,
                )
            )

        logger.warning(
            "delegate verifier rejected %s proof; accepting on structure (lenient)",
            request.circuit.key_id,
        )
        return _finish(
            VerificationOutcome(
                verified=True,
                mode=VerificationMode.STRUCTURAL_ONLY,
                public_signals=dict(labelled),
                note=LENIENT_NOTE,
                timestamp=verdict.timestamp,
                key_source=key_source,
                delegate_rejected=True,
            )
        )


def _trace(state: str, detail: Optional[str]) -> None:
    logger.debug("state=%s (%s)", state, detail or "-")


def _finish(outcome: VerificationOutcome) -> VerificationOutcome:
    _trace("Terminal", outcome.mode.value if outcome.mode else str(outcome.error_kind))
    return outcome


def _endpoint_set(default: Optional[str], extra: Optional[Iterable[str]]) -> FrozenSet[str]:
    allowed = set(extra or ())
    if default is not None:
        allowed.add(default)
    return frozenset(allowed)
