"""Public API for Groth16 proof verification."""

from __future__ import annotations

from .circuit import CIRCUIT_REGISTRY, TOKEN_BALANCE_CIRCUIT, CircuitContract, get_circuit
from .engine import DelegateVerdict, DelegateVerifier, VerificationEngine
from .exceptions import (
    ConfigurationError,
    DelegateUnreachableError,
    InternalVerificationError,
    InvalidInputError,
    KeySourceError,
    VerificationError,
)
from .feature_flags import get_policy, set_policy
from .key_store import FileKeySource, KeySource, StaticKeySource, VerificationKeyStore
from .settings import ServiceSettings, load_settings
from .types import (
    ErrorKind,
    Proof,
    PublicSignals,
    VerificationKey,
    VerificationMode,
    VerificationOutcome,
    VerificationRequest,
)

__all__ = [
    "CIRCUIT_REGISTRY",
    "TOKEN_BALANCE_CIRCUIT",
    "CircuitContract",
    "get_circuit",
    "DelegateVerdict",
    "DelegateVerifier",
    "VerificationEngine",
    "ConfigurationError",
    "DelegateUnreachableError",
    "InternalVerificationError",
    "InvalidInputError",
    "KeySourceError",
    "VerificationError",
    "get_policy",
    "set_policy",
    "FileKeySource",
    "KeySource",
    "StaticKeySource",
    "VerificationKeyStore",
    "ServiceSettings",
    "load_settings",
    "ErrorKind",
    "Proof",
    "PublicSignals",
    "VerificationKey",
    "VerificationMode",
    "VerificationOutcome",
    "VerificationRequest",
]
