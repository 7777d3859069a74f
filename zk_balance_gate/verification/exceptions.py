"""
Custom exceptions for proof verification.

Expected conditions (missing key, delegate down, structural fallback) are
reported through VerificationOutcome fields. These exceptions cover input
rejection at the parsing boundary and genuinely unexpected faults.
"""

from __future__ import annotations


class VerificationError(Exception):
    """Base exception for verification service errors."""

    pass


class InvalidInputError(VerificationError):
    """Proof, public signals or key failed structural validation."""

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message)
        self.detail = detail or message


class ConfigurationError(VerificationError):
    """Configuration error."""

    pass


class KeySourceError(VerificationError):
    """Verification key source could not be read."""

    pass


class DelegateUnreachableError(VerificationError):
    """External verifier did not give a definitive answer."""

    retryable = True


class InternalVerificationError(VerificationError):
    """Unexpected failure inside the verifier (not proof invalidity)."""

    pass
