"""
Acceptance policy flag for delegated verification.

WARNING: ``lenient`` accepts a proof the external verifier explicitly
rejected, relying on wallet-signature and token-balance checks done earlier
in the request path. Pick ``strict`` where those layers are absent.
"""

from __future__ import annotations

import os
from typing import Final

STRICT: Final[str] = "strict"
LENIENT: Final[str] = "lenient"

_VALID_POLICIES: Final[tuple[str, ...]] = (STRICT, LENIENT)
_DEFAULT_POLICY: Final[str] = LENIENT
_ENV_VAR_NAME: Final[str] = "ZK_VERIFY_POLICY"

_policy_override: str | None = None


def _format_valid_options() -> str:
    return ", ".join(_VALID_POLICIES)


def normalize_policy(value: str | None) -> str | None:
    """
    Validate a policy value; empty string and None mean "unset".

    Raises:
        ValueError: If the value is not a known policy.
    """
    if value is None:
        return None

    if not isinstance(value, str):
        raise ValueError(
            f"Invalid verification policy: {value!r}. Valid options: {_format_valid_options()}"
        )

    value = value.strip().lower()
    if value == "":
        return None

    if value not in _VALID_POLICIES:
        raise ValueError(
            f"Invalid verification policy: {value!r}. Valid options: {_format_valid_options()}"
        )

    return value


def get_policy(prefer: str | None = None) -> str:
    """
    Resolve the acceptance policy in precedence order.

    Args:
        prefer: Optional explicitly configured policy.

    Returns:
        Policy string, ``strict`` or ``lenient``.

    Raises:
        ValueError: If a provided policy value is invalid.
    """
    preferred = normalize_policy(prefer)
    if preferred is not None:
        return preferred

    if _policy_override is not None:
        return _policy_override

    env_policy = normalize_policy(os.getenv(_ENV_VAR_NAME))
    if env_policy is not None:
        return env_policy

    return _DEFAULT_POLICY


def set_policy(value: str | None) -> None:
    """
    Set in-memory policy override (testing only).

    Args:
        value: Policy to force, or None to clear the override.

    Raises:
        ValueError: If the value is invalid.
    """
    global _policy_override
    _policy_override = normalize_policy(value)
