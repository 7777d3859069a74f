"""
HTTP client for external delegate verifiers.

A delegate answers ``POST {proof, publicSignals, vkey?}`` with
``{verified, timestamp}``. Anything short of a 2xx JSON reply carrying a
boolean ``verified`` is treated as no answer at all.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

import httpx
import trio

from ...verification.config import DELEGATE_TIMEOUT
from ...verification.engine import DelegateVerdict
from ...verification.exceptions import DelegateUnreachableError

logger = logging.getLogger(__name__)

__all__ = ["DelegateVerdict", "HttpDelegateClient", "parse_delegate_reply"]


def parse_delegate_reply(response: httpx.Response) -> DelegateVerdict:
    """
    Raises:
        DelegateUnreachableError: If the reply is not a definitive verdict
    """
    if not response.is_success:
        raise DelegateUnreachableError(f"delegate answered HTTP {response.status_code}")
    try:
        body = response.json()
    except ValueError as exc:
        raise DelegateUnreachableError("delegate reply is not JSON") from exc
    if not isinstance(body, Mapping) or not isinstance(body.get("verified"), bool):
        raise DelegateUnreachableError("delegate reply has no boolean 'verified'")
    timestamp = body.get("timestamp")
    return DelegateVerdict(
        verified=body["verified"],
        timestamp=timestamp if isinstance(timestamp, str) else None,
    )


class HttpDelegateClient:
    """
    Posts proofs to a delegate verifier over HTTP.

    Args:
        timeout: Hard ceiling on the whole round trip, in seconds
        transport: Optional httpx transport (tests, custom TLS)
        headers: Extra request headers, e.g. an API key
    """

    def __init__(
        self,
        timeout: float = DELEGATE_TIMEOUT,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport
        self._headers = dict(headers or {})

    @property
    def timeout(self) -> float:
        return self._timeout

    async def verify(
        self,
        endpoint: str,
        proof: Mapping[str, Any],
        public_signals: Sequence[str],
        vkey: Optional[Mapping[str, Any]],
    ) -> DelegateVerdict:
        body: dict[str, Any] = {"proof": dict(proof), "publicSignals": list(public_signals)}
        if vkey is not None:
            body["vkey"] = dict(vkey)

        try:
            with trio.fail_after(self._timeout):
                async with httpx.AsyncClient(
                    transport=self._transport,
                    timeout=self._timeout,
                    headers=self._headers,
                ) as client:
                    response = await client.post(endpoint, json=body)
        except trio.TooSlowError as exc:
            raise DelegateUnreachableError(
                f"no reply from {endpoint} within {self._timeout:.1f}s"
            ) from exc
        except httpx.HTTPError as exc:
            raise DelegateUnreachableError(f"{type(exc).__name__}: {exc}") from exc

        verdict = parse_delegate_reply(response)
        logger.debug("delegate %s verdict: verified=%s", endpoint, verdict.verified)
        return verdict
