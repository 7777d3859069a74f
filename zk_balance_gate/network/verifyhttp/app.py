"""
Starlette application exposing the verification endpoints.

    POST    /verify-zk-proof   engine decision
    POST    /api/verify        standalone delegate verifier
    GET     /api/verify        health

CORS (including preflight) is handled by CORSMiddleware; unsupported methods
get a JSON 405.
"""

from __future__ import annotations

import logging
from typing import Optional

import trio
from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import ClientDisconnect, Request
from starlette.responses import Response
from starlette.routing import Route

from ...verification.engine import VerificationEngine
from ...verification.groth16.backend import Groth16Backend
from ...verification.types import utc_timestamp
from .constants import (
    BODY_TOO_LARGE,
    CORS_ALLOW_HEADERS,
    CORS_ALLOW_METHODS,
    CORS_ALLOW_ORIGINS,
    DELEGATE_ROUTE,
    INVALID_JSON,
    MAX_BODY_BYTES,
    METHOD_NOT_ALLOWED,
    RUNTIME,
    VERIFY_ROUTE,
)
from .errors import ProtocolError, SizeLimitError
from .handler import handle_delegate_request_bytes, handle_verify_request_bytes
from .limits import check_content_length, read_body
from .messages import encode_response

logger = logging.getLogger(__name__)


def _json(status: int, blob: bytes, headers: Optional[dict] = None) -> Response:
    return Response(
        content=blob,
        status_code=status,
        media_type="application/json",
        headers=headers,
    )


async def _method_not_allowed(request: Request, exc: HTTPException) -> Response:
    return _json(405, encode_response({"error": METHOD_NOT_ALLOWED}), headers=exc.headers)


async def _read(request: Request, max_bytes: int) -> bytes:
    check_content_length(request.headers.get("content-length"), max_bytes)
    try:
        return await read_body(request.stream(), max_bytes)
    except ClientDisconnect as exc:
        raise ProtocolError("client disconnected before the body was read") from exc


def create_app(
    engine: VerificationEngine,
    *,
    backend: Optional[Groth16Backend] = None,
    max_body_bytes: int = MAX_BODY_BYTES,
    debug: bool = False,
) -> Starlette:
    delegate_backend = backend if backend is not None else Groth16Backend()

    async def read_or_reject(request: Request) -> bytes | Response:
        try:
            return await _read(request, max_body_bytes)
        except SizeLimitError:
            return _json(413, encode_response({"verified": False, "error": BODY_TOO_LARGE}))
        except ProtocolError:
            return _json(400, encode_response({"verified": False, "error": INVALID_JSON}))
        except trio.TooSlowError:
            return _json(408, encode_response({"verified": False, "error": "Request timeout"}))

    async def verify_zk_proof(request: Request) -> Response:
        body = await read_or_reject(request)
        if isinstance(body, Response):
            return body
        status, blob = await handle_verify_request_bytes(body, engine, max_body_bytes)
        return _json(status, blob)

    async def delegate_verify(request: Request) -> Response:
        if request.method in ("GET", "HEAD"):
            return _json(
                200,
                encode_response(
                    {"status": "ok", "runtime": RUNTIME, "timestamp": utc_timestamp()}
                ),
            )
        body = await read_or_reject(request)
        if isinstance(body, Response):
            return body
        status, blob = await trio.to_thread.run_sync(
            handle_delegate_request_bytes, body, delegate_backend, max_body_bytes
        )
        return _json(status, blob)

    app = Starlette(
        debug=debug,
        routes=[
            Route(VERIFY_ROUTE, verify_zk_proof, methods=["POST"]),
            Route(DELEGATE_ROUTE, delegate_verify, methods=["GET", "POST"]),
        ],
        exception_handlers={405: _method_not_allowed},
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(CORS_ALLOW_ORIGINS),
        allow_methods=list(CORS_ALLOW_METHODS),
        allow_headers=list(CORS_ALLOW_HEADERS),
    )
    app.state.engine = engine
    logger.debug("verification app created (policy=%s)", engine.policy)
    return app
