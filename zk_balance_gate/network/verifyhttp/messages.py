"""JSON body codec for the verification endpoints."""

from __future__ import annotations

import json
from typing import Any, Dict, Mapping

from .constants import MAX_BODY_BYTES
from .errors import SchemaError, SizeLimitError


def decode_request(blob: bytes, max_bytes: int = MAX_BODY_BYTES) -> Dict[str, Any]:
    if len(blob) > max_bytes:
        raise SizeLimitError("request too large")
    try:
        obj = json.loads(blob.decode("utf-8"))
    except UnicodeDecodeError as exc:
        raise SchemaError("request is not UTF-8") from exc
    except json.JSONDecodeError as exc:
        raise SchemaError(f"request is not JSON: {exc.msg}") from exc
    if not isinstance(obj, dict):
        raise SchemaError("request must be a JSON object")
    return obj


def encode_response(body: Mapping[str, Any]) -> bytes:
    return json.dumps(dict(body), separators=(",", ":")).encode("utf-8")


def encode_error(message: str, **extra: Any) -> bytes:
    body: Dict[str, Any] = {"verified": False, "error": message}
    body.update(extra)
    return encode_response(body)
