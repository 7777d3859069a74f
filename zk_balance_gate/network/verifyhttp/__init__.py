"""HTTP transport for proof verification."""

from .app import create_app
from .constants import (
    CORS_ALLOW_HEADERS,
    CORS_ALLOW_METHODS,
    CORS_ALLOW_ORIGINS,
    DELEGATE_ROUTE,
    VERIFY_ROUTE,
)
from .delegate import DelegateVerdict, HttpDelegateClient
from .errors import ProtocolError, SchemaError, SizeLimitError
from .handler import handle_delegate_request_bytes, handle_verify_request_bytes
from .messages import decode_request, encode_error, encode_response
from .sources import HttpKeySource

__all__ = [
    "CORS_ALLOW_HEADERS",
    "CORS_ALLOW_METHODS",
    "CORS_ALLOW_ORIGINS",
    "DELEGATE_ROUTE",
    "VERIFY_ROUTE",
    "DelegateVerdict",
    "HttpDelegateClient",
    "HttpKeySource",
    "ProtocolError",
    "SchemaError",
    "SizeLimitError",
    "create_app",
    "decode_request",
    "encode_error",
    "encode_response",
    "handle_delegate_request_bytes",
    "handle_verify_request_bytes",
]
