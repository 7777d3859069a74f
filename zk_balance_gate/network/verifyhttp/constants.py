"""HTTP surface constants for proof verification."""

from __future__ import annotations

from ...verification.config import MAX_REQUEST_BYTES

VERIFY_ROUTE = "/verify-zk-proof"
DELEGATE_ROUTE = "/api/verify"

RUNTIME = "python"

# Blob store layout of the deployed key bucket
STORAGE_PATH = "storage/v1/object/public"
DEFAULT_BUCKET = "zkp"

MAX_BODY_BYTES = MAX_REQUEST_BYTES

CORS_ALLOW_ORIGINS = ("*",)
CORS_ALLOW_METHODS = ("GET", "POST", "OPTIONS")
CORS_ALLOW_HEADERS = ("authorization", "x-client-info", "apikey", "content-type")

MISSING_DELEGATE_FIELDS = "Missing required fields: proof, publicSignals, or vkey"
METHOD_NOT_ALLOWED = "Method not allowed"
INVALID_JSON = "Invalid JSON body"
BODY_TOO_LARGE = "Request body too large"
INTERNAL_ERROR = "Internal verification error"
