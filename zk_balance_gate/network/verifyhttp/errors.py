"""Transport error types."""


class ProtocolError(Exception):
    """Base error for verification transport issues (also a client disconnect mid-body)."""


class SchemaError(ProtocolError):
    """Raised when a body is not a JSON object."""


class SizeLimitError(ProtocolError):
    """Raised when a body exceeds configured size limits."""
