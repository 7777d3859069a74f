"""Network transports for the verification service."""
