"""Request body reading with size limits and timeouts."""

from __future__ import annotations

from typing import AsyncIterable, Optional

import trio

from ...verification.config import REQUEST_READ_TIMEOUT
from .constants import MAX_BODY_BYTES
from .errors import SchemaError, SizeLimitError


def check_content_length(header: Optional[str], max_bytes: int = MAX_BODY_BYTES) -> None:
    if header is None:
        return
    try:
        declared = int(header)
    except ValueError:
        raise SchemaError("invalid content-length") from None
    if declared < 0:
        raise SchemaError("invalid content-length")
    if declared > max_bytes:
        raise SizeLimitError("body too large")


async def read_body(
    chunks: AsyncIterable[bytes],
    max_bytes: int = MAX_BODY_BYTES,
    timeout: float = REQUEST_READ_TIMEOUT,
) -> bytes:
    data = bytearray()
    with trio.fail_after(timeout):
        async for chunk in chunks:
            data.extend(chunk)
            if len(data) > max_bytes:
                raise SizeLimitError("body too large")
    return bytes(data)
