"""ResponseWriter — the single funnel for frames leaving the host."""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import math
from typing import Any, Protocol, runtime_checkable

from exthost.protocol.models import ErrorCode, JsonRpcResponse, error_response

logger = logging.getLogger(__name__)


@runtime_checkable
class ByteSink(Protocol):
    """A writable binary channel (``asyncio.StreamWriter`` or a binary file)."""

    def write(self, data: bytes) -> Any: ...


def encode_frame(response: JsonRpcResponse) -> bytes:
    """Serialize *response* as one newline-terminated UTF-8 frame.

    Non-finite floats become ``null``.  Values json cannot represent otherwise
    are stringified; non-string keys and circular structures raise.

    Raises:
        TypeError: A mapping key is not a JSON scalar.
        RecursionError: The payload references itself.
    """
    payload = _null_non_finite(response.to_wire())
    line = json.dumps(
        payload, ensure_ascii=False, separators=(",", ":"), default=str, allow_nan=False
    )
    return (line + "\n").encode("utf-8")


def _null_non_finite(value: Any) -> Any:
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {k: _null_non_finite(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_null_non_finite(v) for v in value]
    return value


class ResponseWriter:
    """Writes whole response frames, one at a time.

    All protocol output goes through :meth:`send`; the lock guarantees that
    bytes of two responses never interleave, even if several handlers finish
    concurrently.  After each frame the sink is drained (``StreamWriter``) or
    flushed (file objects) so the parent sees it immediately.
    """

    def __init__(self, sink: ByteSink) -> None:
        self._sink = sink
        self._lock = asyncio.Lock()

    async def send(self, response: JsonRpcResponse) -> None:
        """Write *response* as a single frame.

        A result that cannot be encoded is replaced by an ``INTERNAL_ERROR``
        response for the same id, so the request is still answered.
        """
        try:
            frame = encode_frame(response)
        except (TypeError, ValueError, RecursionError) as exc:
            logger.warning("response id=%s is not JSON-serializable: %s", response.id, exc)
            response = error_response(
                response.id,
                ErrorCode.INTERNAL_ERROR,
                f"internal error: result is not JSON-serializable: {exc}",
            )
            frame = encode_frame(response)
        async with self._lock:
            self._sink.write(frame)
            await self._flush()
        logger.debug("sent response id=%s error=%s", response.id, response.is_error)

    async def _flush(self) -> None:
        drain = getattr(self._sink, "drain", None)
        if drain is not None:
            result = drain()
            if inspect.isawaitable(result):
                await result
            return
        flush = getattr(self._sink, "flush", None)
        if flush is not None:
            flush()
