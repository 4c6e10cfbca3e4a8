"""Newline-delimited framing and request parsing.

:class:`FrameReader` turns an arbitrary byte stream into text frames,
one per input line.  :func:`parse_request` turns a frame into a validated
:class:`JsonRpcRequest` or raises the matching protocol error.
"""

from __future__ import annotations

import codecs
import json
from collections import deque
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pydantic import ValidationError

from exthost.protocol.errors import InvalidRequestError, ParseError
from exthost.protocol.models import JSONRPC_VERSION, JsonRpcRequest

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

DEFAULT_CHUNK_SIZE = 64 * 1024


@runtime_checkable
class ByteSource(Protocol):
    """Anything with an awaitable ``read`` — e.g. :class:`asyncio.StreamReader`."""

    async def read(self, n: int = -1) -> bytes: ...


class FrameReader:
    """Async iterator of stripped, non-empty text frames.

    Tolerates frames split across reads and several frames per read.  A
    multi-byte UTF-8 sequence split across reads is reassembled by an
    incremental decoder.  End of stream ends iteration; a trailing line
    without a newline is still yielded.

    Usage::

        async for frame in FrameReader(stream_reader):
            handle(frame)
    """

    def __init__(self, source: ByteSource, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self._source = source
        self._chunk_size = chunk_size
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._ready: deque[str] = deque()
        self._eof = False

    def __aiter__(self) -> AsyncIterator[str]:
        return self

    async def __anext__(self) -> str:
        while not self._ready:
            if self._eof:
                raise StopAsyncIteration
            await self._fill()
        return self._ready.popleft()

    async def _fill(self) -> None:
        chunk = await self._source.read(self._chunk_size)
        if not chunk:
            self._eof = True
            self._buffer += self._decoder.decode(b"", final=True)
            self._push(self._buffer)
            self._buffer = ""
            return

        self._buffer += self._decoder.decode(chunk)
        *lines, self._buffer = self._buffer.split("\n")
        for line in lines:
            self._push(line)

    def _push(self, line: str) -> None:
        frame = line.strip()
        if frame:
            self._ready.append(frame)


def parse_request(frame: str) -> JsonRpcRequest:
    """Parse one frame into a request.

    Raises:
        ParseError: The frame is not valid JSON.
        InvalidRequestError: The frame is JSON but not a JSON-RPC 2.0 request
            (not an object, wrong ``jsonrpc`` tag, missing or non-integer
            ``id``, missing ``method``).
    """
    try:
        data: Any = json.loads(frame)
    except json.JSONDecodeError as exc:
        raise ParseError("failed to parse JSON", data=str(exc)) from exc

    if not isinstance(data, dict):
        raise InvalidRequestError("invalid JSON-RPC request: expected an object")

    if data.get("jsonrpc") != JSONRPC_VERSION:
        raise InvalidRequestError("invalid JSON-RPC request: jsonrpc must be \"2.0\"")

    try:
        return JsonRpcRequest.model_validate(data)
    except ValidationError as exc:
        fields = sorted({str(err["loc"][0]) for err in exc.errors() if err["loc"]})
        detail = ", ".join(fields) or "envelope"
        raise InvalidRequestError(f"invalid JSON-RPC request: bad {detail}") from exc
